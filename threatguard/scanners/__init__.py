"""Classifiers and scan sessions for ThreatGuard."""

from threatguard.scanners.apps import (
    blocked_url_threat,
    intercept_and_scan_url,
    scan_all_installed_apps,
    scan_installed_app,
)
from threatguard.scanners.base import BaseScanSession
from threatguard.scanners.files import scan_apk, scan_app_installation, scan_file
from threatguard.scanners.session import (
    SESSIONS,
    FullScanSession,
    QuickScanSession,
    perform_full_scan,
    perform_quick_scan,
)
from threatguard.scanners.url import scan_url

__all__ = [
    "BaseScanSession",
    "QuickScanSession",
    "FullScanSession",
    "SESSIONS",
    "scan_url",
    "scan_file",
    "scan_apk",
    "scan_app_installation",
    "scan_installed_app",
    "scan_all_installed_apps",
    "intercept_and_scan_url",
    "blocked_url_threat",
    "perform_quick_scan",
    "perform_full_scan",
]
