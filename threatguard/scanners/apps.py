"""Installed-app scanning and URL interception."""

import logging
from collections.abc import Iterable

from threatguard.cve import find_cve_for_threat
from threatguard.discovery import DEFAULT_PROBE_TIMEOUT, AppTarget, CapabilityProber, detect_available_apps
from threatguard.models import FileScanResult, ThreatDraft, ThreatLevel, URLScanResult, escalate
from threatguard.scanners.files import scan_app_installation
from threatguard.scanners.url import (
    KEYWORD_FINDING,
    PHISHING_FINDING,
    has_actionable_threat,
    scan_url,
    threat_category_for,
)

logger = logging.getLogger(__name__)


def detect_threat_in_app(
    app_name: str,
    app_url: str,
    known_packages: Iterable[str] | None = None,
) -> ThreatDraft | None:
    """Classify an app's probe URL and its display name together.

    Only real signals count: phishing or malware findings, or a severe
    verdict. An ordinary plain-HTTP link on its own never produces a draft.
    """
    url_result = scan_url(app_url) if app_url else None
    app_threat = scan_app_installation(app_name, known_packages=known_packages).threat

    url_hit = url_result is not None and has_actionable_threat(url_result)
    app_hit = app_threat is not None and app_threat.level.is_severe
    if not (url_hit or app_hit):
        return None

    level = ThreatLevel.SAFE
    threat_types = []
    details = []
    if url_hit:
        level = escalate(level, url_result.threat_level)
        if PHISHING_FINDING in url_result.threats:
            threat_types.append("Phishing")
        if KEYWORD_FINDING in url_result.threats:
            threat_types.append("Malware")
        details.extend(url_result.threats)
    if app_hit:
        level = escalate(level, app_threat.level)
        threat_types.append("Suspicious App")
        details.append(app_threat.title)

    category = threat_category_for(url_result) if url_hit else app_threat.category
    threat_type = ", ".join(threat_types) or "Unknown Threat"
    description = (
        f"App: {app_name}\n"
        f"Threat Type: {threat_type}\n"
        f"Severity: {level.label}\n"
        f"Details: {', '.join(details)}"
    )
    cve = find_cve_for_threat(category.value, ", ".join(details), app_url)
    if cve is None and app_hit:
        cve = app_threat.cve
    if cve is not None:
        description += f"\nCVE: {cve.summary()}"

    return ThreatDraft(
        category=category,
        level=level,
        title=f"Threat in {app_name}",
        description=description,
        source=app_url or app_name,
        blocked=True,
        cve=cve,
    )


async def scan_installed_app(
    app_name: str,
    app_url: str,
    known_packages: Iterable[str] | None = None,
) -> ThreatDraft | None:
    threat = detect_threat_in_app(app_name, app_url, known_packages)
    if threat is not None:
        logger.info("threat detected in %s: %s", app_name, threat.level.value)
    return threat


async def scan_all_installed_apps(
    prober: CapabilityProber | None = None,
    catalog: list[AppTarget] | None = None,
    timeout: float = DEFAULT_PROBE_TIMEOUT,
    known_packages: Iterable[str] | None = None,
) -> list[ThreatDraft]:
    apps = await detect_available_apps(prober, catalog, timeout)
    threats = []
    for app in apps:
        threat = await scan_installed_app(app.name, app.probe_url, known_packages)
        if threat is not None:
            threats.append(threat)
    return threats


def blocked_url_threat(result: URLScanResult, source: str) -> ThreatDraft | None:
    """Draft for an already classified URL, or None below high severity."""
    if not result.threat_level.is_severe:
        return None

    category = threat_category_for(result)
    description = f"{result.url} - {', '.join(result.threats)}\nIntercepted from: {source}"
    cve = find_cve_for_threat(category.value, ", ".join(result.threats), result.url)
    if cve is not None:
        description += f"\nCVE: {cve.summary()}"

    return ThreatDraft(
        category=category,
        level=result.threat_level,
        title="Malicious URL Blocked",
        description=description,
        source=result.url,
        blocked=True,
        cve=cve,
    )


async def intercept_and_scan_url(url: str, source: str = "Browser") -> FileScanResult:
    """Check a URL that is about to be opened.

    Only high and critical verdicts produce a threat; lower verdicts are
    reported through ``is_safe`` alone.
    """
    result = scan_url(url)
    threat = blocked_url_threat(result, source)
    if threat is None:
        return FileScanResult(is_safe=result.is_safe, threat=None)

    logger.info("intercepted %s URL from %s", result.threat_level.value, source)
    return FileScanResult(is_safe=False, threat=threat)
