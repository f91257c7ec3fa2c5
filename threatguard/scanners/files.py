"""File, installer package and app identity classifier.

Works on names and paths only; file contents are never opened.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import PurePath

from threatguard.cve import find_cve_for_threat
from threatguard.models import FileScanResult, ThreatCategory, ThreatDraft, ThreatLevel

logger = logging.getLogger(__name__)

MALICIOUS_EXTENSIONS = {
    ".exe", ".bat", ".cmd", ".com", ".scr", ".pif", ".vbs", ".vbe", ".js",
    ".jse", ".wsf", ".ps1", ".jar", ".apk", ".xapk", ".msi", ".dmg", ".pkg",
    ".deb", ".rpm", ".ipa",
}

INSTALLER_PACKAGE_EXTENSIONS = {".apk", ".xapk"}


def _token(word: str) -> str:
    # letters on either side break the match, separators and digits do not
    return rf"(?<![a-z]){word}(?![a-z])"


MALICIOUS_PATTERNS: list[re.Pattern] = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"virus",
        r"trojan",
        r"spyware",
        r"keylogger",
        r"backdoor",
        r"rootkit",
        r"ransomware",
        r"stealer",
        _token("rat"),
        r"botnet",
        r"crack",
        r"keygen",
        r"hack",
    )
]

SUSPICIOUS_APK_PATTERNS: list[re.Pattern] = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"cracked",
        _token(r"mod(?:ded)?"),
        r"premium[\s_.-]*(?:unlocked|bypass|free)",
        r"cheat",
        r"hack",
        r"patched",
        r"unlimited[\s_.-]*(?:coins|gems|money)",
        r"free[\s_.-]*in[\s_.-]*app",
        r"lucky[\s_.-]*patcher",
    )
]

KNOWN_MALICIOUS_PACKAGES = [
    "com.android.system.update.fake",
    "com.android.sysupdate.service",
    "com.gbwhatsapp",
    "com.whatsapp.plus",
    "com.instagram.plus",
    "com.spotify.premium.mod",
    "com.netflix.mod",
    "com.chelpus.lackypatch",
    "com.fakebank.secure.login",
    "com.free.vpn.unlimited.proxy",
    "com.flashlight.spy",
    "com.battery.saver.miner",
]

LOW_TRUST_PATH_HINTS = ("temp", "tmp", "cache", "download", "unknown", "external")

INSTALLER_NAME_HINTS = ("install", "setup")


@dataclass(frozen=True)
class FileIndicators:
    has_malicious_extension: bool
    has_malicious_pattern: bool
    suspicious_path: bool
    has_suspicious_apk_pattern: bool
    is_known_malicious_apk: bool

    @property
    def threat_indicators(self) -> int:
        return sum((
            self.has_malicious_extension,
            self.has_malicious_pattern,
            self.suspicious_path,
            self.has_suspicious_apk_pattern,
        ))


def _suffix(file_name: str) -> str:
    return PurePath(file_name.strip()).suffix.lower()


def _matches_any(patterns: list[re.Pattern], text: str) -> bool:
    return any(p.search(text) for p in patterns)


def _is_known_package(text: str, known_packages: Iterable[str] | None) -> bool:
    known = list(KNOWN_MALICIOUS_PACKAGES)
    if known_packages:
        known.extend(known_packages)
    lowered = text.lower()
    return any(pkg.lower() in lowered for pkg in known)


def collect_indicators(
    file_name: str,
    file_path: str | None = None,
    known_packages: Iterable[str] | None = None,
) -> FileIndicators:
    has_extension = _suffix(file_name) in MALICIOUS_EXTENSIONS
    path = (file_path or "").lower()
    return FileIndicators(
        has_malicious_extension=has_extension,
        has_malicious_pattern=_matches_any(MALICIOUS_PATTERNS, file_name),
        suspicious_path=has_extension and any(h in path for h in LOW_TRUST_PATH_HINTS),
        has_suspicious_apk_pattern=_matches_any(SUSPICIOUS_APK_PATTERNS, file_name),
        is_known_malicious_apk=_is_known_package(f"{file_name} {file_path or ''}", known_packages),
    )


def _reasons(ind: FileIndicators) -> list[str]:
    reasons = []
    if ind.is_known_malicious_apk:
        reasons.append("matches a known malicious package")
    if ind.has_suspicious_apk_pattern:
        reasons.append("modified or cracked package naming")
    if ind.has_malicious_pattern:
        reasons.append("malware family keyword in name")
    if ind.has_malicious_extension:
        reasons.append("high-risk executable or installer extension")
    if ind.suspicious_path:
        reasons.append("located in a low-trust directory")
    return reasons


def _attach_cve(draft: ThreatDraft, reasons: list[str]) -> ThreatDraft:
    if not draft.level.is_severe:
        return draft
    cve = find_cve_for_threat(
        draft.category.value, f"{draft.title} {' '.join(reasons)}", draft.source,
    )
    if cve is not None:
        draft.cve = cve
        draft.description += f"\nCVE: {cve.summary()}"
    return draft


def _classify(file_name: str, ind: FileIndicators):
    """Return (level, category, title, blocked) or None for a clean name."""
    is_package = _suffix(file_name) in INSTALLER_PACKAGE_EXTENSIONS
    count = ind.threat_indicators

    if is_package and (ind.is_known_malicious_apk or ind.has_suspicious_apk_pattern):
        return ThreatLevel.CRITICAL, ThreatCategory.MALWARE, "Malicious APK Detected", True

    triple = ind.has_malicious_extension and ind.has_malicious_pattern and ind.suspicious_path
    if count >= 3 or triple:
        return ThreatLevel.CRITICAL, ThreatCategory.MALWARE, "Malicious File Detected", True

    if ind.has_suspicious_apk_pattern:
        return ThreatLevel.HIGH, ThreatCategory.SUSPICIOUS_FILE, "Suspicious APK Detected", False

    if count == 2 or (ind.has_malicious_pattern and ind.has_malicious_extension):
        return ThreatLevel.HIGH, ThreatCategory.MALWARE, "Suspicious File Detected", False

    if ind.has_malicious_pattern:
        return ThreatLevel.MEDIUM, ThreatCategory.SUSPICIOUS_FILE, "Potentially Unsafe File", False

    if ind.has_malicious_extension:
        lowered = file_name.lower()
        if any(h in lowered for h in INSTALLER_NAME_HINTS):
            return None
        return ThreatLevel.MEDIUM, ThreatCategory.SUSPICIOUS_FILE, "Potentially Unsafe File", False

    return None


def scan_file(
    file_name: str,
    file_path: str | None = None,
    known_packages: Iterable[str] | None = None,
) -> FileScanResult:
    ind = collect_indicators(file_name, file_path, known_packages)
    verdict = _classify(file_name, ind)
    if verdict is None:
        return FileScanResult(is_safe=True, threat=None)

    level, category, title, blocked = verdict
    reasons = _reasons(ind)
    source = file_path or file_name
    draft = ThreatDraft(
        category=category,
        level=level,
        title=title,
        description=(
            f"File: {file_name}\n"
            f"Severity: {level.label}\n"
            f"Indicators: {', '.join(reasons)}"
        ),
        source=source,
        blocked=blocked,
    )
    _attach_cve(draft, reasons)
    logger.debug("file %s classified %s (%d indicators)", file_name, level.value, ind.threat_indicators)
    return FileScanResult(is_safe=False, threat=draft)


def scan_apk(
    apk_name: str,
    apk_path: str | None = None,
    known_packages: Iterable[str] | None = None,
) -> FileScanResult:
    """Classify an installer package. Same rules as :func:`scan_file`."""
    return scan_file(apk_name, apk_path, known_packages)


def scan_app_installation(
    app_name: str,
    package_name: str | None = None,
    known_packages: Iterable[str] | None = None,
) -> FileScanResult:
    """Classify an app by its display name and package identifier."""
    identity = f"{app_name} {package_name or ''}".strip()

    reasons = []
    if _is_known_package(identity, known_packages):
        level, category, title, blocked = (
            ThreatLevel.CRITICAL, ThreatCategory.MALWARE, "Malicious App Detected", True,
        )
        reasons.append("matches a known malicious package")
    elif _matches_any(MALICIOUS_PATTERNS, identity):
        level, category, title, blocked = (
            ThreatLevel.HIGH, ThreatCategory.MALWARE, "Suspicious App Detected", False,
        )
        reasons.append("malware family keyword in app identity")
    elif _matches_any(SUSPICIOUS_APK_PATTERNS, identity):
        level, category, title, blocked = (
            ThreatLevel.MEDIUM, ThreatCategory.SUSPICIOUS_FILE, "Potentially Unwanted App", False,
        )
        reasons.append("modified or cracked app naming")
    else:
        return FileScanResult(is_safe=True, threat=None)

    draft = ThreatDraft(
        category=category,
        level=level,
        title=title,
        description=(
            f"App: {app_name}\n"
            f"Package: {package_name or 'unknown'}\n"
            f"Severity: {level.label}\n"
            f"Indicators: {', '.join(reasons)}"
        ),
        source=package_name or app_name,
        blocked=blocked,
    )
    _attach_cve(draft, reasons)
    return FileScanResult(is_safe=False, threat=draft)
