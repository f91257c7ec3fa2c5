"""Synthetic threat generator for demos and fault-injection tests.

Nothing in the scan or monitoring paths calls this module. Callers pass their
own ``random.Random`` so generated batches are reproducible.
"""

import random

from threatguard.models import ThreatCategory, ThreatDraft, ThreatLevel
from threatguard.scanners.url import scan_url, threat_category_for

SAMPLE_MALICIOUS_URLS = [
    "http://verify-paypal-secure.phishing-site.com/login",
    "https://apple-id-locked-verify.scam.net/account",
    "http://amazon-account-suspended.fraud.com/verify",
    "http://banking-urgent-action-required.fraud.net/login",
    "https://download-crack-keygen.xyz/malware.exe",
]

SAMPLE_FILE_SOURCE = "Downloads/unknown_file.apk"


def simulate_threat_detection(rng: random.Random, probability: float = 0.15) -> list[ThreatDraft]:
    """Return zero or one synthetic drafts.

    With chance ``probability`` a threat is produced: half the time a
    malicious URL classified by the real URL classifier, otherwise a
    suspicious downloaded file.
    """
    if rng.random() >= probability:
        return []

    if rng.random() < 0.5:
        url = rng.choice(SAMPLE_MALICIOUS_URLS)
        result = scan_url(url)
        host = url.split("/")[2]
        return [ThreatDraft(
            category=threat_category_for(result),
            level=result.threat_level,
            title="Malicious URL Detected",
            description=f"Found suspicious link: {host} - {result.threats[0]}",
            source=url,
            blocked=True,
        )]

    return [ThreatDraft(
        category=ThreatCategory.SUSPICIOUS_FILE,
        level=ThreatLevel.MEDIUM,
        title="Suspicious File Detected",
        description="Found file with unusual permissions in Downloads folder",
        source=SAMPLE_FILE_SOURCE,
        blocked=True,
    )]
