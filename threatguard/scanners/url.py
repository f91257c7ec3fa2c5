"""Heuristic URL classifier."""

import ipaddress
import re
from urllib.parse import urlsplit

from threatguard.models import ThreatCategory, ThreatLevel, URLScanResult, escalate

PHISHING_PATTERNS: list[re.Pattern] = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"paypal.*verify",
        r"verify.*paypal",
        r"amazon.*account.*suspend",
        r"banking.*login.*urgent",
        r"click.*here.*prize",
        r"verify.*account.*now",
        r"urgent.*action.*required",
        r"suspended.*account",
        r"account.*suspended",
        r"confirm.*identity",
        r"unusual.*activity",
        r"security.*alert.*verify",
        r"apple.*id.*locked",
        r"google.*verify.*account",
        r"netflix.*payment.*failed",
        r"tax.*refund.*claim",
        r"lottery.*winner",
        r"free.*prize",
    )
]

MALICIOUS_KEYWORDS = [
    "hack",
    "crack",
    "keygen",
    "trojan",
    "backdoor",
    "exploit",
    "malware",
    "virus",
]

URL_SHORTENERS = {
    "bit.ly",
    "tinyurl.com",
    "goo.gl",
    "ow.ly",
    "t.co",
    "is.gd",
    "buff.ly",
}

MALFORMED_URL = "Invalid or malformed URL"
PHISHING_FINDING = "Potential phishing attempt detected"
KEYWORD_FINDING = "Suspicious keywords detected"
INSECURE_FINDING = "Insecure connection (not HTTPS)"
HOMOGRAPH_FINDING = "URL contains suspicious characters"
IP_HOST_FINDING = "Direct IP address instead of domain name"
SHORTENER_FINDING = "URL shortener or suspicious domain"
NO_THREATS = "No threats detected"

RECOMMENDATIONS = {
    "safe": "This URL appears to be safe. Proceed with normal caution.",
    "danger": "DO NOT VISIT this URL. It shows signs of phishing or malicious intent.",
    "caution": "Exercise caution when visiting this URL. Verify the source.",
}


def _recommendation(level: ThreatLevel) -> str:
    if level == ThreatLevel.SAFE:
        return RECOMMENDATIONS["safe"]
    if level.is_severe:
        return RECOMMENDATIONS["danger"]
    return RECOMMENDATIONS["caution"]


def _split(url: str):
    """Return (scheme, hostname) or None when the URL cannot be used."""
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
    except ValueError:
        return None
    if not parts.scheme or not hostname:
        return None
    return parts.scheme.lower(), hostname.lower()


def _is_ip_address(hostname: str) -> bool:
    try:
        ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return True


def _is_shortener(hostname: str) -> bool:
    return any(hostname == d or hostname.endswith("." + d) for d in URL_SHORTENERS)


def _looks_like_homograph(hostname: str) -> bool:
    if not hostname.isascii():
        return True
    return any(label.startswith("xn--") for label in hostname.split("."))


def scan_url(url: str) -> URLScanResult:
    """Classify a URL using string heuristics only.

    Levels only ever go up within one pass. Insecure transport, bare IP hosts,
    shorteners and non-ASCII hostnames are corroborating detail: they are
    reported only for a URL that is already suspicious.
    """
    split = _split(url)
    if split is None:
        level = ThreatLevel.LOW
        return URLScanResult(
            url=url,
            is_safe=False,
            threat_level=level,
            threats=[MALFORMED_URL],
            recommendation=_recommendation(level),
        )

    scheme, hostname = split
    threats: list[str] = []
    level = ThreatLevel.SAFE
    insecure = scheme != "https"

    for pattern in PHISHING_PATTERNS:
        if pattern.search(url):
            threats.append(PHISHING_FINDING)
            level = escalate(level, ThreatLevel.CRITICAL)
            break

    lowered = url.lower()
    for keyword in MALICIOUS_KEYWORDS:
        if keyword in lowered:
            threats.append(KEYWORD_FINDING)
            level = escalate(level, ThreatLevel.HIGH)
            break

    if level != ThreatLevel.SAFE:
        if insecure:
            threats.append(INSECURE_FINDING)
        if _looks_like_homograph(hostname):
            threats.append(HOMOGRAPH_FINDING)
        if _is_ip_address(hostname):
            threats.append(IP_HOST_FINDING)
        if _is_shortener(hostname):
            threats.append(SHORTENER_FINDING)

    return URLScanResult(
        url=url,
        is_safe=level == ThreatLevel.SAFE,
        threat_level=level,
        threats=threats or [NO_THREATS],
        recommendation=_recommendation(level),
    )


def threat_category_for(result: URLScanResult) -> ThreatCategory:
    if PHISHING_FINDING in result.threats:
        return ThreatCategory.PHISHING
    if KEYWORD_FINDING in result.threats:
        return ThreatCategory.MALWARE
    return ThreatCategory.MALICIOUS_URL


def has_actionable_threat(result: URLScanResult) -> bool:
    """True when the result carries a real signal, not just transport detail."""
    if result.is_safe:
        return False
    if PHISHING_FINDING in result.threats or KEYWORD_FINDING in result.threats:
        return True
    real = [t for t in result.threats if t not in (INSECURE_FINDING, MALFORMED_URL)]
    return bool(real) and result.threat_level.is_severe
