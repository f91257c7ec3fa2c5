"""Tests for the URL classifier."""

import pytest

from threatguard.models import ThreatCategory, ThreatLevel
from threatguard.scanners.url import (
    HOMOGRAPH_FINDING,
    INSECURE_FINDING,
    IP_HOST_FINDING,
    KEYWORD_FINDING,
    PHISHING_FINDING,
    SHORTENER_FINDING,
    has_actionable_threat,
    scan_url,
    threat_category_for,
)


class TestSafeUrls:
    def test_plain_https(self):
        result = scan_url("https://example.com")
        assert result.is_safe
        assert result.threat_level == ThreatLevel.SAFE
        assert result.threats == ["No threats detected"]
        assert "appears to be safe" in result.recommendation

    def test_plain_http_is_not_flagged_on_its_own(self):
        result = scan_url("http://example.com/about")
        assert result.is_safe
        assert result.threats == ["No threats detected"]

    def test_ip_host_alone_is_context_only(self):
        result = scan_url("http://192.168.1.10/status")
        assert result.is_safe

    def test_shortener_alone_is_context_only(self):
        result = scan_url("https://bit.ly/3abcDEF")
        assert result.is_safe

    def test_internationalized_domain_alone_is_not_flagged(self):
        result = scan_url("https://münchen.de")
        assert result.is_safe
        assert result.threat_level == ThreatLevel.SAFE


class TestMalformedUrls:
    @pytest.mark.parametrize("url", ["not a url", "http://", "://missing-scheme.com", "http://[::1", ""])
    def test_malformed_is_low(self, url):
        result = scan_url(url)
        assert not result.is_safe
        assert result.threat_level == ThreatLevel.LOW
        assert result.threats == ["Invalid or malformed URL"]
        assert any("malformed" in t for t in result.threats)
        assert "Exercise caution" in result.recommendation


class TestPhishing:
    @pytest.mark.parametrize("url", [
        "https://apple-id-locked-verify.scam.net/account",
        "https://secure.example.com/urgent-action-required",
        "https://lottery-winner.example.org/claim",
        "https://irs-tax-refund-claim.example.com",
        "https://netflix-payment-failed.example.com/update",
    ])
    def test_phishing_patterns_are_critical(self, url):
        result = scan_url(url)
        assert not result.is_safe
        assert result.threat_level == ThreatLevel.CRITICAL
        assert any("phishing" in t for t in result.threats)
        assert "DO NOT VISIT" in result.recommendation

    def test_case_insensitive(self):
        result = scan_url("https://PAYPAL.example.com/VERIFY")
        assert result.threat_level == ThreatLevel.CRITICAL

    def test_insecure_note_added_for_http_phishing(self):
        result = scan_url("http://verify-paypal-secure.phishing-site.com/login")
        assert result.threats[0] == PHISHING_FINDING
        assert INSECURE_FINDING in result.threats
        assert result.threat_level == ThreatLevel.CRITICAL

    def test_single_phishing_finding_even_if_many_patterns_match(self):
        result = scan_url("https://paypal-verify.example.com/account-suspended/unusual-activity")
        assert result.threats.count(PHISHING_FINDING) == 1


class TestKeywords:
    def test_keyword_is_high(self):
        result = scan_url("https://download-crack-keygen.xyz/file")
        assert result.threat_level == ThreatLevel.HIGH
        assert result.threats == [KEYWORD_FINDING]

    def test_keyword_does_not_downgrade_critical(self):
        result = scan_url("http://paypal-verify.example.com/malware")
        assert result.threat_level == ThreatLevel.CRITICAL
        assert PHISHING_FINDING in result.threats
        assert KEYWORD_FINDING in result.threats

    def test_shortener_substring_is_not_confused(self):
        result = scan_url("https://www.reddit.com/r/hacking")
        assert result.threat_level == ThreatLevel.HIGH
        assert SHORTENER_FINDING not in result.threats


class TestCorroboration:
    def test_ip_host_reported_with_keyword(self):
        result = scan_url("http://192.168.1.10/malware.exe")
        assert result.threat_level == ThreatLevel.HIGH
        assert IP_HOST_FINDING in result.threats
        assert INSECURE_FINDING in result.threats

    def test_shortener_reported_with_phishing(self):
        result = scan_url("https://bit.ly/free-prize-now")
        assert result.threat_level == ThreatLevel.CRITICAL
        assert SHORTENER_FINDING in result.threats

    def test_non_ascii_host_reported_with_keyword(self):
        result = scan_url("https://exаmple.com/trojan")
        assert result.threat_level == ThreatLevel.HIGH
        assert HOMOGRAPH_FINDING in result.threats

    def test_punycode_host_reported_with_keyword(self):
        result = scan_url("https://xn--pple-43d.com/hack")
        assert HOMOGRAPH_FINDING in result.threats


class TestHelpers:
    def test_idempotent(self):
        url = "http://verify-paypal-secure.phishing-site.com/login"
        assert scan_url(url) == scan_url(url)

    def test_category_for_phishing(self):
        assert threat_category_for(scan_url("https://apple-id-locked.example.com")) == ThreatCategory.PHISHING

    def test_category_for_keyword(self):
        assert threat_category_for(scan_url("https://example.com/keygen")) == ThreatCategory.MALWARE

    def test_category_default(self):
        assert threat_category_for(scan_url("not a url")) == ThreatCategory.MALICIOUS_URL

    def test_actionable(self):
        assert has_actionable_threat(scan_url("https://example.com/trojan"))
        assert not has_actionable_threat(scan_url("http://example.com"))
        assert not has_actionable_threat(scan_url("not a url"))

    def test_to_dict(self):
        data = scan_url("https://example.com").to_dict()
        assert data["threat_level"] == "safe"
        assert data["is_safe"] is True
