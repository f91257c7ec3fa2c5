"""Shared fixtures for ThreatGuard tests."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from threatguard.discovery import AppTarget
from threatguard.models import ThreatCategory, ThreatDraft, ThreatLevel


@pytest.fixture
def progress_log():
    """Collect ScanProgress events passed to a progress callback."""
    events = []

    def _record(progress):
        events.append(progress)

    _record.events = events
    return _record


@pytest.fixture
def small_catalog() -> list[AppTarget]:
    return [
        AppTarget("WhatsApp", "https://whatsapp.com", "whatsapp://"),
        AppTarget("Banking App", "http://verify-paypal-secure.phishing-site.com/login", "paypal://"),
        AppTarget("Weather", "http://weather.example.com", "weather://"),
    ]


@pytest.fixture
def make_draft():
    def _create(level=ThreatLevel.HIGH, blocked=False, title="Test threat",
                category=ThreatCategory.MALWARE, source="test.exe") -> ThreatDraft:
        return ThreatDraft(
            category=category,
            level=level,
            title=title,
            description="Test description",
            source=source,
            blocked=blocked,
        )

    return _create


@pytest.fixture
def clock():
    """Successive, strictly increasing UTC timestamps."""
    start = datetime(2025, 1, 1, tzinfo=timezone.utc)
    ticks = iter(range(10_000))

    def _next() -> datetime:
        return start + timedelta(seconds=next(ticks))

    return _next


@pytest.fixture
def tmp_dir_with_files(tmp_path: Path):
    """Create a temp directory holding empty files with the given names."""

    def _create(names: list[str]) -> Path:
        for name in names:
            p = tmp_path / name
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text("")
        return tmp_path

    return _create
