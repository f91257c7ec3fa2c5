"""Tests for quick and full scan sessions."""

import asyncio

import pytest

from threatguard.discovery import StaticProber
from threatguard.models import ThreatCategory, ThreatLevel
from threatguard.scanners.session import (
    SYSTEM_AREAS,
    FullScanSession,
    QuickScanSession,
    perform_full_scan,
    perform_quick_scan,
)


class _NothingProber:
    async def can_open(self, target):
        return False


class TestQuickScan:
    def test_default_catalog(self, progress_log):
        result = asyncio.run(perform_quick_scan(progress_log))
        assert result.items_scanned == 18
        assert len(result.threats_found) == 1

        threat = result.threats_found[0]
        assert threat.title == "Threat in Banking App"
        assert threat.level == ThreatLevel.CRITICAL
        assert threat.category == ThreatCategory.PHISHING
        assert threat.cve.cve_id == "CVE-2024-34567"

    def test_progress_events(self, progress_log):
        asyncio.run(perform_quick_scan(progress_log))
        events = progress_log.events
        assert len(events) == 19

        first = events[0]
        assert first.progress == 5
        assert first.current_item == "Scanning device..."
        assert first.total_items == 0

        assert [e.items_scanned for e in events[1:]] == list(range(1, 19))
        assert all(e.total_items == 18 for e in events[1:])
        assert events[-1].progress == 100

    def test_progress_monotonic(self, progress_log, small_catalog):
        asyncio.run(perform_quick_scan(progress_log, catalog=small_catalog))
        values = [e.progress for e in progress_log.events]
        assert values == sorted(values)
        assert all(0 <= v <= 100 for v in values)

    def test_small_catalog(self, progress_log, small_catalog):
        result = asyncio.run(perform_quick_scan(progress_log, catalog=small_catalog))
        assert result.items_scanned == 3
        assert [t.title for t in result.threats_found] == ["Threat in Banking App"]
        assert [e.current_item for e in progress_log.events[1:]] == ["WhatsApp", "Banking App", "Weather"]

    def test_fallback_targets(self, progress_log):
        result = asyncio.run(perform_quick_scan(progress_log, prober=_NothingProber()))
        assert result.items_scanned == 3
        assert result.threats_found == []
        assert [e.current_item for e in progress_log.events[1:]] == ["Web Browser", "Phone", "Mail"]

    def test_empty_catalog(self, progress_log):
        result = asyncio.run(perform_quick_scan(progress_log, catalog=[]))
        assert result.items_scanned == 0
        assert result.threats_found == []
        assert len(progress_log.events) == 1

    def test_known_packages_option(self, progress_log, small_catalog):
        result = asyncio.run(perform_quick_scan(
            progress_log, catalog=small_catalog, known_packages=["weather"],
        ))
        assert len(result.threats_found) == 2

    def test_discovered_subset(self, progress_log, small_catalog):
        session = QuickScanSession(prober=StaticProber(["whatsapp"]), catalog=small_catalog)
        result = asyncio.run(session.run(progress_log))
        assert result.items_scanned == 1
        assert result.threats_found == []

    def test_duration_recorded(self, progress_log, small_catalog):
        session = QuickScanSession(catalog=small_catalog, item_delay=0.01)
        result = asyncio.run(session.run(progress_log))
        assert result.scan_duration >= 20


class TestFullScan:
    def test_apps_then_system_areas(self, progress_log, small_catalog):
        result = asyncio.run(perform_full_scan(progress_log, catalog=small_catalog))
        assert result.items_scanned == 3 + len(SYSTEM_AREAS)
        assert len(result.threats_found) == 1

        names = [e.current_item for e in progress_log.events[1:]]
        assert names[:3] == ["WhatsApp", "Banking App", "Weather"]
        assert names[3:] == SYSTEM_AREAS

    def test_status_text(self, progress_log, small_catalog):
        asyncio.run(perform_full_scan(progress_log, catalog=small_catalog))
        events = progress_log.events
        assert events[1].status == "Deep scanning apps and recent activities..."
        assert events[-1].status == "Scanning system files and settings..."

    def test_system_areas_only(self, progress_log):
        result = asyncio.run(perform_full_scan(progress_log, catalog=[]))
        assert result.items_scanned == 10
        assert result.threats_found == []

        events = progress_log.events
        assert len(events) == 11
        assert events[0].progress == 3
        assert events[-1].progress == 100

    def test_default_catalog(self, progress_log):
        result = asyncio.run(FullScanSession().run(progress_log))
        assert result.items_scanned == 18 + 10
        assert len(result.threats_found) == 1


class TestSessionErrors:
    def test_scan_error_propagates(self, progress_log, small_catalog, monkeypatch):
        async def _boom(*args, **kwargs):
            raise RuntimeError("scanner failed")

        monkeypatch.setattr("threatguard.scanners.base.scan_installed_app", _boom)
        with pytest.raises(RuntimeError, match="scanner failed"):
            asyncio.run(perform_quick_scan(progress_log, catalog=small_catalog))

    def test_callback_error_propagates(self, small_catalog):
        def _bad_callback(progress):
            raise ValueError("ui gone")

        with pytest.raises(ValueError, match="ui gone"):
            asyncio.run(perform_quick_scan(_bad_callback, catalog=small_catalog))
