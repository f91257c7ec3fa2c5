"""Tests for the threat store."""

import json

import pytest

from threatguard.models import LogAction, ScanResult, ThreatLevel
from threatguard.store import STORE_SCHEMA, ThreatStore


class TestStoreActions:
    def test_add_newest_first(self, make_draft, clock):
        store = ThreatStore()
        older = store.add(make_draft(title="old"), clock())
        newer = store.add(make_draft(title="new"), clock())
        assert store.records == [newer, older]
        assert len(store) == 2

    def test_add_logs_detection(self, make_draft):
        store = ThreatStore()
        record = store.add(make_draft(source="evil.apk"))
        entry = store.log[-1]
        assert entry.action == LogAction.DETECTED
        assert entry.threat_id == record.id
        assert entry.source == "evil.apk"

    def test_merge_scan_result(self, make_draft):
        store = ThreatStore()
        result = ScanResult(threats_found=[make_draft(), make_draft()], items_scanned=4)
        merged = store.merge_scan_result(result)
        assert len(merged) == 2
        assert len(store) == 2

    def test_block_then_allow(self, make_draft):
        store = ThreatStore()
        record = store.add(make_draft(blocked=False))
        assert store.block(record.id).blocked is True
        assert store.get(record.id).blocked is True
        assert store.allow(record.id).blocked is False
        assert [e.action for e in store.log] == [LogAction.DETECTED, LogAction.BLOCKED, LogAction.ALLOWED]

    def test_block_keeps_other_fields(self, make_draft, clock):
        store = ThreatStore()
        record = store.add(make_draft(level=ThreatLevel.CRITICAL), clock())
        updated = store.block(record.id)
        assert updated.id == record.id
        assert updated.detected_at == record.detected_at
        assert updated.level == ThreatLevel.CRITICAL

    def test_remove(self, make_draft):
        store = ThreatStore()
        record = store.add(make_draft())
        store.remove(record.id)
        assert len(store) == 0
        assert store.log[-1].action == LogAction.DELETED

    def test_unknown_id(self):
        with pytest.raises(KeyError, match="Unknown threat id"):
            ThreatStore().block("missing")

    def test_clear(self, make_draft):
        store = ThreatStore()
        store.add(make_draft())
        store.add(make_draft())
        assert store.clear() == 2
        assert len(store) == 0

    def test_status(self, make_draft):
        store = ThreatStore()
        store.add(make_draft(blocked=True))
        store.add(make_draft(blocked=False))
        status = store.status()
        assert status.score == 85
        assert status.active_threats == 1
        assert status.threats_blocked == 1


class TestStorePersistence:
    def test_missing_file_is_empty(self, tmp_path):
        store = ThreatStore.load(tmp_path / "threats.json")
        assert len(store) == 0
        assert store.path == tmp_path / "threats.json"

    def test_round_trip(self, tmp_path, make_draft):
        path = tmp_path / "nested" / "threats.json"
        store = ThreatStore(path=path)
        record = store.add(make_draft(level=ThreatLevel.CRITICAL, blocked=True))
        store.save()

        data = json.loads(path.read_text())
        assert data["$schema"] == STORE_SCHEMA

        loaded = ThreatStore.load(path)
        assert loaded.records == [record]
        assert loaded.log[0].threat_id == record.id

    def test_save_without_path(self):
        with pytest.raises(ValueError, match="No store path"):
            ThreatStore().save()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "threats.json"
        path.write_text("{not json")
        with pytest.raises(ValueError, match="Invalid threat store"):
            ThreatStore.load(path)

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "threats.json"
        path.write_text("[]")
        with pytest.raises(ValueError, match="must be a JSON object"):
            ThreatStore.load(path)

    @pytest.mark.parametrize(
        "payload",
        [
            {"threats": [{"id": "1", "category": "nope"}]},
            {"threats": ["x"]},
            {"threats": "abc"},
            {"threats": [None]},
        ],
    )
    def test_bad_record(self, tmp_path, payload):
        path = tmp_path / "threats.json"
        path.write_text(json.dumps(payload))
        with pytest.raises(ValueError, match="Invalid threat store"):
            ThreatStore.load(path)
