"""Host-side threat store: finalizes drafts, applies user actions, persists.

The store is the only place threat records change. Callers that run several
scans concurrently must serialize calls to :meth:`ThreatStore.merge_scan_result`.
"""

import json
import logging
from datetime import datetime
from pathlib import Path

from threatguard.models import (
    LogAction,
    ScanResult,
    SecurityLogEntry,
    SecurityStatus,
    ThreatDraft,
    ThreatRecord,
)
from threatguard.scoring import compute_security_status

logger = logging.getLogger(__name__)

STORE_SCHEMA = "threatguard-store-v1"


class ThreatStore:
    def __init__(
        self,
        records: list[ThreatRecord] | None = None,
        log: list[SecurityLogEntry] | None = None,
        path: str | Path | None = None,
    ):
        self.records: list[ThreatRecord] = list(records or [])
        self.log: list[SecurityLogEntry] = list(log or [])
        self.path = Path(path) if path else None

    def __len__(self) -> int:
        return len(self.records)

    def add(self, draft: ThreatDraft, now: datetime | None = None) -> ThreatRecord:
        """Finalize a draft and store it, newest first."""
        record = ThreatRecord.from_draft(draft, now)
        self.records.insert(0, record)
        self._record(LogAction.DETECTED, record)
        return record

    def merge_scan_result(self, result: ScanResult) -> list[ThreatRecord]:
        return [self.add(draft) for draft in result.threats_found]

    def get(self, threat_id: str) -> ThreatRecord:
        for record in self.records:
            if record.id == threat_id:
                return record
        raise KeyError(f"Unknown threat id: {threat_id}")

    def _replace(self, threat_id: str, blocked: bool) -> ThreatRecord:
        current = self.get(threat_id)
        updated = current.with_blocked(blocked)
        self.records[self.records.index(current)] = updated
        return updated

    def block(self, threat_id: str) -> ThreatRecord:
        record = self._replace(threat_id, True)
        self._record(LogAction.BLOCKED, record)
        return record

    def allow(self, threat_id: str) -> ThreatRecord:
        """User chose to continue anyway: the threat stays active."""
        record = self._replace(threat_id, False)
        self._record(LogAction.ALLOWED, record)
        return record

    def remove(self, threat_id: str) -> ThreatRecord:
        record = self.get(threat_id)
        self.records.remove(record)
        self._record(LogAction.DELETED, record)
        return record

    def clear(self) -> int:
        count = len(self.records)
        self.records.clear()
        return count

    def status(self) -> SecurityStatus:
        return compute_security_status(self.records)

    def _record(self, action: LogAction, record: ThreatRecord) -> None:
        self.log.append(SecurityLogEntry(
            action=action,
            threat_id=record.id,
            source=record.source,
            level=record.level,
            description=record.title,
        ))
        logger.debug("threat %s %s", record.id, action.value)

    def to_dict(self) -> dict:
        return {
            "$schema": STORE_SCHEMA,
            "threats": [r.to_dict() for r in self.records],
            "log": [e.to_dict() for e in self.log],
        }

    def save(self, path: str | Path | None = None) -> Path:
        target = Path(path) if path else self.path
        if target is None:
            raise ValueError("No store path configured")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(self.to_dict(), indent=2))
        return target

    @classmethod
    def load(cls, path: str | Path) -> "ThreatStore":
        """Load a store file. A missing file yields an empty store."""
        path = Path(path)
        if not path.exists():
            return cls(path=path)

        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid threat store {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError(f"Threat store {path} must be a JSON object, got {type(data).__name__}")

        try:
            records = [ThreatRecord.from_dict(t) for t in data.get("threats", [])]
            log = [SecurityLogEntry.from_dict(e) for e in data.get("log", [])]
        except (KeyError, ValueError, TypeError, AttributeError) as exc:
            raise ValueError(f"Invalid threat store {path}: {exc}") from exc

        return cls(records=records, log=log, path=path)
