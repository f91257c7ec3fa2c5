"""Data models for threat detections, scan sessions and security status."""

import secrets
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum


class ThreatLevel(Enum):
    SAFE = "safe"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return {
            ThreatLevel.SAFE: 0,
            ThreatLevel.LOW: 1,
            ThreatLevel.MEDIUM: 2,
            ThreatLevel.HIGH: 3,
            ThreatLevel.CRITICAL: 4,
        }[self]

    @property
    def label(self) -> str:
        return {
            ThreatLevel.SAFE: "Safe",
            ThreatLevel.LOW: "Low Risk",
            ThreatLevel.MEDIUM: "Medium Risk",
            ThreatLevel.HIGH: "High Risk",
            ThreatLevel.CRITICAL: "Critical",
        }[self]

    @property
    def is_severe(self) -> bool:
        return self.rank >= ThreatLevel.HIGH.rank

    def __ge__(self, other: "ThreatLevel") -> bool:
        return self.rank >= other.rank

    def __gt__(self, other: "ThreatLevel") -> bool:
        return self.rank > other.rank

    def __le__(self, other: "ThreatLevel") -> bool:
        return self.rank <= other.rank

    def __lt__(self, other: "ThreatLevel") -> bool:
        return self.rank < other.rank


def escalate(current: ThreatLevel, candidate: ThreatLevel) -> ThreatLevel:
    """Return the more severe of two levels."""
    return candidate if candidate > current else current


class ThreatCategory(Enum):
    PHISHING = "phishing"
    MALWARE = "malware"
    SUSPICIOUS_FILE = "suspicious_file"
    MALICIOUS_URL = "malicious_url"
    DATA_BREACH = "data_breach"
    UNSAFE_NETWORK = "unsafe_network"


class CVESeverity(Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


@dataclass(frozen=True)
class VulnerabilityRecord:
    cve_id: str
    severity: CVESeverity
    description: str
    cvss_score: float | None = None
    published_date: str | None = None
    affected_platforms: tuple[str, ...] = ()

    def summary(self) -> str:
        score = self.cvss_score if self.cvss_score is not None else "N/A"
        return f"{self.cve_id} ({self.severity.value}) - CVSS: {score}"

    def to_dict(self) -> dict:
        return {
            "cve_id": self.cve_id,
            "severity": self.severity.value,
            "description": self.description,
            "cvss_score": self.cvss_score,
            "published_date": self.published_date,
            "affected_platforms": list(self.affected_platforms),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "VulnerabilityRecord":
        return cls(
            cve_id=data["cve_id"],
            severity=CVESeverity(data["severity"]),
            description=data.get("description", ""),
            cvss_score=data.get("cvss_score"),
            published_date=data.get("published_date"),
            affected_platforms=tuple(data.get("affected_platforms", ())),
        )


@dataclass
class ThreatDraft:
    """A detection produced by a classifier, before the host stores it."""

    category: ThreatCategory
    level: ThreatLevel
    title: str
    description: str
    source: str
    blocked: bool
    cve: VulnerabilityRecord | None = None

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "level": self.level.value,
            "title": self.title,
            "description": self.description,
            "source": self.source,
            "blocked": self.blocked,
            "cve": self.cve.to_dict() if self.cve else None,
        }


def _new_threat_id(now: datetime) -> str:
    return f"{int(now.timestamp() * 1000)}-{secrets.token_hex(4)}"


@dataclass
class ThreatRecord:
    """A stored detection. Only ``blocked`` changes after creation."""

    id: str
    category: ThreatCategory
    level: ThreatLevel
    title: str
    description: str
    source: str
    blocked: bool
    detected_at: datetime
    cve: VulnerabilityRecord | None = None

    @classmethod
    def from_draft(cls, draft: ThreatDraft, now: datetime | None = None) -> "ThreatRecord":
        now = now or datetime.now(timezone.utc)
        return cls(
            id=_new_threat_id(now),
            category=draft.category,
            level=draft.level,
            title=draft.title,
            description=draft.description,
            source=draft.source,
            blocked=draft.blocked,
            detected_at=now,
            cve=draft.cve,
        )

    def with_blocked(self, blocked: bool) -> "ThreatRecord":
        return replace(self, blocked=blocked)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category.value,
            "level": self.level.value,
            "title": self.title,
            "description": self.description,
            "source": self.source,
            "blocked": self.blocked,
            "detected_at": self.detected_at.isoformat(),
            "cve": self.cve.to_dict() if self.cve else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ThreatRecord":
        cve = data.get("cve")
        return cls(
            id=data["id"],
            category=ThreatCategory(data["category"]),
            level=ThreatLevel(data["level"]),
            title=data["title"],
            description=data.get("description", ""),
            source=data.get("source", ""),
            blocked=bool(data.get("blocked", False)),
            detected_at=datetime.fromisoformat(data["detected_at"]),
            cve=VulnerabilityRecord.from_dict(cve) if cve else None,
        )


@dataclass
class URLScanResult:
    url: str
    is_safe: bool
    threat_level: ThreatLevel
    threats: list[str]
    recommendation: str

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "is_safe": self.is_safe,
            "threat_level": self.threat_level.value,
            "threats": list(self.threats),
            "recommendation": self.recommendation,
        }


@dataclass
class FileScanResult:
    is_safe: bool
    threat: ThreatDraft | None = None

    def to_dict(self) -> dict:
        return {
            "is_safe": self.is_safe,
            "threat": self.threat.to_dict() if self.threat else None,
        }


@dataclass(frozen=True)
class ScanProgress:
    status: str
    progress: int
    current_item: str
    items_scanned: int
    total_items: int


@dataclass
class ScanResult:
    threats_found: list[ThreatDraft] = field(default_factory=list)
    items_scanned: int = 0
    scan_duration: int = 0  # milliseconds
    scanned_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "threats_found": [t.to_dict() for t in self.threats_found],
            "items_scanned": self.items_scanned,
            "scan_duration": self.scan_duration,
            "scanned_at": self.scanned_at.isoformat(),
        }


@dataclass(frozen=True)
class SecurityStatus:
    overall: ThreatLevel
    score: int
    last_threat_at: datetime | None
    threats_blocked: int
    active_threats: int

    def to_dict(self) -> dict:
        return {
            "overall": self.overall.value,
            "score": self.score,
            "last_threat_at": self.last_threat_at.isoformat() if self.last_threat_at else None,
            "threats_blocked": self.threats_blocked,
            "active_threats": self.active_threats,
        }


class LogAction(Enum):
    DETECTED = "detected"
    BLOCKED = "blocked"
    ALLOWED = "allowed"
    DELETED = "deleted"


@dataclass(frozen=True)
class SecurityLogEntry:
    action: LogAction
    threat_id: str
    source: str
    level: ThreatLevel
    description: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "threat_id": self.threat_id,
            "source": self.source,
            "level": self.level.value,
            "description": self.description,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SecurityLogEntry":
        return cls(
            action=LogAction(data["action"]),
            threat_id=data["threat_id"],
            source=data.get("source", ""),
            level=ThreatLevel(data["level"]),
            description=data.get("description", ""),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )
