"""Security score and status derived from threat history."""

from collections.abc import Iterable

from threatguard.models import SecurityStatus, ThreatLevel, ThreatRecord

ACTIVE_THREAT_PENALTY = 15

LEVEL_BANDS: list[tuple[int, ThreatLevel]] = [
    (90, ThreatLevel.SAFE),
    (70, ThreatLevel.LOW),
    (50, ThreatLevel.MEDIUM),
    (30, ThreatLevel.HIGH),
]


def calculate_security_score(threats_blocked: int, active_threats: int) -> int:
    """Score from 0 to 100. Blocked threats are remediated and cost nothing."""
    score = 100 - active_threats * ACTIVE_THREAT_PENALTY
    return max(0, min(100, score))


def get_security_level(score: int | float) -> ThreatLevel:
    for threshold, level in LEVEL_BANDS:
        if score >= threshold:
            return level
    return ThreatLevel.CRITICAL


def compute_security_status(records: Iterable[ThreatRecord]) -> SecurityStatus:
    records = list(records)
    blocked = sum(1 for r in records if r.blocked)
    active = len(records) - blocked
    score = calculate_security_score(blocked, active)
    last = max((r.detected_at for r in records), default=None)
    return SecurityStatus(
        overall=get_security_level(score),
        score=score,
        last_threat_at=last,
        threats_blocked=blocked,
        active_threats=active,
    )
