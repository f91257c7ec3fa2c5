"""SARIF v2.1.0 output formatter for ThreatGuard threats."""

import json
import re
from datetime import datetime, timezone

from threatguard.models import ThreatDraft, ThreatLevel, ThreatRecord

SARIF_SCHEMA = "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/main/sarif-2.1/schema/sarif-schema-2.1.0.json"

LEVEL_TO_SARIF = {
    ThreatLevel.CRITICAL: "error",
    ThreatLevel.HIGH: "error",
    ThreatLevel.MEDIUM: "warning",
    ThreatLevel.LOW: "note",
    ThreatLevel.SAFE: "none",
}

CVE_TAXONOMY = {
    "name": "CVE",
    "organization": "MITRE",
    "shortDescription": {"text": "Common Vulnerabilities and Exposures"},
    "informationUri": "https://cve.mitre.org/",
}


def _rule_id(threat: ThreatDraft | ThreatRecord) -> str:
    """Generate a stable rule ID from a threat."""
    slug = re.sub(r"[^a-z0-9]+", "-", threat.title.lower()).strip("-")
    return f"{threat.category.value}/{slug}"


def _location(source: str) -> dict:
    return {
        "physicalLocation": {
            "artifactLocation": {"uri": source},
        }
    }


def render_sarif(
    threats: list[ThreatDraft | ThreatRecord],
    min_level: ThreatLevel = ThreatLevel.SAFE,
) -> str:
    """Render threats as SARIF v2.1.0 JSON."""
    shown = [t for t in threats if t.level >= min_level]

    rules_map: dict[str, dict] = {}
    for t in shown:
        rule_id = _rule_id(t)
        if rule_id in rules_map:
            continue
        rule = {
            "id": rule_id,
            "shortDescription": {"text": t.title},
            "defaultConfiguration": {"level": LEVEL_TO_SARIF[t.level]},
            "properties": {"tags": ["security", t.category.value]},
        }
        if t.cve:
            rule["relationships"] = [
                {
                    "target": {"id": t.cve.cve_id, "toolComponent": {"name": "CVE"}},
                    "kinds": ["relevant"],
                }
            ]
        rules_map[rule_id] = rule

    sarif_results = []
    for t in shown:
        sarif_result = {
            "ruleId": _rule_id(t),
            "level": LEVEL_TO_SARIF[t.level],
            "message": {"text": t.description},
            "locations": [_location(t.source)],
            "properties": {"blocked": t.blocked, "threatLevel": t.level.value},
        }
        if t.cve:
            sarif_result["taxa"] = [{"id": t.cve.cve_id, "toolComponent": {"name": "CVE"}}]
        sarif_results.append(sarif_result)

    cve_taxa = []
    seen = set()
    for t in shown:
        if t.cve and t.cve.cve_id not in seen:
            seen.add(t.cve.cve_id)
            cve_taxa.append({
                "id": t.cve.cve_id,
                "shortDescription": {"text": t.cve.description},
            })

    sarif = {
        "$schema": SARIF_SCHEMA,
        "version": "2.1.0",
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": "ThreatGuard",
                        "version": "0.1.0",
                        "rules": list(rules_map.values()),
                    }
                },
                "results": sarif_results,
                "taxonomies": [{**CVE_TAXONOMY, "taxa": cve_taxa}] if cve_taxa else [],
                "invocations": [
                    {
                        "executionSuccessful": True,
                        "endTimeUtc": datetime.now(timezone.utc).isoformat(),
                    }
                ],
            }
        ],
    }

    return json.dumps(sarif, indent=2)
