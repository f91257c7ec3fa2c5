"""Report generation - rich terminal tables and JSON output."""

import json
from datetime import datetime, timezone

from rich.console import Console
from rich.table import Table

from threatguard.models import (
    ScanResult,
    SecurityStatus,
    ThreatDraft,
    ThreatLevel,
    ThreatRecord,
    URLScanResult,
)

LEVEL_COLORS = {
    ThreatLevel.CRITICAL: "bold red",
    ThreatLevel.HIGH: "red",
    ThreatLevel.MEDIUM: "yellow",
    ThreatLevel.LOW: "cyan",
    ThreatLevel.SAFE: "green",
}


def _level_cell(level: ThreatLevel) -> str:
    return f"[{LEVEL_COLORS[level]}]{level.label}[/]"


def filter_threats(threats, min_level: ThreatLevel = ThreatLevel.SAFE) -> list:
    kept = [t for t in threats if t.level >= min_level]
    kept.sort(key=lambda t: t.level.rank, reverse=True)
    return kept


def render_url_result(result: URLScanResult, console: Console | None = None) -> None:
    console = console or Console()
    color = LEVEL_COLORS[result.threat_level]
    verdict = "SAFE" if result.is_safe else "UNSAFE"
    console.print(f"\n[bold]{result.url}[/]")
    console.print(f"Verdict: [{color}]{verdict}[/] | Level: {_level_cell(result.threat_level)}")
    for finding in result.threats:
        console.print(f"  - {finding}")
    console.print(f"[italic]{result.recommendation}[/]\n")


def render_threat_table(
    threats: list[ThreatDraft | ThreatRecord],
    min_level: ThreatLevel = ThreatLevel.SAFE,
    title: str = "ThreatGuard Findings",
    console: Console | None = None,
) -> None:
    console = console or Console()
    shown = filter_threats(threats, min_level)

    if not shown:
        console.print("\n[bold green]No threats above the severity threshold.[/]\n")
        return

    table = Table(title=title, show_lines=True)
    if isinstance(shown[0], ThreatRecord):
        table.add_column("ID", width=24)
    table.add_column("Level", width=12)
    table.add_column("Category", width=16)
    table.add_column("Title", width=30)
    table.add_column("Source", width=40)
    table.add_column("CVE", width=16)
    table.add_column("Blocked", width=8)

    for t in shown:
        row = [
            _level_cell(t.level),
            t.category.value,
            t.title,
            t.source,
            t.cve.cve_id if t.cve else "",
            "yes" if t.blocked else "no",
        ]
        if isinstance(t, ThreatRecord):
            row.insert(0, t.id)
        table.add_row(*row)

    console.print()
    console.print(table)


def render_scan_summary(
    result: ScanResult,
    min_level: ThreatLevel = ThreatLevel.SAFE,
    console: Console | None = None,
) -> None:
    console = console or Console()
    render_threat_table(result.threats_found, min_level, title="Scan Findings", console=console)

    counts = {lv: 0 for lv in ThreatLevel}
    for t in result.threats_found:
        counts[t.level] += 1
    parts = [
        f"[{LEVEL_COLORS[lv]}]{lv.label}: {counts[lv]}[/]"
        for lv in reversed(list(ThreatLevel))
        if counts[lv] > 0
    ]
    console.print(
        f"\n[bold]Summary:[/] {len(result.threats_found)} threat(s) | "
        f"{' | '.join(parts) if parts else 'Clean'}"
    )
    console.print(f"Items scanned: {result.items_scanned} | Duration: {result.scan_duration / 1000:.2f}s\n")


def render_status(status: SecurityStatus, console: Console | None = None) -> None:
    console = console or Console()
    last = status.last_threat_at.strftime("%Y-%m-%d %H:%M") if status.last_threat_at else "never"
    console.print(f"\n[bold]Security score:[/] {status.score}/100 ({_level_cell(status.overall)})")
    console.print(f"Active threats: {status.active_threats} | Blocked: {status.threats_blocked}")
    console.print(f"Last threat: {last}\n")


def render_json(result: ScanResult, min_level: ThreatLevel = ThreatLevel.SAFE) -> str:
    shown = filter_threats(result.threats_found, min_level)
    by_level = {lv.value: 0 for lv in ThreatLevel}
    for t in shown:
        by_level[t.level.value] += 1

    output = {
        "$schema": "threatguard-v1",
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "result": {**result.to_dict(), "threats_found": [t.to_dict() for t in shown]},
        "summary": {
            "total": len(shown),
            "by_level": by_level,
        },
    }
    return json.dumps(output, indent=2)
