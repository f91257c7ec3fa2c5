"""Click-based CLI interface for ThreatGuard."""

import asyncio
import json
import logging
import sys
import time
from pathlib import Path

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, TextColumn

from threatguard.config import Config, load_config
from threatguard.cve import find_cve_for_threat
from threatguard.discovery import SchemeHandlerProber, StaticProber
from threatguard.formatters.sarif import render_sarif
from threatguard.models import FileScanResult, ScanProgress, ScanResult, ThreatLevel
from threatguard.monitor import ClipboardWatcher, DirectoryWatcher, read_system_clipboard, scan_directories
from threatguard.report import (
    render_json,
    render_scan_summary,
    render_status,
    render_threat_table,
    render_url_result,
)
from threatguard.scanners.apps import blocked_url_threat
from threatguard.scanners.base import BaseScanSession
from threatguard.scanners.files import scan_app_installation, scan_file
from threatguard.scanners.session import SESSIONS
from threatguard.scanners.url import scan_url
from threatguard.store import ThreatStore

LEVEL_CHOICES = [lv.value for lv in ThreatLevel]


def _config(ctx: click.Context) -> Config:
    return ctx.obj["config"]


def _load_store(ctx: click.Context) -> ThreatStore:
    try:
        return ThreatStore.load(ctx.obj["store_path"])
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc


def _min_level(ctx: click.Context, min_severity: str | None) -> ThreatLevel:
    return ThreatLevel(min_severity) if min_severity else _config(ctx).min_level


def _build_prober(config: Config):
    if config.probe == "system":
        return SchemeHandlerProber(timeout=config.discovery_timeout)
    return StaticProber(config.available_apps)


def _exit_if_threats(threats, min_level: ThreatLevel) -> None:
    if any(t.level >= min_level for t in threats):
        sys.exit(1)


def _save_drafts(ctx: click.Context, drafts) -> None:
    if not drafts:
        return
    store = _load_store(ctx)
    for draft in drafts:
        record = store.add(draft)
        click.echo(f"Recorded threat {record.id}")
    store.save()


def _emit_file_result(label: str, result: FileScanResult, fmt: str, min_level: ThreatLevel) -> None:
    if fmt == "json":
        batch = ScanResult(threats_found=[result.threat] if result.threat else [], items_scanned=1)
        click.echo(render_json(batch, min_level))
    elif result.threat is None:
        Console().print(f"\n[bold green]{label}: no threats detected.[/]\n")
    else:
        render_threat_table([result.threat], min_level)


@click.group()
@click.version_option(package_name="threatguard")
@click.option("--config", "config_path", type=click.Path(), default=None,
              help="Path to .threatguard.yml config file.")
@click.option("--store", "store_path", type=click.Path(), default=None,
              help="Threat store JSON file (overrides store_path from config).")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v info, -vv debug).")
@click.pass_context
def cli(ctx, config_path, store_path, verbose):
    """ThreatGuard - heuristic URL, file and app threat detection."""
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_config(config_path=config_path, project_root=str(Path.cwd()))
    except (FileNotFoundError, ValueError) as exc:
        raise click.UsageError(str(exc)) from exc

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["store_path"] = Path(store_path) if store_path else config.resolved_store_path


@cli.command("scan-url")
@click.argument("url")
@click.option("--format", "fmt", type=click.Choice(["table", "json"]), default="table")
@click.option("--exit-code", is_flag=True, help="Exit with code 1 if the URL is unsafe.")
@click.option("--save", is_flag=True, help="Record high/critical verdicts in the threat store.")
@click.pass_context
def scan_url_cmd(ctx, url, fmt, exit_code, save):
    """Classify a single URL."""
    result = scan_url(url)

    if fmt == "json":
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        render_url_result(result)

    if save:
        threat = blocked_url_threat(result, source="CLI")
        _save_drafts(ctx, [threat] if threat else [])

    if exit_code and not result.is_safe:
        sys.exit(1)


@cli.command("scan-file")
@click.argument("name")
@click.option("--path", "file_path", type=str, default=None, help="Full path of the file.")
@click.option("--format", "fmt", type=click.Choice(["table", "json"]), default="table")
@click.option("--severity", "min_severity", type=click.Choice(LEVEL_CHOICES), default=None)
@click.option("--exit-code", is_flag=True)
@click.option("--save", is_flag=True)
@click.pass_context
def scan_file_cmd(ctx, name, file_path, fmt, min_severity, exit_code, save):
    """Classify a file or installer package by name and path."""
    min_level = _min_level(ctx, min_severity)
    result = scan_file(name, file_path, _config(ctx).known_malicious_packages)
    _emit_file_result(name, result, fmt, min_level)

    drafts = [result.threat] if result.threat else []
    if save:
        _save_drafts(ctx, drafts)
    if exit_code:
        _exit_if_threats(drafts, min_level)


@cli.command("scan-app")
@click.argument("name")
@click.option("--package", "package_name", type=str, default=None, help="Package identifier.")
@click.option("--format", "fmt", type=click.Choice(["table", "json"]), default="table")
@click.option("--severity", "min_severity", type=click.Choice(LEVEL_CHOICES), default=None)
@click.option("--exit-code", is_flag=True)
@click.option("--save", is_flag=True)
@click.pass_context
def scan_app_cmd(ctx, name, package_name, fmt, min_severity, exit_code, save):
    """Classify an app by display name and package identifier."""
    min_level = _min_level(ctx, min_severity)
    result = scan_app_installation(name, package_name, _config(ctx).known_malicious_packages)
    _emit_file_result(name, result, fmt, min_level)

    drafts = [result.threat] if result.threat else []
    if save:
        _save_drafts(ctx, drafts)
    if exit_code:
        _exit_if_threats(drafts, min_level)


def _run_session(ctx, session_cls: type[BaseScanSession], fmt, min_severity, output, exit_code, save):
    config = _config(ctx)
    min_level = _min_level(ctx, min_severity)
    session = session_cls(
        prober=_build_prober(config),
        item_delay=config.item_delay,
        discovery_timeout=config.discovery_timeout,
        known_packages=config.known_malicious_packages,
    )

    if fmt == "table":
        with Progress(
            TextColumn("{task.description}"),
            BarColumn(),
            TextColumn("{task.percentage:>3.0f}%"),
            TextColumn("{task.fields[item]}"),
        ) as progress:
            task = progress.add_task(f"{session.name} scan", total=100, item="")

            def on_progress(p: ScanProgress) -> None:
                progress.update(task, completed=p.progress, description=p.status, item=p.current_item)

            result = asyncio.run(session.run(on_progress))
    else:
        result = asyncio.run(session.run(lambda p: None))

    if fmt == "sarif":
        text_out = render_sarif(result.threats_found, min_level)
    elif fmt == "json":
        text_out = render_json(result, min_level)
    else:
        text_out = None
        render_scan_summary(result, min_level)

    if text_out is not None:
        if output:
            Path(output).write_text(text_out)
            click.echo(f"Report written to {output}")
        else:
            click.echo(text_out)
    elif output:
        Path(output).write_text(render_json(result, min_level))
        click.echo(f"JSON report also written to {output}")

    if save:
        _save_drafts(ctx, result.threats_found)
    if exit_code:
        _exit_if_threats(result.threats_found, min_level)


_session_options = [
    click.option("--format", "fmt", type=click.Choice(["table", "json", "sarif"]), default="table"),
    click.option("--severity", "min_severity", type=click.Choice(LEVEL_CHOICES), default=None),
    click.option("--output", "-o", type=str, default=None, help="Write report to file."),
    click.option("--exit-code", is_flag=True, help="Exit with code 1 if threats >= severity."),
    click.option("--save", is_flag=True, help="Merge threats into the threat store."),
]


def session_options(func):
    for option in reversed(_session_options):
        func = option(func)
    return func


@cli.command("quick-scan")
@session_options
@click.pass_context
def quick_scan(ctx, fmt, min_severity, output, exit_code, save):
    """Scan the apps available on this host."""
    _run_session(ctx, SESSIONS["quick"], fmt, min_severity, output, exit_code, save)


@cli.command("full-scan")
@session_options
@click.pass_context
def full_scan(ctx, fmt, min_severity, output, exit_code, save):
    """Scan available apps and system areas."""
    _run_session(ctx, SESSIONS["full"], fmt, min_severity, output, exit_code, save)


@cli.command("scan-dir")
@click.argument("paths", nargs=-1, type=click.Path())
@click.option("--recursive", "-r", is_flag=True, help="Descend into subdirectories.")
@click.option("--severity", "min_severity", type=click.Choice(LEVEL_CHOICES), default=None)
@click.option("--exit-code", is_flag=True)
@click.option("--save", is_flag=True)
@click.pass_context
def scan_dir(ctx, paths, recursive, min_severity, exit_code, save):
    """Classify file names in directories (defaults to scan_directories from config)."""
    config = _config(ctx)
    min_level = _min_level(ctx, min_severity)
    directories = list(paths) or config.scan_directories
    if not directories:
        raise click.UsageError("No directories given and none configured in scan_directories.")

    scanned = scan_directories(directories, recursive, config.known_malicious_packages)
    drafts = [f.result.threat for f in scanned if f.result.threat is not None]
    render_threat_table(drafts, min_level, title="File Findings")
    click.echo(f"Files scanned: {len(scanned)} | Threats: {len(drafts)}")

    if save:
        _save_drafts(ctx, drafts)
    if exit_code:
        _exit_if_threats(drafts, min_level)


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path())
@click.option("--recursive", "-r", is_flag=True, help="Descend into subdirectories.")
@click.option("--interval", type=float, default=5.0, show_default=True, help="Seconds between checks.")
@click.option("--iterations", type=int, default=0, help="Stop after N checks (0 runs until interrupted).")
@click.option("--clipboard/--no-clipboard", default=True, help="Watch the clipboard for unsafe links.")
@click.pass_context
def watch(ctx, paths, recursive, interval, iterations, clipboard):
    """Monitor the clipboard and directories, recording new threats in the store."""
    config = _config(ctx)
    directories = list(paths) or config.scan_directories
    clip = ClipboardWatcher(read_system_clipboard) if clipboard else None
    files = DirectoryWatcher(directories, recursive, config.known_malicious_packages) if directories else None
    if clip is None and files is None:
        raise click.UsageError("Nothing to watch: clipboard disabled and no directories given.")

    count = 0
    try:
        while True:
            drafts = []
            if clip is not None:
                threat = clip.check_for_threat()
                if threat is not None:
                    drafts.append(threat)
            if files is not None:
                drafts.extend(f.result.threat for f in files.check() if f.result.threat is not None)

            for draft in drafts:
                click.echo(f"[{draft.level.value}] {draft.title}: {draft.source}")
            _save_drafts(ctx, drafts)

            count += 1
            if iterations and count >= iterations:
                break
            time.sleep(interval)
    except KeyboardInterrupt:
        click.echo("Stopped.")


@cli.command()
@click.argument("category")
@click.argument("description")
@click.option("--source", type=str, default=None)
def cve(category, description, source):
    """Look up the vulnerability record for a threat description."""
    record = find_cve_for_threat(category, description, source)
    if record is None:
        click.echo("No matching CVE.")
        return
    click.echo(json.dumps(record.to_dict(), indent=2))


@cli.command()
@click.option("--format", "fmt", type=click.Choice(["table", "json"]), default="table")
@click.pass_context
def status(ctx, fmt):
    """Show the security score derived from stored threats."""
    current = _load_store(ctx).status()
    if fmt == "json":
        click.echo(json.dumps(current.to_dict(), indent=2))
    else:
        render_status(current)


@cli.command()
@click.option("--severity", "min_severity", type=click.Choice(LEVEL_CHOICES), default=None)
@click.pass_context
def threats(ctx, min_severity):
    """List stored threats."""
    store = _load_store(ctx)
    render_threat_table(store.records, _min_level(ctx, min_severity), title="Stored Threats")


ACTION_LABELS = {"block": "blocked", "allow": "allowed", "remove": "deleted"}


def _apply(ctx, action: str, threat_id: str) -> None:
    store = _load_store(ctx)
    try:
        record = getattr(store, action)(threat_id)
    except KeyError as exc:
        raise click.ClickException(f"Unknown threat id: {threat_id}") from exc
    store.save()
    click.echo(f"{record.title} ({record.id}): {ACTION_LABELS[action]}")


@cli.command()
@click.argument("threat_id")
@click.pass_context
def block(ctx, threat_id):
    """Mark a stored threat as blocked."""
    _apply(ctx, "block", threat_id)


@cli.command()
@click.argument("threat_id")
@click.pass_context
def allow(ctx, threat_id):
    """Mark a stored threat as allowed (it stays active)."""
    _apply(ctx, "allow", threat_id)


@cli.command()
@click.argument("threat_id")
@click.pass_context
def delete(ctx, threat_id):
    """Delete a stored threat."""
    _apply(ctx, "remove", threat_id)


@cli.command()
@click.confirmation_option(prompt="Delete all stored threats?")
@click.pass_context
def clear(ctx):
    """Delete all stored threats."""
    store = _load_store(ctx)
    count = store.clear()
    store.save()
    click.echo(f"Cleared {count} threat(s).")
