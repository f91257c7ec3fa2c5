"""Host helpers for clipboard and file system monitoring.

Permission problems are not errors here: an unreadable clipboard or
directory just means that detection path is unavailable.
"""

import logging
import os
import shutil
import subprocess
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from threatguard.models import FileScanResult, ThreatCategory, ThreatDraft, URLScanResult
from threatguard.scanners.files import scan_file
from threatguard.scanners.url import scan_url

logger = logging.getLogger(__name__)

SKIP_DIRS = {".git", "__pycache__", "node_modules", ".venv", "venv", ".tox", ".eggs"}

CLIPBOARD_TIMEOUT = 5

# first available command wins
CLIPBOARD_READERS = [
    ["pbpaste"],
    ["wl-paste", "--no-newline"],
    ["xclip", "-selection", "clipboard", "-o"],
    ["xsel", "--clipboard", "--output"],
]


def read_system_clipboard() -> str:
    """Return the desktop clipboard text.

    Raises ``OSError`` when no clipboard tool is installed or the tool fails.
    """
    for cmd in CLIPBOARD_READERS:
        if shutil.which(cmd[0]) is None:
            continue
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=CLIPBOARD_TIMEOUT)
        except subprocess.TimeoutExpired as exc:
            raise OSError(f"{cmd[0]} timed out") from exc
        if proc.returncode != 0:
            raise OSError(f"{cmd[0]} failed: {proc.stderr.strip()}")
        return proc.stdout
    raise OSError("No clipboard tool available")


@dataclass
class ScannedFile:
    name: str
    path: str
    size: int | None
    result: FileScanResult


def clipboard_threat(result: URLScanResult) -> ThreatDraft | None:
    """Draft for an unsafe URL found on the clipboard, or None when it is safe."""
    if result.is_safe:
        return None
    return ThreatDraft(
        category=ThreatCategory.MALICIOUS_URL,
        level=result.threat_level,
        title="Malicious URL Detected in Clipboard",
        description=f"{result.url} - {result.threats[0]}",
        source=result.url,
        blocked=True,
    )


class ClipboardWatcher:
    """Scans clipboard text that looks like a link, once per distinct value.

    ``reader`` returns the current clipboard text; it may raise
    ``PermissionError`` or ``OSError`` when access is denied.
    """

    def __init__(self, reader: Callable[[], str | None] = read_system_clipboard):
        self.reader = reader
        self.last_seen = ""
        self.urls_scanned = 0

    def check(self) -> URLScanResult | None:
        try:
            text = self.reader()
        except OSError as exc:
            logger.debug("clipboard unavailable: %s", exc)
            return None

        text = (text or "").strip()
        if not text or text == self.last_seen or "http" not in text:
            return None

        self.last_seen = text
        self.urls_scanned += 1
        result = scan_url(text)
        if not result.is_safe:
            logger.info("unsafe URL on clipboard (%s)", result.threat_level.value)
        return result

    def check_for_threat(self) -> ThreatDraft | None:
        result = self.check()
        return clipboard_threat(result) if result is not None else None


def _iter_files(root: Path, recursive: bool):
    if recursive:
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = [d for d in dirnames if d not in SKIP_DIRS]
            for fname in filenames:
                yield Path(dirpath) / fname
        return

    with os.scandir(root) as entries:
        for entry in entries:
            try:
                if entry.is_file():
                    yield Path(entry.path)
            except OSError:
                continue


def _is_accessible_dir(root: Path) -> bool:
    try:
        return root.is_dir()
    except OSError as exc:
        logger.debug("directory not accessible: %s (%s)", root, exc)
        return False


def scan_directories(
    directories: Iterable[str | Path],
    recursive: bool = False,
    known_packages: Iterable[str] | None = None,
) -> list[ScannedFile]:
    """Classify every file name under ``directories``.

    Missing, unreadable or permission-denied directories and entries are
    skipped without raising.
    """
    known = list(known_packages or [])
    scanned: list[ScannedFile] = []

    for directory in directories:
        root = Path(directory).expanduser()
        if not _is_accessible_dir(root):
            logger.debug("skipping %s", root)
            continue

        try:
            for filepath in _iter_files(root, recursive):
                try:
                    size = filepath.stat().st_size
                except OSError:
                    size = None
                result = scan_file(filepath.name, str(filepath), known)
                if not result.is_safe:
                    logger.info("threat in file %s", filepath)
                scanned.append(ScannedFile(filepath.name, str(filepath), size, result))
        except OSError as exc:
            logger.debug("cannot list %s: %s", root, exc)

    return scanned


class DirectoryWatcher:
    """Re-scans directories and reports unsafe files the first time they appear."""

    def __init__(
        self,
        directories: Iterable[str | Path],
        recursive: bool = False,
        known_packages: Iterable[str] | None = None,
    ):
        self.directories = list(directories)
        self.recursive = recursive
        self.known_packages = list(known_packages or [])
        self.seen: set[str] = set()

    def check(self) -> list[ScannedFile]:
        new_threats = []
        for scanned in scan_directories(self.directories, self.recursive, self.known_packages):
            if scanned.path in self.seen:
                continue
            self.seen.add(scanned.path)
            if not scanned.result.is_safe:
                new_threats.append(scanned)
        return new_threats
