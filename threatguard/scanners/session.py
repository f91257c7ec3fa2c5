"""Quick and full scan sessions."""

from threatguard.discovery import AppTarget
from threatguard.models import ScanResult
from threatguard.scanners.base import BaseScanSession, ItemKind, ProgressCallback, ScanItem

SYSTEM_AREAS = [
    "Downloaded Files",
    "Recent Documents",
    "Browser Cache",
    "System Memory",
    "Network Connections",
    "Background Processes",
    "Clipboard History",
    "Installed Applications",
    "App Permissions",
    "System Settings",
]


class QuickScanSession(BaseScanSession):
    name = "quick"
    base_percent = 5

    def build_items(self, apps: list[AppTarget]) -> list[ScanItem]:
        return [ScanItem(app.name, ItemKind.APP, app.probe_url) for app in apps]

    def status_for(self, item: ScanItem) -> str:
        return "Scanning available apps and recent sites..."


class FullScanSession(BaseScanSession):
    name = "full"
    base_percent = 3

    def build_items(self, apps: list[AppTarget]) -> list[ScanItem]:
        items = [ScanItem(app.name, ItemKind.APP, app.probe_url) for app in apps]
        items.extend(ScanItem(area, ItemKind.SYSTEM) for area in SYSTEM_AREAS)
        return items

    def status_for(self, item: ScanItem) -> str:
        if item.kind == ItemKind.APP:
            return "Deep scanning apps and recent activities..."
        return "Scanning system files and settings..."


SESSIONS: dict[str, type[BaseScanSession]] = {
    "quick": QuickScanSession,
    "full": FullScanSession,
}


async def perform_quick_scan(on_progress: ProgressCallback, **options) -> ScanResult:
    """Scan discovered apps. ``options`` are passed to :class:`QuickScanSession`."""
    return await QuickScanSession(**options).run(on_progress)


async def perform_full_scan(on_progress: ProgressCallback, **options) -> ScanResult:
    """Scan discovered apps plus the fixed system areas."""
    return await FullScanSession(**options).run(on_progress)
