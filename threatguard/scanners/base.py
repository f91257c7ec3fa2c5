"""Abstract scan session.

A session discovers targets, walks them in order reporting progress once per
item, and returns the threats found. Sessions are not re-entrant: a caller
must not start a second ``run`` on the same session while one is in flight.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from threatguard.discovery import DEFAULT_PROBE_TIMEOUT, AppTarget, CapabilityProber, detect_available_apps
from threatguard.models import ScanProgress, ScanResult
from threatguard.scanners.apps import scan_installed_app

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ScanProgress], None]


class ItemKind(Enum):
    APP = "app"
    SYSTEM = "system"


@dataclass(frozen=True)
class ScanItem:
    name: str
    kind: ItemKind
    url: str = ""


class BaseScanSession(ABC):
    name: str = "base"
    base_percent: int = 5
    discovery_status: str = "Detecting available apps..."

    def __init__(
        self,
        prober: CapabilityProber | None = None,
        catalog: list[AppTarget] | None = None,
        item_delay: float = 0.0,
        discovery_timeout: float = DEFAULT_PROBE_TIMEOUT,
        known_packages: Iterable[str] | None = None,
    ):
        self.prober = prober
        self.catalog = catalog
        self.item_delay = item_delay
        self.discovery_timeout = discovery_timeout
        self.known_packages = list(known_packages or [])

    @abstractmethod
    def build_items(self, apps: list[AppTarget]) -> list[ScanItem]:
        ...

    @abstractmethod
    def status_for(self, item: ScanItem) -> str:
        ...

    async def run(self, on_progress: ProgressCallback) -> ScanResult:
        start = time.monotonic()
        logger.info("starting %s scan", self.name)

        on_progress(ScanProgress(
            status=self.discovery_status,
            progress=self.base_percent,
            current_item="Scanning device...",
            items_scanned=0,
            total_items=0,
        ))

        apps = await detect_available_apps(self.prober, self.catalog, self.discovery_timeout)
        items = self.build_items(apps)
        result = ScanResult()

        if not items:
            logger.info("%s scan: nothing to scan", self.name)
            result.scan_duration = self._elapsed_ms(start)
            return result

        total = len(items)
        remaining = 100 - self.base_percent
        for index, item in enumerate(items):
            on_progress(ScanProgress(
                status=self.status_for(item),
                progress=round(self.base_percent + (index + 1) / total * remaining),
                current_item=item.name,
                items_scanned=index + 1,
                total_items=total,
            ))

            if item.kind == ItemKind.APP and item.url:
                threat = await scan_installed_app(item.name, item.url, self.known_packages)
                if threat is not None:
                    result.threats_found.append(threat)

            if self.item_delay > 0:
                await asyncio.sleep(self.item_delay)

        result.items_scanned = total
        result.scan_duration = self._elapsed_ms(start)
        logger.info(
            "%s scan completed: %d threat(s) in %d item(s)",
            self.name, len(result.threats_found), total,
        )
        return result

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.monotonic() - start) * 1000)
