"""Target discovery: which catalog apps are present on this host.

Probing is delegated to a capability prober so scans can run against a
fixed fake catalog in tests and against the desktop URL-scheme registry
elsewhere.
"""

import asyncio
import logging
import re
import subprocess
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 3.0


@dataclass(frozen=True)
class AppTarget:
    name: str
    probe_url: str
    scheme: str


APP_CATALOG: list[AppTarget] = [
    AppTarget("Chrome Browser", "https://www.google.com/chrome", "googlechrome://"),
    AppTarget("Gmail", "https://mail.google.com", "googlegmail://"),
    AppTarget("WhatsApp", "https://whatsapp.com", "whatsapp://"),
    AppTarget("Instagram", "https://instagram.com", "instagram://"),
    AppTarget("Facebook", "https://facebook.com", "fb://"),
    AppTarget("Twitter", "https://twitter.com", "twitter://"),
    AppTarget("Telegram", "https://telegram.org", "tg://"),
    AppTarget("YouTube", "https://youtube.com", "youtube://"),
    AppTarget("Banking App", "http://verify-paypal-secure.phishing-site.com/login", "paypal://"),
    AppTarget("Shopping App", "https://amazon.com", "amazon://"),
    AppTarget("Spotify", "https://spotify.com", "spotify://"),
    AppTarget("Netflix", "https://netflix.com", "netflix://"),
    AppTarget("TikTok", "https://tiktok.com", "tiktok://"),
    AppTarget("Snapchat", "https://snapchat.com", "snapchat://"),
    AppTarget("LinkedIn", "https://linkedin.com", "linkedin://"),
    AppTarget("Uber", "https://uber.com", "uber://"),
    AppTarget("Maps", "https://maps.google.com", "geo://"),
    AppTarget("Calendar", "https://calendar.google.com", "calshow://"),
]

FALLBACK_TARGETS: list[AppTarget] = [
    AppTarget("Web Browser", "https://www.example.com", "https://"),
    AppTarget("Phone", "tel:+10000000000", "tel:"),
    AppTarget("Mail", "mailto:security@example.com", "mailto:"),
]


class CapabilityProber(Protocol):
    async def can_open(self, target: AppTarget) -> bool:
        ...


class StaticProber:
    """Reports a fixed set of app names as present."""

    def __init__(self, available: Iterable[str] | None = None):
        self.available = None if available is None else {a.lower() for a in available}

    async def can_open(self, target: AppTarget) -> bool:
        if self.available is None:
            return True
        return target.name.lower() in self.available


_SCHEME_RE = re.compile(r"^([a-z][a-z0-9+.-]*):", re.IGNORECASE)


def scheme_name(scheme: str) -> str | None:
    """``"whatsapp://"`` -> ``"whatsapp"``; None when there is no valid scheme."""
    match = _SCHEME_RE.match(scheme.strip())
    return match.group(1).lower() if match else None


class SchemeHandlerProber:
    """Treats a target as present when the desktop registers a handler for its scheme.

    Asks ``xdg-mime`` for the default ``x-scheme-handler/<scheme>`` entry. The
    probe URL is never contacted.
    """

    def __init__(self, timeout: float = DEFAULT_PROBE_TIMEOUT):
        self.timeout = timeout

    def _query(self, scheme: str) -> bool:
        try:
            proc = subprocess.run(
                ["xdg-mime", "query", "default", f"x-scheme-handler/{scheme}"],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (subprocess.TimeoutExpired, OSError) as exc:
            logger.debug("scheme lookup for %s failed: %s", scheme, exc)
            return False
        return proc.returncode == 0 and bool(proc.stdout.strip())

    async def can_open(self, target: AppTarget) -> bool:
        scheme = scheme_name(target.scheme)
        if scheme is None:
            return False
        return await asyncio.to_thread(self._query, scheme)


async def _probe(prober: CapabilityProber, target: AppTarget, timeout: float) -> bool:
    try:
        return bool(await asyncio.wait_for(prober.can_open(target), timeout))
    except asyncio.TimeoutError:
        logger.warning("probe for %s timed out after %.1fs", target.name, timeout)
    except Exception as exc:
        logger.warning("probe for %s failed: %s", target.name, exc)
    return False


async def detect_available_apps(
    prober: CapabilityProber | None = None,
    catalog: list[AppTarget] | None = None,
    timeout: float = DEFAULT_PROBE_TIMEOUT,
) -> list[AppTarget]:
    """Return catalog entries the prober confirms, in catalog order.

    A probe that errors or times out counts as not present. When nothing is
    confirmed the universally available web/telephone/mail targets are
    returned instead of an empty list.
    """
    prober = prober or StaticProber()
    catalog = APP_CATALOG if catalog is None else catalog
    if not catalog:
        return []

    results = await asyncio.gather(*(_probe(prober, t, timeout) for t in catalog))
    available = [t for t, ok in zip(catalog, results) if ok]
    logger.info("detected %d of %d catalog apps", len(available), len(catalog))

    if not available:
        logger.info("no catalog apps detected, using fallback targets")
        return list(FALLBACK_TARGETS)
    return available
