"""Configuration file support for ThreatGuard (.threatguard.yml)."""

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from threatguard.discovery import DEFAULT_PROBE_TIMEOUT
from threatguard.models import ThreatLevel

DEFAULT_CONFIG_NAME = ".threatguard.yml"
DEFAULT_STORE_PATH = "~/.threatguard/threats.json"
PROBE_MODES = ("static", "system")


@dataclass
class Config:
    """ThreatGuard configuration loaded from .threatguard.yml."""

    severity_threshold: str = "safe"
    item_delay: float = 0.0
    discovery_timeout: float = DEFAULT_PROBE_TIMEOUT
    probe: str = "static"
    available_apps: list[str] | None = None
    known_malicious_packages: list[str] = field(default_factory=list)
    scan_directories: list[str] = field(default_factory=list)
    store_path: str = DEFAULT_STORE_PATH

    @property
    def min_level(self) -> ThreatLevel:
        return ThreatLevel(self.severity_threshold)

    @property
    def resolved_store_path(self) -> Path:
        return Path(self.store_path).expanduser()


def load_config(config_path: str | None = None, project_root: str | None = None) -> Config:
    """Load configuration from a YAML file.

    Priority: explicit --config path > .threatguard.yml in project root > defaults.
    """
    path = None

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    elif project_root:
        candidate = Path(project_root) / DEFAULT_CONFIG_NAME
        if candidate.exists():
            path = candidate

    if path is None:
        return Config()

    try:
        raw = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if raw is None:
        return Config()
    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must be a YAML mapping, got {type(raw).__name__}")

    return _parse_config(raw)


def _string_list(raw: dict, key: str) -> list[str]:
    value = raw[key]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{key} must be a list of strings")
    return value


def _number(raw: dict, key: str) -> float:
    value = raw[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _parse_config(raw: dict) -> Config:
    """Parse and validate raw YAML dict into a Config object."""
    config = Config()

    if "severity_threshold" in raw:
        level = raw["severity_threshold"]
        valid = {lv.value for lv in ThreatLevel}
        if level not in valid:
            raise ValueError(f"severity_threshold must be one of {sorted(valid)}, got '{level}'")
        config.severity_threshold = level

    if "item_delay" in raw:
        delay = _number(raw, "item_delay")
        if delay < 0:
            raise ValueError("item_delay must not be negative")
        config.item_delay = delay

    if "discovery_timeout" in raw:
        timeout = _number(raw, "discovery_timeout")
        if timeout <= 0:
            raise ValueError("discovery_timeout must be positive")
        config.discovery_timeout = timeout

    if "probe" in raw:
        probe = raw["probe"]
        if probe not in PROBE_MODES:
            raise ValueError(f"probe must be one of {list(PROBE_MODES)}, got '{probe}'")
        config.probe = probe

    if "available_apps" in raw:
        config.available_apps = _string_list(raw, "available_apps")

    if "known_malicious_packages" in raw:
        config.known_malicious_packages = _string_list(raw, "known_malicious_packages")

    if "scan_directories" in raw:
        config.scan_directories = _string_list(raw, "scan_directories")

    if "store_path" in raw:
        store_path = raw["store_path"]
        if not isinstance(store_path, str) or not store_path:
            raise ValueError("store_path must be a non-empty string")
        config.store_path = store_path

    return config
