"""YAML configuration for scanner runs."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError
from .severity import Severity
from .utils import read_yaml_file, write_text_file

DEFAULT_CONFIG_PATH = "solscan.yaml"

DEFAULT_CONFIG_CONTENT = """# solscan.yaml

# Paths to include in the analysis. Defaults to ["src"].
# scope: [src]

# Directories or files to skip. Defaults to [lib, test].
# exclude: [lib, test]

# Lowest severity of detectors to run: CRITICAL, HIGH, MEDIUM, LOW, GAS or NC.
# min_severity: NC

# Run only these detector ids (empty means all).
# Run `solscan detectors` to list the available ids.
# detectors: []

# Never run these detector ids.
# exclude_detectors: [floating-pragma]

# Number of files scanned concurrently.
# workers: 1
"""


@dataclass
class Config:
    scope: List[str] = field(default_factory=lambda: ["src"])
    exclude: List[str] = field(default_factory=lambda: ["lib", "test"])
    min_severity: Severity = Severity.NC
    detectors: List[str] = field(default_factory=list)
    exclude_detectors: List[str] = field(default_factory=list)
    workers: int = 1

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "Config":
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration key(s): {', '.join(unknown)}")
        config = cls()
        config.apply(data)
        return config

    def apply(self, overrides: Dict[str, Any]) -> None:
        """Overlay non-None values onto this config, validating each one."""

        for key, value in overrides.items():
            if value is None:
                continue
            if key == "min_severity":
                try:
                    value = Severity.parse(value)
                except ValueError as exc:
                    raise ConfigError(str(exc)) from None
            elif key == "workers":
                if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                    raise ConfigError(f"workers must be a positive integer, got {value!r}")
            else:
                value = _as_str_list(key, value)
            setattr(self, key, value)


def _as_str_list(key: str, value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    raise ConfigError(f"{key} must be a list of strings, got {type(value).__name__}")


def load_config(path: Optional[str] = None, **overrides: Any) -> Config:
    """Load ``path`` (or ``solscan.yaml`` if present) and apply CLI overrides."""

    config_path = Path(path or DEFAULT_CONFIG_PATH)
    if path and not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")
    try:
        data = read_yaml_file(config_path)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config at {config_path} is not a mapping")

    config = Config.from_mapping(data)
    config.apply(overrides)
    return config


def write_default_config(path: str = DEFAULT_CONFIG_PATH, force: bool = False) -> Path:
    target = Path(path)
    if target.exists() and not force:
        raise ConfigError(f"{target} already exists (use --force to overwrite)")
    return write_text_file(target, DEFAULT_CONFIG_CONTENT)
