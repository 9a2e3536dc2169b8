"""Load LivedownConfig from livedown.yaml / livedown.toml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import tomllib
from dataclasses import fields
from pathlib import Path

import yaml

from livedown._errors import ConfigError
from livedown.config import LivedownConfig

_CONFIG_NAMES = ("livedown.yaml", "livedown.yml", "livedown.toml")
_KNOWN_KEYS = frozenset(f.name for f in fields(LivedownConfig))


def load_config(root: Path | None = None, **overrides: object) -> LivedownConfig:
    """Load LivedownConfig from root, optionally merging a config file.

    Looks for livedown.yaml, livedown.yml, or livedown.toml in root (the
    current directory by default). Overrides whose value is ``None`` are
    treated as "not given" so argparse defaults don't mask the file.
    """
    file_config = read_config_file(root if root is not None else Path.cwd())
    given = {k: v for k, v in overrides.items() if v is not None}
    return LivedownConfig(**{**file_config, **given})


def find_config_file(root: Path) -> Path | None:
    """Return the first config file present in root, if any."""
    for name in _CONFIG_NAMES:
        path = root / name
        if path.is_file():
            return path
    return None


def read_config_file(root: Path) -> dict[str, object]:
    """Read livedown config from yaml/toml if present. Returns empty dict otherwise.

    Raises:
        ConfigError: If the file exists but cannot be parsed.

    """
    path = find_config_file(root)
    if path is None:
        return {}
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".toml":
            data = tomllib.loads(text)
        else:
            data = yaml.safe_load(text) or {}
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path}: expected a mapping at the top level"
        raise ConfigError(msg)
    return _flatten_livedown_section(data)


def _flatten_livedown_section(data: dict[str, object]) -> dict[str, object]:
    """Extract livedown.* keys into top-level config, dropping unknown keys."""
    result: dict[str, object] = {}
    for k, v in data.items():
        if k in _KNOWN_KEYS:
            result[k] = v
    section = data.get("livedown")
    if isinstance(section, dict):
        for k, v in section.items():
            if k in _KNOWN_KEYS:
                result[k] = v
    return result
