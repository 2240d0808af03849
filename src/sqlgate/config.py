"""sqlgate configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site, not in this module)
  2. Environment variables  (SQLGATE_DB_PATH, SQLGATE_IMAGE_DIR, SQLGATE_BUSY_TIMEOUT)
  3. Per-project sqlgate.yaml  (in the working directory)
  4. Global ~/.sqlgate/config.yaml
  5. Hardcoded defaults

All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".sqlgate"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "sqlgate.yaml"

_KNOWN_SECTIONS: frozenset[str] = frozenset(["database", "images"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file or environment variable holds an invalid value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class DatabaseCfg:
    """Database file and connection settings (sqlgate.yaml: database:).

    Attributes:
        path: SQLite database file.
        busy_timeout: Seconds to wait on a locked database.
        foreign_keys: Enforce foreign keys on every connection.
    """

    path: str = "sqlgate.sqlite"
    busy_timeout: float = 5.0
    foreign_keys: bool = True


@dataclass
class ImagesCfg:
    """Image store settings (sqlgate.yaml: images:).

    Attributes:
        directory: Folder for stored images; None disables image values.
    """

    directory: str | None = None


@dataclass
class SQLGateConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    database: DatabaseCfg = field(default_factory=DatabaseCfg)
    images: ImagesCfg = field(default_factory=ImagesCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}'; ignored.",
                UserWarning,
                stacklevel=4,
            )


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file '{path}' is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file '{path}' must contain a mapping at the top level.")
    return data


def _busy_timeout(value: Any, source: str) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{source}: busy_timeout must be a number, got {value!r}") from exc
    if timeout < 0:
        raise ConfigError(f"{source}: busy_timeout must be >= 0, got {timeout}")
    return timeout


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> SQLGateConfig:
    """Build a *SQLGateConfig* from a merged raw YAML dict."""
    cfg = SQLGateConfig()

    if "database" in data:
        d = data["database"] or {}
        cfg.database = DatabaseCfg(
            path=str(d.get("path", cfg.database.path)),
            busy_timeout=_busy_timeout(
                d.get("busy_timeout", cfg.database.busy_timeout), "database"
            ),
            foreign_keys=bool(d.get("foreign_keys", cfg.database.foreign_keys)),
        )

    if "images" in data:
        im = data["images"] or {}
        directory = im.get("directory")
        cfg.images = ImagesCfg(directory=str(directory) if directory else None)

    return cfg


def _apply_env_overrides(cfg: SQLGateConfig) -> SQLGateConfig:
    """Apply SQLGATE_* environment variable overrides."""
    if path := os.environ.get("SQLGATE_DB_PATH"):
        cfg.database.path = path
    if directory := os.environ.get("SQLGATE_IMAGE_DIR"):
        cfg.images.directory = directory
    if timeout := os.environ.get("SQLGATE_BUSY_TIMEOUT"):
        cfg.database.busy_timeout = _busy_timeout(timeout, "SQLGATE_BUSY_TIMEOUT")
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> SQLGateConfig:
    """Load and return a merged *SQLGateConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *sqlgate.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Returns:
        Fully merged *SQLGateConfig* with env var overrides applied.

    Raises:
        ConfigError: If a config file is not a YAML mapping or a value is invalid.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: per-project config
    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _read_yaml(project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)

    # Layer 3: env var overrides
    return _apply_env_overrides(cfg)
