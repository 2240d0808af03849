"""Tests for the sqlgate config loader."""

from __future__ import annotations

import warnings
from pathlib import Path

import pytest
import yaml

from sqlgate.config import ConfigError, DatabaseCfg, ImagesCfg, load_config


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data), encoding="utf-8")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("SQLGATE_DB_PATH", "SQLGATE_IMAGE_DIR", "SQLGATE_BUSY_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path) -> None:
    """No config files → all hardcoded defaults."""
    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")

    assert cfg.database == DatabaseCfg()
    assert cfg.database.path == "sqlgate.sqlite"
    assert cfg.database.busy_timeout == 5.0
    assert cfg.database.foreign_keys is True
    assert cfg.images == ImagesCfg()


def test_load_config_empty_global_file(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("", encoding="utf-8")
    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.database.path == "sqlgate.sqlite"


# ---------------------------------------------------------------------------
# Layering
# ---------------------------------------------------------------------------


def test_project_overrides_global(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"database": {"path": "global.sqlite", "busy_timeout": 2}})
    _write_yaml(tmp_path / "sqlgate.yaml", {"database": {"path": "project.sqlite"}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.database.path == "project.sqlite"
    # Untouched keys come from the global layer
    assert cfg.database.busy_timeout == 2.0


def test_images_section(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "sqlgate.yaml", {"images": {"directory": "pics"}})
    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")
    assert cfg.images.directory == "pics"


def test_foreign_keys_can_be_disabled(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "sqlgate.yaml", {"database": {"foreign_keys": False}})
    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")
    assert cfg.database.foreign_keys is False


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def test_unknown_top_level_key_warns(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "sqlgate.yaml", {"databse": {"path": "typo.sqlite"}})
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")
    assert any("databse" in str(w.message) for w in caught)


@pytest.mark.parametrize("bad", ["soon", -1])
def test_invalid_busy_timeout_raises(tmp_path: Path, bad: object) -> None:
    _write_yaml(tmp_path / "sqlgate.yaml", {"database": {"busy_timeout": bad}})
    with pytest.raises(ConfigError, match="busy_timeout"):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")


def test_invalid_yaml_raises(tmp_path: Path) -> None:
    (tmp_path / "sqlgate.yaml").write_text("database: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError, match="not valid YAML"):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")


def test_non_mapping_yaml_raises(tmp_path: Path) -> None:
    (tmp_path / "sqlgate.yaml").write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")


def test_config_error_is_value_error() -> None:
    assert issubclass(ConfigError, ValueError)


# ---------------------------------------------------------------------------
# Env var overrides
# ---------------------------------------------------------------------------


def test_env_vars_override_files(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_yaml(tmp_path / "sqlgate.yaml", {"database": {"path": "project.sqlite"}})
    monkeypatch.setenv("SQLGATE_DB_PATH", "env.sqlite")
    monkeypatch.setenv("SQLGATE_IMAGE_DIR", "env-images")
    monkeypatch.setenv("SQLGATE_BUSY_TIMEOUT", "0.5")

    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")
    assert cfg.database.path == "env.sqlite"
    assert cfg.images.directory == "env-images"
    assert cfg.database.busy_timeout == 0.5


def test_invalid_env_busy_timeout(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SQLGATE_BUSY_TIMEOUT", "forever")
    with pytest.raises(ConfigError, match="SQLGATE_BUSY_TIMEOUT"):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "missing.yaml")
