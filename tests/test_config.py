"""Unit tests for config module."""

import argparse
from pathlib import Path
from typing import Any, Dict

import pytest

from schemadiff.config import (
    ComparisonOptions,
    build_side,
    deep_get,
    get_env_var,
    load_config,
    read_options,
    read_table_filter,
)


class TestDeepGet:
    """Tests for deep_get helper function."""

    def test_nested_keys(self) -> None:
        """Test nested key access."""
        assert deep_get({"a": {"b": {"c": 3}}}, ["a", "b", "c"]) == 3

    def test_missing_key_returns_default(self) -> None:
        """Test missing keys return the default value."""
        assert deep_get({"a": 1}, ["b"]) is None
        assert deep_get({"a": {"b": 1}}, ["a", "b", "c"], "x") == "x"


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_valid_config(self, tmp_path: Path) -> None:
        """Test loading a valid YAML config."""
        config_file = tmp_path / "config.yml"
        config_file.write_text("out: report.txt\noptions:\n  indexes: false\n")
        cfg = load_config(config_file)
        assert cfg["out"] == "report.txt"
        assert cfg["options"]["indexes"] is False

    def test_load_missing_config_raises(self, tmp_path: Path) -> None:
        """Test loading a missing config raises SystemExit."""
        with pytest.raises(SystemExit, match="config not found"):
            load_config(tmp_path / "nonexistent.yml")

    def test_load_empty_config_returns_empty_dict(self, tmp_path: Path) -> None:
        """Test an empty config returns an empty dict."""
        config_file = tmp_path / "empty.yml"
        config_file.write_text("")
        assert load_config(config_file) == {}


class TestReadOptions:
    """Tests for read_options function."""

    @pytest.fixture
    def mock_args(self) -> argparse.Namespace:
        """Return an argparse namespace with no flags set."""
        return argparse.Namespace(
            no_columns=False,
            no_indexes=False,
            no_relations=False,
            no_objects=False,
            no_triggers=False,
            no_permissions=False,
            no_properties=False,
            no_synonyms=False,
            ordinal_positions=False,
        )

    def test_defaults(self, mock_args: argparse.Namespace) -> None:
        """Test defaults enable every category except ordinal positions."""
        assert read_options({}, mock_args) == ComparisonOptions()
        assert ComparisonOptions().ordinal_positions is False

    def test_options_from_config(self, mock_args: argparse.Namespace) -> None:
        """Test config values are read."""
        opt = read_options({"options": {"indexes": False, "ordinal_positions": True}}, mock_args)
        assert opt.indexes is False
        assert opt.ordinal_positions is True
        assert opt.columns is True

    def test_cli_flags_override_config(self, mock_args: argparse.Namespace) -> None:
        """Test --no-* flags switch categories off and --ordinal-positions switches on."""
        mock_args.no_triggers = True
        mock_args.ordinal_positions = True
        opt = read_options({"options": {"triggers": True}}, mock_args)
        assert opt.triggers is False
        assert opt.ordinal_positions is True


class TestReadTableFilter:
    """Tests for read_table_filter function."""

    def test_cli_patterns_extend_config(self) -> None:
        """Test CLI patterns are appended to config patterns."""
        cfg: Dict[str, Any] = {"table_filter": {"include": ["Order%"], "case_sensitive": True}}
        args = argparse.Namespace(include=["Customer%"], exclude=["re:^tmp"])
        tf = read_table_filter(cfg, args)
        assert tf.include == ["Order%", "Customer%"]
        assert tf.exclude == ["re:^tmp"]
        assert tf.case_sensitive is True

    def test_empty(self) -> None:
        """Test no patterns anywhere gives an empty filter."""
        tf = read_table_filter({}, argparse.Namespace(include=[], exclude=[]))
        assert tf.include == [] and tf.exclude == []
        assert tf.case_sensitive is False


class TestGetEnvVar:
    """Tests for get_env_var function."""

    def test_returns_env_var_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test returns value when env var is set."""
        monkeypatch.setenv("SCHEMADIFF_LEFT_SNAPSHOT", "db1.yml")
        assert get_env_var("left", "snapshot") == "db1.yml"

    def test_empty_value_is_none(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test an empty env var counts as unset."""
        monkeypatch.setenv("SCHEMADIFF_RIGHT_NAME", "")
        assert get_env_var("right", "name") is None


class TestBuildSide:
    """Tests for build_side function."""

    @pytest.fixture
    def cfg(self) -> Dict[str, Any]:
        return {
            "left": {"snapshot": "snapshots/db1.yml", "name": "[srv].[db1]"},
            "right": {"snapshot": "snapshots/db2.yml"},
        }

    def test_from_config(self, cfg: Dict[str, Any]) -> None:
        """Test side settings come from config."""
        side = build_side(cfg, "left", {})
        assert side.snapshot == Path("snapshots/db1.yml")
        assert side.name == "[srv].[db1]"
        assert side.label == "left"
        assert build_side(cfg, "right", {}).name is None

    def test_cli_overrides_config(self, cfg: Dict[str, Any]) -> None:
        """Test CLI values beat config values."""
        side = build_side(cfg, "left", {"left_snapshot": "other.yml", "left_name": None})
        assert side.snapshot == Path("other.yml")
        assert side.name == "[srv].[db1]"

    def test_env_beats_cli(self, cfg: Dict[str, Any], monkeypatch: pytest.MonkeyPatch) -> None:
        """Test environment variables take highest priority."""
        monkeypatch.setenv("SCHEMADIFF_LEFT_SNAPSHOT", "env.yml")
        side = build_side(cfg, "left", {"left_snapshot": "cli.yml"})
        assert side.snapshot == Path("env.yml")

    def test_missing_snapshot_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a missing snapshot path exits with hints."""
        monkeypatch.delenv("SCHEMADIFF_RIGHT_SNAPSHOT", raising=False)
        with pytest.raises(SystemExit) as exc_info:
            build_side({}, "right", {})
        message = str(exc_info.value)
        assert "missing right.snapshot" in message
        assert "--right-snapshot" in message
        assert "SCHEMADIFF_RIGHT_SNAPSHOT" in message
