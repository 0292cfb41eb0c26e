"""Tests for config.py: input validation and .prcov.yml loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest import mock

import pytest
import yaml

from prcov.config import (
    ActionInputs,
    ConfigError,
    MappingInputs,
    PrcovConfig,
    Settings,
    SettingsLoader,
    _resolve_env_vars,
    load_config,
)


def _io(values: dict[str, str]) -> mock.Mock:
    """Create an input source returning *values* by name ("" when absent)."""
    io = mock.Mock()
    io.get_input.side_effect = lambda name, required=False: values.get(name, "")
    return io


def _write_prcov_yml(root: Path, data: Any) -> Path:
    """Write .prcov.yml with given data."""
    path = root / ".prcov.yml"
    path.write_text(yaml.dump(data), encoding="utf-8")
    return path


@pytest.fixture
def loader() -> SettingsLoader:
    return SettingsLoader()


@pytest.fixture
def report_file(tmp_path: Path) -> Path:
    path = tmp_path / "lcov.info"
    path.write_text("", encoding="utf-8")
    return path


# ââ read_token âââââââââââââââââââââââââââââââââââââââââââââââââââ


class TestReadToken:
    def test_reads_token(self, loader: SettingsLoader) -> None:
        assert loader.read_token(_io({"github_token": "token"})) == "token"

    @pytest.mark.parametrize("value", ["", "   "])
    def test_blank_token_raises(self, loader: SettingsLoader, value: str) -> None:
        with pytest.raises(ConfigError, match="github_token is required"):
            loader.read_token(_io({"github_token": value}))

    def test_requests_required_input(self, loader: SettingsLoader) -> None:
        io = _io({"github_token": "token"})

        loader.read_token(io)

        io.get_input.assert_called_once_with("github_token", required=True)


# ââ read_min_threshold âââââââââââââââââââââââââââââââââââââââââââ


class TestReadMinThreshold:
    def test_reads_threshold(self, loader: SettingsLoader) -> None:
        assert loader.read_min_threshold(_io({"min_threshold": "90"})) == 90

    @pytest.mark.parametrize(("value", "expected"), [("0", 0), ("100", 100), (" 42 ", 42)])
    def test_bounds_are_inclusive(self, loader: SettingsLoader, value: str, expected: int) -> None:
        assert loader.read_min_threshold(_io({"min_threshold": value})) == expected

    @pytest.mark.parametrize("value", ["-1", "101"])
    def test_out_of_range_raises(self, loader: SettingsLoader, value: str) -> None:
        with pytest.raises(ConfigError, match="min_threshold"):
            loader.read_min_threshold(_io({"min_threshold": value}))

    @pytest.mark.parametrize("value", ["", "abc", "%"])
    def test_non_numeric_uses_default(self, value: str) -> None:
        loader = SettingsLoader(default_min_threshold=80)

        assert loader.read_min_threshold(_io({"min_threshold": value})) == 80

    def test_default_is_100(self, loader: SettingsLoader) -> None:
        assert loader.read_min_threshold(_io({})) == 100

    def test_leading_integer_is_used(self, loader: SettingsLoader) -> None:
        assert loader.read_min_threshold(_io({"min_threshold": "75%"})) == 75
        assert loader.read_min_threshold(_io({"min_threshold": "4.5"})) == 4

    def test_non_ascii_digits_use_default(self) -> None:
        loader = SettingsLoader(default_min_threshold=80)

        assert loader.read_min_threshold(_io({"min_threshold": "٥٠"})) == 80

    def test_loaders_do_not_share_defaults(self) -> None:
        SettingsLoader(default_min_threshold=10)

        assert SettingsLoader().read_min_threshold(_io({})) == 100

    @pytest.mark.parametrize("default", [-1, 101])
    def test_invalid_default_raises(self, default: int) -> None:
        with pytest.raises(ConfigError):
            SettingsLoader(default_min_threshold=default)


# ââ read_report_file_path ââââââââââââââââââââââââââââââââââââââââ


class TestReadReportFilePath:
    def test_existing_file(self, loader: SettingsLoader, report_file: Path) -> None:
        io = _io({"report_file_path": str(report_file)})

        assert loader.read_report_file_path(io) == str(report_file)

    def test_missing_file_raises(self, loader: SettingsLoader, tmp_path: Path) -> None:
        missing = tmp_path / "coverage.info"

        with pytest.raises(ConfigError, match="No coverage report found"):
            loader.read_report_file_path(_io({"report_file_path": str(missing)}))

    def test_directory_is_rejected(self, loader: SettingsLoader, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            loader.read_report_file_path(_io({"report_file_path": str(tmp_path)}))


# ââ from_io ââââââââââââââââââââââââââââââââââââââââââââââââââââââ


class TestFromIO:
    def test_creates_settings(self, loader: SettingsLoader, report_file: Path) -> None:
        io = _io(
            {
                "github_token": "token",
                "min_threshold": "100",
                "report_file_path": str(report_file),
            }
        )

        settings = loader.from_io(io)

        assert settings == Settings(
            token="token",  # noqa: S106
            min_threshold=100,
            report_file_path=str(report_file),
        )

    def test_any_failure_aborts(self, loader: SettingsLoader, report_file: Path) -> None:
        io = _io(
            {
                "github_token": "token",
                "min_threshold": "101",
                "report_file_path": str(report_file),
            }
        )

        with pytest.raises(ConfigError):
            loader.from_io(io)


# ââ Input sources ââââââââââââââââââââââââââââââââââââââââââââââââ


class TestActionInputs:
    def test_reads_input_env_var(self) -> None:
        inputs = ActionInputs({"INPUT_MIN_THRESHOLD": " 80 "})

        assert inputs.get_input("min_threshold") == "80"

    def test_missing_optional_input_is_empty(self) -> None:
        assert ActionInputs({}).get_input("min_threshold") == ""

    def test_missing_required_input_raises(self) -> None:
        with pytest.raises(ConfigError, match="Input required and not supplied: github_token"):
            ActionInputs({}).get_input("github_token", required=True)

    def test_spaces_become_underscores(self) -> None:
        inputs = ActionInputs({"INPUT_REPORT_FILE_PATH": "lcov.info"})

        assert inputs.get_input("report file path") == "lcov.info"


class TestMappingInputs:
    def test_value_wins_over_fallback(self) -> None:
        inputs = MappingInputs({"min_threshold": "50"}, fallback=ActionInputs({}))

        assert inputs.get_input("min_threshold") == "50"

    def test_none_uses_fallback(self) -> None:
        inputs = MappingInputs(
            {"min_threshold": None}, fallback=ActionInputs({"INPUT_MIN_THRESHOLD": "70"})
        )

        assert inputs.get_input("min_threshold") == "70"

    def test_missing_required_without_fallback_raises(self) -> None:
        with pytest.raises(ConfigError):
            MappingInputs({}).get_input("github_token", required=True)


# ââ .prcov.yml âââââââââââââââââââââââââââââââââââââââââââââââââââ


class TestResolveEnvVars:
    def test_replaces_known_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PRCOV_WS", "/home/runner/work/repo")

        assert _resolve_env_vars("${PRCOV_WS}/src") == "/home/runner/work/repo/src"

    def test_unknown_variable_becomes_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PRCOV_UNSET", raising=False)

        assert _resolve_env_vars("x${PRCOV_UNSET}y") == "xy"


class TestLoadConfig:
    def test_missing_file_returns_defaults(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / ".prcov.yml") == PrcovConfig()

    def test_empty_file_returns_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / ".prcov.yml"
        path.write_text("", encoding="utf-8")

        assert load_config(path) == PrcovConfig()

    def test_reads_values(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_WORKSPACE", "/work/repo")
        path = _write_prcov_yml(
            tmp_path,
            {
                "default_min_threshold": 85,
                "check_name": "LCOV",
                "path_prefix": "${GITHUB_WORKSPACE}",
            },
        )

        config = load_config(path)

        assert config == PrcovConfig(
            default_min_threshold=85, check_name="LCOV", path_prefix="/work/repo"
        )

    def test_string_threshold_is_parsed(self, tmp_path: Path) -> None:
        path = _write_prcov_yml(tmp_path, {"default_min_threshold": "60"})

        assert load_config(path).default_min_threshold == 60

    @pytest.mark.parametrize("value", [150, -5, "lots", True, [1]])
    def test_invalid_threshold_raises(self, tmp_path: Path, value: Any) -> None:
        path = _write_prcov_yml(tmp_path, {"default_min_threshold": value})

        with pytest.raises(ConfigError):
            load_config(path)

    def test_non_mapping_raises(self, tmp_path: Path) -> None:
        path = _write_prcov_yml(tmp_path, ["a", "b"])

        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_config(path)

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / ".prcov.yml"
        path.write_text("check_name: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)
