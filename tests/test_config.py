"""Tests for azrest.config -- XDG paths, atomic writes, profiles, precedence."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from azrest.config import (
    _atomic_write,
    delete_profile,
    get_config_dir,
    get_data_dir,
    get_profiles_dir,
    list_profiles,
    load_global_config,
    load_profile,
    load_project_config,
    profile_exists,
    resolve_config,
    resolve_credential,
    resolve_metadata_path,
    save_global_config,
    save_profile,
)
from azrest.exceptions import ConfigError
from azrest.models import DEFAULT_ENDPOINT, AuthConfig, GlobalConfig, OutputConfig, Profile


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


@pytest.fixture
def xdg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Force XDG resolution into *tmp_path*."""
    monkeypatch.setattr("azrest.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.chdir(tmp_path)
    for var in ("AZREST_PROFILE", "AZREST_ENDPOINT", "AZREST_METADATA_PATH"):
        monkeypatch.delenv(var, raising=False)
    return tmp_path


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_config_dir_xdg_custom(self, xdg: Path) -> None:
        assert get_config_dir() == xdg / "config" / "azrest"
        assert get_config_dir().is_dir()

    def test_data_dir_xdg_custom(self, xdg: Path) -> None:
        assert get_data_dir() == xdg / "data" / "azrest"

    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("azrest.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert get_config_dir() == tmp_path / ".config" / "azrest"

    def test_fallback_dirs(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("azrest.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert get_config_dir() == tmp_path / ".azrest"
        assert get_data_dir() == tmp_path / ".azrest" / "data"

    def test_profiles_dir_is_inside_config_dir(self, xdg: Path) -> None:
        assert get_profiles_dir() == get_config_dir() / "profiles"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_and_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "config.json"
        _atomic_write(target, '{"x": 1}')
        assert target.read_text() == '{"x": 1}'

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "config.json"
        target.write_text("old")
        _atomic_write(target, "new")
        assert target.read_text() == "new"

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "config.json"
        with patch("azrest.config.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                _atomic_write(target, "data")
        assert os.listdir(tmp_path) == []


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_load_returns_defaults_when_missing(self, xdg: Path) -> None:
        cfg = load_global_config()
        assert cfg.default_profile is None
        assert cfg.output.format == "auto"

    def test_save_and_load_roundtrip(self, xdg: Path) -> None:
        save_global_config(GlobalConfig(default_profile="public", metadata_path="/m", output=OutputConfig(format="json")))
        cfg = load_global_config()
        assert cfg.default_profile == "public"
        assert cfg.metadata_path == "/m"
        assert cfg.output.format == "json"

    def test_load_invalid_json_raises_config_error(self, xdg: Path) -> None:
        (get_config_dir() / "config.json").write_text("{bad")
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_load_invalid_schema_raises_config_error(self, xdg: Path) -> None:
        _write_json(get_config_dir() / "config.json", {"auto_select_single_profile": "maybe"})
        with pytest.raises(ConfigError):
            load_global_config()


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class TestProfiles:
    def test_list_empty(self, xdg: Path) -> None:
        assert list_profiles() == []

    def test_save_load_and_list(self, xdg: Path) -> None:
        save_profile(Profile(name="b", endpoint="https://b.example.test"))
        save_profile(Profile(name="a", metadata_path="~/meta", auth=AuthConfig(source="file:/tok")))
        assert list_profiles() == ["a", "b"]
        loaded = load_profile("a")
        assert loaded.endpoint == DEFAULT_ENDPOINT
        assert loaded.metadata_path == "~/meta"
        assert loaded.auth is not None and loaded.auth.source == "file:/tok"

    def test_load_nonexistent_raises_config_error(self, xdg: Path) -> None:
        with pytest.raises(ConfigError, match="Profile 'nope' not found"):
            load_profile("nope")

    def test_delete_profile(self, xdg: Path) -> None:
        save_profile(Profile(name="gone"))
        assert profile_exists("gone")
        delete_profile("gone")
        assert not profile_exists("gone")
        with pytest.raises(ConfigError):
            delete_profile("gone")

    def test_load_invalid_json_raises_config_error(self, xdg: Path) -> None:
        (get_profiles_dir() / "broken.json").write_text("[")
        with pytest.raises(ConfigError, match="Invalid profile 'broken'"):
            load_profile("broken")


# ---------------------------------------------------------------------------
# Project config
# ---------------------------------------------------------------------------


class TestProjectConfig:
    def test_load_returns_none_when_missing(self, xdg: Path) -> None:
        assert load_project_config() is None

    def test_load_valid_project_config(self, xdg: Path) -> None:
        _write_json(xdg / "azrest.json", {"metadata_path": "./bundle"})
        assert load_project_config() == {"metadata_path": "./bundle"}

    def test_not_an_object(self, xdg: Path) -> None:
        _write_json(xdg / "azrest.json", [1])
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_project_config()


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveConfig:
    """Test the full precedence chain: CLI > env > project > global > defaults."""

    def test_defaults_to_builtin_profile(self, xdg: Path) -> None:
        cfg, profile = resolve_config()
        assert isinstance(cfg, GlobalConfig)
        assert profile.name == "default"
        assert profile.endpoint == DEFAULT_ENDPOINT

    def test_single_profile_auto_selected(self, xdg: Path) -> None:
        save_profile(Profile(name="only"))
        _, profile = resolve_config()
        assert profile.name == "only"

    def test_global_default_profile(self, xdg: Path) -> None:
        save_profile(Profile(name="a"))
        save_profile(Profile(name="b"))
        save_global_config(GlobalConfig(default_profile="b"))
        assert resolve_config()[1].name == "b"

    def test_project_overrides_global(self, xdg: Path) -> None:
        save_profile(Profile(name="global-api"))
        save_profile(Profile(name="project-api"))
        save_global_config(GlobalConfig(default_profile="global-api"))
        _write_json(xdg / "azrest.json", {"default_profile": "project-api"})
        assert resolve_config()[1].name == "project-api"

    def test_env_overrides_project(self, xdg: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        save_profile(Profile(name="project-api"))
        save_profile(Profile(name="env-api"))
        _write_json(xdg / "azrest.json", {"default_profile": "project-api"})
        monkeypatch.setenv("AZREST_PROFILE", "env-api")
        assert resolve_config()[1].name == "env-api"

    def test_cli_overrides_env(self, xdg: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        save_profile(Profile(name="env-api"))
        save_profile(Profile(name="cli-api"))
        monkeypatch.setenv("AZREST_PROFILE", "env-api")
        assert resolve_config(cli_profile="cli-api")[1].name == "cli-api"

    def test_missing_named_profile(self, xdg: Path) -> None:
        with pytest.raises(ConfigError):
            resolve_config(cli_profile="nope")

    def test_endpoint_precedence(self, xdg: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        save_profile(Profile(name="api", endpoint="https://profile.example.test"))
        assert resolve_config()[1].endpoint == "https://profile.example.test"
        monkeypatch.setenv("AZREST_ENDPOINT", "https://env.example.test")
        assert resolve_config()[1].endpoint == "https://env.example.test"
        assert resolve_config(cli_endpoint="https://cli.example.test")[1].endpoint == "https://cli.example.test"

    def test_cli_format(self, xdg: Path) -> None:
        cfg, _ = resolve_config(cli_format="json")
        assert cfg.output.format == "json"


class TestResolveMetadataPath:
    def test_precedence(self, xdg: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        cfg = GlobalConfig(metadata_path="/global")
        profile = Profile(name="p")
        assert resolve_metadata_path(cfg, profile) == Path("/global")

        _write_json(xdg / "azrest.json", {"metadata_path": "/project"})
        assert resolve_metadata_path(cfg, profile) == Path("/project")

        profile = Profile(name="p", metadata_path="/profile")
        assert resolve_metadata_path(cfg, profile) == Path("/profile")

        monkeypatch.setenv("AZREST_METADATA_PATH", "/env")
        assert resolve_metadata_path(cfg, profile) == Path("/env")
        assert resolve_metadata_path(cfg, profile, "/cli") == Path("/cli")

    def test_default_is_cwd_metadata(self, xdg: Path) -> None:
        assert resolve_metadata_path(GlobalConfig(), Profile(name="p")) == xdg / "metadata"


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class TestResolveCredential:
    def test_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AZREST_TOKEN_X", "abc")
        assert resolve_credential("env:AZREST_TOKEN_X") == "abc"

    def test_env_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("AZREST_TOKEN_X", raising=False)
        with pytest.raises(ConfigError, match="'AZREST_TOKEN_X' is not set"):
            resolve_credential("env:AZREST_TOKEN_X")

    def test_file(self, tmp_path: Path) -> None:
        token = tmp_path / "token"
        token.write_text("  tok \n")
        assert resolve_credential(f"file:{token}") == "tok"

    def test_file_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Credential file not found"):
            resolve_credential(f"file:{tmp_path / 'none'}")

    def test_prompt_requires_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: False)
        with pytest.raises(ConfigError, match="not a TTY"):
            resolve_credential("prompt")

    def test_prompt(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: True)
        monkeypatch.setattr("azrest.config.getpass.getpass", lambda prompt: "typed")
        assert resolve_credential("prompt") == "typed"

    def test_unknown_format(self) -> None:
        with pytest.raises(ConfigError, match="Unknown credential source"):
            resolve_credential("vault:x")
