"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for azrest:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.azrest/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_data_dir`, :func:`get_profiles_dir`.
* **Global config** -- A single :class:`~azrest.models.GlobalConfig`
  JSON file storing defaults (output format, default profile, metadata).
* **Profiles** -- One JSON file per service endpoint, each deserialised
  into a :class:`~azrest.models.Profile`.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  effective configuration; :func:`resolve_metadata_path` does the same for
  the metadata bundle location.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars, files, or interactive prompts.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional

from azrest.exceptions import ConfigError
from azrest.models import GlobalConfig, Profile

_APP_NAME = "azrest"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "azrest.json"
_DEFAULT_PROFILE_NAME = "default"
_DEFAULT_METADATA_DIRNAME = "metadata"

ENV_PROFILE = "AZREST_PROFILE"
ENV_ENDPOINT = "AZREST_ENDPOINT"
ENV_METADATA_PATH = "AZREST_METADATA_PATH"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/azrest/`` (default ``~/.config/azrest/``).
    On macOS/Windows: ``~/.azrest/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs, default metadata), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/azrest/`` (default ``~/.local/share/azrest/``).
    On macOS/Windows: ``~/.azrest/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_profiles_dir() -> Path:
    """Return the profiles directory (``<config_dir>/profiles/``), creating it if necessary."""
    path = get_config_dir() / "profiles"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created next to *path* so that ``os.replace`` is
    an atomic rename on POSIX systems. On failure the temp file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


def _read_json(path: Path, what: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid {what} at {path}: {exc}") from exc


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration, or defaults when the file is absent.

    Raises:
        ConfigError: If the file exists but is invalid JSON or fails
            validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    data = _read_json(path, "global config")
    try:
        return GlobalConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Profiles ---


def _profile_path(name: str) -> Path:
    return get_profiles_dir() / f"{name}.json"


def list_profiles() -> list[str]:
    """Return all profile names found in the profiles directory, sorted alphabetically."""
    return sorted(p.stem for p in get_profiles_dir().glob("*.json") if p.is_file())


def load_profile(name: str) -> Profile:
    """Load and validate a profile from disk.

    Raises:
        ConfigError: If the profile does not exist or is invalid.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    data = _read_json(path, f"profile '{name}'")
    try:
        return Profile.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid profile '{name}' at {path}: {exc}") from exc


def save_profile(profile: Profile) -> None:
    """Persist a profile atomically to the profiles directory."""
    data = profile.model_dump(mode="json")
    _atomic_write(_profile_path(profile.name), json.dumps(data, indent=2) + "\n")


def delete_profile(name: str) -> None:
    """Delete a profile's JSON file from disk.

    Raises:
        ConfigError: If the profile does not exist.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    path.unlink()


def profile_exists(name: str) -> bool:
    return _profile_path(name).is_file()


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./azrest.json``.

    A repository can pin ``default_profile`` and ``metadata_path`` here.

    Returns:
        The parsed JSON as a dict, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    data = _read_json(path, "project config")
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_config(
    cli_profile: Optional[str] = None,
    cli_endpoint: Optional[str] = None,
    cli_format: Optional[str] = None,
) -> tuple[GlobalConfig, Profile]:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_profile``, ``cli_endpoint``, ``cli_format``)
        2. Environment variables (``AZREST_PROFILE``, ``AZREST_ENDPOINT``)
        3. Project config (``./azrest.json``)
        4. User config (``~/.config/azrest/config.json``)
        5. Defaults

    When no profile name resolves and no single profile can be
    auto-selected, a built-in ``default`` profile is returned.

    Returns:
        A tuple of ``(global_config, active_profile)``.
    """
    global_cfg = load_global_config()

    project = load_project_config()
    resolved_profile_name: Optional[str] = global_cfg.default_profile
    if project is not None and project.get("default_profile"):
        resolved_profile_name = project["default_profile"]
    env_profile = os.environ.get(ENV_PROFILE)
    if env_profile:
        resolved_profile_name = env_profile
    if cli_profile is not None:
        resolved_profile_name = cli_profile

    if resolved_profile_name is None and global_cfg.auto_select_single_profile:
        profiles = list_profiles()
        if len(profiles) == 1:
            resolved_profile_name = profiles[0]

    if resolved_profile_name is not None:
        profile = load_profile(resolved_profile_name)
    else:
        profile = Profile(name=_DEFAULT_PROFILE_NAME)

    # endpoint: CLI > env > profile
    env_endpoint = os.environ.get(ENV_ENDPOINT)
    if cli_endpoint is not None:
        profile.endpoint = cli_endpoint
    elif env_endpoint:
        profile.endpoint = env_endpoint

    if cli_format is not None:
        global_cfg.output.format = cli_format

    return global_cfg, profile


def resolve_metadata_path(
    global_cfg: GlobalConfig,
    profile: Profile,
    cli_path: Optional[str] = None,
) -> Path:
    """Resolve the metadata bundle directory.

    Precedence (high to low): CLI flag, ``AZREST_METADATA_PATH``, the
    profile, project config, global config, then ``./metadata``.
    """
    if cli_path:
        return Path(cli_path).expanduser()
    env_path = os.environ.get(ENV_METADATA_PATH)
    if env_path:
        return Path(env_path).expanduser()
    if profile.metadata_path:
        return Path(profile.metadata_path).expanduser()
    project = load_project_config()
    if project is not None and project.get("metadata_path"):
        return Path(project["metadata_path"]).expanduser()
    if global_cfg.metadata_path:
        return Path(global_cfg.metadata_path).expanduser()
    return Path.cwd() / _DEFAULT_METADATA_DIRNAME


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts user interactively (requires a TTY)

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter access token: ")

    raise ConfigError(f"Unknown credential source format: {source}")
