"""Config commands -- view and modify global configuration and profiles.

Provides the ``azrest config`` sub-command group for reading, updating,
and resetting the user's global configuration file
(:class:`~azrest.models.GlobalConfig`) and for managing endpoint profiles
(:class:`~azrest.models.Profile`). Settings are persisted in the azrest
config directory.

Typical workflow::

    azrest config add-profile public --metadata ~/azure-metadata
    azrest config use public
    azrest config set output.format json
"""

from __future__ import annotations

from typing import Optional

import typer

from azrest.output import error, format_response, get_output, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(
    profile: Optional[str] = typer.Argument(
        None, help="Show this profile instead of the global config."
    ),
) -> None:
    """Show current configuration.

    Prints the config directory path followed by the global configuration,
    or by one profile when a name is given.

    Example::

        azrest config show
        azrest config show public --json
    """
    from azrest.config import get_config_dir, load_global_config, load_profile
    from azrest.exceptions import ConfigError

    info(f"Config directory: {get_config_dir()}")
    if profile is None:
        format_response(load_global_config().model_dump(mode="json"))
        return
    try:
        loaded = load_profile(profile)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=2) from None
    format_response(loaded.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'output.format')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. The value is coerced to match the
    existing field's type (bool, int, or str) and the result is validated
    against :class:`~azrest.models.GlobalConfig` before saving.

    Raises:
        typer.Exit: With code 2 if the key path is invalid, the value
            cannot be coerced, or validation fails.

    Example::

        azrest config set default_profile public
        azrest config set output.format json
        azrest config set metadata_path ~/azure-metadata
    """
    from pydantic import ValidationError

    from azrest.config import load_global_config, save_global_config
    from azrest.models import GlobalConfig

    config = load_global_config()
    data = config.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    current = target[final_key]
    coerced: object = value
    if isinstance(current, bool):
        coerced = value.lower() in ("true", "1", "yes")
    elif isinstance(current, int):
        try:
            coerced = int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=2) from None

    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Reset the global configuration to defaults.

    Profiles are left untouched. Asks for confirmation unless ``--force``
    is given.

    Example::

        azrest config reset --force
    """
    from azrest.config import save_global_config
    from azrest.models import GlobalConfig

    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")


@config_app.command("profiles")
def config_profiles() -> None:
    """List saved profiles.

    The default profile is marked with ``*``.
    """
    from azrest.config import list_profiles, load_global_config, load_profile

    names = list_profiles()
    if not names:
        info("No profiles saved. Run: azrest config add-profile <name>")
        return

    default = load_global_config().default_profile
    rows: list[list[str]] = []
    for name in names:
        profile = load_profile(name)
        rows.append([
            f"{name} *" if name == default else name,
            profile.endpoint,
            profile.metadata_path or "-",
            profile.auth.source if profile.auth else "-",
        ])
    get_output().print_table(
        ["Profile", "Endpoint", "Metadata", "Credential"], rows, title="Profiles"
    )


@config_app.command("add-profile")
def config_add_profile(
    name: str = typer.Argument(help="Profile name."),
    endpoint: Optional[str] = typer.Option(
        None, "--endpoint", help="Service base URL."
    ),
    metadata: Optional[str] = typer.Option(
        None, "--metadata", "-m", help="Metadata bundle directory."
    ),
    source: Optional[str] = typer.Option(
        None,
        "--source",
        "-s",
        help="Token source: env:VAR, file:/path, prompt.",
    ),
    make_default: bool = typer.Option(
        False, "--default", help="Make this the default profile."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing profile."
    ),
) -> None:
    """Create or replace a profile.

    Example::

        azrest config add-profile public --metadata ~/azure-metadata
        azrest config add-profile china --endpoint https://management.chinacloudapi.cn \\
            --source file:~/.azure/china-token --default
    """
    from azrest.config import (
        load_global_config,
        profile_exists,
        save_global_config,
        save_profile,
    )
    from azrest.models import AuthConfig, Profile

    if profile_exists(name) and not force:
        error(f"Profile '{name}' already exists. Use --force to overwrite.")
        raise typer.Exit(code=2)

    profile = Profile(name=name, metadata_path=metadata)
    if endpoint is not None:
        profile.endpoint = endpoint
    if source is not None:
        profile.auth = AuthConfig(source=source)
    save_profile(profile)
    success(f"Profile '{name}' saved.")

    if make_default:
        config = load_global_config()
        config.default_profile = name
        save_global_config(config)
        info(f"Default profile set to '{name}'.")


@config_app.command("use")
def config_use(
    name: str = typer.Argument(help="Profile to make the default."),
) -> None:
    """Set the default profile."""
    from azrest.config import load_global_config, profile_exists, save_global_config

    if not profile_exists(name):
        error(f"Profile '{name}' not found.")
        raise typer.Exit(code=2)

    config = load_global_config()
    config.default_profile = name
    save_global_config(config)
    success(f"Default profile set to '{name}'.")
