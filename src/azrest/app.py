"""Typer application factory and CLI entry point for azrest.

This module wires together the top-level Typer application, registers the
built-in sub-commands (``config``, ``inspect``), and builds the dynamic
``api`` tree from the active metadata bundle for the command path given on
the command line.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers, builds the app, and invokes
it. :class:`~azrest.exceptions.AzrestError` instances exit with their
``exit_code``; any other exception is written to a crash log under the data
directory.

See Also:
    :mod:`azrest.config`: Profile and global configuration resolution.
    :mod:`azrest.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional, Sequence

import httpx
import typer

from azrest import __version__
from azrest.exit_codes import EXIT_GENERIC_FAILURE

API_HELP = "Directly invoke the Azure API primitives."


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"azrest {__version__}")
        raise typer.Exit()


def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile name to use."
    ),
    endpoint: Optional[str] = typer.Option(
        None, "--endpoint", help="Override the service endpoint URL."
    ),
    metadata: Optional[str] = typer.Option(
        None, "--metadata", help="Metadata bundle directory."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Print requests instead of sending them."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~azrest.output.OutputManager` from CLI
    flags and stores shared options in ``ctx.obj`` so that sub-commands can
    read them.
    """
    from azrest.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile
    ctx.obj["endpoint"] = endpoint
    ctx.obj["metadata"] = metadata
    ctx.obj["dry_run"] = dry_run
    ctx.obj["verbose"] = verbose


# ------------------------------------------------------------------ #
# App factory
# ------------------------------------------------------------------ #


def create_app(
    argv: Sequence[str],
    transport: Optional[httpx.BaseTransport] = None,
) -> typer.Typer:
    """Build the root application for one command line.

    The ``api`` tree is only read from the metadata bundle when ``api`` is
    the command named in *argv*; otherwise a help-only placeholder is mounted.

    Args:
        argv: Command-line arguments without the program name.
        transport: Optional :class:`httpx.BaseTransport` for the HTTP
            client (tests pass an :class:`httpx.MockTransport`).
    """
    from azrest.cli import api_position
    from azrest.commands.config import config_app
    from azrest.commands.inspect import inspect_app

    app = typer.Typer(
        name="azrest",
        help="Invoke Azure REST APIs from command metadata.",
        no_args_is_help=True,
        rich_markup_mode="rich",
    )
    app.callback()(main_callback)
    app.add_typer(config_app, name="config", help="Configuration management.")
    app.add_typer(inspect_app, name="inspect", help="Inspect command metadata.")

    if api_position(argv) is not None:
        app.add_typer(_load_api_commands(argv, transport), name="api", help=API_HELP)
    else:
        app.add_typer(typer.Typer(no_args_is_help=True), name="api", help=API_HELP)
    return app


def _load_api_commands(
    argv: Sequence[str],
    transport: Optional[httpx.BaseTransport] = None,
) -> typer.Typer:
    """Build the ``api`` tree for the command path in *argv*.

    Global options are needed before Typer has parsed anything, so
    ``--profile``, ``--endpoint``, and ``--metadata`` are read from the
    tokens preceding ``api``.
    """
    from azrest.auth import create_default_manager
    from azrest.cli import Invocation, api_position, build_api_app, run_invocation, target_segments
    from azrest.client import SyncClient
    from azrest.config import resolve_config, resolve_metadata_path
    from azrest.engine import CommandInvoker, RequestSpec
    from azrest.engine.request import API_VERSION
    from azrest.metadata import FileMetadataStore
    from azrest.output import debug, format_response, print_data

    head = list(argv[: api_position(argv)])
    global_cfg, profile = resolve_config(
        cli_profile=_option_value(head, ("--profile", "-p")),
        cli_endpoint=_option_value(head, ("--endpoint",)),
    )
    root = resolve_metadata_path(global_cfg, profile, _option_value(head, ("--metadata",)))
    store = FileMetadataStore(root)

    def _invoke(invocation: Invocation) -> None:
        dry_run = bool(invocation.options.get("dry_run"))
        debug(f"Command document: {invocation.location.document_id}")

        needs_auth = not (dry_run or invocation.print_cli)
        with SyncClient(
            profile,
            auth_manager=create_default_manager() if needs_auth else None,
            transport=transport,
        ) as client:

            def _preview(request: RequestSpec) -> None:
                extra = {k: v for k, v in request.query.items() if k != API_VERSION}
                client.preview(
                    request.method, request.path, request.api_version, request.body, extra
                )

            result = run_invocation(
                invocation,
                CommandInvoker(store, client),
                preview=_preview if dry_run else None,
            )

        if result is None:
            return
        if invocation.print_cli or invocation.stdin:
            print_data(result)
        else:
            format_response(result)

    segments, api_version = target_segments(argv)
    return build_api_app(store, segments, _invoke, api_version)


def _option_value(tokens: Sequence[str], names: Sequence[str]) -> Optional[str]:
    """Return the value of the last of *names* in *tokens*, or ``None``."""
    value: Optional[str] = None
    for position, token in enumerate(tokens):
        if token in names and position + 1 < len(tokens):
            value = tokens[position + 1]
        for name in names:
            if name.startswith("--") and token.startswith(f"{name}="):
                value = token.split("=", 1)[1]
    return value


# ------------------------------------------------------------------ #
# Process-level handling
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from azrest.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``azrest`` console script.

    Unhandled :class:`~azrest.exceptions.AzrestError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app = create_app(sys.argv[1:])
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from azrest.exceptions import AzrestError
        from azrest.output import error

        if isinstance(exc, AzrestError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
