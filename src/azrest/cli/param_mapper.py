"""Map command-metadata arguments to Typer CLI options.

This module converts :class:`~azrest.metadata.command.Arg` entries into
descriptor dictionaries that
:func:`~azrest.cli.command_tree._build_command_function` uses to construct
dynamically generated function signatures, and converts parsed option
values back into :class:`~azrest.engine.arguments.BoundArgs` entries.

**Mapping rules:**

* Every metadata option becomes a flag: one-character names are short
  flags (``-g``), longer names are long flags (``--resource-group``).
  The first short and first long flag are primary, the rest are aliases.
* Options are grouped in ``--help`` by their argument group
  (``rich_help_panel``).
* ``integer*`` arguments are parsed as ``int`` by Click; ``boolean``
  arguments take ``true`` / ``false``; everything else is text.
* ``object`` and ``array*`` values are JSON text and are bound as
  :class:`~azrest.engine.arguments.RawJson`. They also accept
  ``@path`` to read the JSON from a file.
"""

from __future__ import annotations

import enum
import json
import keyword
import re
from pathlib import Path
from typing import Any, Optional

import typer

from azrest.engine.arguments import ArgValue, RawJson
from azrest.engine.cli_expander import ID_OPTION, Shell
from azrest.exceptions import InvalidUsageError
from azrest.metadata.command import Arg
from azrest.metadata.schema import SchemaKind, classify_type

IDENTITY_PANEL = "Resource Id Arguments"
GLOBAL_PANEL = "Global Arguments"
STDIN_OPTION = "stdin"


class BoolChoice(str, enum.Enum):
    """Accepted values of a boolean argument."""

    TRUE = "true"
    FALSE = "false"


def api_version_choice(versions: list[str]) -> type[enum.Enum]:
    """Build the choice type offered by ``--api-version``, one member per version."""
    return enum.Enum("ApiVersion", [(v, v) for v in sorted(versions)], type=str)  # type: ignore[return-value]


def plain_value(value: Any) -> Any:
    """Unwrap a choice member into the string it stands for."""
    return value.value if isinstance(value, enum.Enum) else value


# ---------------------------------------------------------------------------
# Name sanitisation
# ---------------------------------------------------------------------------

# Matches any character that is not alphanumeric or underscore.
_INVALID_IDENT_RE = re.compile(r"[^a-zA-Z0-9_]")


def sanitize_param_name(name: str) -> str:
    """Convert an option name or argument variable to a Python identifier.

    CamelCase boundaries are split, the result is lowercased, separators
    become underscores, a leading digit gets an underscore prefix, and
    Python keywords get a trailing underscore.

    Example::

        >>> sanitize_param_name("resource-group")
        'resource_group'
        >>> sanitize_param_name("$Path.subscriptionId")
        'path_subscription_id'
        >>> sanitize_param_name("if")
        'if_'
    """
    result = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    result = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", result)
    result = result.lower()
    result = _INVALID_IDENT_RE.sub("_", result)
    result = re.sub(r"_+", "_", result).strip("_")
    if not result:
        result = "param"
    if result[0].isdigit():
        result = f"_{result}"
    if keyword.iskeyword(result):
        result = f"{result}_"
    return result


def option_flags(options: list[str]) -> list[str]:
    """Render metadata option names as Click flags, primaries first.

    Example::

        >>> option_flags(["n", "name", "resource-group-name"])
        ['--name', '-n', '--resource-group-name']
    """
    longs = [f"--{opt}" for opt in options if len(opt) > 1]
    shorts = [f"-{opt}" for opt in options if len(opt) == 1]
    return longs[:1] + shorts[:1] + shorts[1:] + longs[1:]


def primary_option(arg: Arg) -> Optional[str]:
    """Return the first long option name of *arg*, else its first option."""
    longs = [opt for opt in arg.options if len(opt) > 1]
    if longs:
        return longs[0]
    return arg.options[0] if arg.options else None


# ---------------------------------------------------------------------------
# Argument mapping
# ---------------------------------------------------------------------------


def map_arg_to_typer(arg: Arg, panel: str) -> dict[str, Any]:
    """Map a metadata :class:`~azrest.metadata.command.Arg` to a descriptor dict.

    Args:
        arg: The argument definition.
        panel: Help panel the option is listed under.

    Returns:
        A dict with the keys:

        * ``name`` -- Python-safe parameter name (may be de-duplicated later).
        * ``key`` -- the argument ``var``; the key in the bound arguments.
        * ``option`` -- the primary option name, used by ``--print-cli``.
        * ``kind`` -- the :class:`~azrest.metadata.schema.SchemaKind`.
        * ``type`` -- Python annotation for the parameter.
        * ``default`` -- the :func:`typer.Option` descriptor.
        * ``id_part`` / ``required`` -- identity and requiredness flags.
    """
    kind = classify_type(arg.type)
    help_text = arg.help.short if arg.help and arg.help.short else ""
    if arg.id_part is not None:
        help_text = f'{help_text} This conflicts with the "{ID_OPTION}"'.strip()
    if kind in (SchemaKind.OBJECT, SchemaKind.ARRAY):
        help_text = f"{help_text} (JSON, or @file)".strip()

    option_kwargs: dict[str, Any] = {
        "help": help_text or None,
        "rich_help_panel": panel,
        "metavar": "VALUE",
    }
    py_type: Any = Optional[str]
    if kind == SchemaKind.INTEGER:
        py_type = Optional[int]
    elif kind == SchemaKind.BOOLEAN:
        py_type = Optional[BoolChoice]
        option_kwargs["case_sensitive"] = False

    option = primary_option(arg)
    return {
        "name": sanitize_param_name(option or arg.var),
        "key": arg.var,
        "option": option,
        "kind": kind,
        "type": py_type,
        "default": typer.Option(None, *option_flags(arg.options), **option_kwargs),
        "id_part": arg.id_part is not None,
        "required": bool(arg.required),
    }


def coerce_value(kind: SchemaKind, raw: Any) -> Optional[ArgValue]:
    """Convert a parsed option value into a bound-argument value.

    Returns ``None`` for an option that was not given.

    Raises:
        InvalidUsageError: An ``@path`` file cannot be read.
    """
    raw = plain_value(raw)
    if raw is None:
        return None
    if kind in (SchemaKind.OBJECT, SchemaKind.ARRAY):
        text = str(raw)
        if text.startswith("@"):
            text = read_text_file(text[1:])
        return RawJson(text)
    if kind == SchemaKind.BOOLEAN:
        return str(raw).lower() == "true"
    if kind == SchemaKind.INTEGER:
        return int(raw)
    return str(raw)


def read_text_file(path: str) -> str:
    file_path = Path(path).expanduser()
    if not file_path.is_file():
        raise InvalidUsageError(f"file not found: {file_path}")
    try:
        return file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InvalidUsageError(f"cannot read {file_path}: {exc}") from exc


# ---------------------------------------------------------------------------
# Built-in options
# ---------------------------------------------------------------------------


def build_api_version_option(versions: list[str]) -> dict[str, Any]:
    """Build the ``--api-version`` descriptor, a choice of the known versions."""
    return {
        "name": "api_version",
        "type": Optional[api_version_choice(versions)],
        "default": typer.Option(
            None,
            "--api-version",
            help="API version (default: max)",
            rich_help_panel=GLOBAL_PANEL,
        ),
    }


def build_id_option(id_options: list[str]) -> dict[str, Any]:
    """Build the ``--id`` descriptor.

    Args:
        id_options: Long option names of the identity arguments that
            ``--id`` replaces, listed in the help text.
    """
    help_text = (
        'The full resource ID. Use "-" to read a JSON object from stdin and '
        f'extract its "id" field. This conflicts with {json.dumps(id_options)}'
    )
    return {
        "name": "id_",
        "type": Optional[str],
        "default": typer.Option(
            None, f"--{ID_OPTION}", help=help_text, rich_help_panel=IDENTITY_PANEL
        ),
    }


def build_stdin_option() -> dict[str, Any]:
    """Build the ``--stdin`` (bulk mode) descriptor."""
    return {
        "name": "stdin",
        "type": bool,
        "default": typer.Option(
            False,
            f"--{STDIN_OPTION}",
            help=(
                'Read JSON objects from stdin, one per line, and run the command '
                'for each; the "id" field selects the resource and, for a PUT, '
                "the other fields form the request body"
            ),
            rich_help_panel=IDENTITY_PANEL,
        ),
    }


def build_payload_options() -> list[dict[str, Any]]:
    """Build the ``--file``, ``--edit``, and ``--print-cli`` descriptors."""
    return [
        {
            "name": "file",
            "type": Optional[Path],
            "default": typer.Option(
                None,
                "--file",
                "-f",
                metavar="PATH",
                help="Read request payload (JSON) from the file",
                rich_help_panel=GLOBAL_PANEL,
            ),
        },
        {
            "name": "edit",
            "type": bool,
            "default": typer.Option(
                False,
                "--edit",
                "-e",
                help="Open default editor to compose request payload",
                rich_help_panel=GLOBAL_PANEL,
            ),
        },
        {
            "name": "print_cli",
            "type": Optional[Shell],
            "default": typer.Option(
                None,
                "--print-cli",
                help=(
                    "Print the equivalent CLI command instead of executing it, "
                    'useful when combined with "--file" or "--edit"'
                ),
                rich_help_panel=GLOBAL_PANEL,
            ),
        },
    ]
