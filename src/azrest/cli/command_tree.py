"""Build the ``azrest api`` Typer tree from the command index.

The index of a metadata bundle can describe thousands of commands, and each
command document has to be read to know its options. The tree is therefore
built lazily along a single path:

1. The positional segments after ``api`` on the command line are the
   *target* (see :func:`target_segments`).
2. Every group and command on the target path is materialised in full;
   every other node becomes a help-only stub so that ``--help`` listings
   stay complete.
3. The leaf command is a dynamically generated function whose signature
   carries one :func:`typer.Option` per visible metadata argument plus the
   built-in ``--api-version``, ``--id``, ``--stdin``, ``--file``,
   ``--edit``, and ``--print-cli`` options.
4. When the leaf runs, identity-argument conflicts are checked, values are
   coerced into :class:`~azrest.engine.arguments.BoundArgs`, and an
   :class:`Invocation` is handed to the callback.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, Union

import typer

from azrest.cli.param_mapper import (
    IDENTITY_PANEL,
    build_api_version_option,
    build_id_option,
    build_payload_options,
    build_stdin_option,
    coerce_value,
    map_arg_to_typer,
    plain_value,
    primary_option,
    sanitize_param_name,
)
from azrest.engine.arguments import ArgValue, BoundArgs
from azrest.engine.cli_expander import ID_OPTION
from azrest.exceptions import InvalidUsageError
from azrest.metadata.command import Command, Help
from azrest.metadata.index import CommandGroup, CommandLocation, Index, locate_command
from azrest.metadata.store import MetadataStore


@dataclass
class Invocation:
    """Everything a leaf command collected from the command line.

    Attributes:
        location: Where the command document was found.
        command: The loaded command document.
        bound: Coerced argument values keyed by metadata ``var``.
        supplied: ``(option, value)`` pairs as given, for ``--print-cli``.
        resource_id: Raw ``--id`` value (``"-"`` means read from stdin).
        stdin: Bulk mode was requested.
        file: Payload file given with ``--file``.
        edit: ``--edit`` was given.
        print_cli: Target shell for ``--print-cli``.
        api_version: Explicit ``--api-version``.
        options: Values of the root options, such as ``dry_run``.
    """

    location: CommandLocation
    command: Command
    bound: BoundArgs = field(default_factory=BoundArgs)
    supplied: list[tuple[str, Optional[str]]] = field(default_factory=list)
    resource_id: Optional[str] = None
    stdin: bool = False
    file: Optional[Path] = None
    edit: bool = False
    print_cli: Optional[str] = None
    api_version: Optional[str] = None
    options: dict[str, Any] = field(default_factory=dict)


InvokeCallback = Callable[[Invocation], Any]

_BUILTIN_NAMES = frozenset({"ctx", "api_version", "id_", "stdin", "file", "edit", "print_cli"})

# Root options that take a value; the token after them is not a command.
ROOT_VALUE_OPTIONS = frozenset({"--profile", "-p", "--endpoint", "--metadata"})


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def api_position(argv: Sequence[str]) -> Optional[int]:
    """Return the index of the ``api`` command token in *argv*, or ``None``.

    Only the first positional token after the root options counts, so
    ``config add-profile api`` or ``--profile api`` do not select the
    ``api`` tree.
    """
    skip_value = False
    for position, token in enumerate(argv):
        if skip_value:
            skip_value = False
        elif token in ROOT_VALUE_OPTIONS:
            skip_value = True
        elif not token.startswith("-"):
            return position if token == "api" else None
    return None


def target_segments(argv: Sequence[str]) -> tuple[list[str], Optional[str]]:
    """Extract the positional command path and ``--api-version`` after ``api``.

    Args:
        argv: Command-line arguments without the program name.

    Returns:
        ``(segments, api_version)``. *segments* is empty when the command
        is not ``api`` or ``api`` is followed directly by an option.

    Example::

        >>> target_segments(["-q", "api", "resources", "group", "show", "--api-version", "2024-11-01"])
        (['resources', 'group', 'show'], '2024-11-01')
    """
    position = api_position(argv)
    if position is None:
        return [], None
    tail = list(argv[position + 1:])
    segments: list[str] = []
    for token in tail:
        if token.startswith("-"):
            break
        segments.append(token)

    version: Optional[str] = None
    for position, token in enumerate(tail):
        if token == "--api-version" and position + 1 < len(tail):
            version = tail[position + 1]
        elif token.startswith("--api-version="):
            version = token.split("=", 1)[1]
    return segments, version


def build_api_app(
    store: MetadataStore,
    target: Sequence[str],
    callback: InvokeCallback,
    api_version: Optional[str] = None,
) -> typer.Typer:
    """Build the ``api`` sub-application for *target*.

    Args:
        store: Metadata source. Only the index and, at most, the one target
            command document are read.
        target: Positional segments from the command line.
        callback: Called with the :class:`Invocation` when the leaf runs.
        api_version: Version whose document supplies the leaf's options.
            Unknown versions fall back to the latest; the ``--api-version``
            choice then rejects them with a usage error.

    Returns:
        A :class:`typer.Typer` app to mount as ``api``.
    """
    index = store.get_index()
    app = typer.Typer(
        name="api",
        help=_help_text(index.help) or "Directly invoke the Azure API primitives.",
        no_args_is_help=True,
    )
    _populate(app, index, (), tuple(target), store, callback, api_version)
    return app


# ---------------------------------------------------------------------------
# Tree construction
# ---------------------------------------------------------------------------


def _populate(
    parent: typer.Typer,
    node: Union[Index, CommandGroup],
    prefix: tuple[str, ...],
    target: tuple[str, ...],
    store: MetadataStore,
    callback: InvokeCallback,
    api_version: Optional[str],
) -> None:
    """Attach the children of *node* to *parent*, expanding only the target path."""
    depth = len(prefix)
    wanted = target[depth] if depth < len(target) else None

    for name, group in sorted(node.command_groups.items()):
        sub = typer.Typer(name=name, help=_help_text(group.help), no_args_is_help=True)
        if name == wanted:
            _populate(sub, group, prefix + (name,), target, store, callback, api_version)
        parent.add_typer(sub)

    if not isinstance(node, CommandGroup):
        return
    for name, entry in sorted(node.commands.items()):
        segments = prefix + (name,)
        if name == wanted:
            version = api_version if api_version in entry.versions else None
            location = locate_command(store.get_index(), segments, version)
            command = store.get_command(location.document_id)
            fn = _build_command_function(location, command, callback)
        else:
            fn = _build_stub(segments)
        parent.command(name=name, help=_help_text(entry.help))(fn)


def _build_stub(segments: tuple[str, ...]) -> Callable[[], None]:
    """A listing-only command; running it means the target detection missed it."""
    path = " ".join(segments)

    def _stub() -> None:
        raise InvalidUsageError(f"'{path}' could not be resolved from the command line")

    return _stub


def _help_text(help: Optional[Help]) -> Optional[str]:
    if help is None:
        return None
    parts = [help.short or ""]
    if help.lines:
        parts.append("\n\n".join(help.lines))
    return "\n\n".join(p for p in parts if p) or None


# ---------------------------------------------------------------------------
# Dynamic command function builder
# ---------------------------------------------------------------------------


def _build_command_function(
    location: CommandLocation,
    command: Command,
    callback: InvokeCallback,
) -> Callable[..., Any]:
    """Generate the Typer leaf function for *command*.

    The function source is built as a string, compiled, and executed into a
    namespace so that :mod:`inspect` (which Typer relies on) sees one
    keyword parameter per option, each defaulting to its
    :func:`typer.Option` descriptor.
    """
    builtins: list[dict[str, Any]] = [build_api_version_option(location.entry.versions)]
    arg_descriptors: list[dict[str, Any]] = []

    identity = command.identity_group
    if identity is not None:
        for arg in identity.args:
            if not arg.is_hidden:
                arg_descriptors.append(map_arg_to_typer(arg, IDENTITY_PANEL))
        id_options = [
            opt
            for opt in (primary_option(arg) for arg in identity.args if arg.id_part is not None)
            if opt is not None and len(opt) > 1
        ]
        builtins.append(build_id_option(id_options))
        builtins.append(build_stdin_option())

    if command.has_request_body:
        builtins.extend(build_payload_options())

    for group in command.arg_groups:
        if group.name == "":
            continue
        for arg in group.args:
            if not arg.is_hidden:
                arg_descriptors.append(map_arg_to_typer(arg, group.name))

    _dedupe_names(arg_descriptors)

    namespace: dict[str, Any] = {"_ctx_type": typer.Context}
    sig_parts: list[str] = ["ctx: _ctx_type"]
    for idx, desc in enumerate(builtins + arg_descriptors):
        sentinel = f"_default_{idx}"
        ann = f"_ann_{idx}"
        namespace[sentinel] = desc["default"]
        namespace[ann] = desc["type"]
        sig_parts.append(f"{desc['name']}: {ann} = {sentinel}")

    names = [desc["name"] for desc in builtins + arg_descriptors]
    collected = ", ".join(f"{name!r}: {name}" for name in names)
    func_name = "_cmd_" + sanitize_param_name("_".join(location.segments))
    source = (
        f"def {func_name}({', '.join(sig_parts)}):\n"
        f"    return _dispatch(ctx, {{{collected}}})\n"
    )

    namespace["_dispatch"] = _make_dispatch(location, command, arg_descriptors, callback)
    code = compile(source, f"<azrest:{location.document_id}>", "exec")
    exec(code, namespace)  # noqa: S102 -- controlled code generation
    fn = namespace[func_name]
    fn.__doc__ = _help_text(location.entry.help)
    return fn


def _dedupe_names(descriptors: list[dict[str, Any]]) -> None:
    used = set(_BUILTIN_NAMES)
    for desc in descriptors:
        name = desc["name"]
        candidate, n = name, 2
        while candidate in used:
            candidate = f"{name}_{n}"
            n += 1
        desc["name"] = candidate
        used.add(candidate)


def _make_dispatch(
    location: CommandLocation,
    command: Command,
    arg_descriptors: list[dict[str, Any]],
    callback: InvokeCallback,
) -> Callable[[typer.Context, dict[str, Any]], Any]:
    """Return the function the generated leaf delegates to."""

    def _dispatch(ctx: typer.Context, values: dict[str, Any]) -> Any:
        id_value = values.get("id_")
        use_stdin = bool(values.get("stdin"))
        if id_value is not None and use_stdin:
            raise InvalidUsageError(f'"--{ID_OPTION}" conflicts with "--stdin"')
        if values.get("file") is not None and values.get("edit"):
            raise InvalidUsageError('"--file" conflicts with "--edit"')

        api_version = plain_value(values.get("api_version"))
        supplied: list[tuple[str, Optional[str]]] = []
        if api_version is not None:
            supplied.append(("api-version", api_version))

        bound: dict[str, Optional[ArgValue]] = {}
        for desc in arg_descriptors:
            value = plain_value(values[desc["name"]])
            flag = f"--{desc['option']}" if desc["option"] else desc["key"]
            if desc["id_part"]:
                if value is not None and (id_value is not None or use_stdin):
                    raise InvalidUsageError(f'"{flag}" conflicts with "--{ID_OPTION}"')
                if value is None and desc["required"] and id_value is None and not use_stdin:
                    raise InvalidUsageError(
                        f'the argument "{flag}" is required unless "--{ID_OPTION}" is given'
                    )
            if value is None:
                continue
            bound[desc["key"]] = coerce_value(desc["kind"], value)
            supplied.append((desc["option"] or desc["key"], str(value)))

        return callback(
            Invocation(
                location=location,
                command=command,
                bound=BoundArgs(bound),
                supplied=supplied,
                resource_id=id_value,
                stdin=use_stdin,
                file=values.get("file"),
                edit=bool(values.get("edit")),
                print_cli=plain_value(values.get("print_cli")),
                api_version=api_version,
                options=dict(ctx.find_root().obj or {}),
            )
        )

    return _dispatch
