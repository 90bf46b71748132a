"""Execute an :class:`~azrest.cli.command_tree.Invocation`.

The runner sits between the generated leaf commands and the engine. It
resolves the inputs that need I/O (``--id -`` and ``--stdin`` read stdin,
``--file`` reads a file, ``--edit`` opens ``$EDITOR``), then either renders
the equivalent command line (``--print-cli``), previews the request
(``--dry-run``), or sends it through the
:class:`~azrest.engine.invoke.CommandInvoker`.

Nothing is printed here; the caller writes the returned text to stdout.
"""

from __future__ import annotations

import json
import sys
from typing import Any, Callable, Optional, TextIO

import typer

from azrest.cli.command_tree import Invocation
from azrest.cli.param_mapper import read_text_file
from azrest.engine.cli_expander import CliExpander, Shell
from azrest.engine.invoke import BulkRenderer, CommandInvoker
from azrest.engine.request import RequestSpec
from azrest.engine.resource_id import ResourceId, resource_id_from_json
from azrest.engine.selector import select_operation
from azrest.exceptions import InvalidUsageError

PROG_NAME = "azrest"

Previewer = Callable[[RequestSpec], None]


def run_invocation(
    invocation: Invocation,
    invoker: CommandInvoker,
    preview: Optional[Previewer] = None,
    stdin: Optional[TextIO] = None,
) -> Optional[str]:
    """Run one invocation and return the text to print.

    Args:
        invocation: What the leaf command collected.
        invoker: Engine entry point bound to a store and a transport.
        preview: When given (``--dry-run``), called with each built request
            instead of sending it. Nothing is returned in that case.
        stdin: Stream for ``--id -`` and ``--stdin``; defaults to
            :data:`sys.stdin`.

    Returns:
        Response text(s), a rendered command line, or ``None`` after a
        preview.
    """
    stream = stdin if stdin is not None else sys.stdin
    command = invocation.command
    shell = Shell.parse(invocation.print_cli) if invocation.print_cli else None

    if invocation.stdin:
        return _run_bulk(invocation, invoker, stream, shell, preview)

    resource_id: Optional[ResourceId] = None
    if invocation.resource_id == "-":
        resource_id = resource_id_from_json(stream.read())
    elif invocation.resource_id is not None:
        resource_id = ResourceId(invocation.resource_id)

    operation = select_operation(command, invocation.bound, resource_id)

    body: Any = None
    if operation.carries_body:
        if invocation.file is not None:
            body = _parse_payload(read_text_file(str(invocation.file)))
        elif invocation.edit:
            body = _parse_payload(compose_in_editor())

        if shell is not None:
            return render_cli(
                invocation, shell, body, resource_id.id if resource_id is not None else None
            )

    operation, request = invoker.prepare(
        command,
        invocation.bound,
        resource_id=resource_id,
        body=body,
        api_version=invocation.api_version,
    )
    if preview is not None:
        preview(request)
        return None
    return invoker.send(operation, request)


def render_cli(
    invocation: Invocation,
    shell: Shell,
    body: Any = None,
    resource_id: Optional[str] = None,
) -> str:
    """Render the equivalent ``azrest api ...`` command line."""
    expander = CliExpander(
        shell,
        invocation.command.arg_groups,
        supplied=invocation.supplied,
        body=body,
        resource_id=resource_id,
    )
    return " ".join([PROG_NAME, "api", *invocation.location.segments, *expander.expand()])


def compose_in_editor(initial: str = "") -> str:
    """Open ``$EDITOR`` on a JSON file and return what was saved.

    Raises:
        InvalidUsageError: The editor was closed without saving, or the
            payload is empty.
    """
    content = typer.edit(initial, extension=".json", require_save=True)
    if content is None or not content.strip():
        raise InvalidUsageError("Aborting due to empty body")
    return content.strip()


def _run_bulk(
    invocation: Invocation,
    invoker: CommandInvoker,
    stream: TextIO,
    shell: Optional[Shell],
    preview: Optional[Previewer],
) -> Optional[str]:
    command = invocation.command

    def _print_cli(body: Any, resource_id: str) -> str:
        assert shell is not None
        return render_cli(invocation, shell, body, resource_id)

    def _preview(body: Any, resource_id: str) -> str:
        assert preview is not None
        _, request = invoker.prepare(
            command,
            invocation.bound,
            resource_id=ResourceId(resource_id),
            body=body,
            api_version=invocation.api_version,
        )
        preview(request)
        return ""

    render: Optional[BulkRenderer] = None
    if shell is not None:
        render = _print_cli
    elif preview is not None:
        render = _preview

    result = invoker.invoke_bulk(
        command,
        stream,
        bound=invocation.bound,
        api_version=invocation.api_version,
        render=render,
    )
    if preview is not None and shell is None:
        return None
    return result


def _parse_payload(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"parsing the payload as JSON: {exc}") from exc
