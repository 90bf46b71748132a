"""Inspect commands -- examine command metadata.

Provides the ``azrest inspect`` sub-command group with read-only views of
the active metadata bundle: the operations, conditions and arguments of a
command document, and the request-body schema node at a dotted path.
Both commands take the command path as positional segments, exactly as
they would follow ``azrest api``.
"""

from __future__ import annotations

from typing import Optional

import typer

from azrest.output import error, format_response, get_output, info


inspect_app = typer.Typer(no_args_is_help=True)


def _load_command(ctx: typer.Context, segments: list[str], api_version: Optional[str]):  # noqa: ANN202
    """Resolve the active store and load the command document at *segments*.

    Returns:
        A ``(CommandLocation, Command)`` tuple.
    """
    from azrest.config import resolve_config, resolve_metadata_path
    from azrest.metadata import FileMetadataStore, locate_command

    obj = ctx.obj or {}
    global_cfg, profile = resolve_config(cli_profile=obj.get("profile"))
    root = resolve_metadata_path(global_cfg, profile, obj.get("metadata"))
    store = FileMetadataStore(root)
    location = locate_command(store.get_index(), segments, api_version)
    return location, store.get_command(location.document_id)


@inspect_app.command("command")
def inspect_command(
    ctx: typer.Context,
    segments: list[str] = typer.Argument(help="Command path, e.g. resources group create."),
    api_version: Optional[str] = typer.Option(
        None, "--api-version", help="API version (default: max)."
    ),
) -> None:
    """Show the operations and arguments of a command.

    Example::

        azrest inspect command network vnet list
        azrest inspect command resources group create --api-version 2024-11-01
    """
    location, command = _load_command(ctx, segments, api_version)
    output = get_output()

    info(
        f"{' '.join(location.segments)} @ {location.version} "
        f"(versions: {', '.join(sorted(location.entry.versions))})"
    )

    op_rows: list[list[str]] = []
    for operation in command.operations:
        http = operation.http
        op_rows.append([
            operation.operation_id or "-",
            operation.method or "-",
            http.path if http else "-",
            ", ".join(operation.when or []) or "-",
        ])
    output.print_table(["Operation", "Method", "Path", "When"], op_rows, title="Operations")

    arg_rows: list[list[str]] = []
    for group in command.arg_groups:
        for arg in group.args:
            flags = ", ".join(f"-{o}" if len(o) == 1 else f"--{o}" for o in arg.options)
            arg_rows.append([
                group.name or "(identity)",
                flags or "-",
                arg.type,
                arg.var,
                "id" if arg.id_part is not None else ("yes" if arg.required else ""),
                "hidden" if arg.is_hidden else "",
            ])
    output.print_table(
        ["Group", "Options", "Type", "Var", "Required", "Hidden"], arg_rows, title="Arguments"
    )


@inspect_app.command("schema")
def inspect_schema(
    ctx: typer.Context,
    segments: list[str] = typer.Argument(help="Command path, e.g. resources group create."),
    path: str = typer.Option(
        "", "--path", help="Dotted member path inside the request body, e.g. properties.tags."
    ),
    operation_id: Optional[str] = typer.Option(
        None, "--operation", help="Operation id (default: the first operation with a body)."
    ),
    api_version: Optional[str] = typer.Option(
        None, "--api-version", help="API version (default: max)."
    ),
) -> None:
    """Show the request-body schema node at a dotted path.

    Example::

        azrest inspect schema resources group create --path tags
    """
    from azrest.engine import schema_at

    _, command = _load_command(ctx, segments, api_version)

    candidates = [op for op in command.operations if op.body_schema is not None]
    if operation_id is not None:
        candidates = [op for op in candidates if op.operation_id == operation_id]
    if not candidates:
        error("No operation with a request body matches.")
        raise typer.Exit(code=4)

    node = schema_at(candidates[0], path)
    if node is None:
        error(f"No schema node at path: {path}")
        raise typer.Exit(code=4)
    format_response(node.model_dump(mode="json", by_alias=True, exclude_none=True))
