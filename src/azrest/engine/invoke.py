"""The invocation pipeline: select, build, send, route.

:class:`CommandInvoker` ties the engine to a metadata store and a
transport. One call of :meth:`CommandInvoker.invoke` produces exactly one
HTTP request. :meth:`CommandInvoker.invoke_bulk` runs the same pipeline
once per input record, sequentially, selecting each operation by the
record's resource ID.

The transport is anything with an ``execute`` method matching
:class:`Transport`; :class:`~azrest.client.sync_client.SyncClient` is the
production implementation.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Protocol, Sequence

from azrest.engine.arguments import BoundArgs
from azrest.engine.request import API_VERSION, RequestSpec, build_request, prune_body
from azrest.engine.resource_id import ResourceId
from azrest.engine.response import route_response
from azrest.engine.selector import select_operation
from azrest.exceptions import ConfigError, InvalidUsageError, MetadataIntegrityError
from azrest.metadata.command import Command, Operation
from azrest.metadata.index import CommandLocation, locate_command
from azrest.metadata.store import MetadataStore


@dataclass(frozen=True)
class TransportResponse:
    """Status code and raw body bytes returned by a transport."""

    status_code: int
    content: bytes


class Transport(Protocol):
    """Sends one request to the service endpoint with a bearer credential."""

    def execute(
        self,
        method: str,
        path: str,
        api_version: Optional[str],
        body: Any = None,
        query: Optional[dict[str, Any]] = None,
    ) -> TransportResponse:
        ...


BulkRenderer = Callable[[Any, str], str]
"""Called with ``(body, resource_id)`` instead of sending, in bulk mode."""


class CommandInvoker:
    """Run commands from a metadata store against a transport.

    Args:
        store: Source of the index and command documents.
        transport: Sends built requests. May be ``None`` when only
            rendering (``--print-cli``) or building requests.

    Example::

        invoker = CommandInvoker(FileMetadataStore("./metadata"), client)
        location = invoker.locate(["resources", "group", "show"])
        command = invoker.load(location)
        text = invoker.invoke(command, BoundArgs({...}))
    """

    def __init__(self, store: MetadataStore, transport: Optional[Transport] = None) -> None:
        self.store = store
        self.transport = transport

    def locate(self, segments: Sequence[str], version: Optional[str] = None) -> CommandLocation:
        return locate_command(self.store.get_index(), segments, version)

    def load(self, location: CommandLocation) -> Command:
        return self.store.get_command(location.document_id)

    def prepare(
        self,
        command: Command,
        bound: BoundArgs,
        resource_id: Optional[ResourceId] = None,
        body: Any = None,
        api_version: Optional[str] = None,
    ) -> tuple[Operation, RequestSpec]:
        """Select the operation and build its request without sending it."""
        operation = select_operation(command, bound, resource_id)
        request = build_request(
            operation, bound, resource_id=resource_id, body=body, api_version=api_version
        )
        return operation, request

    def invoke(
        self,
        command: Command,
        bound: BoundArgs,
        resource_id: Optional[ResourceId] = None,
        body: Any = None,
        api_version: Optional[str] = None,
    ) -> str:
        """Select, build, send, and route a single request.

        Returns:
            The response body text of a declared response.

        Raises:
            ResponseError: The status code is not declared by the operation.
        """
        operation, request = self.prepare(command, bound, resource_id, body, api_version)
        return self.send(operation, request)

    def send(self, operation: Operation, request: RequestSpec) -> str:
        """Send a built request and route the response."""
        if self.transport is None:
            raise ConfigError("no transport configured for sending requests")
        if operation.http is None:
            raise MetadataIntegrityError(
                f'HTTP information not found for operation "{operation.operation_id or ""}"'
            )
        extra_query = {k: v for k, v in request.query.items() if k != API_VERSION}
        response = self.transport.execute(
            request.method,
            request.path,
            request.api_version,
            body=request.body,
            query=extra_query or None,
        )
        return route_response(response.status_code, response.content, operation.http.responses)

    def invoke_bulk(
        self,
        command: Command,
        lines: Iterable[str],
        bound: Optional[BoundArgs] = None,
        api_version: Optional[str] = None,
        render: Optional[BulkRenderer] = None,
    ) -> str:
        """Run the command once per JSON record in *lines*.

        Each non-blank line is a JSON object with a string ``"id"``. The
        operation is selected by that ID. For a PUT the remaining members,
        pruned to the body schema, become the request body. When *render*
        is given it is called instead of sending.

        Returns:
            The per-record results joined by newlines, in input order.
        """
        bound = bound if bound is not None else BoundArgs()
        results: list[str] = []
        for line in lines:
            if not line.strip():
                continue
            record = _parse_record(line)
            resource_id = ResourceId(record.pop("id"))
            operation = select_operation(command, bound, resource_id)

            body = None
            if operation.method == "PUT":
                schema = operation.body_schema
                body = prune_body(schema, record) if schema is not None else record

            if render is not None:
                results.append(render(body, resource_id.id))
                continue
            request = build_request(
                operation, bound, resource_id=resource_id, body=body, api_version=api_version
            )
            results.append(self.send(operation, request))
        return "\n".join(results)


def _parse_record(line: str) -> dict[str, Any]:
    try:
        record = json.loads(line)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"input line is not valid JSON: {exc}") from exc
    if not isinstance(record, dict):
        raise InvalidUsageError("expect a JSON object per input line")
    if "id" not in record:
        raise InvalidUsageError('"id" field not found')
    if not isinstance(record["id"], str):
        raise InvalidUsageError('"id" field is not a str')
    return record
