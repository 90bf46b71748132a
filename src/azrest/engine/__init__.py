"""Metadata resolution and invocation engine.

The engine is pure apart from the transport call in
:class:`~azrest.engine.invoke.CommandInvoker`: it reads frozen metadata and
read-only bound arguments, raises typed errors from
:mod:`azrest.exceptions`, and never prints.

Typical usage::

    from azrest.engine import build_request, route_response, select_operation

    operation = select_operation(command, bound)
    request = build_request(operation, bound)
    text = route_response(status, content, operation.http.responses)
"""

from azrest.engine.arguments import ArgValue, BoundArgs, RawJson
from azrest.engine.cli_expander import CliExpander, Shell
from azrest.engine.conditions import condition_for_resource_id, evaluate, select_condition
from azrest.engine.invoke import CommandInvoker, Transport, TransportResponse
from azrest.engine.request import RequestSpec, build_body, build_request, prune_body, schema_at
from azrest.engine.resource_id import ResourceId, resource_id_from_json
from azrest.engine.response import route_response
from azrest.engine.selector import select_operation
from azrest.metadata.index import locate_command

__all__ = [
    "ArgValue",
    "BoundArgs",
    "CliExpander",
    "CommandInvoker",
    "RawJson",
    "RequestSpec",
    "ResourceId",
    "Shell",
    "Transport",
    "TransportResponse",
    "build_body",
    "build_request",
    "condition_for_resource_id",
    "evaluate",
    "locate_command",
    "prune_body",
    "resource_id_from_json",
    "route_response",
    "schema_at",
    "select_condition",
    "select_operation",
]
