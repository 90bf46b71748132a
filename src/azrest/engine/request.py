"""Build the HTTP request for a selected operation.

:func:`build_request` turns an :class:`~azrest.metadata.command.Operation`
plus the bound arguments into a :class:`RequestSpec` (method, path, query,
JSON body). The body is assembled from the operation's body schema:

=============  ===========================================================
Schema kind    Bound value
=============  ===========================================================
object + arg   JSON text, parsed as the whole subtree
object + props built member by member; unbound members are omitted and
               an object with no members yields no value
array*         JSON text, parsed (``["a", "b"]``)
string         a plain string is used as-is; :class:`RawJson` is parsed
integer*       an ``int`` (numeric strings are accepted)
boolean        a ``bool`` (``true``/``false`` strings are accepted)
anything else  parsed as JSON when possible, otherwise kept as a string
=============  ===========================================================

``required`` flags in the schema are not enforced here. Requiredness is
checked by the argument layer.

:func:`schema_at` resolves a dotted body path to its schema node with the
same ``name``-through-``props`` rule the builder uses, for tooling that
needs to know what a path in an authored body refers to.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union

from azrest.engine.arguments import ArgValue, BoundArgs, RawJson
from azrest.engine.resource_id import ResourceId
from azrest.exceptions import (
    InvalidUsageError,
    MetadataIntegrityError,
    MissingRequiredParameterError,
    UnsupportedInputError,
)
from azrest.metadata.command import Operation
from azrest.metadata.schema import Schema, SchemaKind

API_VERSION = "api-version"


class _NoValue:
    """Marker for "this subtree produced nothing" (distinct from JSON null)."""

    def __repr__(self) -> str:
        return "NO_VALUE"


NO_VALUE: Any = _NoValue()


@dataclass
class RequestSpec:
    """A fully resolved HTTP request, ready for the transport.

    Attributes:
        method: Upper-case HTTP method.
        path: Absolute path, relative to the service endpoint.
        query: Query parameters, including ``api-version``.
        body: JSON body value, or ``None`` when no body is sent.
    """

    method: str
    path: str
    query: dict[str, Any] = field(default_factory=dict)
    body: Any = None

    @property
    def api_version(self) -> Optional[str]:
        value = self.query.get(API_VERSION)
        return None if value is None else str(value)


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


def build_request(
    operation: Operation,
    bound: BoundArgs,
    resource_id: Optional[ResourceId] = None,
    body: Any = None,
    api_version: Optional[str] = None,
) -> RequestSpec:
    """Construct the request for *operation*.

    Args:
        operation: The selected operation.
        bound: Bound argument values.
        resource_id: A full resource ID used instead of the discrete path
            parameters.
        body: A ready-made JSON body (from a file, the editor, or a bulk
            input record). Used verbatim instead of building one.
        api_version: Overrides the document's ``api-version`` constant.

    Raises:
        MetadataIntegrityError: The operation has no HTTP section, or its
            body schema is malformed.
        MissingRequiredParameterError: A required path parameter is unbound.
        UnsupportedInputError: An optional path parameter is unbound.
        ResourceIdMismatchError: *resource_id* does not fit the template.
        InvalidUsageError: A bound value does not fit its schema node.
    """
    if operation.http is None:
        raise MetadataIntegrityError(
            f'HTTP information not found for operation "{operation.operation_id or ""}"'
        )
    http = operation.http
    method = http.request.method

    if resource_id is not None:
        path = _path_from_resource_id(http.path, method, resource_id)
    else:
        path = _path_from_params(operation, bound)

    query: dict[str, Any] = {}
    for const in http.request.query.consts:
        if const.value is not None:
            query[const.name] = const.value
    for param in http.request.query.params:
        if bound.has(param.arg):
            query[param.name] = _to_text(bound[param.arg])
    if api_version is not None:
        query[API_VERSION] = api_version

    request_body = None
    if operation.carries_body:
        if body is not None:
            request_body = body
        elif operation.body_schema is not None:
            request_body = build_body(operation.body_schema, bound)

    return RequestSpec(method=method, path=path, query=query, body=request_body)


def _path_from_resource_id(template: str, method: str, resource_id: ResourceId) -> str:
    resource_id.validate_pattern(template, method)
    path = resource_id.id
    if method == "POST":
        action = template.rstrip("/").rsplit("/", 1)[-1]
        path = f"{path}/{action}"
    return path


def _path_from_params(operation: Operation, bound: BoundArgs) -> str:
    assert operation.http is not None
    path = operation.http.path
    for param in operation.http.request.path.params:
        if bound.has(param.arg):
            path = path.replace(f"{{{param.name}}}", _to_text(bound[param.arg]))
        elif param.required:
            raise MissingRequiredParameterError(
                f"missing required path parameter: {param.name}"
            )
        else:
            raise UnsupportedInputError(
                f'optional path parameter "{param.name}" is not supported'
            )
    return path


def _to_text(value: ArgValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# ---------------------------------------------------------------------------
# Body
# ---------------------------------------------------------------------------


def build_body(schema: Schema, bound: BoundArgs) -> Any:
    """Build the JSON body described by *schema*.

    A root node with ``props`` always produces an object, possibly empty.
    Any other root yields ``None`` when its argument is unbound.
    """
    if schema.props is not None and schema.arg is None:
        return _build_members(schema, bound)
    value = _build_value(schema, bound)
    return None if value is NO_VALUE else value


def _build_members(schema: Schema, bound: BoundArgs) -> dict[str, Any]:
    members: dict[str, Any] = {}
    for child in schema.props or []:
        if child.name is None:
            raise MetadataIntegrityError('property lacks the "name" in the schema')
        value = _build_value(child, bound)
        if value is not NO_VALUE:
            members[child.name] = value
    return members


def _build_value(schema: Schema, bound: BoundArgs) -> Any:
    kind = schema.kind
    if kind == SchemaKind.OBJECT:
        if schema.arg is not None:
            if not bound.has(schema.arg):
                return NO_VALUE
            return _parse_json(schema.arg, bound[schema.arg])
        if schema.props is not None:
            members = _build_members(schema, bound)
            return members if members else NO_VALUE
        raise MetadataIntegrityError(
            'object schema lacks both the "arg" and "props" in the schema'
        )

    if schema.arg is None:
        raise MetadataIntegrityError(
            f'schema "{schema.name or ""}" lacks the "arg" in the schema'
        )
    if not bound.has(schema.arg):
        return NO_VALUE
    value = bound[schema.arg]

    if kind == SchemaKind.ARRAY:
        return _parse_json(schema.arg, value)
    if kind == SchemaKind.STRING:
        if isinstance(value, RawJson):
            return _parse_json(schema.arg, value)
        return _to_text(value)
    if kind == SchemaKind.INTEGER:
        return _coerce_int(schema.arg, value)
    if kind == SchemaKind.BOOLEAN:
        return _coerce_bool(schema.arg, value)

    # Opaque custom types: JSON when it parses, the raw text otherwise.
    if isinstance(value, (bool, int)):
        return value
    try:
        return json.loads(str(value))
    except json.JSONDecodeError:
        return str(value)


def _parse_json(arg: str, value: ArgValue) -> Any:
    if isinstance(value, (bool, int)):
        raise InvalidUsageError(f"expected a JSON value for {arg}, got {value!r}")
    try:
        return json.loads(str(value))
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"invalid JSON for {arg}: {exc}") from exc


def _coerce_int(arg: str, value: ArgValue) -> int:
    if isinstance(value, bool):
        raise InvalidUsageError(f"expected an integer for {arg}, got {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise InvalidUsageError(f"expected an integer for {arg}, got {str(value)!r}") from None


def _coerce_bool(arg: str, value: ArgValue) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text == "true":
        return True
    if text == "false":
        return False
    raise InvalidUsageError(f"expected true or false for {arg}, got {str(value)!r}")


# ---------------------------------------------------------------------------
# Schema lookup and pruning
# ---------------------------------------------------------------------------


def schema_at(operation: Operation, path: Union[str, Sequence[str]]) -> Optional[Schema]:
    """Return the body schema node at a dotted *path*, or ``None``.

    Each segment selects the member of the current node whose ``name``
    matches. Only objects built from their ``props`` are descended into;
    an object bound whole through ``arg`` ends the walk, as it does when
    the body is built. An empty path returns the root body schema.

    Example::

        schema_at(operation, "properties.tags")
    """
    node = operation.body_schema
    if node is None:
        return None
    segments = [s for s in path.split(".") if s] if isinstance(path, str) else list(path)
    for segment in segments:
        if node.kind != SchemaKind.OBJECT or node.arg is not None:
            return None
        node = node.prop(segment)
        if node is None:
            return None
    return node


def prune_body(schema: Schema, value: Any) -> Any:
    """Drop members of *value* that *schema* does not accept.

    Keeps only members declared in ``props`` and drops ``readOnly`` ones,
    recursing into nested objects and array items. Nodes supplied whole
    (``arg`` objects, free-form maps, opaque types) are kept unchanged.
    Used to turn a resource read back from the service into a PUT body.
    """
    if isinstance(value, dict) and schema.props is not None:
        pruned: dict[str, Any] = {}
        for key, member in value.items():
            child = schema.prop(key)
            if child is None or child.read_only:
                continue
            pruned[key] = prune_body(child, member)
        return pruned
    if isinstance(value, list) and schema.item is not None:
        return [prune_body(schema.item, element) for element in value]
    return value
