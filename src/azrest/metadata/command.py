"""Pydantic models for one command document (a command at one API version).

A command document holds the CLI-facing argument groups, the optional
condition trees that disambiguate between several operations, and the
operations themselves with their HTTP path, query, body, and response
shapes. Field names follow the JSON documents through aliases
(``argGroups``, ``operationId``, ``statusCode``, ...).

Integrity rules that do not depend on user input are enforced when a
document is validated, so a malformed document fails before any request is
built:

* ``and`` / ``or`` operators wrap at least two children, ``not`` wraps one,
  ``hasValue`` is a leaf. Any other shape fails the discriminated union.
* When conditions are declared, every operation carries at least one
  ``when`` tag and every tag names an existing condition variable.
* Every ``object`` node of a request-body schema carries ``arg`` or ``props``.

Example::

    command = Command.model_validate(json.loads(text))
    for operation in command.operations:
        print(operation.operation_id, operation.method)
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from azrest.metadata.schema import AdditionalProps, Schema, SchemaKind

_FROZEN = ConfigDict(frozen=True, populate_by_name=True)

BODY_METHODS = frozenset({"PUT", "PATCH", "POST"})


# --- Arguments ---


class Help(BaseModel):
    """Help text attached to an argument, group, or command."""

    model_config = _FROZEN

    short: Optional[str] = None
    lines: Optional[list[str]] = None


class Arg(BaseModel):
    """A CLI argument. ``var`` is the key the engine looks values up by."""

    model_config = _FROZEN

    type: str
    var: str
    options: list[str] = Field(default_factory=list)
    group: Optional[str] = None
    help: Optional[Help] = None
    required: Optional[bool] = None
    id_part: Optional[str] = Field(default=None, alias="idPart")
    hide: Optional[bool] = None
    additional_props: Optional[AdditionalProps] = Field(
        default=None, alias="additionalProps"
    )

    @property
    def is_hidden(self) -> bool:
        return bool(self.hide)


class ArgGroup(BaseModel):
    """A named group of arguments; the unnamed group holds identity arguments."""

    model_config = _FROZEN

    name: str = ""
    args: list[Arg] = Field(default_factory=list)


# --- Conditions ---


class HasValueOperator(BaseModel):
    """Leaf: true iff the argument ``arg`` has a bound value."""

    model_config = _FROZEN

    type: Literal["hasValue"]
    arg: str


class NotOperator(BaseModel):
    """Negation of exactly one child operator."""

    model_config = _FROZEN

    type: Literal["not"]
    operator: ConditionOperator


class GroupOperator(BaseModel):
    """Conjunction or disjunction of two or more child operators."""

    model_config = _FROZEN

    type: Literal["and", "or"]
    operators: list[ConditionOperator] = Field(min_length=2)


ConditionOperator = Annotated[
    Union[GroupOperator, NotOperator, HasValueOperator],
    Field(discriminator="type"),
]


class Condition(BaseModel):
    """A named boolean expression; operations refer to it through ``when``."""

    model_config = _FROZEN

    var: str
    operator: ConditionOperator


NotOperator.model_rebuild()
GroupOperator.model_rebuild()
Condition.model_rebuild()


# --- HTTP request / response ---


class PathParam(BaseModel):
    """A ``{name}`` placeholder in the path template, bound to ``arg``."""

    model_config = _FROZEN

    type: str = "string"
    name: str
    arg: str
    required: Optional[bool] = None
    format: Optional[dict[str, Any]] = None


class RequestPath(BaseModel):
    model_config = _FROZEN

    params: list[PathParam] = Field(default_factory=list)


class ConstDefault(BaseModel):
    model_config = _FROZEN

    value: Any = None


class QueryConst(BaseModel):
    """A query parameter whose value is fixed by the document (``api-version``)."""

    model_config = _FROZEN

    name: str
    type: str = "string"
    required: Optional[bool] = None
    read_only: Optional[bool] = Field(default=None, alias="readOnly")
    const: Optional[bool] = None
    default: Optional[ConstDefault] = None

    @property
    def value(self) -> Any:
        return self.default.value if self.default is not None else None


class QueryParam(BaseModel):
    """A query parameter sent only when its argument is bound."""

    model_config = _FROZEN

    name: str
    arg: str
    type: str = "string"
    required: Optional[bool] = None


class RequestQuery(BaseModel):
    model_config = _FROZEN

    consts: list[QueryConst] = Field(default_factory=list)
    params: list[QueryParam] = Field(default_factory=list)


class BodyJSON(BaseModel):
    model_config = _FROZEN

    schema_: Optional[Schema] = Field(default=None, alias="schema")
    var: Optional[str] = None
    ref: Optional[str] = None


class Body(BaseModel):
    model_config = _FROZEN

    json_: BodyJSON = Field(alias="json")


class Request(BaseModel):
    model_config = _FROZEN

    method: str
    path: RequestPath = Field(default_factory=RequestPath)
    query: RequestQuery = Field(default_factory=RequestQuery)
    body: Optional[Body] = None

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()


class Response(BaseModel):
    """One declared response. Only ``status_code`` gates success."""

    model_config = _FROZEN

    status_code: Optional[list[int]] = Field(default=None, alias="statusCode")
    body: Optional[Body] = None
    is_error: Optional[bool] = Field(default=None, alias="isError")


class Http(BaseModel):
    model_config = _FROZEN

    path: str
    request: Request
    responses: list[Response] = Field(default_factory=list)


class Operation(BaseModel):
    """One concrete REST operation a command may dispatch to.

    An operation without ``http`` exists only for design or test purposes
    and cannot be invoked.
    """

    model_config = _FROZEN

    operation_id: Optional[str] = Field(default=None, alias="operationId")
    http: Optional[Http] = None
    when: Optional[list[str]] = None

    @property
    def method(self) -> Optional[str]:
        return self.http.request.method if self.http is not None else None

    @property
    def body_schema(self) -> Optional[Schema]:
        """The request body schema, or ``None`` when the operation has none."""
        if self.http is None or self.http.request.body is None:
            return None
        return self.http.request.body.json_.schema_

    @property
    def carries_body(self) -> bool:
        return self.method in BODY_METHODS


# --- Command ---


class Plane(str, enum.Enum):
    MGMT = "mgmt-plane"
    DATA = "data-plane"


class Resource(BaseModel):
    model_config = _FROZEN

    id: str
    plane: Plane = Plane.MGMT


class Output(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    type: Optional[str] = None
    ref: Optional[str] = None
    client_flatten: Optional[bool] = Field(default=None, alias="clientFlatten")


class Command(BaseModel):
    """A resolved command at one API version."""

    model_config = _FROZEN

    arg_groups: list[ArgGroup] = Field(default_factory=list, alias="argGroups")
    conditions: Optional[list[Condition]] = None
    operations: list[Operation] = Field(default_factory=list)
    outputs: Optional[list[Output]] = None
    resources: list[Resource] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_integrity(self) -> Command:
        if self.conditions is not None:
            known = {c.var for c in self.conditions}
            for operation in self.operations:
                if not operation.when:
                    raise ValueError(
                        f"operation {operation.operation_id!r} has no \"when\" tag, "
                        "so no condition can select it"
                    )
                for tag in operation.when:
                    if tag not in known:
                        raise ValueError(
                            f"operation {operation.operation_id!r} refers to "
                            f"unknown condition {tag!r}"
                        )
        for operation in self.operations:
            schema = operation.body_schema
            if schema is None:
                continue
            for node in schema.walk():
                if node.kind == SchemaKind.OBJECT and node.arg is None and node.props is None:
                    raise ValueError(
                        f"object schema {node.name or '<root>'!r} of operation "
                        f"{operation.operation_id!r} lacks both \"arg\" and \"props\""
                    )
        return self

    @property
    def identity_group(self) -> Optional[ArgGroup]:
        """The unnamed argument group holding path and identity arguments."""
        for group in self.arg_groups:
            if group.name == "":
                return group
        return None

    @property
    def has_request_body(self) -> bool:
        return any(op.body_schema is not None for op in self.operations)

    def iter_args(self) -> list[Arg]:
        """All arguments, identity group first, in document order."""
        ordered = sorted(self.arg_groups, key=lambda g: g.name != "")
        return [arg for group in ordered for arg in group.args]
