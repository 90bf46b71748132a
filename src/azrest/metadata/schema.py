"""Recursive schema nodes describing a JSON value and its argument binding.

A :class:`Schema` node appears in request and response bodies of a command
document. Each node has a free-form ``type`` tag, and :attr:`Schema.kind`
folds that tag into one of the families the request builder understands:

* ``object`` -- built from ``props`` or supplied whole through ``arg``.
* ``array*`` -- any tag starting with ``array`` (``array<string>`` etc.).
* ``string``
* ``integer*`` -- ``integer``, ``integer32``, ``integer64``, ...
* ``boolean``
* everything else is *opaque* JSON (``ResourceLocation``, ``number``, ...).

The same classification is used for argument types by the CLI layer, so
:func:`classify_type` is exposed separately.
"""

from __future__ import annotations

import enum
from typing import Any, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field


class SchemaKind(str, enum.Enum):
    """Type families recognised by the request builder."""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    OPAQUE = "opaque"


def classify_type(type_tag: str) -> SchemaKind:
    """Fold a free-form metadata type tag into a :class:`SchemaKind`.

    Example::

        >>> classify_type("integer64")
        <SchemaKind.INTEGER: 'integer'>
        >>> classify_type("ResourceLocation")
        <SchemaKind.OPAQUE: 'opaque'>
    """
    if type_tag == "object":
        return SchemaKind.OBJECT
    if type_tag.startswith("array"):
        return SchemaKind.ARRAY
    if type_tag == "string":
        return SchemaKind.STRING
    if type_tag.startswith("integer"):
        return SchemaKind.INTEGER
    if type_tag == "boolean":
        return SchemaKind.BOOLEAN
    return SchemaKind.OPAQUE


class AdditionalProps(BaseModel):
    """Value schema of a free-form map (``additionalProps``)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    item: Optional[Schema] = None


class Schema(BaseModel):
    """One node of a request or response body schema.

    ``arg`` is the key into the bound arguments. ``props`` lists the members
    of an object node, each of which carries a ``name``. ``item`` describes
    array elements.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str
    name: Optional[str] = None
    arg: Optional[str] = None
    required: Optional[bool] = None
    read_only: Optional[bool] = Field(default=None, alias="readOnly")
    props: Optional[list[Schema]] = None
    item: Optional[Schema] = None
    format: Optional[dict[str, Any]] = None
    client_flatten: Optional[bool] = Field(default=None, alias="clientFlatten")
    additional_props: Optional[AdditionalProps] = Field(
        default=None, alias="additionalProps"
    )

    @property
    def kind(self) -> SchemaKind:
        """The type family of this node."""
        return classify_type(self.type)

    def prop(self, name: str) -> Optional[Schema]:
        """Return the member named *name*, or ``None``."""
        for child in self.props or []:
            if child.name == name:
                return child
        return None

    def walk(self) -> Iterator[Schema]:
        """Yield this node and every nested node, depth first."""
        yield self
        for child in self.props or []:
            yield from child.walk()
        if self.item is not None:
            yield from self.item.walk()


AdditionalProps.model_rebuild()
Schema.model_rebuild()
