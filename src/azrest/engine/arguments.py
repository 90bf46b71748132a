"""Typed, read-only argument values bound by the CLI layer.

The engine never talks to an argument parser. The CLI (or a bulk input
record) fills a :class:`BoundArgs` once, keyed by the metadata argument
``var`` (``$Path.subscriptionId``, ``$parameters.tags``, ...), and the
engine only reads from it.

Values are tagged by Python type:

* ``str`` -- a plain string, used as-is for ``string`` schema nodes.
* ``int`` / ``bool`` -- typed scalars.
* :class:`RawJson` -- JSON text supplied for an object or array argument,
  parsed by the request builder.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class RawJson:
    """JSON text that should be parsed rather than used as a string."""

    text: str

    def __str__(self) -> str:
        return self.text


ArgValue = Union[str, int, bool, RawJson]


class BoundArgs(Mapping[str, ArgValue]):
    """Immutable mapping of argument key to bound value.

    ``None`` values are dropped at construction, so membership is exactly
    the "argument has a value" fact the condition evaluator needs.

    Example::

        bound = BoundArgs({"$Path.subscriptionId": "0000", "$Path.name": None})
        bound.has("$Path.subscriptionId")   # True
        bound.has("$Path.name")             # False
    """

    def __init__(self, values: Optional[Mapping[str, Optional[ArgValue]]] = None) -> None:
        self._values: dict[str, ArgValue] = {
            key: value for key, value in (values or {}).items() if value is not None
        }

    def __getitem__(self, key: str) -> ArgValue:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"BoundArgs({self._values!r})"

    def has(self, key: str) -> bool:
        return key in self._values

    def merged(self, extra: Mapping[str, Optional[ArgValue]]) -> BoundArgs:
        """Return a new mapping with *extra* layered over this one."""
        combined: dict[str, Optional[ArgValue]] = dict(self._values)
        combined.update(extra)
        return BoundArgs(combined)
