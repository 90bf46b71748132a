"""Full resource IDs and their match against operation path templates.

A resource ID is an absolute path such as
``/subscriptions/0000/resourceGroups/MyRG``. Users may pass one instead of
the discrete identity arguments, and the bulk stdin mode selects operations
by it.
"""

from __future__ import annotations

import json
from typing import Optional

from azrest.exceptions import InvalidUsageError, ResourceIdMismatchError


class ResourceId:
    """A resource ID with any trailing slash removed.

    Args:
        value: The raw identifier as supplied by the user.
    """

    def __init__(self, value: str) -> None:
        self._id = value.rstrip("/")

    @property
    def id(self) -> str:
        return self._id

    def __str__(self) -> str:
        return self._id

    def __repr__(self) -> str:
        return f"ResourceId({self._id!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ResourceId) and other._id == self._id

    def __hash__(self) -> int:
        return hash(self._id)

    def validate_pattern(self, template: str, method: Optional[str] = None) -> None:
        """Check that this ID addresses *template*.

        Segments are compared case-insensitively. A template segment of the
        form ``{name}`` matches any value. For ``POST`` the last template
        segment is the action name and is not part of the identity, so it is
        left out of the comparison.

        Raises:
            ResourceIdMismatchError: The segment count or a static segment
                differs.
        """
        id_segments = self._id.upper().split("/")
        pattern_segments = template.rstrip("/").upper().split("/")
        if method is not None and method.upper() == "POST":
            pattern_segments.pop()

        if len(id_segments) != len(pattern_segments):
            raise ResourceIdMismatchError(
                f"id has unexpected length: expect={len(pattern_segments)}, "
                f"got={len(id_segments)}"
            )
        for expected, got in zip(pattern_segments, id_segments):
            if expected.startswith("{"):
                continue
            if expected != got:
                raise ResourceIdMismatchError(
                    f"id contains unexpected segment: expect={expected}, got={got}"
                )

    def matches(self, template: str, method: Optional[str] = None) -> bool:
        """Boolean form of :meth:`validate_pattern`."""
        try:
            self.validate_pattern(template, method)
        except ResourceIdMismatchError:
            return False
        return True


def resource_id_from_json(text: str) -> ResourceId:
    """Extract the ``"id"`` member of a JSON object (``--id -``).

    Raises:
        InvalidUsageError: *text* is not a JSON object with a string ``id``.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"input is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidUsageError("expect a JSON object as input")
    value = data.get("id")
    if not isinstance(value, str):
        raise InvalidUsageError('expect the "id" key of the JSON object to be a string')
    return ResourceId(value)
