"""Tests for ResourceId matching and JSON extraction."""

from __future__ import annotations

import pytest

from azrest.engine import ResourceId, resource_id_from_json
from azrest.exceptions import InvalidUsageError, ResourceIdMismatchError

TEMPLATE = "/subscriptions/{subscriptionId}/resourceGroups/{resourceGroupName}"
ACTION = (
    "/subscriptions/{subscriptionId}/resourceGroups/{resourceGroupName}"
    "/providers/Microsoft.Compute/virtualMachines/{vmName}/restart"
)


class TestResourceId:
    def test_trailing_slash_removed(self) -> None:
        assert ResourceId("/subscriptions/s/").id == "/subscriptions/s"
        assert str(ResourceId("/a//")) == "/a"

    def test_equality_and_hash(self) -> None:
        assert ResourceId("/a/b/") == ResourceId("/a/b")
        assert len({ResourceId("/a/b"), ResourceId("/a/b/")}) == 1

    def test_matches_case_insensitively(self) -> None:
        assert ResourceId("/SUBSCRIPTIONS/s/resourcegroups/rg").matches(TEMPLATE)

    def test_length_mismatch(self) -> None:
        with pytest.raises(ResourceIdMismatchError, match="unexpected length: expect=5, got=3"):
            ResourceId("/subscriptions/s").validate_pattern(TEMPLATE)

    def test_segment_mismatch(self) -> None:
        with pytest.raises(ResourceIdMismatchError, match="unexpected segment: expect=RESOURCEGROUPS, got=LOCATIONS"):
            ResourceId("/subscriptions/s/locations/west").validate_pattern(TEMPLATE)

    def test_post_drops_action_segment(self) -> None:
        rid = ResourceId(
            "/subscriptions/s/resourceGroups/rg/providers/Microsoft.Compute/virtualMachines/vm1"
        )
        assert rid.matches(ACTION, "POST")
        assert rid.matches(ACTION, "post")
        assert not rid.matches(ACTION, "GET")


class TestResourceIdFromJson:
    def test_extracts_id(self) -> None:
        assert resource_id_from_json('{"id": "/a/b/", "name": "b"}') == ResourceId("/a/b")

    @pytest.mark.parametrize(
        ("text", "message"),
        [
            ("not json", "not valid JSON"),
            ("[1, 2]", "expect a JSON object"),
            ('{"name": "x"}', 'the "id" key'),
            ('{"id": 3}', 'the "id" key'),
        ],
    )
    def test_rejects(self, text: str, message: str) -> None:
        with pytest.raises(InvalidUsageError, match=message):
            resource_id_from_json(text)
