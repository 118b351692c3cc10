"""Tests for the write-path attribute tree builder."""

from __future__ import annotations

import pytest

from architekt.domain.attributes import index_attributes, sanitize_attribute_list
from architekt.domain.errors import BadRequestError
from architekt.domain.ids import is_generated_id
from architekt.domain.models import DataModelAttribute, RangeConstraint


@pytest.fixture
def tree() -> list[DataModelAttribute]:
    """address{street, city} plus tags: array<string>."""
    return sanitize_attribute_list(
        [
            {
                "name": "address",
                "type": "object",
                "required": True,
                "attributes": [
                    {"name": "street", "type": "string"},
                    {
                        "name": "city",
                        "type": "string",
                        "constraints": [{"type": "min", "value": 1}],
                    },
                ],
            },
            {"name": "tags", "type": "array", "element": {"name": "tag", "type": "string"}},
        ]
    )


class TestCreate:
    def test_fresh_ids(self, tree: list[DataModelAttribute]) -> None:
        assert all(is_generated_id(a.id) for a in tree)
        assert all(is_generated_id(a.id) for a in tree[0].attributes)
        assert tree[1].element is not None and is_generated_id(tree[1].element.id)

    def test_ignores_unknown_supplied_ids(self) -> None:
        [attr] = sanitize_attribute_list([{"id": "mine", "name": "n", "type": "string"}])
        assert attr.id != "mine"

    def test_drops_blank_name_or_type(self) -> None:
        result = sanitize_attribute_list(
            [{"name": "", "type": "string"}, {"name": "x"}, "junk", {"name": "ok", "type": "int"}]
        )
        assert [a.name for a in result] == ["ok"]

    def test_element_only_for_arrays(self) -> None:
        [attr] = sanitize_attribute_list(
            [{"name": "n", "type": "string", "element": {"name": "e", "type": "string"}}]
        )
        assert attr.element is None

    def test_none_is_empty(self) -> None:
        assert sanitize_attribute_list(None) == []

    def test_non_list_raises(self) -> None:
        with pytest.raises(BadRequestError, match="Attributes must be an array"):
            sanitize_attribute_list({"name": "x"})

    def test_malformed_constraint_raises(self) -> None:
        with pytest.raises(BadRequestError):
            sanitize_attribute_list(
                [{"name": "n", "type": "string", "constraints": [{"type": "regex"}]}]
            )


class TestUpdate:
    def test_matched_id_is_kept(self, tree: list[DataModelAttribute]) -> None:
        address = tree[0]
        [updated] = sanitize_attribute_list(
            [{"id": address.id, "name": "location"}], index_attributes(tree)
        )
        assert updated.id == address.id
        assert updated.name == "location"

    def test_omitted_keys_keep_previous_values(self, tree: list[DataModelAttribute]) -> None:
        address = tree[0]
        [updated] = sanitize_attribute_list(
            [{"id": address.id, "description": "Postal"}], index_attributes(tree)
        )
        assert updated.type == "object"
        assert updated.required is True
        assert updated.description == "Postal"

    def test_omitted_children_are_copied(self, tree: list[DataModelAttribute]) -> None:
        address = tree[0]
        [updated] = sanitize_attribute_list([{"id": address.id}], index_attributes(tree))
        assert updated.attributes == address.attributes

    def test_present_children_are_merged_by_id(self, tree: list[DataModelAttribute]) -> None:
        address = tree[0]
        street, city = address.attributes
        [updated] = sanitize_attribute_list(
            [
                {
                    "id": address.id,
                    "attributes": [
                        {"id": city.id, "name": "town"},
                        {"name": "zip", "type": "string"},
                    ],
                }
            ],
            index_attributes(tree),
        )
        ids = [a.id for a in updated.attributes]
        assert street.id not in ids
        assert ids[0] == city.id
        assert updated.attributes[0].name == "town"
        assert updated.attributes[0].constraints == [RangeConstraint(type="min", value=1)]
        assert is_generated_id(ids[1]) and ids[1] != street.id

    def test_child_ids_only_match_within_their_level(
        self, tree: list[DataModelAttribute]
    ) -> None:
        street = tree[0].attributes[0]
        [promoted] = sanitize_attribute_list(
            [{"id": street.id, "name": "street", "type": "string"}], index_attributes(tree)
        )
        assert promoted.id != street.id

    def test_omitted_element_is_copied(self, tree: list[DataModelAttribute]) -> None:
        tags = tree[1]
        [updated] = sanitize_attribute_list(
            [{"id": tags.id, "name": "labels"}], index_attributes(tree)
        )
        assert updated.element == tags.element

    def test_element_edit_keeps_its_id(self, tree: list[DataModelAttribute]) -> None:
        tags = tree[1]
        assert tags.element is not None
        [updated] = sanitize_attribute_list(
            [{"id": tags.id, "element": {"id": tags.element.id, "type": "uuid"}}],
            index_attributes(tree),
        )
        assert updated.element is not None
        assert updated.element.id == tags.element.id
        assert updated.element.name == "tag"
        assert updated.element.type == "uuid"

    def test_type_change_away_from_array_drops_element(
        self, tree: list[DataModelAttribute]
    ) -> None:
        tags = tree[1]
        [updated] = sanitize_attribute_list(
            [{"id": tags.id, "type": "string"}], index_attributes(tree)
        )
        assert updated.element is None

    def test_duplicate_id_matches_once(self, tree: list[DataModelAttribute]) -> None:
        address = tree[0]
        first, second = sanitize_attribute_list(
            [{"id": address.id}, {"id": address.id, "name": "copy", "type": "object"}],
            index_attributes(tree),
        )
        assert first.id == address.id
        assert second.id != address.id

    def test_omitted_entries_are_removed(self, tree: list[DataModelAttribute]) -> None:
        result = sanitize_attribute_list([{"id": tree[1].id}], index_attributes(tree))
        assert [a.id for a in result] == [tree[1].id]
