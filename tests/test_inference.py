"""
tests/test_inference.py
Unit tests for json2dart.inference.

Tests cover:
- Primitive inference (bool before int, double, datetime detection)
- Object field order and empty objects
- First-element rule for lists
- Pre-order traversal of object nodes
"""

from __future__ import annotations

from typing import Any, Dict

import pytest

from json2dart.inference import (
    BOOL,
    DATETIME,
    DOUBLE,
    DYNAMIC,
    INT,
    STRING,
    ListSpec,
    ObjectSpec,
    PrimitiveKind,
    count_object_nodes,
    infer,
    is_datetime_string,
    object_nodes,
    unwrap_list,
)


class TestPrimitives:
    """Scalar sample values."""

    def test_bool_is_not_int(self) -> None:
        assert infer(True) == BOOL
        assert infer(False) == BOOL

    def test_int_and_double(self) -> None:
        assert infer(3) == INT
        assert infer(1.0) == DOUBLE
        assert infer(-0.25) == DOUBLE

    def test_null_is_dynamic(self) -> None:
        spec = infer(None)
        assert spec == DYNAMIC
        assert spec.is_dynamic

    @pytest.mark.parametrize(
        "value",
        [
            "2023-05-01",
            "2023-05-01T10:00:00Z",
            "2023-05-01 10:00",
            "2023-05-01T10:00:00.123+07:00",
            "2023-05-01T10:00:00-0500",
        ],
    )
    def test_datetime_strings(self, value: str) -> None:
        assert is_datetime_string(value)
        assert infer(value) == DATETIME

    @pytest.mark.parametrize("value", ["hi", "2023-5-1", "01-05-2023", "", "2023-05-01x"])
    def test_plain_strings(self, value: str) -> None:
        assert infer(value) == STRING


class TestObjects:
    """Objects keep sample order and infer every field."""

    def test_reference_sample(self, inference_sample: Dict[str, Any]) -> None:
        spec = infer(inference_sample)
        assert isinstance(spec, ObjectSpec)
        assert spec.field_names == ["a", "b", "c", "d", "e", "f", "g", "h"]
        assert spec.get("a") == INT
        assert spec.get("b") == DOUBLE
        assert spec.get("c") == BOOL
        assert spec.get("d") == DATETIME
        assert spec.get("e") == STRING
        assert spec.get("f") == DYNAMIC
        assert spec.get("g") == ObjectSpec(())
        assert spec.get("h") == ListSpec(DYNAMIC)

    def test_empty_object_has_no_fields(self) -> None:
        spec = infer({})
        assert isinstance(spec, ObjectSpec)
        assert len(spec) == 0

    def test_missing_field_raises_key_error(self) -> None:
        spec = infer({"a": 1})
        with pytest.raises(KeyError):
            spec.get("b")

    def test_specs_are_hashable_and_equal_by_value(self) -> None:
        assert infer({"a": [1]}) == infer({"a": [2]})
        assert hash(infer({"a": [1]})) == hash(infer({"a": [2]}))


class TestLists:
    """Lists infer from their first element only."""

    def test_first_element_rule(self) -> None:
        spec = infer([{"id": 1}, {"id": 2, "extra": "x"}])
        assert isinstance(spec, ListSpec)
        element = spec.element
        assert isinstance(element, ObjectSpec)
        assert element.field_names == ["id"]
        assert element.get("id") == INT

    def test_heterogeneous_list_uses_first(self) -> None:
        assert infer([1, "a", 2.5]) == ListSpec(INT)

    def test_nested_lists(self) -> None:
        spec = infer([[1.5]])
        assert spec == ListSpec(ListSpec(DOUBLE))
        assert unwrap_list(spec) == DOUBLE


class TestObjectNodes:
    """Depth-first pre-order traversal."""

    def test_preorder_paths(self) -> None:
        spec = infer({
            "user": {"address": {"city": "x"}, "id": 1},
            "roles": [{"label": "a"}],
            "meta": {},
        })
        paths = [path for path, _ in object_nodes(spec)]
        assert paths == [
            (),
            ("user",),
            ("user", "address"),
            ("roles",),
            ("meta",),
        ]

    def test_list_elements_share_field_path(self) -> None:
        spec = infer({"items": [[{"id": 1}]]})
        nodes = list(object_nodes(spec))
        assert nodes[1][0] == ("items",)
        assert nodes[1][1].get("id") == INT

    def test_primitive_has_no_nodes(self) -> None:
        assert list(object_nodes(infer(1))) == []
        assert count_object_nodes(infer([{"a": {"b": {}}}])) == 3

    def test_kind_values(self) -> None:
        assert PrimitiveKind.DATETIME.value == "datetime"
