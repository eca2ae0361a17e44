import time
from datetime import datetime, timezone

import pytest

from workspace_state_integrity.integrity.guards import (
    HUNDRED_YEARS_MS,
    build_id_map,
    check_unique_ids,
    deduplicate_by_id,
    detect_circular_references,
    find_duplicate_ids,
    flatten_object_keys,
    get_type_name,
    is_array,
    is_boolean,
    is_date_like,
    is_defined,
    is_number,
    is_object,
    is_string,
    is_valid_contract_id,
    is_valid_id,
    is_valid_timestamp,
    is_valid_uuid,
    remove_orphaned_references,
    validate_array_items,
    validate_object_structure,
    validate_references,
    validate_timestamp_order,
)


NOW_MS = 1_750_000_000_000


def test_type_guards():
    assert is_string("x") and not is_string(1)
    assert is_number(3) and is_number(2.5)
    assert not is_number(True)
    assert not is_number(float("nan"))
    assert not is_number("3")
    assert is_boolean(False) and not is_boolean(0)
    assert is_object({}) and not is_object([]) and not is_object(None)
    assert is_array([]) and is_array(()) and not is_array("abc")
    assert is_defined(0) and not is_defined(None)


def test_identifier_guards():
    assert is_valid_uuid("3f2504e0-4f89-41d3-9a0c-0305e82c3301")
    assert not is_valid_uuid("3f2504e0-4f89-11d3-9a0c-0305e82c3301")
    assert is_valid_id("abc")
    assert not is_valid_id("   ")


@pytest.mark.parametrize(
    "value,expected",
    [
        ("CA1", True),
        ("contract-id_01", True),
        ("bad id!", False),
        ("", False),
        (123, False),
        (None, False),
    ],
)
def test_is_valid_contract_id(value, expected):
    assert is_valid_contract_id(value) is expected


def test_is_valid_contract_id_custom_pattern():
    assert is_valid_contract_id("C" + "A" * 55, r"^C[A-Z2-7]{55}$")
    assert not is_valid_contract_id("CA1", r"^C[A-Z2-7]{55}$")


class TestTimestamps:
    def test_current_time_is_valid(self):
        assert is_valid_timestamp(NOW_MS, now_ms=NOW_MS)

    def test_negative_is_invalid(self):
        assert not is_valid_timestamp(-1, now_ms=NOW_MS)

    def test_too_old_is_invalid(self):
        assert not is_valid_timestamp(NOW_MS - 2 * HUNDRED_YEARS_MS, now_ms=NOW_MS)

    def test_future_depends_on_flag(self):
        future = NOW_MS + 60_000
        assert is_valid_timestamp(future, now_ms=NOW_MS)
        assert not is_valid_timestamp(future, allow_future=False, now_ms=NOW_MS)

    def test_custom_window(self):
        one_day = 24 * 60 * 60 * 1000
        assert not is_valid_timestamp(NOW_MS - 2 * one_day, max_age_ms=one_day, now_ms=NOW_MS)

    def test_non_numbers_are_invalid(self):
        assert not is_valid_timestamp("123", now_ms=NOW_MS)
        assert not is_valid_timestamp(True, now_ms=NOW_MS)

    def test_defaults_to_wall_clock(self):
        assert is_valid_timestamp(time.time() * 1000)

    def test_order(self):
        now = time.time() * 1000
        assert validate_timestamp_order(now - 1000, now)
        assert not validate_timestamp_order(now, now - 1000)
        assert not validate_timestamp_order(-5, now)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2024-05-01T12:00:00Z", True),
        ("2024-05-01", True),
        (datetime(2024, 5, 1, tzinfo=timezone.utc), True),
        (NOW_MS, True),
        ("2024/01/15", True),
        ("January 15, 2024", True),
        ("Mon, 15 Jan 2024 10:00:00 GMT", True),
        ("not-a-date", False),
        ("   ", False),
        ("", False),
        (True, False),
        ({}, False),
        ([], False),
    ],
)
def test_is_date_like(value, expected):
    assert is_date_like(value) is expected


class TestUniqueness:
    def test_find_duplicate_ids(self):
        items = [{"id": "a"}, {"id": "b"}, {"id": "a"}, {"id": "c"}, {"id": "a"}]
        duplicates, counts = find_duplicate_ids(items)

        assert duplicates == ["a"]
        assert counts[0] == {"id": "a", "count": 3}
        assert {"id": "b", "count": 1} in counts

    def test_find_duplicate_ids_custom_field(self):
        items = [{"contractId": "X"}, {"contractId": "X"}]
        duplicates, _ = find_duplicate_ids(items, id_field="contractId")
        assert duplicates == ["X"]

    def test_deduplicate_keeps_first(self):
        items = [{"id": 1, "v": "first"}, {"id": 1, "v": "second"}, {"id": 2}]
        result = deduplicate_by_id(items)
        assert result == [{"id": 1, "v": "first"}, {"id": 2}]

    def test_check_unique_ids(self):
        assert check_unique_ids([{"id": 1}, {"id": 2}])
        assert not check_unique_ids([{"id": 1}, {"id": 1}])

    def test_unhashable_ids_do_not_raise(self):
        items = [{"id": ["x"]}, {"id": ["x"]}]
        duplicates, _ = find_duplicate_ids(items)
        assert len(duplicates) == 1


class TestReferences:
    def test_validate_references(self):
        assert validate_references(["a", "x"], {"a"}) == (False, ["x"])
        assert validate_references(["a"], {"a"}) == (True, [])

    def test_remove_orphaned_references(self):
        refs = [{"ref": "a"}, {"ref": "x"}]
        assert remove_orphaned_references(refs, {"a"}, "ref") == [{"ref": "a"}]

    def test_build_id_map(self):
        mapping = build_id_map([{"id": "a", "v": 1}, {"id": "a", "v": 2}])
        assert mapping == {"a": {"id": "a", "v": 2}}

    def test_detect_cycle(self):
        graph = {"a": ["b"], "b": ["c"], "c": ["a"]}
        cycles = detect_circular_references("a", lambda n: graph.get(n, []))
        assert cycles == [["a", "b", "c", "a"]]

    def test_acyclic_graph(self):
        graph = {"a": ["b", "c"], "b": ["c"]}
        assert detect_circular_references("a", lambda n: graph.get(n, [])) == []

    def test_cycle_between_mapping_nodes(self):
        nodes = {"x": {"id": "x", "next": "y"}, "y": {"id": "y", "next": "x"}}
        cycles = detect_circular_references(
            nodes["x"], lambda n: [nodes[n["next"]]]
        )
        assert cycles == [["x", "y", "x"]]


@pytest.mark.parametrize(
    "value,name",
    [
        (None, "null"),
        (True, "boolean"),
        (1, "number"),
        (1.5, "number"),
        ("s", "string"),
        ([], "array"),
        ({}, "object"),
        ({1}, "set"),
        (datetime(2024, 1, 1), "date"),
    ],
)
def test_get_type_name(value, name):
    assert get_type_name(value) == name


def test_validate_object_structure():
    errors = validate_object_structure({"a": 1}, {"a": "string"}, required=["a", "b"])
    assert errors == [
        "Missing required property: b",
        "Property 'a' has wrong type: expected string, got number",
    ]
    assert validate_object_structure({"a": "x"}, {"a": "string"}, ["a"]) == []
    assert validate_object_structure([], {}) == ["Value is not an object"]


def test_validate_array_items():
    assert validate_array_items([1, 2], "number") == []
    assert validate_array_items([1, "x"], "number") == [
        "Array[1] has wrong type: expected number, got string"
    ]
    assert validate_array_items("x", "number") == ["Value is not an array"]


def test_flatten_object_keys():
    obj = {"a": {"b": 1}, "c": [1, {"d": 2}], "e": None}
    assert flatten_object_keys(obj) == ["a.b", "c[0]", "c[1].d", "e"]
    assert flatten_object_keys(5) == []
