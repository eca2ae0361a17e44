"""Pure predicates and collection checks used to validate workspace state.

Every function here is stateless and never raises on odd input; a value of
the wrong shape simply fails the check.
"""

import math
import re
import time
from collections import Counter
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Callable, Hashable, Iterable, Optional, Sequence

from dateutil import parser as date_parser
from pydantic import BaseModel, TypeAdapter, ValidationError


_UUID_V4_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
DEFAULT_CONTRACT_ID_PATTERN = r"^[a-zA-Z0-9\-_]+$"
HUNDRED_YEARS_MS = 100 * 365.25 * 24 * 60 * 60 * 1000

_DATETIME_ADAPTER = TypeAdapter(datetime)
_DATE_ADAPTER = TypeAdapter(date)


# Type guards


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def is_number(value: Any) -> bool:
    """True for ints and floats, excluding booleans and NaN."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (isinstance(value, float) and math.isnan(value))


def is_boolean(value: Any) -> bool:
    return isinstance(value, bool)


def is_object(value: Any) -> bool:
    """True for mappings; sequences and None are not objects."""
    return isinstance(value, Mapping)


def is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def is_defined(value: Any) -> bool:
    return value is not None


# Identifiers


def is_valid_uuid(value: Any) -> bool:
    """Validates a version 4 UUID string."""
    return isinstance(value, str) and bool(_UUID_V4_RE.match(value))


def is_valid_id(value: Any) -> bool:
    """A valid identifier is a string that is not blank."""
    return isinstance(value, str) and bool(value.strip())


def is_valid_contract_id(
    value: Any, pattern: str = DEFAULT_CONTRACT_ID_PATTERN
) -> bool:
    if not isinstance(value, str) or not value:
        return False
    return re.fullmatch(pattern, value) is not None


# Timestamps


def is_valid_timestamp(
    value: Any,
    allow_future: bool = True,
    max_age_ms: float = HUNDRED_YEARS_MS,
    now_ms: Optional[float] = None,
) -> bool:
    """Checks that an epoch-millisecond timestamp is plausible.

    The timestamp must be a number, non-negative and no older than
    max_age_ms. Future values are rejected only when allow_future is False.
    """
    if not is_number(value):
        return False

    now = now_ms if now_ms is not None else time.time() * 1000
    if value < 0 or value < now - max_age_ms:
        return False
    if not allow_future and value > now:
        return False
    return True


def validate_timestamp_order(earlier: Any, later: Any) -> bool:
    return (
        is_valid_timestamp(earlier)
        and is_valid_timestamp(later)
        and earlier <= later
    )


def is_date_like(value: Any) -> bool:
    """True if value parses as a calendar date or datetime.

    Accepts date/datetime instances, ISO-8601 strings and epoch numbers
    (through pydantic), and free-form calendar strings such as RFC 2822,
    "2024/01/15" or "January 15, 2024" (through dateutil).
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, (date, datetime)):
        return True
    for adapter in (_DATETIME_ADAPTER, _DATE_ADAPTER):
        try:
            adapter.validate_python(value)
            return True
        except ValidationError:
            continue

    if not isinstance(value, str) or not value.strip():
        return False
    try:
        date_parser.parse(value)
    except (ValueError, OverflowError):
        return False
    return True


# Collection uniqueness & deduplication


def _id_of(item: Any, id_field: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(id_field)
    return getattr(item, id_field, None)


def _hashable(value: Any) -> Hashable:
    try:
        hash(value)
        return value
    except TypeError:
        return repr(value)


def find_duplicate_ids(
    items: Iterable[Any], id_field: str = "id"
) -> tuple[list[Any], list[dict[str, Any]]]:
    """Finds IDs that occur more than once.

    Args:
        items: Mappings or objects carrying an ID under id_field.
        id_field: Name of the ID property.

    Returns:
        (duplicate_ids in first-seen order, [{'id', 'count'}] for every ID,
        most frequent first).
    """
    counts = Counter(_hashable(_id_of(item, id_field)) for item in items)
    duplicates = [item_id for item_id, count in counts.items() if count > 1]
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return duplicates, [{"id": item_id, "count": count} for item_id, count in ranked]


def deduplicate_by_id(items: Iterable[Any], id_field: str = "id") -> list[Any]:
    """Keeps the first occurrence of each ID."""
    seen: set = set()
    result = []
    for item in items:
        item_id = _hashable(_id_of(item, id_field))
        if item_id not in seen:
            seen.add(item_id)
            result.append(item)
    return result


def check_unique_ids(items: Iterable[Any], id_field: str = "id") -> bool:
    duplicates, _ = find_duplicate_ids(items, id_field)
    return not duplicates


# References


def validate_references(
    references: Iterable[Any], valid_ids: set
) -> tuple[bool, list[Any]]:
    """Returns (all references resolve, orphaned references)."""
    orphaned = [ref for ref in references if _hashable(ref) not in valid_ids]
    return not orphaned, orphaned


def remove_orphaned_references(
    references: Iterable[Any], valid_ids: set, ref_field: str
) -> list[Any]:
    return [
        ref
        for ref in references
        if _hashable(_id_of(ref, ref_field)) in valid_ids
    ]


def build_id_map(entities: Iterable[Any], id_field: str = "id") -> dict[Any, Any]:
    """Maps each ID to its entity; later entities win on duplicate IDs."""
    return {_hashable(_id_of(e, id_field)): e for e in entities}


def detect_circular_references(
    start: Any,
    get_relations: Callable[[Any], Sequence[Any]] = lambda node: [],
    id_field: str = "id",
) -> list[list[str]]:
    """Detects a cycle reachable from start in a relation graph.

    Args:
        start: The first node.
        get_relations: Returns the nodes a node points to.
        id_field: Property naming a node's identity.

    Returns:
        The cycles found as ID paths closing on their first element; empty
        when the graph reachable from start is acyclic.
    """
    visited: set[str] = set()
    on_stack: set[str] = set()
    cycles: list[list[str]] = []

    def node_id(node: Any) -> str:
        if isinstance(node, Mapping) or isinstance(node, BaseModel):
            return str(_id_of(node, id_field))
        return str(node)

    def visit(node: Any, path: list[str]) -> bool:
        nid = node_id(node)
        visited.add(nid)
        on_stack.add(nid)
        path = [*path, nid]

        for relation in get_relations(node):
            rid = node_id(relation)
            if rid not in visited:
                if visit(relation, path):
                    return True
            elif rid in on_stack:
                cycles.append([*path[path.index(rid):], rid])
                return True

        on_stack.discard(nid)
        return False

    visit(start, [])
    return cycles


# Structure checks


def get_type_name(value: Any) -> str:
    """Describes a value's type in the vocabulary of JSON payloads."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, (set, frozenset)):
        return "set"
    if isinstance(value, (date, datetime)):
        return "date"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def validate_object_structure(
    obj: Any, schema: Mapping[str, str], required: Sequence[str] = ()
) -> list[str]:
    """Checks required properties and property types of a mapping.

    Args:
        obj: The value to check.
        schema: Property name to expected get_type_name() result.
        required: Properties that must be present.

    Returns:
        Error messages; empty when the structure is valid.
    """
    if not is_object(obj):
        return ["Value is not an object"]

    errors = [f"Missing required property: {prop}" for prop in required if prop not in obj]
    for prop, expected in schema.items():
        if prop in obj:
            actual = get_type_name(obj[prop])
            if actual != expected:
                errors.append(
                    f"Property '{prop}' has wrong type: expected {expected}, got {actual}"
                )
    return errors


def validate_array_items(arr: Any, expected_type: str) -> list[str]:
    if not is_array(arr):
        return ["Value is not an array"]
    return [
        f"Array[{i}] has wrong type: expected {expected_type}, got {get_type_name(item)}"
        for i, item in enumerate(arr)
        if get_type_name(item) != expected_type
    ]


def flatten_object_keys(obj: Any, prefix: str = "") -> list[str]:
    """Lists the dotted paths of every leaf, e.g. {'a': {'b': 1}} -> ['a.b']."""
    keys: list[str] = []
    if is_object(obj):
        items = ((f"{prefix}.{k}" if prefix else str(k), v) for k, v in obj.items())
    elif is_array(obj):
        items = ((f"{prefix}[{i}]", v) for i, v in enumerate(obj))
    else:
        return keys

    for path, value in items:
        if is_object(value) or is_array(value):
            keys.extend(flatten_object_keys(value, path))
        else:
            keys.append(path)
    return keys
