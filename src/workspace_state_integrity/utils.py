"""Shared helpers for the workspace state integrity engine.

This module provides the canonicalization used for order-independent value
comparison and the depth-bounded tree walker used to locate fields inside
untrusted payloads.
"""

import math
from collections.abc import Mapping
from typing import Any, Callable, Iterator, Optional, Sequence

from .observability.logging import get_logger


logger = get_logger(__name__)


class _Missing:
    """Marker for 'no match', distinct from a matched None value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()

CYCLE_MARKER = ("cycle",)
CIRCULAR_PLACEHOLDER = "[Circular]"
TOO_DEEP_PLACEHOLDER = "[Too deeply nested]"


def is_container(value: Any) -> bool:
    """Mappings and non-string sequences are walked; everything else is a leaf."""
    return isinstance(value, Mapping) or isinstance(value, (list, tuple))


def canonicalize(value: Any, _path: Optional[set[int]] = None) -> Any:
    """Builds a hashable canonical form of a JSON-like value.

    Mapping keys are sorted recursively, sequence order is preserved, booleans
    stay distinct from numbers while 1 and 1.0 compare equal, and NaN equals
    NaN. A container that is already on the current recursion path is
    replaced by CYCLE_MARKER instead of being descended into again.

    Args:
        value: The value to canonicalize.

    Returns:
        Nested tuples that compare equal iff the inputs are canonically equal.
    """
    if value is None:
        return ("null",)
    if isinstance(value, bool):
        return ("bool", value)
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return ("number", "NaN")
        return ("number", value)
    if isinstance(value, str):
        return ("string", value)

    if not is_container(value):
        return ("other", type(value).__name__, repr(value))

    path = _path if _path is not None else set()
    marker = id(value)
    if marker in path:
        return CYCLE_MARKER

    path.add(marker)
    try:
        if isinstance(value, Mapping):
            items = sorted(
                ((str(k), canonicalize(v, path)) for k, v in value.items()),
                key=lambda kv: kv[0],
            )
            return ("object", tuple(items))
        return ("array", tuple(canonicalize(item, path) for item in value))
    finally:
        path.discard(marker)


def values_equal(left: Any, right: Any) -> bool:
    """Compares two values by canonical form.

    Falls back to identity when the values are too deeply nested to
    canonicalize.
    """
    try:
        return canonicalize(left) == canonicalize(right)
    except RecursionError:
        logger.warning(
            "Value too deeply nested to canonicalize; comparing by identity",
            extra={"extra_fields": {"event": "canonicalize_fallback"}},
        )
        return left is right


def _to_json_safe(value: Any, path: set[int]) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if not is_container(value):
        return str(value)

    marker = id(value)
    if marker in path:
        return CIRCULAR_PLACEHOLDER

    path.add(marker)
    try:
        if isinstance(value, Mapping):
            return {str(k): _to_json_safe(v, path) for k, v in value.items()}
        return [_to_json_safe(item, path) for item in value]
    finally:
        path.discard(marker)


def json_safe(value: Any) -> Any:
    """Copies a value into plain JSON data that can always be serialized.

    A container already on the current path becomes CIRCULAR_PLACEHOLDER,
    and leaves that are not JSON scalars become their str(). Values too deep
    to copy are replaced by TOO_DEEP_PLACEHOLDER.
    """
    try:
        return _to_json_safe(value, set())
    except RecursionError:
        logger.warning(
            "Value too deeply nested to serialize; replacing with placeholder",
            extra={"extra_fields": {"event": "json_safe_fallback"}},
        )
        return TOO_DEEP_PLACEHOLDER


def _children(node: Any) -> Iterator[Any]:
    values = node.values() if isinstance(node, Mapping) else node
    for child in values:
        if is_container(child):
            yield child


def walk_levels(root: Any, max_depth: int = 5) -> Iterator[list[Any]]:
    """Yields the containers of a tree breadth-first, one list per depth.

    Depth 0 is the root itself. Containers deeper than max_depth are not
    visited, and a container reachable through several paths is visited once.
    """
    if not is_container(root):
        return

    seen = {id(root)}
    level = [root]
    depth = 0
    while level:
        yield level
        if depth >= max_depth:
            return
        next_level = []
        for node in level:
            for child in _children(node):
                if id(child) not in seen:
                    seen.add(id(child))
                    next_level.append(child)
        level = next_level
        depth += 1


NodeMatcher = Callable[[Mapping], Any]


def find_first(
    root: Any, matchers: Sequence[NodeMatcher], max_depth: int = 5
) -> Any:
    """Finds the shallowest mapping accepted by any matcher.

    Each matcher receives a mapping node and returns the matched value or
    MISSING. Shallower nodes win; within one depth, earlier matchers win over
    later ones, and only then does node order decide.

    Args:
        root: The tree to search.
        matchers: Matchers in priority order.
        max_depth: Maximum depth to descend.

    Returns:
        The first matched value, or MISSING if nothing matched.
    """
    for level in walk_levels(root, max_depth):
        mappings = [node for node in level if isinstance(node, Mapping)]
        for matcher in matchers:
            for node in mappings:
                found = matcher(node)
                if found is not MISSING:
                    return found
    return MISSING
