"""Field-name aliases understood by the snapshot extractor.

The local CLI and the RPC endpoint report the same concepts under different
field names. Each concept is an ordered AliasSet; earlier names take
priority.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..utils import MISSING, NodeMatcher, find_first


@dataclass(frozen=True)
class AliasSet:
    """An ordered list of field names that all mean the same thing."""

    concept: str
    names: tuple[str, ...]

    def __contains__(self, field: object) -> bool:
        return field in self.names

    def pick(self, obj: Mapping, skip_none: bool = False) -> Any:
        """Value of the first alias present in obj, else MISSING.

        With skip_none, aliases holding None count as absent.
        """
        for name in self.names:
            if name in obj and not (skip_none and obj[name] is None):
                return obj[name]
        return MISSING

    def pick_string(self, obj: Mapping) -> Any:
        """First alias holding a non-empty string, else None."""
        for name in self.names:
            value = obj.get(name)
            if isinstance(value, str) and value:
                return value
        return None

    def has_string(self, obj: Mapping) -> bool:
        return any(isinstance(obj.get(name), str) for name in self.names)

    def has_any(self, obj: Mapping) -> bool:
        return any(name in obj for name in self.names)

    def matchers(self) -> list[NodeMatcher]:
        """One node matcher per alias, in priority order."""

        def matcher_for(name: str) -> NodeMatcher:
            return lambda node: node[name] if name in node else MISSING

        return [matcher_for(name) for name in self.names]

    def find(self, root: Any, max_depth: int = 5) -> Any:
        """Searches root breadth-first for the shallowest alias, else MISSING."""
        return find_first(root, self.matchers(), max_depth)


BEFORE_STATE = AliasSet(
    "before_state",
    ("stateBefore", "beforeState", "preState", "storageBefore", "ledgerBefore"),
)
AFTER_STATE = AliasSet(
    "after_state",
    ("stateAfter", "afterState", "postState", "storageAfter", "ledgerAfter"),
)
CHANGES = AliasSet(
    "changes",
    ("stateChanges", "storageChanges", "changes", "modifiedEntries"),
)
ENTRY_COLLECTION = AliasSet(
    "entries",
    ("entries", "storageEntries", "ledgerEntries", "items", "records"),
)
ENTRY_KEY = AliasSet("key", ("key", "storageKey", "ledgerKey", "id", "name"))
ENTRY_VALUE = AliasSet(
    "value", ("value", "val", "data", "entry", "bytes", "current")
)
ENTRY_CONTRACT = AliasSet("contract_id", ("contractId", "contract", "address"))

ENTRY_FIELDS = (ENTRY_KEY, ENTRY_VALUE, ENTRY_CONTRACT)


def is_claimed_field(field: str) -> bool:
    """True if field is consumed by one of the entry alias sets."""
    return any(field in alias_set for alias_set in ENTRY_FIELDS)
