"""Extraction of before/after state snapshots from simulation payloads.

Simulation results arrive as untrusted JSON from the local CLI or from the
RPC endpoint, and the two backends name the same things differently. The
extractor tries, in order:

1. a direct before/after state field anywhere in the payload,
2. a list of change records carrying ``before``/``after`` values,
3. an empty snapshot.

Whatever raw value is found is normalized into StateSnapshotEntry objects.
"""

import logging
from collections.abc import Mapping
from typing import Any, Literal, NamedTuple, Optional

from ..config import IntegrityConfig
from ..models.state_snapshot import StateSnapshot, StateSnapshotEntry
from ..observability.logging import get_logger, log_event
from ..utils import MISSING
from . import aliases


logger = get_logger(__name__)

Phase = Literal["before", "after"]


class SnapshotPair(NamedTuple):
    before: StateSnapshot
    after: StateSnapshot


class ChangeRecord(NamedTuple):
    key: str
    before: Any
    after: Any
    contract_id: Optional[str]


class SnapshotExtractor:
    """
    Converts arbitrary simulation payloads into canonical state snapshots.
    """

    def __init__(
        self,
        max_depth: Optional[int] = None,
        config: Optional[IntegrityConfig] = None,
    ) -> None:
        config = config or IntegrityConfig()
        self.max_depth = max_depth if max_depth is not None else config.extraction_max_depth

    def capture_before_state(self, payload: Any) -> StateSnapshot:
        return self._capture(payload, "before", aliases.BEFORE_STATE)

    def capture_after_state(self, payload: Any) -> StateSnapshot:
        return self._capture(payload, "after", aliases.AFTER_STATE)

    def capture_snapshots(self, payload: Any) -> SnapshotPair:
        return SnapshotPair(
            before=self.capture_before_state(payload),
            after=self.capture_after_state(payload),
        )

    def _capture(
        self, payload: Any, phase: Phase, direct: aliases.AliasSet
    ) -> StateSnapshot:
        raw = direct.find(payload, self.max_depth)
        if raw is not MISSING:
            snapshot = StateSnapshot(source=phase, entries=self.extract_entries(raw))
            strategy = "direct"
        else:
            changes = self.extract_changes(payload)
            if changes:
                snapshot = self._snapshot_from_changes(changes, phase)
                strategy = "changes"
            else:
                snapshot = StateSnapshot(source=phase)
                strategy = "empty"

        log_event(
            logger,
            logging.DEBUG,
            f"Captured {phase} snapshot via {strategy} lookup",
            "snapshot_captured",
            phase=phase,
            strategy=strategy,
            entries=len(snapshot.entries),
        )
        return snapshot

    def _snapshot_from_changes(
        self, changes: list[ChangeRecord], phase: Phase
    ) -> StateSnapshot:
        entries = []
        for change in changes:
            value = change.before if phase == "before" else change.after
            if value is MISSING:
                continue
            entries.append(
                StateSnapshotEntry(
                    key=change.key, value=value, contract_id=change.contract_id
                )
            )
        return StateSnapshot(source=f"{phase}-from-changes", entries=entries)

    def extract_changes(self, payload: Any) -> list[ChangeRecord]:
        """Finds the change-record list in a payload and parses its records.

        Records that are not mappings or carry no usable key are skipped. A
        record without a ``before`` (or ``after``) property has MISSING in
        that slot; an explicit null is kept as None.
        """
        raw = aliases.CHANGES.find(payload, self.max_depth)
        if not isinstance(raw, (list, tuple)):
            return []

        records = []
        for item in raw:
            if not isinstance(item, Mapping):
                continue
            key = aliases.ENTRY_KEY.pick_string(item)
            if not key:
                continue
            records.append(
                ChangeRecord(
                    key=key,
                    before=item["before"] if "before" in item else MISSING,
                    after=item["after"] if "after" in item else MISSING,
                    contract_id=aliases.ENTRY_CONTRACT.pick_string(item),
                )
            )
        return records

    def extract_entries(self, raw: Any) -> list[StateSnapshotEntry]:
        """Normalizes a raw state value into snapshot entries.

        Args:
            raw: A list of entry-like items, a mapping embedding such a list,
                a single entry-like mapping, or a plain key/value mapping.

        Returns:
            The normalized entries; empty for scalars and None.
        """
        if isinstance(raw, (list, tuple)):
            entries = (
                self.parse_entry(item, f"entry_{index}")
                for index, item in enumerate(raw)
            )
            return [entry for entry in entries if entry is not None]

        if not isinstance(raw, Mapping):
            return []

        embedded = aliases.ENTRY_COLLECTION.find(raw, self.max_depth)
        if isinstance(embedded, (list, tuple)):
            return self.extract_entries(embedded)

        if self.looks_like_entry(raw):
            entry = self.parse_entry(raw)
            return [entry] if entry is not None else []

        return [
            StateSnapshotEntry(key=str(key), value=value)
            for key, value in raw.items()
        ]

    @staticmethod
    def looks_like_entry(obj: Mapping) -> bool:
        return aliases.ENTRY_KEY.has_string(obj) and aliases.ENTRY_VALUE.has_any(obj)

    @staticmethod
    def parse_entry(
        raw: Any, fallback_key: Optional[str] = None
    ) -> Optional[StateSnapshotEntry]:
        """Parses one entry-like value.

        Scalars and sequences become the value of an entry named
        fallback_key. Mappings resolve key, value and contract ID through
        their alias sets; unclaimed properties become metadata.

        Returns:
            The entry, or None when raw is None or no key can be determined.
        """
        if raw is None:
            return None

        if not isinstance(raw, Mapping):
            if not fallback_key:
                return None
            return StateSnapshotEntry(key=fallback_key, value=raw)

        key = aliases.ENTRY_KEY.pick_string(raw) or fallback_key
        if not key:
            return None

        value = aliases.ENTRY_VALUE.pick(raw, skip_none=True)
        if value is MISSING:
            value = dict(raw)

        metadata = {
            str(field): field_value
            for field, field_value in raw.items()
            if not aliases.is_claimed_field(field)
        }

        return StateSnapshotEntry(
            key=key,
            value=value,
            contract_id=aliases.ENTRY_CONTRACT.pick_string(raw),
            metadata=metadata or None,
        )


_default_extractor = SnapshotExtractor()


def capture_snapshots(payload: Any) -> SnapshotPair:
    """Captures before/after snapshots with the default extractor."""
    return _default_extractor.capture_snapshots(payload)
