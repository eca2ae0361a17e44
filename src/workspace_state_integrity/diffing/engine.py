"""Deterministic entry-level diffs between two state snapshots."""

import json
from datetime import datetime, timezone
from typing import Any, Optional

from ..models.enums import StateDiffChangeType
from ..models.state_diff import StateDiff, StateDiffChange, StateDiffSummary
from ..models.state_snapshot import StateSnapshot, StateSnapshotEntry
from ..observability.logging import get_logger
from ..utils import json_safe, values_equal


logger = get_logger(__name__)

GLOBAL_CONTRACT = "global"


def _exportable_entry(entry: Optional[StateSnapshotEntry]) -> Optional[StateSnapshotEntry]:
    if entry is None:
        return None
    return entry.model_copy(
        update={"value": json_safe(entry.value), "metadata": json_safe(entry.metadata)}
    )


def _exportable_change(change: StateDiffChange) -> StateDiffChange:
    return change.model_copy(
        update={
            "before_value": json_safe(change.before_value),
            "after_value": json_safe(change.after_value),
            "before_entry": _exportable_entry(change.before_entry),
            "after_entry": _exportable_entry(change.after_entry),
        }
    )


def _exportable_snapshot(snapshot: StateSnapshot) -> StateSnapshot:
    return snapshot.model_copy(
        update={"entries": [_exportable_entry(e) for e in snapshot.entries]}
    )


def entry_identity(entry: StateSnapshotEntry) -> tuple[str, str]:
    """Identity of an entry within a snapshot: (contract ID or 'global', key)."""
    return (entry.contract_id or GLOBAL_CONTRACT, entry.key)


def index_entries(
    entries: list[StateSnapshotEntry],
) -> dict[tuple[str, str], StateSnapshotEntry]:
    """Indexes entries by identity.

    A later entry with the same identity replaces the earlier one, but the
    identity keeps the position where it was first seen.
    """
    index: dict[tuple[str, str], StateSnapshotEntry] = {}
    for entry in entries:
        index[entry_identity(entry)] = entry
    return index


class DiffEngine:
    """
    Categorizes the differences between two snapshots.
    """

    def calculate_diff(self, before: StateSnapshot, after: StateSnapshot) -> StateDiff:
        """Computes created, modified, deleted and unchanged entries.

        Values are compared by canonical form: mapping key order is ignored,
        sequence order is significant.

        Args:
            before: The snapshot the diff starts from.
            after: The snapshot the diff ends at.

        Returns:
            The categorized diff with its summary.
        """
        before_index = index_entries(before.entries)
        after_index = index_entries(after.entries)

        created: list[StateDiffChange] = []
        modified: list[StateDiffChange] = []
        deleted: list[StateDiffChange] = []
        unchanged_keys: list[str] = []

        identities = list(before_index)
        identities.extend(i for i in after_index if i not in before_index)

        for identity in identities:
            before_entry = before_index.get(identity)
            after_entry = after_index.get(identity)

            if before_entry is None:
                created.append(
                    StateDiffChange(
                        type=StateDiffChangeType.CREATED,
                        key=after_entry.key,
                        contract_id=after_entry.contract_id,
                        after_value=after_entry.value,
                        after_entry=after_entry,
                    )
                )
            elif after_entry is None:
                deleted.append(
                    StateDiffChange(
                        type=StateDiffChangeType.DELETED,
                        key=before_entry.key,
                        contract_id=before_entry.contract_id,
                        before_value=before_entry.value,
                        before_entry=before_entry,
                    )
                )
            elif not values_equal(before_entry.value, after_entry.value):
                modified.append(
                    StateDiffChange(
                        type=StateDiffChangeType.MODIFIED,
                        key=after_entry.key,
                        contract_id=after_entry.contract_id or before_entry.contract_id,
                        before_value=before_entry.value,
                        after_value=after_entry.value,
                        before_entry=before_entry,
                        after_entry=after_entry,
                    )
                )
            else:
                unchanged_keys.append(after_entry.key)

        total_changes = len(created) + len(modified) + len(deleted)
        summary = StateDiffSummary(
            total_entries_before=len(before.entries),
            total_entries_after=len(after.entries),
            created=len(created),
            modified=len(modified),
            deleted=len(deleted),
            unchanged=len(unchanged_keys),
            total_changes=total_changes,
        )

        logger.debug(
            f"State diff: {total_changes} change(s), {len(unchanged_keys)} unchanged",
            extra={"extra_fields": {"event": "state_diff_calculated", **summary.to_payload()}},
        )

        return StateDiff(
            before=before,
            after=after,
            created=created,
            modified=modified,
            deleted=deleted,
            unchanged_keys=unchanged_keys,
            summary=summary,
            has_changes=total_changes > 0,
        )

    def export_state_diff(self, diff: StateDiff, include_snapshots: bool = False) -> str:
        """Serializes a diff as a timestamped JSON document.

        Values are copied through json_safe, so cyclic or otherwise
        unserializable payload data is exported as placeholders.

        Args:
            diff: The diff to export.
            include_snapshots: Also embed both source snapshots. Off by
                default so large state is not duplicated on every export.

        Returns:
            Pretty-printed JSON text.
        """
        payload: dict[str, Any] = {
            "exportedAt": datetime.now(timezone.utc).isoformat(),
            "summary": diff.summary.to_payload(),
            "hasChanges": diff.has_changes,
            "changes": {
                "created": [_exportable_change(c).to_payload() for c in diff.created],
                "modified": [_exportable_change(c).to_payload() for c in diff.modified],
                "deleted": [_exportable_change(c).to_payload() for c in diff.deleted],
            },
        }
        if include_snapshots:
            payload["snapshots"] = {
                "before": _exportable_snapshot(diff.before).to_payload(),
                "after": _exportable_snapshot(diff.after).to_payload(),
            }
        return json.dumps(payload, indent=2, ensure_ascii=False)
