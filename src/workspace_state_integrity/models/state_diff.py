"""Data models for reporting differences between two state snapshots."""

from typing import Any, Optional

from pydantic import ConfigDict, Field

from .base import ContractId, EntryKey, ModelBase
from .enums import StateDiffChangeType
from .state_snapshot import StateSnapshot, StateSnapshotEntry


class StateDiffChange(ModelBase):
    """Represents one created, modified or deleted entry.

    Attributes:
        type: The change category.
        key: Key of the changed entry.
        contract_id: Contract owning the entry, if known.
        before_value: Value before the change (modified/deleted only).
        after_value: Value after the change (created/modified only).
        before_entry: The originating before entry.
        after_entry: The originating after entry.
    """

    model_config = ConfigDict(use_enum_values=True)

    type: StateDiffChangeType = Field(..., description="The change category.")
    key: EntryKey = Field(..., description="Key of the changed entry.")
    contract_id: Optional[ContractId] = Field(
        default=None,
        alias="contractId",
        description="Contract owning the entry, if known.",
    )
    before_value: Any = Field(
        default=None,
        alias="beforeValue",
        description="Value before the change (modified/deleted only).",
    )
    after_value: Any = Field(
        default=None,
        alias="afterValue",
        description="Value after the change (created/modified only).",
    )
    before_entry: Optional[StateSnapshotEntry] = Field(
        default=None,
        alias="beforeEntry",
        description="The originating before entry.",
    )
    after_entry: Optional[StateSnapshotEntry] = Field(
        default=None,
        alias="afterEntry",
        description="The originating after entry.",
    )


class StateDiffSummary(ModelBase):
    total_entries_before: int = Field(
        default=0, ge=0, alias="totalEntriesBefore",
        description="Number of entries in the before snapshot.",
    )
    total_entries_after: int = Field(
        default=0, ge=0, alias="totalEntriesAfter",
        description="Number of entries in the after snapshot.",
    )
    created: int = Field(default=0, ge=0, description="Number of created entries.")
    modified: int = Field(default=0, ge=0, description="Number of modified entries.")
    deleted: int = Field(default=0, ge=0, description="Number of deleted entries.")
    unchanged: int = Field(default=0, ge=0, description="Number of unchanged entries.")
    total_changes: int = Field(
        default=0, ge=0, alias="totalChanges",
        description="created + modified + deleted.",
    )


class StateDiff(ModelBase):
    """The categorized difference between two snapshots.

    Attributes:
        before: The snapshot the diff starts from.
        after: The snapshot the diff ends at.
        created: Entries only present after.
        modified: Entries present in both with different values.
        deleted: Entries only present before.
        unchanged_keys: Keys present in both with equal values.
        summary: Aggregate counts.
        has_changes: True iff summary.total_changes > 0.
    """

    before: StateSnapshot = Field(..., description="The snapshot the diff starts from.")
    after: StateSnapshot = Field(..., description="The snapshot the diff ends at.")
    created: list[StateDiffChange] = Field(
        default_factory=list, description="Entries only present after."
    )
    modified: list[StateDiffChange] = Field(
        default_factory=list,
        description="Entries present in both with different values.",
    )
    deleted: list[StateDiffChange] = Field(
        default_factory=list, description="Entries only present before."
    )
    unchanged_keys: list[EntryKey] = Field(
        default_factory=list,
        alias="unchangedKeys",
        description="Keys present in both with equal values.",
    )
    summary: StateDiffSummary = Field(
        default_factory=StateDiffSummary, description="Aggregate counts."
    )
    has_changes: bool = Field(
        default=False,
        alias="hasChanges",
        description="True iff summary.total_changes > 0.",
    )

    def changes(self) -> list[StateDiffChange]:
        """Returns all changes, created first, then modified, then deleted."""
        return [*self.created, *self.modified, *self.deleted]
