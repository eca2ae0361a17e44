"""Data model for normalized state snapshots.

A snapshot is a flat, ordered list of key/value entries captured from a
simulation payload at one point in time (before or after the simulated
transaction).
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import Field

from .base import ContractId, EntryKey, ModelBase


class StateSnapshotEntry(ModelBase):
    """A single normalized storage entry.

    Attributes:
        key: Stable identifier of the entry within its snapshot.
        value: The stored value; arbitrary structured data.
        contract_id: Contract owning the entry, when the payload names one.
        metadata: Residual properties not claimed by key, value or contract.
    """

    key: EntryKey = Field(
        ..., description="Stable identifier of the entry within its snapshot."
    )
    value: Any = Field(
        default=None, description="The stored value; arbitrary structured data."
    )
    contract_id: Optional[ContractId] = Field(
        default=None,
        alias="contractId",
        description="Contract owning the entry, when the payload names one.",
    )
    metadata: Optional[dict[str, Any]] = Field(
        default=None,
        description="Residual properties not claimed by key, value or contract.",
    )


class StateSnapshot(ModelBase):
    """Represents a normalized point-in-time view of contract state.

    Attributes:
        captured_at: When the snapshot was built.
        source: Free-text provenance label (e.g. 'before', 'after-from-changes').
        entries: Ordered list of normalized entries.
    """

    captured_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="capturedAt",
        description="When the snapshot was built.",
    )
    source: str = Field(
        default="unknown",
        description="Free-text provenance label (e.g. 'before', 'after-from-changes').",
    )
    entries: list[StateSnapshotEntry] = Field(
        default_factory=list,
        description="Ordered list of normalized entries.",
    )
