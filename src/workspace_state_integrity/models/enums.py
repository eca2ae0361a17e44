"""Enumeration definitions for the workspace state integrity engine.

This module contains the Enum classes shared by the snapshot, diff and
validation models so values stay consistent across the package.
"""

from enum import Enum, IntEnum


class ValidationSeverity(IntEnum):
    """Severity of a validation issue, totally ordered by its integer value.

    Attributes:
        INFO: Informational only; the state is still valid.
        WARNING: Malformed but tolerated data.
        ERROR: Structural or type problems; the state is invalid.
        CRITICAL: Corruption; repairs are refused while present.
    """

    INFO = 0
    WARNING = 1
    ERROR = 2
    CRITICAL = 3

    @classmethod
    def parse(cls, value: "ValidationSeverity | str | int") -> "ValidationSeverity":
        """Accepts an enum member, its name (any case) or its integer rank."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.upper()]
            except KeyError:
                raise ValueError(f"Unknown severity: {value}") from None
        return cls(value)


class StateDiffChangeType(str, Enum):
    """Category of a single entry-level change between two snapshots.

    Attributes:
        CREATED: The entry only exists in the after snapshot.
        MODIFIED: The entry exists in both snapshots with different values.
        DELETED: The entry only exists in the before snapshot.
    """

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


class Network(str, Enum):
    """Networks a contract can be deployed to.

    Attributes:
        PUBLIC: The public main network.
        TESTNET: The shared test network.
        FUTURENET: The preview network for upcoming protocol features.
        LOCAL: A locally running network.
    """

    PUBLIC = "public"
    TESTNET = "testnet"
    FUTURENET = "futurenet"
    LOCAL = "local"
