"""Safe, narrowly scoped repairs for workspace state.

Each repair mutates the state in place and returns the RepairAction records
describing what it did. The validator only calls these when auto-repair was
requested and no CRITICAL issue exists.
"""

from collections.abc import Mapping, MutableMapping
from typing import Any

from ..config import IntegrityConfig
from ..models.validation_result import RepairAction
from ..observability.logging import get_logger


logger = get_logger(__name__)

REMOVE_DUPLICATE = "remove_duplicate"
RESET_INVALID_ENUM = "reset_invalid_enum"


def repair_duplicate_deployments(state: Mapping[str, Any]) -> list[RepairAction]:
    """Keeps the first deployment slot per contract ID and deletes the rest.

    Slots are visited in insertion order. Read-only deployment mappings are
    left untouched.
    """
    deployments = state.get("deployments")
    if not isinstance(deployments, MutableMapping):
        return []

    slots_by_contract: dict[str, list[Any]] = {}
    for key, record in deployments.items():
        if isinstance(record, Mapping):
            contract_id = record.get("contractId")
            if isinstance(contract_id, str) and contract_id:
                slots_by_contract.setdefault(contract_id, []).append(key)

    repairs = []
    for contract_id, keys in slots_by_contract.items():
        for key in keys[1:]:
            path = f"deployments.{key}"
            details = f"Removed duplicate deployment for contract {contract_id}"
            try:
                del deployments[key]
            except Exception as e:
                logger.error(f"Failed to remove duplicate deployment {key}: {str(e)}")
                repairs.append(
                    RepairAction(
                        path=path,
                        action=REMOVE_DUPLICATE,
                        details=details,
                        applied=False,
                        error=str(e),
                    )
                )
                continue
            repairs.append(
                RepairAction(path=path, action=REMOVE_DUPLICATE, details=details)
            )
    return repairs


def repair_invalid_enums(
    state: Mapping[str, Any], config: IntegrityConfig
) -> list[RepairAction]:
    """Resets every out-of-enum deployment network to the default network."""
    deployments = state.get("deployments")
    if not isinstance(deployments, Mapping):
        return []

    default = config.default_network
    repairs = []
    for key, record in list(deployments.items()):
        if not isinstance(record, Mapping):
            continue
        old_value = record.get("network")
        if old_value in config.valid_networks:
            continue

        path = f"deployments.{key}.network"
        details = f"Reset invalid network '{old_value}' to '{default}'"
        if not isinstance(record, MutableMapping):
            repairs.append(
                RepairAction(
                    path=path,
                    action=RESET_INVALID_ENUM,
                    details=details,
                    applied=False,
                    error="Deployment record is read-only",
                )
            )
            continue

        record["network"] = default
        repairs.append(RepairAction(path=path, action=RESET_INVALID_ENUM, details=details))
    return repairs


def repair_orphaned_references(state: Mapping[str, Any]) -> list[RepairAction]:
    # No entity in the current schema references another, so nothing can dangle.
    logger.debug("Checking for orphaned references")
    return []
