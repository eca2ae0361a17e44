"""Typed schema of the persisted aggregate workspace state.

The integrity validator runs against raw mappings because persisted data
cannot be trusted to match this schema; these models describe what a
well-formed state looks like and are the source of the exported JSON schema.
"""

import time
from typing import Any, Optional

from pydantic import ConfigDict, Field

from .base import ContractId, ModelBase
from .enums import Network


class DeploymentRecord(ModelBase):
    """Metadata describing one published instance of a contract.

    Attributes:
        contract_id: Identifier of the deployed contract.
        contract_name: Human-readable contract name.
        deployed_at: ISO-8601 deployment date.
        network: Network the contract lives on.
        source: Path of the contract source the build came from.
        transaction_hash: Hash of the deploying transaction.
        metadata: Arbitrary extra deployment metadata.
    """

    model_config = ConfigDict(use_enum_values=True)

    contract_id: ContractId = Field(
        ...,
        alias="contractId",
        pattern=r"^[a-zA-Z0-9\-_]+$",
        description="Identifier of the deployed contract.",
    )
    contract_name: Optional[str] = Field(
        default=None, alias="contractName", description="Human-readable contract name."
    )
    deployed_at: str = Field(
        ..., alias="deployedAt", description="ISO-8601 deployment date."
    )
    network: Network = Field(..., description="Network the contract lives on.")
    source: Optional[str] = Field(
        default=None,
        description="Path of the contract source the build came from.",
    )
    transaction_hash: Optional[str] = Field(
        default=None,
        alias="transactionHash",
        description="Hash of the deploying transaction.",
    )
    metadata: Optional[dict[str, Any]] = Field(
        default=None, description="Arbitrary extra deployment metadata."
    )


class WorkspaceState(ModelBase):
    """The long-lived aggregate state persisted per workspace.

    Attributes:
        deployments: Deployment records keyed by deployment slot.
        configurations: Free-form configuration bag.
        last_sync: Last synchronization time in epoch milliseconds.
        sync_version: Version of the sync protocol that wrote the state.
    """

    deployments: dict[str, DeploymentRecord] = Field(
        default_factory=dict,
        description="Deployment records keyed by deployment slot.",
    )
    configurations: dict[str, Any] = Field(
        default_factory=dict, description="Free-form configuration bag."
    )
    last_sync: int = Field(
        default_factory=lambda: int(time.time() * 1000),
        ge=0,
        alias="lastSync",
        description="Last synchronization time in epoch milliseconds.",
    )
    sync_version: int = Field(
        default=1,
        ge=0,
        alias="syncVersion",
        description="Version of the sync protocol that wrote the state.",
    )
