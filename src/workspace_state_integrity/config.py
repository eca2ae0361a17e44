"""Configuration for the integrity engine.

Thresholds that used to be literals (current sync protocol version, the
plausible timestamp window, the network enum and its repair default) live in
a frozen model so callers can tune them per workspace. Values can come from a
YAML file and environment variables.
"""

import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .models.enums import Network
from .observability.logging import get_logger


logger = get_logger(__name__)

CONFIG_PATH_ENV = "STATE_INTEGRITY_CONFIG"

_ENV_OVERRIDES = {
    "STATE_INTEGRITY_PROTOCOL_VERSION": "current_protocol_version",
    "STATE_INTEGRITY_MAX_TIMESTAMP_AGE_YEARS": "max_timestamp_age_years",
    "STATE_INTEGRITY_EXTRACTION_MAX_DEPTH": "extraction_max_depth",
}


class IntegrityConfigError(ValueError):
    pass


class IntegrityConfig(BaseModel):
    """
    Static configuration for extraction and validation.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    current_protocol_version: int = Field(
        default=1,
        ge=0,
        description="Highest syncVersion this engine understands.",
    )
    max_timestamp_age_years: float = Field(
        default=100,
        gt=0,
        description="Timestamps older than this many years are implausible.",
    )
    valid_networks: tuple[str, ...] = Field(
        default=tuple(n.value for n in Network),
        min_length=1,
        description="Allowed values of a deployment's network field.",
    )
    default_network: str = Field(
        default=Network.TESTNET.value,
        description="Network written by the invalid-enum repair.",
    )
    contract_id_pattern: str = Field(
        default=r"^[a-zA-Z0-9\-_]+$",
        description="Regular expression a contract ID must fully match.",
    )
    extraction_max_depth: int = Field(
        default=5,
        ge=0,
        description="Maximum depth searched for state aliases in a payload.",
    )

    @model_validator(mode="after")
    def default_network_is_valid(self) -> "IntegrityConfig":
        if self.default_network not in self.valid_networks:
            raise ValueError(
                f"default_network '{self.default_network}' is not one of {list(self.valid_networks)}"
            )
        return self

    @property
    def max_timestamp_age_ms(self) -> float:
        return self.max_timestamp_age_years * 365.25 * 24 * 60 * 60 * 1000


def load_config(path: Optional[Union[str, Path]] = None) -> IntegrityConfig:
    """Builds an IntegrityConfig from an optional YAML file and the environment.

    Args:
        path: YAML file to read. Defaults to the STATE_INTEGRITY_CONFIG env var;
            when neither is set only defaults and env overrides apply.

    Returns:
        The validated configuration.

    Raises:
        IntegrityConfigError: If the file cannot be read or the values are invalid.
    """
    path = path or os.environ.get(CONFIG_PATH_ENV)
    values: dict[str, Any] = {}

    if path:
        try:
            with open(path, "r") as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise IntegrityConfigError(f"Cannot read config file {path}: {e}") from e
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise IntegrityConfigError(
                f"Config file {path} must contain a mapping, got {type(loaded).__name__}"
            )
        values.update(loaded)
        logger.info(f"Loaded integrity config from {path}")

    for env_name, field_name in _ENV_OVERRIDES.items():
        if env_name in os.environ:
            values[field_name] = os.environ[env_name]

    try:
        return IntegrityConfig(**values)
    except ValidationError as e:
        raise IntegrityConfigError(f"Invalid integrity config: {e}") from e
