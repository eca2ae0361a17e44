from pydantic import BaseModel, ConfigDict


class ModelBase(BaseModel):
    """
    Base class for all workspace-state-integrity models.

    Accepts both the snake_case attribute names and the camelCase aliases
    used by persisted and exported payloads, and enables assignment-time
    validation.
    """

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        validate_assignment=True,
        frozen=False,
    )

    def to_payload(self) -> dict:
        """Dumps the model as JSON-compatible data using camelCase aliases."""
        return self.model_dump(mode="json", by_alias=True)


EntryKey = str
ContractId = str
