import json
from pathlib import Path

from workspace_state_integrity.models.state_diff import StateDiff
from workspace_state_integrity.models.state_snapshot import StateSnapshot
from workspace_state_integrity.models.validation_result import (
    ValidationOptions,
    ValidationResult,
)
from workspace_state_integrity.models.workspace_state import WorkspaceState


OUTPUT_DIR = Path("docs/schemas")


MODELS = {
    "state_snapshot.schema.json": StateSnapshot,
    "state_diff.schema.json": StateDiff,
    "workspace_state.schema.json": WorkspaceState,
    "validation_options.schema.json": ValidationOptions,
    "validation_result.schema.json": ValidationResult,
}


def main() -> None:
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    for filename, model in MODELS.items():
        schema = model.model_json_schema(by_alias=True)
        (OUTPUT_DIR / filename).write_text(
            json.dumps(schema, indent=2),
            encoding="utf-8",
        )


if __name__ == "__main__":
    main()
