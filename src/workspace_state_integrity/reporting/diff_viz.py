import json
from typing import Any

from ..models.state_diff import StateDiff, StateDiffChange
from ..utils import json_safe


def _render_value(value: Any) -> str:
    return json.dumps(json_safe(value), sort_keys=True)


def _label(change: StateDiffChange) -> str:
    if change.contract_id:
        return f"{change.contract_id}/{change.key}"
    return change.key


def format_state_diff_markdown(diff: StateDiff) -> str:
    if not diff.has_changes:
        return "No state changes."

    s = diff.summary
    lines: list[str] = [
        "### State diff",
        f"_{s.created} created, {s.modified} modified, {s.deleted} deleted, "
        f"{s.unchanged} unchanged_",
    ]
    for c in diff.created:
        lines.append(f"- **created** `{_label(c)}` = `{_render_value(c.after_value)}`")
    for c in diff.modified:
        lines.append(
            f"- **modified** `{_label(c)}`: `{_render_value(c.before_value)}` "
            f"-> `{_render_value(c.after_value)}`"
        )
    for c in diff.deleted:
        lines.append(f"- **deleted** `{_label(c)}`")
    return "\n".join(lines)
