import json

import pytest

from workspace_state_integrity.diffing.engine import DiffEngine, entry_identity, index_entries
from workspace_state_integrity.extraction.capture import SnapshotExtractor
from workspace_state_integrity.models.enums import StateDiffChangeType
from workspace_state_integrity.models.state_snapshot import StateSnapshot, StateSnapshotEntry


def snapshot(*entries, source="test"):
    return StateSnapshot(
        source=source,
        entries=[
            e if isinstance(e, StateSnapshotEntry) else StateSnapshotEntry(key=e[0], value=e[1])
            for e in entries
        ],
    )


def keys(changes):
    return [c.key for c in changes]


class TestDiffEngine:
    @pytest.fixture
    def engine(self):
        return DiffEngine()

    def test_categorization(self, engine):
        before = snapshot(("a", 10), ("b", True), ("c", "same"))
        after = snapshot(("a", 99), ("d", 1), ("c", "same"))

        diff = engine.calculate_diff(before, after)

        assert keys(diff.created) == ["d"]
        assert keys(diff.modified) == ["a"]
        assert keys(diff.deleted) == ["b"]
        assert diff.unchanged_keys == ["c"]
        assert diff.summary.total_changes == 3
        assert diff.summary.total_entries_before == 3
        assert diff.summary.total_entries_after == 3
        assert diff.has_changes

    def test_change_payloads(self, engine):
        before = snapshot(("a", 10), ("b", True))
        after = snapshot(("a", 99), ("d", 1))

        diff = engine.calculate_diff(before, after)

        created, modified, deleted = diff.created[0], diff.modified[0], diff.deleted[0]
        assert created.type == StateDiffChangeType.CREATED
        assert created.after_value == 1 and created.before_value is None
        assert created.after_entry.key == "d"
        assert modified.before_value == 10 and modified.after_value == 99
        assert modified.before_entry is not None and modified.after_entry is not None
        assert deleted.before_value is True
        assert deleted.after_entry is None

    def test_object_key_order_is_irrelevant(self, engine):
        before = snapshot(("k", {"nested": {"z": 9, "y": 8}, "a": 1, "b": 2}))
        after = snapshot(("k", {"a": 1, "b": 2, "nested": {"y": 8, "z": 9}}))

        diff = engine.calculate_diff(before, after)

        assert diff.unchanged_keys == ["k"]
        assert not diff.has_changes

    def test_array_content_matters(self, engine):
        before = snapshot(("k", [1, 2, {"x": "y"}]))
        after = snapshot(("k", [1, 2, {"x": "changed"}]))

        assert keys(engine.calculate_diff(before, after).modified) == ["k"]

    def test_array_order_matters(self, engine):
        diff = engine.calculate_diff(snapshot(("k", [1, 2])), snapshot(("k", [2, 1])))
        assert keys(diff.modified) == ["k"]

    def test_boolean_is_not_number(self, engine):
        diff = engine.calculate_diff(snapshot(("k", True)), snapshot(("k", 1)))
        assert keys(diff.modified) == ["k"]

    def test_cyclic_values(self, engine):
        a = {"v": 1}
        a["self"] = a
        b = {"v": 1}
        b["self"] = b

        diff = engine.calculate_diff(snapshot(("k", a)), snapshot(("k", b)))

        assert diff.unchanged_keys == ["k"]

    def test_export_cyclic_values_from_extracted_payload(self, engine):
        cyclic = {"v": 1}
        cyclic["self"] = cyclic
        before, after = SnapshotExtractor().capture_snapshots(
            {"stateBefore": {"k": cyclic}, "stateAfter": {"k": 2}}
        )
        diff = engine.calculate_diff(before, after)

        payload = json.loads(engine.export_state_diff(diff, include_snapshots=True))

        modified = payload["changes"]["modified"][0]
        assert modified["beforeValue"] == {"v": 1, "self": "[Circular]"}
        assert modified["afterValue"] == 2
        assert modified["beforeEntry"]["value"] == {"v": 1, "self": "[Circular]"}
        assert payload["snapshots"]["before"]["entries"][0]["value"]["self"] == "[Circular]"
        # The diff itself still holds the original value
        assert diff.modified[0].before_value is cyclic

    def test_export_unserializable_leaves(self, engine):
        diff = engine.calculate_diff(snapshot(), snapshot(("k", {"tags": {1}})))

        payload = json.loads(engine.export_state_diff(diff))

        assert payload["changes"]["created"][0]["afterValue"] == {"tags": "{1}"}

    def test_contract_scopes_identity(self, engine):
        before = snapshot(StateSnapshotEntry(key="balance", value=1, contract_id="C1"))
        after = snapshot(StateSnapshotEntry(key="balance", value=1, contract_id="C2"))

        diff = engine.calculate_diff(before, after)

        assert [c.contract_id for c in diff.created] == ["C2"]
        assert [c.contract_id for c in diff.deleted] == ["C1"]
        assert diff.unchanged_keys == []

    def test_duplicate_keys_last_write_wins(self, engine):
        before = snapshot(("k", 1), ("other", 0), ("k", 2))
        after = snapshot(("other", 0), ("k", 2))

        diff = engine.calculate_diff(before, after)

        assert not diff.has_changes
        assert diff.unchanged_keys == ["k", "other"]
        assert diff.summary.total_entries_before == 3
        assert diff.summary.total_entries_after == 2

    def test_empty_snapshots(self, engine):
        diff = engine.calculate_diff(snapshot(), snapshot())
        assert not diff.has_changes
        assert diff.summary.total_changes == 0
        assert diff.changes() == []

    def test_changes_order(self, engine):
        diff = engine.calculate_diff(
            snapshot(("m", 1), ("d", 1)), snapshot(("m", 2), ("c", 1))
        )
        assert [c.type for c in diff.changes()] == ["created", "modified", "deleted"]

    def test_export_omits_snapshots_by_default(self, engine):
        diff = engine.calculate_diff(snapshot(("a", 10)), snapshot(("a", 99), ("d", 1)))

        payload = json.loads(engine.export_state_diff(diff))

        assert "exportedAt" in payload
        assert "snapshots" not in payload
        assert payload["hasChanges"] is True
        assert payload["summary"]["totalChanges"] == 2
        assert payload["changes"]["created"][0]["key"] == "d"
        assert payload["changes"]["created"][0]["type"] == "created"
        assert payload["changes"]["modified"][0]["beforeValue"] == 10
        assert payload["changes"]["modified"][0]["afterValue"] == 99
        assert payload["changes"]["deleted"] == []

    def test_export_with_snapshots(self, engine):
        diff = engine.calculate_diff(
            snapshot(("a", 1), source="before"), snapshot(("a", 2), source="after")
        )

        payload = json.loads(engine.export_state_diff(diff, include_snapshots=True))

        assert payload["snapshots"]["before"]["source"] == "before"
        assert payload["snapshots"]["after"]["entries"][0]["value"] == 2
        assert "capturedAt" in payload["snapshots"]["before"]


def test_entry_identity_defaults_to_global_contract():
    assert entry_identity(StateSnapshotEntry(key="k")) == ("global", "k")
    assert entry_identity(StateSnapshotEntry(key="k", contract_id="C")) == ("C", "k")


def test_index_entries_keeps_first_position():
    entries = [
        StateSnapshotEntry(key="a", value=1),
        StateSnapshotEntry(key="b", value=2),
        StateSnapshotEntry(key="a", value=3),
    ]
    index = index_entries(entries)
    assert list(index) == [("global", "a"), ("global", "b")]
    assert index[("global", "a")].value == 3
