"""Example of snapshot capture and diffing.

This example feeds two differently shaped simulation payloads through the
snapshot extractor and diffs the resulting before/after snapshots.
"""

from workspace_state_integrity.diffing.engine import DiffEngine
from workspace_state_integrity.extraction.capture import SnapshotExtractor
from workspace_state_integrity.reporting.diff_viz import format_state_diff_markdown


def run_example():
    extractor = SnapshotExtractor()
    engine = DiffEngine()

    # 1. Payload carrying explicit before/after state (local CLI style)
    print("--- Payload 1: direct state fields ---")
    cli_payload = {
        "result": {
            "stateBefore": {"counter": 10, "owner": "GABC", "paused": True},
            "stateAfter": {"counter": 11, "owner": "GABC", "admin": "GXYZ"},
        }
    }
    before, after = extractor.capture_snapshots(cli_payload)
    diff = engine.calculate_diff(before, after)
    print(format_state_diff_markdown(diff))

    # 2. Payload carrying only change records (RPC style)
    print("\n--- Payload 2: change records ---")
    rpc_payload = {
        "stateChanges": [
            {"key": "balance", "contractId": "CDEF", "before": 100, "after": 75},
            {"key": "nonce", "contractId": "CDEF", "after": 1},
            {"key": "lock", "contractId": "CDEF", "before": True},
        ]
    }
    before, after = extractor.capture_snapshots(rpc_payload)
    print(f"Before source: {before.source} ({len(before.entries)} entries)")
    print(f"After source: {after.source} ({len(after.entries)} entries)")
    diff = engine.calculate_diff(before, after)
    print(format_state_diff_markdown(diff))

    # 3. Export for an audit trail
    print("\n--- Exported diff ---")
    print(engine.export_state_diff(diff))


if __name__ == "__main__":
    run_example()
