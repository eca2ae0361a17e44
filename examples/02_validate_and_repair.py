"""Example of workspace state validation and auto-repair.

This example validates a persisted workspace state containing a duplicate
deployment and an unknown network, repairs it, and shows that a corrupted
timestamp makes the validator refuse to repair anything.
"""

import time

from workspace_state_integrity.observability.logging import setup_logging
from workspace_state_integrity.reporting.validation_report import format_result
from workspace_state_integrity.validation.validator import IntegrityValidator


def build_state():
    return {
        "deployments": {
            "d1": {
                "contractId": "CA1",
                "deployedAt": "2024-05-01T12:00:00Z",
                "network": "testnet",
            },
            "d2": {
                "contractId": "CA1",
                "deployedAt": "2024-05-02T12:00:00Z",
                "network": "testnet",
            },
            "d3": {
                "contractId": "CB2",
                "deployedAt": "2024-05-03T12:00:00Z",
                "network": "mainnet-ish",
            },
        },
        "configurations": {"rpcUrl": "http://localhost:8000"},
        "lastSync": int(time.time() * 1000),
        "syncVersion": 1,
    }


def run_example():
    setup_logging()
    validator = IntegrityValidator()

    # 1. Read-only validation never touches the state
    print("--- Phase 1: Validation only ---")
    state = build_state()
    result = validator.validate(state)
    print(format_result(result))
    print(f"Deployments after check: {sorted(state['deployments'])}")

    # 2. Auto-repair
    print("\n--- Phase 2: Auto-repair ---")
    result = validator.validate(state, auto_repair=True)
    print(format_result(result))
    print(f"Deployments after repair: {sorted(state['deployments'])}")
    print(f"d3 network: {state['deployments']['d3']['network']}")

    # 3. Corruption blocks every repair
    print("\n--- Phase 3: Corrupted state ---")
    corrupted = build_state()
    corrupted["lastSync"] = -1
    result = validator.validate(corrupted, auto_repair=True)
    print(format_result(result))
    print(f"Deployments untouched: {sorted(corrupted['deployments'])}")


if __name__ == "__main__":
    run_example()
