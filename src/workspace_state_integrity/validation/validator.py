"""Integrity validation of the persisted workspace state.

The validator runs five passes over an untrusted mapping (structure, data
types, enums, relationships, corruption), collects every anomaly as a
ValidationIssue and, when asked and when nothing CRITICAL was found, applies
the safe repairs from ``repairs``. It never raises on bad data.
"""

import logging
import time
from collections.abc import Mapping
from typing import Any, Callable, Optional, Union

from ..config import IntegrityConfig
from ..integrity.guards import (
    find_duplicate_ids,
    get_type_name,
    is_date_like,
    is_number,
    is_object,
    is_string,
    is_valid_contract_id,
    is_valid_timestamp,
)
from ..models.enums import ValidationSeverity
from ..models.validation_result import (
    RepairAction,
    ValidationIssue,
    ValidationOptions,
    ValidationResult,
    ValidationSummary,
)
from ..observability.logging import get_logger, log_event
from . import repairs


logger = get_logger(__name__)

REQUIRED_STATE_FIELDS = ("deployments", "configurations", "lastSync", "syncVersion")
REQUIRED_DEPLOYMENT_FIELDS = ("contractId", "deployedAt", "network")

OptionsLike = Union[ValidationOptions, Mapping[str, Any], None]


class ValidationContext:
    """Accumulates the issues and repairs of a single validate() call."""

    def __init__(self, options: ValidationOptions, now_ms: float) -> None:
        self.options = options
        self.now_ms = now_ms
        self.issues: list[ValidationIssue] = []
        self.repairs: list[RepairAction] = []

    def add_issue(
        self,
        path: str,
        message: str,
        severity: ValidationSeverity,
        code: str,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        self.issues.append(
            ValidationIssue(
                path=path,
                message=message,
                severity=severity,
                code=code,
                context=context,
            )
        )

    @property
    def highest_severity(self) -> ValidationSeverity:
        return max((i.severity for i in self.issues), default=ValidationSeverity.INFO)

    def log(self, message: str) -> None:
        level = logging.INFO if self.options.log_verbose else logging.DEBUG
        logger.log(level, message)


def _deployment_items(state: Mapping) -> list[tuple[Any, Any]]:
    deployments = state.get("deployments")
    if isinstance(deployments, Mapping):
        return list(deployments.items())
    return []


def _coerce_options(options: OptionsLike, overrides: dict[str, Any]) -> ValidationOptions:
    if options is None:
        options = ValidationOptions()
    elif isinstance(options, Mapping):
        options = ValidationOptions.model_validate(dict(options))
    if overrides:
        options = ValidationOptions.model_validate({**options.model_dump(), **overrides})
    return options


class IntegrityValidator:
    """
    Validates, and optionally repairs, a persisted workspace state.

    The validator keeps no state between calls; everything a run collects
    lives in its own ValidationContext.
    """

    def __init__(
        self,
        config: Optional[IntegrityConfig] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or IntegrityConfig()
        self._clock = clock

    def validate(
        self, state: Any, options: OptionsLike = None, **overrides: Any
    ) -> ValidationResult:
        """Validates a workspace state and optionally repairs it in place.

        Args:
            state: The raw persisted state (normally a dict).
            options: ValidationOptions, or a mapping of option values using
                either snake_case or camelCase names.
            **overrides: snake_case option overrides, e.g. auto_repair=True.

        Returns:
            The validation result. The input is only modified when
            auto_repair is set and no CRITICAL issue was found.
        """
        opts = _coerce_options(options, overrides)
        ctx = ValidationContext(opts, now_ms=self._clock() * 1000)
        ctx.log("Starting workspace state validation...")

        if not is_object(state):
            ctx.add_issue(
                "root",
                f"Workspace state is not an object, got {get_type_name(state)}",
                ValidationSeverity.CRITICAL,
                "INVALID_STATE_TYPE",
            )
        else:
            self._validate_structure(state, ctx)
            self._validate_data_types(state, ctx)
            self._validate_enums(state, ctx)
            if opts.check_relationships:
                self._validate_relationships(state, ctx)
            if opts.detect_corruption:
                self._detect_corruption(state, ctx)

            if opts.auto_repair:
                if ctx.highest_severity >= ValidationSeverity.CRITICAL:
                    log_event(
                        logger,
                        logging.WARNING,
                        "Auto-repair refused: state has CRITICAL issues",
                        "auto_repair_refused",
                        critical_issues=[i.code for i in ctx.issues if i.severity == ValidationSeverity.CRITICAL],
                    )
                else:
                    self._apply_auto_repairs(state, ctx)

        result = self._build_result(ctx)
        log_event(
            logger,
            logging.INFO if opts.log_verbose else logging.DEBUG,
            f"Validation complete: {result.summary.total_issues} issue(s) found",
            "state_validated",
            valid=result.valid,
            severity=result.severity.name,
            issues=result.summary.total_issues,
            repaired=result.summary.repaired,
        )
        return result

    # Pass 1

    def _validate_structure(self, state: Mapping, ctx: ValidationContext) -> None:
        ctx.log("Validating structure...")

        for field in REQUIRED_STATE_FIELDS:
            if field not in state:
                ctx.add_issue(
                    field,
                    f"Missing required top-level field: {field}",
                    ValidationSeverity.ERROR,
                    "MISSING_REQUIRED_FIELD",
                    {"field": field},
                )

        if "deployments" in state:
            deployments = state["deployments"]
            if is_object(deployments):
                for key, record in deployments.items():
                    self._validate_deployment_record(record, key, ctx)
            else:
                ctx.add_issue(
                    "deployments",
                    f"deployments must be an object, got {get_type_name(deployments)}",
                    ValidationSeverity.ERROR,
                    "INVALID_FIELD_TYPE",
                    {"field": "deployments", "expected": "object", "actual": get_type_name(deployments)},
                )

        if "configurations" in state:
            self._validate_configurations(state["configurations"], ctx)

        if "syncVersion" in state and not is_number(state["syncVersion"]):
            actual = get_type_name(state["syncVersion"])
            ctx.add_issue(
                "syncVersion",
                f"syncVersion must be a number, got {actual}",
                ValidationSeverity.ERROR,
                "INVALID_FIELD_TYPE",
                {"field": "syncVersion", "expected": "number", "actual": actual},
            )

    def _validate_deployment_record(
        self, record: Any, key: Any, ctx: ValidationContext
    ) -> None:
        path = f"deployments.{key}"
        if not is_object(record):
            ctx.add_issue(
                path,
                f"Deployment record must be an object, got {get_type_name(record)}",
                ValidationSeverity.ERROR,
                "INVALID_DEPLOYMENT_RECORD",
            )
            return

        for field in REQUIRED_DEPLOYMENT_FIELDS:
            if field not in record:
                ctx.add_issue(
                    f"{path}.{field}",
                    f"Missing required deployment field: {field}",
                    ValidationSeverity.WARNING,
                    "MISSING_DEPLOYMENT_FIELD",
                    {"field": field},
                )

        if "contractId" in record and not is_valid_contract_id(
            record["contractId"], self.config.contract_id_pattern
        ):
            ctx.add_issue(
                f"{path}.contractId",
                f"Invalid contract ID format: {record['contractId']!r}",
                ValidationSeverity.WARNING,
                "INVALID_CONTRACT_ID",
            )

        if "deployedAt" in record and not is_string(record["deployedAt"]):
            ctx.add_issue(
                f"{path}.deployedAt",
                f"deployedAt must be an ISO string, got {get_type_name(record['deployedAt'])}",
                ValidationSeverity.ERROR,
                "INVALID_DEPLOYMENT_DATE",
            )

        if "network" in record and not is_string(record["network"]):
            ctx.add_issue(
                f"{path}.network",
                f"network must be a string, got {get_type_name(record['network'])}",
                ValidationSeverity.ERROR,
                "INVALID_NETWORK_TYPE",
            )

        tx_hash = record.get("transactionHash")
        if tx_hash is not None and not is_string(tx_hash):
            ctx.add_issue(
                f"{path}.transactionHash",
                f"transactionHash must be a string, got {get_type_name(tx_hash)}",
                ValidationSeverity.WARNING,
                "INVALID_HASH_TYPE",
            )

        metadata = record.get("metadata")
        if metadata is not None and not is_object(metadata):
            ctx.add_issue(
                f"{path}.metadata",
                f"metadata must be an object, got {get_type_name(metadata)}",
                ValidationSeverity.WARNING,
                "INVALID_METADATA_TYPE",
            )

    def _validate_configurations(self, configurations: Any, ctx: ValidationContext) -> None:
        if not is_object(configurations):
            ctx.add_issue(
                "configurations",
                f"configurations must be an object, got {get_type_name(configurations)}",
                ValidationSeverity.ERROR,
                "INVALID_CONFIGURATIONS_TYPE",
            )
            return

        for key, value in configurations.items():
            if value is None:
                ctx.add_issue(
                    f"configurations.{key}",
                    "Configuration value is undefined",
                    ValidationSeverity.INFO,
                    "UNDEFINED_CONFIG_VALUE",
                )

    # Pass 2

    def _validate_data_types(self, state: Mapping, ctx: ValidationContext) -> None:
        ctx.log("Validating data types...")

        if "lastSync" not in state:
            return

        last_sync = state["lastSync"]
        if not is_number(last_sync):
            ctx.add_issue(
                "lastSync",
                f"lastSync must be a number, got {get_type_name(last_sync)}",
                ValidationSeverity.ERROR,
                "INVALID_TIMESTAMP_TYPE",
            )
        elif not is_valid_timestamp(
            last_sync,
            allow_future=True,
            max_age_ms=self.config.max_timestamp_age_ms,
            now_ms=ctx.now_ms,
        ):
            ctx.add_issue(
                "lastSync",
                f"lastSync contains an invalid timestamp: {last_sync}",
                ValidationSeverity.WARNING,
                "INVALID_TIMESTAMP_VALUE",
            )

    # Pass 3

    def _validate_enums(self, state: Mapping, ctx: ValidationContext) -> None:
        ctx.log("Validating enum values...")

        valid_networks = self.config.valid_networks
        for key, record in _deployment_items(state):
            if not is_object(record) or "network" not in record:
                continue
            network = record["network"]
            if network not in valid_networks:
                ctx.add_issue(
                    f"deployments.{key}.network",
                    f"Invalid network value: {network}. Must be one of: {', '.join(valid_networks)}",
                    ValidationSeverity.WARNING,
                    "INVALID_NETWORK_VALUE",
                    {"value": network, "allowed": list(valid_networks)},
                )

    # Pass 4

    def _validate_relationships(self, state: Mapping, ctx: ValidationContext) -> None:
        ctx.log("Validating relationships...")

        contract_ids = [
            {"id": record["contractId"]}
            for _, record in _deployment_items(state)
            if is_object(record)
            and is_string(record.get("contractId"))
            and record["contractId"]
        ]
        duplicate_ids, counts = find_duplicate_ids(contract_ids)
        if duplicate_ids:
            ctx.add_issue(
                "deployments",
                f"Found duplicate contract IDs: {', '.join(duplicate_ids)}",
                ValidationSeverity.WARNING,
                "DUPLICATE_CONTRACT_IDS",
                {
                    "duplicateIds": duplicate_ids,
                    "counts": [c for c in counts if c["count"] > 1],
                },
            )

    # Pass 5

    def _detect_corruption(self, state: Mapping, ctx: ValidationContext) -> None:
        ctx.log("Detecting corruption...")

        last_sync = state.get("lastSync")
        if is_number(last_sync):
            if last_sync < 0:
                ctx.add_issue(
                    "lastSync",
                    "Negative timestamp detected (data corruption)",
                    ValidationSeverity.CRITICAL,
                    "NEGATIVE_TIMESTAMP",
                )
            if not is_valid_timestamp(
                last_sync,
                allow_future=False,
                max_age_ms=self.config.max_timestamp_age_ms,
                now_ms=ctx.now_ms,
            ):
                ctx.add_issue(
                    "lastSync",
                    "Timestamp outside reasonable range (potential corruption)",
                    ValidationSeverity.CRITICAL,
                    "TIMESTAMP_CORRUPTION",
                    {"value": last_sync, "nowMs": ctx.now_ms},
                )

        sync_version = state.get("syncVersion")
        current = self.config.current_protocol_version
        if is_number(sync_version) and sync_version > current:
            ctx.add_issue(
                "syncVersion",
                f"syncVersion ({sync_version}) exceeds current protocol ({current})",
                ValidationSeverity.WARNING,
                "FUTURE_PROTOCOL_VERSION",
                {"syncVersion": sync_version, "currentVersion": current},
            )

        for key, record in _deployment_items(state):
            if not is_object(record):
                continue

            deployed_at = record.get("deployedAt")
            if deployed_at and not is_date_like(deployed_at):
                ctx.add_issue(
                    f"deployments.{key}.deployedAt",
                    f"Invalid date format: {deployed_at}",
                    ValidationSeverity.ERROR,
                    "INVALID_DATE_FORMAT",
                )

            if record.get("contractId") == "":
                ctx.add_issue(
                    f"deployments.{key}.contractId",
                    "Empty contract ID (possible truncation)",
                    ValidationSeverity.ERROR,
                    "EMPTY_REQUIRED_FIELD",
                )

    # Repairs

    def _apply_auto_repairs(self, state: Mapping, ctx: ValidationContext) -> None:
        ctx.log("Applying auto-repairs...")
        ctx.repairs.extend(repairs.repair_duplicate_deployments(state))
        ctx.repairs.extend(repairs.repair_invalid_enums(state, self.config))
        ctx.repairs.extend(repairs.repair_orphaned_references(state))

    def _build_result(self, ctx: ValidationContext) -> ValidationResult:
        by_severity = {s: 0 for s in ValidationSeverity}
        for issue in ctx.issues:
            by_severity[issue.severity] += 1
        applied = sum(1 for r in ctx.repairs if r.applied)

        return ValidationResult(
            valid=by_severity[ValidationSeverity.ERROR] == 0
            and by_severity[ValidationSeverity.CRITICAL] == 0,
            severity=ctx.highest_severity,
            issues=ctx.issues,
            repairs=ctx.repairs,
            summary=ValidationSummary(
                total_issues=len(ctx.issues),
                info_count=by_severity[ValidationSeverity.INFO],
                warning_count=by_severity[ValidationSeverity.WARNING],
                error_count=by_severity[ValidationSeverity.ERROR],
                critical_count=by_severity[ValidationSeverity.CRITICAL],
                repaired=applied,
                unrepaired=len(ctx.repairs) - applied,
            ),
        )
