"""Data models for reporting workspace state validation outcomes.

This module defines the structures returned by the integrity validator after
checking (and optionally repairing) a persisted workspace state.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ConfigDict, Field, field_serializer, field_validator

from .base import ModelBase
from .enums import ValidationSeverity


class _SeverityModel(ModelBase):
    """Parses severities from names or ranks and dumps them as names in JSON."""

    @field_validator("severity", mode="before", check_fields=False)
    @classmethod
    def parse_severity(cls, v: Any) -> ValidationSeverity:
        return ValidationSeverity.parse(v)

    @field_serializer("severity", when_used="json", check_fields=False)
    def serialize_severity(self, v: ValidationSeverity) -> str:
        return v.name


class ValidationIssue(_SeverityModel):
    """A single problem found in the validated state.

    Attributes:
        path: Dotted path of the offending value (e.g. 'deployments.d1.network').
        message: Human-readable explanation.
        severity: How serious the issue is.
        code: Machine-readable issue code (e.g. 'NEGATIVE_TIMESTAMP').
        context: Optional structured details.
    """

    path: str = Field(
        ...,
        description="Dotted path of the offending value (e.g. 'deployments.d1.network').",
    )
    message: str = Field(..., description="Human-readable explanation.")
    severity: ValidationSeverity = Field(..., description="How serious the issue is.")
    code: str = Field(
        ...,
        pattern=r"^[A-Z][A-Z0-9_]*$",
        description="Machine-readable issue code (e.g. 'NEGATIVE_TIMESTAMP').",
    )
    context: Optional[dict[str, Any]] = Field(
        default=None, description="Optional structured details."
    )


class RepairAction(ModelBase):
    """A repair attempted on the validated state.

    Attributes:
        path: Dotted path of the repaired value.
        action: Machine-readable repair kind (e.g. 'remove_duplicate').
        details: Human-readable description of what changed.
        applied: Whether the repair was actually written to the state.
        error: Why the repair could not be applied.
    """

    path: str = Field(..., description="Dotted path of the repaired value.")
    action: str = Field(
        ..., description="Machine-readable repair kind (e.g. 'remove_duplicate')."
    )
    details: str = Field(
        ..., description="Human-readable description of what changed."
    )
    applied: bool = Field(
        default=True,
        description="Whether the repair was actually written to the state.",
    )
    error: Optional[str] = Field(
        default=None, description="Why the repair could not be applied."
    )


class ValidationSummary(ModelBase):
    total_issues: int = Field(default=0, ge=0, alias="totalIssues")
    info_count: int = Field(default=0, ge=0, alias="infoCount")
    warning_count: int = Field(default=0, ge=0, alias="warningCount")
    error_count: int = Field(default=0, ge=0, alias="errorCount")
    critical_count: int = Field(default=0, ge=0, alias="criticalCount")
    repaired: int = Field(default=0, ge=0)
    unrepaired: int = Field(default=0, ge=0)


class ValidationResult(_SeverityModel):
    """The outcome of one validation run.

    Attributes:
        valid: False iff any ERROR or CRITICAL issue was found.
        severity: Highest severity across all issues (INFO if none).
        issues: Every issue found, in pass order.
        repairs: Every repair attempted, in the order attempted.
        summary: Aggregate counts.
        timestamp: When the validation completed.
    """

    valid: bool = Field(
        ..., description="False iff any ERROR or CRITICAL issue was found."
    )
    severity: ValidationSeverity = Field(
        default=ValidationSeverity.INFO,
        description="Highest severity across all issues (INFO if none).",
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list, description="Every issue found, in pass order."
    )
    repairs: list[RepairAction] = Field(
        default_factory=list,
        description="Every repair attempted, in the order attempted.",
    )
    summary: ValidationSummary = Field(
        default_factory=ValidationSummary, description="Aggregate counts."
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the validation completed.",
    )

    def issues_with_code(self, code: str) -> list[ValidationIssue]:
        return [i for i in self.issues if i.code == code]


class ValidationOptions(ModelBase):
    """Switches controlling a single validation run.

    Attributes:
        auto_repair: Apply safe repairs in place (refused on CRITICAL issues).
        check_relationships: Run the cross-record relationship pass.
        detect_corruption: Run the corruption detection pass.
        log_verbose: Log pass progress at INFO instead of DEBUG.
    """

    # Callers pass option dicts straight through; unknown keys are dropped.
    model_config = ConfigDict(extra="ignore")

    auto_repair: bool = Field(
        default=False,
        alias="autoRepair",
        description="Apply safe repairs in place (refused on CRITICAL issues).",
    )
    check_relationships: bool = Field(
        default=True,
        alias="checkRelationships",
        description="Run the cross-record relationship pass.",
    )
    detect_corruption: bool = Field(
        default=True,
        alias="detectCorruption",
        description="Run the corruption detection pass.",
    )
    log_verbose: bool = Field(
        default=False,
        alias="logVerbose",
        description="Log pass progress at INFO instead of DEBUG.",
    )
