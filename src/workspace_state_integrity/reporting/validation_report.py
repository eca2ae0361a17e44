from ..models.validation_result import ValidationResult


def format_result(result: ValidationResult) -> str:
    """Renders a validation result as a plain-text report.

    The report has a header, a summary block, and, when present, the issue
    and repair listings.
    """
    summary = result.summary
    lines: list[str] = [
        "=== VALIDATION RESULT ===",
        f"Valid: {str(result.valid).lower()}",
        f"Highest Severity: {result.severity.name}",
        f"Timestamp: {result.timestamp.isoformat()}",
        "",
        "=== SUMMARY ===",
        f"Total Issues: {summary.total_issues}",
        f"  - Info: {summary.info_count}",
        f"  - Warning: {summary.warning_count}",
        f"  - Error: {summary.error_count}",
        f"  - Critical: {summary.critical_count}",
        f"Repairs Applied: {summary.repaired}",
        f"Repairs Unapplied: {summary.unrepaired}",
        "",
    ]

    if result.issues:
        lines.append("=== ISSUES ===")
        for issue in result.issues:
            lines.append(f"[{issue.severity.name}] {issue.code} at {issue.path}")
            lines.append(f"  {issue.message}")
        lines.append("")

    if result.repairs:
        lines.append("=== REPAIRS ===")
        for repair in result.repairs:
            lines.append(repair.path)
            lines.append(f"  Action: {repair.action}")
            lines.append(f"  Details: {repair.details}")
            if repair.error:
                lines.append(f"  Error: {repair.error}")

    return "\n".join(lines)
