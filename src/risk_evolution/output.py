"""
Structured Output - JSON and plain-text renderings of an AnalysisReport.

JSON is the primary output format and carries exactly the report's fields in
camelCase. The text report is a secondary human-readable wrapper for the
command line.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from risk_evolution.config import default_config
from risk_evolution.models import AnalysisReport, RiskChange


def report_to_dict(report: AnalysisReport) -> Dict[str, Any]:
    """Convert an AnalysisReport to a JSON-ready dict with camelCase keys."""
    return report.model_dump(mode="json", by_alias=True)


def report_to_json(report: AnalysisReport, pretty: bool = True) -> str:
    """Serialize an AnalysisReport to JSON.

    Args:
        report: Report to serialize
        pretty: If True, format with indentation (default).
                If False, compact single-line output.

    Returns:
        JSON string; identical reports always serialize to identical strings
    """
    data = report_to_dict(report)

    if pretty:
        return json.dumps(data, indent=2, ensure_ascii=False)
    else:
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def material_changes(
    report: AnalysisReport,
    limit: Optional[int] = None,
) -> AnalysisReport:
    """Copy of the report with unchanged risks dropped and changes capped.

    Totals, breakdown and insights are untouched; only the change list is
    trimmed, which keeps API responses small.
    """
    limit = default_config.max_reported_changes if limit is None else limit
    changes = [c for c in report.changes if c.change_type != "unchanged"][:limit]
    return report.model_copy(update={"changes": changes})


# =============================================================================
# Text Report
# =============================================================================


def _format_change(change: RiskChange, max_excerpts: int = 3) -> List[str]:
    lines = [f"[{change.materiality_score:4.1f}] {change.change_type.upper():<9} {change.summary}"]

    for snippet in change.added_snippets[:max_excerpts]:
        display = snippet[:150] + "..." if len(snippet) > 150 else snippet
        lines.append(f"         + {display}")
    for snippet in change.removed_snippets[:max_excerpts]:
        display = snippet[:150] + "..." if len(snippet) > 150 else snippet
        lines.append(f"         - {display}")

    return lines


def format_analysis_report(report: AnalysisReport, max_changes: int = 15) -> str:
    """Format a report as a plain-text summary with excerpts.

    Args:
        report: Report to format
        max_changes: Number of non-unchanged changes to list

    Returns:
        Multi-line string
    """
    totals = report.totals
    lines = [
        "=" * 60,
        f"RISK FACTOR CHANGES: FY{report.current_year} vs FY{report.prior_year}",
        "=" * 60,
        "",
        f"Overall Severity: {report.overall_severity.upper()}",
        f"Risk Factors: {totals.current} current / {totals.prior} prior",
        f"Added: {totals.added}   Removed: {totals.removed}   Modified: {totals.modified}",
        "",
    ]

    if report.key_insights:
        lines.append("Key Insights")
        lines.append("-" * 40)
        for insight in report.key_insights:
            lines.append(f"  * {insight}")
        lines.append("")

    if report.category_breakdown:
        lines.append("Category Breakdown")
        lines.append("-" * 40)
        lines.append(f"  {'category':<22}{'cur':>5}{'pri':>5}{'add':>5}{'rem':>5}{'mod':>5}")
        for category in sorted(report.category_breakdown):
            c = report.category_breakdown[category]
            lines.append(
                f"  {category:<22}{c.current:>5}{c.prior:>5}{c.added:>5}{c.removed:>5}{c.modified:>5}"
            )
        lines.append("")

    changed = [c for c in report.changes if c.change_type != "unchanged"]
    lines.append("Most Material Changes")
    lines.append("-" * 40)
    if not changed:
        lines.append("  No added, removed or modified risk factors.")
    for change in changed[:max_changes]:
        lines.extend(_format_change(change))
    if len(changed) > max_changes:
        lines.append(f"  ... {len(changed) - max_changes} more")
    lines.append("")

    lines.append("=" * 60)
    if report.overall_severity in ("critical", "high"):
        lines.append("Risk Factors section shows material new or expanded disclosures.")
        lines.append("Review the highest-scoring changes before relying on prior analysis.")
    elif report.overall_severity == "moderate":
        lines.append("Notable changes in risk language. Worth monitoring.")
    else:
        lines.append("Routine annual updates. No significant structural changes detected.")
    lines.append("=" * 60)

    return "\n".join(lines)
