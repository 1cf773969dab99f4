"""
Analysis Aggregator: roll scored changes up into one AnalysisReport.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from risk_evolution.models import (
    AnalysisReport,
    CategoryCounts,
    OverallSeverity,
    RiskCategory,
    RiskChange,
    RiskFactorRecord,
    RiskTotals,
)

logger = logging.getLogger(__name__)


# A change scoring above this counts toward the critical/high thresholds
HIGH_MATERIALITY = 6.0

# Modified risks above this change percent are reported as "significant"
SIGNIFICANT_CHANGE_PERCENT = 25

# Categories whose newly added risks are called out in the insights
FLAGGED_CATEGORIES = (
    (RiskCategory.REGULATORY, "New regulatory risks identified"),
    (RiskCategory.CLINICAL, "New clinical/trial risks identified"),
    (RiskCategory.FINANCIAL, "New financial risks identified"),
)

_COUNT_FIELDS = ("current", "prior", "added", "removed", "modified")


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def build_category_breakdown(
    changes: Sequence[RiskChange],
    current_records: Sequence[RiskFactorRecord],
    prior_records: Sequence[RiskFactorRecord],
) -> Dict[str, CategoryCounts]:
    """Per-category presence counts for both periods plus change counts."""
    counts: Dict[str, Dict[str, int]] = {}

    def bump(category: RiskCategory, field_name: str) -> None:
        bucket = counts.setdefault(category.value, dict.fromkeys(_COUNT_FIELDS, 0))
        bucket[field_name] += 1

    for record in current_records:
        bump(record.category, "current")
    for record in prior_records:
        bump(record.category, "prior")
    for change in changes:
        if change.change_type in ("added", "removed", "modified"):
            bump(change.category, change.change_type)

    return {category: CategoryCounts(**bucket) for category, bucket in counts.items()}


def determine_overall_severity(
    changes: Sequence[RiskChange],
    totals: RiskTotals,
) -> OverallSeverity:
    """Map the score distribution onto the five-level severity ladder.

    Thresholds are checked top-down; the first that holds wins.
    """
    max_materiality = max((c.materiality_score for c in changes), default=0.0)
    high_count = sum(1 for c in changes if c.materiality_score > HIGH_MATERIALITY)

    if max_materiality >= 9 or high_count >= 3:
        return "critical"
    if max_materiality >= 7 or high_count >= 2:
        return "high"
    if totals.added > 5 or max_materiality >= 5:
        return "moderate"
    if totals.added > 0 or totals.modified > 3:
        return "low"
    return "minimal"


def generate_key_insights(
    changes: Sequence[RiskChange],
    totals: RiskTotals,
    breakdown: Dict[str, CategoryCounts],
) -> List[str]:
    """Short template sentences, most important first."""
    insights: List[str] = []

    if totals.added > 0:
        insights.append(
            f"{totals.added} new risk {_plural(totals.added, 'factor', 'factors')} added"
        )
    if totals.removed > 0:
        insights.append(
            f"{totals.removed} risk {_plural(totals.removed, 'factor', 'factors')} removed"
        )

    significant = sum(
        1 for c in changes
        if c.change_type == "modified" and (c.change_percent or 0) > SIGNIFICANT_CHANGE_PERCENT
    )
    if significant > 0:
        insights.append(
            f"{significant} {_plural(significant, 'risk', 'risks')} with significant modifications"
        )

    for category, message in FLAGGED_CATEGORIES:
        counts = breakdown.get(category.value)
        if counts is not None and counts.added > 0:
            insights.append(message)

    return insights


def build_analysis_report(
    changes: Sequence[RiskChange],
    current_records: Sequence[RiskFactorRecord],
    prior_records: Sequence[RiskFactorRecord],
    current_year: int,
    prior_year: int,
) -> AnalysisReport:
    """Assemble the final report from scored changes and both record lists.

    Args:
        changes: Scored changes, one per current record plus one per
                 removed prior record
        current_records: Records from the later filing
        prior_records: Records from the earlier filing
        current_year: Fiscal year of the later filing
        prior_year: Fiscal year of the earlier filing

    Returns:
        AnalysisReport with changes sorted by descending materiality
        (stable, so ties keep pipeline order)
    """
    ordered = sorted(changes, key=lambda c: -c.materiality_score)

    totals = RiskTotals(
        current=len(current_records),
        prior=len(prior_records),
        added=sum(1 for c in ordered if c.change_type == "added"),
        removed=sum(1 for c in ordered if c.change_type == "removed"),
        modified=sum(1 for c in ordered if c.change_type == "modified"),
    )
    breakdown = build_category_breakdown(ordered, current_records, prior_records)
    severity = determine_overall_severity(ordered, totals)

    logger.info(
        f"FY{current_year} vs FY{prior_year}: +{totals.added} / -{totals.removed} / "
        f"~{totals.modified} -> {severity}"
    )

    return AnalysisReport(
        current_year=current_year,
        prior_year=prior_year,
        totals=totals,
        category_breakdown=breakdown,
        changes=ordered,
        overall_severity=severity,
        key_insights=generate_key_insights(ordered, totals, breakdown),
    )
