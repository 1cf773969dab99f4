"""
Risk Factor Comparison Pipeline.

    Segmenter -> Categorizer -> Matcher -> Diff -> Scorer -> Aggregator

Data flows strictly downstream. Every stage is a pure function of its inputs:
no I/O, no shared mutable state, no clock or randomness in the output. One
call compares one filing pair, so callers may run as many comparisons in
parallel as they like without coordination.

The pipeline is total. Empty or unparseable text produces an empty record
list and, ultimately, a "minimal" report; it is the caller's job (see
filings.py) to reject inputs that are too short or pairs that do not exist.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from risk_evolution.aggregator import build_analysis_report
from risk_evolution.config import AnalysisConfig, default_config
from risk_evolution.diff import ADDED_SEVERITY, REMOVED_SEVERITY, compare_content
from risk_evolution.matcher import MatchResult, match_risk_factors
from risk_evolution.models import AnalysisReport, FilingText, RiskChange, RiskFactorRecord
from risk_evolution.observability import stage_timer
from risk_evolution.scorer import score_change
from risk_evolution.segmenter import extract_risk_factors
from risk_evolution.taxonomy import Taxonomy, default_taxonomy

logger = logging.getLogger(__name__)


def build_changes(
    current: Sequence[RiskFactorRecord],
    prior: Sequence[RiskFactorRecord],
    match: MatchResult,
    config: Optional[AnalysisConfig] = None,
    taxonomy: Optional[Taxonomy] = None,
) -> List[RiskChange]:
    """Classify and score every current record and every removed prior record.

    Order: current records in source order (added / modified / unchanged),
    then removed prior records in source order.
    """
    config = config or default_config
    taxonomy = taxonomy or default_taxonomy
    changes: List[RiskChange] = []

    for current_index, prior_index in match.matches.items():
        record = current[current_index]

        if prior_index is None:
            draft = RiskChange(
                title=record.title,
                change_type="added",
                category=record.category,
                current_content=record.content,
                severity=ADDED_SEVERITY,
            )
            changes.append(score_change(draft, taxonomy))
            continue

        prior_record = prior[prior_index]
        content_diff = compare_content(record.content, prior_record.content, config)

        if not content_diff.is_modified:
            draft = RiskChange(
                title=record.title,
                change_type="unchanged",
                category=record.category,
            )
        else:
            draft = RiskChange(
                title=record.title,
                change_type="modified",
                category=record.category,
                current_content=record.content,
                prior_content=prior_record.content,
                diff_markup=content_diff.diff_markup,
                change_percent=content_diff.change_percent,
                added_snippets=content_diff.added_snippets,
                removed_snippets=content_diff.removed_snippets,
                severity=content_diff.severity,
            )
        changes.append(score_change(draft, taxonomy))

    for prior_index in match.removed:
        record = prior[prior_index]
        draft = RiskChange(
            title=record.title,
            change_type="removed",
            category=record.category,
            prior_content=record.content,
            severity=REMOVED_SEVERITY,
        )
        changes.append(score_change(draft, taxonomy))

    return changes


def analyze_risk_factors(
    current_records: Sequence[RiskFactorRecord],
    prior_records: Sequence[RiskFactorRecord],
    current_year: int,
    prior_year: int,
    config: Optional[AnalysisConfig] = None,
    taxonomy: Optional[Taxonomy] = None,
) -> AnalysisReport:
    """Compare two pre-segmented record lists.

    Entry point for callers that already hold RiskFactorRecord lists (tests,
    cached segmentations); skips the segmenter.

    Args:
        current_records: Records from the later filing
        prior_records: Records from the earlier filing
        current_year: Fiscal year of the later filing
        prior_year: Fiscal year of the earlier filing
        config: Thresholds (defaults to default_config)
        taxonomy: Category tables (defaults to the healthcare taxonomy)

    Returns:
        AnalysisReport for the pair
    """
    config = config or default_config
    taxonomy = taxonomy or default_taxonomy

    with stage_timer("matching", current_year, prior_year) as counts:
        match = match_risk_factors(current_records, prior_records, config)
        counts["matched"] = len(match.details)
        counts["added"] = len(match.added)
        counts["removed"] = len(match.removed)

    with stage_timer("diffing", current_year, prior_year) as counts:
        changes = build_changes(current_records, prior_records, match, config, taxonomy)
        counts["changes"] = len(changes)

    with stage_timer("aggregation", current_year, prior_year) as counts:
        report = build_analysis_report(
            changes, current_records, prior_records, current_year, prior_year
        )
        counts["overall_severity"] = report.overall_severity

    return report


def analyze_filings(
    current: FilingText,
    prior: FilingText,
    config: Optional[AnalysisConfig] = None,
    taxonomy: Optional[Taxonomy] = None,
) -> AnalysisReport:
    """Segment, categorize and compare two plain-text risk factor sections.

    Args:
        current: Later filing's risk factor text and fiscal year
        prior: Earlier filing's risk factor text and fiscal year
        config: Thresholds (defaults to default_config)
        taxonomy: Category tables (defaults to the healthcare taxonomy)

    Returns:
        AnalysisReport for the pair
    """
    config = config or default_config
    taxonomy = taxonomy or default_taxonomy

    with stage_timer("segmentation", current.year, prior.year) as counts:
        current_records = extract_risk_factors(current.text, config, taxonomy)
        prior_records = extract_risk_factors(prior.text, config, taxonomy)
        counts["current_records"] = len(current_records)
        counts["prior_records"] = len(prior_records)

    if not current_records or not prior_records:
        logger.warning(
            f"Segmentation produced {len(current_records)} current / "
            f"{len(prior_records)} prior risk factors"
        )

    return analyze_risk_factors(
        current_records, prior_records, current.year, prior.year, config, taxonomy
    )
