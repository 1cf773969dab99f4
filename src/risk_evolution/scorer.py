"""
Materiality Scorer: turn one RiskChange into a bounded 0-10 score and a
one-line summary.

    score = base(change_type) * weight(category)
            * magnitude(change_percent)        # modified only
            + 2 * (high-alert phrases present)
    clamped to [0, 10], rounded to one decimal

Base scores, category weights and alert phrases come from the Taxonomy.
"""
from __future__ import annotations

from typing import Optional

from risk_evolution.models import RiskChange
from risk_evolution.taxonomy import Taxonomy, default_taxonomy


MAX_SCORE = 10.0
ALERT_PHRASE_BONUS = 2.0

# (change_percent above, multiplier), checked in order
MAGNITUDE_MULTIPLIERS = ((50, 1.5), (25, 1.2))


def _magnitude_multiplier(change: RiskChange) -> float:
    if change.change_type != "modified" or change.change_percent is None:
        return 1.0
    for threshold, multiplier in MAGNITUDE_MULTIPLIERS:
        if change.change_percent > threshold:
            return multiplier
    return 1.0


def count_alert_phrases(change: RiskChange, taxonomy: Optional[Taxonomy] = None) -> int:
    """Number of distinct high-alert phrases in the change's new text.

    Only current content and added snippets count: a warning letter that
    disappeared from the filing is not a new alarm.
    """
    taxonomy = taxonomy or default_taxonomy
    haystack = " ".join([change.current_content or "", *change.added_snippets]).lower()
    return sum(1 for phrase in taxonomy.high_alert_phrases if phrase in haystack)


def calculate_materiality(change: RiskChange, taxonomy: Optional[Taxonomy] = None) -> float:
    """Score a change on a 0-10 scale.

    Args:
        change: Change to score (its materiality_score/summary are ignored)
        taxonomy: Weights and alert phrases (defaults to healthcare taxonomy)

    Returns:
        Score in [0.0, 10.0], one decimal; unchanged risks always score 0
    """
    taxonomy = taxonomy or default_taxonomy
    if change.change_type == "unchanged":
        return 0.0

    score = taxonomy.base_score_for(change.change_type)
    score *= taxonomy.weight_for(change.category)
    score *= _magnitude_multiplier(change)
    score += ALERT_PHRASE_BONUS * count_alert_phrases(change, taxonomy)

    return round(min(MAX_SCORE, max(0.0, score)), 1)


def _truncate(title: str, limit: int) -> str:
    return title[:limit] + ("..." if len(title) > limit else "")


def summarize_change(change: RiskChange) -> str:
    """Template a one-sentence, human-readable description of a change."""
    category = change.category.value.replace("-", " ")

    if change.change_type == "added":
        return f'New {category} risk added: "{_truncate(change.title, 60)}"'
    if change.change_type == "removed":
        return f'{category.capitalize()} risk removed: "{_truncate(change.title, 60)}"'
    if change.change_type == "modified":
        percent = change.change_percent or 0
        if percent > 20:
            description = f"Significantly modified ({percent}% changed)"
        else:
            description = "Minor updates"
        return f'{description} to {category} risk: "{_truncate(change.title, 50)}"'
    return f'No changes to: "{_truncate(change.title, 60)}"'


def score_change(change: RiskChange, taxonomy: Optional[Taxonomy] = None) -> RiskChange:
    """Return a copy of ``change`` with materiality_score and summary filled in."""
    return change.model_copy(update={
        "materiality_score": calculate_materiality(change, taxonomy),
        "summary": summarize_change(change),
    })
