"""
Risk Categorizer - weighted keyword/phrase scoring.

score(category) = keyword hits + PHRASE_WEIGHT * phrase hits

The category with the strictly highest score wins. Ties and texts that hit
nothing fall back to GENERAL. Pure function of (text, taxonomy): no caching,
no call-order effects.
"""
from __future__ import annotations

import logging
import re
from typing import Dict, Optional

from risk_evolution.models import RiskCategory
from risk_evolution.taxonomy import CategoryProfile, Taxonomy, default_taxonomy

logger = logging.getLogger(__name__)


# A multi-word phrase is far more specific than a single keyword
PHRASE_WEIGHT = 5

# Trailing marker for keywords that match as a word prefix
STEM_MARKER = "*"


def keyword_pattern(keyword: str) -> str:
    """Regex for one taxonomy keyword: a stem, or a whole word with its plural."""
    if keyword.endswith(STEM_MARKER):
        return r"\b" + re.escape(keyword[:-1])
    return r"\b" + re.escape(keyword) + r"(?:e?s)?\b"


def _count_keyword(keyword: str, text_lower: str) -> int:
    return len(re.findall(keyword_pattern(keyword), text_lower))


def _score_profile(profile: CategoryProfile, text_lower: str) -> int:
    keyword_hits = sum(_count_keyword(kw, text_lower) for kw in profile.keywords)
    phrase_hits = sum(text_lower.count(phrase) for phrase in profile.phrases)
    return keyword_hits + PHRASE_WEIGHT * phrase_hits


def score_categories(
    text: str,
    taxonomy: Optional[Taxonomy] = None,
) -> Dict[RiskCategory, int]:
    """Score text against every category in the taxonomy.

    Args:
        text: Risk factor body text
        taxonomy: Category vocabulary (defaults to the healthcare taxonomy)

    Returns:
        Dict mapping each category to its integer score, in taxonomy order
    """
    taxonomy = taxonomy or default_taxonomy
    text_lower = (text or "").lower()
    return {
        profile.category: _score_profile(profile, text_lower)
        for profile in taxonomy.profiles
    }


def categorize_risk(
    text: str,
    taxonomy: Optional[Taxonomy] = None,
) -> RiskCategory:
    """Assign exactly one category to a risk factor text.

    Args:
        text: Risk factor body text
        taxonomy: Category vocabulary (defaults to the healthcare taxonomy)

    Returns:
        Winning category, or GENERAL on a tie or when nothing matches
    """
    scores = score_categories(text, taxonomy)
    if not scores:
        return RiskCategory.GENERAL

    best_score = max(scores.values())
    if best_score <= 0:
        return RiskCategory.GENERAL

    leaders = [category for category, score in scores.items() if score == best_score]
    if len(leaders) > 1:
        logger.debug(
            f"Category tie at score {best_score} between "
            f"{[c.value for c in leaders]}, defaulting to general"
        )
        return RiskCategory.GENERAL

    return leaders[0]
