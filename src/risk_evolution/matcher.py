"""
Cross-Period Matcher: decide which current risk is which prior risk.

Two passes:
1. Exact - normalized title keys (lowercase, alphanumerics only, first 50
   chars). Resolves the common case of stable headings cheaply.
2. Fuzzy - for whatever is left, score = 0.6 * title Jaccard
   + 0.4 * Jaccard of the first 500 content chars. Titles carry more
   identity than bodies in this domain. The best candidate strictly above
   the threshold wins, ties go to the earliest prior index.

The result is injective. No prior record is bound twice and every
current index maps to at most one prior index.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Sequence, Tuple

from risk_evolution.config import AnalysisConfig, default_config
from risk_evolution.models import RiskFactorRecord
from risk_evolution.text import text_similarity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RiskMatch:
    """Provenance of one current -> prior binding."""

    current_index: int
    prior_index: int
    method: Literal["exact", "fuzzy"]
    score: float  # 1.0 for exact matches


@dataclass
class MatchResult:
    """Alignment of current records to prior records.

    ``matches`` has an entry for every current index: a prior index, or None
    for a newly added risk. ``removed`` lists prior indices nobody claimed,
    in ascending order.
    """

    matches: Dict[int, Optional[int]]
    removed: List[int]
    details: Dict[int, RiskMatch] = field(default_factory=dict)

    @property
    def added(self) -> List[int]:
        return [i for i, j in sorted(self.matches.items()) if j is None]

    @property
    def matched_pairs(self) -> List[Tuple[int, int]]:
        return [(i, j) for i, j in sorted(self.matches.items()) if j is not None]


def risk_key(title: str, max_chars: int = 50) -> str:
    """Normalized title key for exact matching."""
    return re.sub(r"[^a-z0-9]", "", title.lower())[:max_chars]


def match_score(
    current: RiskFactorRecord,
    prior: RiskFactorRecord,
    config: Optional[AnalysisConfig] = None,
) -> float:
    """Weighted title/content similarity used by the fuzzy pass."""
    config = config or default_config
    title_sim = text_similarity(current.title, prior.title)
    content_sim = text_similarity(
        current.content[:config.match_content_chars],
        prior.content[:config.match_content_chars],
    )
    return config.title_weight * title_sim + config.content_weight * content_sim


def match_risk_factors(
    current: Sequence[RiskFactorRecord],
    prior: Sequence[RiskFactorRecord],
    config: Optional[AnalysisConfig] = None,
) -> MatchResult:
    """Align current-period records to prior-period records.

    Args:
        current: Records from the later filing, in source order
        prior: Records from the earlier filing, in source order
        config: Thresholds and weights (defaults to default_config)

    Returns:
        MatchResult covering every current and every prior index
    """
    config = config or default_config
    matches: Dict[int, Optional[int]] = {}
    details: Dict[int, RiskMatch] = {}
    used_prior = set()

    # Pass 1: exact title keys
    prior_keys = [risk_key(r.title, config.match_key_chars) for r in prior]
    for i, record in enumerate(current):
        key = risk_key(record.title, config.match_key_chars)
        for j, prior_key in enumerate(prior_keys):
            if j in used_prior:
                continue
            if key == prior_key:
                matches[i] = j
                details[i] = RiskMatch(i, j, "exact", 1.0)
                used_prior.add(j)
                break

    # Pass 2: fuzzy title + content
    for i, record in enumerate(current):
        if i in matches:
            continue

        best_index: Optional[int] = None
        best_score = 0.0
        for j, candidate in enumerate(prior):
            if j in used_prior:
                continue
            score = match_score(record, candidate, config)
            # Strict ">" keeps the earliest prior index on ties
            if score > config.match_threshold and (best_index is None or score > best_score):
                best_index = j
                best_score = score

        if best_index is None:
            matches[i] = None
        else:
            matches[i] = best_index
            details[i] = RiskMatch(i, best_index, "fuzzy", round(best_score, 4))
            used_prior.add(best_index)
            logger.debug(
                f"Fuzzy match {i} -> {best_index} ({best_score:.3f}): "
                f"'{record.title[:40]}' ~ '{prior[best_index].title[:40]}'"
            )

    removed = [j for j in range(len(prior)) if j not in used_prior]

    logger.info(
        f"Matched {len(details)} of {len(current)} current risks "
        f"({sum(1 for d in details.values() if d.method == 'exact')} exact), "
        f"{len(removed)} prior risks unclaimed"
    )
    return MatchResult(
        matches=dict(sorted(matches.items())),
        removed=removed,
        details=details,
    )
