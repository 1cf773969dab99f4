"""
Diff Generator for matched risk factor pairs.

A score alone is meaningless to a reviewer; they need to SEE what changed.
For every matched pair this module decides modified vs unchanged and, for
modified pairs, produces:
- an inline token diff (<ins>/<del> markup) over the first 2,000 chars
- up to 5 added and 5 removed sentences from a sentence-level diff

Uses difflib.SequenceMatcher for both levels. Change percent uses the same
word-set Jaccard measure as the matcher so the two never disagree about
what "similar" means.
"""
from __future__ import annotations

import difflib
import html
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from risk_evolution.config import AnalysisConfig, default_config
from risk_evolution.text import extract_sentences, text_similarity

logger = logging.getLogger(__name__)


# Informal severity tiers for unmatched records
ADDED_SEVERITY = 4
REMOVED_SEVERITY = 2


@dataclass(frozen=True)
class ContentDiff:
    """Outcome of comparing one matched pair's body text."""

    similarity: float
    change_percent: int
    is_modified: bool
    severity: int = 0
    diff_markup: Optional[str] = None
    added_snippets: List[str] = field(default_factory=list)
    removed_snippets: List[str] = field(default_factory=list)


def _change_percent_from(similarity: float) -> int:
    return max(0, min(100, int(round((1 - similarity) * 100))))


def calculate_change_percent(current: str, prior: str) -> int:
    """round((1 - Jaccard) * 100), always an integer in [0, 100]."""
    return _change_percent_from(text_similarity(current, prior))


def severity_tier(change_percent: int) -> int:
    """3 above 30% change, 2 above 15%, else 1."""
    if change_percent > 30:
        return 3
    if change_percent > 15:
        return 2
    return 1


def _tokenize_for_diff(text: str) -> List[str]:
    # Whitespace runs are kept as tokens so the markup reproduces the text
    return re.findall(r"\s+|\S+", text)


def _escape(text: str) -> str:
    return html.escape(text, quote=False).replace("\n", "<br>")


def generate_diff_markup(prior: str, current: str) -> str:
    """Render a token-level diff of prior -> current as inline markup.

    Unchanged text is HTML-escaped as-is, deletions are wrapped in
    <del>...</del> and insertions in <ins>...</ins>.
    """
    old_tokens = _tokenize_for_diff(prior)
    new_tokens = _tokenize_for_diff(current)

    matcher = difflib.SequenceMatcher(None, old_tokens, new_tokens, autojunk=False)

    parts: List[str] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            parts.append(_escape("".join(old_tokens[i1:i2])))
            continue
        if tag in ("replace", "delete"):
            parts.append(f"<del>{_escape(''.join(old_tokens[i1:i2]))}</del>")
        if tag in ("replace", "insert"):
            parts.append(f"<ins>{_escape(''.join(new_tokens[j1:j2]))}</ins>")

    return "".join(parts)


def get_sentence_diff(
    prior: str,
    current: str,
    min_chars: int = 20,
) -> Tuple[List[str], List[str]]:
    """Get added and removed sentences using difflib.

    Args:
        prior: Earlier text
        current: Later text
        min_chars: Sentences shorter than this are ignored

    Returns:
        Tuple of (added_sentences, removed_sentences), in document order
    """
    sentences_old = extract_sentences(prior, min_chars)
    sentences_new = extract_sentences(current, min_chars)

    matcher = difflib.SequenceMatcher(None, sentences_old, sentences_new, autojunk=False)

    added: List[str] = []
    removed: List[str] = []

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag in ("replace", "delete"):
            removed.extend(sentences_old[i1:i2])
        if tag in ("replace", "insert"):
            added.extend(sentences_new[j1:j2])

    return added, removed


def compare_content(
    current: str,
    prior: str,
    config: Optional[AnalysisConfig] = None,
) -> ContentDiff:
    """Decide whether a matched pair is modified and build its diff.

    Args:
        current: Body text from the later filing
        prior: Body text from the earlier filing
        config: Thresholds (defaults to default_config)

    Returns:
        ContentDiff; when change_percent is at or below the unchanged floor
        only similarity/change_percent are populated
    """
    config = config or default_config
    current = current or ""
    prior = prior or ""

    similarity = text_similarity(current, prior)
    change_percent = _change_percent_from(similarity)

    if change_percent <= config.unchanged_floor:
        return ContentDiff(
            similarity=round(similarity, 4),
            change_percent=change_percent,
            is_modified=False,
        )

    window = config.diff_window_chars
    markup = generate_diff_markup(prior[:window], current[:window])
    added, removed = get_sentence_diff(prior, current, config.min_snippet_chars)
    logger.debug(
        f"Modified pair: {change_percent}% changed, "
        f"{len(added)} added / {len(removed)} removed sentences"
    )

    return ContentDiff(
        similarity=round(similarity, 4),
        change_percent=change_percent,
        is_modified=True,
        severity=severity_tier(change_percent),
        diff_markup=markup,
        added_snippets=added[:config.max_snippets],
        removed_snippets=removed[:config.max_snippets],
    )
