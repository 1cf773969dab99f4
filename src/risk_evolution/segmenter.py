"""
Risk Factor Segmenter: split an Item 1A text blob into discrete risks.

Filings have no reliable schema for risk factor headings. Some issuers use
ALL-CAPS headlines, most use a bold lead sentence ("We may not be able to
..."), a few number or bullet them. Segmentation is therefore layered:

A) Heading detection - several independent line patterns propose boundary
   positions; near-duplicate boundaries are collapsed and each record runs
   from its heading to the next one.
B) Paragraph fallback - when A finds fewer than 3 records, short capitalized
   paragraphs without a sentence terminator are treated as headings.

Key Design Decisions:
- Total: never raises, malformed or empty input yields []
- Deterministic: same input -> same records, in source order
- No shared match state: every call runs fresh re.finditer scans
- The 1,000-char "insufficient content" check belongs to the caller
  (see filings.py); this module segments whatever it is given
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from risk_evolution.categorizer import categorize_risk
from risk_evolution.config import AnalysisConfig, default_config
from risk_evolution.models import RiskFactorRecord
from risk_evolution.taxonomy import Taxonomy

logger = logging.getLogger(__name__)


# =============================================================================
# Heading Patterns
# =============================================================================

# (name, pattern) pairs, applied with re.MULTILINE. Group 1 is the heading.
HEADING_PATTERNS: Tuple[Tuple[str, str], ...] = (
    # ALL-CAPS headline on its own line
    ("headline", r"^[ \t]*([A-Z][A-Z ,&'\-]{10,100})[ \t]*$"),
    # Lead sentence used as a heading: "We may ...", "Our ...", "If we ..."
    ("lead_sentence", r"^[ \t]*((?:Risk:|We may|Our\b|The Company|If we)[^\n]{20,150})$"),
    # Numbered: "1. Title", "12) Title"
    ("numbered", r"^[ \t]*(\d+[.)][ \t]+[A-Z][^\n]{20,150})$"),
    # Bulleted: "• Title", "- Title", "* Title"
    ("bulleted", r"^[ \t]*([•\-*][ \t]*[A-Z][^\n]{20,150})$"),
)

# Headings that are navigation, not risks
NON_RISK_HEADING = r"^(table of contents|page|item)\b"

MIN_HEADING_CHARS = 15

SENTENCE_TERMINATORS = (".", "!", "?")


@dataclass(frozen=True)
class RiskSegment:
    """One segmented risk factor before categorization."""

    title: str
    content: str
    word_count: int


@dataclass(frozen=True)
class _Boundary:
    start: int        # Start of the heading line
    heading_end: int  # End of the heading line; content starts here
    title: str        # Normalized title
    pattern: str


# =============================================================================
# Helpers
# =============================================================================


def _clean_text(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def normalize_title(title: str, max_chars: int = 200) -> str:
    """Strip leading numerals/bullets, collapse whitespace, cap length."""
    title = re.sub(r"^\s*[\d.)]+\s*", "", title)
    title = re.sub(r"^\s*[•\-*]\s*", "", title)
    title = " ".join(title.split())
    return title[:max_chars]


def title_key(title: str) -> str:
    """Case-insensitive, punctuation-stripped form used for deduplication."""
    stripped = re.sub(r"[^a-z0-9\s]", "", title.lower())
    return " ".join(stripped.split())


def _is_navigation(title: str) -> bool:
    return re.match(NON_RISK_HEADING, title, re.IGNORECASE) is not None


def _make_segment(title: str, content: str) -> RiskSegment:
    return RiskSegment(title=title, content=content, word_count=len(content.split()))


# =============================================================================
# Method A: Heading Detection
# =============================================================================


def _find_boundaries(text: str, config: AnalysisConfig) -> List[_Boundary]:
    candidates: List[Tuple[int, int, _Boundary]] = []

    for order, (name, pattern) in enumerate(HEADING_PATTERNS):
        for match in re.finditer(pattern, text, re.MULTILINE):
            raw_title = match.group(1).strip()
            if len(raw_title) <= MIN_HEADING_CHARS or _is_navigation(raw_title):
                continue
            title = normalize_title(raw_title, config.max_title_chars)
            if not title:
                continue
            candidates.append((
                match.start(),
                order,
                _Boundary(
                    start=match.start(),
                    heading_end=match.end(),
                    title=title,
                    pattern=name,
                ),
            ))

    candidates.sort(key=lambda c: (c[0], c[1]))

    kept: List[_Boundary] = []
    seen_keys = set()
    for _, _, boundary in candidates:
        key = title_key(boundary.title)
        if key in seen_keys:
            continue
        if any(abs(boundary.start - k.start) < config.dedupe_window_chars for k in kept):
            continue
        kept.append(boundary)
        seen_keys.add(key)

    return kept


def _segment_by_headings(text: str, config: AnalysisConfig) -> List[RiskSegment]:
    boundaries = _find_boundaries(text, config)
    segments: List[RiskSegment] = []

    for i, boundary in enumerate(boundaries):
        end = boundaries[i + 1].start if i + 1 < len(boundaries) else len(text)
        content = text[boundary.heading_end:end].strip()
        if len(content) < config.min_record_chars:
            logger.debug(
                f"Dropping '{boundary.title[:40]}' ({boundary.pattern}): "
                f"{len(content)} chars of content"
            )
            continue
        segments.append(_make_segment(boundary.title, content))

    return segments


# =============================================================================
# Method B: Paragraph Fallback
# =============================================================================


def _looks_like_header(paragraph: str, config: AnalysisConfig) -> bool:
    # NOTE: short emphatic sentences without a period ("Our business is
    # highly competitive") also pass this test and become headings.
    return (
        MIN_HEADING_CHARS < len(paragraph) < config.fallback_header_max_chars
        and paragraph[0].isupper()
        and not paragraph.endswith(SENTENCE_TERMINATORS)
        and not _is_navigation(paragraph)
    )


def _segment_by_paragraphs(text: str, config: AnalysisConfig) -> List[RiskSegment]:
    segments: List[RiskSegment] = []
    title: Optional[str] = None
    body: List[str] = []

    def flush() -> None:
        if title is None:
            return
        content = "\n\n".join(body)
        if len(content) >= config.min_record_chars:
            segments.append(_make_segment(title, content))

    for paragraph in re.split(r"\n\s*\n", text):
        trimmed = paragraph.strip()
        if not trimmed:
            continue

        if _looks_like_header(trimmed, config):
            flush()
            title = normalize_title(trimmed, config.max_title_chars)
            body = []
        elif len(trimmed) < config.fallback_min_paragraph_chars:
            continue
        elif title is not None:
            body.append(trimmed)

    flush()
    return segments


# =============================================================================
# Public API
# =============================================================================


def segment_risk_factors(
    text: Optional[str],
    config: Optional[AnalysisConfig] = None,
) -> List[RiskSegment]:
    """Split a cleaned Item 1A text blob into ordered risk segments.

    Args:
        text: Plain text (HTML already stripped), paragraphs separated by
              blank lines and headings on their own lines
        config: Thresholds (defaults to default_config)

    Returns:
        Segments in source order; [] if nothing could be extracted
    """
    config = config or default_config
    if not isinstance(text, str):
        return []

    cleaned = _clean_text(text)
    if not cleaned:
        return []

    segments = _segment_by_headings(cleaned, config)
    method = "headings"

    if len(segments) < config.min_fallback_records:
        fallback = _segment_by_paragraphs(cleaned, config)
        if len(fallback) > len(segments):
            segments = fallback
            method = "paragraphs"

    logger.debug(f"Segmented {len(segments)} risk factors via {method}")
    return segments


def extract_risk_factors(
    text: Optional[str],
    config: Optional[AnalysisConfig] = None,
    taxonomy: Optional[Taxonomy] = None,
) -> List[RiskFactorRecord]:
    """Segment text and categorize every segment into a RiskFactorRecord."""
    return [
        RiskFactorRecord(
            title=segment.title,
            content=segment.content,
            category=categorize_risk(segment.content, taxonomy),
            word_count=segment.word_count,
        )
        for segment in segment_risk_factors(text, config)
    ]
