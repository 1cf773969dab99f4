"""
Caller-side helpers: choose which filings to compare and reject unusable ones.

The comparison pipeline never raises. Everything here sits in front of it and
turns "this comparison cannot be made" into a RiskAnalysisError that an API
or CLI can surface as a user-facing message:

- InsufficientContentError: under 1,000 chars of risk factor text
- NoComparableFilingsError: fewer than two qualifying annual filings
- NoExtractableRisksError: segmentation found nothing, even after fallback

Also locates Item 1A inside a full plain-text 10-K when the caller did not
already cut the section out.
"""
from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence, Tuple

from risk_evolution.config import AnalysisConfig, default_config
from risk_evolution.errors import (
    InsufficientContentError,
    NoComparableFilingsError,
    NoExtractableRisksError,
)
from risk_evolution.models import AnalysisReport, FilingText, RiskSectionExtract
from risk_evolution.pipeline import analyze_risk_factors
from risk_evolution.segmenter import extract_risk_factors
from risk_evolution.taxonomy import Taxonomy

logger = logging.getLogger(__name__)


ANNUAL_FORM_TYPES = ("10-K", "10-K/A")

# Item 1A heading, in priority order. A heading sits on a line of its own;
# "see Item 1A. Risk Factors" inside running prose is a cross-reference.
ITEM_1A_PATTERNS: Tuple[Tuple[str, str], ...] = (
    ("item_heading", r"^[ \t]*item\s*1a\.?\s*[-–—:]?\s*risk\s+factors\.?[ \t]*$"),
    ("risk_factors_heading", r"^[ \t]*risk\s+factors\.?[ \t]*$"),
)

# Headings that end Item 1A. "(Continued)" variants are not section ends.
NEXT_ITEM_PATTERNS: Tuple[str, ...] = (
    r"^[ \t]*item\s*1b\b\.?(?!\s*\(?\s*continued)",
    r"^[ \t]*item\s*1c\.?\s*[-–—:]?\s*cybersecurity\b",
    r"^[ \t]*unresolved\s+staff\s+comments\b",
    r"^[ \t]*item\s*2\.?\s*[-–—:]?\s*properties\b",
)

_HEADING_FLAGS = re.IGNORECASE | re.MULTILINE


# =============================================================================
# Section Location
# =============================================================================


def _section_end(text: str, search_from: int) -> Optional[int]:
    end: Optional[int] = None
    for pattern in NEXT_ITEM_PATTERNS:
        match = re.compile(pattern, _HEADING_FLAGS).search(text, search_from)
        if match and (end is None or match.start() < end):
            end = match.start()
    return end


def locate_risk_factors_section(
    text: str,
    config: Optional[AnalysisConfig] = None,
) -> Optional[RiskSectionExtract]:
    """Find Item 1A (Risk Factors) in a full plain-text filing.

    Only headings on a line of their own count. A heading whose end marker
    follows within ``toc_entry_max_chars`` is a table-of-contents entry and
    is skipped; the first remaining heading wins. The section runs to the
    next Item 1B/1C/2 heading, capped at ``max_section_chars``.

    Args:
        text: Plain-text filing
        config: Thresholds (defaults to default_config)

    Returns:
        RiskSectionExtract, or None when no heading is found or the section
        is shorter than min_document_chars
    """
    config = config or default_config
    if not text:
        return None

    for method, pattern in ITEM_1A_PATTERNS:
        for match in re.finditer(pattern, text, _HEADING_FLAGS):
            start = match.start()
            end = _section_end(text, match.end())
            if end is not None and end - match.end() <= config.toc_entry_max_chars:
                logger.debug(f"Skipping table-of-contents hit via {method} at {start}")
                continue
            if end is None or end - start > config.max_section_chars:
                end = min(len(text), start + config.max_section_chars)

            section = text[start:end].strip()
            if len(section) < config.min_document_chars:
                logger.info(
                    f"Item 1A candidate via {method} too short ({len(section)} chars)"
                )
                return None

            return RiskSectionExtract(
                text=section,
                start=start,
                end=end,
                method=method,
                char_count=len(section),
            )

    return None


# =============================================================================
# Preconditions
# =============================================================================


def require_sufficient_content(
    filing: FilingText,
    config: Optional[AnalysisConfig] = None,
) -> FilingText:
    """Raise InsufficientContentError if the filing text is too short."""
    config = config or default_config
    char_count = len(filing.text.strip())
    if char_count < config.min_document_chars:
        raise InsufficientContentError(filing.year, char_count, config.min_document_chars)
    return filing


def select_filing_pair(
    filings: Sequence[FilingText],
    config: Optional[AnalysisConfig] = None,
) -> Tuple[FilingText, FilingText]:
    """Pick the (current, prior) pair to compare.

    Considers the most recent ``max_filings_considered`` annual filings
    (by year, then accession number) and returns the two newest that carry
    enough text.

    Raises:
        NoComparableFilingsError: Fewer than two qualifying filings
    """
    config = config or default_config
    annual = [f for f in filings if f.form_type in ANNUAL_FORM_TYPES]
    annual.sort(key=lambda f: (f.year, f.accession_number or ""), reverse=True)

    qualifying: List[FilingText] = []
    for filing in annual[:config.max_filings_considered]:
        if len(filing.text.strip()) < config.min_document_chars:
            logger.info(f"Skipping FY{filing.year} filing: insufficient content")
            continue
        qualifying.append(filing)

    if len(qualifying) < 2:
        raise NoComparableFilingsError(len(qualifying))

    return qualifying[0], qualifying[1]


# =============================================================================
# Caller-Side Orchestration
# =============================================================================


def _risk_factor_text(filing: FilingText, locate_section: bool, config: AnalysisConfig) -> FilingText:
    if not locate_section:
        return filing
    extract = locate_risk_factors_section(filing.text, config)
    if extract is None:
        logger.info(f"FY{filing.year}: Item 1A not located, using full text")
        return filing
    logger.info(f"FY{filing.year}: Item 1A located via {extract.method} ({extract.char_count} chars)")
    return filing.model_copy(update={"text": extract.text})


def compare_filings(
    filings: Sequence[FilingText],
    config: Optional[AnalysisConfig] = None,
    taxonomy: Optional[Taxonomy] = None,
    locate_section: bool = True,
) -> AnalysisReport:
    """Select a filing pair, enforce preconditions, and run the comparison.

    Args:
        filings: Candidate annual filings, any order
        config: Thresholds (defaults to default_config)
        taxonomy: Category tables (defaults to the healthcare taxonomy)
        locate_section: Cut Item 1A out of full-filing text first

    Returns:
        AnalysisReport for the two most recent qualifying filings

    Raises:
        NoComparableFilingsError: Fewer than two qualifying filings
        InsufficientContentError: Located section under min_document_chars
        NoExtractableRisksError: A filing segments to zero risk factors
    """
    config = config or default_config
    current, prior = select_filing_pair(filings, config)

    records = []
    for filing in (current, prior):
        section = require_sufficient_content(
            _risk_factor_text(filing, locate_section, config), config
        )
        extracted = extract_risk_factors(section.text, config, taxonomy)
        if not extracted:
            raise NoExtractableRisksError(filing.year)
        records.append(extracted)

    return analyze_risk_factors(
        records[0], records[1], current.year, prior.year, config, taxonomy
    )
