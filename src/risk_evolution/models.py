"""
Pydantic models for risk factor extraction and cross-period comparison.

All models are frozen: records, changes and reports are built once and never
mutated. Attributes are snake_case in Python and serialize to camelCase
(``model_dump(by_alias=True)``), which is the shape the presentation layer
consumes.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RiskCategory(str, Enum):
    """Closed set of risk factor categories (healthcare-oriented)."""

    REGULATORY = "regulatory"
    CLINICAL = "clinical"
    COMPETITIVE = "competitive"
    FINANCIAL = "financial"
    OPERATIONAL = "operational"
    INTELLECTUAL_PROPERTY = "intellectual-property"
    LEGAL = "legal"
    REIMBURSEMENT = "reimbursement"
    CYBERSECURITY = "cybersecurity"
    GENERAL = "general"


ChangeType = Literal["added", "removed", "modified", "unchanged"]
OverallSeverity = Literal["critical", "high", "moderate", "low", "minimal"]


class _FrozenModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


# =============================================================================
# Extraction Models
# =============================================================================


class RiskFactorRecord(_FrozenModel):
    """One discrete disclosed risk: a detected heading plus its body text."""

    title: str
    content: str  # Body text, heading excluded
    category: RiskCategory = RiskCategory.GENERAL
    word_count: int = Field(default=0, ge=0)


class FilingText(_FrozenModel):
    """Plain-text risk factor section (or full filing text) for one fiscal year.

    HTML cleaning happens upstream; ``text`` is expected to be plain text
    with paragraph breaks preserved as blank lines.
    """

    year: int
    text: str
    accession_number: Optional[str] = None
    form_type: str = "10-K"


class RiskSectionExtract(_FrozenModel):
    """Item 1A located inside a full plain-text filing."""

    text: str
    start: int
    end: int
    method: Literal["item_heading", "risk_factors_heading"]
    char_count: int


# =============================================================================
# Comparison Models
# =============================================================================


class RiskChange(_FrozenModel):
    """Classification of one aligned pair or one unmatched record.

    ``change_percent`` is only set for modified risks. ``severity`` is an
    informal tier: 4 for added, 2 for removed, 1-3 for modified by
    magnitude, 0 for unchanged.
    """

    title: str
    change_type: ChangeType
    category: RiskCategory

    current_content: Optional[str] = None
    prior_content: Optional[str] = None
    diff_markup: Optional[str] = None  # Inline <ins>/<del> token diff
    change_percent: Optional[int] = Field(default=None, ge=0, le=100)

    added_snippets: List[str] = []     # <= max_snippets sentences
    removed_snippets: List[str] = []

    severity: int = 0
    materiality_score: float = Field(default=0.0, ge=0.0, le=10.0)
    summary: str = ""


class RiskTotals(_FrozenModel):
    """Record and change counts for one comparison."""

    current: int = 0
    prior: int = 0
    added: int = 0
    removed: int = 0
    modified: int = 0


class CategoryCounts(_FrozenModel):
    """Per-category presence and change counts."""

    current: int = 0
    prior: int = 0
    added: int = 0
    removed: int = 0
    modified: int = 0


class AnalysisReport(_FrozenModel):
    """Complete structured output of one filing-pair comparison.

    This is the sole external output of the pipeline. ``changes`` is ordered
    by descending materiality; ``category_breakdown`` is keyed by category
    value (e.g. "regulatory").
    """

    current_year: int
    prior_year: int
    totals: RiskTotals
    category_breakdown: Dict[str, CategoryCounts]
    changes: List[RiskChange]
    overall_severity: OverallSeverity
    key_insights: List[str]
