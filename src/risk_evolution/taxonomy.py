"""
Risk Taxonomy - category keyword tables, category weights, alert phrases.

These tables are lookup data, not state. They are built once at import into
frozen dataclasses of tuples and passed into the categorizer and scorer, so a
caller can swap in a different taxonomy (e.g. for a non-healthcare sector)
without touching module globals.

Keywords are counted as whole words, plural "-s" or "-es" included, so
"ema" does not fire on "email". A trailing "*" marks a stem that matches any
word it starts ("royalt*" covers "royalty" and "royalties"). Phrases are
counted as plain substrings and are worth more (see PHRASE_WEIGHT in
categorizer.py).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from risk_evolution.models import RiskCategory


@dataclass(frozen=True)
class CategoryProfile:
    """Keyword/phrase vocabulary and materiality weight for one category."""

    category: RiskCategory
    weight: float
    keywords: Tuple[str, ...] = ()
    phrases: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Taxonomy:
    """Immutable bundle of everything the categorizer and scorer look up."""

    profiles: Tuple[CategoryProfile, ...]
    high_alert_phrases: Tuple[str, ...]
    base_scores: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType(
            {"added": 7.0, "removed": 5.0, "modified": 3.0, "unchanged": 0.0}
        )
    )
    default_weight: float = 1.0

    def profile_for(self, category: RiskCategory) -> Optional[CategoryProfile]:
        for profile in self.profiles:
            if profile.category == category:
                return profile
        return None

    def weight_for(self, category: RiskCategory) -> float:
        profile = self.profile_for(category)
        return profile.weight if profile is not None else self.default_weight

    def base_score_for(self, change_type: str) -> float:
        return self.base_scores.get(change_type, 0.0)


# =============================================================================
# Healthcare Taxonomy (default)
# =============================================================================

HEALTHCARE_PROFILES: Tuple[CategoryProfile, ...] = (
    CategoryProfile(
        category=RiskCategory.REGULATORY,
        weight=3.0,
        keywords=(
            "fda", "ema", "regulatory", "approval", "clearance", "compliance",
            "audit*", "inspection", "recall", "gmp", "cgmp", "hipaa",
        ),
        phrases=(
            "warning letter", "quality system", "510(k)", "premarket approval",
            "form 483", "regulatory authorities",
        ),
    ),
    CategoryProfile(
        category=RiskCategory.CLINICAL,
        weight=3.0,
        keywords=(
            "efficacy", "safety", "patient", "endpoint", "enrollment",
            "indication", "label", "study", "studies", "placebo", "randomized",
        ),
        phrases=(
            "clinical trial", "adverse event", "clinical hold", "clinical data",
            "trial results", "clinical development",
        ),
    ),
    CategoryProfile(
        category=RiskCategory.COMPETITIVE,
        weight=1.5,
        keywords=(
            "competition", "competitive", "competitor", "generic", "biosimilar",
            "substitute", "alternative",
        ),
        phrases=(
            "market share", "loss of exclusivity", "pricing pressure",
            "market entry", "patent expir",
        ),
    ),
    CategoryProfile(
        category=RiskCategory.FINANCIAL,
        weight=2.0,
        keywords=(
            "capital", "funding", "cash", "liquidity", "debt", "financing",
            "revenue", "profitability", "dilution", "covenant", "credit",
        ),
        phrases=(
            "operating loss", "cash burn", "going concern", "net loss",
            "additional capital", "credit facility",
        ),
    ),
    CategoryProfile(
        category=RiskCategory.OPERATIONAL,
        weight=1.0,
        keywords=(
            "manufacturing", "supplier", "capacity", "production", "inventory",
            "distribution", "logistics", "employee", "labor", "workforce",
        ),
        phrases=(
            "supply chain", "raw material", "third-party manufacturer",
            "key personnel", "contract manufacturer",
        ),
    ),
    CategoryProfile(
        category=RiskCategory.INTELLECTUAL_PROPERTY,
        weight=1.5,
        keywords=(
            "patent", "infringement", "proprietary", "trademark", "royalt*",
            "licens*",
        ),
        phrases=(
            "intellectual property", "trade secret", "patent protection",
        ),
    ),
    CategoryProfile(
        category=RiskCategory.LEGAL,
        weight=2.5,
        keywords=(
            "lawsuit", "litigation", "legal", "settlement", "investigation",
            "subpoena", "antitrust", "securities",
        ),
        phrases=(
            "class action", "false claims", "legal proceedings",
            "securities litigation",
        ),
    ),
    CategoryProfile(
        category=RiskCategory.REIMBURSEMENT,
        weight=2.0,
        keywords=(
            "reimbursement", "coverage", "payer", "payor", "insurance",
            "medicare", "medicaid", "cms", "pricing",
        ),
        phrases=(
            "drug pricing", "affordable care", "coverage decision",
            "third-party payors",
        ),
    ),
    CategoryProfile(
        category=RiskCategory.CYBERSECURITY,
        weight=1.5,
        keywords=(
            "cybersecurity", "cyber*", "breach", "ransomware", "privacy", "hack*",
            "malware", "phishing", "spoofing",
        ),
        phrases=(
            "data breach", "security incident", "data protection",
            "unauthorized access",
        ),
    ),
    CategoryProfile(
        category=RiskCategory.GENERAL,
        weight=0.5,
    ),
)

# Phrases that signal a potentially material disclosure wherever they appear
HIGH_ALERT_PHRASES: Tuple[str, ...] = (
    "going concern",
    "material weakness",
    "significant deficiency",
    "warning letter",
    "complete response letter",
    "clinical hold",
    "class action",
    "securities litigation",
    "restatement",
    "covenant violation",
    "event of default",
    "bankruptcy",
)

default_taxonomy = Taxonomy(
    profiles=HEALTHCARE_PROFILES,
    high_alert_phrases=HIGH_ALERT_PHRASES,
)
