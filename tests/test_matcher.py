"""
Tests for the Cross-Period Matcher (matcher.py).

Covers exact and fuzzy passes, tie-breaking, and the injectivity/partition
guarantees on seeded random inputs.
"""
from __future__ import annotations

import random

import pytest

from risk_evolution.config import AnalysisConfig
from risk_evolution.matcher import match_risk_factors, match_score, risk_key
from risk_evolution.models import RiskFactorRecord


SUPPLY_BODY = (
    "We rely on a limited number of suppliers for critical components and raw "
    "materials used in the manufacture of our devices. Interruptions at any of "
    "these suppliers, including as a result of natural disasters, labor disputes, "
    "quality problems or financial difficulties, could delay shipments and harm "
    "our relationships with hospital customers. We do not have long-term supply "
    "contracts with most of these vendors and may be unable to find alternative "
    "sources on acceptable terms or within a reasonable time. Any of these "
    "events could reduce our revenue and operating margins."
)


def record(title: str, content: str = "") -> RiskFactorRecord:
    return RiskFactorRecord(title=title, content=content, word_count=len(content.split()))


@pytest.fixture
def supply_pair():
    """Reworded title, same opening paragraph."""
    prior = record("Supply Chain Disruption", SUPPLY_BODY)
    current = record(
        "Disruptions to Our Supply Chain",
        SUPPLY_BODY + " Recent export restrictions affecting semiconductor shipments "
        "have lengthened lead times for several components.",
    )
    return current, prior


# =============================================================================
# Test Keys and Scores
# =============================================================================


class TestRiskKey:
    """Test exact-match title keys."""

    def test_strips_case_and_punctuation(self):
        """Verify keys keep only lowercase alphanumerics."""
        assert risk_key("Supply-Chain Disruption!") == "supplychaindisruption"

    def test_truncates(self):
        """Verify keys are capped at 50 characters."""
        assert len(risk_key("x" * 80)) == 50
        assert risk_key("abcdef", max_chars=3) == "abc"


class TestMatchScore:
    """Test the weighted fuzzy score."""

    def test_identical_records(self):
        """Verify identical records score 1.0."""
        r = record("Supply Chain Disruption", SUPPLY_BODY)
        assert match_score(r, r) == pytest.approx(1.0)

    def test_title_and_content_weights(self, supply_pair):
        """Verify 0.6 * title Jaccard + 0.4 * content Jaccard."""
        current, prior = supply_pair
        # Titles share 2 of 6 words; first 500 content chars are identical
        assert match_score(current, prior) == pytest.approx(0.6 * (2 / 6) + 0.4 * 1.0)

    def test_unrelated_records(self):
        """Verify disjoint records score 0."""
        a = record("alpha beta", "gamma delta")
        b = record("epsilon zeta", "eta theta")
        assert match_score(a, b) == 0.0


# =============================================================================
# Test Matching
# =============================================================================


class TestMatchRiskFactors:
    """Test the two-pass alignment."""

    def test_exact_match_ignores_case_and_punctuation(self):
        """Verify titles differing only in case/punctuation match exactly."""
        current = [record("supply chain disruption.", "new body text")]
        prior = [record("Supply Chain Disruption", "old body text")]

        result = match_risk_factors(current, prior)

        assert result.matches == {0: 0}
        assert result.details[0].method == "exact"
        assert result.details[0].score == 1.0
        assert result.removed == []

    def test_fuzzy_match(self, supply_pair):
        """Verify a reworded title matches through shared content."""
        current, prior = supply_pair

        result = match_risk_factors([current], [prior])

        assert result.matches == {0: 0}
        assert result.details[0].method == "fuzzy"
        assert result.details[0].score > 0.5

    def test_below_threshold_is_added_and_removed(self):
        """Verify unrelated records are reported as added plus removed."""
        current = [record("Cybersecurity incidents", "ransomware could encrypt our systems")]
        prior = [record("Product liability", "injury claims could be costly")]

        result = match_risk_factors(current, prior)

        assert result.matches == {0: None}
        assert result.added == [0]
        assert result.removed == [0]
        assert result.details == {}

    def test_threshold_is_strict(self):
        """Verify a score exactly at the threshold does not match."""
        # Disjoint titles, identical contents: 0.6 * 0 + 0.4 * 1 = 0.4
        current = [record("alpha beta", "same body")]
        prior = [record("gamma delta", "same body")]

        assert match_risk_factors(current, prior, AnalysisConfig(match_threshold=0.4)).matches == {0: None}
        assert match_risk_factors(current, prior, AnalysisConfig(match_threshold=0.39)).matches == {0: 0}

    def test_tie_goes_to_earliest_prior(self, supply_pair):
        """Verify equal fuzzy scores bind the lowest prior index."""
        current, prior = supply_pair

        result = match_risk_factors([current], [prior, prior])

        assert result.matches == {0: 0}
        assert result.removed == [1]

    def test_prior_bound_at_most_once(self):
        """Verify two identical current records cannot share one prior."""
        current = [record("Supply Chain Disruption", SUPPLY_BODY)] * 2
        prior = [record("Supply Chain Disruption", SUPPLY_BODY)]

        result = match_risk_factors(current, prior)

        assert result.matches == {0: 0, 1: None}
        assert result.added == [1]

    def test_exact_pass_runs_first(self, supply_pair):
        """Verify an exact title match wins over an earlier fuzzy candidate."""
        current, prior = supply_pair
        exact_prior = record("Disruptions to Our Supply Chain", "completely different wording")

        result = match_risk_factors([current], [prior, exact_prior])

        assert result.matches == {0: 1}
        assert result.details[0].method == "exact"
        assert result.removed == [0]

    def test_empty_inputs(self):
        """Verify empty lists are handled."""
        assert match_risk_factors([], []).matches == {}
        only_prior = match_risk_factors([], [record("Old risk")])
        assert only_prior.removed == [0]
        only_current = match_risk_factors([record("New risk")], [])
        assert only_current.added == [0]

    def test_matched_pairs(self, supply_pair):
        """Verify matched_pairs lists (current, prior) in current order."""
        current, prior = supply_pair
        extra = record("Cybersecurity incidents", "ransomware could encrypt our systems")

        result = match_risk_factors([extra, current], [prior])

        assert result.matched_pairs == [(1, 0)]
        assert result.added == [0]


# =============================================================================
# Test Structural Guarantees
# =============================================================================


VOCABULARY = [
    "supply", "chain", "regulatory", "approval", "patent", "litigation",
    "cash", "capital", "clinical", "trial", "cyber", "breach", "pricing",
    "competition", "manufacturing", "recall",
]


def random_records(rng: random.Random, count: int):
    records = []
    for _ in range(count):
        title = " ".join(rng.sample(VOCABULARY, rng.randint(2, 4)))
        content = " ".join(rng.choice(VOCABULARY) for _ in range(rng.randint(5, 30)))
        records.append(record(title, content))
    return records


class TestMatchingGuarantees:
    """Injectivity and partition on seeded random inputs."""

    @pytest.mark.parametrize("seed", range(25))
    def test_injective_and_partitioned(self, seed):
        """Verify no prior is bound twice and every index is accounted for."""
        rng = random.Random(seed)
        current = random_records(rng, rng.randint(0, 8))
        prior = random_records(rng, rng.randint(0, 8))

        result = match_risk_factors(current, prior)

        bound = [j for j in result.matches.values() if j is not None]
        assert len(bound) == len(set(bound))
        assert set(result.matches) == set(range(len(current)))
        assert set(bound) | set(result.removed) == set(range(len(prior)))
        assert not set(bound) & set(result.removed)
        assert set(result.details) == {i for i, j in result.matches.items() if j is not None}

    @pytest.mark.parametrize("seed", range(5))
    def test_deterministic(self, seed):
        """Verify the same inputs always produce the same alignment."""
        rng = random.Random(seed)
        current = random_records(rng, 6)
        prior = random_records(rng, 6)

        first = match_risk_factors(current, prior)
        second = match_risk_factors(current, prior)

        assert first.matches == second.matches
        assert first.removed == second.removed
