"""
Tests for structured output module.
"""
import json

import pytest
from pydantic import ValidationError

from risk_evolution.models import (
    AnalysisReport,
    CategoryCounts,
    RiskCategory,
    RiskChange,
    RiskFactorRecord,
    RiskTotals,
)
from risk_evolution.output import (
    format_analysis_report,
    material_changes,
    report_to_dict,
    report_to_json,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def added_change() -> RiskChange:
    """Create a scored added change."""
    return RiskChange(
        title="Export restrictions on semiconductors",
        change_type="added",
        category=RiskCategory.OPERATIONAL,
        current_content="New export rules could delay component shipments.",
        severity=4,
        materiality_score=7.0,
        summary='New operational risk added: "Export restrictions on semiconductors"',
    )


@pytest.fixture
def modified_change() -> RiskChange:
    """Create a scored modified change with snippets."""
    return RiskChange(
        title="Liquidity",
        change_type="modified",
        category=RiskCategory.FINANCIAL,
        current_content="Our cash may not last. We may need to raise funds soon.",
        prior_content="Our cash may not last.",
        diff_markup="Our cash may not last.<ins> We may need to raise funds soon.</ins>",
        change_percent=46,
        added_snippets=["We may need to raise funds soon."],
        severity=3,
        materiality_score=9.0,
        summary='Significantly modified (46% changed) to financial risk: "Liquidity"',
    )


@pytest.fixture
def unchanged_change() -> RiskChange:
    """Create an unchanged change."""
    return RiskChange(
        title="Product liability",
        change_type="unchanged",
        category=RiskCategory.LEGAL,
        summary='No changes to: "Product liability"',
    )


@pytest.fixture
def sample_report(added_change, modified_change, unchanged_change) -> AnalysisReport:
    """Create a report with one of each interesting change type."""
    return AnalysisReport(
        current_year=2024,
        prior_year=2023,
        totals=RiskTotals(current=3, prior=2, added=1, removed=0, modified=1),
        category_breakdown={
            "financial": CategoryCounts(current=1, prior=1, modified=1),
            "operational": CategoryCounts(current=1, added=1),
            "legal": CategoryCounts(current=1, prior=1),
        },
        changes=[modified_change, added_change, unchanged_change],
        overall_severity="critical",
        key_insights=["1 new risk factor added", "1 risk with significant modifications"],
    )


@pytest.fixture
def quiet_report(unchanged_change) -> AnalysisReport:
    """Create a report with nothing material."""
    return AnalysisReport(
        current_year=2024,
        prior_year=2023,
        totals=RiskTotals(current=1, prior=1),
        category_breakdown={"legal": CategoryCounts(current=1, prior=1)},
        changes=[unchanged_change],
        overall_severity="minimal",
        key_insights=[],
    )


# =============================================================================
# JSON Serialization Tests
# =============================================================================


class TestJsonSerialization:
    """Tests for report_to_json and report_to_dict."""

    def test_produces_valid_json(self, sample_report: AnalysisReport):
        """Test that report_to_json produces valid JSON."""
        parsed = json.loads(report_to_json(sample_report))
        assert isinstance(parsed, dict)

    def test_top_level_keys_are_camel_case(self, sample_report: AnalysisReport):
        """Test the report serializes exactly its fields in camelCase."""
        parsed = json.loads(report_to_json(sample_report))
        assert set(parsed) == {
            "currentYear", "priorYear", "totals", "categoryBreakdown",
            "changes", "overallSeverity", "keyInsights",
        }

    def test_change_keys_are_camel_case(self, sample_report: AnalysisReport):
        """Test nested change fields use camelCase."""
        change = report_to_dict(sample_report)["changes"][0]
        assert change["changeType"] == "modified"
        assert change["changePercent"] == 46
        assert change["materialityScore"] == 9.0
        assert change["addedSnippets"] == ["We may need to raise funds soon."]
        assert change["diffMarkup"].endswith("</ins>")
        assert "change_type" not in change

    def test_category_serialized_as_value(self, sample_report: AnalysisReport):
        """Test enum categories serialize to their string value."""
        change = report_to_dict(sample_report)["changes"][1]
        assert change["category"] == "operational"

    def test_intellectual_property_wire_value(self):
        """Test the hyphenated category value used on the wire."""
        change = RiskChange(
            title="Patent expiry",
            change_type="added",
            category=RiskCategory.INTELLECTUAL_PROPERTY,
        )
        assert change.model_dump(by_alias=True, mode="json")["category"] == "intellectual-property"
        assert RiskChange.model_validate(
            {"title": "t", "changeType": "added", "category": "intellectual-property"}
        ).category == RiskCategory.INTELLECTUAL_PROPERTY

    def test_pretty_printing_works(self, sample_report: AnalysisReport):
        """Test pretty printing produces indented output."""
        json_str = report_to_json(sample_report, pretty=True)
        assert "\n" in json_str
        assert "  " in json_str

    def test_compact_mode_works(self, sample_report: AnalysisReport):
        """Test non-pretty mode produces single-line output."""
        json_str = report_to_json(sample_report, pretty=False)
        assert "\n" not in json_str
        assert len(json_str) < len(report_to_json(sample_report, pretty=True))

    def test_round_trip_through_aliases(self, sample_report: AnalysisReport):
        """Test camelCase JSON validates back into an identical report."""
        restored = AnalysisReport.model_validate(json.loads(report_to_json(sample_report)))
        assert restored == sample_report


# =============================================================================
# Material Changes Tests
# =============================================================================


class TestMaterialChanges:
    """Tests for material_changes trimming."""

    def test_drops_unchanged(self, sample_report: AnalysisReport):
        """Test unchanged risks are removed from the change list."""
        trimmed = material_changes(sample_report)
        assert [c.change_type for c in trimmed.changes] == ["modified", "added"]

    def test_caps_count(self, sample_report: AnalysisReport):
        """Test the change list is capped at the limit."""
        trimmed = material_changes(sample_report, limit=1)
        assert [c.title for c in trimmed.changes] == ["Liquidity"]

    def test_summary_fields_untouched(self, sample_report: AnalysisReport):
        """Test totals and insights survive trimming."""
        trimmed = material_changes(sample_report, limit=0)
        assert trimmed.changes == []
        assert trimmed.totals == sample_report.totals
        assert trimmed.key_insights == sample_report.key_insights
        assert len(sample_report.changes) == 3


# =============================================================================
# Text Report Tests
# =============================================================================


class TestTextReport:
    """Tests for format_analysis_report."""

    def test_header_and_totals(self, sample_report: AnalysisReport):
        """Test the header names both years and the severity."""
        text = format_analysis_report(sample_report)
        assert "FY2024 vs FY2023" in text
        assert "Overall Severity: CRITICAL" in text
        assert "Added: 1   Removed: 0   Modified: 1" in text

    def test_insights_and_breakdown(self, sample_report: AnalysisReport):
        """Test insights and every category row appear."""
        text = format_analysis_report(sample_report)
        assert "  * 1 new risk factor added" in text
        for category in ("financial", "operational", "legal"):
            assert f"  {category}" in text

    def test_changes_with_snippets(self, sample_report: AnalysisReport):
        """Test material changes list summaries and added excerpts."""
        text = format_analysis_report(sample_report)
        assert 'Significantly modified (46% changed) to financial risk: "Liquidity"' in text
        assert "+ We may need to raise funds soon." in text
        assert "No changes to" not in text

    def test_max_changes(self, sample_report: AnalysisReport):
        """Test overflow is summarized."""
        text = format_analysis_report(sample_report, max_changes=1)
        assert "... 1 more" in text

    def test_quiet_report(self, quiet_report: AnalysisReport):
        """Test a report with no material changes."""
        text = format_analysis_report(quiet_report)
        assert "No added, removed or modified risk factors." in text
        assert "Routine annual updates" in text


# =============================================================================
# Model Validation Tests
# =============================================================================


class TestModels:
    """Tests for model constraints."""

    def test_models_are_frozen(self, added_change: RiskChange):
        """Test changes cannot be mutated after construction."""
        with pytest.raises(ValidationError):
            added_change.materiality_score = 1.0

    def test_score_bounds_enforced(self):
        """Test materiality scores outside [0, 10] are rejected."""
        with pytest.raises(ValidationError):
            RiskChange(title="x", change_type="added", category=RiskCategory.GENERAL, materiality_score=11)

    def test_change_percent_bounds_enforced(self):
        """Test change percents outside [0, 100] are rejected."""
        with pytest.raises(ValidationError):
            RiskChange(title="x", change_type="modified", category=RiskCategory.GENERAL, change_percent=101)

    def test_unknown_change_type_rejected(self):
        """Test change_type is a closed set."""
        with pytest.raises(ValidationError):
            RiskChange(title="x", change_type="renamed", category=RiskCategory.GENERAL)

    def test_record_accepts_camel_case(self):
        """Test records can be built from camelCase payloads."""
        record = RiskFactorRecord.model_validate(
            {"title": "t", "content": "c", "category": "legal", "wordCount": 1}
        )
        assert record.word_count == 1
        assert record.category == RiskCategory.LEGAL
