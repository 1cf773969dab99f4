"""
User-facing failure conditions for risk factor comparison.

The comparison pipeline itself never raises: empty or malformed input
degrades to empty record lists and zero scores. These exceptions are raised
only by the caller-side helpers in filings.py, which decide whether a
comparison should be attempted at all.
"""


class RiskAnalysisError(Exception):
    """Base class for conditions that prevent a comparison from running."""


class InsufficientContentError(RiskAnalysisError):
    """Raw filing text is too short to segment meaningfully."""

    def __init__(self, year: int, char_count: int, min_chars: int):
        self.year = year
        self.char_count = char_count
        self.min_chars = min_chars
        super().__init__(
            f"Filing for {year} has {char_count} characters of risk factor text; "
            f"at least {min_chars} are required"
        )


class NoExtractableRisksError(RiskAnalysisError):
    """Segmentation produced zero records, even after the paragraph fallback."""

    def __init__(self, year: int):
        self.year = year
        super().__init__(f"Could not extract risk factors from the {year} filing")


class NoComparableFilingsError(RiskAnalysisError):
    """Fewer than two qualifying filings are available."""

    def __init__(self, available: int):
        self.available = available
        super().__init__(
            f"Need at least 2 annual filings for risk factor comparison, found {available}"
        )
