"""
Configuration for risk factor comparison.

Every heuristic threshold used by the pipeline lives here. The defaults were
tuned by eye against a handful of healthcare 10-K pairs and have not been
calibrated against labeled data, so they are exposed for override via
RISK_EVOLUTION_* environment variables.
"""
import os
from dataclasses import dataclass, fields


ENV_PREFIX = "RISK_EVOLUTION_"


@dataclass(frozen=True)
class AnalysisConfig:
    """Tuning constants for segmentation, matching and diffing."""

    # Caller-side preconditions
    min_document_chars: int = 1000
    max_filings_considered: int = 3

    # Item 1A location
    toc_entry_max_chars: int = 300
    max_section_chars: int = 200_000

    # Segmenter
    min_record_chars: int = 100
    min_fallback_records: int = 3
    dedupe_window_chars: int = 50
    max_title_chars: int = 200
    fallback_header_max_chars: int = 200
    fallback_min_paragraph_chars: int = 50

    # Matcher
    match_key_chars: int = 50
    match_threshold: float = 0.5
    title_weight: float = 0.6
    content_weight: float = 0.4
    match_content_chars: int = 500

    # Diff generator
    unchanged_floor: int = 5
    diff_window_chars: int = 2000
    max_snippets: int = 5
    min_snippet_chars: int = 20

    # Output
    max_reported_changes: int = 50

    @classmethod
    def from_env(cls) -> "AnalysisConfig":
        """Create config from environment variables.

        Each field can be overridden with RISK_EVOLUTION_<FIELD_NAME>, e.g.
        RISK_EVOLUTION_MATCH_THRESHOLD=0.45. Unset variables keep the default.

        Raises:
            ValueError: If a variable is set but not numeric.
        """
        overrides = {}
        for f in fields(cls):
            raw = os.getenv(ENV_PREFIX + f.name.upper())
            if raw is None or raw.strip() == "":
                continue
            caster = int if f.type in (int, "int") else float
            try:
                overrides[f.name] = caster(raw.strip())
            except ValueError:
                raise ValueError(
                    f"{ENV_PREFIX}{f.name.upper()} must be {caster.__name__}, got {raw!r}"
                ) from None
        return cls(**overrides)


# Global default config
default_config = AnalysisConfig()
