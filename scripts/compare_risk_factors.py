#!/usr/bin/env python3
"""
Compare the risk factor sections of two annual filings.

Reads two plain-text files (HTML already stripped), runs the comparison
pipeline, and prints the report as JSON or as a text summary.

Usage:
    python scripts/compare_risk_factors.py \
        --current fy2024.txt --current-year 2024 \
        --prior fy2023.txt --prior-year 2023

    python scripts/compare_risk_factors.py ... --format text --locate-section
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from risk_evolution.config import AnalysisConfig
from risk_evolution.errors import RiskAnalysisError
from risk_evolution.filings import compare_filings
from risk_evolution.models import FilingText
from risk_evolution.observability import setup_structured_logging
from risk_evolution.output import (
    format_analysis_report,
    material_changes,
    report_to_json,
)


def setup_logging(verbose: bool = False, json_events: bool = False) -> None:
    """Configure logging for the run.

    The script logs through the root logger; the package gets its own
    handler so stage events can be emitted as bare JSON lines.
    """
    level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    setup_structured_logging(
        level=logging.INFO if (verbose or json_events) else logging.WARNING,
        json_format=json_events,
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Diff the Item 1A risk factors of two annual filings",
    )
    parser.add_argument("--current", required=True, type=Path, help="Later filing (plain text)")
    parser.add_argument("--current-year", required=True, type=int, help="Fiscal year of the later filing")
    parser.add_argument("--prior", required=True, type=Path, help="Earlier filing (plain text)")
    parser.add_argument("--prior-year", required=True, type=int, help="Fiscal year of the earlier filing")
    parser.add_argument("--format", choices=["json", "text"], default="json", help="Output format")
    parser.add_argument("--all-changes", action="store_true", help="Include unchanged risks in JSON output")
    parser.add_argument(
        "--locate-section",
        action="store_true",
        help="Input files are full filings; cut out Item 1A first",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--log-json", action="store_true", help="Emit pipeline stage events as JSON lines on stderr")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    load_dotenv()
    setup_logging(args.verbose, args.log_json)
    logger = logging.getLogger(__name__)

    try:
        config = AnalysisConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    filings = [
        FilingText(year=args.current_year, text=args.current.read_text(encoding="utf-8")),
        FilingText(year=args.prior_year, text=args.prior.read_text(encoding="utf-8")),
    ]

    try:
        report = compare_filings(filings, config=config, locate_section=args.locate_section)
    except RiskAnalysisError as e:
        logger.debug(f"Comparison not possible: {type(e).__name__}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.format == "text":
        print(format_analysis_report(report))
    else:
        if not args.all_changes:
            report = material_changes(report, config.max_reported_changes)
        print(report_to_json(report))

    return 0


if __name__ == "__main__":
    sys.exit(main())
