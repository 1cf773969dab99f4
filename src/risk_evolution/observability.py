"""
Stage-level structured logging for the risk comparison pipeline.

Each stage (segmentation, matching, diffing, aggregation) emits a
``PIPELINE | {json}`` line when it starts and when it ends, carrying the
filing years, the stage's record counts and its duration. Module loggers
(``risk_evolution.segmenter`` and friends) keep logging plain text. Log output
never feeds back into the report, so the timestamps here do not affect
determinism.
"""
from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Dict, Iterator, Optional, Union


PACKAGE_LOGGER = "risk_evolution"
EVENT_PREFIX = "PIPELINE | "

logger = logging.getLogger("risk_evolution.observability")

StageCount = Union[int, str]


# =============================================================================
# Logger Setup
# =============================================================================


class _StageEventsOnly(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.getMessage().startswith(EVENT_PREFIX)


def setup_structured_logging(
    level: int = logging.INFO,
    json_format: bool = False,
) -> logging.Handler:
    """Route every ``risk_evolution`` logger to stderr.

    Args:
        level: Level for the whole package
        json_format: If True, emit only the bare stage event lines so the
            stream can be parsed line by line

    Returns:
        The installed handler
    """
    handler = logging.StreamHandler()

    if json_format:
        handler.setFormatter(logging.Formatter('%(message)s'))
        handler.addFilter(_StageEventsOnly())
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s | %(levelname)s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers = [handler]
    package_logger.setLevel(level)
    package_logger.propagate = False
    return handler


# =============================================================================
# Stage Events
# =============================================================================


@dataclass
class StageEvent:
    """One start/end record for a pipeline stage."""
    stage: str  # "segmentation", "matching", "diffing", "aggregation"
    status: str = "started"  # "started", "completed", "failed"
    current_year: Optional[int] = None
    prior_year: Optional[int] = None
    counts: Dict[str, StageCount] = field(default_factory=dict)
    duration_ms: Optional[float] = None
    error: Optional[str] = None
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    def to_log_line(self) -> str:
        return EVENT_PREFIX + json.dumps(asdict(self), default=str)


def log_stage_event(event: StageEvent) -> None:
    """Emit a stage event; failures go out at ERROR."""
    if event.status == "failed":
        logger.error(event.to_log_line())
    else:
        logger.info(event.to_log_line())


@contextmanager
def stage_timer(
    stage: str,
    current_year: Optional[int] = None,
    prior_year: Optional[int] = None,
) -> Iterator[Dict[str, StageCount]]:
    """Time one pipeline stage and log its start and outcome.

    Usage:
        with stage_timer("matching", 2024, 2023) as counts:
            result = match_risk_factors(...)
            counts["matched"] = len(result.details)

    The yielded dict is copied into the completion event. An exception is
    logged as a failed event (with its type) and re-raised.
    """
    start_time = time.perf_counter()
    counts: Dict[str, StageCount] = {}

    def elapsed() -> float:
        return round((time.perf_counter() - start_time) * 1000, 2)

    log_stage_event(StageEvent(stage, "started", current_year, prior_year))

    try:
        yield counts
    except Exception as e:
        log_stage_event(StageEvent(
            stage, "failed", current_year, prior_year,
            counts=dict(counts),
            duration_ms=elapsed(),
            error=f"{type(e).__name__}: {e}",
        ))
        raise

    log_stage_event(StageEvent(
        stage, "completed", current_year, prior_year,
        counts=dict(counts),
        duration_ms=elapsed(),
    ))
