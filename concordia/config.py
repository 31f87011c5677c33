"""
Configuration for deduplication runs.

DeduplicationConfig is the per-run input; Settings holds process-level
values read from the environment (catalog path, timeouts, log level).
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from .clustering import DEFAULT_MAX_BATCH_SIZE
from .errors import ConfigurationError

# CLI defaults
DEFAULT_MIN_CONFIDENCE = 0.85
DEFAULT_MIN_FREQUENCY = 2


class MergeIntent(str, Enum):
    """What a deduplication run is allowed to do with the groups it finds."""
    REPORT_ONLY = "report_only"
    MERGE_IF_CONFIDENT = "merge_if_confident"
    FORCE_MERGE = "force_merge"


@dataclass
class DeduplicationConfig:
    """Per-run deduplication settings."""

    # Minimum pair confidence for two entities to be linked as duplicates
    min_confidence: float = DEFAULT_MIN_CONFIDENCE

    # Candidate pairs of one pattern type needed before that type is trusted
    min_frequency: int = DEFAULT_MIN_FREQUENCY

    # Reporting is the default; merging must be asked for explicitly
    intent: MergeIntent = MergeIntent.REPORT_ONLY

    # Group confidence required for MERGE_IF_CONFIDENT (defaults to min_confidence)
    merge_threshold: Optional[float] = None

    def __post_init__(self):
        self.intent = MergeIntent(self.intent)
        if not 0.0 <= self.min_confidence <= 1.0:
            raise ConfigurationError(
                f"min_confidence must be within [0, 1], got {self.min_confidence}",
                {"min_confidence": self.min_confidence},
            )
        if self.merge_threshold is not None and not 0.0 <= self.merge_threshold <= 1.0:
            raise ConfigurationError(
                f"merge_threshold must be within [0, 1], got {self.merge_threshold}",
                {"merge_threshold": self.merge_threshold},
            )
        if self.min_frequency < 1:
            raise ConfigurationError(
                f"min_frequency must be at least 1, got {self.min_frequency}",
                {"min_frequency": self.min_frequency},
            )

    @classmethod
    def from_flags(
        cls,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
        min_frequency: int = DEFAULT_MIN_FREQUENCY,
        auto_merge: bool = False,
        dry_run: bool = True,
        merge_threshold: Optional[float] = None,
    ) -> "DeduplicationConfig":
        """
        Build a config from the two-flag interface.

        Merging happens only when auto_merge is set and dry_run is not;
        dry_run always wins.
        """
        intent = MergeIntent.MERGE_IF_CONFIDENT if auto_merge and not dry_run else MergeIntent.REPORT_ONLY
        return cls(
            min_confidence=min_confidence,
            min_frequency=min_frequency,
            intent=intent,
            merge_threshold=merge_threshold,
        )

    @property
    def auto_merge(self) -> bool:
        return self.intent is not MergeIntent.REPORT_ONLY

    @property
    def dry_run(self) -> bool:
        return self.intent is MergeIntent.REPORT_ONLY

    @property
    def effective_merge_threshold(self) -> float:
        if self.merge_threshold is None:
            return self.min_confidence
        return self.merge_threshold


@dataclass
class Settings:
    """Process-level settings, read from CONCORDIA_* environment variables."""
    database_path: Optional[Path] = None
    db_timeout: int = 30
    log_level: str = "INFO"
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE


def load_settings(environ: Optional[dict] = None) -> Settings:
    """Read settings from the environment (or the given mapping)."""
    env = os.environ if environ is None else environ

    database = env.get("CONCORDIA_DATABASE")
    try:
        return Settings(
            database_path=Path(database) if database else None,
            db_timeout=int(env.get("CONCORDIA_DB_TIMEOUT", "30")),
            log_level=env.get("CONCORDIA_LOG_LEVEL", "INFO"),
            max_batch_size=int(env.get("CONCORDIA_MAX_BATCH", str(DEFAULT_MAX_BATCH_SIZE))),
        )
    except ValueError as e:
        raise ConfigurationError(f"Invalid numeric setting: {e}") from e
