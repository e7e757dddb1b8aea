"""
Configuration for profiling and relationship discovery.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List

import yaml

from schema_atlas.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class AtlasConfig:
    """Tunable thresholds shared by the profiler, scorer and orchestrator."""

    # Profiling
    default_sample_size: int = 1000
    max_enum_values: int = 100
    high_null_threshold: float = 40.0  # percent
    pattern_detectors: List[str] = field(
        default_factory=lambda: ["email-like", "url-like", "phone-like"]
    )

    # Scoring
    name_similarity_threshold: float = 0.5
    overlap_workers: int = 1

    # Decision policy
    auto_persist_threshold: float = 0.8
    review_threshold: float = 0.6

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise ConfigError if any value is out of range."""
        for name in ("name_similarity_threshold", "auto_persist_threshold", "review_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"{name} must be within [0, 1], got {value}")

        if self.review_threshold > self.auto_persist_threshold:
            raise ConfigError(
                f"review_threshold ({self.review_threshold}) must not exceed "
                f"auto_persist_threshold ({self.auto_persist_threshold})"
            )

        for name in ("default_sample_size", "max_enum_values", "overlap_workers"):
            if getattr(self, name) < 1:
                raise ConfigError(f"{name} must be positive, got {getattr(self, name)}")

        if not 0.0 <= self.high_null_threshold <= 100.0:
            raise ConfigError(f"high_null_threshold must be a percentage, got {self.high_null_threshold}")

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AtlasConfig:
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Path) -> AtlasConfig:
        """Load configuration from a YAML file (top-level mapping)."""
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file must contain a mapping: {path}")

        logger.info(f"Loaded configuration from {path}")
        return cls.from_dict(data)
