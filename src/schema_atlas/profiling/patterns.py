"""
Value pattern detectors.

Each detector looks at the sampled string values of one column and says
whether the column as a whole looks like a given kind of value. Detectors
are registered by name so the active set can come from configuration.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Sequence

from schema_atlas.errors import ConfigError


class PatternDetector(ABC):
    """Tags a column when its sampled values match a pattern."""

    name: str = ""

    @abstractmethod
    def matches(self, values: Sequence[str]) -> bool:
        """True if the sampled string values exhibit this pattern."""


class PredicateDetector(PatternDetector):
    """
    Detector that fires when any sampled value satisfies a predicate.

    Example:
        >>> PredicateDetector("hash-like", lambda v: len(v) == 64).matches(["a" * 64])
        True
    """

    def __init__(self, name: str, predicate: Callable[[str], bool]):
        self.name = name
        self._predicate = predicate

    def matches(self, values: Sequence[str]) -> bool:
        return any(self._predicate(v) for v in values)


class RegexDetector(PatternDetector):
    """Detector that fires when any sampled value matches an (anchored) regex."""

    def __init__(self, name: str, pattern: str):
        self.name = name
        self._regex = re.compile(pattern)

    def matches(self, values: Sequence[str]) -> bool:
        return any(self._regex.match(v) for v in values)


_PHONE_PATTERN = r"^\+?[\d\s\-\(\)]+$"

_REGISTRY: Dict[str, PatternDetector] = {}


def register_detector(detector: PatternDetector) -> None:
    """Make a detector available by name (replaces one of the same name)."""
    if not detector.name:
        raise ValueError("Pattern detectors must have a name")
    _REGISTRY[detector.name] = detector


def available_detectors() -> List[str]:
    return sorted(_REGISTRY)


def get_detectors(names: Optional[Sequence[str]] = None) -> List[PatternDetector]:
    """
    Resolve detector names against the registry.

    Args:
        names: Detector names, or None for every registered detector

    Returns:
        Detectors in the requested order

    Raises:
        ConfigError: If a name is not registered
    """
    if names is None:
        return [_REGISTRY[name] for name in available_detectors()]

    unknown = [name for name in names if name not in _REGISTRY]
    if unknown:
        raise ConfigError(
            f"Unknown pattern detectors: {', '.join(unknown)} "
            f"(available: {', '.join(available_detectors())})"
        )
    return [_REGISTRY[name] for name in names]


register_detector(PredicateDetector("email-like", lambda v: "@" in v))
register_detector(PredicateDetector("url-like", lambda v: v.startswith("http")))
register_detector(RegexDetector("phone-like", _PHONE_PATTERN))
