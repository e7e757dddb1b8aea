"""Tests for value pattern detectors and statistics-derived tags."""

import pytest

from schema_atlas.errors import ConfigError
from schema_atlas.profiling import (
    PredicateDetector,
    RegexDetector,
    available_detectors,
    get_detectors,
    register_detector,
    statistic_tags,
)


class TestDetectors:
    """Tests for the built-in detectors and the registry."""

    def test_email_like(self):
        detector = get_detectors(["email-like"])[0]

        assert detector.matches(["plain", "someone@example.com"])
        assert not detector.matches(["plain", "text"])

    def test_url_like(self):
        detector = get_detectors(["url-like"])[0]

        assert detector.matches(["https://example.com/a"])
        assert not detector.matches(["www.example.com"])

    def test_phone_like(self):
        detector = get_detectors(["phone-like"])[0]

        assert detector.matches(["+1 (555) 123-4567"])
        assert not detector.matches(["call me maybe"])

    def test_empty_values_never_match(self):
        for detector in get_detectors():
            assert not detector.matches([])

    def test_unknown_detector(self):
        with pytest.raises(ConfigError, match="no-such-detector"):
            get_detectors(["email-like", "no-such-detector"])

    def test_register_custom_detector(self):
        register_detector(RegexDetector("iso-date-like", r"^\d{4}-\d{2}-\d{2}$"))

        assert "iso-date-like" in available_detectors()
        detector = get_detectors(["iso-date-like"])[0]
        assert detector.matches(["2024-01-31"])
        assert not detector.matches(["31/01/2024"])

    def test_detector_requires_name(self):
        with pytest.raises(ValueError):
            register_detector(PredicateDetector("", lambda v: True))


class TestStatisticTags:
    """Tests for statistic_tags."""

    def test_constant_column(self):
        tags = statistic_tags(cardinality=1, non_null_count=50, null_percentage=0.0)

        assert "constant" in tags
        assert "low-cardinality" in tags
        assert "no-nulls" in tags

    def test_all_unique(self):
        tags = statistic_tags(cardinality=500, non_null_count=500, null_percentage=0.0)

        assert "all-unique" in tags
        assert "low-cardinality" not in tags
        assert "medium-cardinality" not in tags

    def test_null_levels(self):
        assert "high-null" in statistic_tags(3, 10, 60.0)
        assert "mostly-null" in statistic_tags(3, 10, 90.0)
        assert "high-null" not in statistic_tags(3, 10, 90.0)

    def test_text_length(self):
        assert "short-text" in statistic_tags(2, 2, 0.0, strings=["ab", "cd"])
        assert "long-text" in statistic_tags(1, 1, 0.0, strings=["x" * 150])

    def test_sparse_numeric(self):
        tags = statistic_tags(5, 5, 0.0, min_value=0.0, max_value=1000.0)
        assert "sparse-numeric" in tags

        dense = statistic_tags(50, 50, 0.0, min_value=1.0, max_value=50.0)
        assert "sparse-numeric" not in dense
