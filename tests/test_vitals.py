"""Unit tests for the Core Web Vitals rating mapper."""

import pytest

from perfscope.types import Rating
from perfscope.vitals import (
    build_snapshot,
    cls_metric,
    fid_metric,
    lcp_metric,
    rate_cls,
    rate_fid,
    rate_lcp,
)


class TestRatings:
    def test_lcp_good(self):
        assert rate_lcp(1800) == Rating.GOOD

    def test_lcp_poor(self):
        assert rate_lcp(4500) == Rating.POOR

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (2499.9, Rating.GOOD),
            (2500, Rating.NEEDS_IMPROVEMENT),
            (3999.9, Rating.NEEDS_IMPROVEMENT),
            (4000, Rating.POOR),
        ],
    )
    def test_lcp_boundaries(self, value, expected):
        assert rate_lcp(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (0.0, Rating.GOOD),
            (0.099, Rating.GOOD),
            (0.1, Rating.NEEDS_IMPROVEMENT),
            (0.25, Rating.POOR),
        ],
    )
    def test_cls_boundaries(self, value, expected):
        assert rate_cls(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (99, Rating.GOOD),
            (100, Rating.NEEDS_IMPROVEMENT),
            (299, Rating.NEEDS_IMPROVEMENT),
            (300, Rating.POOR),
        ],
    )
    def test_fid_boundaries(self, value, expected):
        assert rate_fid(value) == expected


class TestMetrics:
    def test_lcp_display_below_one_second(self):
        assert lcp_metric(850).display == "850 ms"

    def test_lcp_display_in_seconds(self):
        assert lcp_metric(1800).display == "1.80 s"

    def test_cls_display(self):
        assert cls_metric(0.05).display == "0.050"

    def test_fid_display(self):
        assert fid_metric(42).display == "42 ms"

    def test_scores_follow_bands(self):
        assert lcp_metric(0).score == 100
        assert lcp_metric(1800).score >= 75
        assert 50 <= lcp_metric(3000).score <= 75
        assert lcp_metric(4500).score <= 50

    def test_negative_values_clamped(self):
        metric = fid_metric(-5)
        assert metric.raw_value == 0
        assert metric.rating == Rating.GOOD

    def test_score_never_negative(self):
        assert lcp_metric(1_000_000).score == 0
        assert cls_metric(50).score == 0
        assert fid_metric(100_000).score == 0


class TestSnapshot:
    def test_build_snapshot(self):
        snapshot = build_snapshot(1800, 0.05, 40, captured_at="2024-01-01T00:00:00Z")
        assert snapshot.lcp.rating == Rating.GOOD
        assert snapshot.cls.rating == Rating.GOOD
        assert snapshot.fid.rating == Rating.GOOD
        assert snapshot.captured_at == "2024-01-01T00:00:00Z"

    def test_default_capture_time(self):
        snapshot = build_snapshot(4500, 0.3, 350)
        assert snapshot.captured_at.endswith("Z")
        assert snapshot.lcp.rating == Rating.POOR
