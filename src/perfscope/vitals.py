"""Core Web Vitals rating mapper.

Thresholds (Google's published bands):
- LCP: good < 2500 ms, needs improvement < 4000 ms, poor >= 4000 ms
- CLS: good < 0.1, needs improvement < 0.25, poor >= 0.25
- FID: good < 100 ms, needs improvement < 300 ms, poor >= 300 ms

Each metric also carries a 0-100 display score. The score falls from 100 to 75
across the good band, 75 to 50 across needs-improvement and then towards 0.
"""

from __future__ import annotations

from whenever import Instant

from perfscope.models import WebVitalMetric, WebVitalsSnapshot
from perfscope.types import Rating

LCP_GOOD_MS = 2500.0
LCP_POOR_MS = 4000.0
CLS_GOOD = 0.1
CLS_POOR = 0.25
FID_GOOD_MS = 100.0
FID_POOR_MS = 300.0


def _rate(value: float, good: float, poor: float) -> Rating:
    if value < good:
        return Rating.GOOD
    if value < poor:
        return Rating.NEEDS_IMPROVEMENT
    return Rating.POOR


def rate_lcp(value_ms: float) -> Rating:
    return _rate(value_ms, LCP_GOOD_MS, LCP_POOR_MS)


def rate_cls(value: float) -> Rating:
    return _rate(value, CLS_GOOD, CLS_POOR)


def rate_fid(value_ms: float) -> Rating:
    return _rate(value_ms, FID_GOOD_MS, FID_POOR_MS)


def lcp_metric(value_ms: float) -> WebVitalMetric:
    value_ms = max(0.0, value_ms)
    rating = rate_lcp(value_ms)
    match rating:
        case Rating.GOOD:
            score = max(75, 100 - int(value_ms / 100))
        case Rating.NEEDS_IMPROVEMENT:
            score = max(50, 75 - int((value_ms - LCP_GOOD_MS) / 60))
        case Rating.POOR:
            score = max(0, 50 - int((value_ms - LCP_POOR_MS) / 200))

    display = f"{value_ms:.0f} ms" if value_ms < 1000 else f"{value_ms / 1000:.2f} s"
    return WebVitalMetric(raw_value=value_ms, display=display, score=score, rating=rating)


def cls_metric(value: float) -> WebVitalMetric:
    value = max(0.0, value)
    rating = rate_cls(value)
    match rating:
        case Rating.GOOD:
            score = max(75, 100 - int(value * 250))
        case Rating.NEEDS_IMPROVEMENT:
            score = max(50, 75 - int((value - CLS_GOOD) * 167))
        case Rating.POOR:
            score = max(0, 50 - int((value - CLS_POOR) * 100))

    return WebVitalMetric(raw_value=value, display=f"{value:.3f}", score=score, rating=rating)


def fid_metric(value_ms: float) -> WebVitalMetric:
    value_ms = max(0.0, value_ms)
    rating = rate_fid(value_ms)
    match rating:
        case Rating.GOOD:
            score = max(75, 100 - int(value_ms / 4))
        case Rating.NEEDS_IMPROVEMENT:
            score = max(50, 75 - int((value_ms - FID_GOOD_MS) / 8))
        case Rating.POOR:
            score = max(0, 50 - int((value_ms - FID_POOR_MS) / 20))

    return WebVitalMetric(
        raw_value=value_ms, display=f"{value_ms:.0f} ms", score=score, rating=rating
    )


def build_snapshot(
    lcp_ms: float,
    cls: float,
    fid_ms: float,
    *,
    captured_at: str | None = None,
) -> WebVitalsSnapshot:
    """Build a snapshot from the three raw values delivered once per navigation."""
    return WebVitalsSnapshot(
        lcp=lcp_metric(lcp_ms),
        cls=cls_metric(cls),
        fid=fid_metric(fid_ms),
        captured_at=captured_at or Instant.now().format_iso(),
    )
