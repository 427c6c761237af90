"""Property tests for the timing breakdown.

- Phase durations are never negative
- Phase durations telescope to the response end (or the latest point seen)
"""

from hypothesis import given, settings

from perfscope.aggregator import ResourceTimingAggregator, build_timings
from perfscope.types import TimingPhase

from .strategies import SESSION_START, phase_offsets


@given(offsets=phase_offsets)
@settings(max_examples=500)
def test_phases_never_negative(offsets):
    """Property: Out-of-order or missing points never yield a negative phase."""
    points = {phase: SESSION_START + offset for phase, offset in offsets.items()}
    timings = build_timings(SESSION_START, points)
    for name in ("blocked", "dns", "connect", "ssl", "send", "wait", "receive"):
        assert getattr(timings, name) >= 0


@given(offsets=phase_offsets)
@settings(max_examples=500)
def test_total_is_furthest_point(offsets):
    """Property: The phases sum to the clamped running maximum of the points."""
    points = {phase: SESSION_START + offset for phase, offset in offsets.items()}
    expected = SESSION_START
    for phase in TimingPhase:
        expected = max(expected, points.get(phase, expected))
    timings = build_timings(SESSION_START, points)
    assert abs(timings.total - (expected - SESSION_START)) < 0.001


@given(offsets=phase_offsets)
@settings(max_examples=200)
def test_finalized_record_matches_breakdown(offsets):
    """Property: A finalized record's total duration sums its phases within 1 ms."""
    aggregator = ResourceTimingAggregator()
    aggregator.start_navigation(SESSION_START)
    aggregator.start_request("r1", "https://example.com/app.js", "GET", SESSION_START)
    for phase, offset in offsets.items():
        aggregator.mark("r1", phase, SESSION_START + offset)
    record = aggregator.finalize("r1", 200)

    t = record.timings
    phase_sum = t.blocked + t.dns + t.connect + t.ssl + t.send + t.wait + t.receive
    assert abs(record.total_duration - phase_sum) < 0.001
    assert abs(record.end_time - record.start_time - record.total_duration) < 0.001
