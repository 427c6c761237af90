"""Property tests for HAR export and re-import.

- Export is deterministic
- Re-importing an export preserves the entry count and every entry's
  URL, method, status, type, sizes, start time, duration and connect/ssl split
"""

import json

from hypothesis import given, settings

from perfscope.har import export_har, parse_har, session_from_har

from .strategies import sessions


@given(session=sessions(max_resources=15))
@settings(max_examples=200)
def test_export_deterministic(session):
    """Property: Exporting the same session twice yields identical text."""
    assert export_har(session) == export_har(session)


@given(session=sessions(max_resources=15))
@settings(max_examples=200)
def test_export_is_valid_har(session):
    """Property: One page, one entry per resource, and entry time excludes ssl."""
    log = json.loads(export_har(session))["log"]
    assert log["version"] == "1.2"
    assert len(log["pages"]) == 1
    assert len(log["entries"]) == session.request_count
    for entry in log["entries"]:
        assert entry["pageref"] == log["pages"][0]["id"]
        assert all(value >= 0 for value in entry["timings"].values())
        phases = sum(v for k, v in entry["timings"].items() if k != "ssl")
        assert abs(entry["time"] - phases) < 0.01


@given(session=sessions(max_resources=15))
@settings(max_examples=200)
def test_round_trip_preserves_entries(session):
    """Property: parse(export(s)) keeps count, order and per-entry fields."""
    restored = session_from_har(parse_har(export_har(session)))

    assert restored.request_count == session.request_count
    assert abs(restored.start_time - session.start_time) < 1e-3
    for original, record in zip(session.resources, restored.resources):
        assert record.url == original.url
        assert record.method == original.method
        assert record.status_code == original.status_code
        assert record.resource_type == original.resource_type
        assert record.request_size == original.request_size
        assert record.response_size == original.response_size
        assert abs(record.start_time - original.start_time) < 1e-3
        assert abs(record.total_duration - original.total_duration) < 1e-3
        assert abs(record.timings.connect - original.timings.connect) < 1e-3
        assert abs(record.timings.ssl - original.timings.ssl) < 1e-3
