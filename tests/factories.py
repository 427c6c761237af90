"""Builders for finalized resources and sessions used across the tests."""

from __future__ import annotations

import itertools

from perfscope.classifier import classify
from perfscope.models import ResourceRecord, Session, TimingBreakdown

SESSION_START = 1_700_000_000.0

_ids = itertools.count()


def make_resource(
    url: str = "https://example.com/index.html",
    *,
    size: int = 1000,
    mime_type: str | None = None,
    start: float = 0.0,
    duration: float = 0.1,
    status: int = 200,
    headers: dict[str, str] | None = None,
    method: str = "GET",
) -> ResourceRecord:
    """A finalized resource starting ``start`` seconds after ``SESSION_START``.

    The whole duration is attributed to the receive phase.
    """
    return ResourceRecord(
        id=f"r{next(_ids)}",
        url=url,
        method=method,
        status_code=status,
        mime_type=mime_type,
        resource_type=classify(mime_type, url),
        start_time=SESSION_START + start,
        timings=TimingBreakdown(receive=duration),
        response_size=size,
        response_headers=headers if headers is not None else {},
    )


def make_session(resources=(), **kwargs) -> Session:
    return Session(start_time=SESSION_START, resources=tuple(resources), **kwargs)
