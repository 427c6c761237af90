"""Hypothesis strategies for generating perfscope domain objects.

These strategies generate finalized resources, sessions, lifecycle timestamps
and budgets for property-based testing.
"""

from hypothesis import strategies as st

from perfscope.classifier import classify
from perfscope.models import BudgetConfig, ResourceRecord, Session, TimingBreakdown
from perfscope.types import TimingPhase

SESSION_START = 1_700_000_000.0

# =============================================================================
# BUILDING BLOCKS
# =============================================================================

hosts = st.sampled_from(
    [
        "example.com",
        "static.example.com",
        "www.google-analytics.com",
        "fonts.gstatic.com",
        "cdn.jsdelivr.net",
        "js.stripe.com",
    ]
)

paths = st.sampled_from(
    ["/", "/app.js", "/vendor.mjs", "/site.css", "/hero.jpg", "/logo.svg", "/font.woff2", "/api"]
)

mime_types = st.sampled_from(
    [
        None,
        "text/html",
        "text/css",
        "application/javascript",
        "image/webp",
        "font/woff2",
        "application/json",
        "video/mp4",
    ]
)

header_sets = st.sampled_from(
    [
        {},
        {"Content-Encoding": "gzip"},
        {"Cache-Control": "max-age=3600"},
        {"Content-Encoding": "br", "Cache-Control": "max-age=31536000"},
        {"ETag": '"v1"'},
    ]
)

durations = st.floats(min_value=0, max_value=5, allow_nan=False, allow_infinity=False)

# Offsets from request start, drawn independently so they arrive in any order.
phase_offsets = st.dictionaries(
    keys=st.sampled_from(list(TimingPhase)),
    values=st.floats(min_value=-1, max_value=10, allow_nan=False, allow_infinity=False),
)

# =============================================================================
# RESOURCES AND SESSIONS
# =============================================================================


@st.composite
def timing_breakdowns(draw):
    return TimingBreakdown(
        blocked=draw(durations),
        dns=draw(durations),
        connect=draw(durations),
        ssl=draw(durations),
        send=draw(durations),
        wait=draw(durations),
        receive=draw(durations),
    )


@st.composite
def resources(draw, index=0):
    url = f"https://{draw(hosts)}{draw(paths)}"
    mime = draw(mime_types)
    return ResourceRecord(
        id=f"r{index}",
        url=url,
        method=draw(st.sampled_from(["GET", "POST"])),
        status_code=draw(st.sampled_from([200, 201, 204, 304, 404, 500])),
        mime_type=mime,
        resource_type=classify(mime, url),
        start_time=SESSION_START + draw(st.floats(min_value=0, max_value=10, allow_nan=False)),
        timings=draw(timing_breakdowns()),
        request_size=draw(st.integers(min_value=0, max_value=100_000)),
        response_size=draw(st.integers(min_value=0, max_value=3_000_000)),
        response_headers=draw(header_sets),
    )


@st.composite
def resource_lists(draw, max_size=40):
    count = draw(st.integers(min_value=0, max_value=max_size))
    return [draw(resources(index=i)) for i in range(count)]


@st.composite
def sessions(draw, max_resources=40):
    return Session(
        start_time=SESSION_START,
        resources=tuple(draw(resource_lists(max_size=max_resources))),
    )


@st.composite
def budgets(draw):
    return BudgetConfig(
        max_load_time=draw(st.floats(min_value=0.1, max_value=10, allow_nan=False)),
        max_total_size=draw(st.integers(min_value=1, max_value=10_000_000)),
        max_requests=draw(st.integers(min_value=1, max_value=100)),
        min_score=draw(st.integers(min_value=0, max_value=100)),
    )
