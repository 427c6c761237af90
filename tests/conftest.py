"""Pytest configuration and fixtures for the perfscope tests."""

from __future__ import annotations

import pytest

from perfscope.aggregator import ResourceTimingAggregator
from perfscope.models import Session
from perfscope.scoring import PerformanceScoreCalculator

from .factories import SESSION_START, make_resource, make_session


@pytest.fixture
def calculator() -> PerformanceScoreCalculator:
    return PerformanceScoreCalculator()


@pytest.fixture
def aggregator(calculator) -> ResourceTimingAggregator:
    agg = ResourceTimingAggregator(calculator)
    agg.start_navigation(SESSION_START)
    return agg


@pytest.fixture
def cached_headers() -> dict[str, str]:
    """Headers that satisfy both the compression and caching analyzers."""
    return {"Content-Encoding": "br", "Cache-Control": "max-age=31536000"}


@pytest.fixture
def sample_session(cached_headers) -> Session:
    return make_session(
        [
            make_resource(
                "https://shop.example.com/",
                size=40_000,
                mime_type="text/html",
                duration=0.3,
                headers=cached_headers,
            ),
            make_resource(
                "https://shop.example.com/app.js",
                size=250_000,
                mime_type="application/javascript",
                start=0.3,
                duration=0.4,
                headers=cached_headers,
            ),
            make_resource(
                "https://shop.example.com/site.css",
                size=30_000,
                mime_type="text/css",
                start=0.3,
                duration=0.2,
                headers=cached_headers,
            ),
            make_resource(
                "https://www.google-analytics.com/analytics.js",
                size=50_000,
                mime_type="text/javascript",
                start=1.2,
                duration=0.3,
                headers=cached_headers,
            ),
            make_resource(
                "https://shop.example.com/hero.webp",
                size=120_000,
                mime_type="image/webp",
                start=0.8,
                duration=0.5,
                headers=cached_headers,
            ),
        ]
    )


@pytest.fixture
def anyio_backend() -> str:
    # The engine and advisor are built on stdlib asyncio (DESIGN.md).
    return "asyncio"
