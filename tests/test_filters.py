"""Unit tests for resource filtering."""

from perfscope.filters import ResourceFilter
from perfscope.types import ResourceType

from .factories import make_resource


def _urls(resources):
    return [r.url for r in resources]


class TestResourceFilter:
    def test_default_matches_everything(self, sample_session):
        assert ResourceFilter().apply(sample_session.resources) == list(sample_session.resources)

    def test_by_type(self, sample_session):
        scripts = ResourceFilter(types={ResourceType.SCRIPT}).apply(sample_session.resources)
        assert _urls(scripts) == [
            "https://shop.example.com/app.js",
            "https://www.google-analytics.com/analytics.js",
        ]

    def test_by_domain(self, sample_session):
        matched = ResourceFilter(domains={"www.google-analytics.com"}).apply(
            sample_session.resources
        )
        assert _urls(matched) == ["https://www.google-analytics.com/analytics.js"]

    def test_size_range_is_inclusive(self):
        resources = [
            make_resource("https://example.com/a", size=100),
            make_resource("https://example.com/b", size=200),
            make_resource("https://example.com/c", size=300),
        ]
        matched = ResourceFilter(min_size=200, max_size=300).apply(resources)
        assert _urls(matched) == ["https://example.com/b", "https://example.com/c"]

    def test_duration_range(self):
        resources = [
            make_resource("https://example.com/fast", duration=0.05),
            make_resource("https://example.com/slow", duration=2.0),
        ]
        assert _urls(ResourceFilter(min_duration=1.0).apply(resources)) == [
            "https://example.com/slow"
        ]
        assert _urls(ResourceFilter(max_duration=1.0).apply(resources)) == [
            "https://example.com/fast"
        ]

    def test_search_is_case_insensitive(self, sample_session):
        matched = ResourceFilter(search_text="HERO").apply(sample_session.resources)
        assert _urls(matched) == ["https://shop.example.com/hero.webp"]

    def test_criteria_combine(self, sample_session):
        criteria = ResourceFilter(types={ResourceType.SCRIPT}, min_size=100_000)
        assert _urls(criteria.apply(sample_session.resources)) == [
            "https://shop.example.com/app.js"
        ]

    def test_no_types_matches_nothing(self, sample_session):
        assert ResourceFilter(types=set()).apply(sample_session.resources) == []
