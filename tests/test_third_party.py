"""Unit tests for third-party domain classification."""

import pytest

from perfscope.models import ThirdPartyDomainSummary, ThirdPartyProvider
from perfscope.third_party import KNOWN_PROVIDERS, ThirdPartyClassifier, identify_provider
from perfscope.types import ImpactTier, ProviderCategory

from .factories import make_resource


class TestIdentifyProvider:
    def test_exact_match(self):
        assert identify_provider("stripe.com").name == "Stripe"

    def test_subdomain_match(self):
        provider = identify_provider("www.google-analytics.com")
        assert provider.name == "Google Analytics"
        assert provider.category == ProviderCategory.ANALYTICS

    def test_longest_suffix_wins(self):
        assert identify_provider("fonts.googleapis.com").name == "Google Fonts"
        assert identify_provider("eu.fonts.googleapis.com").name == "Google Fonts"
        assert identify_provider("storage.googleapis.com").name == "Google APIs"

    def test_lookalike_host_is_not_matched(self):
        assert identify_provider("evilgoogle-analytics.com") is None

    def test_case_and_trailing_dot(self):
        assert identify_provider("Fonts.GStatic.com.").name == "Google Fonts CDN"

    def test_unknown(self):
        assert identify_provider("cdn.example.org") is None

    def test_custom_table(self):
        table = {
            "example.net": ThirdPartyProvider(
                name="Example", category=ProviderCategory.OTHER, description="Test provider"
            )
        }
        assert identify_provider("static.example.net", table).name == "Example"
        assert identify_provider("stripe.com", table) is None

    def test_payments_category(self):
        assert KNOWN_PROVIDERS["paypal.com"].category == ProviderCategory.PAYMENTS


class TestClassifier:
    def test_first_party_is_busiest_host(self, sample_session):
        report = ThirdPartyClassifier().analyze(sample_session.resources)
        assert report.first_party_domain == "shop.example.com"
        assert [d.domain for d in report.third_party_domains] == ["www.google-analytics.com"]
        assert [d.domain for d in report.first_party_domains] == ["shop.example.com"]

    def test_domains_sorted_by_duration(self, sample_session):
        report = ThirdPartyClassifier().analyze(sample_session.resources)
        durations = [d.total_duration for d in report.domains]
        assert durations == sorted(durations, reverse=True)

    def test_totals(self, sample_session):
        report = ThirdPartyClassifier().analyze(sample_session.resources)
        assert report.total_third_party_size == 50_000
        assert report.total_third_party_requests == 1
        assert report.third_party_percentage == pytest.approx(50_000 / 490_000 * 100)
        assert report.category_summary() == {ProviderCategory.ANALYTICS: 1}

    def test_tie_goes_to_first_seen(self):
        resources = [
            make_resource("https://b.example.com/1"),
            make_resource("https://a.example.com/1"),
        ]
        assert ThirdPartyClassifier().analyze(resources).first_party_domain == "b.example.com"

    def test_unknown_third_party_has_no_provider(self):
        resources = [
            make_resource("https://example.com/"),
            make_resource("https://example.com/app.js"),
            make_resource("https://widgets.vendor.io/w.js"),
        ]
        report = ThirdPartyClassifier().analyze(resources)
        [vendor] = report.third_party_domains
        assert vendor.provider is None
        assert report.category_summary() == {}

    def test_empty(self):
        report = ThirdPartyClassifier().analyze([])
        assert report.first_party_domain == ""
        assert report.domains == []
        assert report.third_party_percentage == 0.0

    def test_resources_without_host_ignored(self):
        resources = [make_resource("data:image/png;base64,AAAA"), make_resource()]
        report = ThirdPartyClassifier().analyze(resources)
        assert [d.domain for d in report.domains] == ["example.com"]


class TestImpactTier:
    @pytest.mark.parametrize(
        ("size", "duration", "tier"),
        [
            (10_000, 0.2, ImpactTier.LOW),
            (600_000, 0.2, ImpactTier.MEDIUM),
            (10_000, 1.5, ImpactTier.MEDIUM),
            (2_000_000, 0.2, ImpactTier.HIGH),
            (10_000, 2.5, ImpactTier.HIGH),
        ],
    )
    def test_tiers(self, size, duration, tier):
        summary = ThirdPartyDomainSummary(
            domain="cdn.example.net",
            resources=[make_resource("https://cdn.example.net/x", size=size, duration=duration)],
        )
        assert summary.impact == tier

    def test_duration_spans_first_start_to_last_end(self):
        summary = ThirdPartyDomainSummary(
            domain="cdn.example.net",
            resources=[
                make_resource("https://cdn.example.net/a", start=0.0, duration=0.5),
                make_resource("https://cdn.example.net/b", start=1.0, duration=0.5),
            ],
        )
        assert summary.total_duration == pytest.approx(1.5)
        assert summary.request_count == 2
