"""Third-party domain classifier.

Groups a session's resources by host, picks the first-party host (the one
serving the most resources, first seen on ties) and tags every other host with
a known provider where one matches.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from perfscope.models import (
    ResourceRecord,
    ThirdPartyDomainSummary,
    ThirdPartyProvider,
    ThirdPartyReport,
)
from perfscope.types import ProviderCategory


def _provider(name: str, category: ProviderCategory, description: str) -> ThirdPartyProvider:
    return ThirdPartyProvider(name=name, category=category, description=description)


KNOWN_PROVIDERS: dict[str, ThirdPartyProvider] = {
    "google-analytics.com": _provider(
        "Google Analytics", ProviderCategory.ANALYTICS, "Web analytics service"
    ),
    "googletagmanager.com": _provider(
        "Google Tag Manager", ProviderCategory.TAG_MANAGEMENT, "Tag management system"
    ),
    "doubleclick.net": _provider(
        "DoubleClick", ProviderCategory.ADVERTISING, "Ad serving platform"
    ),
    "facebook.net": _provider("Facebook", ProviderCategory.SOCIAL_MEDIA, "Social media tracking"),
    "connect.facebook.net": _provider(
        "Facebook SDK", ProviderCategory.SOCIAL_MEDIA, "Facebook integration"
    ),
    "twitter.com": _provider("Twitter", ProviderCategory.SOCIAL_MEDIA, "Social media integration"),
    "youtube.com": _provider("YouTube", ProviderCategory.VIDEO, "Video platform"),
    "googlevideo.com": _provider("YouTube CDN", ProviderCategory.VIDEO, "Video delivery"),
    "googleapis.com": _provider("Google APIs", ProviderCategory.OTHER, "Google services"),
    "gstatic.com": _provider("Google Static", ProviderCategory.CDN, "Google CDN"),
    "cloudflare.com": _provider("Cloudflare", ProviderCategory.CDN, "CDN and security"),
    "cloudfront.net": _provider("Amazon CloudFront", ProviderCategory.CDN, "AWS CDN"),
    "akamaized.net": _provider("Akamai", ProviderCategory.CDN, "CDN provider"),
    "fonts.googleapis.com": _provider("Google Fonts", ProviderCategory.FONTS, "Web fonts service"),
    "fonts.gstatic.com": _provider("Google Fonts CDN", ProviderCategory.FONTS, "Font delivery"),
    "typekit.net": _provider("Adobe Fonts", ProviderCategory.FONTS, "Web fonts service"),
    "maps.googleapis.com": _provider("Google Maps", ProviderCategory.MAPS, "Maps API"),
    "stripe.com": _provider("Stripe", ProviderCategory.PAYMENTS, "Payment processing"),
    "paypal.com": _provider("PayPal", ProviderCategory.PAYMENTS, "Payment processing"),
    "hotjar.com": _provider("Hotjar", ProviderCategory.ANALYTICS, "User behavior analytics"),
    "segment.com": _provider("Segment", ProviderCategory.ANALYTICS, "Customer data platform"),
    "mixpanel.com": _provider("Mixpanel", ProviderCategory.ANALYTICS, "Product analytics"),
    "amplitude.com": _provider("Amplitude", ProviderCategory.ANALYTICS, "Product analytics"),
}


def identify_provider(
    host: str, providers: Mapping[str, ThirdPartyProvider] = KNOWN_PROVIDERS
) -> ThirdPartyProvider | None:
    """Exact host match first, else the longest key that is a dot-suffix of the host.

    ``www.google-analytics.com`` matches ``google-analytics.com``;
    ``evilgoogle-analytics.com`` does not.
    """
    host = host.lower().rstrip(".")
    if host in providers:
        return providers[host]
    best: str | None = None
    for key in providers:
        if host.endswith("." + key) and (best is None or len(key) > len(best)):
            best = key
    return providers[best] if best is not None else None


class ThirdPartyClassifier:
    def __init__(self, providers: Mapping[str, ThirdPartyProvider] | None = None) -> None:
        self._providers = dict(providers) if providers is not None else KNOWN_PROVIDERS

    def analyze(self, resources: Sequence[ResourceRecord]) -> ThirdPartyReport:
        groups: dict[str, list[ResourceRecord]] = {}
        for resource in resources:
            host = resource.domain
            if not host:
                continue
            groups.setdefault(host, []).append(resource)

        first_party = ""
        most = 0
        for host, members in groups.items():
            if len(members) > most:
                first_party, most = host, len(members)

        domains = [
            ThirdPartyDomainSummary(
                domain=host,
                provider=identify_provider(host, self._providers),
                resources=members,
            )
            for host, members in groups.items()
        ]
        domains.sort(key=lambda d: d.total_duration, reverse=True)
        return ThirdPartyReport(first_party_domain=first_party, domains=domains)
