"""Enumerations shared by the resource model, scoring, advisor and budget passes."""

from enum import StrEnum


class ResourceType(StrEnum):
    DOCUMENT = "document"
    STYLESHEET = "stylesheet"
    SCRIPT = "script"
    IMAGE = "image"
    FONT = "font"
    XHR = "xhr"
    FETCH = "fetch"
    WEBSOCKET = "websocket"
    MEDIA = "media"
    OTHER = "other"


class TimingPhase(StrEnum):
    """Lifecycle timestamps reported by the browser instrumentation, in wire order."""

    DNS_START = "dns_start"
    DNS_END = "dns_end"
    CONNECT_START = "connect_start"
    CONNECT_END = "connect_end"
    TLS_START = "tls_start"
    TLS_END = "tls_end"
    SEND_START = "send_start"
    SEND_END = "send_end"
    RESPONSE_START = "response_start"
    RESPONSE_END = "response_end"


class Rating(StrEnum):
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs-improvement"
    POOR = "poor"


class Impact(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def weight(self) -> int:
        return _IMPACT_WEIGHTS[self]


class Difficulty(StrEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def rank(self) -> int:
        return _DIFFICULTY_RANKS[self]


class SuggestionCategory(StrEnum):
    COMPRESSION = "compression"
    IMAGES = "images"
    CACHING = "caching"
    RENDER_BLOCKING = "render-blocking"
    JAVASCRIPT = "javascript"
    CSS = "css"
    FONTS = "fonts"
    THIRD_PARTY = "third-party"


class ViolationSeverity(StrEnum):
    CRITICAL = "critical"  # > 50% over budget
    WARNING = "warning"  # 10-50% over budget
    MINOR = "minor"  # < 10% over budget

    @property
    def rank(self) -> int:
        return _SEVERITY_RANKS[self]


class ImpactTier(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ProviderCategory(StrEnum):
    ANALYTICS = "analytics"
    ADVERTISING = "advertising"
    SOCIAL_MEDIA = "social-media"
    CDN = "cdn"
    FONTS = "fonts"
    MAPS = "maps"
    VIDEO = "video"
    TAG_MANAGEMENT = "tag-management"
    PAYMENTS = "payments"
    OTHER = "other"


_IMPACT_WEIGHTS = {
    Impact.CRITICAL: 4,
    Impact.HIGH: 3,
    Impact.MEDIUM: 2,
    Impact.LOW: 1,
}

_DIFFICULTY_RANKS = {
    Difficulty.EASY: 0,
    Difficulty.MEDIUM: 1,
    Difficulty.HARD: 2,
}

_SEVERITY_RANKS = {
    ViolationSeverity.MINOR: 0,
    ViolationSeverity.WARNING: 1,
    ViolationSeverity.CRITICAL: 2,
}
