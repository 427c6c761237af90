"""Resource, session, score, advisory, budget and third-party data models.

Records produced by the aggregator are frozen: once a request has been
finalized nothing downstream can change it. Analysis passes build new models
instead of mutating the ones they were given.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from urllib.parse import urlsplit

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_serializer,
    field_validator,
)

from perfscope.types import (
    Difficulty,
    Impact,
    ImpactTier,
    ProviderCategory,
    Rating,
    ResourceType,
    SuggestionCategory,
    ViolationSeverity,
)

# ---------------------------------------------------------------------------
# Timing and resources
# ---------------------------------------------------------------------------


class TimingBreakdown(BaseModel):
    """HAR-compatible phase durations in seconds."""

    model_config = ConfigDict(frozen=True)

    blocked: float = Field(default=0.0, ge=0, description="Time spent queued")
    dns: float = Field(default=0.0, ge=0, description="DNS resolution")
    connect: float = Field(default=0.0, ge=0, description="TCP connection")
    ssl: float = Field(default=0.0, ge=0, description="TLS negotiation")
    send: float = Field(default=0.0, ge=0, description="Sending the request")
    wait: float = Field(default=0.0, ge=0, description="Time to first byte")
    receive: float = Field(default=0.0, ge=0, description="Downloading the response")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> float:
        return (
            self.blocked + self.dns + self.connect + self.ssl + self.send + self.wait + self.receive
        )


class ResourceRecord(BaseModel):
    model_config = ConfigDict(frozen=True, ser_json_bytes="base64", val_json_bytes="base64")

    id: str
    url: str
    method: str = "GET"
    status_code: int = 0
    mime_type: str | None = None
    resource_type: ResourceType = ResourceType.OTHER

    start_time: float
    timings: TimingBreakdown = TimingBreakdown()

    request_size: int = Field(default=0, ge=0)
    response_size: int = Field(default=0, ge=0)

    request_headers: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    response_headers: Mapping[str, str] = Field(default_factory=dict, validate_default=True)

    request_body: bytes | None = None
    response_body: bytes | None = None

    @field_validator("request_headers", "response_headers")
    @classmethod
    def freeze_headers(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        # Read-only view over a private copy; the caller keeps its own dict.
        return MappingProxyType(dict(value))

    @field_serializer("request_headers", "response_headers")
    def serialize_headers(self, value: Mapping[str, str]) -> dict[str, str]:
        return dict(value)

    @property
    def total_duration(self) -> float:
        return self.timings.total

    @property
    def end_time(self) -> float:
        return self.start_time + self.timings.total

    @property
    def domain(self) -> str:
        try:
            return urlsplit(self.url).hostname or ""
        except ValueError:
            return ""

    def response_header(self, name: str) -> str | None:
        """Case-insensitive response header lookup."""
        wanted = name.lower()
        for key, value in self.response_headers.items():
            if key.lower() == wanted:
                return value
        return None

    def has_response_header(self, *names: str) -> bool:
        wanted = {n.lower() for n in names}
        return any(key.lower() in wanted for key in self.response_headers)


# ---------------------------------------------------------------------------
# Web Vitals
# ---------------------------------------------------------------------------


class WebVitalMetric(BaseModel):
    model_config = ConfigDict(frozen=True)

    raw_value: float
    display: str
    score: int = Field(ge=0, le=100)
    rating: Rating


class WebVitalsSnapshot(BaseModel):
    """LCP and FID raw values are milliseconds, CLS is unitless."""

    model_config = ConfigDict(frozen=True)

    lcp: WebVitalMetric
    cls: WebVitalMetric
    fid: WebVitalMetric
    captured_at: str


# ---------------------------------------------------------------------------
# Performance score
# ---------------------------------------------------------------------------


class ScoreCategory(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100)
    value: str
    rating: Rating
    recommendation: str


class PerformanceScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall: int = Field(ge=0, le=100)
    load_time: ScoreCategory
    resource_count: ScoreCategory
    total_size: ScoreCategory
    web_vitals: ScoreCategory

    def categories(self) -> dict[str, ScoreCategory]:
        return {
            "load_time": self.load_time,
            "resource_count": self.resource_count,
            "total_size": self.total_size,
            "web_vitals": self.web_vitals,
        }


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class Session(BaseModel):
    """Immutable snapshot of one navigation's finalized resources."""

    model_config = ConfigDict(frozen=True)

    epoch: int = 0
    start_time: float
    resources: tuple[ResourceRecord, ...] = ()
    web_vitals: WebVitalsSnapshot | None = None
    performance_score: PerformanceScore | None = None
    is_loading: bool = False

    @property
    def total_size(self) -> int:
        return sum(r.response_size for r in self.resources)

    @property
    def request_count(self) -> int:
        return len(self.resources)

    @property
    def load_time(self) -> float:
        """Earliest resource start to latest resource end, in seconds."""
        if not self.resources:
            return 0.0
        first_start = min(r.start_time for r in self.resources)
        last_end = max(r.end_time for r in self.resources)
        return max(0.0, last_end - first_start)

    @property
    def domains(self) -> set[str]:
        return {r.domain for r in self.resources if r.domain}


# ---------------------------------------------------------------------------
# Optimization suggestions
# ---------------------------------------------------------------------------


class ResourceDetail(BaseModel):
    url: str
    size: int
    type: ResourceType
    duration: float
    specific_issue: str | None = None


class OptimizationSuggestion(BaseModel):
    title: str
    description: str
    impact: Impact
    difficulty: Difficulty
    category: SuggestionCategory
    affected_resources: list[ResourceDetail]
    current_state: str
    target_state: str | None = None
    estimated_savings: str | None = None


# ---------------------------------------------------------------------------
# Budgets
# ---------------------------------------------------------------------------


class BudgetConfig(BaseModel):
    """Performance budget thresholds.

    Defaults match the desktop-standard preset. Negative thresholds are
    rejected here so the evaluator never sees them.
    """

    max_load_time: float = Field(default=3.0, ge=0, description="Seconds")
    max_total_size: int = Field(default=3_145_728, ge=0, description="Bytes")
    max_requests: int = Field(default=50, ge=0)
    min_score: int = Field(default=75, ge=0, le=100)
    max_lcp: float = Field(default=2500, ge=0, description="Milliseconds")
    max_cls: float = Field(default=0.1, ge=0)
    max_fid: float = Field(default=100, ge=0, description="Milliseconds")
    enabled: bool = True


class BudgetPreset(BaseModel):
    name: str
    description: str
    budget: BudgetConfig


class BudgetViolation(BaseModel):
    metric: str
    actual: str
    budget: str
    severity: ViolationSeverity
    ratio: float
    recommendation: str


class BudgetReport(BaseModel):
    violations: list[BudgetViolation] = []

    @property
    def has_critical(self) -> bool:
        return any(v.severity == ViolationSeverity.CRITICAL for v in self.violations)

    @property
    def has_warnings(self) -> bool:
        return any(
            v.severity in (ViolationSeverity.WARNING, ViolationSeverity.MINOR)
            for v in self.violations
        )

    @property
    def summary(self) -> str:
        if not self.violations:
            return "All budgets met"
        parts: list[str] = []
        for severity, label in (
            (ViolationSeverity.CRITICAL, "critical"),
            (ViolationSeverity.WARNING, "warnings"),
            (ViolationSeverity.MINOR, "minor"),
        ):
            count = sum(1 for v in self.violations if v.severity == severity)
            if count:
                parts.append(f"{count} {label}")
        return ", ".join(parts)


# ---------------------------------------------------------------------------
# Third-party analysis
# ---------------------------------------------------------------------------


class ThirdPartyProvider(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    category: ProviderCategory
    description: str


class ThirdPartyDomainSummary(BaseModel):
    domain: str
    provider: ThirdPartyProvider | None = None
    resources: list[ResourceRecord]

    @property
    def total_size(self) -> int:
        return sum(r.response_size for r in self.resources)

    @property
    def total_duration(self) -> float:
        if not self.resources:
            return 0.0
        first_start = min(r.start_time for r in self.resources)
        last_end = max(r.end_time for r in self.resources)
        return max(0.0, last_end - first_start)

    @property
    def request_count(self) -> int:
        return len(self.resources)

    @property
    def impact(self) -> ImpactTier:
        if self.total_duration > 2.0 or self.total_size > 1_048_576:
            return ImpactTier.HIGH
        if self.total_duration > 1.0 or self.total_size > 524_288:
            return ImpactTier.MEDIUM
        return ImpactTier.LOW


class ThirdPartyReport(BaseModel):
    first_party_domain: str
    domains: list[ThirdPartyDomainSummary]

    @property
    def third_party_domains(self) -> list[ThirdPartyDomainSummary]:
        return [d for d in self.domains if d.domain != self.first_party_domain]

    @property
    def first_party_domains(self) -> list[ThirdPartyDomainSummary]:
        return [d for d in self.domains if d.domain == self.first_party_domain]

    @property
    def total_third_party_size(self) -> int:
        return sum(d.total_size for d in self.third_party_domains)

    @property
    def total_third_party_requests(self) -> int:
        return sum(d.request_count for d in self.third_party_domains)

    @property
    def third_party_percentage(self) -> float:
        total = sum(d.total_size for d in self.domains)
        if total <= 0:
            return 0.0
        return self.total_third_party_size / total * 100

    def category_summary(self) -> dict[ProviderCategory, int]:
        summary: dict[ProviderCategory, int] = {}
        for domain in self.third_party_domains:
            if domain.provider:
                category = domain.provider.category
                summary[category] = summary.get(category, 0) + domain.request_count
        return summary


# ---------------------------------------------------------------------------
# Analysis report (handoff to the narrative layer)
# ---------------------------------------------------------------------------


class AnalysisReport(BaseModel):
    session: Session
    performance_score: PerformanceScore
    suggestions: list[OptimizationSuggestion]
    budget_name: str | None = None
    budget_report: BudgetReport | None = None
    third_party: ThirdPartyReport
