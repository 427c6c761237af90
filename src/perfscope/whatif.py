"""What-if simulation: estimate the effect of an optimization on a session.

Each scenario removes or shrinks a subset of the session's resources; the
predicted score is recomputed from the adjusted totals. Estimates are rough
(``bytes / 1 MB * 0.5 s`` of load time per byte saved) and always carry low
confidence.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from perfscope.formatting import format_size
from perfscope.models import ResourceRecord, Session
from perfscope.scoring import PerformanceScoreCalculator
from perfscope.types import ResourceType

ABOVE_FOLD_IMAGES = 5
IMAGE_COMPRESSION_KEEP = 0.2
JS_MINIFY_KEEP = 0.7
SECONDS_PER_MB = 0.5


class RemoveTracker(BaseModel):
    kind: Literal["remove-tracker"] = "remove-tracker"
    name: str = Field(min_length=1, description="Case-insensitive URL substring")


class CompressImages(BaseModel):
    kind: Literal["compress-images"] = "compress-images"


class LazyLoadImages(BaseModel):
    kind: Literal["lazy-load-images"] = "lazy-load-images"


class RemoveScript(BaseModel):
    kind: Literal["remove-script"] = "remove-script"
    url: str = Field(min_length=1)


class EnableCaching(BaseModel):
    kind: Literal["enable-caching"] = "enable-caching"


class MinifyJavaScript(BaseModel):
    kind: Literal["minify-javascript"] = "minify-javascript"


Scenario = Annotated[
    RemoveTracker
    | CompressImages
    | LazyLoadImages
    | RemoveScript
    | EnableCaching
    | MinifyJavaScript,
    Field(discriminator="kind"),
]

_SCENARIO_ADAPTER: TypeAdapter[Scenario] = TypeAdapter(Scenario)

SCENARIO_KINDS = (
    "remove-tracker",
    "compress-images",
    "lazy-load-images",
    "remove-script",
    "enable-caching",
    "minify-javascript",
)


class WhatIfResult(BaseModel):
    scenario: str
    affected_count: int
    bytes_saved: int
    time_saved: float = Field(description="Estimated seconds")
    baseline_score: int
    predicted_score: int
    confidence: Literal["low"] = "low"

    @property
    def size_savings(self) -> str:
        return format_size(self.bytes_saved)

    @property
    def time_savings(self) -> str:
        return f"~{self.time_saved:.1f}s"


def parse_scenario(kind: str, target: str | None = None) -> Scenario:
    """Build a scenario from its kind and optional target (tracker name or script URL).

    Raises ``ValueError`` for unknown kinds or a missing target.
    """
    payload: dict[str, str] = {"kind": kind}
    if kind == "remove-tracker" and target is not None:
        payload["name"] = target
    elif kind == "remove-script" and target is not None:
        payload["url"] = target
    try:
        return _SCENARIO_ADAPTER.validate_python(payload)
    except ValidationError as e:
        raise ValueError(
            f"Invalid scenario '{kind}'. Available: {', '.join(SCENARIO_KINDS)}"
        ) from e


def describe(scenario: Scenario) -> str:
    match scenario:
        case RemoveTracker(name=name):
            return f"Remove {name} tracker"
        case CompressImages():
            return "Compress all images to WebP/AVIF format"
        case LazyLoadImages():
            return "Lazy load below-the-fold images"
        case RemoveScript(url=url):
            return f"Remove script: {url}"
        case EnableCaching():
            return "Enable browser caching for static assets"
        case MinifyJavaScript():
            return "Minify and compress JavaScript bundles"


def _effect(scenario: Scenario, resources: tuple[ResourceRecord, ...]) -> tuple[int, int, int]:
    """Return ``(affected_count, bytes_saved, requests_removed)``."""
    images = [r for r in resources if r.resource_type == ResourceType.IMAGE]
    match scenario:
        case RemoveTracker(name=name):
            needle = name.lower()
            hits = [r for r in resources if needle in r.url.lower()]
            return len(hits), sum(r.response_size for r in hits), len(hits)
        case CompressImages():
            saved = sum(
                r.response_size - int(r.response_size * IMAGE_COMPRESSION_KEEP) for r in images
            )
            return len(images), saved, 0
        case LazyLoadImages():
            deferred = images[ABOVE_FOLD_IMAGES:]
            return len(deferred), sum(r.response_size for r in deferred), len(deferred)
        case RemoveScript(url=url):
            hits = [r for r in resources if r.url == url]
            return len(hits), sum(r.response_size for r in hits), len(hits)
        case EnableCaching():
            cached = [
                r
                for r in resources
                if r.resource_type in (ResourceType.SCRIPT, ResourceType.STYLESHEET)
            ]
            return len(cached), sum(r.response_size for r in cached), 0
        case MinifyJavaScript():
            scripts = [r for r in resources if r.resource_type == ResourceType.SCRIPT]
            saved = sum(r.response_size - int(r.response_size * JS_MINIFY_KEEP) for r in scripts)
            return len(scripts), saved, 0


def simulate(
    scenario: Scenario,
    session: Session,
    calculator: PerformanceScoreCalculator | None = None,
) -> WhatIfResult:
    calculator = calculator or PerformanceScoreCalculator()
    affected, saved, removed = _effect(scenario, session.resources)
    time_saved = saved / 1_000_000 * SECONDS_PER_MB

    baseline = calculator.calculate(session)
    predicted = calculator.score_metrics(
        load_time=max(0.0, session.load_time - time_saved),
        request_count=max(0, session.request_count - removed),
        total_size=max(0, session.total_size - saved),
        web_vitals=session.web_vitals,
    )

    return WhatIfResult(
        scenario=describe(scenario),
        affected_count=affected,
        bytes_saved=saved,
        time_saved=time_saved,
        baseline_score=baseline.overall,
        predicted_score=predicted.overall,
    )
