"""Configuration for the perfscope engine.

Scoring weights and advisor thresholds are plain models so they can be
constructed directly in tests; ``PerfscopeConfig`` reads overrides from the
environment (``PERFSCOPE_`` prefix, ``__`` for nested fields, e.g.
``PERFSCOPE_SCORE_WEIGHTS__WEB_VITALS=0.4``).
"""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScoreWeights(BaseModel):
    """Weights of the four sub-scores in the overall score.

    Normalised by their sum, so they need not add up to 1.
    """

    load_time: float = Field(default=0.30, ge=0)
    resource_count: float = Field(default=0.20, ge=0)
    total_size: float = Field(default=0.20, ge=0)
    web_vitals: float = Field(default=0.30, ge=0)

    @property
    def total(self) -> float:
        return self.load_time + self.resource_count + self.total_size + self.web_vitals


class RatingPoints(BaseModel):
    """Points awarded per Web Vitals rating when deriving the vitals sub-score."""

    good: int = Field(default=100, ge=0, le=100)
    needs_improvement: int = Field(default=60, ge=0, le=100)
    poor: int = Field(default=20, ge=0, le=100)


class VitalsWeights(BaseModel):
    lcp: float = Field(default=1.0, ge=0)
    cls: float = Field(default=1.0, ge=0)
    fid: float = Field(default=1.0, ge=0)


class AdvisorThresholds(BaseModel):
    """Trigger points for the optimization analyzers."""

    compression_min_bytes: int = Field(
        default=1024,
        description="Text resources above this size are expected to be compressed",
    )
    compression_critical_bytes: int = Field(
        default=1_048_576,
        description="Combined uncompressed size above which compression is critical",
    )
    large_image_bytes: int = Field(default=500_000, description="Per-image size limit")
    lazy_load_image_count: int = Field(
        default=20,
        description="More images than this suggests lazy loading",
    )
    above_fold_images: int = Field(default=5, description="Images assumed visible on load")
    render_blocking_window_sec: float = Field(
        default=1.0,
        description="Resources starting this soon after navigation block rendering",
    )
    blocking_stylesheet_count: int = Field(default=3)
    javascript_budget_bytes: int = Field(default=1_048_576)
    css_budget_bytes: int = Field(default=204_800)
    font_count: int = Field(default=4)
    domain_count: int = Field(default=10)
    connection_overhead_sec: float = Field(
        default=0.3,
        description="Estimated DNS + TCP + TLS cost per extra domain",
    )


class PerfscopeConfig(BaseSettings):
    """Main configuration for the perfscope engine."""

    score_weights: ScoreWeights = Field(default_factory=ScoreWeights)
    rating_points: RatingPoints = Field(default_factory=RatingPoints)
    vitals_weights: VitalsWeights = Field(default_factory=VitalsWeights)
    advisor: AdvisorThresholds = Field(default_factory=AdvisorThresholds)

    advisor_timeout_sec: float = Field(
        default=5.0, gt=0, description="Deadline for the concurrent analyzer fan-out"
    )
    advisor_max_concurrency: int = Field(
        default=4, ge=1, description="Analyzers allowed to run at once"
    )

    default_budget: str = Field(default="desktop-standard", description="Budget preset name")

    creator_name: str = Field(default="perfscope", description="HAR log.creator.name")
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_prefix="PERFSCOPE_", env_nested_delimiter="__")
