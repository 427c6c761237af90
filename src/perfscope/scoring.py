"""Performance score calculator.

Four sub-scores, each on a 0-100 scale with a monotonically non-increasing
curve against its metric:
- Load time: 100 under 1 s, falling through 70 at 2.5 s and 40 at 4 s
- Resource count: 100 under 30 requests, 70 at 50, 40 at 100
- Total size: 100 under 1 MiB, 70 at 3 MiB, 40 at 5 MiB
- Web Vitals: weighted average of the per-metric ratings mapped to points

The overall score is the weighted combination of the four, clamped to 0-100.
Nothing here performs I/O or mutates its inputs.
"""

from __future__ import annotations

from perfscope.config import RatingPoints, ScoreWeights, VitalsWeights
from perfscope.models import PerformanceScore, ScoreCategory, Session, WebVitalsSnapshot
from perfscope.types import Rating

MIB = 1_048_576


class PerformanceScoreCalculator:
    def __init__(
        self,
        weights: ScoreWeights | None = None,
        rating_points: RatingPoints | None = None,
        vitals_weights: VitalsWeights | None = None,
    ) -> None:
        self._weights = weights or ScoreWeights()
        self._points = rating_points or RatingPoints()
        self._vitals_weights = vitals_weights or VitalsWeights()

    def calculate(self, session: Session) -> PerformanceScore:
        return self.score_metrics(
            load_time=session.load_time,
            request_count=session.request_count,
            total_size=session.total_size,
            web_vitals=session.web_vitals,
        )

    def score_metrics(
        self,
        *,
        load_time: float,
        request_count: int,
        total_size: int,
        web_vitals: WebVitalsSnapshot | None,
    ) -> PerformanceScore:
        load = load_time_category(load_time)
        count = resource_count_category(request_count)
        size = total_size_category(total_size)
        vitals = self.web_vitals_category(web_vitals)

        w = self._weights
        total_weight = w.total
        if total_weight <= 0:
            overall = 0
        else:
            weighted = (
                load.score * w.load_time
                + count.score * w.resource_count
                + size.score * w.total_size
                + vitals.score * w.web_vitals
            ) / total_weight
            overall = min(100, max(0, int(round(weighted, 6))))

        return PerformanceScore(
            overall=overall,
            load_time=load,
            resource_count=count,
            total_size=size,
            web_vitals=vitals,
        )

    def web_vitals_category(self, vitals: WebVitalsSnapshot | None) -> ScoreCategory:
        if vitals is None:
            return ScoreCategory(
                score=50,
                value="Not measured",
                rating=Rating.NEEDS_IMPROVEMENT,
                recommendation="Web Vitals data not available yet.",
            )

        vw = self._vitals_weights
        pairs = (
            (vitals.lcp.rating, vw.lcp),
            (vitals.cls.rating, vw.cls),
            (vitals.fid.rating, vw.fid),
        )
        total_weight = sum(weight for _, weight in pairs)
        if total_weight <= 0:
            score = 0
        else:
            average = (
                sum(self._rating_points(rating) * weight for rating, weight in pairs)
                / total_weight
            )
            score = int(round(average, 6))
        score = min(100, max(0, score))

        if score >= 75:
            rating = Rating.GOOD
        elif score >= 50:
            rating = Rating.NEEDS_IMPROVEMENT
        else:
            rating = Rating.POOR

        recommendations = []
        if vitals.lcp.rating != Rating.GOOD:
            recommendations.append("Improve LCP: optimize images and server response")
        if vitals.cls.rating != Rating.GOOD:
            recommendations.append("Fix CLS: reserve space for dynamic content")
        if vitals.fid.rating != Rating.GOOD:
            recommendations.append("Reduce FID: minimize JavaScript execution")

        return ScoreCategory(
            score=score,
            value=(
                f"LCP: {vitals.lcp.display}, CLS: {vitals.cls.display}, "
                f"FID: {vitals.fid.display}"
            ),
            rating=rating,
            recommendation=(
                ". ".join(recommendations) if recommendations else "All Core Web Vitals are good!"
            ),
        )

    def _rating_points(self, rating: Rating) -> int:
        match rating:
            case Rating.GOOD:
                return self._points.good
            case Rating.NEEDS_IMPROVEMENT:
                return self._points.needs_improvement
            case Rating.POOR:
                return self._points.poor


def load_time_category(duration: float) -> ScoreCategory:
    duration = max(0.0, duration)
    if duration < 1.0:
        score, rating = 100, Rating.GOOD
        recommendation = "Excellent load time! Users will barely notice the wait."
    elif duration < 2.5:
        score, rating = max(70, 100 - int((duration - 1.0) * 20)), Rating.GOOD
        recommendation = "Good load time. Consider optimizing for mobile users."
    elif duration < 4.0:
        score, rating = max(40, 70 - int((duration - 2.5) * 20)), Rating.NEEDS_IMPROVEMENT
        recommendation = "Load time could be improved. Look for blocking resources."
    else:
        score, rating = max(0, 40 - int((duration - 4.0) * 10)), Rating.POOR
        recommendation = "Slow load time. Critical resources may be blocking render."

    return ScoreCategory(
        score=score,
        value=f"{int(duration * 1000)} ms",
        rating=rating,
        recommendation=recommendation,
    )


def resource_count_category(count: int) -> ScoreCategory:
    count = max(0, count)
    if count < 30:
        score, rating = 100, Rating.GOOD
        recommendation = "Excellent! Low resource count improves load performance."
    elif count < 50:
        score, rating = max(70, 100 - (count - 30)), Rating.GOOD
        recommendation = "Good resource count. Consider combining similar resources."
    elif count < 100:
        score, rating = max(40, 70 - (count - 50) // 2), Rating.NEEDS_IMPROVEMENT
        recommendation = "Many resources. Consider bundling JS/CSS and using image sprites."
    else:
        score, rating = max(0, 40 - (count - 100) // 5), Rating.POOR
        recommendation = "Too many resources. Implement aggressive bundling and lazy loading."

    return ScoreCategory(
        score=score,
        value=f"{count} requests",
        rating=rating,
        recommendation=recommendation,
    )


def total_size_category(size: int) -> ScoreCategory:
    size = max(0, size)
    mb = size / MIB
    if size < MIB:
        score, rating = 100, Rating.GOOD
        recommendation = "Excellent! Small page size loads quickly on all connections."
    elif size < 3 * MIB:
        score, rating = max(70, int(100 - (mb - 1) * 15)), Rating.GOOD
        recommendation = "Good size. Consider image optimization and compression."
    elif size < 5 * MIB:
        score, rating = max(40, int(70 - (mb - 3) * 15)), Rating.NEEDS_IMPROVEMENT
        recommendation = "Page is heavy. Optimize images, use WebP, enable gzip/brotli."
    else:
        score, rating = max(0, int(40 - (mb - 5) * 8)), Rating.POOR
        recommendation = "Page is too large. Implement lazy loading and modern image formats."

    return ScoreCategory(
        score=score,
        value=f"{mb:.2f} MB",
        rating=rating,
        recommendation=recommendation,
    )
