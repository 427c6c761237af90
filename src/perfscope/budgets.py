"""Budget evaluator: compares a session against a ``BudgetConfig``.

Severity comes from how far the metric is out of bounds. For maxima the ratio
is ``actual / budget``, for the minimum score ``budget / actual``:
- critical: ratio > 1.5
- warning: ratio > 1.1
- minor: anything else out of bounds
"""

from __future__ import annotations

import math

from perfscope.formatting import format_duration, format_size
from perfscope.models import BudgetConfig, BudgetReport, BudgetViolation, Session
from perfscope.types import ViolationSeverity

CRITICAL_RATIO = 1.5
WARNING_RATIO = 1.1


def overage_ratio(actual: float, budget: float) -> float:
    if budget == 0:
        return math.inf
    return actual / budget


def classify_ratio(ratio: float) -> ViolationSeverity:
    if ratio > CRITICAL_RATIO:
        return ViolationSeverity.CRITICAL
    if ratio > WARNING_RATIO:
        return ViolationSeverity.WARNING
    return ViolationSeverity.MINOR


class BudgetEvaluator:
    """Evaluates every budget check against a session snapshot."""

    def evaluate(self, session: Session, budget: BudgetConfig) -> BudgetReport:
        if not budget.enabled:
            return BudgetReport()

        violations: list[BudgetViolation] = []
        for check in (
            self._check_load_time,
            self._check_total_size,
            self._check_request_count,
            self._check_score,
            self._check_lcp,
            self._check_cls,
            self._check_fid,
        ):
            violation = check(session, budget)
            if violation:
                violations.append(violation)
        return BudgetReport(violations=violations)

    @staticmethod
    def _violation(
        metric: str,
        actual: str,
        budget: str,
        ratio: float,
        recommendation: str,
    ) -> BudgetViolation:
        return BudgetViolation(
            metric=metric,
            actual=actual,
            budget=budget,
            severity=classify_ratio(ratio),
            ratio=ratio,
            recommendation=recommendation,
        )

    @classmethod
    def _check_load_time(cls, session: Session, budget: BudgetConfig) -> BudgetViolation | None:
        load_time = session.load_time
        if load_time <= budget.max_load_time:
            return None
        return cls._violation(
            "Load Time",
            format_duration(load_time),
            format_duration(budget.max_load_time),
            overage_ratio(load_time, budget.max_load_time),
            "Optimize render-blocking resources and reduce server response time.",
        )

    @classmethod
    def _check_total_size(cls, session: Session, budget: BudgetConfig) -> BudgetViolation | None:
        total = session.total_size
        if total <= budget.max_total_size:
            return None
        return cls._violation(
            "Total Size",
            format_size(total),
            format_size(budget.max_total_size),
            overage_ratio(total, budget.max_total_size),
            "Optimize images, enable compression, and remove unused resources.",
        )

    @classmethod
    def _check_request_count(
        cls, session: Session, budget: BudgetConfig
    ) -> BudgetViolation | None:
        count = session.request_count
        if count <= budget.max_requests:
            return None
        return cls._violation(
            "Request Count",
            f"{count} requests",
            f"{budget.max_requests} requests",
            overage_ratio(count, budget.max_requests),
            "Bundle JavaScript/CSS files and use image sprites or lazy loading.",
        )

    @classmethod
    def _check_score(cls, session: Session, budget: BudgetConfig) -> BudgetViolation | None:
        score = session.performance_score
        if score is None or score.overall >= budget.min_score:
            return None
        return cls._violation(
            "Performance Score",
            str(score.overall),
            f">= {budget.min_score}",
            overage_ratio(budget.min_score, score.overall),
            "Review individual category scores and follow recommendations.",
        )

    @classmethod
    def _check_lcp(cls, session: Session, budget: BudgetConfig) -> BudgetViolation | None:
        vitals = session.web_vitals
        if vitals is None or vitals.lcp.raw_value <= budget.max_lcp:
            return None
        return cls._violation(
            "LCP (Largest Contentful Paint)",
            vitals.lcp.display,
            format_duration(budget.max_lcp / 1000),
            overage_ratio(vitals.lcp.raw_value, budget.max_lcp),
            "Optimize largest image or text block. Use CDN and image optimization.",
        )

    @classmethod
    def _check_cls(cls, session: Session, budget: BudgetConfig) -> BudgetViolation | None:
        vitals = session.web_vitals
        if vitals is None or vitals.cls.raw_value <= budget.max_cls:
            return None
        return cls._violation(
            "CLS (Cumulative Layout Shift)",
            vitals.cls.display,
            f"<= {budget.max_cls:.2f}",
            overage_ratio(vitals.cls.raw_value, budget.max_cls),
            "Reserve space for ads/images. Avoid inserting content above viewport.",
        )

    @classmethod
    def _check_fid(cls, session: Session, budget: BudgetConfig) -> BudgetViolation | None:
        vitals = session.web_vitals
        if vitals is None or vitals.fid.raw_value <= budget.max_fid:
            return None
        return cls._violation(
            "FID (First Input Delay)",
            vitals.fid.display,
            format_duration(budget.max_fid / 1000),
            overage_ratio(vitals.fid.raw_value, budget.max_fid),
            "Reduce JavaScript execution time. Break up long tasks.",
        )
