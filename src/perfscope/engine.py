"""Analysis engine: wires the aggregator and the pure analysis passes together.

One engine is built per process by ``build_engine`` and handed to whatever
needs it (the CLI, a browser bridge, tests).
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from perfscope.advisor import OptimizationAdvisor
from perfscope.aggregator import ResourceTimingAggregator
from perfscope.budgets import BudgetEvaluator
from perfscope.config import PerfscopeConfig
from perfscope.har import write_har
from perfscope.models import (
    AnalysisReport,
    BudgetConfig,
    OptimizationSuggestion,
    Session,
    ThirdPartyReport,
)
from perfscope.presets import require_preset
from perfscope.scoring import PerformanceScoreCalculator
from perfscope.third_party import ThirdPartyClassifier

logger = logging.getLogger(__name__)


class PerformanceEngine:
    def __init__(
        self,
        config: PerfscopeConfig,
        calculator: PerformanceScoreCalculator,
        advisor: OptimizationAdvisor,
        budgets: BudgetEvaluator,
        third_party: ThirdPartyClassifier,
        aggregator: ResourceTimingAggregator,
    ) -> None:
        self.config = config
        self.calculator = calculator
        self.advisor = advisor
        self.budgets = budgets
        self.third_party = third_party
        self.aggregator = aggregator

    def current_session(self) -> Session | None:
        return self.aggregator.snapshot()

    def _resolve_budget(self, budget: str | BudgetConfig | None) -> tuple[str | None, BudgetConfig]:
        if isinstance(budget, BudgetConfig):
            return None, budget
        name = budget or self.config.default_budget
        return name, require_preset(name).budget

    def analyze(
        self,
        session: Session | None = None,
        *,
        budget: str | BudgetConfig | None = None,
    ) -> AnalysisReport:
        """Run every pass over ``session`` (default: the aggregator's snapshot).

        ``budget`` is a preset name or an explicit config; the configured
        default preset is used when omitted.
        """
        session = self._session_or_snapshot(session)
        budget_name, budget_config = self._resolve_budget(budget)
        scored = self._scored(session)
        suggestions = self.advisor.analyze(scored.resources, scored.start_time)
        return self._report(scored, suggestions, budget_name, budget_config)

    async def analyze_async(
        self,
        session: Session | None = None,
        *,
        budget: str | BudgetConfig | None = None,
    ) -> AnalysisReport:
        """Like ``analyze`` but fans the advisor and third-party passes out concurrently."""
        session = self._session_or_snapshot(session)
        budget_name, budget_config = self._resolve_budget(budget)
        scored = self._scored(session)

        suggestions, third_party = await asyncio.gather(
            self.advisor.analyze_concurrently(
                scored.resources,
                scored.start_time,
                timeout=self.config.advisor_timeout_sec,
                max_concurrency=self.config.advisor_max_concurrency,
            ),
            asyncio.to_thread(self.third_party.analyze, scored.resources),
        )
        return self._report(scored, suggestions, budget_name, budget_config, third_party)

    def export_har(self, path: str | Path, session: Session | None = None) -> Path:
        return write_har(
            self._session_or_snapshot(session), path, creator_name=self.config.creator_name
        )

    def _session_or_snapshot(self, session: Session | None) -> Session:
        if session is not None:
            return session
        snapshot = self.aggregator.snapshot()
        if snapshot is None:
            raise ValueError("No active session to analyze")
        return snapshot

    def _scored(self, session: Session) -> Session:
        score = self.calculator.calculate(session)
        return session.model_copy(update={"performance_score": score})

    def _report(
        self,
        session: Session,
        suggestions: list[OptimizationSuggestion],
        budget_name: str | None,
        budget_config: BudgetConfig,
        third_party: ThirdPartyReport | None = None,
    ) -> AnalysisReport:
        budget_report = self.budgets.evaluate(session, budget_config)
        if third_party is None:
            third_party = self.third_party.analyze(session.resources)
        logger.info(
            "Analyzed %d resources: score %d, %d suggestions, budget %s",
            session.request_count,
            session.performance_score.overall,
            len(suggestions),
            budget_report.summary,
        )
        return AnalysisReport(
            session=session,
            performance_score=session.performance_score,
            suggestions=suggestions,
            budget_name=budget_name,
            budget_report=budget_report,
            third_party=third_party,
        )


def build_engine(config: PerfscopeConfig | None = None) -> PerformanceEngine:
    """Build the process-wide engine from configuration."""
    config = config or PerfscopeConfig()
    calculator = PerformanceScoreCalculator(
        weights=config.score_weights,
        rating_points=config.rating_points,
        vitals_weights=config.vitals_weights,
    )
    return PerformanceEngine(
        config=config,
        calculator=calculator,
        advisor=OptimizationAdvisor(config.advisor),
        budgets=BudgetEvaluator(),
        third_party=ThirdPartyClassifier(),
        aggregator=ResourceTimingAggregator(calculator),
    )
