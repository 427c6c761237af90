"""Session comparison: metric diffs and host changes between two page loads."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from perfscope.models import Session

Direction = Literal["improved", "regressed", "unchanged"]
Severity = Literal["info", "warning", "critical"]

# Metrics where a higher value is better.
_HIGHER_IS_BETTER = frozenset({"overall_score"})


class MetricDiff(BaseModel):
    metric: str
    old_value: float
    new_value: float
    change_pct: float
    direction: Direction
    severity: Severity


class SessionComparison(BaseModel):
    metric_diffs: list[MetricDiff]
    domains_added: list[str]
    domains_removed: list[str]

    @property
    def has_regressions(self) -> bool:
        return any(d.direction == "regressed" for d in self.metric_diffs)


def compare_sessions(
    baseline: Session,
    candidate: Session,
    *,
    threshold_pct: float = 20.0,
) -> SessionComparison:
    """Produce a structured diff between a baseline and a candidate session.

    Diffs are ordered by severity (largest regressions first).
    """
    old_metrics = _flatten(baseline)
    new_metrics = _flatten(candidate)

    diffs: list[MetricDiff] = []
    for name in old_metrics:
        if name not in new_metrics:
            continue
        old, new = old_metrics[name], new_metrics[name]
        change_pct = _pct_change(old, new)

        if abs(change_pct) < 5.0:
            direction: Direction = "unchanged"
        elif name in _HIGHER_IS_BETTER:
            direction = "improved" if change_pct > 0 else "regressed"
        else:
            direction = "improved" if change_pct < 0 else "regressed"

        if direction == "regressed" and abs(change_pct) > threshold_pct * 2:
            severity: Severity = "critical"
        elif direction == "regressed" and abs(change_pct) > threshold_pct:
            severity = "warning"
        else:
            severity = "info"

        diffs.append(
            MetricDiff(
                metric=name,
                old_value=old,
                new_value=new,
                change_pct=round(change_pct, 2),
                direction=direction,
                severity=severity,
            )
        )

    severity_order = {"critical": 0, "warning": 1, "info": 2}
    diffs.sort(key=lambda d: (severity_order[d.severity], -abs(d.change_pct)))

    return SessionComparison(
        metric_diffs=diffs,
        domains_added=sorted(candidate.domains - baseline.domains),
        domains_removed=sorted(baseline.domains - candidate.domains),
    )


def _flatten(session: Session) -> dict[str, float]:
    """Comparable metrics of a session. Score and vitals only when present."""
    flat: dict[str, float] = {
        "load_time": session.load_time,
        "total_size": float(session.total_size),
        "request_count": float(session.request_count),
    }
    if session.performance_score is not None:
        flat["overall_score"] = float(session.performance_score.overall)
    if session.web_vitals is not None:
        flat["lcp"] = session.web_vitals.lcp.raw_value
        flat["cls"] = session.web_vitals.cls.raw_value
        flat["fid"] = session.web_vitals.fid.raw_value
    return flat


def _pct_change(old: float, new: float) -> float:
    """Percentage change from old to new. Returns 0 if both are 0."""
    if old == 0:
        return 0.0 if new == 0 else 100.0
    return ((new - old) / abs(old)) * 100
