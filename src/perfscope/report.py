"""Output formats for analysis results: JSON, CSV and a plain-text summary."""

from __future__ import annotations

import csv
import io
import json

from perfscope.formatting import format_size
from perfscope.models import AnalysisReport, Session
from perfscope.types import ResourceType, ViolationSeverity

_RULE = "=" * 55

_SEVERITY_MARKERS = {
    ViolationSeverity.CRITICAL: "[critical]",
    ViolationSeverity.WARNING: "[warning]",
    ViolationSeverity.MINOR: "[minor]",
}


def to_json(report: AnalysisReport) -> str:
    session = report.session
    vitals = session.web_vitals
    output = {
        "metrics": {
            "load_time": session.load_time,
            "total_size": session.total_size,
            "request_count": session.request_count,
            "performance_score": report.performance_score.overall,
        },
        "web_vitals": (
            {
                "lcp": vitals.lcp.display,
                "cls": vitals.cls.display,
                "fid": vitals.fid.display,
                "lcp_score": vitals.lcp.score,
                "cls_score": vitals.cls.score,
                "fid_score": vitals.fid.score,
            }
            if vitals is not None
            else None
        ),
        "budget": report.budget_name,
        "budget_violations": (
            [
                {
                    "metric": v.metric,
                    "actual": v.actual,
                    "budget": v.budget,
                    "severity": str(v.severity),
                }
                for v in report.budget_report.violations
            ]
            if report.budget_report is not None
            else None
        ),
        "suggestions": [
            {
                "title": s.title,
                "impact": str(s.impact),
                "difficulty": str(s.difficulty),
                "category": str(s.category),
                "estimated_savings": s.estimated_savings,
            }
            for s in report.suggestions
        ],
        "third_party": {
            "first_party_domain": report.third_party.first_party_domain,
            "third_party_requests": report.third_party.total_third_party_requests,
            "third_party_size": report.third_party.total_third_party_size,
        },
        "resources": [
            {
                "url": r.url,
                "type": str(r.resource_type),
                "size": r.response_size,
                "duration": r.total_duration,
                "status": r.status_code,
            }
            for r in session.resources
        ],
    }
    return json.dumps(output, indent=2, sort_keys=True)


def to_csv(session: Session) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["URL", "Type", "Size", "Duration", "Status"])
    for r in session.resources:
        writer.writerow([r.url, r.resource_type, r.response_size, r.total_duration, r.status_code])
    return buffer.getvalue()


def _section(title: str) -> list[str]:
    return [_RULE, title, _RULE, ""]


def to_summary(report: AnalysisReport) -> str:
    session = report.session
    lines = [
        *_section("PERFORMANCE METRICS"),
        f"Load Time:          {session.load_time:.2f} seconds",
        f"Total Size:         {format_size(session.total_size)}",
        f"Total Requests:     {session.request_count}",
        f"Performance Score:  {report.performance_score.overall}/100",
        "",
    ]

    vitals = session.web_vitals
    if vitals is not None:
        lines += [
            *_section("CORE WEB VITALS"),
            f"LCP (Largest Contentful Paint):  {vitals.lcp.display} - {vitals.lcp.rating}",
            f"CLS (Cumulative Layout Shift):   {vitals.cls.display} - {vitals.cls.rating}",
            f"FID (First Input Delay):         {vitals.fid.display} - {vitals.fid.rating}",
            "",
        ]

    budget_report = report.budget_report
    if budget_report is not None and budget_report.violations:
        lines += _section(f"BUDGET VIOLATIONS ({len(budget_report.violations)})")
        for v in budget_report.violations:
            lines.append(
                f"  {_SEVERITY_MARKERS[v.severity]} {v.metric}: {v.actual} (budget: {v.budget})"
            )
        lines.append("")

    lines += _section("RESOURCE BREAKDOWN")
    for resource_type in ResourceType:
        members = [r for r in session.resources if r.resource_type == resource_type]
        if members:
            size = format_size(sum(r.response_size for r in members))
            lines.append(f"  {resource_type.capitalize()}: {len(members)} ({size})")
    lines += ["", _RULE, ""]

    return "\n".join(lines)
