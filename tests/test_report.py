"""Unit tests for the JSON, CSV and summary output formats."""

import csv
import io
import json

import pytest

from perfscope.engine import build_engine
from perfscope.report import to_csv, to_json, to_summary
from perfscope.vitals import build_snapshot

from .factories import make_resource, make_session


@pytest.fixture
def report(sample_session):
    return build_engine().analyze(sample_session, budget="pwa")


@pytest.fixture
def failing_report():
    session = make_session(
        [make_resource(f"https://example.com/{i}.js", duration=4.0) for i in range(3)],
        web_vitals=build_snapshot(5000, 0.3, 400),
    )
    return build_engine().analyze(session, budget="desktop-standard")


class TestJson:
    def test_metrics(self, report):
        document = json.loads(to_json(report))
        assert document["metrics"]["request_count"] == 5
        assert document["metrics"]["total_size"] == 490_000
        assert document["metrics"]["performance_score"] == report.performance_score.overall
        assert document["budget"] == "pwa"
        assert document["web_vitals"] is None

    def test_sections(self, report):
        document = json.loads(to_json(report))
        assert sorted(document) == [
            "budget",
            "budget_violations",
            "metrics",
            "resources",
            "suggestions",
            "third_party",
            "web_vitals",
        ]
        assert document["third_party"]["first_party_domain"] == "shop.example.com"
        assert document["resources"][0] == {
            "duration": pytest.approx(0.3),
            "size": 40_000,
            "status": 200,
            "type": "document",
            "url": "https://shop.example.com/",
        }

    def test_violations_and_vitals(self, failing_report):
        document = json.loads(to_json(failing_report))
        assert document["web_vitals"]["lcp"] == "5.00 s"
        severities = {v["metric"]: v["severity"] for v in document["budget_violations"]}
        assert severities["Load Time"] == "warning"
        assert severities["LCP (Largest Contentful Paint)"] == "critical"

    def test_suggestions_serialised(self, failing_report):
        document = json.loads(to_json(failing_report))
        titles = [s["title"] for s in document["suggestions"]]
        assert "Add Cache Headers" in titles
        impacts = {s["impact"] for s in document["suggestions"]}
        assert impacts <= {"critical", "high", "medium", "low"}


class TestCsv:
    def test_rows(self, sample_session):
        rows = list(csv.reader(io.StringIO(to_csv(sample_session))))
        assert rows[0] == ["URL", "Type", "Size", "Duration", "Status"]
        assert len(rows) == 6
        assert rows[2][:3] == ["https://shop.example.com/app.js", "script", "250000"]
        assert rows[2][4] == "200"

    def test_quotes_commas(self):
        session = make_session([make_resource("https://example.com/a?x=1,2")])
        rows = list(csv.reader(io.StringIO(to_csv(session))))
        assert rows[1][0] == "https://example.com/a?x=1,2"

    def test_empty_session(self):
        assert to_csv(make_session()) == "URL,Type,Size,Duration,Status\n"


class TestSummary:
    def test_sections(self, report):
        text = to_summary(report)
        assert "PERFORMANCE METRICS" in text
        assert "Total Requests:     5" in text
        assert "Total Size:         490 KB" in text
        assert "CORE WEB VITALS" not in text
        assert "  Script: 2 (300 KB)" in text
        assert "  Image: 1 (120 KB)" in text

    def test_violations_listed(self, failing_report):
        text = to_summary(failing_report)
        assert "CORE WEB VITALS" in text
        assert "LCP (Largest Contentful Paint):  5.00 s - poor" in text
        assert "BUDGET VIOLATIONS (" in text
        assert "  [critical] LCP (Largest Contentful Paint): 5.00 s (budget: 2.50 s)" in text

    def test_no_violations_section_when_within_budget(self, sample_session):
        report = build_engine().analyze(sample_session, budget="desktop-standard")
        assert "BUDGET VIOLATIONS" not in to_summary(report)
