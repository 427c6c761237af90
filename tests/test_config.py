"""Tests for configuration defaults and environment overrides."""

import pytest
from pydantic import ValidationError

from perfscope.config import AdvisorThresholds, PerfscopeConfig, ScoreWeights


class TestDefaults:
    def test_score_weights(self):
        weights = ScoreWeights()
        assert (weights.load_time, weights.resource_count) == (0.30, 0.20)
        assert (weights.total_size, weights.web_vitals) == (0.20, 0.30)
        assert weights.total == pytest.approx(1.0)

    def test_engine_defaults(self):
        config = PerfscopeConfig()
        assert config.default_budget == "desktop-standard"
        assert config.advisor_timeout_sec == 5.0
        assert config.advisor_max_concurrency == 4
        assert config.creator_name == "perfscope"

    def test_advisor_thresholds(self):
        thresholds = AdvisorThresholds()
        assert thresholds.compression_critical_bytes == 1_048_576
        assert thresholds.lazy_load_image_count == 20
        assert thresholds.domain_count == 10

    def test_negative_weight_rejected(self):
        with pytest.raises(ValidationError):
            ScoreWeights(load_time=-0.1)


class TestEnvironment:
    def test_top_level_override(self, monkeypatch):
        monkeypatch.setenv("PERFSCOPE_DEFAULT_BUDGET", "pwa")
        monkeypatch.setenv("PERFSCOPE_ADVISOR_TIMEOUT_SEC", "1.5")
        config = PerfscopeConfig()
        assert config.default_budget == "pwa"
        assert config.advisor_timeout_sec == 1.5

    def test_nested_override(self, monkeypatch):
        monkeypatch.setenv("PERFSCOPE_SCORE_WEIGHTS__WEB_VITALS", "0.5")
        monkeypatch.setenv("PERFSCOPE_ADVISOR__DOMAIN_COUNT", "3")
        config = PerfscopeConfig()
        assert config.score_weights.web_vitals == 0.5
        assert config.score_weights.load_time == 0.30
        assert config.advisor.domain_count == 3

    def test_invalid_override(self, monkeypatch):
        monkeypatch.setenv("PERFSCOPE_ADVISOR_MAX_CONCURRENCY", "0")
        with pytest.raises(ValidationError):
            PerfscopeConfig()
