"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from conftest import make_settings


class TestSettings:

    def test_defaults(self):
        settings = make_settings()

        assert settings.scan_rule_names == ["goal_average", "h2h_average"]
        assert settings.scan_league_ids == []
        assert settings.SCAN_MODEL == "low_score"
        assert settings.SCAN_H2H_MISSING_POLICY == "pass_through"

    def test_rules_are_normalised(self):
        settings = make_settings(SCAN_RULES=" goal_average , dominance ,")
        assert settings.scan_rule_names == ["goal_average", "dominance"]

    def test_unknown_rule_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(SCAN_RULES="goal_average,astrology")

    def test_unknown_model_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(SCAN_MODEL="xgboost")

    def test_league_override(self):
        assert make_settings(SCAN_LEAGUE_IDS="135,39").scan_league_ids == [135, 39]
