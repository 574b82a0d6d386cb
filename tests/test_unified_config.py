import pytest
from pydantic import ValidationError

from app.core.unified_config import AIAnalysisConfig, ExtractionConfig, UnifiedConfig


def test_extraction_profile_defaults():
    profile = ExtractionConfig().to_profile()

    assert profile.label_candidate_cols == (38, 1, 2)
    assert profile.fallback_label_col == 38
    assert profile.label_window == (5, 15)
    assert profile.item_row_range == (5, 60)
    assert profile.window_months == 13
    assert profile.actual_marker == "実績"


def test_nested_environment_override(monkeypatch):
    monkeypatch.setenv("PL_REPORT_EXTRACTION__MAX_COLS", "60")

    assert UnifiedConfig().extraction.max_cols == 60


def test_inverted_label_window_is_rejected():
    with pytest.raises(ValidationError):
        ExtractionConfig(label_window_start=10, label_window_end=5)


class TestAIAnalysisConfig:
    def test_provider_selects_model(self):
        config = AIAnalysisConfig(provider="Anthropic")

        assert config.provider == "anthropic"
        assert config.model == config.anthropic_model

    def test_unknown_provider(self):
        with pytest.raises(ValidationError):
            AIAnalysisConfig(provider="gemini")

    def test_placeholder_key_counts_as_missing(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "your_openai_key_here")
        assert AIAnalysisConfig(provider="openai").api_key is None

        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        assert AIAnalysisConfig(provider="openai").api_key == "sk-test"


def test_summary_hides_secrets(monkeypatch):
    monkeypatch.setenv("PL_REPORT_DRIVE__SERVICE_ACCOUNT_JSON", '{"private_key": "secret"}')

    summary = UnifiedConfig().summary()

    assert summary["drive_credentials_configured"] is True
    assert "secret" not in str(summary)
    assert summary["window_months"] == 13
