"""Tests for environment-driven settings."""
from __future__ import annotations

from app.core.config import Settings


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "Development")
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    monkeypatch.setenv("GROQ_API_KEY", "gsk-test")
    monkeypatch.setenv("DEBUG", "true")

    config = Settings(_env_file=None)

    assert config.is_production is False
    assert config.llm_api_key == "gsk-test"
    assert "debug" not in Settings.model_fields
    assert not hasattr(config, "debug")
