"""
Unit tests for environment-driven configuration.
"""

import pytest

from ..config import DEFAULT_KNOWLEDGE_BASE_PATH, AssistantConfig
from ..models import Language


@pytest.mark.unit
class TestAssistantConfig:
    """Test configuration loading and validation."""

    def test_config_defaults(self, assistant_config):
        assert assistant_config.qa_confidence_threshold == 0.7
        assert assistant_config.faq_confidence_threshold == 0.6
        assert assistant_config.default_language == Language.EN
        assert assistant_config.history_max_messages == 50
        assert assistant_config.history_max_sessions == 10000
        assert assistant_config.knowledge_base_path == DEFAULT_KNOWLEDGE_BASE_PATH

    def test_config_validation(self):
        with pytest.raises(ValueError, match="qa_confidence_threshold must be between"):
            AssistantConfig(qa_confidence_threshold=1.5)

        with pytest.raises(ValueError, match="faq_confidence_threshold must be between"):
            AssistantConfig(faq_confidence_threshold=-0.1)

        with pytest.raises(ValueError, match="history_backend must be one of"):
            AssistantConfig(history_backend="sqlite")

        with pytest.raises(ValueError, match="history_max_messages must be positive"):
            AssistantConfig(history_max_messages=0)

        with pytest.raises(ValueError, match="history_max_sessions must be positive"):
            AssistantConfig(history_max_sessions=0)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("CAMPUS_ASSISTANT_QA_THRESHOLD", "0.8")
        monkeypatch.setenv("CAMPUS_ASSISTANT_DEFAULT_LANGUAGE", "ML")
        monkeypatch.setenv("CAMPUS_ASSISTANT_HISTORY_BACKEND", "memory")
        monkeypatch.setenv("CAMPUS_ASSISTANT_HISTORY_MAX", "10")
        monkeypatch.setenv("CAMPUS_ASSISTANT_HISTORY_MAX_SESSIONS", "25")
        monkeypatch.setenv("CAMPUS_ASSISTANT_LOG_RESOLUTIONS", "no")
        monkeypatch.setenv("CAMPUS_ASSISTANT_HUMANIZER_SEED", "42")

        config = AssistantConfig.from_env()

        assert config.qa_confidence_threshold == 0.8
        assert config.default_language == Language.ML
        assert config.history_backend == "memory"
        assert config.history_max_messages == 10
        assert config.history_max_sessions == 25
        assert config.log_resolutions is False
        assert config.humanizer_seed == 42

    def test_from_env_falls_back_on_bad_values(self, monkeypatch):
        monkeypatch.setenv("CAMPUS_ASSISTANT_QA_THRESHOLD", "high")
        monkeypatch.setenv("CAMPUS_ASSISTANT_HISTORY_MAX", "lots")
        monkeypatch.setenv("CAMPUS_ASSISTANT_DEFAULT_LANGUAGE", "klingon")
        monkeypatch.setenv("CAMPUS_ASSISTANT_HISTORY_BACKEND", "sqlite")
        monkeypatch.setenv("CAMPUS_ASSISTANT_HUMANIZER_SEED", "abc")

        config = AssistantConfig.from_env()

        assert config.qa_confidence_threshold == 0.7
        assert config.history_max_messages == 50
        assert config.default_language == Language.EN
        assert config.history_backend == "redis"
        assert config.humanizer_seed is None
