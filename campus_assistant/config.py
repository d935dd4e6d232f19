"""
Configuration for the Campus Assistant query resolution service

Environment-driven settings for the resolver thresholds, the knowledge base
location and the conversation history store.
"""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .models import Language

logger = logging.getLogger(__name__)

# Packaged knowledge tables
DEFAULT_KNOWLEDGE_BASE_PATH = str(Path(__file__).resolve().parent / "data")

HISTORY_BACKENDS = ("redis", "memory")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        logger.warning(f"Invalid {name}, using default {default}")
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        logger.warning(f"Invalid {name}, using default {default}")
        return default


@dataclass
class AssistantConfig:
    """
    Configuration for the Campus Assistant service.

    Attributes:
        knowledge_base_path: Directory holding the JSON knowledge tables
        qa_confidence_threshold: Minimum Q&A confidence to answer from the fact table (default: 0.7)
        faq_confidence_threshold: Minimum FAQ confidence to answer from an FAQ (default: 0.6)
        default_language: Language used when a request names an unknown code (default: en)
        history_backend: "redis" or "memory" (default: redis, falls back to memory)
        redis_url: Redis connection URL for the history store
        history_max_messages: Messages kept per session (default: 50)
        history_ttl_seconds: Session expiry in Redis (default: 86400)
        history_max_sessions: Sessions kept by the in-memory history (default: 10000)
        log_resolutions: Log one line per resolved query (default: True)
        humanizer_seed: Seed for the humanizer's random source (default: unseeded)
    """

    knowledge_base_path: str = DEFAULT_KNOWLEDGE_BASE_PATH
    qa_confidence_threshold: float = 0.7
    faq_confidence_threshold: float = 0.6
    default_language: Language = Language.EN
    history_backend: str = "redis"
    redis_url: str = "redis://localhost:6379"
    history_max_messages: int = 50
    history_ttl_seconds: int = 86400
    history_max_sessions: int = 10000
    log_resolutions: bool = True
    humanizer_seed: Optional[int] = None

    def __post_init__(self):
        """Validate configuration after initialization"""
        if not 0.0 <= self.qa_confidence_threshold <= 1.0:
            raise ValueError(
                f"qa_confidence_threshold must be between 0.0 and 1.0, got {self.qa_confidence_threshold}"
            )

        if not 0.0 <= self.faq_confidence_threshold <= 1.0:
            raise ValueError(
                f"faq_confidence_threshold must be between 0.0 and 1.0, got {self.faq_confidence_threshold}"
            )

        if self.history_backend not in HISTORY_BACKENDS:
            raise ValueError(
                f"history_backend must be one of {HISTORY_BACKENDS}, got {self.history_backend!r}"
            )

        if self.history_max_messages <= 0:
            raise ValueError(
                f"history_max_messages must be positive, got {self.history_max_messages}"
            )

        if self.history_ttl_seconds <= 0:
            raise ValueError(
                f"history_ttl_seconds must be positive, got {self.history_ttl_seconds}"
            )

        if self.history_max_sessions <= 0:
            raise ValueError(
                f"history_max_sessions must be positive, got {self.history_max_sessions}"
            )

        self.default_language = Language.coerce(self.default_language)

        if self.log_resolutions:
            logger.info(
                f"✅ AssistantConfig loaded: kb={self.knowledge_base_path}, "
                f"qa_threshold={self.qa_confidence_threshold}, faq_threshold={self.faq_confidence_threshold}, "
                f"history={self.history_backend} (max={self.history_max_messages})"
            )

    @staticmethod
    def from_env() -> "AssistantConfig":
        """
        Load configuration from environment variables.

        Environment Variables:
            CAMPUS_ASSISTANT_KB_PATH: Knowledge table directory (default: packaged data/)
            CAMPUS_ASSISTANT_QA_THRESHOLD: Q&A threshold (default: 0.7)
            CAMPUS_ASSISTANT_FAQ_THRESHOLD: FAQ threshold (default: 0.6)
            CAMPUS_ASSISTANT_DEFAULT_LANGUAGE: en | ml | manglish (default: en)
            CAMPUS_ASSISTANT_HISTORY_BACKEND: redis | memory (default: redis)
            REDIS_URL: Redis URL (default: redis://localhost:6379)
            CAMPUS_ASSISTANT_HISTORY_MAX: Messages kept per session (default: 50)
            CAMPUS_ASSISTANT_HISTORY_TTL: Session TTL in seconds (default: 86400)
            CAMPUS_ASSISTANT_HISTORY_MAX_SESSIONS: In-memory session cap (default: 10000)
            CAMPUS_ASSISTANT_LOG_RESOLUTIONS: Log each resolution (default: true)
            CAMPUS_ASSISTANT_HUMANIZER_SEED: Integer seed for the humanizer (default: unset)

        Returns:
            AssistantConfig instance loaded from environment
        """
        knowledge_base_path = os.getenv("CAMPUS_ASSISTANT_KB_PATH") or DEFAULT_KNOWLEDGE_BASE_PATH

        qa_confidence_threshold = _env_float("CAMPUS_ASSISTANT_QA_THRESHOLD", 0.7)
        faq_confidence_threshold = _env_float("CAMPUS_ASSISTANT_FAQ_THRESHOLD", 0.6)

        language_code = os.getenv("CAMPUS_ASSISTANT_DEFAULT_LANGUAGE", "en")
        default_language = Language.coerce(language_code)
        if default_language.value != language_code.strip().lower():
            logger.warning(
                f"Invalid CAMPUS_ASSISTANT_DEFAULT_LANGUAGE {language_code!r}, using default en"
            )

        history_backend = os.getenv("CAMPUS_ASSISTANT_HISTORY_BACKEND", "redis").strip().lower()
        if history_backend not in HISTORY_BACKENDS:
            logger.warning(
                f"Invalid CAMPUS_ASSISTANT_HISTORY_BACKEND {history_backend!r}, using default redis"
            )
            history_backend = "redis"

        redis_url = os.getenv("REDIS_URL", "redis://localhost:6379")

        history_max_messages = _env_int("CAMPUS_ASSISTANT_HISTORY_MAX", 50)
        history_ttl_seconds = _env_int("CAMPUS_ASSISTANT_HISTORY_TTL", 86400)
        history_max_sessions = _env_int("CAMPUS_ASSISTANT_HISTORY_MAX_SESSIONS", 10000)

        log_resolutions = _env_flag("CAMPUS_ASSISTANT_LOG_RESOLUTIONS", "true")

        humanizer_seed = None
        seed_env = os.getenv("CAMPUS_ASSISTANT_HUMANIZER_SEED")
        if seed_env:
            try:
                humanizer_seed = int(seed_env)
            except ValueError:
                logger.warning("Invalid CAMPUS_ASSISTANT_HUMANIZER_SEED, humanizer left unseeded")

        return AssistantConfig(
            knowledge_base_path=knowledge_base_path,
            qa_confidence_threshold=qa_confidence_threshold,
            faq_confidence_threshold=faq_confidence_threshold,
            default_language=default_language,
            history_backend=history_backend,
            redis_url=redis_url,
            history_max_messages=history_max_messages,
            history_ttl_seconds=history_ttl_seconds,
            history_max_sessions=history_max_sessions,
            log_resolutions=log_resolutions,
            humanizer_seed=humanizer_seed,
        )
