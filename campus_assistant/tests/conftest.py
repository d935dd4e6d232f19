"""
Test configuration and fixtures for Campus Assistant tests.
"""

import os
from datetime import datetime

import pytest

# Keep tests off the network: history always in memory
os.environ["CAMPUS_ASSISTANT_HISTORY_BACKEND"] = "memory"

from fastapi.testclient import TestClient

from ..config import DEFAULT_KNOWLEDGE_BASE_PATH, AssistantConfig
from ..humanizer import ResponseHumanizer
from ..knowledge_base import KnowledgeBase, load_knowledge_base
from ..resolver import QueryResolver


class FixedRandom:
    """Random source returning the same draw every time."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


def morning_clock() -> datetime:
    return datetime(2025, 6, 2, 8, 0)


@pytest.fixture
def assistant_config() -> AssistantConfig:
    """Assistant configuration for testing."""
    return AssistantConfig(history_backend="memory", log_resolutions=False)


@pytest.fixture(scope="session")
def knowledge_base() -> KnowledgeBase:
    """Packaged knowledge tables."""
    return load_knowledge_base(DEFAULT_KNOWLEDGE_BASE_PATH)


@pytest.fixture
def low_random() -> FixedRandom:
    """Draws at 0: no humanizer step ever triggers."""
    return FixedRandom(0.0)


@pytest.fixture
def high_random() -> FixedRandom:
    """Draws at 0.99: every humanizer step triggers."""
    return FixedRandom(0.99)


@pytest.fixture
def clock():
    return morning_clock


@pytest.fixture
def quiet_humanizer(knowledge_base, low_random, clock) -> ResponseHumanizer:
    return ResponseHumanizer(knowledge_base.phrases, random_source=low_random, clock=clock)


@pytest.fixture
def chatty_humanizer(knowledge_base, high_random, clock) -> ResponseHumanizer:
    return ResponseHumanizer(knowledge_base.phrases, random_source=high_random, clock=clock)


@pytest.fixture
def resolver(knowledge_base, quiet_humanizer) -> QueryResolver:
    """Resolver whose humanizer never adds framing."""
    return QueryResolver(knowledge_base, humanizer=quiet_humanizer, log_resolutions=False)


@pytest.fixture
def client():
    """FastAPI test client with the service lifespan running."""
    from .. import app as app_module

    with TestClient(app_module.app) as test_client:
        yield test_client


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (FastAPI app, in-memory history)")
