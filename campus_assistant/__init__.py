"""
Campus Assistant query resolution service for LBS College of Engineering, Kasaragod

Answers campus questions in English, Malayalam script and Manglish by running
the query through a fixed precedence of knowledge tiers (greeting, curated
Q&A, locations, topic categories, FAQs) and framing the winning fact
conversationally.

Main Entry Point:
    app.py - FastAPI application with POST /api/v1/resolve endpoint

Components:
    - QueryResolver: Tiered resolution over one KnowledgeBase snapshot
    - ResponseHumanizer: Randomized conversational framing
    - detect_language: English / Malayalam / Manglish classification
    - AssistantConfig: Configuration dataclass with environment variable loading
    - resolve, classify_language, find_navigation_route, build_directions:
      conveniences over the packaged knowledge base
"""

from .config import AssistantConfig
from .humanizer import ResponseHumanizer
from .knowledge_base import KnowledgeBase, KnowledgeBaseError, load_knowledge_base
from .language_detector import detect_language
from .models import AnswerSource, Language, ResolvedAnswer, RouteMatch
from .resolver import (
    QueryResolver,
    build_directions,
    classify_language,
    find_navigation_route,
    resolve,
)

__all__ = [
    "AssistantConfig",
    "AnswerSource",
    "KnowledgeBase",
    "KnowledgeBaseError",
    "Language",
    "QueryResolver",
    "ResolvedAnswer",
    "ResponseHumanizer",
    "RouteMatch",
    "build_directions",
    "classify_language",
    "detect_language",
    "find_navigation_route",
    "load_knowledge_base",
    "resolve",
]
