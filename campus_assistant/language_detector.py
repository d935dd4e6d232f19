"""
Language classification for user queries

Scores a query as English or Manglish (romanized Malayalam) with word lists
and sentence shapes from patterns.py. Malayalam script is a hard signal and
short-circuits the scoring.
"""

import logging
from typing import Any, Dict, Tuple

from .models import Language
from .patterns import (
    TOKEN_PUNCTUATION,
    compile_patterns,
    contains_malayalam,
    load_language_patterns,
)

logger = logging.getLogger(__name__)

_PATTERNS = compile_patterns(load_language_patterns())

# Tokens shorter than this never match a Manglish word by being contained in it
_MIN_CONTAINED_TOKEN = 4


def _matches_manglish_word(token: str, words: Tuple[str, ...]) -> bool:
    if not token:
        return False
    for word in words:
        if word in token:
            return True
        if len(token) >= _MIN_CONTAINED_TOKEN and token in word:
            return True
    return False


def score_language(text: str, patterns: Dict[str, Any] = None) -> Tuple[float, float]:
    """
    Compute the (manglish_score, english_score) pair for a romanized query.

    Args:
        text: Query text (no Malayalam script expected)
        patterns: Compiled pattern tables, defaults to the packaged ones

    Returns:
        Tuple of (manglish_score, english_score)
    """
    patterns = patterns or _PATTERNS
    normalized = text.lower().strip()

    manglish_words = patterns["manglish_words"]
    suffixes = patterns["manglish_suffixes"]
    english_words = patterns["english_function_words"]
    educational = patterns["educational_english"]

    manglish_score = 0.0
    english_score = 0.0

    for raw_token in normalized.split():
        token = TOKEN_PUNCTUATION.sub("", raw_token)
        if not token:
            continue

        if _matches_manglish_word(token, manglish_words):
            manglish_score += 2

        if token.endswith(suffixes):
            manglish_score += 1

        if token in educational:
            english_score += 0.5

        if token in english_words:
            english_score += 1

    for pattern in patterns["sentence_patterns"]:
        if pattern.search(normalized):
            manglish_score += 2

    return manglish_score, english_score


def detect_language(text: str) -> Language:
    """
    Classify a query as English, Malayalam or Manglish.

    Empty input is English. Any Malayalam-block character returns Malayalam
    before scoring. Otherwise Manglish wins only with a score of at least 2
    that is strictly above the English score; ties go to English.
    """
    if not text or not text.strip():
        return Language.EN

    if contains_malayalam(text):
        return Language.ML

    manglish_score, english_score = score_language(text)
    logger.debug(f"Language scores for {text[:40]!r}: manglish={manglish_score}, english={english_score}")

    if manglish_score >= 2 and manglish_score > english_score:
        return Language.MANGLISH
    return Language.EN


classify_language = detect_language


def get_response_language(detected: Language) -> Language:
    """The reply mirrors the language the user wrote in."""
    return Language.coerce(detected)
