"""
Structured Q&A fact store

Pattern- and tag-matched fact records. A hit returns the single fact the
query asks for (name, phone, email) or the record's leading fact, never the
whole record.
"""

import logging
from typing import Optional, Sequence, Tuple, Union

from .models import AnswerSource, FactValue, Language, QAEntry, ResolvedAnswer
from .patterns import contains_malayalam

logger = logging.getLogger(__name__)

RESPONSE_FACT = "Response"
NAME_FACT = "Name"
PHONE_FACT = "Phone"
EMAIL_FACT = "Email"

PHONE_WORDS = ("phone", "number", "call")


class QAStore:
    """
    Ordered Q&A table; the first matching entry wins.

    For each entry its patterns are tried first (bidirectional substring
    test), then its tags (tag contained in the query). Only then does the
    scan move on to the next entry.
    """

    def __init__(self, entries: Sequence[QAEntry]):
        self.entries = tuple(entries)

    def search(self, query: str, language: Union[Language, str] = Language.EN) -> Optional[ResolvedAnswer]:
        """
        Look up the fact a query asks for.

        Args:
            query: User text
            language: Reply language, used to pick a Malayalam-script
                alternative for conversational entries

        Returns:
            ResolvedAnswer with the raw fact, or None
        """
        if not query or not query.strip():
            return None

        language = Language.coerce(language)
        query_lower = query.lower()

        for entry in self.entries:
            for pattern in entry.question_patterns:
                pattern_lower = pattern.lower()
                if pattern_lower in query_lower or query_lower in pattern_lower:
                    answer = self._answer_from_pattern(entry, query_lower, language)
                    if answer is not None:
                        return answer

            for tag in entry.tags:
                if tag.lower() in query_lower:
                    answer = self._answer_from_tag(entry, tag)
                    if answer is not None:
                        return answer

        return None

    def _answer_from_pattern(
        self, entry: QAEntry, query_lower: str, language: Language
    ) -> Optional[ResolvedAnswer]:
        facts = entry.answer_facts
        category = entry.tags[0] if entry.tags else "general"

        alternatives = facts.get(RESPONSE_FACT)
        if isinstance(alternatives, tuple) and alternatives:
            return self._result(_pick_alternative(alternatives, language), category, 0.95)

        if "name" in query_lower and _is_text(facts.get(NAME_FACT)):
            return self._result(facts[NAME_FACT], category, 0.95)

        if any(word in query_lower for word in PHONE_WORDS) and _is_text(facts.get(PHONE_FACT)):
            return self._result(facts[PHONE_FACT], category, 0.95)

        if "email" in query_lower and _is_text(facts.get(EMAIL_FACT)):
            return self._result(facts[EMAIL_FACT], category, 0.95)

        first = _first_fact(entry)
        if _is_text(first):
            return self._result(first, category, 0.85)
        return None

    def _answer_from_tag(self, entry: QAEntry, tag: str) -> Optional[ResolvedAnswer]:
        facts = entry.answer_facts

        alternatives = facts.get(RESPONSE_FACT)
        if isinstance(alternatives, tuple) and alternatives:
            return self._result(alternatives[0], tag, 0.8)

        first = _first_fact(entry)
        if _is_text(first):
            return self._result(first, tag, 0.75)
        return None

    @staticmethod
    def _result(content: str, category: str, confidence: float) -> ResolvedAnswer:
        return ResolvedAnswer(
            content=content,
            category=category,
            confidence=confidence,
            source=AnswerSource.QA_DATABASE,
        )

    def phone_entries(self) -> Tuple[QAEntry, ...]:
        """Entries carrying a plain-text Phone fact."""
        return tuple(e for e in self.entries if _is_text(e.answer_facts.get(PHONE_FACT)))


def _is_text(value: Optional[FactValue]) -> bool:
    return isinstance(value, str) and bool(value)


def _first_fact(entry: QAEntry) -> Optional[FactValue]:
    for value in entry.answer_facts.values():
        return value
    return None


def _pick_alternative(alternatives: Tuple[str, ...], language: Language) -> str:
    if language == Language.ML:
        for alternative in alternatives:
            if contains_malayalam(alternative):
                return alternative
    return alternatives[0]
