"""
FAQ matcher

Linear scan over the flat FAQ list by question text and keywords.
"""

import logging
from typing import Optional, Sequence, Union

from .models import AnswerSource, FAQEntry, Language, ResolvedAnswer

logger = logging.getLogger(__name__)

QUESTION_MATCH_CONFIDENCE = 0.9
KEYWORD_MATCH_CONFIDENCE = 0.7


class FAQMatcher:
    def __init__(self, faqs: Sequence[FAQEntry]):
        self.faqs = tuple(faqs)

    def search_faqs(self, query: str, language: Union[Language, str] = Language.EN) -> Optional[ResolvedAnswer]:
        """
        Return the first FAQ matching the query.

        A FAQ matches when its question contains the query, when the query
        contains the first three words of its question, or when one of its
        keywords appears in the query. Question matches score 0.9, keyword-only
        matches 0.7. The Malayalam answer is used only for Malayalam replies.
        """
        if not query or not query.strip():
            return None

        language = Language.coerce(language)
        query_lower = query.lower()

        for faq in self.faqs:
            question_lower = faq.question.lower()
            lead_words = " ".join(question_lower.split(" ")[:3])

            question_match = query_lower in question_lower or lead_words in query_lower
            keyword_match = any(keyword in query_lower for keyword in faq.keywords)

            if question_match or keyword_match:
                answer = faq.answer
                if language == Language.ML and faq.answer_malayalam:
                    answer = faq.answer_malayalam
                return ResolvedAnswer(
                    content=answer,
                    category=faq.category,
                    confidence=QUESTION_MATCH_CONFIDENCE if question_match else KEYWORD_MATCH_CONFIDENCE,
                    source=AnswerSource.FAQ,
                )

        return None
