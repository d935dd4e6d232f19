"""
Query Resolution Core Logic - Tiered Architecture

Resolves a campus query through a strict precedence of knowledge tiers,
stopping at the first confident answer:
- Greeting: standalone greetings answered with a time-of-day greeting
- Q&A database: curated facts (names, phone numbers, emails)
- Location: campus places with a map link
- Category: canned topic paragraphs (admission, fees, hostels, ...)
- FAQ: flat question list, accepted even at low confidence
- Fallback: a "not found" reply at confidence 0

Everything except greetings and the fallback is passed through the
humanizer before it is returned.
"""

import time
import logging
from typing import NamedTuple, Optional, Union

from .categories import CategoryResponder
from .config import DEFAULT_KNOWLEDGE_BASE_PATH
from .faq import FAQMatcher
from .humanizer import ResponseHumanizer
from .knowledge_base import KnowledgeBase, load_knowledge_base
from .language_detector import detect_language
from .locations import LocationDirectory
from .models import AnswerSource, Language, ResolvedAnswer, RouteMatch
from .patterns import compile_patterns, load_query_patterns
from .qa_store import QAStore

logger = logging.getLogger(__name__)

_QUERY_PATTERNS = compile_patterns(load_query_patterns())

LOCATION_CONFIDENCE = 0.9
CATEGORY_CONFIDENCE = 0.85
GREETING_CONFIDENCE = 1.0

# Answers from these tiers are already conversational
_UNFRAMED_SOURCES = (AnswerSource.GREETING, AnswerSource.FALLBACK)


class _Tiers(NamedTuple):
    """Sub-resolvers built from one KnowledgeBase; swapped as a unit."""
    knowledge_base: KnowledgeBase
    qa_store: QAStore
    directory: LocationDirectory
    categories: CategoryResponder
    faqs: FAQMatcher
    humanizer: ResponseHumanizer


def _build_tiers(knowledge_base: KnowledgeBase, humanizer: ResponseHumanizer) -> _Tiers:
    return _Tiers(
        knowledge_base=knowledge_base,
        qa_store=QAStore(knowledge_base.qa_entries),
        directory=LocationDirectory(
            knowledge_base.locations,
            knowledge_base.routes,
            knowledge_base.fuzzy_aliases,
        ),
        categories=CategoryResponder(knowledge_base.categories),
        faqs=FAQMatcher(knowledge_base.faqs),
        humanizer=humanizer,
    )


def is_greeting(query: str) -> bool:
    """
    True when the trimmed query is, or starts with, a greeting word.

    The greeting must end at a word boundary so "history" is not "hi".
    """
    text = query.strip().lower()
    if not text:
        return False
    for word in _QUERY_PATTERNS["greeting_words"]:
        if text == word:
            return True
        if text.startswith(word):
            following = text[len(word)]
            if not following.isalnum():
                return True
    return False


class QueryResolver:
    """
    Tiered campus query resolver.

    The resolver holds no per-request state. The knowledge tables are read
    through a single reference that swap_knowledge_base() replaces in one
    assignment, so a reload never exposes a half-built table set.
    """

    def __init__(
        self,
        knowledge_base: KnowledgeBase,
        humanizer: Optional[ResponseHumanizer] = None,
        qa_confidence_threshold: float = 0.7,
        faq_confidence_threshold: float = 0.6,
        log_resolutions: bool = True,
    ):
        """
        Initialize the resolver.

        Args:
            knowledge_base: Loaded knowledge tables
            humanizer: Response framing (default: unseeded, over the table's phrases)
            qa_confidence_threshold: Q&A answers must score strictly above this
            faq_confidence_threshold: FAQ answers above this are preferred
            log_resolutions: Log one info line per resolved query
        """
        self._tiers = _build_tiers(knowledge_base, humanizer or ResponseHumanizer(knowledge_base.phrases))
        self.qa_confidence_threshold = qa_confidence_threshold
        self.faq_confidence_threshold = faq_confidence_threshold
        self.log_resolutions = log_resolutions

    @property
    def knowledge_base(self) -> KnowledgeBase:
        return self._tiers.knowledge_base

    @property
    def directory(self) -> LocationDirectory:
        return self._tiers.directory

    @property
    def humanizer(self) -> ResponseHumanizer:
        return self._tiers.humanizer

    def swap_knowledge_base(self, knowledge_base: KnowledgeBase) -> None:
        """Replace every table at once (configuration reload)."""
        self._tiers = _build_tiers(knowledge_base, self.humanizer.with_phrases(knowledge_base.phrases))
        logger.info(f"✅ Knowledge base swapped in: version={knowledge_base.version}")

    def classify_language(self, text: str) -> Language:
        return detect_language(text)

    def resolve(
        self,
        query: str,
        language: Union[Language, str, None] = None,
        is_first_message: bool = False,
    ) -> ResolvedAnswer:
        """
        Resolve a query to a single answer.

        Args:
            query: User text
            language: Reply language; detected from the query when None
            is_first_message: First reply of the session (greeting framing)

        Returns:
            ResolvedAnswer; never raises
        """
        start_time = time.time()
        language = detect_language(query) if language is None else Language.coerce(language)

        tiers = self._tiers
        answer = self._resolve_tiers(tiers, query, language)
        if answer.source not in _UNFRAMED_SOURCES:
            try:
                content = tiers.humanizer.humanize(answer.content, is_first_message, language)
            except Exception as e:
                logger.error(f"❌ Humanizer error, returning raw answer: {e}", exc_info=True)
                content = answer.content
            answer = ResolvedAnswer(
                content=content,
                category=answer.category,
                confidence=answer.confidence,
                source=answer.source,
            )

        if self.log_resolutions:
            logger.info(
                f"🎯 {answer.source.value}: category={answer.category} "
                f"(conf={answer.confidence:.2f}, lang={language.value}, "
                f"time={(time.time() - start_time) * 1000:.1f}ms)"
            )
        return answer

    def resolve_raw(self, query: str, language: Union[Language, str] = Language.EN) -> ResolvedAnswer:
        """
        Run the tier chain without humanization.

        Returns the raw fact of the winning tier (greetings and the fallback
        are returned as they would be by resolve()).
        """
        return self._resolve_tiers(self._tiers, query, Language.coerce(language))

    def _resolve_tiers(self, tiers: _Tiers, query: str, language: Language) -> ResolvedAnswer:
        if not query or not query.strip():
            return self._fallback(tiers, language)

        for tier in (self._greeting_tier, self._qa_tier, self._location_tier,
                     self._category_tier, self._faq_tier):
            try:
                answer = tier(tiers, query, language)
            except Exception as e:
                logger.error(f"❌ Resolver tier {tier.__name__} failed: {e}", exc_info=True)
                continue
            if answer is not None:
                return answer

        return self._fallback(tiers, language)

    # ------------------------------------------------------------------
    # Tiers
    # ------------------------------------------------------------------

    def _greeting_tier(self, tiers: _Tiers, query: str, language: Language) -> Optional[ResolvedAnswer]:
        if not is_greeting(query):
            return None
        return ResolvedAnswer(
            content=tiers.humanizer.time_based_greeting(language),
            category="greeting",
            confidence=GREETING_CONFIDENCE,
            source=AnswerSource.GREETING,
        )

    def _qa_tier(self, tiers: _Tiers, query: str, language: Language) -> Optional[ResolvedAnswer]:
        answer = tiers.qa_store.search(query, language)
        if answer is not None and answer.confidence > self.qa_confidence_threshold:
            return answer
        logger.debug(f"Q&A miss for {query[:40]!r}")
        return None

    def _location_tier(self, tiers: _Tiers, query: str, language: Language) -> Optional[ResolvedAnswer]:
        directory = tiers.directory
        stripped = directory.strip_wayfinding_filler(query)
        if len(stripped) <= 2 and not directory.is_location_query(query):
            return None

        location = directory.find_location(query)
        if location is None:
            logger.debug(f"Location miss for {query[:40]!r}")
            return None

        content = f"{directory.describe(location, language)}\n\nGoogle Maps: {location.maps_url}"
        return ResolvedAnswer(
            content=content,
            category="location",
            confidence=LOCATION_CONFIDENCE,
            source=AnswerSource.LOCATION,
        )

    def _category_tier(self, tiers: _Tiers, query: str, language: Language) -> Optional[ResolvedAnswer]:
        category = tiers.categories.detect_category(query)
        # Wayfinding is answered by the location tier
        if category is None or category == "location":
            return None
        response = tiers.categories.get_category_response(category, language)
        if not response:
            return None
        return ResolvedAnswer(
            content=response,
            category=category,
            confidence=CATEGORY_CONFIDENCE,
            source=AnswerSource.CATEGORY,
        )

    def _faq_tier(self, tiers: _Tiers, query: str, language: Language) -> Optional[ResolvedAnswer]:
        answer = tiers.faqs.search_faqs(query, language)
        if answer is None:
            return None
        if answer.confidence <= self.faq_confidence_threshold:
            logger.debug(f"Low-confidence FAQ match accepted (conf={answer.confidence:.2f})")
        return answer

    def _fallback(self, tiers: _Tiers, language: Language) -> ResolvedAnswer:
        return ResolvedAnswer(
            content=tiers.humanizer.not_found(language),
            category="unknown",
            confidence=0.0,
            source=AnswerSource.FALLBACK,
        )

    # ------------------------------------------------------------------
    # Navigation passthrough
    # ------------------------------------------------------------------

    def find_navigation_route(
        self, from_label: str, to_label: str, language: Union[Language, str] = Language.EN
    ) -> Optional[RouteMatch]:
        return self._tiers.directory.find_navigation_route(from_label, to_label, language)

    def build_directions(
        self, from_label: str, to_label: str, language: Union[Language, str] = Language.EN
    ) -> Optional[str]:
        return self._tiers.directory.build_directions(from_label, to_label, language)


# ============================================================================
# Module-level conveniences over the packaged knowledge base
# ============================================================================

_default_resolver: Optional[QueryResolver] = None


def get_default_resolver() -> QueryResolver:
    """Resolver over the packaged data directory, built on first use."""
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = QueryResolver(load_knowledge_base(DEFAULT_KNOWLEDGE_BASE_PATH))
    return _default_resolver


def classify_language(text: str) -> Language:
    return detect_language(text)


def resolve(query: str, language: Union[Language, str, None] = None, is_first_message: bool = False) -> ResolvedAnswer:
    return get_default_resolver().resolve(query, language, is_first_message)


def find_navigation_route(
    from_label: str, to_label: str, language: Union[Language, str] = Language.EN
) -> Optional[RouteMatch]:
    return get_default_resolver().find_navigation_route(from_label, to_label, language)


def build_directions(
    from_label: str, to_label: str, language: Union[Language, str] = Language.EN
) -> Optional[str]:
    return get_default_resolver().build_directions(from_label, to_label, language)
