"""
Data models for the Campus Assistant query resolution service

Contains enums and immutable dataclasses for the static knowledge tables
(locations, routes, Q&A entries, FAQs, category templates, response phrases)
and the transient per-query result.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union


# ============================================================================
# Enums
# ============================================================================

class Language(str, Enum):
    """Languages the assistant understands and answers in"""
    EN = "en"
    ML = "ml"
    MANGLISH = "manglish"

    @classmethod
    def coerce(cls, value: Union["Language", str, None], default: "Language" = None) -> "Language":
        """Map a language code (or enum) to a Language, English when unknown."""
        if isinstance(value, Language):
            return value
        if value:
            try:
                return cls(str(value).strip().lower())
            except ValueError:
                pass
        return default or cls.EN


class AnswerSource(str, Enum):
    """Resolver tier that produced an answer"""
    QA_DATABASE = "qa_database"
    LOCATION = "location"
    CATEGORY = "category"
    FAQ = "faq"
    GREETING = "greeting"
    FALLBACK = "fallback"


class LocationCategory(str, Enum):
    ADMIN = "admin"
    ACADEMIC = "academic"
    FACILITY = "facility"
    HOSTEL = "hostel"
    SPORTS = "sports"
    AMENITY = "amenity"


# Fixed category enum for the category responder, in detection priority order
CATEGORY_NAMES = (
    "admission",
    "fees",
    "courses",
    "placements",
    "boys_hostel",
    "ladies_hostel",
    "hostel",
    "facilities",
    "contact",
    "location",
    "principal",
    "events",
)

FactValue = Union[str, Tuple[str, ...]]


def freeze_mapping(data: Dict[Any, Any]) -> Mapping[Any, Any]:
    """Read-only view over a copy of ``data`` (insertion order preserved)."""
    return MappingProxyType(dict(data))


# ============================================================================
# Static knowledge records
# ============================================================================

@dataclass(frozen=True)
class LocationRecord:
    """Campus point of interest with its map reference"""
    id: str
    name: str
    malayalam_name: str
    category: LocationCategory
    description: str
    maps_url: str
    keywords: Tuple[str, ...]
    timings: Optional[str] = None
    floor: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "malayalam_name": self.malayalam_name,
            "category": self.category.value,
            "description": self.description,
            "maps_url": self.maps_url,
            "keywords": list(self.keywords),
            "timings": self.timings,
            "floor": self.floor,
        }


@dataclass(frozen=True)
class NavigationRoute:
    """Directed walking route; steps are kept per language"""
    from_label: str
    to_label: str
    steps: Mapping[Language, Tuple[str, ...]]

    def steps_for(self, language: Language) -> Tuple[str, ...]:
        return self.steps.get(language) or self.steps.get(Language.EN, ())


@dataclass(frozen=True)
class QAEntry:
    """
    Pattern-tagged fact record.

    ``answer_facts`` keeps the source ordering. A tuple value holds
    alternative replies in different scripts (greeting/thanks entries).
    """
    id: int
    question_patterns: Tuple[str, ...]
    tags: Tuple[str, ...]
    answer_facts: Mapping[str, FactValue]


@dataclass(frozen=True)
class FAQEntry:
    id: str
    question: str
    answer: str
    category: str
    keywords: Tuple[str, ...]
    question_malayalam: Optional[str] = None
    answer_malayalam: Optional[str] = None


@dataclass(frozen=True)
class CategoryTemplate:
    """Keyword set and canned paragraph per language for one topic"""
    category: str
    keywords: Tuple[str, ...]
    responses: Mapping[Language, str]


@dataclass(frozen=True)
class ResponsePhrases:
    """
    Conversational framing phrases, keyed by language.

    Attributes:
        greetings: language -> {"morning"|"afternoon"|"evening"|"general": phrases}
        starters: language -> phrases prepended to an answer
        transitions: language -> phrases inserted mid-answer ("" means none)
        closings: language -> follow-up questions appended to an answer
        not_found: language -> fallback replies
    """
    greetings: Mapping[Language, Mapping[str, Tuple[str, ...]]]
    starters: Mapping[Language, Tuple[str, ...]]
    transitions: Mapping[Language, Tuple[str, ...]]
    closings: Mapping[Language, Tuple[str, ...]]
    not_found: Mapping[Language, Tuple[str, ...]]

    @staticmethod
    def _pick(table: Mapping[Language, Any], language: Language) -> Any:
        return table.get(language) or table.get(Language.EN) or ()

    def greetings_for(self, language: Language, bucket: str) -> Tuple[str, ...]:
        buckets = self._pick(self.greetings, language) or {}
        return buckets.get(bucket) or buckets.get("general") or ()

    def starters_for(self, language: Language) -> Tuple[str, ...]:
        return self._pick(self.starters, language)

    def transitions_for(self, language: Language) -> Tuple[str, ...]:
        return self._pick(self.transitions, language)

    def closings_for(self, language: Language) -> Tuple[str, ...]:
        return self._pick(self.closings, language)

    def not_found_for(self, language: Language) -> Tuple[str, ...]:
        return self._pick(self.not_found, language)


# ============================================================================
# Per-query results
# ============================================================================

@dataclass(frozen=True)
class ResolvedAnswer:
    """Answer produced for one query; never persisted"""
    content: str
    category: str
    confidence: float
    source: AnswerSource

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "category": self.category,
            "confidence": self.confidence,
            "source": self.source.value,
        }


@dataclass(frozen=True)
class RouteMatch:
    from_label: str
    to_label: str
    steps: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"steps": list(self.steps), "from": self.from_label, "to": self.to_label}


@dataclass
class Message:
    """Chat message as kept by the conversation history store"""
    role: str
    content: str
    language: Language = Language.EN
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "language": self.language.value,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        return cls(
            id=data["id"],
            role=data["role"],
            content=data["content"],
            language=Language.coerce(data.get("language")),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )
