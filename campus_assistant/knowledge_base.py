"""
Knowledge base loading

Builds the immutable campus knowledge tables (locations, routes, Q&A facts,
FAQs, category templates, response phrases) from the JSON files in a data
directory. A malformed row is logged and skipped so the rest of its table
stays searchable; only a missing or unparsable file is fatal.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .models import (
    CategoryTemplate,
    FAQEntry,
    Language,
    LocationCategory,
    LocationRecord,
    NavigationRoute,
    QAEntry,
    ResponsePhrases,
    freeze_mapping,
)

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"

DEFAULT_FILES = {
    "locations": "locations.json",
    "routes": "routes.json",
    "qa_database": "qa_database.json",
    "faqs": "faqs.json",
    "categories": "categories.json",
    "responses": "responses.json",
}

# Row-level problems that mark a single record as malformed
_ROW_ERRORS = (KeyError, TypeError, ValueError, AttributeError)


class KnowledgeBaseError(Exception):
    """Raised when a knowledge table file is missing or is not valid JSON"""


@dataclass(frozen=True)
class KnowledgeBase:
    """Immutable snapshot of every static table the resolver reads"""
    version: str
    locations: Tuple[LocationRecord, ...]
    fuzzy_aliases: Mapping[str, str]
    routes: Tuple[NavigationRoute, ...]
    qa_entries: Tuple[QAEntry, ...]
    faqs: Tuple[FAQEntry, ...]
    categories: Tuple[CategoryTemplate, ...]
    phrases: ResponsePhrases

    def summary(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "locations": len(self.locations),
            "routes": len(self.routes),
            "qa_entries": len(self.qa_entries),
            "faqs": len(self.faqs),
            "categories": len(self.categories),
        }


def _read_json(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise KnowledgeBaseError(f"Knowledge table not found: {path}") from e
    except json.JSONDecodeError as e:
        raise KnowledgeBaseError(f"Invalid JSON in {path}: {e}") from e


def _str_tuple(values: Any, lower: bool = False) -> Tuple[str, ...]:
    if isinstance(values, str) or not isinstance(values, (list, tuple)):
        raise TypeError(f"expected a list of strings, got {type(values).__name__}")
    items = []
    for value in values:
        if not isinstance(value, str):
            raise TypeError(f"expected string, got {type(value).__name__}")
        items.append(value.lower() if lower else value)
    return tuple(items)


def _language_table(raw: Mapping[str, Any]) -> Dict[Language, Any]:
    """Key a {code: value} mapping by Language, ignoring unknown codes."""
    table = {}
    for code, value in raw.items():
        try:
            table[Language(code)] = value
        except ValueError:
            logger.warning(f"Ignoring unknown language code {code!r} in knowledge table")
    return table


# ============================================================================
# Row parsers
# ============================================================================

def _parse_location(row: Dict[str, Any]) -> LocationRecord:
    maps_url = row["maps_url"]
    if not isinstance(maps_url, str) or not maps_url.strip():
        raise ValueError("maps_url must be a non-empty string")
    return LocationRecord(
        id=str(row["id"]),
        name=str(row["name"]),
        malayalam_name=str(row.get("malayalam_name", "")),
        category=LocationCategory(row["category"]),
        description=str(row["description"]),
        maps_url=maps_url,
        keywords=_str_tuple(row["keywords"], lower=True),
        timings=row.get("timings"),
        floor=row.get("floor"),
    )


def _parse_route(row: Dict[str, Any]) -> NavigationRoute:
    steps = {
        language: _str_tuple(sequence)
        for language, sequence in _language_table(row["steps"]).items()
    }
    if Language.EN not in steps:
        raise ValueError("route has no English steps")
    return NavigationRoute(
        from_label=str(row["from"]),
        to_label=str(row["to"]),
        steps=freeze_mapping(steps),
    )


def _parse_fact_value(value: Any) -> Union[str, Tuple[str, ...]]:
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return _str_tuple(value)
    # Numbers and other scalars are kept as their text form
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise TypeError(f"unsupported fact value type {type(value).__name__}")


def _parse_qa_entry(row: Dict[str, Any]) -> QAEntry:
    facts = row["answer_facts"]
    if not isinstance(facts, dict):
        raise TypeError("answer_facts must be an object")
    return QAEntry(
        id=int(row["id"]),
        question_patterns=_str_tuple(row["question_patterns"]),
        tags=_str_tuple(row.get("tags", [])),
        answer_facts=freeze_mapping({
            str(label): _parse_fact_value(value) for label, value in facts.items()
        }),
    )


def _parse_faq(row: Dict[str, Any]) -> FAQEntry:
    return FAQEntry(
        id=str(row["id"]),
        question=str(row["question"]),
        answer=str(row["answer"]),
        category=str(row.get("category", "general")),
        keywords=_str_tuple(row.get("keywords", []), lower=True),
        question_malayalam=row.get("question_malayalam"),
        answer_malayalam=row.get("answer_malayalam"),
    )


def _parse_category(row: Dict[str, Any]) -> CategoryTemplate:
    responses = {
        language: str(text) for language, text in _language_table(row["responses"]).items()
    }
    return CategoryTemplate(
        category=str(row["category"]),
        keywords=_str_tuple(row["keywords"], lower=True),
        responses=freeze_mapping(responses),
    )


def _parse_rows(rows: Any, parser, table: str, id_key: Optional[str] = "id") -> List[Any]:
    """
    Apply ``parser`` to every row, skipping malformed rows and duplicate ids.

    Args:
        rows: Raw JSON list
        parser: Row -> record callable
        table: Table name for log messages
        id_key: Attribute used for duplicate detection (None disables it)
    """
    if not isinstance(rows, list):
        raise KnowledgeBaseError(f"Table {table!r} must be a JSON list")

    records = []
    seen = set()
    for index, row in enumerate(rows):
        try:
            record = parser(row)
        except _ROW_ERRORS as e:
            logger.warning(f"⚠️ Skipping malformed {table} row #{index}: {e!r}")
            continue

        if id_key:
            record_id = getattr(record, id_key)
            if record_id in seen:
                logger.warning(f"⚠️ Skipping duplicate {table} id {record_id!r} (row #{index})")
                continue
            seen.add(record_id)

        records.append(record)
    return records


def _parse_phrases(data: Dict[str, Any]) -> ResponsePhrases:
    def phrase_table(key: str) -> Mapping[Language, Tuple[str, ...]]:
        table = {}
        for language, values in _language_table(data.get(key, {})).items():
            try:
                table[language] = _str_tuple(values)
            except TypeError as e:
                logger.warning(f"⚠️ Skipping {key} phrases for {language.value}: {e}")
        return freeze_mapping(table)

    greetings = {}
    for language, buckets in _language_table(data.get("greetings", {})).items():
        try:
            greetings[language] = freeze_mapping({
                bucket: _str_tuple(values) for bucket, values in buckets.items()
            })
        except (TypeError, AttributeError) as e:
            logger.warning(f"⚠️ Skipping greetings for {language.value}: {e}")

    return ResponsePhrases(
        greetings=freeze_mapping(greetings),
        starters=phrase_table("starters"),
        transitions=phrase_table("transitions"),
        closings=phrase_table("closings"),
        not_found=phrase_table("not_found"),
    )


# ============================================================================
# Public API
# ============================================================================

def load_knowledge_base(path: Union[str, Path]) -> KnowledgeBase:
    """
    Load every knowledge table from a data directory.

    The directory may hold a manifest.json naming the table files and a
    version string; without one the default file names are used.

    Args:
        path: Data directory

    Returns:
        A new immutable KnowledgeBase

    Raises:
        KnowledgeBaseError: A table file is missing or not valid JSON
    """
    base = Path(path)
    if not base.is_dir():
        raise KnowledgeBaseError(f"Knowledge base directory not found: {base}")

    files = dict(DEFAULT_FILES)
    version = "unversioned"
    manifest_path = base / MANIFEST_FILE
    if manifest_path.exists():
        manifest = _read_json(manifest_path)
        version = str(manifest.get("version", version))
        files.update(manifest.get("files", {}))

    location_data = _read_json(base / files["locations"])
    route_data = _read_json(base / files["routes"])
    qa_data = _read_json(base / files["qa_database"])
    faq_data = _read_json(base / files["faqs"])
    category_data = _read_json(base / files["categories"])
    phrase_data = _read_json(base / files["responses"])

    try:
        locations = _parse_rows(location_data["locations"], _parse_location, "location")
        routes = _parse_rows(route_data["routes"], _parse_route, "route", id_key=None)
        qa_entries = _parse_rows(qa_data["entries"], _parse_qa_entry, "qa")
        faqs = _parse_rows(faq_data["faqs"], _parse_faq, "faq")
        categories = _parse_rows(category_data["categories"], _parse_category, "category", id_key="category")
    except (KeyError, TypeError) as e:
        raise KnowledgeBaseError(f"Knowledge table is missing its top-level key: {e}") from e

    known_ids = {location.id for location in locations}
    aliases = {}
    for phrase, location_id in location_data.get("fuzzy_aliases", {}).items():
        if location_id not in known_ids:
            logger.warning(f"⚠️ Skipping fuzzy alias {phrase!r}: unknown location {location_id!r}")
            continue
        aliases[phrase.lower()] = location_id

    knowledge_base = KnowledgeBase(
        version=version,
        locations=tuple(locations),
        fuzzy_aliases=freeze_mapping(aliases),
        routes=tuple(routes),
        qa_entries=tuple(qa_entries),
        faqs=tuple(faqs),
        categories=tuple(categories),
        phrases=_parse_phrases(phrase_data),
    )

    logger.info(f"✅ Knowledge base loaded from {base}: {knowledge_base.summary()}")
    return knowledge_base
