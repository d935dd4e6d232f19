"""
Campus location and navigation directory

Keyword and alias lookup over the campus gazetteer, plus directed walking
routes between named places. Every lookup returns None on a miss.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .models import (
    Language,
    LocationCategory,
    LocationRecord,
    NavigationRoute,
    RouteMatch,
)
from .patterns import compile_patterns, load_query_patterns

logger = logging.getLogger(__name__)

_QUERY_PATTERNS = compile_patterns(load_query_patterns())

# Localized one-line description of a place
NAVIGATION_TEMPLATES = {
    Language.EN: "{name} is located on campus. {description}{timings} Here's the Google Maps link for directions.",
    Language.ML: "{malayalam_name} ക്യാമ്പസിൽ സ്ഥിതി ചെയ്യുന്നു. {description}{timings} Google Maps ലിങ്ക് ഇതാ.",
    Language.MANGLISH: "{name} campus il aanu. {description}{timings} Google Maps link ithaanu.",
}

TIMINGS_TEMPLATES = {
    Language.EN: " Timings: {timings}.",
    Language.ML: " സമയം: {timings}.",
    Language.MANGLISH: " Timings: {timings}.",
}


def _labels_overlap(stored: str, requested: str) -> bool:
    return stored in requested or requested in stored


class LocationDirectory:
    """
    Campus gazetteer with directed route lookup.

    Table order is lookup priority: the first record whose keywords, name or
    Malayalam name match wins, then the fuzzy alias table is consulted.
    """

    def __init__(
        self,
        locations: Sequence[LocationRecord],
        routes: Sequence[NavigationRoute],
        fuzzy_aliases: Mapping[str, str] = None,
    ):
        self.locations = tuple(locations)
        self.routes = tuple(routes)
        self.fuzzy_aliases = dict(fuzzy_aliases or {})
        self._by_id = {location.id: location for location in self.locations}

    def get(self, location_id: str) -> Optional[LocationRecord]:
        return self._by_id.get(location_id)

    def find_location(self, query: str) -> Optional[LocationRecord]:
        """
        Find the first location matching a free-text query.

        A record matches when the lowercased query contains one of its
        keywords, when its lowercased name contains the query, or when its
        Malayalam name contains the raw query. Failing that, the first fuzzy
        alias phrase found in the query names the record.

        Args:
            query: User text

        Returns:
            Matching LocationRecord or None
        """
        if not query or not query.strip():
            return None

        query_lower = query.lower()

        for location in self.locations:
            if any(keyword in query_lower for keyword in location.keywords):
                return location
            if query_lower in location.name.lower():
                return location
            if location.malayalam_name and query in location.malayalam_name:
                return location

        for phrase, location_id in self.fuzzy_aliases.items():
            if phrase in query_lower:
                return self._by_id.get(location_id)

        return None

    def is_location_query(self, query: str) -> bool:
        """True for wayfinding wording or when the query already names a place."""
        if not query:
            return False
        query_lower = query.lower()
        if any(trigger in query_lower for trigger in _QUERY_PATTERNS["location_triggers"]):
            return True
        return self.find_location(query) is not None

    def strip_wayfinding_filler(self, query: str) -> str:
        """Remove 'where is', 'how to reach' and similar filler from a query."""
        return _QUERY_PATTERNS["location_filler_pattern"].sub("", query.lower()).strip()

    def find_navigation_route(
        self,
        from_label: str,
        to_label: str,
        language: Union[Language, str] = Language.EN,
    ) -> Optional[RouteMatch]:
        """
        Find the first stored route whose endpoints overlap the given labels.

        Matching is a case-insensitive substring test in either direction for
        each endpoint: "Administrative" and "canteen" match, "Admin Block"
        does not. Routes are directed: no reverse route is implied.

        Args:
            from_label: Starting point as typed by the caller
            to_label: Destination as typed by the caller
            language: Language for the steps (English when absent)

        Returns:
            RouteMatch or None
        """
        if not from_label or not to_label:
            return None

        language = Language.coerce(language)
        from_lower = from_label.strip().lower()
        to_lower = to_label.strip().lower()
        if not from_lower or not to_lower:
            return None

        for route in self.routes:
            if (_labels_overlap(route.from_label.lower(), from_lower)
                    and _labels_overlap(route.to_label.lower(), to_lower)):
                return RouteMatch(
                    from_label=route.from_label,
                    to_label=route.to_label,
                    steps=route.steps_for(language),
                )

        logger.debug(f"No route from {from_label!r} to {to_label!r}")
        return None

    def build_directions(
        self,
        from_label: str,
        to_label: str,
        language: Union[Language, str] = Language.EN,
    ) -> Optional[str]:
        """Route steps joined into one sentence run, or None without a route."""
        route = self.find_navigation_route(from_label, to_label, language)
        if route is None:
            return None
        return ". ".join(route.steps) + "."

    def describe(self, location: LocationRecord, language: Union[Language, str] = Language.EN) -> str:
        """Localized sentence about a location (name, description, timings)."""
        language = Language.coerce(language)
        template = NAVIGATION_TEMPLATES.get(language, NAVIGATION_TEMPLATES[Language.EN])
        timings = ""
        if location.timings:
            timings = TIMINGS_TEMPLATES[language].format(timings=location.timings)
        return template.format(
            name=location.name,
            malayalam_name=location.malayalam_name or location.name,
            description=location.description,
            timings=timings,
        )

    def build_navigation_response(
        self,
        query: str,
        language: Union[Language, str] = Language.EN,
    ) -> Optional[Dict[str, Any]]:
        """
        Answer a wayfinding query with a sentence and a map link.

        Returns:
            Dict with text, maps_url and location, or None when nothing matches
        """
        location = self.find_location(query)
        if location is None:
            return None
        return {
            "text": self.describe(location, language),
            "maps_url": location.maps_url,
            "location": location,
        }

    def locations_by_category(self) -> Dict[str, List[LocationRecord]]:
        grouped = {category.value: [] for category in LocationCategory}
        for location in self.locations:
            grouped[location.category.value].append(location)
        return grouped

    def all_routes(self) -> List[Dict[str, str]]:
        return [{"from": route.from_label, "to": route.to_label} for route in self.routes]
