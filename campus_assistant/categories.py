"""
Topic category responder

Maps a query to one of the fixed campus topics by keyword and returns the
canned paragraph for that topic in the requested language.
"""

import logging
from typing import Optional, Sequence, Tuple, Union

from .models import CategoryTemplate, Language

logger = logging.getLogger(__name__)


class CategoryResponder:
    """Keyword table in detection priority order, with per-language templates"""

    def __init__(self, templates: Sequence[CategoryTemplate]):
        self.templates = tuple(templates)
        self._by_category = {template.category: template for template in self.templates}

    @property
    def categories(self) -> Tuple[str, ...]:
        return tuple(template.category for template in self.templates)

    def detect_category(self, query: str) -> Optional[str]:
        """First category (table order) with a keyword inside the query."""
        if not query:
            return None
        query_lower = query.lower()
        for template in self.templates:
            if any(keyword in query_lower for keyword in template.keywords):
                return template.category
        return None

    def get_category_response(self, category: str, language: Union[Language, str] = Language.EN) -> str:
        """
        Template paragraph for a category.

        Falls back to the English template when the language has none, and to
        an empty string for an unknown category.
        """
        template = self._by_category.get(category)
        if template is None:
            return ""
        language = Language.coerce(language)
        return template.responses.get(language) or template.responses.get(Language.EN, "")
