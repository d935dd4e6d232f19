"""
Unit tests for topic category templates and the FAQ matcher.
"""

import pytest

from ..categories import CategoryResponder
from ..faq import FAQMatcher
from ..models import CATEGORY_NAMES, AnswerSource, Language


@pytest.fixture
def categories(knowledge_base) -> CategoryResponder:
    return CategoryResponder(knowledge_base.categories)


@pytest.fixture
def faqs(knowledge_base) -> FAQMatcher:
    return FAQMatcher(knowledge_base.faqs)


@pytest.mark.unit
class TestCategoryResponder:
    """Keyword detection in table order and template lookup."""

    def test_table_order(self, categories):
        assert categories.categories == CATEGORY_NAMES

    @pytest.mark.parametrize("query,expected", [
        ("what are the fees", "fees"),
        ("how do i apply?", "admission"),
        ("boys hostel details", "boys_hostel"),
        ("ladies hostel rules", "ladies_hostel"),
        ("placement record", "placements"),
    ])
    def test_detect_category(self, categories, query, expected):
        assert categories.detect_category(query) == expected

    def test_no_category(self, categories):
        assert categories.detect_category("xyzzy") is None
        assert categories.detect_category("") is None

    def test_localized_templates(self, categories):
        english = categories.get_category_response("fees", Language.EN)
        malayalam = categories.get_category_response("fees", Language.ML)
        assert english
        assert malayalam
        assert english != malayalam

    def test_unknown_language_uses_english(self, categories):
        assert categories.get_category_response("fees", "fr") == categories.get_category_response("fees", "en")

    def test_unknown_category(self, categories):
        assert categories.get_category_response("weather") == ""


@pytest.mark.unit
class TestFAQMatcher:
    """Question and keyword matching over the FAQ list."""

    def test_question_match(self, faqs):
        answer = faqs.search_faqs("Is ragging allowed?")
        assert answer.source == AnswerSource.FAQ
        assert answer.confidence == 0.9
        assert answer.content.startswith("No.")

    def test_keyword_match(self, faqs):
        answer = faqs.search_faqs("anti-ragging")
        assert answer.confidence == 0.7
        assert answer.category == "rules"

    def test_malayalam_answer_only_for_malayalam(self, faqs):
        malayalam = faqs.search_faqs("ragging", Language.ML)
        manglish = faqs.search_faqs("ragging", Language.MANGLISH)
        assert malayalam.content.startswith("ഇല്ല")
        assert manglish.content.startswith("No.")

    def test_blank_and_miss(self, faqs):
        assert faqs.search_faqs("") is None
        assert faqs.search_faqs("xyzzy") is None
