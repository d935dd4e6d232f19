"""
Unit tests for conversational framing of answers.
"""

import pytest

from ..humanizer import ResponseHumanizer, time_bucket
from ..models import Language

FACT = (
    "The library opens at 9:00 AM. Call 04994-256400 for details. "
    "Visit https://lbscek.ac.in/ to learn more."
)


@pytest.mark.unit
class TestTimeBucket:

    @pytest.mark.parametrize("hour,bucket", [
        (5, "morning"),
        (8, "morning"),
        (12, "afternoon"),
        (16, "afternoon"),
        (17, "evening"),
        (20, "evening"),
        (21, "general"),
        (3, "general"),
    ])
    def test_buckets(self, hour, bucket):
        assert time_bucket(hour) == bucket


@pytest.mark.unit
class TestHumanizer:
    """Framing decisions driven by a fixed random source."""

    def test_low_draws_leave_text_unchanged(self, quiet_humanizer):
        """Thresholds are exclusive: draws of 0 add nothing."""
        assert quiet_humanizer.humanize(FACT) == FACT
        assert quiet_humanizer.humanize(FACT, is_first_message=True) == FACT
        assert quiet_humanizer.humanize("Short answer.", language=Language.ML) == "Short answer."

    def test_high_draws_add_starter_transition_and_closing(self, chatty_humanizer):
        result = chatty_humanizer.humanize(FACT)
        assert result.startswith("Good one! the library opens")
        assert "Also, Call 04994-256400" in result
        assert result.endswith("\n\nWant to know more about this?")

    def test_first_message_gets_greeting_instead_of_starter(self, chatty_humanizer):
        result = chatty_humanizer.humanize("Central Library is open.", is_first_message=True)
        assert result.startswith("Good morning!")
        assert "What would you like to know about LBS College?\n\n" in result
        assert "Good one!" not in result

    def test_fact_is_preserved(self, chatty_humanizer):
        """Every digit and URL of the raw answer survives framing."""
        result = chatty_humanizer.humanize(FACT)
        for token in ("9:00", "04994-256400", "https://lbscek.ac.in/"):
            assert token in result
        digits = [c for c in FACT if c.isdigit()]
        assert [c for c in result if c.isdigit()][:len(digits)] == digits

    def test_names_keep_their_case(self, chatty_humanizer):
        result = chatty_humanizer.humanize("Dr. Mohammad Shekoor T")
        assert "Dr. Mohammad Shekoor T" in result

    def test_localized_phrases(self, chatty_humanizer):
        result = chatty_humanizer.humanize("ലൈബ്രറി രാവിലെ 9 മണിക്ക് തുറക്കും.", language=Language.ML)
        assert result.startswith("പറയാം, ")
        assert result.endswith("ഇത് സഹായകരമായോ? വേറെ ചോദ്യങ്ങളുണ്ടോ?")

    def test_empty_text(self, chatty_humanizer):
        assert chatty_humanizer.humanize("") == ""

    def test_morning_greeting(self, quiet_humanizer):
        assert quiet_humanizer.time_based_greeting(Language.EN) == "Good morning! How can I help you today?"
        assert quiet_humanizer.time_based_greeting("ml").startswith("സുപ്രഭാതം")

    def test_choose(self, quiet_humanizer, chatty_humanizer):
        options = ["a", "b", "c"]
        assert quiet_humanizer.choose(options) == "a"
        assert chatty_humanizer.choose(options) == "c"
        assert quiet_humanizer.choose([]) == ""

    def test_seeded_humanizers_agree(self, knowledge_base, clock):
        first = ResponseHumanizer(knowledge_base.phrases, clock=clock, seed=7)
        second = ResponseHumanizer(knowledge_base.phrases, clock=clock, seed=7)
        for _ in range(5):
            assert first.humanize(FACT) == second.humanize(FACT)
