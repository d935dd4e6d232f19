"""
Response humanization

Wraps a terse factual answer in conversational framing: a time-of-day
greeting or a starter phrase, an optional mid-answer transition and an
optional follow-up question. The fact itself is never rewritten.

Every random decision goes through an injectable RandomSource so tests can
pin the behaviour.
"""

import random
import re
import logging
from datetime import datetime
from typing import Callable, Optional, Protocol, Sequence, Union

from .models import Language, ResponsePhrases

logger = logging.getLogger(__name__)

# Draw thresholds; a draw must be strictly greater to trigger
GREETING_THRESHOLD = 0.3
STARTER_THRESHOLD = 0.4
TRANSITION_THRESHOLD = 0.7
CLOSING_THRESHOLD = 0.5

SENTENCE_SPLIT = re.compile(r"(?<=[.!?])(\s+)")


class RandomSource(Protocol):
    """
    Source of uniform draws in [0, 1).

    random.Random satisfies this protocol; tests pass a fixed source.
    """

    def random(self) -> float:
        ...


def time_bucket(hour: int) -> str:
    """Greeting bucket for an hour of the day (0-23)."""
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 21:
        return "evening"
    return "general"


def _lowercase_lead(text: str) -> str:
    """
    Lowercase the first character when it starts an ordinary sentence word.

    Only a capitalized alphabetic word of two or more letters followed by a
    non-capitalized word qualifies, so names, acronyms, numbers and URLs at
    the start of a fact keep their casing.
    """
    tokens = text.split(None, 2)
    if not tokens:
        return text
    first = tokens[0]
    if len(first) < 2 or not first.isalpha() or not first.istitle():
        return text
    if len(tokens) > 1 and tokens[1][:1].isupper():
        return text
    return text[0].lower() + text[1:]


class ResponseHumanizer:
    """
    Randomized conversational framing around a factual answer.

    Attributes:
        phrases: Per-language greeting, starter, transition and closing tables
        random_source: Uniform draw provider (default: private random.Random)
        clock: Zero-argument callable returning the current local datetime
    """

    def __init__(
        self,
        phrases: ResponsePhrases,
        random_source: Optional[RandomSource] = None,
        clock: Optional[Callable[[], datetime]] = None,
        seed: Optional[int] = None,
    ):
        self.phrases = phrases
        self.random_source = random_source if random_source is not None else random.Random(seed)
        self.clock = clock or datetime.now

    def with_phrases(self, phrases: ResponsePhrases) -> "ResponseHumanizer":
        """Copy over new phrase tables sharing this random source and clock."""
        return type(self)(phrases, random_source=self.random_source, clock=self.clock)

    def _draw(self) -> float:
        return self.random_source.random()

    def choose(self, options: Sequence[str]) -> str:
        """Pick one option with a single draw; empty options give ''."""
        if not options:
            return ""
        index = int(self._draw() * len(options))
        return options[min(index, len(options) - 1)]

    def time_based_greeting(self, language: Union[Language, str] = Language.EN) -> str:
        language = Language.coerce(language)
        bucket = time_bucket(self.clock().hour)
        return self.choose(self.phrases.greetings_for(language, bucket))

    def not_found(self, language: Union[Language, str] = Language.EN) -> str:
        return self.choose(self.phrases.not_found_for(Language.coerce(language)))

    def humanize(
        self,
        raw_text: str,
        is_first_message: bool = False,
        language: Union[Language, str] = Language.EN,
    ) -> str:
        """
        Frame a factual answer conversationally.

        Steps, each with its own draw:
            1. First message and draw > 0.3: time-of-day greeting + blank line.
               Otherwise, draw > 0.4: starter phrase in front of the answer.
            2. More than two sentences and draw > 0.7: transition phrase in
               front of the middle sentence (an empty phrase changes nothing).
            3. Draw > 0.5: blank line + closing question.

        Args:
            raw_text: Factual answer
            is_first_message: True for the first reply of a session
            language: Language of the framing phrases

        Returns:
            Framed text; unchanged when every draw falls at or below its threshold
        """
        if not raw_text:
            return raw_text

        language = Language.coerce(language)
        result = raw_text

        if is_first_message and self._draw() > GREETING_THRESHOLD:
            greeting = self.time_based_greeting(language)
            if greeting:
                result = f"{greeting}\n\n{result}"
        elif self._draw() > STARTER_THRESHOLD:
            starter = self.choose(self.phrases.starters_for(language))
            if starter:
                result = f"{starter}{_lowercase_lead(result)}"

        parts = SENTENCE_SPLIT.split(result)
        sentence_count = (len(parts) + 1) // 2
        if sentence_count > 2 and self._draw() > TRANSITION_THRESHOLD:
            transition = self.choose(self.phrases.transitions_for(language))
            if transition:
                middle = 2 * (sentence_count // 2)
                parts[middle] = transition + parts[middle]
                result = "".join(parts)

        if self._draw() > CLOSING_THRESHOLD:
            closing = self.choose(self.phrases.closings_for(language))
            if closing:
                result = f"{result}\n\n{closing}"

        return result
