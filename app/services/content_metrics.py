"""
Content Metrics
===============
Simple statistics reported with every successful validation.

Word counting:
    Tokens are whitespace-delimited. A token counts as a word only if it
    contains at least one letter or digit, so bare markdown markers
    ("#", "-", ">", "```") do not inflate the count.

Reading time:
    Whole minutes, rounded up, at WORDS_PER_MINUTE.
"""
import math
import re

from app.core.constants import WORDS_PER_MINUTE
from app.models.document import ContentMetrics

_IMAGE_RE = re.compile(r"<img|!\[")
_FENCE = "```"


def count_words(content: str) -> int:
    """
    Count whitespace-delimited tokens that contain a letter or digit.

    This is deliberately not the raw whitespace-token count: "a - b" is 3
    tokens but 2 words, and "# Hi" must report 1 word, not 2. Tokens made
    only of punctuation or markdown markers are never counted.
    """
    return sum(1 for token in content.split() if any(ch.isalnum() for ch in token))


def reading_time(word_count: int) -> int:
    return math.ceil(word_count / WORDS_PER_MINUTE)


def compute_metrics(content: str) -> ContentMetrics:
    words = count_words(content)
    return ContentMetrics(
        word_count=words,
        reading_time=reading_time(words),
        content_length=len(content),
        has_images=bool(_IMAGE_RE.search(content)),
        has_code=_FENCE in content,
    )
