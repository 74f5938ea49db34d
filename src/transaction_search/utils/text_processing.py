"""Text processing utilities for transaction titles and queries."""

import re
from decimal import Decimal
from typing import List, Union

# Word tokens: runs of letters/digits, apostrophes kept inside words
TOKEN_PATTERN = re.compile(r"[^\W_]+(?:'[^\W_]+)*")


def clean_text(text: str) -> str:
    """
    Normalize text before it is handed to an embedding model.

    Lowercases and strips leading/trailing whitespace, newlines included.
    Inner whitespace is left untouched so the model sees the text as typed.

    Args:
        text: Raw title or query text

    Returns:
        Cleaned text, possibly empty
    """
    if not text:
        return ""
    return text.lower().strip()


def tokenize(text: str) -> List[str]:
    """
    Split cleaned text into word tokens.

    Punctuation and symbols ("&", "#", "-") are dropped.

    Args:
        text: Text to tokenize

    Returns:
        List of word tokens in order of appearance
    """
    return TOKEN_PATTERN.findall(clean_text(text))


def format_amount(amount: Union[Decimal, float, int]) -> str:
    """Format an amount with two decimal places, e.g. ``-4.50``."""
    return f"{amount:.2f}"
