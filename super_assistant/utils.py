"""Shared utilities used across the assistant."""

import re

_SPOKEN_DIGITS = {
    "zero": "0", "one": "1", "two": "2", "three": "3", "four": "4",
    "five": "5", "six": "6", "seven": "7", "eight": "8", "nine": "9",
}
_SPOKEN_DIGIT_RE = re.compile(r"\b(" + "|".join(_SPOKEN_DIGITS) + r")\b", re.IGNORECASE)


def digits_only(value: str) -> str:
    """Strip everything except the ASCII digits 0-9.

    Examples:
        >>> digits_only("1 2 3-4 5 6")
        '123456'
        >>> digits_only("my code is 042 917.")
        '042917'
    """
    return re.sub(r"[^0-9]", "", value)


def spoken_digits_to_numerals(value: str) -> str:
    """Replace spoken digit words with numerals, leaving other text intact.

    Examples:
        >>> spoken_digits_to_numerals("one two 3 four")
        '1 2 3 4'
    """
    return _SPOKEN_DIGIT_RE.sub(lambda m: _SPOKEN_DIGITS[m.group(1).lower()], value)


def collapse_whitespace(value: str) -> str:
    """Trim and collapse internal runs of whitespace to single spaces."""
    return re.sub(r"\s+", " ", value).strip()
