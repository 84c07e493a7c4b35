"""Text normalization for callsigns and search queries.

Handles whitespace collapsing, callsign canonicalization, number spell-out,
and diacritic folding for sort keys.
"""
from __future__ import annotations

import re
import unicodedata

_DIGIT_RUN = re.compile(r"\d+")
_NATURAL_SPLIT = re.compile(r"(\d+)")

_ONES = (
    "zero", "one", "two", "three", "four", "five", "six", "seven", "eight", "nine",
    "ten", "eleven", "twelve", "thirteen", "fourteen", "fifteen", "sixteen",
    "seventeen", "eighteen", "nineteen",
)
_TENS = ("", "", "twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety")

# Scale word for each 3-digit group above the units group
_SCALES = (
    "thousand", "million", "billion", "trillion", "quadrillion", "quintillion",
    "sextillion", "septillion", "octillion", "nonillion", "decillion",
)
# Digits below the largest scale
_SCALE_SPAN = 3 * len(_SCALES)


def normalize_whitespace(text: str) -> str:
    """Normalize whitespace: collapse multiple spaces, remove leading/trailing."""
    text = re.sub(r'\s+', ' ', text)
    return text.strip()


def normalize_callsign(text: str | None) -> str:
    """Canonical comparison key for a callsign.

    Lower-cases and drops every character that is not a letter or digit.
    Idempotent, never raises.
    """
    if not text:
        return ""
    return "".join(ch for ch in text.lower() if ch.isalnum())


def _spell_below_thousand(n: int) -> list[str]:
    words = []
    if n >= 100:
        words += [_ONES[n // 100], "hundred"]
        n %= 100
    if n >= 20:
        words.append(_TENS[n // 10])
        n %= 10
        if n:
            words.append(_ONES[n])
    elif n:
        words.append(_ONES[n])
    return words


def _spell_groups(digits: str) -> list[str]:
    """Words for at most 33 digits, one 3-digit group at a time."""
    words = []
    groups = (len(digits) + 2) // 3
    for power in range(groups - 1, -1, -1):
        end = len(digits) - 3 * power
        group = int(digits[max(end - 3, 0):end])
        if group:
            words += _spell_below_thousand(group)
            if power:
                words.append(_SCALES[power - 1])
    return words


def _spell_digits(digits: str) -> list[str]:
    if not digits.isascii():
        digits = "".join(str(unicodedata.decimal(ch)) for ch in digits)
    digits = digits.lstrip("0")
    if not digits:
        return []

    # Numbers past the largest scale chain it (e.g. "one thousand decillion")
    head = (len(digits) - 1) % _SCALE_SPAN + 1
    words = _spell_groups(digits[:head])
    for start in range(head, len(digits), _SCALE_SPAN):
        words.append(_SCALES[-1])
        words += _spell_groups(digits[start:start + _SCALE_SPAN])
    return words


def spell_digits(digits: str) -> str:
    """English cardinal for a run of decimal digits, without separators.

    Works on the text directly, so runs of any length are fine.
    """
    return "".join(_spell_digits(digits)) or "zero"


def spell_number(n: int) -> str:
    """English cardinal for a non-negative integer, without separators.

    >>> spell_number(92)
    'ninetytwo'
    """
    if n < 0:
        raise ValueError(f"Cannot spell negative number {n}")
    return spell_digits(str(n))


def spell_out_numbers(text: str) -> str:
    """Replace each maximal digit run with its spelled-out cardinal.

    e.g. ``3pio`` -> ``threepio``, ``hubcap92`` -> ``hubcapninetytwo``.
    """
    if not text:
        return ""
    return _DIGIT_RUN.sub(lambda m: spell_digits(m.group(0)), text)


def fold_text(text: str | None) -> str:
    """Case-fold and strip diacritics (NFKD, combining marks dropped)."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def _numeric_key(digits: str) -> tuple[int, str]:
    # Orders like int(digits) without converting arbitrarily long runs
    if not digits.isascii():
        digits = "".join(str(unicodedata.decimal(ch)) for ch in digits)
    digits = digits.lstrip("0")
    return len(digits), digits


def natural_sort_key(text: str | None) -> tuple:
    """Sort key with case/diacritic-insensitive natural number ordering.

    ``Ranger2`` sorts before ``Ranger10``. Even positions of the key are
    strings and odd positions are numeric keys, so any two keys compare
    cleanly.
    """
    parts = _NATURAL_SPLIT.split(fold_text(text))
    return tuple(_numeric_key(part) if idx % 2 else part for idx, part in enumerate(parts))
