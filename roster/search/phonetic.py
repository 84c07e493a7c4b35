"""Metaphone phonetic keys for callsigns.

Implements Lawrence Philips' original Metaphone with the rule set of PHP's
``metaphone()``, which produced the ``callsign_soundex`` values already
stored in the person table. Output is upper-case over ``A-Z`` plus ``0``
for "th" and ``X`` for "sh".
"""
from __future__ import annotations

from .normalization import normalize_callsign, spell_out_numbers

SH = "X"
TH = "0"

_VOWELS = frozenset("AEIOU")
_MAKESOFT = frozenset("EIY")        # C, G before these soften
_AFFECTH = frozenset("CGPST")       # H after these is silent
_NOGHTOF = frozenset("BDH")         # GH is not F after these


def _is_alpha(ch: str) -> bool:
    return "A" <= ch <= "Z"


def metaphone(word: str | None, max_phonemes: int = 0) -> str:
    """Encode a word as a Metaphone key.

    Args:
        word: Input text; only ASCII letters contribute
        max_phonemes: Truncate the key to this length (0 = unlimited)

    Returns:
        Phonetic key, empty if the input has no ASCII letters
    """
    if not word:
        return ""

    chars = [ch.upper() if ch.isascii() else ch for ch in word]
    size = len(chars)

    def at(idx: int) -> str:
        return chars[idx] if 0 <= idx < size else ""

    out: list[str] = []
    i = 0

    # Skip leading non-letters
    while i < size and not _is_alpha(chars[i]):
        i += 1
    if i >= size:
        return ""

    # Exceptions for the first letter
    cur, nxt = chars[i], at(i + 1)
    if cur == "A":
        if nxt == "E":
            out.append("E")
            i += 2
        else:
            out.append("A")
            i += 1
    elif cur in ("G", "K", "P"):
        if nxt == "N":
            out.append("N")
            i += 2
    elif cur == "W":
        if nxt == "R":
            out.append("R")
            i += 2
        elif nxt == "H" or nxt in _VOWELS:
            out.append("W")
            i += 2
    elif cur == "X":
        out.append("S")
        i += 1
    elif cur in ("E", "I", "O", "U"):
        out.append(cur)
        i += 1

    while i < size and not (max_phonemes and len(out) >= max_phonemes):
        cur = chars[i]
        skip = 0

        if not _is_alpha(cur):
            i += 1
            continue

        prev = at(i - 1)
        # Drop duplicates, except CC
        if cur == prev and cur != "C":
            i += 1
            continue

        nxt = at(i + 1)
        after = at(i + 2) if nxt else ""

        if cur == "B":
            if not (prev == "M" and after == ""):
                out.append("B")
        elif cur == "C":
            if nxt in _MAKESOFT:
                if nxt == "I" and after == "A":
                    out.append(SH)
                elif prev == "S":
                    pass
                else:
                    out.append("S")
            elif nxt == "H":
                # christ, school
                if after == "R" or prev == "S":
                    out.append("K")
                else:
                    out.append(SH)
                skip += 1
            else:
                out.append("K")
        elif cur == "D":
            if nxt == "G" and after in _MAKESOFT:
                out.append("J")
                skip += 1
            else:
                out.append("T")
        elif cur == "G":
            if nxt == "H":
                if not (at(i - 3) in _NOGHTOF or at(i - 4) == "H"):
                    out.append("F")
                    skip += 1
            elif nxt == "N":
                if not _is_alpha(after) or (after == "E" and at(i + 3) == "D"):
                    pass
                else:
                    out.append("K")
            elif nxt in _MAKESOFT and prev != "G":
                out.append("J")
            else:
                out.append("K")
        elif cur == "H":
            if nxt in _VOWELS and prev not in _AFFECTH:
                out.append("H")
        elif cur == "K":
            if prev != "C":
                out.append("K")
        elif cur == "P":
            out.append("F" if nxt == "H" else "P")
        elif cur == "Q":
            out.append("K")
        elif cur == "S":
            if nxt == "I" and after in ("O", "A"):
                out.append(SH)
            elif nxt == "H":
                out.append(SH)
                skip += 1
            elif nxt == "C" and at(i + 2) == "H" and at(i + 3) == "W":
                out.append(SH)
                skip += 2
            else:
                out.append("S")
        elif cur == "T":
            if nxt == "I" and after in ("O", "A"):
                out.append(SH)
            elif nxt == "H":
                out.append(TH)
                skip += 1
            elif not (nxt == "C" and after == "H"):
                out.append("T")
        elif cur == "V":
            out.append("F")
        elif cur == "W":
            if nxt in _VOWELS:
                out.append("W")
        elif cur == "X":
            out.append("K")
            out.append("S")
        elif cur == "Y":
            if nxt in _VOWELS:
                out.append("Y")
        elif cur == "Z":
            out.append("S")
        elif cur in ("F", "J", "L", "M", "N", "R"):
            out.append(cur)
        # vowels after the first letter are dropped

        i += 1 + skip

    key = "".join(out)
    if max_phonemes:
        key = key[:max_phonemes]
    return key


def phonetic_key(text: str | None) -> str:
    """Phonetic key of a raw callsign or query string.

    Normalizes, spells out digit runs, then encodes, the same way the
    write path derives ``callsign_soundex``.
    """
    return metaphone(spell_out_numbers(normalize_callsign(text)))
