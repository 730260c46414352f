"""Character classification for dissection and post-processing.

WHY: Several stages ask the same small questions about single characters:
is it part of a word, is it a vowel sound in IPA, does it act as a minus
sign. Keeping the answers in one place keeps the character sets consistent.

HOW: Plain functions over fixed sets and one compiled regex. Word
characters are Unicode letters and digits, the underscore excluded.

RULES:
- Only "-" (U+002D) and "−" (U+2212) count as minus; other dashes do not
- The singular-trigger set is closed and matched exactly
- Stress marks are not sounds; strip them before testing a vocalic onset.
  This departs on purpose from a plain first-character test, so /ˈæpl/
  counts as vocalic and "the apple" takes ði
"""

from __future__ import annotations

import re

WORD_RUN_PATTERN = re.compile(r"[^\W_]+")
"""Maximal run of letters and digits (underscore excluded)."""

NON_WORD_PATTERN = re.compile(r"[\W_]")
"""A single character that is not a letter or digit."""

HYPHEN_MINUS = "-"
MINUS_SIGN = "−"
MINUS_CHARACTERS = frozenset({HYPHEN_MINUS, MINUS_SIGN})

VOCALIC_SOUNDS = frozenset("aɑʌæɜeəiɪɔɒuʊ")

STRESS_MARKS = frozenset("ˈˌ")

SINGULAR_TRIGGERS = frozenset({"a", "one", "1", "-1", "1.00", "-1.00", "1.-", "single"})


def is_word_char(character: str) -> bool:
    return len(character) == 1 and WORD_RUN_PATTERN.fullmatch(character) is not None


def is_vocalic_sound(character: str) -> bool:
    return character in VOCALIC_SOUNDS


def is_minus_like(character: str) -> bool:
    return character in MINUS_CHARACTERS


def ends_with_minus(text: str) -> bool:
    return bool(text) and is_minus_like(text[-1])


def is_singular_trigger(text: str) -> bool:
    """True when ``text`` makes a following currency symbol singular.

    "1$" reads "one dollar", "5$" reads "five dollars".
    """
    return text in SINGULAR_TRIGGERS


def contains_digit(text: str) -> bool:
    return any(character.isdigit() for character in text)


def strip_stress_marks(phonetic: str) -> str:
    return "".join(character for character in phonetic if character not in STRESS_MARKS)


def starts_with_vocalic_sound(phonetic: str) -> bool:
    """True when the first sound of ``phonetic`` is a vowel.

    Stress marks in front of the first sound are skipped.
    """
    stripped = strip_stress_marks(phonetic)
    return bool(stripped) and is_vocalic_sound(stripped[0])
