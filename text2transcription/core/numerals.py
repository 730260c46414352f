"""Numeral spelling: digits to the words a reader would say.

WHY: The lexicon stores words, not numbers. "12,345.678" has to become
the lookup keys "twelve thousand three hundred forty five dot six seven
eight" before anything can be transcribed.

HOW: parse_numeral() validates and splits a digit-bearing core into an
integer part and a decimal digit string. spell() walks the integer part in
groups of three digits from the most significant group down, spelling each
group with spell_tens_and_ones() plus "hundred" and a scale word, then
spells the decimal digits one by one after "dot". spell_year() produces
the alternative "eighteen hundred" reading for 1800.

RULES:
- The integer part fits a 64-bit signed integer, otherwise the core is not
  a numeral (InvalidNumeralFormat)
- Thousands separators (",") are removed before parsing
- A group that is entirely zero gets no scale word ("1,000,222")
- 0 spells as "zero"; a tens/ones value of 0 inside a group is silent
- Decimal digits go through the below-twenty table; a value outside the
  table reads "zero"
- Year reading applies to integers in the open interval (100, 2000) with
  no decimal part and no preceding minus sign
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List

from text2transcription.core.errors import InvalidNumeralFormat

logger = logging.getLogger(__name__)

MAX_INT64 = 2 ** 63 - 1

THOUSANDS_SEPARATOR = ","

# ASCII digits only: int() would also accept "1_000" and non-Latin digits.
_INTEGER_PATTERN = re.compile(r"[0-9]+")
_DECIMAL_PATTERN = re.compile(r"([0-9]+)\.([0-9]+)")

# ---------------------------------------------------------------------------
# Lookup key tables
# ---------------------------------------------------------------------------

BELOW_TWENTY: dict[int, str] = {
    1: "one",
    2: "two",
    3: "three",
    4: "four",
    5: "five",
    6: "six",
    7: "seven",
    8: "eight",
    9: "nine",
    10: "ten",
    11: "eleven",
    12: "twelve",
    13: "thirteen",
    14: "fourteen",
    15: "fifteen",
    16: "sixteen",
    17: "seventeen",
    18: "eighteen",
    19: "nineteen",
}

ZERO = "zero"

TENS: dict[int, str] = {
    2: "twenty",
    3: "thirty",
    4: "forty",
    5: "fifty",
    6: "sixty",
    7: "seventy",
    8: "eighty",
    9: "ninety",
}

HUNDRED = "hundred"
DOT = "dot"
MINUS = "minus"

# (minimum digit count exclusive, scale word), largest first
SCALES: list[tuple[int, str]] = [
    (18, "quintillion"),
    (15, "quadrillion"),
    (12, "trillion"),
    (9, "billion"),
    (6, "million"),
    (3, "thousand"),
]

YEAR_LOWER_BOUND = 100
YEAR_UPPER_BOUND = 2000


@dataclass(frozen=True)
class ParsedNumeral:
    """A validated numeral: integer value plus the decimal digits as written."""

    integer: int
    decimal: str = ""

    @property
    def is_decimal(self) -> bool:
        return bool(self.decimal)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_numeral(core: str) -> ParsedNumeral:
    """Parse a digit-bearing core such as "12,345" or "3.14".

    Raises:
        InvalidNumeralFormat: If the core is not a plain integer or
            integer.digits form, or the integer exceeds the 64-bit range.
    """
    text = core.replace(THOUSANDS_SEPARATOR, "")

    match = _DECIMAL_PATTERN.fullmatch(text)
    if match is not None:
        integer_text, decimal = match.group(1), match.group(2)
    elif _INTEGER_PATTERN.fullmatch(text) is not None:
        integer_text, decimal = text, ""
    else:
        raise InvalidNumeralFormat(core, "not an integer or decimal number")

    integer = int(integer_text)
    if integer > MAX_INT64:
        raise InvalidNumeralFormat(core, "integer part exceeds the 64-bit range")
    return ParsedNumeral(integer=integer, decimal=decimal)


# ---------------------------------------------------------------------------
# Spelling
# ---------------------------------------------------------------------------


def below_twenty(value: int) -> str:
    """Word for 1..19; anything else reads "zero"."""
    return BELOW_TWENTY.get(value, ZERO)


def scale_word(digit_count: int) -> str:
    """Scale word for a digit sitting ``digit_count`` places left of the dot."""
    for threshold, word in SCALES:
        if digit_count > threshold:
            return word
    return ""


def spell_tens_and_ones(value: int) -> List[str]:
    """Spell a value in [0, 99] as one or two lookup keys.

    Raises:
        ValueError: If ``value`` is outside [0, 99].
    """
    if value < 0 or value >= 100:
        raise ValueError("Number value must be 0 at least and 99 at max, got {}".format(value))
    if value < 20:
        return [below_twenty(value)]

    result = [TENS[value // 10]]
    if value % 10:
        result.append(below_twenty(value % 10))
    return result


def spell(integer: int, decimal: str = "") -> List[str]:
    """Spell a non-negative integer plus optional decimal digits.

    >>> spell(12345, "678")
    ['twelve', 'thousand', 'three', 'hundred', 'forty', 'five', 'dot', 'six', 'seven', 'eight']

    Raises:
        ValueError: If ``integer`` is negative or out of the 64-bit range,
            or ``decimal`` holds anything but ASCII digits.
    """
    if integer < 0 or integer > MAX_INT64:
        raise ValueError("Integer part must be within [0, {}], got {}".format(MAX_INT64, integer))
    if decimal and _INTEGER_PATTERN.fullmatch(decimal) is None:
        raise ValueError("Decimal part must be digits only, got \"{}\"".format(decimal))

    keys: List[str] = []
    if integer == 0:
        keys.append(ZERO)
    else:
        digits = str(integer)
        # Left-pad to whole groups of three so every group is hundreds/tens/ones.
        padded = digits.zfill(-(-len(digits) // 3) * 3)
        for start in range(0, len(padded), 3):
            hundreds = int(padded[start])
            tens_and_ones = int(padded[start + 1:start + 3])
            if hundreds == 0 and tens_and_ones == 0:
                continue
            if hundreds:
                keys.extend(spell_tens_and_ones(hundreds))
                keys.append(HUNDRED)
            if tens_and_ones:
                keys.extend(spell_tens_and_ones(tens_and_ones))
            area = scale_word(len(padded) - start - 2)
            if area:
                keys.append(area)

    if decimal:
        keys.append(DOT)
        keys.extend(below_twenty(int(digit)) for digit in decimal)

    logger.debug("Spelled %s.%s as %s", integer, decimal or "0", keys)
    return keys


def is_year_candidate(numeral: ParsedNumeral, negative: bool = False) -> bool:
    """True when the numeral may be read as a year ("1800" → "eighteen hundred")."""
    return (
        not negative
        and not numeral.is_decimal
        and YEAR_LOWER_BOUND < numeral.integer < YEAR_UPPER_BOUND
    )


def spell_year(integer: int) -> List[str]:
    """Year reading: hundreds-pair, "hundred", then the remainder if nonzero.

    1800 → ["eighteen", "hundred"], 1215 → ["twelve", "hundred", "fifteen"].

    Raises:
        ValueError: If ``integer`` is outside the open interval (100, 2000).
    """
    if not YEAR_LOWER_BOUND < integer < YEAR_UPPER_BOUND:
        raise ValueError("Year reading needs a value between 100 and 2000, got {}".format(integer))

    keys = spell_tens_and_ones(integer // 100)
    keys.append(HUNDRED)
    if integer % 100:
        keys.extend(spell_tens_and_ones(integer % 100))
    return keys
