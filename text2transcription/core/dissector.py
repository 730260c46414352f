"""Split one whitespace-delimited token into leading text, core and trailing text.

WHY: A token such as '"Hello!",' carries the lemma ("Hello") wrapped in
punctuation that must become delimiters, not lookups. The dissector
separates the two so the resolver can treat each part on its own.

HOW: Two regex scans over the token: maximal word-character runs and
single non-word characters. The leading run is the prefix of non-word
characters that ends where the first word run begins; the trailing run
is the suffix that starts where the last word run ends. Everything in
between is the core, including inner non-word characters such as the
hyphen in "well-known" or the dot in "3.14".

RULES:
- Word characters are Unicode letters and digits; "_" is a non-word char
- A token without word runs has empty leading/trailing text and the whole
  token as its core (is_pure_non_word is True)
- leading + core + trailing == token
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from text2transcription.core.characters import NON_WORD_PATTERN, WORD_RUN_PATTERN


@dataclass(frozen=True)
class Dissection:
    """Result of dissect(): the three parts plus the raw match spans."""

    token: str
    leading: str
    core: str
    trailing: str
    word_runs: Tuple[Tuple[int, int], ...] = field(default=())
    non_word: Tuple[Tuple[str, int], ...] = field(default=())

    @property
    def is_pure_non_word(self) -> bool:
        return not self.word_runs

    @property
    def single_character(self) -> str | None:
        """The only character of a pure non-word token of length one."""
        if self.is_pure_non_word and len(self.non_word) == 1:
            return self.non_word[0][0]
        return None


def dissect(token: str) -> Dissection:
    """Dissect ``token`` into leading non-word text, core and trailing text.

    >>> d = dissect("'hello!',")
    >>> (d.leading, d.core, d.trailing)
    ("'", 'hello', "!',")
    """
    word_runs = tuple(match.span() for match in WORD_RUN_PATTERN.finditer(token))
    non_word = tuple((match.group(), match.start()) for match in NON_WORD_PATTERN.finditer(token))

    if not word_runs:
        return Dissection(token, "", token, "", word_runs, non_word)

    first_word_start = word_runs[0][0]
    last_word_end = word_runs[-1][1]

    leading_end = 0
    for character, start in non_word:
        if start != leading_end or start + 1 > first_word_start:
            break
        leading_end = start + 1

    trailing_start = len(token)
    for character, start in reversed(non_word):
        if start + 1 != trailing_start or start < last_word_end:
            break
        trailing_start = start

    return Dissection(
        token=token,
        leading=token[:leading_end],
        core=token[leading_end:trailing_start],
        trailing=token[trailing_start:],
        word_runs=word_runs,
        non_word=non_word,
    )
