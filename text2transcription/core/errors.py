"""Exception types raised by the transcription engine and its collaborators.

WHY: Callers need to tell a broken lexicon (fatal for the whole call) apart
from a malformed numeral (recovered locally). Typed exceptions make that
distinction explicit at the seams where errors cross module boundaries.

HOW: Two small exception classes. There is no "not found" error: an
unknown lemma yields an empty DatabaseEntry and registry lookups return
None.

RULES:
- LexiconFailure propagates out of transcribe() untouched
- InvalidNumeralFormat is a ValueError so generic numeric handling still works
- Neither exception is ever raised for a merely unknown word
"""

from __future__ import annotations


class LexiconFailure(Exception):
    """Raised when the underlying lexicon store is unreachable or corrupt.

    WHY: A failing store makes every later lookup meaningless, so the whole
    transcribe() call is aborted instead of producing a transcript full of
    "Unknown" items.

    HOW: Lexicon implementations wrap their storage errors in this type,
    keeping the original exception as __cause__.

    RULES:
    - lemma is the lookup key that triggered the failure, or None when the
      failure happened while loading the store
    """

    def __init__(self, message: str, lemma: str | None = None) -> None:
        self.lemma = lemma
        super().__init__(message)


class InvalidNumeralFormat(ValueError):
    """Raised when a digit-bearing core cannot be read as a numeral.

    Examples are "3rd", "1.2.3" or values beyond the 64-bit signed range.
    The resolver catches it and looks up the raw text instead.
    """

    def __init__(self, text: str, reason: str) -> None:
        self.text = text
        self.reason = reason
        super().__init__("Cannot read \"{}\" as a numeral: {}".format(text, reason))
