"""Abstract lexicon interface consumed by the transcription engine.

WHY: The engine only needs one operation from its word store: "give me
every transcription you know for this lemma". Hiding the store behind an
ABC lets the engine run against an in-memory dictionary, a JSON bundle or
a database without changes.

HOW: Lexicon is an ABC with one abstract method, query(). Implementations
build entries with new_entry() so every entry carries the preferred
variety of the lexicon's preferences.

RULES:
- query() never raises for an unknown lemma; it returns an empty entry
- query() raises LexiconFailure when the store itself is broken
- Lemmas are matched lower-cased
- Every call returns a fresh DatabaseEntry (selection is per occurrence)
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from text2transcription.core.ir import DatabaseEntry
from text2transcription.core.registry import Preferences


class Lexicon(ABC):
    """Lemma → transcription candidates lookup."""

    def __init__(self, preferences: Preferences) -> None:
        self.preferences = preferences

    def new_entry(self, lemma: str) -> DatabaseEntry:
        """Empty entry for ``lemma`` that knows the preferred variety."""
        return DatabaseEntry(lemma, self.preferences.preferred_variety)

    @abstractmethod
    def query(self, lemma: str) -> DatabaseEntry:
        """Return every candidate stored for ``lemma`` (case-insensitive).

        Args:
            lemma: The word as written in the input; it is lower-cased
                before lookup.

        Returns:
            A new DatabaseEntry, empty when the lemma is unknown.

        Raises:
            LexiconFailure: If the underlying store is unreachable or corrupt.
        """
