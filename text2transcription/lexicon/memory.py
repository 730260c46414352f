"""In-memory lexicon with editing support.

WHY: The engine needs a real Lexicon to run against in the CLI, the HTTP
API and the tests. Users also add missing transcriptions while reviewing a
result ("free input"), so the store must accept edits between queries.

HOW: A dict maps lower-cased lemmas to candidate lists in insertion order.
Candidates get increasing ids starting at 1, so every stored candidate
counts as persisted. A lock guards the dict because server jobs query the
shared lexicon from worker threads.

RULES:
- Duplicates (same lemma, phonetic string, word class and variety) are
  rejected with ValueError
- query() builds a fresh DatabaseEntry on every call
- Word classes and varieties may be given as values or as abbreviations
"""

from __future__ import annotations

import dataclasses
import itertools
import logging
import threading
from typing import Dict, Iterator, List, Optional, Union

from text2transcription.core.ir import (
    DatabaseEntry,
    TranscriptionCandidate,
    TranscriptionType,
    Variety,
    WordClass,
)
from text2transcription.core.registry import Preferences
from text2transcription.lexicon.base import Lexicon

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Duplicate entries are not allowed!"


class InMemoryLexicon(Lexicon):
    """Ordered, case-insensitive lemma store held in memory."""

    def __init__(self, preferences: Preferences) -> None:
        super().__init__(preferences)
        self._entries: Dict[str, List[TranscriptionCandidate]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def with_preferences(self, preferences: Preferences) -> InMemoryLexicon:
        """View of the same store whose entries prefer another variety.

        Edits through either object are visible through both.
        """
        view = InMemoryLexicon(preferences)
        view._entries = self._entries
        view._ids = self._ids
        view._lock = self._lock
        return view

    # ------------------------------------------------------------------
    # Lexicon interface
    # ------------------------------------------------------------------

    def query(self, lemma: str) -> DatabaseEntry:
        entry = self.new_entry(lemma)
        with self._lock:
            stored = list(self._entries.get(entry.lemma, ()))
        for candidate in stored:
            entry.add_candidate(candidate)
        return entry

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def _word_class(self, value: Union[WordClass, str]) -> WordClass:
        if isinstance(value, WordClass):
            return value
        found = self.preferences.word_class(value)
        if found is None:
            raise ValueError("Unknown word class: \"{}\"".format(value))
        return found

    def _variety(self, value: Union[Variety, str]) -> Variety:
        if isinstance(value, Variety):
            return value
        found = self.preferences.variety(value)
        if found is None:
            raise ValueError("Unknown variety: \"{}\"".format(value))
        return found

    @staticmethod
    def _is_duplicate(a: TranscriptionCandidate, b: TranscriptionCandidate) -> bool:
        return (
            a.lemma == b.lemma
            and a.phonetic == b.phonetic
            and a.word_class == b.word_class
            and a.variety == b.variety
        )

    def add_transcription(
        self,
        lemma: str,
        phonetic: str,
        transcription_type: TranscriptionType,
        word_class: Union[WordClass, str],
        variety: Union[Variety, str],
    ) -> TranscriptionCandidate:
        """Store a new transcription and return it with its assigned id.

        Raises:
            ValueError: If the lemma or phonetic string is blank, a word
                class or variety abbreviation is unknown, or the
                transcription is already stored.
        """
        lemma = lemma.strip().lower()
        phonetic = phonetic.strip()
        if not lemma or not phonetic:
            raise ValueError("Lemma and phonetic string must not be empty")

        with self._lock:
            candidate = TranscriptionCandidate(
                id=-1,
                lemma=lemma,
                phonetic=phonetic,
                transcription_type=transcription_type,
                word_class=self._word_class(word_class),
                variety=self._variety(variety),
            )
            stored = self._entries.setdefault(lemma, [])
            if any(self._is_duplicate(candidate, existing) for existing in stored):
                raise ValueError(DUPLICATE_MESSAGE)
            candidate = dataclasses.replace(candidate, id=next(self._ids))
            stored.append(candidate)

        logger.info("Added /%s/ for \"%s\" (id %d)", phonetic, lemma, candidate.id)
        return candidate

    def update_transcription(
        self,
        candidate_id: int,
        phonetic: Optional[str] = None,
        transcription_type: Optional[TranscriptionType] = None,
        word_class: Union[WordClass, str, None] = None,
        variety: Union[Variety, str, None] = None,
    ) -> TranscriptionCandidate:
        """Replace fields of a stored transcription, keeping its id and position.

        Raises:
            KeyError: If no transcription has this id.
            ValueError: If the update would create a duplicate.
        """
        with self._lock:
            for stored in self._entries.values():
                for index, existing in enumerate(stored):
                    if existing.id != candidate_id:
                        continue
                    changes = {}
                    if phonetic is not None:
                        changes["phonetic"] = phonetic.strip()
                    if transcription_type is not None:
                        changes["transcription_type"] = transcription_type
                    if word_class is not None:
                        changes["word_class"] = self._word_class(word_class)
                    if variety is not None:
                        changes["variety"] = self._variety(variety)
                    updated = dataclasses.replace(existing, **changes)
                    if any(
                        self._is_duplicate(updated, other)
                        for other in stored
                        if other.id != candidate_id
                    ):
                        raise ValueError(DUPLICATE_MESSAGE)
                    stored[index] = updated
                    return updated
        raise KeyError("No transcription with id {}".format(candidate_id))

    def delete_transcription(self, candidate_id: int) -> bool:
        """Remove a stored transcription; False if the id is unknown."""
        with self._lock:
            for lemma, stored in self._entries.items():
                for existing in stored:
                    if existing.id == candidate_id:
                        stored.remove(existing)
                        if not stored:
                            del self._entries[lemma]
                        return True
        return False

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def lemmas(self) -> List[str]:
        with self._lock:
            return sorted(lemma for lemma, stored in self._entries.items() if stored)

    def candidates(self) -> Iterator[TranscriptionCandidate]:
        """Every stored candidate, lemma by lemma in insertion order."""
        with self._lock:
            snapshot = [candidate for stored in self._entries.values() for candidate in stored]
        return iter(snapshot)

    def __contains__(self, lemma: object) -> bool:
        if not isinstance(lemma, str):
            return False
        with self._lock:
            return bool(self._entries.get(lemma.lower()))

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for stored in self._entries.values() if stored)
