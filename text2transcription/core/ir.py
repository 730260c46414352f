"""Intermediate representation dataclasses for transcription results.

WHY: The resolver, the post-processor, the formatters and the HTTP API all
need the same picture of a finished transcription: which part of each input
token is the lemma, which candidates the lexicon offered for it, which one
is selected, and where the notational delimiters go. The IR provides a
single, well-typed form that all of them consume.

HOW: Value types describe lexicon data, mutable types describe one
transcribe() result:
  TranscriptionType      — NONE / WEAK / STRONG form of a transcription
  Variety, WordClass     — registry values (dialect, grammatical category)
  TranscriptionCandidate — one phonetic rendering of a lemma
  DatabaseEntry          — all candidates of a lemma, plus the selection
  PunctuationRule        — punctuation character and its delimiter mode
  CurrencyRule           — currency symbol and its singular/plural lemmas
  Delimiter              — "/", "|" or "||" marker inside a segment
  WordItem               — a DatabaseEntry placed inside a segment
  NumeralReadings        — year and common readings of an ambiguous numeral
  TranscriptionSegment   — one input token (or one delimiter) with its items

RULES:
- Candidates, registry values and rules are immutable
- A DatabaseEntry's selected candidate is the only shared mutable state;
  it is guarded by a lock and observed through synchronous listeners
- Segment lists are created fresh per transcribe() call
"""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)


class TranscriptionType(int, enum.Enum):
    """Form of a transcription: none, weak (reduced) or strong (full).

    Inherits from int so the value round-trips through storage ids.
    """

    NONE = 0
    WEAK = 1
    STRONG = 2

    @classmethod
    def from_id(cls, type_id: int) -> TranscriptionType:
        """Return the type stored under ``type_id``.

        Raises:
            ValueError: If no type uses this id (a corrupt store row).
        """
        for member in cls:
            if member.value == type_id:
                return member
        raise ValueError("No transcription type stored for id: {}".format(type_id))

    @property
    def description(self) -> str:
        return _TYPE_DESCRIPTIONS[self]

    @property
    def abbreviation(self) -> str:
        return _TYPE_ABBREVIATIONS[self]


_TYPE_DESCRIPTIONS = {
    TranscriptionType.NONE: "None",
    TranscriptionType.WEAK: "Weak Form",
    TranscriptionType.STRONG: "Strong Form",
}

_TYPE_ABBREVIATIONS = {
    TranscriptionType.NONE: "None",
    TranscriptionType.WEAK: "Weak",
    TranscriptionType.STRONG: "Strong",
}


@dataclass(frozen=True, order=True)
class Variety:
    """A variety (dialect) of English, e.g. British English ("BrE")."""

    id: int
    name: str
    abbreviation: str

    def __str__(self) -> str:
        return "{} ({}, {})".format(self.name, self.abbreviation, self.id)


@dataclass(frozen=True, order=True)
class WordClass:
    """A grammatical category, e.g. Determiner ("det").

    content_word separates lexical words (nouns, lexical verbs, ...) from
    function words; formatters use it to style items.
    """

    id: int
    name: str
    abbreviation: str
    content_word: bool = False

    def __str__(self) -> str:
        return "{} ({}, {})".format(self.name, self.abbreviation, self.id)


@dataclass(frozen=True)
class TranscriptionCandidate:
    """One phonetic rendering of a lemma as returned by the lexicon.

    WHY: A lemma such as "the" has several renderings: a strong form, a weak
    form before consonants and a weak form before vowels, possibly per word
    class and per variety. Each rendering is one candidate.

    HOW: Immutable record. Persisted candidates carry their store id;
    transient ones (built in memory, not saved) use -1.

    RULES:
    - lemma is lower-cased
    - phonetic is the broad transcription without enclosing slashes
    - id > 0 means the candidate is persisted
    """

    id: int
    lemma: str
    phonetic: str
    transcription_type: TranscriptionType
    word_class: WordClass
    variety: Variety

    @property
    def is_persisted(self) -> bool:
        return self.id > 0

    @property
    def is_content_word(self) -> bool:
        return self.word_class.content_word


SelectionListener = Callable[["DatabaseEntry", TranscriptionCandidate], None]


class DatabaseEntry:
    """All transcription candidates the lexicon holds for one lemma.

    WHY: The lexicon answers every query with an entry, possibly an empty one,
    instead of raising "not found". Segments display the entry's selected
    candidate and let the user (or the post-processor) switch to another.

    HOW: Candidates are grouped word class → variety → ordered list, in
    insertion order. Every insertion re-evaluates the selection. Selection
    changes notify listeners synchronously, outside the lock.

    RULES:
    - The lemma is lower-cased at construction
    - Selection on insert: the new candidate becomes selected if nothing is
      selected yet, OR the current selection is not of the preferred
      variety but the new one is, OR the new one is of the preferred
      variety and is a WEAK form
    - An empty entry is a valid, displayable "Unknown" result
    - Listener exceptions are logged and never stop other listeners
    """

    def __init__(self, lemma: str, preferred_variety: Optional[Variety] = None) -> None:
        self.lemma = lemma.lower()
        self.preferred_variety = preferred_variety
        self._items: Dict[WordClass, Dict[Variety, List[TranscriptionCandidate]]] = {}
        self._selected: Optional[TranscriptionCandidate] = None
        self._listeners: List[SelectionListener] = []
        self._lock = threading.Lock()

    def _is_preferred(self, candidate: TranscriptionCandidate) -> bool:
        return self.preferred_variety is not None and candidate.variety == self.preferred_variety

    def add_candidate(self, candidate: TranscriptionCandidate) -> None:
        """Insert a candidate and re-evaluate the selection."""
        with self._lock:
            by_variety = self._items.setdefault(candidate.word_class, {})
            by_variety.setdefault(candidate.variety, []).append(candidate)

            current = self._selected
            replace = (
                current is None
                or (not self._is_preferred(current) and self._is_preferred(candidate))
                or (
                    self._is_preferred(candidate)
                    and candidate.transcription_type is TranscriptionType.WEAK
                )
            )
            if replace:
                self._selected = candidate

        if replace:
            self._notify(candidate)

    def merge(self, other: DatabaseEntry) -> None:
        """Add every candidate of ``other`` to this entry, in its order."""
        for candidate in other.all_candidates():
            self.add_candidate(candidate)

    def select(self, candidate: TranscriptionCandidate) -> None:
        """Make ``candidate`` the selected one and notify listeners.

        Raises:
            ValueError: If the candidate is not part of this entry.
        """
        with self._lock:
            group = self._items.get(candidate.word_class, {}).get(candidate.variety, [])
            if candidate not in group:
                raise ValueError(
                    "Candidate /{}/ is not part of the entry for \"{}\"".format(
                        candidate.phonetic, self.lemma
                    )
                )
            changed = self._selected != candidate
            self._selected = candidate

        if changed:
            self._notify(candidate)

    def add_listener(self, listener: SelectionListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: SelectionListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify(self, candidate: TranscriptionCandidate) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(self, candidate)
            except Exception:
                logger.exception("Selection listener failed for lemma \"%s\"", self.lemma)

    @property
    def selected(self) -> Optional[TranscriptionCandidate]:
        with self._lock:
            return self._selected

    def is_empty(self) -> bool:
        with self._lock:
            return not self._items

    def matches_multiple_word_classes(self) -> bool:
        with self._lock:
            return len(self._items) > 1

    def candidate_by_id(self, candidate_id: int) -> Optional[TranscriptionCandidate]:
        for candidate in self.all_candidates():
            if candidate.id == candidate_id:
                return candidate
        return None

    def candidates(
        self,
        word_class: WordClass,
        variety: Variety,
    ) -> Optional[Tuple[TranscriptionCandidate, ...]]:
        """Return the candidates of one word class and variety, or None if absent."""
        with self._lock:
            group = self._items.get(word_class, {}).get(variety)
            return tuple(group) if group is not None else None

    def all_candidates(self) -> List[TranscriptionCandidate]:
        """Flat snapshot of every candidate, in grouping order."""
        with self._lock:
            return [
                candidate
                for by_variety in self._items.values()
                for group in by_variety.values()
                for candidate in group
            ]

    def grouped(self) -> Dict[WordClass, Dict[Variety, Tuple[TranscriptionCandidate, ...]]]:
        """Read-only copy of the word class → variety → candidates grouping."""
        with self._lock:
            return {
                word_class: {variety: tuple(group) for variety, group in by_variety.items()}
                for word_class, by_variety in self._items.items()
            }

    def describe(self) -> str:
        """Multi-line dump of the entry for logs and debugging."""
        lines = ["Database entry (\"{}\"):".format(self.lemma)]
        grouped = self.grouped()
        if not grouped:
            lines[0] += " Empty!"
            return lines[0]
        for word_class, by_variety in grouped.items():
            lines.append("\t{}:".format(word_class.name))
            for variety, group in by_variety.items():
                lines.append("\t\t{}:".format(variety.name))
                for candidate in group:
                    lines.append("\t\t\t/{}/ ({})".format(
                        candidate.phonetic, candidate.transcription_type.description,
                    ))
        return "\n".join(lines)

    def __repr__(self) -> str:
        return "DatabaseEntry(lemma={!r}, candidates={})".format(
            self.lemma, len(self.all_candidates()),
        )


@dataclass(frozen=True)
class PunctuationRule:
    """A punctuation character and the delimiter it turns into.

    delimiter_mode: 0 = no delimiter, 1 = "|", 2 = "||" (sentence-final).
    """

    character: str
    delimiter_mode: int

    def __post_init__(self) -> None:
        if len(self.character) != 1:
            raise ValueError(
                "There must only be a single character in \"{}\"".format(self.character)
            )
        if self.delimiter_mode not in (0, 1, 2):
            raise ValueError("Delimiter mode must be 0, 1 or 2, got {}".format(self.delimiter_mode))

    @property
    def symbol(self) -> str:
        return _DELIMITER_SYMBOLS[self.delimiter_mode]


_DELIMITER_SYMBOLS = {0: "", 1: "|", 2: "||"}


@dataclass(frozen=True)
class CurrencyRule:
    """A currency symbol and the lemmas it is read as."""

    character: str
    singular: str
    plural: str

    def __post_init__(self) -> None:
        if len(self.character) != 1:
            raise ValueError(
                "There must only be a single character in \"{}\"".format(self.character)
            )


@dataclass(frozen=True)
class Delimiter:
    """A notational delimiter inside a segment: "/", "|" or "||".

    enclosing is True for the slashes that open and close the transcription.
    """

    symbol: str
    enclosing: bool = False

    @property
    def label(self) -> str:
        return self.symbol


class WordItem:
    """A DatabaseEntry placed inside a segment.

    WHY: The same lemma may appear several times in one input, and each
    occurrence needs its own conflict flag and its own selection.

    HOW: Wraps one entry. The entry can be replaced after the lexicon was
    edited (e.g. a free-input transcription was added), keeping the item in
    place inside its segment.

    RULES:
    - label is the selected phonetic string, or "Unknown" for empty entries
    - conflict is set by the post-processor, never by the resolver
    """

    UNKNOWN_LABEL = "Unknown"

    def __init__(self, entry: DatabaseEntry) -> None:
        self.entry = entry
        self.conflict = False

    def replace_entry(self, entry: DatabaseEntry) -> None:
        self.entry = entry

    @property
    def lemma(self) -> str:
        return self.entry.lemma

    @property
    def phonetic(self) -> Optional[str]:
        selected = self.entry.selected
        return selected.phonetic if selected is not None else None

    @property
    def label(self) -> str:
        phonetic = self.phonetic
        return phonetic if phonetic is not None else self.UNKNOWN_LABEL

    def __repr__(self) -> str:
        return "WordItem(lemma={!r}, label={!r}, conflict={})".format(
            self.lemma, self.label, self.conflict,
        )


SegmentItem = Union[WordItem, Delimiter]


@dataclass
class NumeralReadings:
    """Year and common readings of a numeral in (100, 2000).

    "1800" is "eighteen hundred" as a year and "one thousand eight hundred"
    otherwise. Both are computed; the year reading is active initially.
    """

    year_items: List[WordItem]
    common_items: List[WordItem]
    year_active: bool = True

    @property
    def active_items(self) -> List[WordItem]:
        return self.year_items if self.year_active else self.common_items


@dataclass
class TranscriptionSegment:
    """One whitespace-delimited input token with its transcription items.

    WHY: Output layers show the original token split into leading text,
    lemma and trailing text above the transcription items, so the user can
    see which word produced which transcription.

    HOW: Built by the resolver; mutated only by the post-processor (item
    selection and conflict flags) and by use_year_reading().

    RULES:
    - Enclosing "/" segments and inner "|" / "||" segments have no lemma
      transcription, only a Delimiter item
    - items keep their order: leading delimiter, lemma items, currency
      items, trailing delimiter
    - numeral is set only for year-ambiguous numerals
    """

    leading_text: str = ""
    lemma_text: str = ""
    trailing_text: str = ""
    items: List[SegmentItem] = field(default_factory=list)
    numeral: Optional[NumeralReadings] = None

    def has_trailing_delimiter(self) -> bool:
        return bool(self.items) and isinstance(self.items[-1], Delimiter)

    def has_transcription_items(self) -> bool:
        return bool(self.items)

    def word_items(self) -> List[WordItem]:
        return [item for item in self.items if isinstance(item, WordItem)]

    def is_delimiter_segment(self) -> bool:
        return bool(self.items) and all(isinstance(item, Delimiter) for item in self.items)

    def iter_labels(self) -> Iterator[str]:
        for item in self.items:
            yield item.label

    def use_year_reading(self, year: bool) -> None:
        """Switch between the year and the common reading of the numeral.

        Only the numeral items are swapped; currency and delimiter items
        keep their positions.

        Raises:
            ValueError: If this segment holds no year-ambiguous numeral.
        """
        if self.numeral is None:
            raise ValueError("Segment \"{}\" has no year/common numeral choice".format(self.lemma_text))
        if self.numeral.year_active == year:
            return

        active = self.numeral.active_items
        start = next(i for i, item in enumerate(self.items) if item is active[0])
        replacement = self.numeral.year_items if year else self.numeral.common_items
        self.items[start:start + len(active)] = replacement
        self.numeral.year_active = year
