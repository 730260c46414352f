"""Read-only registries for varieties, word classes, punctuation and currency.

WHY: The engine needs to resolve abbreviations ("det", "BrE") and single
characters ("!", "$") to typed values. Lookups of unknown keys are normal
(most characters are not punctuation), so they return None instead of
raising.

HOW: Each registry is built once from an iterable of immutable values and
indexed by id and by abbreviation (or by character). Preferences bundles
the registries with the user's preferred variety and is passed explicitly
into every collaborator that needs it.

RULES:
- Registries never change after construction
- lookup() trims the input, matches abbreviations case-insensitively and
  names exactly
- PunctuationTable.highest() returns the first rule with the highest mode
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Generic, Iterable, Optional, Tuple, TypeVar, Union

from text2transcription.core.ir import CurrencyRule, PunctuationRule, Variety, WordClass

Abbreviable = TypeVar("Abbreviable", Variety, WordClass)


class AbbreviableRegistry(Generic[Abbreviable]):
    """Values that carry an id, a name and an abbreviation."""

    def __init__(self, values: Iterable[Abbreviable]) -> None:
        self._values: Tuple[Abbreviable, ...] = tuple(sorted(values))
        self._by_id: Dict[int, Abbreviable] = {}
        self._by_abbreviation: Dict[str, Abbreviable] = {}
        for value in self._values:
            if value.id in self._by_id:
                raise ValueError("Duplicate id {} in registry".format(value.id))
            self._by_id[value.id] = value
            self._by_abbreviation[value.abbreviation.lower()] = value

    def by_id(self, value_id: int) -> Optional[Abbreviable]:
        return self._by_id.get(value_id)

    def lookup(self, text: str) -> Optional[Abbreviable]:
        """Find a value by abbreviation (any case) or by its exact name."""
        key = text.strip()
        found = self._by_abbreviation.get(key.lower())
        if found is not None:
            return found
        for value in self._values:
            if value.name == key:
                return value
        return None

    def values(self) -> Tuple[Abbreviable, ...]:
        return self._values

    def __iter__(self):
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)


class PunctuationTable:
    """Punctuation characters mapped to their delimiter rule."""

    def __init__(self, rules: Iterable[PunctuationRule]) -> None:
        self._rules: Tuple[PunctuationRule, ...] = tuple(rules)
        self._by_char = {rule.character: rule for rule in self._rules}

    def get(self, character: str) -> Optional[PunctuationRule]:
        return self._by_char.get(character)

    def rules(self) -> Tuple[PunctuationRule, ...]:
        return self._rules

    def highest(self, characters: Iterable[str]) -> Optional[PunctuationRule]:
        """Pick the rule with the highest delimiter mode among ``characters``.

        Characters without a rule are ignored. Ties go to the first
        occurrence, so `"` wins over `,` in `",`.
        """
        best: Optional[PunctuationRule] = None
        for character in characters:
            rule = self._by_char.get(character)
            if rule is not None and (best is None or rule.delimiter_mode > best.delimiter_mode):
                best = rule
        return best

    def __contains__(self, character: object) -> bool:
        return character in self._by_char


class CurrencyTable:
    """Currency symbols mapped to their singular and plural lemmas."""

    def __init__(self, rules: Iterable[CurrencyRule]) -> None:
        self._rules: Tuple[CurrencyRule, ...] = tuple(rules)
        self._by_char = {rule.character: rule for rule in self._rules}

    def get(self, character: str) -> Optional[CurrencyRule]:
        return self._by_char.get(character)

    def rules(self) -> Tuple[CurrencyRule, ...]:
        return self._rules

    def __contains__(self, character: object) -> bool:
        return character in self._by_char


@dataclass(frozen=True)
class Preferences:
    """Everything the engine needs to know about the user's setup.

    WHY: The preferred variety drives candidate selection and the tables
    drive punctuation and currency handling. Passing them explicitly keeps
    two transcribers with different preferences independent of each other.

    HOW: Built by config.load_preferences() from the seed tables, or by
    hand in tests.

    RULES:
    - preferred_variety must be one of varieties
    """

    preferred_variety: Variety
    varieties: AbbreviableRegistry[Variety]
    word_classes: AbbreviableRegistry[WordClass]
    punctuation: PunctuationTable
    currencies: CurrencyTable

    def __post_init__(self) -> None:
        if self.varieties.by_id(self.preferred_variety.id) != self.preferred_variety:
            raise ValueError(
                "Preferred variety {} is not a registered variety".format(self.preferred_variety)
            )

    def variety(self, key: Union[int, str]) -> Optional[Variety]:
        if isinstance(key, int):
            return self.varieties.by_id(key)
        return self.varieties.lookup(key)

    def word_class(self, key: Union[int, str]) -> Optional[WordClass]:
        if isinstance(key, int):
            return self.word_classes.by_id(key)
        return self.word_classes.lookup(key)

    def with_variety(self, variety: Variety) -> Preferences:
        """Copy of these preferences with a different preferred variety."""
        return Preferences(
            preferred_variety=variety,
            varieties=self.varieties,
            word_classes=self.word_classes,
            punctuation=self.punctuation,
            currencies=self.currencies,
        )
