"""Turn one input token into one TranscriptionSegment.

WHY: Each token needs a different treatment depending on what it holds:
plain words are looked up, numerals are spelled out first, currency
symbols become "dollar"/"dollars", and punctuation becomes "|" or "||"
delimiters. The resolver makes these decisions token by token.

HOW: resolve() dissects the token, then walks through the stages below,
collecting items in display order:
  1. pure non-word token  → inner delimiter, currency lookup or literal
  2. leading punctuation  → optional leading delimiter
  3. core                 → numeral spelling or literal lookup
  4. trailing currency    → singular/plural lookup, symbol folded into core
  5. trailing punctuation → optional trailing delimiter

RULES:
- The previous segment decides delimiter suppression and currency number
- Never two delimiters in a row: a leading or inner delimiter is dropped
  when the previous segment already ends in one
- The last token never gets a trailing or inner delimiter
- A quote mark chosen as delimiter on one side is dropped when the other
  side also holds a quote mark
- A core that fails numeral parsing is looked up literally
- Numerals in (100, 2000) get both readings, year reading active
"""

from __future__ import annotations

import logging
from typing import List, Optional

from text2transcription.core.characters import (
    contains_digit,
    ends_with_minus,
    is_singular_trigger,
)
from text2transcription.core.dissector import Dissection, dissect
from text2transcription.core.errors import InvalidNumeralFormat
from text2transcription.core.ir import (
    CurrencyRule,
    Delimiter,
    NumeralReadings,
    SegmentItem,
    TranscriptionSegment,
    WordItem,
)
from text2transcription.core.numerals import (
    MINUS,
    is_year_candidate,
    parse_numeral,
    spell,
    spell_year,
)
from text2transcription.core.registry import Preferences
from text2transcription.lexicon.base import Lexicon

logger = logging.getLogger(__name__)

QUOTATION_MARK = "\""
ENCLOSING_SYMBOL = "/"


def enclosing_segment() -> TranscriptionSegment:
    """Segment holding only the "/" that opens or closes a transcription."""
    return TranscriptionSegment(items=[Delimiter(ENCLOSING_SYMBOL, enclosing=True)])


class TranscriptionResolver:
    """Resolve tokens into segments against one lexicon and one set of preferences."""

    def __init__(self, lexicon: Lexicon, preferences: Preferences) -> None:
        self.lexicon = lexicon
        self.preferences = preferences

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _word(self, lemma: str) -> WordItem:
        return WordItem(self.lexicon.query(lemma))

    def _words(self, lemmas: List[str]) -> List[WordItem]:
        return [self._word(lemma) for lemma in lemmas]

    def _currency(self, rule: CurrencyRule, count_text: str) -> WordItem:
        lemma = rule.singular if is_singular_trigger(count_text) else rule.plural
        logger.debug("Currency %s read as \"%s\" after \"%s\"", rule.character, lemma, count_text)
        return self._word(lemma)

    def _ambiguous_currency(self, rule: CurrencyRule) -> WordItem:
        """Singular and plural candidates merged into one entry."""
        entry = self.lexicon.query(rule.singular)
        entry.merge(self.lexicon.query(rule.plural))
        return WordItem(entry)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(
        self,
        token: str,
        previous: TranscriptionSegment,
        is_first: bool = False,
        is_last: bool = False,
    ) -> TranscriptionSegment:
        """Resolve ``token`` given the segment finished right before it.

        Args:
            token: One whitespace-free input token.
            previous: The last finished segment (the opening "/" segment
                for the first token).
            is_first: True for the first token of the input.
            is_last: True for the last token of the input.

        Raises:
            LexiconFailure: If the lexicon cannot be queried.
        """
        dissection = dissect(token)
        logger.debug(
            "Dissected \"%s\" into \"%s\" | \"%s\" | \"%s\"",
            token, dissection.leading, dissection.core, dissection.trailing,
        )
        if dissection.is_pure_non_word:
            return self._resolve_non_word(dissection, previous, is_first, is_last)
        return self._resolve_word(dissection, previous, is_last)

    def _resolve_non_word(
        self,
        dissection: Dissection,
        previous: TranscriptionSegment,
        is_first: bool,
        is_last: bool,
    ) -> TranscriptionSegment:
        token = dissection.token
        segment = TranscriptionSegment(lemma_text=token)
        character = dissection.single_character

        if character is not None:
            punctuation = self.preferences.punctuation.get(character)
            if punctuation is not None:
                if (
                    punctuation.delimiter_mode > 0
                    and not previous.has_trailing_delimiter()
                    and not is_last
                ):
                    segment.items.append(Delimiter(punctuation.symbol))
                else:
                    logger.debug("No delimiter for standalone \"%s\"", token)
                return segment

            currency = self.preferences.currencies.get(character)
            if currency is not None:
                if is_first:
                    segment.items.append(self._ambiguous_currency(currency))
                else:
                    segment.items.append(self._currency(currency, previous.lemma_text))
                return segment

        segment.items.append(self._word(token))
        return segment

    def _resolve_word(
        self,
        dissection: Dissection,
        previous: TranscriptionSegment,
        is_last: bool,
    ) -> TranscriptionSegment:
        leading = dissection.leading
        core = dissection.core
        trailing = dissection.trailing
        items: List[SegmentItem] = []
        numeral: Optional[NumeralReadings] = None

        # Leading punctuation
        rule = self.preferences.punctuation.highest(leading)
        if rule is not None:
            if rule.character == QUOTATION_MARK and QUOTATION_MARK in trailing:
                logger.debug("Quoted word \"%s\", no leading delimiter", core)
            elif rule.delimiter_mode > 0 and not previous.has_trailing_delimiter():
                items.append(Delimiter(rule.symbol))

        # Core
        if contains_digit(core):
            leading, core, numeral = self._resolve_numeral(leading, core, items)
        else:
            items.append(self._word(core))

        # Trailing currency
        if trailing:
            currency = self.preferences.currencies.get(trailing[0])
            if currency is not None:
                items.append(self._currency(currency, core))
                core += currency.character
                trailing = trailing[1:]

        # Trailing punctuation; the quote check looks at the original leading run.
        rule = self.preferences.punctuation.highest(dissection.trailing)
        if rule is not None:
            if rule.character == QUOTATION_MARK and QUOTATION_MARK in dissection.leading:
                logger.debug("Quoted word \"%s\", no trailing delimiter", core)
            elif rule.delimiter_mode > 0 and not is_last:
                items.append(Delimiter(rule.symbol))

        return TranscriptionSegment(
            leading_text=leading,
            lemma_text=core,
            trailing_text=trailing,
            items=items,
            numeral=numeral,
        )

    def _resolve_numeral(
        self,
        leading: str,
        core: str,
        items: List[SegmentItem],
    ) -> tuple[str, str, Optional[NumeralReadings]]:
        """Append numeral items for ``core``; return the adjusted leading text and core."""
        try:
            parsed = parse_numeral(core)
        except InvalidNumeralFormat as exc:
            logger.info("%s, looking it up as written", exc)
            items.append(self._word(core))
            return leading, core, None

        negative = ends_with_minus(leading)
        if is_year_candidate(parsed, negative=negative):
            year_items = self._words(spell_year(parsed.integer))
            common_items = self._words(spell(parsed.integer))
            items.extend(year_items)
            logger.debug("Numeral %s may be a year, both readings kept", core)
            return leading, core, NumeralReadings(year_items, common_items)

        if negative:
            core = leading[-1] + core
            leading = leading[:-1]
            items.append(self._word(MINUS))

        items.extend(self._words(spell(parsed.integer, parsed.decimal)))
        return leading, core, None
