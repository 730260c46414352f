"""Unit tests for the IR dataclasses and the registries.

WHY: DatabaseEntry's selection rule decides which transcription a user
sees first, and the registries decide how abbreviations, punctuation and
currency symbols are resolved. Both are shared by every later stage.

HOW: Tests are organized by class:
  - TestTranscriptionType: ids and labels
  - TestDatabaseEntrySelection: the insertion-time selection rule
  - TestDatabaseEntry: select(), listeners and inspection helpers
  - TestSegment: labels, delimiters and the year/common switch
  - TestRegistries: abbreviation lookup, punctuation priority, preferences
"""

import itertools

import pytest

from text2transcription import config
from text2transcription.core.ir import (
    CurrencyRule,
    DatabaseEntry,
    Delimiter,
    NumeralReadings,
    PunctuationRule,
    TranscriptionCandidate,
    TranscriptionSegment,
    TranscriptionType,
    Variety,
    WordItem,
)
from text2transcription.core.registry import AbbreviableRegistry, Preferences


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _candidate(preferences, candidate_id, phonetic, kind=TranscriptionType.NONE,
               word_class="comN", variety="BrE", lemma="word"):
    return TranscriptionCandidate(
        id=candidate_id,
        lemma=lemma,
        phonetic=phonetic,
        transcription_type=kind,
        word_class=preferences.word_class(word_class),
        variety=preferences.variety(variety),
    )


def _entry(preferences, lemma="word"):
    return DatabaseEntry(lemma, preferences.preferred_variety)


# ---------------------------------------------------------------------------
# TestTranscriptionType
# ---------------------------------------------------------------------------


class TestTranscriptionType:

    def test_from_id(self):
        assert TranscriptionType.from_id(0) is TranscriptionType.NONE
        assert TranscriptionType.from_id(2) is TranscriptionType.STRONG

    def test_unknown_id_raises(self):
        with pytest.raises(ValueError):
            TranscriptionType.from_id(9)

    def test_labels(self):
        assert TranscriptionType.WEAK.abbreviation == "Weak"
        assert TranscriptionType.STRONG.description == "Strong Form"


# ---------------------------------------------------------------------------
# TestDatabaseEntrySelection
# ---------------------------------------------------------------------------


class TestDatabaseEntrySelection:
    """add_candidate() re-evaluates the selection on every insert."""

    def test_first_candidate_is_selected(self, preferences):
        entry = _entry(preferences)
        first = _candidate(preferences, 1, "a", variety="AmE")
        entry.add_candidate(first)
        assert entry.selected == first

    def test_preferred_variety_replaces_other_variety(self, preferences):
        entry = _entry(preferences)
        entry.add_candidate(_candidate(preferences, 1, "a", variety="AmE"))
        preferred = _candidate(preferences, 2, "b", variety="BrE")
        entry.add_candidate(preferred)
        assert entry.selected == preferred

    def test_other_variety_never_replaces_preferred(self, preferences):
        entry = _entry(preferences)
        preferred = _candidate(preferences, 1, "a", variety="BrE")
        entry.add_candidate(preferred)
        entry.add_candidate(_candidate(preferences, 2, "b", kind=TranscriptionType.WEAK, variety="AmE"))
        assert entry.selected == preferred

    def test_preferred_weak_form_replaces_preferred_strong_form(self, preferences):
        entry = _entry(preferences)
        entry.add_candidate(_candidate(preferences, 1, "ðiː", kind=TranscriptionType.STRONG))
        weak = _candidate(preferences, 2, "ðə", kind=TranscriptionType.WEAK)
        entry.add_candidate(weak)
        assert entry.selected == weak

    def test_strong_form_does_not_replace_weak_form(self, preferences):
        entry = _entry(preferences)
        weak = _candidate(preferences, 1, "ðə", kind=TranscriptionType.WEAK)
        entry.add_candidate(weak)
        entry.add_candidate(_candidate(preferences, 2, "ðiː", kind=TranscriptionType.STRONG))
        assert entry.selected == weak

    def test_last_preferred_weak_form_wins(self, preferences):
        entry = _entry(preferences)
        entry.add_candidate(_candidate(preferences, 1, "ðə", kind=TranscriptionType.WEAK))
        second = _candidate(preferences, 2, "ði", kind=TranscriptionType.WEAK)
        entry.add_candidate(second)
        assert entry.selected == second

    def test_entry_without_preferred_variety_keeps_first(self, preferences):
        entry = DatabaseEntry("word")
        first = _candidate(preferences, 1, "a")
        entry.add_candidate(first)
        entry.add_candidate(_candidate(preferences, 2, "b", kind=TranscriptionType.WEAK))
        assert entry.selected == first

    @pytest.mark.parametrize("other_variety_kind", [TranscriptionType.STRONG, TranscriptionType.WEAK])
    def test_preferred_weak_form_wins_in_any_insertion_order(self, preferences, other_variety_kind):
        candidates = [
            _candidate(preferences, 1, "ðiː", kind=other_variety_kind, variety="AmE"),
            _candidate(preferences, 2, "ðiː", kind=TranscriptionType.STRONG),
            _candidate(preferences, 3, "ðə", kind=TranscriptionType.WEAK),
        ]
        for order in itertools.permutations(candidates):
            entry = _entry(preferences)
            for candidate in order:
                entry.add_candidate(candidate)
            assert entry.selected.id == 3, [c.id for c in order]


# ---------------------------------------------------------------------------
# TestDatabaseEntry
# ---------------------------------------------------------------------------


class TestDatabaseEntry:

    def test_lemma_is_lower_cased(self, preferences):
        assert _entry(preferences, "The").lemma == "the"

    def test_empty_entry(self, preferences):
        entry = _entry(preferences)
        assert entry.is_empty()
        assert entry.selected is None
        assert entry.all_candidates() == []
        assert entry.describe().endswith("Empty!")

    def test_select_foreign_candidate_raises(self, preferences):
        entry = _entry(preferences)
        entry.add_candidate(_candidate(preferences, 1, "a"))
        with pytest.raises(ValueError):
            entry.select(_candidate(preferences, 2, "b"))

    def test_listener_notified_on_change_only(self, preferences):
        entry = _entry(preferences)
        first = _candidate(preferences, 1, "a")
        second = _candidate(preferences, 2, "b", variety="AmE")
        entry.add_candidate(first)
        entry.add_candidate(second)

        seen = []
        entry.add_listener(lambda e, candidate: seen.append(candidate.phonetic))
        entry.select(second)
        entry.select(second)
        assert seen == ["b"]

    def test_failing_listener_does_not_stop_others(self, preferences):
        entry = _entry(preferences)
        seen = []

        def broken(e, candidate):
            raise RuntimeError("listener bug")

        entry.add_listener(broken)
        entry.add_listener(lambda e, candidate: seen.append(candidate.id))
        entry.add_candidate(_candidate(preferences, 7, "a"))
        assert seen == [7]

    def test_removed_listener_is_silent(self, preferences):
        entry = _entry(preferences)
        seen = []

        def listener(e, candidate):
            seen.append(candidate)

        entry.add_listener(listener)
        entry.remove_listener(listener)
        entry.add_candidate(_candidate(preferences, 1, "a"))
        assert seen == []

    def test_grouping_by_word_class_and_variety(self, preferences):
        entry = _entry(preferences)
        entry.add_candidate(_candidate(preferences, 1, "maɪt", word_class="modAux"))
        entry.add_candidate(_candidate(preferences, 2, "maɪt", word_class="comN"))
        assert entry.matches_multiple_word_classes()
        modal = preferences.word_class("modAux")
        assert [c.id for c in entry.candidates(modal, preferences.preferred_variety)] == [1]
        assert entry.candidates(modal, preferences.variety("AmE")) is None
        assert entry.candidate_by_id(2).word_class.abbreviation == "comN"
        assert entry.candidate_by_id(3) is None

    def test_merge_keeps_order(self, preferences):
        singular = _entry(preferences, "dollar")
        singular.add_candidate(_candidate(preferences, 1, "ˈdɒlə", lemma="dollar"))
        plural = _entry(preferences, "dollars")
        plural.add_candidate(_candidate(preferences, 2, "ˈdɒləz", lemma="dollars"))
        singular.merge(plural)
        assert [c.phonetic for c in singular.all_candidates()] == ["ˈdɒlə", "ˈdɒləz"]
        assert singular.selected.phonetic == "ˈdɒlə"

    def test_persisted_flag(self, preferences):
        assert _candidate(preferences, 3, "a").is_persisted
        assert not _candidate(preferences, -1, "a").is_persisted


# ---------------------------------------------------------------------------
# TestSegment
# ---------------------------------------------------------------------------


class TestSegment:

    def test_unknown_label(self, preferences):
        item = WordItem(_entry(preferences, "xyzzy"))
        assert item.label == "Unknown"
        assert item.phonetic is None

    def test_trailing_delimiter(self):
        segment = TranscriptionSegment(items=[Delimiter("|")])
        assert segment.has_trailing_delimiter()
        assert segment.is_delimiter_segment()
        assert not TranscriptionSegment().has_trailing_delimiter()

    def test_year_switch_keeps_currency_item(self, preferences):
        def item(phonetic):
            entry = _entry(preferences, phonetic)
            entry.add_candidate(_candidate(preferences, 1, phonetic, lemma=phonetic))
            return WordItem(entry)

        year = [item("fifteen"), item("hundred")]
        common = [item("one"), item("thousand"), item("five"), item("hundred")]
        currency = item("dollars")
        segment = TranscriptionSegment(
            lemma_text="1500$",
            items=list(year) + [currency, Delimiter("|")],
            numeral=NumeralReadings(year, common),
        )

        segment.use_year_reading(False)
        assert list(segment.iter_labels()) == [
            "one", "thousand", "five", "hundred", "dollars", "|",
        ]
        segment.use_year_reading(True)
        assert list(segment.iter_labels()) == ["fifteen", "hundred", "dollars", "|"]

    def test_year_switch_without_numeral_raises(self):
        with pytest.raises(ValueError):
            TranscriptionSegment(lemma_text="cat").use_year_reading(False)

    def test_punctuation_rule_validation(self):
        with pytest.raises(ValueError):
            PunctuationRule(",,", 1)
        with pytest.raises(ValueError):
            PunctuationRule(",", 3)
        assert PunctuationRule(".", 2).symbol == "||"
        assert PunctuationRule("-", 0).symbol == ""

    def test_currency_rule_validation(self):
        with pytest.raises(ValueError):
            CurrencyRule("US$", "dollar", "dollars")


# ---------------------------------------------------------------------------
# TestRegistries
# ---------------------------------------------------------------------------


class TestRegistries:

    def test_lookup_abbreviation_ignores_case(self, preferences):
        assert preferences.variety(" bre ").abbreviation == "BrE"

    def test_lookup_name_is_exact(self, preferences):
        assert preferences.variety("British English").abbreviation == "BrE"
        assert preferences.variety("british english") is None

    def test_lookup_by_id(self, preferences):
        assert preferences.word_class(4).abbreviation == "det"
        assert preferences.word_class(99) is None

    def test_duplicate_id_rejected(self):
        with pytest.raises(ValueError):
            AbbreviableRegistry([Variety(1, "A", "a"), Variety(1, "B", "b")])

    def test_highest_delimiter_mode_wins(self, preferences):
        assert preferences.punctuation.highest(",.").character == "."

    def test_first_rule_wins_ties(self, preferences):
        assert preferences.punctuation.highest("\",").character == "\""

    def test_unknown_characters_ignored(self, preferences):
        assert preferences.punctuation.highest("()") is None
        assert "(" not in preferences.punctuation
        assert "$" in preferences.currencies

    def test_unregistered_preferred_variety_rejected(self, preferences):
        with pytest.raises(ValueError):
            Preferences(
                preferred_variety=Variety(9, "Klingon", "tlh"),
                varieties=preferences.varieties,
                word_classes=preferences.word_classes,
                punctuation=preferences.punctuation,
                currencies=preferences.currencies,
            )

    def test_with_variety(self, preferences):
        american = preferences.with_variety(preferences.variety("AmE"))
        assert american.preferred_variety.abbreviation == "AmE"
        assert preferences.preferred_variety.abbreviation == "BrE"

    def test_unknown_configured_variety(self):
        with pytest.raises(ValueError, match="Unknown variety"):
            config.load_preferences("Klingon")
