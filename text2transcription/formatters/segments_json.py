"""Segment-level JSON export with every candidate and the current selection.

WHY: Tools that let a user review a transcription need more than the
final string: which token produced which item, which items are in a
word-class conflict, and which other candidates could be selected. This
document carries all of it.

HOW: Each segment becomes an object with its leading/lemma/trailing text
and its items. Word items list every candidate of their entry with a
``selected`` flag; delimiter items carry their symbol. Year-ambiguous
numerals add both readings. The document is validated with jsonschema
before returning.

RULES:
- Segment order and item order match the transcription exactly
- Exactly one candidate per non-empty word item has selected=true
- content_word is null for empty ("Unknown") items
- Validate output against segments_schema.json; raise on failure
- Output suffix: "-segments.json"
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import jsonschema

from text2transcription.core.ir import (
    Delimiter,
    NumeralReadings,
    SegmentItem,
    TranscriptionCandidate,
    TranscriptionSegment,
    WordItem,
)
from text2transcription.formatters.base import BaseFormatter, FormatterOutput
from text2transcription.formatters.plain_text import render_plain_text

_SCHEMA_PATH = Path(__file__).resolve().parent / "segments_schema.json"

_CACHED_SCHEMA: Optional[dict] = None

DOCUMENT_VERSION = 1


def _get_schema() -> dict:
    """Load and cache the segments document schema."""
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


def _candidate_to_dict(candidate: TranscriptionCandidate, selected: bool) -> Dict[str, Any]:
    return {
        "id": candidate.id,
        "phonetic": candidate.phonetic,
        "type": candidate.transcription_type.abbreviation,
        "word_class": candidate.word_class.abbreviation,
        "variety": candidate.variety.abbreviation,
        "selected": selected,
    }


def word_item_to_dict(item: WordItem) -> Dict[str, Any]:
    """JSON form of one word item, candidates included."""
    selected = item.entry.selected
    return {
        "kind": "word",
        "label": item.label,
        "lemma": item.lemma,
        "conflict": item.conflict,
        "content_word": selected.is_content_word if selected is not None else None,
        "candidates": [
            _candidate_to_dict(candidate, candidate == selected)
            for candidate in item.entry.all_candidates()
        ],
    }


def _item_to_dict(item: SegmentItem) -> Dict[str, Any]:
    if isinstance(item, Delimiter):
        return {"kind": "delimiter", "label": item.symbol, "enclosing": item.enclosing}
    return word_item_to_dict(item)


def _numeral_to_dict(numeral: Optional[NumeralReadings]) -> Optional[Dict[str, Any]]:
    if numeral is None:
        return None
    return {
        "year_active": numeral.year_active,
        "year": [item.label for item in numeral.year_items],
        "common": [item.label for item in numeral.common_items],
    }


def segments_to_document(segments: Sequence[TranscriptionSegment]) -> Dict[str, Any]:
    """Build (without validating) the segments document."""
    return {
        "version": DOCUMENT_VERSION,
        "transcription": render_plain_text(segments),
        "segments": [
            {
                "leading": segment.leading_text,
                "lemma": segment.lemma_text,
                "trailing": segment.trailing_text,
                "items": [_item_to_dict(item) for item in segment.items],
                "numeral": _numeral_to_dict(segment.numeral),
            }
            for segment in segments
        ],
    }


class SegmentsJsonFormatter(BaseFormatter):
    """Formatter that exports segments, items and candidates as JSON."""

    @property
    def name(self) -> str:
        return "Segments JSON"

    def format(self, segments: Sequence[TranscriptionSegment]) -> List[FormatterOutput]:
        """Render and validate the segments document.

        Raises:
            jsonschema.ValidationError: If the document does not conform
                to segments_schema.json.
        """
        document = segments_to_document(segments)
        jsonschema.validate(instance=document, schema=_get_schema())
        return [
            FormatterOutput(
                suffix="-segments.json",
                content=json.dumps(document, ensure_ascii=False, indent=2),
                media_type="application/json",
            )
        ]
