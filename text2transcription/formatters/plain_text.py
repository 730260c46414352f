"""Plain text transcription: every item label separated by a space.

WHY: The quickest way to use a transcription is to paste it somewhere.
This is the text a user copies after reviewing the result.

HOW: Walk all segments in order and join the label of each item (the
selected phonetic string, "Unknown", or the delimiter symbol) with
single spaces.

RULES:
- Output looks like "/ ðə kæt | sæt /"
- Segments without items contribute nothing (no double spaces)
- Exactly one trailing newline
- Output suffix: "-transcription.txt"
- Media type: "text/plain"
"""

from __future__ import annotations

from typing import List, Sequence

from text2transcription.core.ir import TranscriptionSegment
from text2transcription.formatters.base import BaseFormatter, FormatterOutput


def render_plain_text(segments: Sequence[TranscriptionSegment]) -> str:
    """Join all item labels of ``segments`` with single spaces."""
    return " ".join(label for segment in segments for label in segment.iter_labels())


class PlainTextFormatter(BaseFormatter):
    """Formatter that produces the copyable one-line transcription."""

    @property
    def name(self) -> str:
        return "Plain Text"

    def format(self, segments: Sequence[TranscriptionSegment]) -> List[FormatterOutput]:
        return [
            FormatterOutput(
                suffix="-transcription.txt",
                content=render_plain_text(segments) + "\n",
                media_type="text/plain",
            )
        ]
