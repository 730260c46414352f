"""Interlinear text: the original tokens aligned above their transcription.

WHY: Learners compare each written word with its pronunciation. Putting
the token directly above its phonetic string makes that comparison
possible in any monospaced viewer.

HOW: Each segment with items becomes one column. The top cell is the
segment's written text (leading + lemma + trailing), the bottom cell is
its labels joined by spaces. Both cells are padded to the wider of the
two, and columns are separated by two spaces.

RULES:
- Enclosing "/" segments have an empty top cell; standalone punctuation
  shows the punctuation above its delimiter
- Segments without items are skipped
- Lines carry no trailing whitespace
- Output suffix: "-interlinear.txt"
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from text2transcription.core.ir import TranscriptionSegment
from text2transcription.formatters.base import BaseFormatter, FormatterOutput

COLUMN_SEPARATOR = "  "


def _columns(segments: Sequence[TranscriptionSegment]) -> List[Tuple[str, str]]:
    columns = []
    for segment in segments:
        if not segment.has_transcription_items():
            continue
        written = segment.leading_text + segment.lemma_text + segment.trailing_text
        columns.append((written, " ".join(segment.iter_labels())))
    return columns


def render_interlinear(segments: Sequence[TranscriptionSegment]) -> str:
    top: List[str] = []
    bottom: List[str] = []
    for written, spoken in _columns(segments):
        width = max(len(written), len(spoken))
        top.append(written.ljust(width))
        bottom.append(spoken.ljust(width))
    return "{}\n{}\n".format(
        COLUMN_SEPARATOR.join(top).rstrip(),
        COLUMN_SEPARATOR.join(bottom).rstrip(),
    )


class InterlinearFormatter(BaseFormatter):
    """Formatter that aligns written tokens with their transcription."""

    @property
    def name(self) -> str:
        return "Interlinear Text"

    def format(self, segments: Sequence[TranscriptionSegment]) -> List[FormatterOutput]:
        return [
            FormatterOutput(
                suffix="-interlinear.txt",
                content=render_interlinear(segments),
                media_type="text/plain",
            )
        ]
