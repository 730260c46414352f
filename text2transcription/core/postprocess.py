"""Second pass over finished segments: conflicts and the weak form of "the".

WHY: Two decisions need the whole segment list. Whether an item is
ambiguous between word classes is only worth flagging once everything is
resolved, and "the" is pronounced /ðə/ before consonants but /ði/ before
vowels, which depends on the segment after it.

HOW: Walk every segment once, in order. For each word item, flag a
conflict when its entry spans several word classes. For items whose lemma
is "the", read the first selected phonetic string of the next segment and
select the matching weak form of the determiner in the preferred variety.

RULES:
- Selection changes only; segments are never removed or reordered
- Default weak form ends in "ə"; before a vocalic onset it ends in "i"
- No following phonetic string, or no weak forms available → conflict
- Stress marks are skipped when testing the next onset
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from text2transcription.core.characters import starts_with_vocalic_sound
from text2transcription.core.ir import (
    TranscriptionSegment,
    TranscriptionType,
    WordItem,
)
from text2transcription.core.registry import Preferences

logger = logging.getLogger(__name__)

THE = "the"
SCHWA_ENDING = "ə"
I_ENDING = "i"


@dataclass(frozen=True)
class ProgressEvent:
    """One progress notification of a transcribe() call.

    Attributes:
        stage: "transcribing" or "post-processing".
        fraction: Completion of the current stage in (0, 1].
        message: Human-readable status line.
    """

    stage: str
    fraction: float
    message: str


ProgressCallback = Callable[[ProgressEvent], None]

STAGE_TRANSCRIBING = "transcribing"
STAGE_POST_PROCESSING = "post-processing"


def next_phonetic(segments: Sequence[TranscriptionSegment], index: int) -> str:
    """First selected phonetic string of the segment after ``index``, or ""."""
    if index + 1 >= len(segments):
        return ""
    for item in segments[index + 1].word_items():
        if not item.entry.is_empty():
            phonetic = item.phonetic
            if phonetic:
                return phonetic
    return ""


class PostProcessor:
    """Flag word-class conflicts and pick the weak form of "the"."""

    def __init__(self, preferences: Preferences, the_word_class: str = "det") -> None:
        self.preferences = preferences
        self.the_word_class = the_word_class

    def run(
        self,
        segments: List[TranscriptionSegment],
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[TranscriptionSegment]:
        """Mutate selection and conflict state of ``segments`` in place."""
        total = len(segments)
        for index, segment in enumerate(segments):
            if on_progress is not None:
                on_progress(ProgressEvent(
                    stage=STAGE_POST_PROCESSING,
                    fraction=(index + 1) / total,
                    message="Doing post-processing {} of {} ...".format(index + 1, total),
                ))
            if segment.is_delimiter_segment():
                continue
            for item in segment.word_items():
                if item.entry.matches_multiple_word_classes():
                    item.conflict = True
                if item.lemma == THE:
                    self._resolve_the(item, next_phonetic(segments, index))
        return segments

    def _resolve_the(self, item: WordItem, following: str) -> None:
        word_class = self.preferences.word_class(self.the_word_class)
        candidates = None
        if word_class is not None:
            candidates = item.entry.candidates(word_class, self.preferences.preferred_variety)
        weak = [
            candidate for candidate in candidates or ()
            if candidate.transcription_type is TranscriptionType.WEAK
        ]

        if not following or not weak:
            logger.debug(
                "Cannot pick a weak form of \"the\" (next: \"%s\", weak forms: %d)",
                following, len(weak),
            )
            item.conflict = True
            return

        choice = next((c for c in weak if c.phonetic.endswith(SCHWA_ENDING)), None)
        if starts_with_vocalic_sound(following):
            choice = next((c for c in weak if c.phonetic.endswith(I_ENDING)), choice)

        if choice is not None:
            item.entry.select(choice)
            logger.debug("Selected /%s/ for \"the\" before /%s/", choice.phonetic, following)
