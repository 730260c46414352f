"""transcribe(): the single entry point from text to transcription segments.

WHY: Callers (CLI, HTTP jobs, tests) want one call that takes raw text
and returns the finished, post-processed segment list, with progress
reported along the way because lexicon lookups block.

HOW: Normalize whitespace, split into tokens, resolve each token against
the segment finished before it, wrap the list in enclosing "/" segments,
then run the post-processor. Segments are handed to ``on_segment`` as
soon as they are finished.

RULES:
- Tokens are processed strictly in order; each depends on the previous
- Progress is reported after each token and after each post-processing step
- LexiconFailure aborts the call; segments already passed to on_segment
  stay with the caller
- Empty input yields only the opening and closing "/" segments
- With common_numerals, every year-ambiguous numeral switches to the
  common reading before post-processing, so "the" and the conflict flags
  see the items that are finally shown
"""

from __future__ import annotations

import logging
import re
from typing import Callable, List, Optional

from text2transcription.core.ir import TranscriptionSegment
from text2transcription.core.postprocess import (
    STAGE_TRANSCRIBING,
    PostProcessor,
    ProgressCallback,
    ProgressEvent,
)
from text2transcription.core.registry import Preferences
from text2transcription.core.resolver import TranscriptionResolver, enclosing_segment
from text2transcription.lexicon.base import Lexicon

logger = logging.getLogger(__name__)

SegmentCallback = Callable[[TranscriptionSegment], None]

_WHITESPACE_RUN = re.compile(r"\s{2,}")


def normalize(text: str) -> str:
    """Trim ``text`` and collapse whitespace runs to a single space."""
    return _WHITESPACE_RUN.sub(" ", text.strip())


def tokenize(text: str) -> List[str]:
    normalized = normalize(text)
    if not normalized:
        return []
    return re.split(r"\s", normalized)


def use_common_numerals(segments: List[TranscriptionSegment]) -> int:
    """Switch every year-ambiguous numeral to its common reading; returns the count."""
    switched = 0
    for segment in segments:
        if segment.numeral is not None and segment.numeral.year_active:
            segment.use_year_reading(False)
            switched += 1
    return switched


class Transcriber:
    """Drive resolver and post-processor over a whole input text.

    Args:
        lexicon: Where lemmas are looked up.
        preferences: Preferred variety plus punctuation/currency tables.
        the_word_class: Abbreviation of the word class holding the weak
            forms of "the".
    """

    def __init__(
        self,
        lexicon: Lexicon,
        preferences: Preferences,
        the_word_class: str = "det",
    ) -> None:
        self.lexicon = lexicon
        self.preferences = preferences
        self.resolver = TranscriptionResolver(lexicon, preferences)
        self.post_processor = PostProcessor(preferences, the_word_class=the_word_class)

    def transcribe(
        self,
        text: str,
        on_progress: Optional[ProgressCallback] = None,
        on_segment: Optional[SegmentCallback] = None,
        common_numerals: bool = False,
    ) -> List[TranscriptionSegment]:
        """Transcribe ``text`` into an ordered list of segments.

        ``common_numerals`` reads numerals such as "1800" as "one thousand
        eight hundred" instead of "eighteen hundred".

        Raises:
            LexiconFailure: If the lexicon fails; processing stops at once.
        """
        tokens = tokenize(text)
        logger.info("Transcribing %d tokens: %s", len(tokens), normalize(text))

        segments: List[TranscriptionSegment] = []

        def emit(segment: TranscriptionSegment) -> None:
            segments.append(segment)
            if on_segment is not None:
                on_segment(segment)

        emit(enclosing_segment())
        total = len(tokens)
        for index, token in enumerate(tokens):
            if on_progress is not None:
                on_progress(ProgressEvent(
                    stage=STAGE_TRANSCRIBING,
                    fraction=(index + 1) / total,
                    message="Transcribing segment {} of {} ...".format(index + 1, total),
                ))
            logger.debug("Analysing segment %d: \"%s\"", index, token)
            emit(self.resolver.resolve(
                token,
                previous=segments[-1],
                is_first=index == 0,
                is_last=index == total - 1,
            ))
        emit(enclosing_segment())

        if common_numerals:
            switched = use_common_numerals(segments)
            logger.debug("Switched %d numeral(s) to the common reading", switched)

        self.post_processor.run(segments, on_progress=on_progress)
        logger.info("Transcription finished with %d segments", len(segments))
        return segments


def transcribe(
    text: str,
    lexicon: Lexicon,
    preferences: Preferences,
    on_progress: Optional[ProgressCallback] = None,
    on_segment: Optional[SegmentCallback] = None,
    common_numerals: bool = False,
) -> List[TranscriptionSegment]:
    """One-shot convenience wrapper around Transcriber.transcribe()."""
    return Transcriber(lexicon, preferences).transcribe(
        text, on_progress=on_progress, on_segment=on_segment,
        common_numerals=common_numerals,
    )
