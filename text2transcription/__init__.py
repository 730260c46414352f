"""Text2Transcription: English text to broad phonetic transcription.

WHY: Learners and teachers of English phonetics need a quick way to turn
running text into a broad transcription without looking up every word by
hand. Numerals, currency symbols, punctuation and function words with weak
and strong forms all need special treatment before a dictionary lookup
makes sense.

HOW: Four-stage pipeline: tokenize (whitespace split), dissect (punctuation
vs. lemma), resolve (numerals, currencies, delimiters, lexicon lookups),
post-process (word class conflicts, weak form of "the"). The result is an
ordered list of TranscriptionSegment objects that formatters render.

RULES:
- The lexicon and user preferences are injected, never global
- All formatters consume the same segment list
- The segment list is the stable contract between engine and output layers
"""

__version__ = "0.1.0"
