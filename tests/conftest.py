"""Shared test fixtures for the text2transcription test suite.

WHY: Most test modules need the same preferences and the same small
lexicon. Centralizing fixtures here avoids duplication and keeps every
test on the word list that ships with the project.

HOW: Fixtures build Preferences from the seed tables in config and load
sample-lexicon.json from the repository root. transcribe_text is a
shortcut that returns the plain transcription string.

RULES:
- The sample lexicon is the single source of phonetic data in tests
- Each test gets a fresh lexicon (no shared mutable state)
- BrE is the preferred variety unless a test asks for another one
"""

from pathlib import Path

import pytest

from text2transcription import config
from text2transcription.core.transcriber import Transcriber
from text2transcription.formatters.plain_text import render_plain_text
from text2transcription.lexicon import load_lexicon

SAMPLE_LEXICON_PATH = Path(__file__).resolve().parent.parent / "sample-lexicon.json"


@pytest.fixture
def preferences():
    """Seed preferences with British English preferred."""
    return config.load_preferences("BrE")


@pytest.fixture
def american_preferences():
    return config.load_preferences("AmE")


@pytest.fixture
def lexicon(preferences):
    """The sample lexicon, freshly loaded for each test."""
    return load_lexicon(SAMPLE_LEXICON_PATH, preferences)


@pytest.fixture
def transcriber(lexicon, preferences):
    return Transcriber(lexicon, preferences)


@pytest.fixture
def transcribe_text(transcriber):
    """Return a function mapping input text to the plain transcription."""
    def _transcribe(text):
        return render_plain_text(transcriber.transcribe(text))
    return _transcribe
