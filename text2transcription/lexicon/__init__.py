"""Lexicon collaborators: the abstract interface and an in-memory store.

Callers usually want ``load_lexicon(path, preferences)`` for a JSON bundle
or ``InMemoryLexicon(preferences)`` to build one in code.
"""

from __future__ import annotations

from text2transcription.lexicon.base import Lexicon
from text2transcription.lexicon.loader import load_lexicon
from text2transcription.lexicon.memory import InMemoryLexicon

__all__ = ["InMemoryLexicon", "Lexicon", "load_lexicon"]
