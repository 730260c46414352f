"""Configuration constants, seed tables and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update and override. The varieties, word classes, punctuation rules and
currencies are plain data structures, not buried in logic, so adding a
variety or a currency is a one-line change.

HOW: python-dotenv loads the .env file on import. Settings are module
constants read with os.getenv. load_preferences() turns the seed tables
into the typed registries the engine consumes.

RULES:
- All defaults can be overridden via environment variables
- Seed ids are stable; lexicon bundles refer to abbreviations, not ids
- Unknown preferred variety raises ValueError with a clear message
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from dotenv import load_dotenv

from text2transcription.core.ir import CurrencyRule, PunctuationRule, Variety, WordClass
from text2transcription.core.registry import (
    AbbreviableRegistry,
    CurrencyTable,
    Preferences,
    PunctuationTable,
)

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

PREFERRED_VARIETY = os.getenv("T2T_PREFERRED_VARIETY", "BrE")
LEXICON_PATH = os.getenv("T2T_LEXICON_PATH") or None
LOG_LEVEL = os.getenv("T2T_LOG_LEVEL", "WARNING").upper()
THE_WORD_CLASS = os.getenv("T2T_THE_WORD_CLASS", "det")

# ---------------------------------------------------------------------------
# Seed tables
# ---------------------------------------------------------------------------

VARIETIES: list[Variety] = [
    Variety(1, "British English", "BrE"),
    Variety(2, "American English", "AmE"),
    Variety(3, "Australian English", "AuE"),
]

WORD_CLASSES: list[WordClass] = [
    WordClass(1, "Adjective", "adj", True),
    WordClass(2, "Adverb", "rb", True),
    WordClass(3, "Conjunction", "conj", False),
    WordClass(4, "Determiner", "det", False),
    WordClass(5, "Exclamation", "excl", True),
    WordClass(6, "Negator", "neg", False),
    WordClass(7, "Proper Noun", "propN", True),
    WordClass(8, "Common Noun", "comN", True),
    WordClass(9, "Pronoun", "proN", False),
    WordClass(10, "Numeral", "num", False),
    WordClass(11, "Preposition", "prep", False),
    WordClass(12, "To-Infinitive Marker", "to-inf", False),
    WordClass(13, "Lexical Verb", "lexV", True),
    WordClass(14, "Modal Auxiliary", "modAux", False),
    WordClass(15, "Primary Auxiliary", "primAux", False),
    WordClass(16, "Catenative Verbs", "catV", False),
]

PUNCTUATION: list[PunctuationRule] = [
    PunctuationRule(",", 1),
    PunctuationRule(":", 1),
    PunctuationRule("\"", 1),
    PunctuationRule("-", 0),  # hyphen-minus
    PunctuationRule("‐", 1),  # hyphen
    PunctuationRule("‑", 1),  # non-breaking hyphen
    PunctuationRule("‒", 1),  # figure dash
    PunctuationRule("–", 1),  # en dash
    PunctuationRule("—", 1),  # em dash
    PunctuationRule("―", 1),  # horizontal bar
    PunctuationRule("−", 0),  # minus sign
    PunctuationRule(".", 2),
    PunctuationRule("!", 2),
    PunctuationRule("?", 2),
]

CURRENCIES: list[CurrencyRule] = [
    CurrencyRule("$", "dollar", "dollars"),
    CurrencyRule("€", "euro", "euros"),
    CurrencyRule("£", "pound", "pounds"),
]


def load_preferences(variety: Optional[str] = None) -> Preferences:
    """Build Preferences from the seed tables.

    WHY: Every transcriber needs the registries plus one preferred
    variety; the variety comes from the caller (CLI flag, API request)
    or from T2T_PREFERRED_VARIETY.

    HOW: Builds fresh registries from the seed tables and resolves the
    variety by abbreviation or name.

    RULES:
    - Raises ValueError if the variety is unknown
    - Never falls back silently to another variety
    """
    varieties = AbbreviableRegistry(VARIETIES)
    key = variety if variety is not None else PREFERRED_VARIETY
    preferred = varieties.lookup(key)
    if preferred is None:
        known = ", ".join(v.abbreviation for v in varieties)
        raise ValueError(
            "Unknown variety \"{}\". Choose one of: {}.".format(key, known)
        )
    return Preferences(
        preferred_variety=preferred,
        varieties=varieties,
        word_classes=AbbreviableRegistry(WORD_CLASSES),
        punctuation=PunctuationTable(PUNCTUATION),
        currencies=CurrencyTable(CURRENCIES),
    )


def log_level(verbose: bool = False) -> int:
    """Logging level for the CLI and server: DEBUG when verbose."""
    if verbose:
        return logging.DEBUG
    return getattr(logging, LOG_LEVEL, logging.WARNING)
