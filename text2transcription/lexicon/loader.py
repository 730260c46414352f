"""Load a JSON lexicon bundle into an InMemoryLexicon.

WHY: Users ship their word lists as files. A single, schema-checked JSON
format keeps hand-edited bundles from failing deep inside a transcription
with confusing errors.

HOW: Read the file, validate it with jsonschema against the bundled
lexicon_schema.json, then feed every transcription into
InMemoryLexicon.add_transcription(), resolving word class and variety
abbreviations through the preferences.

RULES:
- Unreadable or non-JSON files raise LexiconFailure (the store is broken)
- Schema violations raise jsonschema.ValidationError
- Unknown word class or variety abbreviations raise ValueError
- "type" defaults to "none" when omitted
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

import jsonschema

from text2transcription.core.errors import LexiconFailure
from text2transcription.core.ir import TranscriptionType
from text2transcription.core.registry import Preferences
from text2transcription.lexicon.memory import InMemoryLexicon

logger = logging.getLogger(__name__)

_SCHEMA_PATH = Path(__file__).resolve().parent / "lexicon_schema.json"

_CACHED_SCHEMA: Optional[dict] = None


def _get_schema() -> dict:
    """Load and cache the lexicon bundle schema."""
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


def _read_bundle(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise LexiconFailure("Cannot read lexicon {}: {}".format(path, exc)) from exc


def populate(lexicon: InMemoryLexicon, bundle: dict) -> int:
    """Validate ``bundle`` and add its transcriptions to ``lexicon``.

    Returns:
        Number of transcriptions added.

    Raises:
        jsonschema.ValidationError: If the bundle does not match the schema.
        ValueError: On unknown abbreviations or duplicate transcriptions.
    """
    jsonschema.validate(instance=bundle, schema=_get_schema())

    added = 0
    for entry in bundle["entries"]:
        for transcription in entry["transcriptions"]:
            lexicon.add_transcription(
                lemma=entry["lemma"],
                phonetic=transcription["phonetic"],
                transcription_type=TranscriptionType[transcription.get("type", "none").upper()],
                word_class=transcription["word_class"],
                variety=transcription["variety"],
            )
            added += 1
    return added


def load_lexicon(path: Union[str, Path], preferences: Preferences) -> InMemoryLexicon:
    """Build an InMemoryLexicon from the JSON bundle at ``path``.

    Raises:
        LexiconFailure: If the file cannot be read or is not JSON.
        jsonschema.ValidationError: If the bundle does not match the schema.
        ValueError: On unknown abbreviations or duplicate transcriptions.
    """
    path = Path(path)
    bundle = _read_bundle(path)
    lexicon = InMemoryLexicon(preferences)
    added = populate(lexicon, bundle)
    logger.info("Loaded %d transcriptions for %d lemmas from %s", added, len(lexicon), path)
    return lexicon
