"""Abstract base formatter and output container.

WHY: Every output format consumes the same segment list but produces
different content. This base class enforces a consistent interface so
the CLI and the HTTP API can work with any formatter generically.

HOW: BaseFormatter is an ABC requiring a ``name`` property
and a ``format()`` method. FormatterOutput is a plain dataclass that
bundles a file suffix with its content and MIME type.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` returns a list, one item per produced file
- ``suffix`` starts with a hyphen, e.g. ``"-segments.json"``
- Formatters read selection state; they never change it
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Sequence

from text2transcription.core.ir import TranscriptionSegment


@dataclass
class FormatterOutput:
    """One output produced by a formatter.

    Attributes:
        suffix: File suffix appended to an output stem,
                e.g. ``"-transcription.txt"``.
        content: The rendered content.
        media_type: MIME type for the content, e.g. ``"application/json"``.
    """

    suffix: str
    content: str
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all output formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'Plain Text'."""

    @abstractmethod
    def format(self, segments: Sequence[TranscriptionSegment]) -> List[FormatterOutput]:
        """Render a finished, post-processed segment list.

        Args:
            segments: The output of Transcriber.transcribe(), enclosing
                      "/" segments included.

        Returns:
            List of FormatterOutput objects.
        """
