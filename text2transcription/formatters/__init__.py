"""Output formatter registry: format key to formatter class.

WHY: The CLI and the API need a single lookup to find the right
formatter by name. A central dict makes it trivial to add new formats:
create the formatter class, import it here, add one line.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["plain_text"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags and API requests)
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from text2transcription.formatters.interlinear import InterlinearFormatter
from text2transcription.formatters.plain_text import PlainTextFormatter
from text2transcription.formatters.segments_json import SegmentsJsonFormatter

if TYPE_CHECKING:
    from text2transcription.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "plain_text": PlainTextFormatter,
    "segments_json": SegmentsJsonFormatter,
    "interlinear": InterlinearFormatter,
}
