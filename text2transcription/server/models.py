"""Pydantic schemas for the transcription API.

WHY: Request bodies are validated before a job is created, and the same
models drive the OpenAPI document served at /docs, so clients see the
exact shape of jobs, outputs and lexicon entries.

HOW: One model per request or response body. OutputFormat is a closed
enum of formatter keys, so an unknown format fails validation (422)
instead of failing the job later.

RULES:
- Every field carries a Field(description=...)
- OutputFormat mirrors the keys of text2transcription.formatters.FORMATTERS
- Responses carry labels and strings, never IR objects
- Use Optional from typing, not PEP 604 unions, in model fields
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class OutputFormat(str, Enum):
    """Formatter keys accepted in a transcription request."""

    plain_text = "plain_text"
    segments_json = "segments_json"
    interlinear = "interlinear"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class TranscriptionRequest(BaseModel):
    """Text and settings for a new transcription job.

    RULES:
    - text must not be empty
    - variety defaults to the server's preferred variety
    - formats defaults to plain_text only
    """

    text: str = Field(
        min_length=1,
        description="English text to transcribe.",
    )
    variety: Optional[str] = Field(
        default=None,
        description="Preferred variety abbreviation (e.g. 'BrE', 'AmE').",
    )
    formats: Optional[List[OutputFormat]] = Field(
        default=None,
        description="Output formats to render. Defaults to plain_text.",
    )
    common_numerals: bool = Field(
        default=False,
        description="Read numerals between 100 and 2000 as common numerals, not years.",
    )

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "text": "The cat sat on the mat.",
                "variety": "BrE",
                "formats": ["plain_text", "segments_json"],
                "common_numerals": False,
            }
        ]
    }}


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class ProgressInfo(BaseModel):
    """Last progress event of a running job."""

    stage: str = Field(description="'transcribing' or 'post-processing'.")
    fraction: float = Field(description="Completion of the current stage, 0 to 1.")
    message: str = Field(description="Human-readable status line.")


class OutputInfo(BaseModel):
    """One rendered output of a completed job."""

    suffix: str = Field(description="File suffix of this output (e.g. '-segments.json').")
    media_type: str = Field(description="MIME type of the content.")
    content: str = Field(description="The rendered output.")


class JobResponse(BaseModel):
    """State of one job as seen by a polling client.

    RULES:
    - error is set for failed jobs only
    - outputs is only populated when status is 'completed'
    - segments_done counts finished segments, also after a failure
    """

    id: str = Field(description="Job id, a UUID4 hex string.")
    status: str = Field(description="Lifecycle state (see JobStatus).")
    created_at: float = Field(description="When the job was submitted, Unix time.")
    config: Dict[str, Any] = Field(description="Settings used for this job.")
    progress: Optional[ProgressInfo] = Field(
        default=None,
        description="Last progress event, absent before the job starts.",
    )
    segments_done: int = Field(description="Number of segments finished so far.")
    transcription: Optional[str] = Field(
        default=None,
        description="Plain transcription of the segments finished so far.",
    )
    error: Optional[str] = Field(
        default=None,
        description="Why the job failed; null otherwise.",
    )
    outputs: Optional[Dict[str, OutputInfo]] = Field(
        default=None,
        description="Rendered outputs keyed by format, only present when status is 'completed'.",
    )

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "id": "9b2f4c1e7a3d4e8f9c0b1a2d3e4f5a6b",
                "status": "completed",
                "created_at": 1760870400.0,
                "config": {"variety": "BrE", "formats": ["plain_text"], "common_numerals": False},
                "progress": {
                    "stage": "post-processing",
                    "fraction": 1.0,
                    "message": "Doing post-processing 5 of 5 ...",
                },
                "segments_done": 5,
                "transcription": "/ ðə kæt sæt /",
                "error": None,
                "outputs": {
                    "plain_text": {
                        "suffix": "-transcription.txt",
                        "media_type": "text/plain",
                        "content": "/ ðə kæt sæt /\n",
                    }
                },
            }
        ]
    }}


class JobCreatedResponse(BaseModel):
    """Body of the 201 answer to POST /transcriptions."""

    id: str = Field(description="Job id to poll at /transcriptions/{id}.")
    status: str = Field(description="Always 'pending' for a new job.")

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "id": "9b2f4c1e7a3d4e8f9c0b1a2d3e4f5a6b",
                "status": "pending",
            }
        ]
    }}


class CandidateInfo(BaseModel):
    """One transcription candidate stored for a lemma."""

    id: int = Field(description="Candidate id (positive when stored).")
    phonetic: str = Field(description="Broad phonetic transcription.")
    type: str = Field(description="'None', 'Weak' or 'Strong'.")
    word_class: str = Field(description="Word class abbreviation (e.g. 'det').")
    variety: str = Field(description="Variety abbreviation (e.g. 'BrE').")


class LexiconEntryResponse(BaseModel):
    """Everything the lexicon knows about one lemma.

    RULES:
    - candidates is empty for unknown lemmas (never a 404)
    - selected_id is the candidate a transcription would show by default
    """

    lemma: str = Field(description="Lower-cased lemma.")
    variety: str = Field(description="Preferred variety used for the default selection.")
    selected_id: Optional[int] = Field(
        default=None,
        description="Id of the default candidate, absent for unknown lemmas.",
    )
    word_class_conflict: bool = Field(
        description="True when the lemma has candidates in more than one word class.",
    )
    candidates: List[CandidateInfo] = Field(description="All stored candidates.")


class FormatInfo(BaseModel):
    """One entry of GET /formats."""

    key: str = Field(description="Value to put in the request's formats list.")
    name: str = Field(description="Display name of the formatter.")
    suffix: str = Field(description="File suffix produced (e.g. '-segments.json').")


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx answer raised through HTTPException."""

    detail: str = Field(description="What went wrong, in plain words.")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="'ok' while the service is up.", json_schema_extra={"example": "ok"})
    version: str = Field(description="Package version.", json_schema_extra={"example": "0.1.0"})
    lexicon_loaded: bool = Field(description="True when a lexicon is available for jobs.")
