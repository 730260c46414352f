"""HTTP front end for text2transcription, built on FastAPI.

WHY: Editors, course platforms and scripts need to submit text, follow
the transcription while it runs, and fetch the rendered outputs without
embedding the Python package. The OpenAPI document at /docs doubles as
the API reference.

HOW: A single FastAPI app exposes endpoints grouped by tags. POST
/transcriptions accepts a JSON request, creates a job, and runs the
transcription on a worker thread via BackgroundTasks. Other endpoints
provide polling, output download, lexicon lookup, format listing and
health. The lexicon is loaded once at startup from T2T_LEXICON_PATH, or
installed with set_lexicon(); request handlers never read files.

RULES:
- Every endpoint declares a summary, a description and its error codes
- Errors are raised as HTTPException and documented with ErrorResponse
- The job store is a module singleton; expired jobs are cleaned every 5 minutes
- Unknown varieties (400) and formats (422) are rejected before a job exists
- Without a lexicon, transcription and lookup endpoints return 503
"""

from __future__ import annotations

import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException, Query
from fastapi.responses import Response

from text2transcription import __version__, config
from text2transcription.core.ir import TranscriptionSegment
from text2transcription.core.postprocess import STAGE_POST_PROCESSING, ProgressEvent
from text2transcription.core.registry import Preferences
from text2transcription.core.resolver import enclosing_segment
from text2transcription.core.transcriber import Transcriber
from text2transcription.formatters import FORMATTERS
from text2transcription.formatters.plain_text import render_plain_text
from text2transcription.lexicon import InMemoryLexicon, load_lexicon
from text2transcription.server.jobs import Job, JobStatus, JobStore
from text2transcription.server.models import (
    CandidateInfo,
    ErrorResponse,
    FormatInfo,
    HealthResponse,
    JobCreatedResponse,
    JobResponse,
    LexiconEntryResponse,
    OutputInfo,
    ProgressInfo,
    TranscriptionRequest,
)

logger = logging.getLogger(__name__)

DEFAULT_FORMATS = ["plain_text"]

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

job_store = JobStore()

_lexicon: Optional[InMemoryLexicon] = None
_lexicon_lock = threading.Lock()


def set_lexicon(lexicon: Optional[InMemoryLexicon]) -> None:
    """Install the lexicon used by all jobs (None unloads it)."""
    global _lexicon
    with _lexicon_lock:
        _lexicon = lexicon


def get_lexicon() -> Optional[InMemoryLexicon]:
    """Return the installed lexicon without loading anything."""
    with _lexicon_lock:
        return _lexicon


def load_configured_lexicon() -> Optional[InMemoryLexicon]:
    """Load T2T_LEXICON_PATH unless a lexicon is installed already.

    Blocks on file I/O and schema validation, so the lifespan runs it on a
    worker thread.
    """
    global _lexicon
    with _lexicon_lock:
        if _lexicon is None and config.LEXICON_PATH:
            _lexicon = load_lexicon(config.LEXICON_PATH, config.load_preferences())
        return _lexicon


async def _periodic_cleanup() -> None:
    """Drop expired jobs every 300 seconds until cancelled."""
    while True:
        await asyncio.sleep(300)
        job_store.cleanup_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the lexicon and start periodic cleanup on startup, cancel on shutdown."""
    await asyncio.to_thread(load_configured_lexicon)
    task = asyncio.create_task(_periodic_cleanup())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    lifespan=lifespan,
    title="text2transcription API",
    description=(
        "REST API for converting English text into broad phonetic "
        "transcription. Submit text, poll for progress, and fetch the "
        "plain, JSON or interlinear rendering."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require_lexicon() -> InMemoryLexicon:
    lexicon = get_lexicon()
    if lexicon is None:
        raise HTTPException(
            status_code=503,
            detail="No lexicon loaded. Set T2T_LEXICON_PATH in .env.",
        )
    return lexicon


def _preferences_for(variety: Optional[str]) -> Preferences:
    try:
        return config.load_preferences(variety)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


def _job_to_response(job: Job) -> JobResponse:
    """Snapshot a job for polling clients, rendering its finished segments."""
    outputs = None
    if job.status == JobStatus.COMPLETED and job.outputs:
        outputs = {
            key: OutputInfo(suffix=out.suffix, media_type=out.media_type, content=out.content)
            for key, out in job.outputs.items()
        }
    segments = list(job.segments)
    return JobResponse(
        id=job.id,
        status=job.status.value,
        created_at=job.created_at,
        config=job.config,
        progress=ProgressInfo(**job.progress) if job.progress else None,
        segments_done=len(segments),
        transcription=render_plain_text(segments) if segments else None,
        error=job.error,
        outputs=outputs,
    )


def _run_transcription(job_id: str, store: JobStore, lexicon: InMemoryLexicon) -> None:
    """Transcribe a job's text and render its outputs.

    WHY: This is the background task behind POST /transcriptions. It runs
    on a worker thread because lexicon lookups block.

    HOW: Builds a Transcriber for the job's variety, records every
    finished segment and progress event on the job, then runs the
    requested formatters and stores their outputs.

    RULES:
    - Catches all exceptions and marks the job as failed
    - Segments recorded before a failure stay on the job
    - Status moves pending → transcribing → post_processing → completed
    """
    job = store.get_job(job_id)
    if job is None:
        return

    def on_progress(event: ProgressEvent) -> None:
        status = JobStatus.TRANSCRIBING
        if event.stage == STAGE_POST_PROCESSING:
            status = JobStatus.POST_PROCESSING
        store.update_job(job_id, status=status, progress={
            "stage": event.stage,
            "fraction": event.fraction,
            "message": event.message,
        })

    def on_segment(segment: TranscriptionSegment) -> None:
        store.append_segment(job_id, segment)

    try:
        preferences = config.load_preferences(job.config.get("variety"))
        transcriber = Transcriber(
            lexicon.with_preferences(preferences),
            preferences,
            the_word_class=config.THE_WORD_CLASS,
        )
        store.update_job(job_id, status=JobStatus.TRANSCRIBING)
        segments = transcriber.transcribe(
            job.text,
            on_progress=on_progress,
            on_segment=on_segment,
            common_numerals=bool(job.config.get("common_numerals")),
        )
        store.set_segments(job_id, segments)

        outputs = {}
        for key in job.config.get("formats") or DEFAULT_FORMATS:
            outputs[key] = FORMATTERS[key]().format(segments)[0]

        store.update_job(job_id, status=JobStatus.COMPLETED, outputs=outputs)
    except Exception as exc:
        logger.exception("Transcription failed for job %s", job_id)
        store.update_job(job_id, status=JobStatus.FAILED, error=str(exc))


# ---------------------------------------------------------------------------
# Endpoints: Transcriptions
# ---------------------------------------------------------------------------


@app.post(
    "/transcriptions",
    response_model=JobCreatedResponse,
    status_code=201,
    tags=["transcriptions"],
    summary="Submit a transcription job",
    description=(
        "Queue English text for transcription with a preferred variety and "
        "the output formats to render. The answer carries the job id only; "
        "poll GET /transcriptions/{id} to follow it."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Unknown variety"},
        429: {"model": ErrorResponse, "description": "Too many concurrent jobs"},
        503: {"model": ErrorResponse, "description": "No lexicon loaded"},
    },
)
async def create_transcription(
    request: TranscriptionRequest,
    background_tasks: BackgroundTasks,
) -> JobCreatedResponse:
    lexicon = _require_lexicon()
    preferences = _preferences_for(request.variety)

    format_keys = [f.value for f in request.formats] if request.formats else list(DEFAULT_FORMATS)
    job_config = {
        "variety": preferences.preferred_variety.abbreviation,
        "formats": format_keys,
        "common_numerals": request.common_numerals,
    }

    try:
        job = job_store.create_job(text=request.text, config=job_config)
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))

    background_tasks.add_task(_run_transcription, job.id, job_store, lexicon)

    return JobCreatedResponse(id=job.id, status=job.status.value)


@app.get(
    "/transcriptions/{job_id}",
    response_model=JobResponse,
    tags=["transcriptions"],
    summary="Poll a transcription job",
    description=(
        "Current state of a job: lifecycle status, last progress event, the "
        "plain transcription of every segment finished so far, and the "
        "rendered outputs once the job has completed."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Job not found"},
    },
)
async def get_transcription(
    job_id: str,
) -> JobResponse:
    job = job_store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found: {}".format(job_id))
    return _job_to_response(job)


@app.get(
    "/transcriptions/{job_id}/outputs/{format_key}",
    tags=["transcriptions"],
    summary="Download one rendered output",
    description=(
        "Download the output of a completed job in one of the formats "
        "requested when the job was submitted."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Job or output not found"},
        409: {"model": ErrorResponse, "description": "Job not yet completed"},
    },
)
async def download_transcription_output(
    job_id: str,
    format_key: str,
) -> Response:
    job = job_store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found: {}".format(job_id))

    if job.status != JobStatus.COMPLETED:
        raise HTTPException(
            status_code=409,
            detail="Job {} has no outputs yet (status: {}).".format(job_id, job.status.value),
        )

    output = job.outputs.get(format_key)
    if output is None:
        raise HTTPException(
            status_code=404,
            detail="Output '{}' not found in job outputs.".format(format_key),
        )

    filename = "transcription{}".format(output.suffix)
    return Response(
        content=output.content.encode("utf-8"),
        media_type="{}; charset=utf-8".format(output.media_type),
        headers={"Content-Disposition": 'attachment; filename="{}"'.format(filename)},
    )


@app.delete(
    "/transcriptions/{job_id}",
    status_code=204,
    tags=["transcriptions"],
    summary="Discard a transcription job",
    description=(
        "Remove a job and its outputs from the store. A running job keeps "
        "going but is no longer reported."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Job not found"},
    },
)
async def delete_transcription(
    job_id: str,
) -> Response:
    deleted = job_store.delete_job(job_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Job not found: {}".format(job_id))
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints: Lexicon
# ---------------------------------------------------------------------------


@app.get(
    "/lexicon/{lemma}",
    response_model=LexiconEntryResponse,
    tags=["lexicon"],
    summary="Look up a lemma",
    description=(
        "Returns every transcription candidate stored for a lemma and the one "
        "a transcription would select by default. Unknown lemmas return an "
        "empty candidate list."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Unknown variety"},
        503: {"model": ErrorResponse, "description": "No lexicon loaded"},
    },
)
async def lookup_lemma(
    lemma: str,
    variety: Optional[str] = Query(
        default=None,
        description="Preferred variety abbreviation for the default selection.",
    ),
) -> LexiconEntryResponse:
    preferences = _preferences_for(variety)
    entry = _require_lexicon().with_preferences(preferences).query(lemma)
    selected = entry.selected
    return LexiconEntryResponse(
        lemma=entry.lemma,
        variety=preferences.preferred_variety.abbreviation,
        selected_id=selected.id if selected is not None else None,
        word_class_conflict=entry.matches_multiple_word_classes(),
        candidates=[
            CandidateInfo(
                id=candidate.id,
                phonetic=candidate.phonetic,
                type=candidate.transcription_type.abbreviation,
                word_class=candidate.word_class.abbreviation,
                variety=candidate.variety.abbreviation,
            )
            for candidate in entry.all_candidates()
        ],
    )


# ---------------------------------------------------------------------------
# Endpoints: Formats
# ---------------------------------------------------------------------------


@app.get(
    "/formats",
    response_model=List[FormatInfo],
    tags=["formats"],
    summary="List output formats",
    description=(
        "Keys accepted in the formats list of a transcription request, "
        "with display names and the file suffix each one produces."
    ),
)
async def list_formats() -> List[FormatInfo]:
    # An empty transcription is enough to learn each formatter's suffix.
    empty = [enclosing_segment(), enclosing_segment()]
    result = []
    for key, formatter_cls in sorted(FORMATTERS.items()):
        formatter = formatter_cls()
        outputs = formatter.format(empty)
        result.append(FormatInfo(
            key=key,
            name=formatter.name,
            suffix=outputs[0].suffix if outputs else "",
        ))
    return result


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Reports the package version and whether a lexicon is loaded.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__, lexicon_loaded=_lexicon is not None)


def run_api():
    """Entry point for the text2transcription-api console script."""
    import uvicorn
    logging.basicConfig(level=config.log_level())
    uvicorn.run(app, host="0.0.0.0", port=8000)
