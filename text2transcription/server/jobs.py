"""In-memory job store for transcription requests, with TTL cleanup.

WHY: Long texts hit the lexicon thousands of times, so the HTTP API
returns a job ID immediately and transcribes on a worker thread. Clients
poll the job to follow progress and fetch the rendered outputs. An
in-memory store is sufficient for a single-process service.

HOW:
  JobStatus  lifecycle of a request, pending to completed or failed
  Job        the request text and config plus progress, segments, outputs
  JobStore   dict of jobs behind one lock; the worker writes, endpoints read

RULES:
- Every read and write of the job dict happens under the store's lock
- Segments finished before a failure stay on the job
- Finished jobs are dropped once older than the TTL (one hour by default)
- Job IDs are UUID4 hex strings generated at creation time
"""

from __future__ import annotations

import enum
import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from text2transcription.core.ir import TranscriptionSegment
from text2transcription.formatters.base import FormatterOutput

logger = logging.getLogger(__name__)

# Seconds a completed or failed job is kept for polling
DEFAULT_TTL_SECONDS = 3600
DEFAULT_MAX_JOBS = 100


class JobStatus(str, enum.Enum):
    """Where a transcription job is in its lifecycle.

    The str base makes the values usable directly in JSON responses.

    RULES:
    - pending: accepted, worker not started
    - transcribing: tokens being resolved against the lexicon
    - post_processing: conflicts and weak forms being settled
    - completed: all requested outputs rendered
    - failed: stopped by an error (e.g. lexicon failure)
    """

    PENDING = "pending"
    TRANSCRIBING = "transcribing"
    POST_PROCESSING = "post_processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATES = (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass
class Job:
    """One submitted text and everything the worker has produced for it.

    RULES:
    - id never changes after creation
    - config: variety, formats and numeral reading of the request
    - progress: last progress event as {"stage", "fraction", "message"}
    - segments: segments finished so far (all of them once completed)
    - outputs: formatter key to rendered output, filled on completion
    - error: set only for FAILED jobs
    """

    id: str
    status: JobStatus
    text: str
    created_at: float
    updated_at: float
    completed_at: Optional[float] = None
    error: Optional[str] = None
    progress: Optional[Dict[str, Any]] = None
    config: Dict[str, Any] = field(default_factory=dict)
    segments: List[TranscriptionSegment] = field(default_factory=list)
    outputs: Dict[str, FormatterOutput] = field(default_factory=dict)

    @property
    def finished(self) -> bool:
        return self.status in TERMINAL_STATES


class JobStore:
    """Jobs keyed by ID, shared by the endpoints and the worker threads.

    The worker only knows the job ID and writes through the store, so a
    job deleted mid-run simply stops receiving updates.

    RULES:
    - create_job() raises ValueError once max_jobs jobs are held
    - lookups of unknown IDs return None (update_job) or False (delete_job)
    - cleanup_expired() only touches finished jobs
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_jobs: int = DEFAULT_MAX_JOBS,
    ) -> None:
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()
        self._ttl = ttl_seconds
        self.max_jobs = max_jobs

    def create_job(self, text: str, config: Optional[Dict[str, Any]] = None) -> Job:
        """Register a new PENDING job for ``text``."""
        with self._lock:
            if len(self._jobs) >= self.max_jobs:
                raise ValueError(
                    "Maximum number of concurrent jobs ({}) reached".format(self.max_jobs)
                )
            created = time.time()
            job = Job(
                id=uuid.uuid4().hex,
                status=JobStatus.PENDING,
                text=text,
                created_at=created,
                updated_at=created,
                config=dict(config or {}),
            )
            self._jobs[job.id] = job

        logger.info("Created job %s for %d characters of text", job.id, len(text))
        return job

    def get_job(self, job_id: str) -> Optional[Job]:
        # Live instance, not a copy
        with self._lock:
            return self._jobs.get(job_id)

    def list_jobs(self) -> List[Job]:
        """Return all jobs, oldest first."""
        with self._lock:
            jobs = list(self._jobs.values())
        jobs.sort(key=lambda job: job.created_at)
        return jobs

    def update_job(
        self,
        job_id: str,
        status: Optional[JobStatus] = None,
        error: Optional[str] = None,
        progress: Optional[Dict[str, Any]] = None,
        outputs: Optional[Dict[str, FormatterOutput]] = None,
    ) -> Optional[Job]:
        """Apply the given fields to a job and return it.

        Arguments left as None keep their current value. Moving into a
        terminal state stamps completed_at, which starts the TTL clock.
        """
        changes = {
            "status": status,
            "error": error,
            "progress": progress,
            "outputs": outputs,
        }
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            for name, value in changes.items():
                if value is not None:
                    setattr(job, name, value)
            job.updated_at = time.time()
            if job.finished:
                job.completed_at = job.updated_at
            return job

    def append_segment(self, job_id: str, segment: TranscriptionSegment) -> None:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is not None:
                job.segments.append(segment)

    def set_segments(self, job_id: str, segments: List[TranscriptionSegment]) -> None:
        """Replace the recorded segments with the post-processed list."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is not None:
                job.segments = list(segments)

    def delete_job(self, job_id: str) -> bool:
        with self._lock:
            removed = self._jobs.pop(job_id, None) is not None
        if removed:
            logger.info("Deleted job %s", job_id)
        return removed

    def cleanup_expired(self) -> int:
        """Drop finished jobs older than the TTL; returns how many went."""
        now = time.time()
        with self._lock:
            expired = [
                job for job in self._jobs.values()
                if job.finished
                and job.completed_at is not None
                and now - job.completed_at > self._ttl
            ]
            for job in expired:
                del self._jobs[job.id]

        for job in expired:
            logger.info("Expired job %s, finished %.0fs ago", job.id, now - job.completed_at)
        return len(expired)
