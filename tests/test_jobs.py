"""Unit tests for the in-memory job store and the background transcription task.

WHY: The job store is the central state manager for the HTTP API. Missing
cleanup or incorrect status transitions would cause stale jobs or broken
polling, and a background task that swallows its segments would hide how
far a failed transcription got.

HOW: Tests are organized by class, one per JobStore method or concern:
  - TestJobCreation: create_job basics, defaults and the job limit
  - TestJobRetrieval: get_job and list_jobs
  - TestJobUpdate: status transitions, progress, errors, terminal states
  - TestJobSegments: append_segment and set_segments
  - TestJobDeletion: delete_job
  - TestTTLCleanup: expiry logic and boundary conditions
  - TestBackgroundTask: _run_transcription success and failure
  - TestThreadSafety: concurrent access doesn't corrupt state

RULES:
- Each test creates its own JobStore instance (no shared mutable state)
- Time-dependent tests use monkeypatch to control time.time()
"""

from __future__ import annotations

import threading
import time

import pytest

from text2transcription.core.errors import LexiconFailure
from text2transcription.core.resolver import enclosing_segment
from text2transcription.formatters.base import FormatterOutput
from text2transcription.server.app import _run_transcription
from text2transcription.server.jobs import (
    DEFAULT_TTL_SECONDS,
    JobStatus,
    JobStore,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_store(**kwargs) -> JobStore:
    """Create a JobStore with optional overrides."""
    return JobStore(**kwargs)


def _config(**overrides):
    config = {"variety": "BrE", "formats": ["plain_text"], "common_numerals": False}
    config.update(overrides)
    return config


# ---------------------------------------------------------------------------
# TestJobCreation
# ---------------------------------------------------------------------------


class TestJobCreation:
    """JobStore.create_job() creates a job in PENDING state."""

    def test_creates_job_with_pending_status(self):
        job = _make_store().create_job("the cat")
        assert job.status == JobStatus.PENDING

    def test_assigns_unique_id(self):
        store = _make_store()
        assert store.create_job("a").id != store.create_job("b").id

    def test_stores_text_and_config(self):
        job = _make_store().create_job("the cat", config=_config(variety="AmE"))
        assert job.text == "the cat"
        assert job.config["variety"] == "AmE"

    def test_default_config_is_empty_dict(self):
        assert _make_store().create_job("x").config == {}

    def test_initial_fields_are_none_or_empty(self):
        job = _make_store().create_job("x")
        assert job.error is None
        assert job.progress is None
        assert job.completed_at is None
        assert job.segments == []
        assert job.outputs == {}

    def test_sets_timestamps(self):
        before = time.time()
        job = _make_store().create_job("x")
        assert before <= job.created_at <= time.time()
        assert job.updated_at == job.created_at

    def test_job_limit(self):
        store = _make_store(max_jobs=2)
        store.create_job("a")
        store.create_job("b")
        with pytest.raises(ValueError, match="Maximum number"):
            store.create_job("c")


# ---------------------------------------------------------------------------
# TestJobRetrieval
# ---------------------------------------------------------------------------


class TestJobRetrieval:

    def test_get_existing_job(self):
        store = _make_store()
        job = store.create_job("x")
        assert store.get_job(job.id) is job

    def test_get_missing_job_returns_none(self):
        assert _make_store().get_job("nonexistent") is None

    def test_list_jobs_ordered_by_creation_time(self, monkeypatch):
        store = _make_store()
        monkeypatch.setattr(time, "time", lambda: 200.0)
        later = store.create_job("later")
        monkeypatch.setattr(time, "time", lambda: 100.0)
        earlier = store.create_job("earlier")
        assert [j.id for j in store.list_jobs()] == [earlier.id, later.id]


# ---------------------------------------------------------------------------
# TestJobUpdate
# ---------------------------------------------------------------------------


class TestJobUpdate:

    def test_update_status(self):
        store = _make_store()
        job = store.create_job("x")
        store.update_job(job.id, status=JobStatus.TRANSCRIBING)
        assert store.get_job(job.id).status == JobStatus.TRANSCRIBING

    def test_update_progress(self):
        store = _make_store()
        job = store.create_job("x")
        progress = {"stage": "transcribing", "fraction": 0.5, "message": "Transcribing segment 1 of 2 ..."}
        store.update_job(job.id, progress=progress)
        assert store.get_job(job.id).progress == progress

    def test_update_outputs(self):
        store = _make_store()
        job = store.create_job("x")
        outputs = {"plain_text": FormatterOutput("-transcription.txt", "/ /\n", "text/plain")}
        store.update_job(job.id, outputs=outputs)
        assert store.get_job(job.id).outputs == outputs

    def test_update_missing_job_returns_none(self):
        assert _make_store().update_job("nonexistent", status=JobStatus.FAILED) is None

    @pytest.mark.parametrize("status", [JobStatus.COMPLETED, JobStatus.FAILED])
    def test_terminal_status_sets_completed_at(self, status):
        store = _make_store()
        job = store.create_job("x")
        store.update_job(job.id, status=status)
        assert store.get_job(job.id).completed_at is not None

    def test_non_terminal_status_does_not_set_completed_at(self):
        store = _make_store()
        job = store.create_job("x")
        store.update_job(job.id, status=JobStatus.POST_PROCESSING)
        assert store.get_job(job.id).completed_at is None

    def test_only_non_none_fields_updated(self):
        store = _make_store()
        job = store.create_job("x")
        store.update_job(job.id, status=JobStatus.FAILED, error="broken")
        store.update_job(job.id, progress={"stage": "transcribing", "fraction": 1.0, "message": ""})
        updated = store.get_job(job.id)
        assert updated.status == JobStatus.FAILED
        assert updated.error == "broken"


# ---------------------------------------------------------------------------
# TestJobSegments
# ---------------------------------------------------------------------------


class TestJobSegments:

    def test_append_segment(self):
        store = _make_store()
        job = store.create_job("x")
        segment = enclosing_segment()
        store.append_segment(job.id, segment)
        assert store.get_job(job.id).segments == [segment]

    def test_set_segments_replaces_list(self):
        store = _make_store()
        job = store.create_job("x")
        store.append_segment(job.id, enclosing_segment())
        final = [enclosing_segment(), enclosing_segment()]
        store.set_segments(job.id, final)
        assert len(store.get_job(job.id).segments) == 2

    def test_missing_job_is_ignored(self):
        store = _make_store()
        store.append_segment("nonexistent", enclosing_segment())
        store.set_segments("nonexistent", [])


# ---------------------------------------------------------------------------
# TestJobDeletion
# ---------------------------------------------------------------------------


class TestJobDeletion:

    def test_delete_existing_job(self):
        store = _make_store()
        job = store.create_job("x")
        assert store.delete_job(job.id) is True
        assert store.get_job(job.id) is None

    def test_delete_missing_job_returns_false(self):
        assert _make_store().delete_job("nonexistent") is False

    def test_delete_frees_a_slot(self):
        store = _make_store(max_jobs=1)
        job = store.create_job("a")
        store.delete_job(job.id)
        store.create_job("b")


# ---------------------------------------------------------------------------
# TestTTLCleanup
# ---------------------------------------------------------------------------


class TestTTLCleanup:
    """JobStore.cleanup_expired() removes terminal jobs past their TTL."""

    def test_cleanup_removes_expired_completed_job(self, monkeypatch):
        store = _make_store(ttl_seconds=60)
        job = store.create_job("x")

        monkeypatch.setattr(time, "time", lambda: 100.0)
        store.update_job(job.id, status=JobStatus.COMPLETED)

        monkeypatch.setattr(time, "time", lambda: 161.0)
        assert store.cleanup_expired() == 1
        assert store.get_job(job.id) is None

    def test_cleanup_keeps_non_expired_job(self, monkeypatch):
        store = _make_store(ttl_seconds=60)
        job = store.create_job("x")

        monkeypatch.setattr(time, "time", lambda: 100.0)
        store.update_job(job.id, status=JobStatus.FAILED, error="err")

        monkeypatch.setattr(time, "time", lambda: 159.0)
        assert store.cleanup_expired() == 0
        assert store.get_job(job.id) is not None

    def test_cleanup_ignores_in_progress_jobs(self, monkeypatch):
        store = _make_store(ttl_seconds=1)
        job = store.create_job("x")
        store.update_job(job.id, status=JobStatus.TRANSCRIBING)

        far_future = time.time() + 10000
        monkeypatch.setattr(time, "time", lambda: far_future)
        assert store.cleanup_expired() == 0
        assert store.get_job(job.id) is not None

    def test_cleanup_returns_zero_on_empty_store(self):
        assert _make_store().cleanup_expired() == 0

    def test_default_ttl_is_one_hour(self):
        assert DEFAULT_TTL_SECONDS == 3600


# ---------------------------------------------------------------------------
# TestBackgroundTask
# ---------------------------------------------------------------------------


class TestBackgroundTask:
    """_run_transcription() drives one job from pending to a terminal state."""

    def test_successful_run(self, lexicon):
        store = _make_store()
        job = store.create_job("The cat sat.", config=_config(formats=["plain_text", "interlinear"]))

        _run_transcription(job.id, store, lexicon)

        done = store.get_job(job.id)
        assert done.status == JobStatus.COMPLETED
        assert done.error is None
        assert len(done.segments) == 5
        assert done.outputs["plain_text"].content == "/ ðə kæt sæt /\n"
        assert set(done.outputs) == {"plain_text", "interlinear"}
        assert done.progress["stage"] == "post-processing"
        assert done.progress["fraction"] == 1.0

    def test_variety_of_the_job_is_used(self, lexicon):
        store = _make_store()
        job = store.create_job("on", config=_config(variety="AmE"))
        _run_transcription(job.id, store, lexicon)
        assert store.get_job(job.id).outputs["plain_text"].content == "/ ɑːn /\n"

    def test_common_numerals(self, lexicon):
        store = _make_store()
        job = store.create_job("1800", config=_config(common_numerals=True))
        _run_transcription(job.id, store, lexicon)
        assert store.get_job(job.id).outputs["plain_text"].content == "/ wʌn ˈθaʊznd eɪt ˈhʌndrəd /\n"

    def test_common_numerals_decide_the(self, lexicon):
        store = _make_store()
        job = store.create_job("the 1800 cat", config=_config(common_numerals=True))
        _run_transcription(job.id, store, lexicon)
        done = store.get_job(job.id)
        assert done.outputs["plain_text"].content == "/ ðə wʌn ˈθaʊznd eɪt ˈhʌndrəd kæt /\n"
        assert not done.segments[2].numeral.year_active

    def test_lexicon_failure_marks_job_failed(self, lexicon, monkeypatch):
        store = _make_store()
        job = store.create_job("cat boom", config=_config())
        original = type(lexicon).query

        def query(self, lemma):
            if lemma == "boom":
                raise LexiconFailure("store unreachable", lemma=lemma)
            return original(self, lemma)

        monkeypatch.setattr(type(lexicon), "query", query)
        _run_transcription(job.id, store, lexicon)

        failed = store.get_job(job.id)
        assert failed.status == JobStatus.FAILED
        assert "store unreachable" in failed.error
        assert [s.lemma_text for s in failed.segments] == ["", "cat"]
        assert failed.outputs == {}

    def test_missing_job_is_ignored(self, lexicon):
        _run_transcription("nonexistent", _make_store(), lexicon)


# ---------------------------------------------------------------------------
# TestThreadSafety
# ---------------------------------------------------------------------------


class TestThreadSafety:

    def test_concurrent_creates(self):
        store = _make_store(max_jobs=1000)
        ids = []
        lock = threading.Lock()

        def create():
            for _ in range(50):
                job = store.create_job("x")
                with lock:
                    ids.append(job.id)

        threads = [threading.Thread(target=create) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(ids) == 400
        assert len(set(ids)) == 400
        assert len(store.list_jobs()) == 400

    def test_concurrent_appends(self):
        store = _make_store()
        job = store.create_job("x")

        def append():
            for _ in range(100):
                store.append_segment(job.id, enclosing_segment())

        threads = [threading.Thread(target=append) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store.get_job(job.id).segments) == 400
