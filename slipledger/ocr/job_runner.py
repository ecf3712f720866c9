"""Single-file OCR job queue around one shared recognition engine.

The recognition engine is expensive to start and cannot service two
images at once, so every OCR request is pushed onto a FIFO queue drained
by one worker thread. The engine is created lazily on the first job and
torn down when the runner is closed.
"""

import queue
import threading
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Protocol

import numpy as np

from slipledger.extraction.slip_parser import (
    NOTE_MAX_LENGTH,
    PLACEHOLDER_NOTE,
    SlipParseResult,
    parse_slip_text,
)
from slipledger.utils.logger import get_logger

from .tesseract_engine import ProgressHandler, RecognitionResult

logger = get_logger(__name__)


class RecognitionEngine(Protocol):
    """Interface the runner needs from a recognition engine."""

    progress_handler: ProgressHandler | None

    def recognize(self, image: np.ndarray) -> RecognitionResult: ...

    def close(self) -> None: ...


EngineFactory = Callable[[], RecognitionEngine]


@dataclass
class _Job:
    job_id: int
    image: np.ndarray
    on_progress: ProgressHandler | None
    future: Future


_STOP = object()


class OcrJobRunner:
    """Serializes OCR jobs against one lazily created engine.

    Jobs start strictly in submission order and only after the previous
    job finished. A failing job only fails its own future; the worker
    moves on to the next one. Queued jobs cannot be cancelled.

    Args:
        engine_factory: Zero-argument callable building the engine.
        placeholder_note: Note used by the parser when nothing better is found.
        note_max_length: Hard cap on the parsed note length.
    """

    def __init__(
        self,
        engine_factory: EngineFactory,
        placeholder_note: str = PLACEHOLDER_NOTE,
        note_max_length: int = NOTE_MAX_LENGTH,
    ) -> None:
        self._engine_factory = engine_factory
        self._placeholder_note = placeholder_note
        self._note_max_length = note_max_length
        self._engine: RecognitionEngine | None = None
        self._jobs: queue.Queue = queue.Queue()
        self._state_lock = threading.Lock()
        self._worker: threading.Thread | None = None
        self._next_id = 0
        self._closed = False

    @property
    def engine_started(self) -> bool:
        return self._engine is not None

    def submit(
        self, image: np.ndarray, on_progress: ProgressHandler | None = None
    ) -> "Future[SlipParseResult]":
        """Queue an image for recognition and parsing.

        Args:
            image: Preprocessed slip image.
            on_progress: Optional callback receiving progress in [0, 1],
                attached only while this job is running.

        Returns:
            Future resolving to the parsed slip.

        Raises:
            RuntimeError: If the runner has been closed.
        """
        with self._state_lock:
            if self._closed:
                raise RuntimeError("OCR job runner is closed")
            self._next_id += 1
            job = _Job(self._next_id, image, on_progress, Future())
            # Marked running up front so callers cannot cancel a queued job.
            job.future.set_running_or_notify_cancel()
            self._jobs.put(job)
            if self._worker is None:
                self._worker = threading.Thread(
                    target=self._drain, name="ocr-job-runner", daemon=True
                )
                self._worker.start()
        logger.debug("Queued OCR job %d", job.job_id)
        return job.future

    def run(
        self, image: np.ndarray, on_progress: ProgressHandler | None = None
    ) -> SlipParseResult:
        """Submit a job and block until it completes."""
        return self.submit(image, on_progress).result()

    def _drain(self) -> None:
        while True:
            job = self._jobs.get()
            try:
                if job is _STOP:
                    return
                self._run_job(job)
            finally:
                self._jobs.task_done()

    def _run_job(self, job: _Job) -> None:
        try:
            result = self._recognize_and_parse(job)
        except Exception as exc:
            logger.error("OCR job %d failed: %s", job.job_id, exc)
            job.future.set_exception(exc)
        else:
            job.future.set_result(result)

    def _recognize_and_parse(self, job: _Job) -> SlipParseResult:
        if self._engine is None:
            logger.info("Starting recognition engine")
            self._engine = self._engine_factory()
        engine = self._engine

        engine.progress_handler = job.on_progress
        try:
            recognized = engine.recognize(job.image)
        finally:
            engine.progress_handler = None

        logger.info("OCR job %d recognized %d characters", job.job_id, len(recognized.text))
        return parse_slip_text(
            recognized.text,
            recognized.confidence,
            placeholder=self._placeholder_note,
            note_max_length=self._note_max_length,
        )

    def close(self) -> None:
        """Finish queued jobs, stop the worker, and tear the engine down."""
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
            worker = self._worker
            if worker is not None:
                self._jobs.put(_STOP)

        if worker is not None:
            worker.join()
        if self._engine is not None:
            logger.info("Stopping recognition engine")
            self._engine.close()
            self._engine = None

    def __enter__(self) -> "OcrJobRunner":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
