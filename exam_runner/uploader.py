"""Background upload of recorded answers."""
from __future__ import annotations

import asyncio
import logging

from exam_runner.backend import ExamBackend
from exam_runner.models import Recording
from exam_runner.notifications import Notifier

logger = logging.getLogger(__name__)


class AnswerUploader:
    """
    Uploads each answer in its own task, off the timer's critical path.

    A failed upload is logged and reported through the notifier once; the
    recording stays in ``failed`` so it can be retried later.
    """

    def __init__(self, backend: ExamBackend, submission_id: str, notifier: Notifier):
        self.backend = backend
        self.submission_id = submission_id
        self.notifier = notifier
        self.uploaded: dict[str, str] = {}
        self.failed: dict[str, Recording] = {}
        self._pending: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(self, question_id: str, recording: Recording) -> asyncio.Task:
        """Schedule an upload and return immediately."""
        task = asyncio.create_task(
            self._upload(question_id, recording), name=f"upload-{question_id}"
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _upload(self, question_id: str, recording: Recording) -> bool:
        try:
            audio_ref = await self.backend.upload_audio(
                recording.data, recording.filename, recording.content_type
            )
            await self.backend.append_answer(self.submission_id, question_id, audio_ref)
        except Exception as exc:
            logger.error("Upload failed for question %s: %s", question_id, exc)
            self.failed[question_id] = recording
            self.notifier.warning(
                "Answer upload failed",
                "Your answer is kept on this device and the test continues.",
            )
            return False
        self.failed.pop(question_id, None)
        self.uploaded[question_id] = audio_ref
        recording.url = audio_ref
        logger.info("Uploaded answer for question %s -> %s", question_id, audio_ref)
        return True

    async def drain(self, timeout: float | None = None) -> bool:
        """Wait for in-flight uploads. Returns False if the timeout expired."""
        if not self._pending:
            return True
        _, still_running = await asyncio.wait(set(self._pending), timeout=timeout)
        if still_running:
            logger.warning("%d uploads still running after %ss", len(still_running), timeout)
        return not still_running

    async def retry_failed(self) -> list[str]:
        """Upload every failed answer again. Returns question ids still failing."""
        retries = [
            self.submit(question_id, recording)
            for question_id, recording in list(self.failed.items())
        ]
        if retries:
            await asyncio.gather(*retries)
        return sorted(self.failed)
