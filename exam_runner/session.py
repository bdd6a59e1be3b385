"""One exam attempt from loading the test to submitting it."""
from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any

from exam_runner.audio import AudioInput
from exam_runner.backend import ExamBackend
from exam_runner.config import RunnerSettings
from exam_runner.errors import (
    ExamError,
    ExamNotReadyError,
    MicrophoneCheckRequired,
    SubmissionError,
)
from exam_runner.models import FlatQuestion
from exam_runner.notifications import Notifier
from exam_runner.recorder import MicrophoneCheck, RecordingController
from exam_runner.sequencer import ExamContent, load_exam_content
from exam_runner.state_machine import ExamSnapshot, ExamStateMachine
from exam_runner.timer import Ticker
from exam_runner.uploader import AnswerUploader

logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    LOADING = "loading"
    MIC_CHECK = "mic_check"
    RUNNING = "running"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FINALIZE_FAILED = "finalize_failed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class ExamSession:
    """
    Wires content loading, the microphone gate, the countdown, uploads and
    finalization together.

    The countdown only starts after ``load()`` succeeded, the microphone
    self-test was accepted and the submission was created.
    """

    def __init__(
        self,
        backend: ExamBackend,
        audio_input: AudioInput,
        test_id: str,
        purchase_id: str,
        notifier: Notifier | None = None,
        settings: RunnerSettings | None = None,
    ):
        self.backend = backend
        self.test_id = test_id
        self.purchase_id = purchase_id
        self.notifier = notifier or Notifier()
        self.settings = settings or RunnerSettings()
        self.recorder = RecordingController(audio_input)
        self.mic_check = MicrophoneCheck(self.recorder)

        self.state = SessionState.LOADING
        self.content: ExamContent | None = None
        self.submission_id: str | None = None
        self.machine: ExamStateMachine | None = None
        self.uploader: AnswerUploader | None = None
        self.ticker: Ticker | None = None
        self.result: dict[str, Any] | None = None
        self._finalize_task: asyncio.Task | None = None
        self._settled = asyncio.Event()

    @property
    def questions(self) -> list[FlatQuestion]:
        return self.content.questions if self.content else []

    def _fail(self, title: str, exc: Exception) -> None:
        self.state = SessionState.FAILED
        logger.error("%s: %s", title, exc)
        self.notifier.error(title, str(exc))
        self._settled.set()

    async def load(self) -> list[FlatQuestion]:
        """Fetch the test content. Raises instead of starting with partial content."""
        try:
            content = await load_exam_content(self.backend, self.test_id)
        except ExamError as exc:
            self._fail("Test could not be loaded", exc)
            raise
        except Exception as exc:
            self._fail("Test could not be loaded", exc)
            raise ExamNotReadyError(str(exc)) from exc

        if content.orphans:
            titles = ", ".join(section.title or section.id for section in content.orphans)
            self.notifier.warning(
                "Some sections are misplaced",
                f"Shown at top level because their parent is missing: {titles}",
            )
        self.content = content
        self.state = SessionState.MIC_CHECK
        return content.questions

    async def begin(self, start_timer: bool = True) -> None:
        """Create the submission and start the first preparation countdown."""
        if self.state is not SessionState.MIC_CHECK or self.content is None:
            raise ExamError(f"Cannot begin exam in state {self.state.value}")
        if not self.mic_check.passed:
            raise MicrophoneCheckRequired("Accept the microphone check first")

        try:
            self.submission_id = await self.backend.create_submission(
                self.purchase_id, self.test_id
            )
        except Exception as exc:
            logger.error("Submission could not be created: %s", exc)
            self.notifier.error("Could not start the test", str(exc))
            raise SubmissionError(str(exc)) from exc

        logger.info("Submission %s started for test %s", self.submission_id, self.test_id)
        self.uploader = AnswerUploader(self.backend, self.submission_id, self.notifier)
        self.machine = ExamStateMachine(
            self.content.questions,
            self.recorder,
            self.notifier,
            on_answer=self.uploader.submit,
            on_exhausted=self._on_exhausted,
        )
        self.machine.start()
        self.state = SessionState.RUNNING

        if start_timer:
            self.ticker = Ticker(
                self.machine.tick,
                interval=self.settings.tick_seconds,
                keep_running=lambda: self.machine.is_running,
            )
            self.ticker.start()

    def snapshot(self) -> ExamSnapshot | None:
        return self.machine.snapshot() if self.machine else None

    async def next_question(self) -> None:
        await self._require_machine().go_next()
        self._restart_countdown()

    async def previous_question(self) -> None:
        await self._require_machine().go_previous()
        self._restart_countdown()

    def _restart_countdown(self) -> None:
        # A fresh phase gets a full first second.
        if self.ticker is not None:
            self.ticker.restart()

    def _require_machine(self) -> ExamStateMachine:
        if self.machine is None:
            raise ExamError("Exam has not started")
        return self.machine

    def _on_exhausted(self) -> None:
        self._finalize_task = asyncio.create_task(self._finalize(), name="finalize")

    async def _finalize(self) -> bool:
        self.state = SessionState.FINALIZING
        await self.recorder.stop_recording()
        # Let the last stop handler and upload get going before completing.
        await asyncio.sleep(self.settings.finalize_grace_seconds)
        await self.uploader.drain(self.settings.upload_drain_seconds)
        return await self._complete()

    async def _complete(self) -> bool:
        try:
            self.result = await self.backend.complete_submission(self.submission_id)
        except Exception as exc:
            logger.error("Submission %s could not be completed: %s", self.submission_id, exc)
            self.state = SessionState.FINALIZE_FAILED
            self.notifier.error(
                "Test was not submitted",
                "Your answers are saved. Retry submitting before leaving.",
            )
            self._settled.set()
            return False

        self.state = SessionState.COMPLETED
        summary = self.summary()
        self.notifier.success(
            "Test submitted",
            f"{summary['answered']} of {summary['total']} questions answered.",
        )
        if summary["failed_uploads"]:
            self.notifier.warning(
                "Some answers were not uploaded",
                "Question(s): " + ", ".join(summary["failed_uploads"]),
            )
        self._settled.set()
        return True

    async def retry_finalize(self) -> bool:
        """Manual retry after a failed submit. Failed uploads are retried first."""
        if self.state is not SessionState.FINALIZE_FAILED:
            raise ExamError(f"Nothing to retry in state {self.state.value}")
        self._settled.clear()
        self.state = SessionState.FINALIZING
        await self.uploader.retry_failed()
        return await self._complete()

    async def wait_finished(self) -> SessionState:
        """Wait until the attempt is submitted, failed to submit, or cancelled."""
        await self._settled.wait()
        return self.state

    async def cancel(self) -> None:
        """
        Leave the exam: timers, recording and a pending submit stop.
        Queued uploads are not cancelled.
        """
        if self.state in (SessionState.COMPLETED, SessionState.CANCELLED):
            return
        if self.ticker is not None:
            await self.ticker.stop()
        task, self._finalize_task = self._finalize_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self.machine is not None:
            await self.machine.cancel()
        else:
            await self.recorder.stop_recording(keep=False)
        self.state = SessionState.CANCELLED
        self._settled.set()

    def summary(self) -> dict[str, Any]:
        machine = self.machine
        answered = sorted(machine.answered) if machine else []
        missed = [q.id for q in self.questions if q.id not in answered]
        return {
            "submission_id": self.submission_id,
            "total": len(self.questions),
            "answered": len(answered),
            "missed": missed,
            "uploaded": len(self.uploader.uploaded) if self.uploader else 0,
            "failed_uploads": sorted(self.uploader.failed) if self.uploader else [],
        }
