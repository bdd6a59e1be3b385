"""
Preparation/speaking countdown for the flat question list.

The machine owns the current index, phase and remaining seconds. The view
dispatches events into it (``tick``, ``go_next``, ``go_previous``, ``cancel``)
and renders ``snapshot()``; it never keeps its own copy of the index.

Transitions:

    idle        --start-->             preparation (question 0)
    preparation --tick reaches 0-->    speaking, recording starts in background
    speaking    --tick reaches 0-->    recording stopped, answer handed off,
                                       preparation of next question or exhausted
    prep/speak  --next/previous-->     recording stopped and dropped,
                                       preparation of the new question
    any         --cancel-->            cancelled
"""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from exam_runner.errors import ExamError, ExamNotReadyError, NavigationError
from exam_runner.models import FlatQuestion, Recording
from exam_runner.notifications import Notifier
from exam_runner.recorder import RecordingController

logger = logging.getLogger(__name__)

AnswerHandler = Callable[[str, Recording], object]


class Phase(str, enum.Enum):
    IDLE = "idle"
    PREPARATION = "preparation"
    SPEAKING = "speaking"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ExamSnapshot:
    phase: Phase
    index: int
    total: int
    remaining: int
    question: FlatQuestion | None
    is_recording: bool
    answered: frozenset[str]
    missed: frozenset[str]

    @property
    def progress(self) -> float:
        if self.total == 0:
            return 0.0
        return self.index / self.total * 100


class ExamStateMachine:
    def __init__(
        self,
        questions: Iterable[FlatQuestion],
        recorder: RecordingController,
        notifier: Notifier,
        on_answer: AnswerHandler | None = None,
        on_exhausted: Callable[[], object] | None = None,
    ):
        self._questions = tuple(questions)
        self.recorder = recorder
        self.notifier = notifier
        self._on_answer = on_answer
        self._on_exhausted = on_exhausted

        self._index = 0
        self._phase = Phase.IDLE
        self._remaining = 0
        # Bumped on every index change; an in-flight transition that sees a
        # different value after awaiting must not advance.
        self._generation = 0
        self._transitioning = False
        self._navigating = False
        self._recording_task: asyncio.Task | None = None

        self.answered: dict[str, Recording] = {}
        self.missed: set[str] = set()

    @property
    def questions(self) -> tuple[FlatQuestion, ...]:
        return self._questions

    @property
    def index(self) -> int:
        return self._index

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def is_running(self) -> bool:
        return self._phase in (Phase.PREPARATION, Phase.SPEAKING)

    @property
    def current_question(self) -> FlatQuestion | None:
        if 0 <= self._index < len(self._questions):
            return self._questions[self._index]
        return None

    def snapshot(self) -> ExamSnapshot:
        return ExamSnapshot(
            phase=self._phase,
            index=self._index,
            total=len(self._questions),
            remaining=self._remaining,
            question=self.current_question,
            is_recording=self.recorder.is_recording,
            answered=frozenset(self.answered),
            missed=frozenset(self.missed),
        )

    def start(self) -> None:
        """Initialize the first question's preparation countdown."""
        if self._phase is not Phase.IDLE:
            raise ExamError(f"Exam already {self._phase.value}")
        if not self._questions:
            raise ExamNotReadyError("No questions to take")
        self._enter_question(0)

    def _enter_question(self, index: int) -> None:
        self._generation += 1
        self._index = index
        if index >= len(self._questions):
            self._phase = Phase.EXHAUSTED
            self._remaining = 0
            logger.info(
                "All %d questions done (%d answered)",
                len(self._questions),
                len(self.answered),
            )
            if self._on_exhausted is not None:
                self._on_exhausted()
            return

        question = self._questions[index]
        self._phase = Phase.PREPARATION
        self._remaining = question.effective_preparation_time
        logger.debug(
            "Question %d/%d (%s): preparation %ss",
            index + 1,
            len(self._questions),
            question.id,
            self._remaining,
        )

    async def tick(self) -> None:
        """One second elapsed. Transitions fire on the tick that reaches zero."""
        if not self.is_running or self._transitioning or self._navigating:
            return
        if self._remaining > 0:
            self._remaining -= 1
        if self._remaining > 0:
            return

        self._transitioning = True
        try:
            if self._phase is Phase.PREPARATION:
                self._begin_speaking()
            else:
                await self._end_speaking()
        finally:
            self._transitioning = False

    def _begin_speaking(self) -> None:
        question = self._questions[self._index]
        self._phase = Phase.SPEAKING
        self._remaining = question.effective_speaking_time
        # Countdown does not wait for the microphone.
        self._recording_task = asyncio.create_task(
            self._start_recording(question, self._index), name=f"record-{question.id}"
        )

    async def _start_recording(self, question: FlatQuestion, index: int) -> bool:
        try:
            await self.recorder.start_recording(question.id)
        except Exception as exc:
            logger.warning("Recording did not start for question %s: %s", question.id, exc)
            self.notifier.warning(
                "Recording did not start",
                f"Question {index + 1}: {exc}. "
                "The timer keeps running and this question stays unanswered.",
            )
            return False
        return True

    async def _stop_recording(self, keep: bool) -> Recording | None:
        task, self._recording_task = self._recording_task, None
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        try:
            return await self.recorder.stop_recording(keep=keep)
        except Exception as exc:
            logger.error("Recording could not be saved: %s", exc)
            self.notifier.warning("Recording could not be saved", str(exc))
            return None

    async def _end_speaking(self) -> None:
        question = self._questions[self._index]
        generation = self._generation

        recording = await self._stop_recording(keep=True)
        if recording is not None and recording.question_id == question.id:
            self.answered[question.id] = recording
            self.missed.discard(question.id)
            self._hand_off(question.id, recording)
        elif question.id not in self.answered:
            self.missed.add(question.id)

        if generation != self._generation or self._phase is not Phase.SPEAKING:
            # Navigation or cancel won while the recorder was stopping.
            return
        self._enter_question(self._index + 1)

    def _hand_off(self, question_id: str, recording: Recording) -> None:
        if self._on_answer is None:
            return
        try:
            self._on_answer(question_id, recording)
        except Exception as exc:
            logger.exception("Answer hand-off failed for question %s", question_id)
            self.notifier.warning("Answer could not be queued for upload", str(exc))

    async def go_next(self) -> None:
        if not self.is_running:
            raise NavigationError("Exam is not running")
        if self._index >= len(self._questions) - 1:
            raise NavigationError("Already at the last question")
        await self._navigate(self._index + 1)

    async def go_previous(self) -> None:
        if not self.is_running:
            raise NavigationError("Exam is not running")
        if self._index <= 0:
            raise NavigationError("Already at the first question")
        await self._navigate(self._index - 1)

    async def _navigate(self, index: int) -> None:
        self._generation += 1
        self._navigating = True
        try:
            # A partial answer is dropped; a completed earlier one is kept.
            await self._stop_recording(keep=False)
            if self.is_running:
                self._enter_question(index)
        finally:
            self._navigating = False

    async def cancel(self) -> None:
        """Stop the countdown and any recording. Uploads already queued continue."""
        if self._phase is Phase.CANCELLED:
            return
        self._generation += 1
        self._phase = Phase.CANCELLED
        self._remaining = 0
        await self._stop_recording(keep=False)
        logger.info("Exam cancelled at question %d", self._index + 1)
