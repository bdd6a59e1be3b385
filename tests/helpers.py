"""Fakes and builders shared by the runner tests."""
import asyncio
import threading
from typing import Any

import numpy as np

from exam_runner.audio import AudioInput, InputHandle
from exam_runner.backend import ExamBackend
from exam_runner.errors import ApiError
from exam_runner.models import FlatQuestion, Question, Section


class FakeHandle(InputHandle):
    def __init__(self, source: "FakeAudioInput"):
        self.source = source
        self.closed = False
        self.closed_on: int | None = None

    def close(self) -> None:
        self.closed = True
        self.closed_on = threading.get_ident()
        self.source.open_handles -= 1


class FakeAudioInput(AudioInput):
    """
    Microphone stand-in. Each open delivers ``frames_per_open`` samples right
    away so recordings have a known, non-zero duration.
    """

    def __init__(self, sample_rate: int = 8000, frames_per_open: int = 8000):
        self.sample_rate = sample_rate
        self.channels = 1
        self.frames_per_open = frames_per_open
        self.fail_with: Exception | None = None
        self.opens = 0
        self.open_handles = 0
        self.handles: list[FakeHandle] = []

    async def open(self, on_chunk) -> InputHandle:
        if self.fail_with is not None:
            raise self.fail_with
        self.opens += 1
        self.open_handles += 1
        if self.frames_per_open:
            on_chunk(np.full((self.frames_per_open, 1), 0.25, dtype=np.float32))
        handle = FakeHandle(self)
        self.handles.append(handle)
        return handle


class FakeBackend(ExamBackend):
    """In-memory backend recording every write."""

    def __init__(
        self,
        sections: list[Section] | None = None,
        questions: dict[str, list[Question]] | None = None,
    ):
        self.sections = sections or []
        self.questions = questions or {}
        self.failing_sections: set[str] = set()
        self.fail_uploads_for: set[str] = set()
        self.fail_create = False
        self.fail_complete = 0
        self.upload_delay = 0.0
        self.created: list[tuple[str, str]] = []
        self.uploads: list[str] = []
        self.answers: list[tuple[str, str, str]] = []
        self.completed: list[str] = []

    async def fetch_sections(self, test_id: str) -> list[Section]:
        return list(self.sections)

    async def fetch_questions(self, section_id: str) -> list[Question]:
        if section_id in self.failing_sections:
            raise ApiError(500, f"questions for {section_id} unavailable")
        return list(self.questions.get(section_id, []))

    async def create_submission(self, purchase_id: str, test_id: str) -> str:
        if self.fail_create:
            raise ApiError(403, "Purchase is not approved")
        self.created.append((purchase_id, test_id))
        return "sub-1"

    async def upload_audio(self, data: bytes, filename: str, content_type: str) -> str:
        if self.upload_delay:
            await asyncio.sleep(self.upload_delay)
        question_id = filename.removeprefix("answer-").removesuffix(".wav")
        if question_id in self.fail_uploads_for:
            raise ApiError(0, "connection reset")
        self.uploads.append(filename)
        return f"/api/audio/{filename}"

    async def append_answer(self, submission_id: str, question_id: str, audio_ref: str) -> None:
        self.answers.append((submission_id, question_id, audio_ref))

    async def complete_submission(self, submission_id: str) -> dict[str, Any]:
        if self.fail_complete:
            self.fail_complete -= 1
            raise ApiError(503, "unavailable")
        self.completed.append(submission_id)
        return {"id": submission_id, "status": "submitted"}


def make_section(
    section_id: str,
    number: int,
    parent: str | None = None,
    prep: int = 0,
    speak: int = 0,
    image_url: str | None = None,
) -> Section:
    return Section(
        id=section_id,
        test_id="t1",
        section_number=number,
        title=f"Section {section_id}",
        preparation_time=prep,
        speaking_time=speak,
        image_url=image_url,
        parent_section_id=parent,
    )


def make_question(
    question_id: str,
    section_id: str,
    number: int,
    prep: int | None = None,
    speak: int | None = None,
) -> Question:
    return Question(
        id=question_id,
        section_id=section_id,
        question_number=number,
        question_text=f"Question {question_id}",
        preparation_time=prep,
        speaking_time=speak,
    )


def make_flat(question_id: str, prep: int, speak: int) -> FlatQuestion:
    return FlatQuestion(
        id=question_id,
        section_id="s1",
        question_number=1,
        question_text=f"Question {question_id}",
        section_preparation_time=prep,
        section_speaking_time=speak,
    )


