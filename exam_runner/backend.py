"""Collaborators the exam runner reads content from and writes answers to."""
from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Any

from exam_runner.client import ExamApiClient
from exam_runner.models import Question, Section

logger = logging.getLogger(__name__)


class ExamBackend:
    """Async interface used by the sequencer, uploader and session."""

    async def fetch_sections(self, test_id: str) -> list[Section]:
        raise NotImplementedError

    async def fetch_questions(self, section_id: str) -> list[Question]:
        raise NotImplementedError

    async def create_submission(self, purchase_id: str, test_id: str) -> str:
        """Create a submission and return its id."""
        raise NotImplementedError

    async def upload_audio(self, data: bytes, filename: str, content_type: str) -> str:
        """Store audio durably and return a reference usable by append_answer."""
        raise NotImplementedError

    async def append_answer(
        self, submission_id: str, question_id: str, audio_ref: str
    ) -> None:
        raise NotImplementedError

    async def complete_submission(self, submission_id: str) -> dict[str, Any]:
        raise NotImplementedError


class RemoteExamBackend(ExamBackend):
    """Backend talking to the exam API; blocking HTTP calls run in worker threads."""

    def __init__(self, client: ExamApiClient):
        self.client = client

    async def fetch_sections(self, test_id: str) -> list[Section]:
        payload = await asyncio.to_thread(self.client.get_sections, test_id)
        return [Section.from_payload(item) for item in payload]

    async def fetch_questions(self, section_id: str) -> list[Question]:
        payload = await asyncio.to_thread(self.client.get_questions, section_id)
        return [Question.from_payload(item) for item in payload]

    async def create_submission(self, purchase_id: str, test_id: str) -> str:
        payload = await asyncio.to_thread(
            self.client.create_submission, purchase_id, test_id
        )
        return str(payload["id"])

    async def upload_audio(self, data: bytes, filename: str, content_type: str) -> str:
        return await asyncio.to_thread(
            self.client.upload_audio, data, filename, content_type
        )

    async def append_answer(
        self, submission_id: str, question_id: str, audio_ref: str
    ) -> None:
        await asyncio.to_thread(
            self.client.add_answer, submission_id, question_id, audio_ref
        )

    async def complete_submission(self, submission_id: str) -> dict[str, Any]:
        return await asyncio.to_thread(self.client.complete_submission, submission_id)


class DemoExamBackend(ExamBackend):
    """
    Demo mode: content is read through another backend, answers never leave the
    machine. Audio is written under ``storage_dir`` and the submission lives in
    memory.
    """

    def __init__(self, reader: ExamBackend, storage_dir: Path):
        self.reader = reader
        self.storage_dir = Path(storage_dir)
        self.submissions: dict[str, dict[str, Any]] = {}

    async def fetch_sections(self, test_id: str) -> list[Section]:
        return await self.reader.fetch_sections(test_id)

    async def fetch_questions(self, section_id: str) -> list[Question]:
        return await self.reader.fetch_questions(section_id)

    async def create_submission(self, purchase_id: str, test_id: str) -> str:
        submission_id = f"demo-{uuid.uuid4().hex}"
        self.submissions[submission_id] = {
            "id": submission_id,
            "purchase_id": purchase_id,
            "test_id": test_id,
            "status": "in_progress",
            "is_demo": True,
            "answers": [],
        }
        return submission_id

    def _write_audio(self, data: bytes, filename: str) -> Path:
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        target = self.storage_dir / f"{uuid.uuid4().hex[:8]}-{Path(filename).name}"
        target.write_bytes(data)
        return target

    async def upload_audio(self, data: bytes, filename: str, content_type: str) -> str:
        path = await asyncio.to_thread(self._write_audio, data, filename)
        return path.resolve().as_uri()

    async def append_answer(
        self, submission_id: str, question_id: str, audio_ref: str
    ) -> None:
        submission = self.submissions[submission_id]
        submission["answers"].append({"question_id": question_id, "audio_url": audio_ref})

    async def complete_submission(self, submission_id: str) -> dict[str, Any]:
        submission = self.submissions[submission_id]
        submission["status"] = "submitted"
        logger.info(
            "Demo submission %s completed with %d answers",
            submission_id,
            len(submission["answers"]),
        )
        return dict(submission)
