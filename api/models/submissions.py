"""Pydantic models for submissions, answers, uploads and results."""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class SubmissionCreate(BaseModel):
    purchase_id: str
    test_id: str


class SubmissionResponse(BaseModel):
    id: str
    purchase_id: str
    test_id: str
    student_id: int
    status: Literal["in_progress", "submitted", "graded"]
    is_demo: bool
    started_at: datetime
    submitted_at: datetime | None

    class Config:
        from_attributes = True


class AnswerCreate(BaseModel):
    question_id: str
    audio_url: str = Field(..., min_length=1, max_length=500)


class AnswerResponse(BaseModel):
    id: int
    submission_id: str
    question_id: str
    audio_url: str
    answered_at: datetime

    class Config:
        from_attributes = True


class AudioUploadResponse(BaseModel):
    url: str
    size: int


class ResultCreate(BaseModel):
    submission_id: str
    score: int = Field(..., ge=0, le=100)
    cefr_level: Literal["A1", "A2", "B1", "B2", "C1", "C2"]
    feedback: str | None = None


class ResultResponse(BaseModel):
    id: str
    submission_id: str
    teacher_id: int | None
    score: int
    cefr_level: str
    feedback: str | None
    graded_at: datetime

    class Config:
        from_attributes = True
