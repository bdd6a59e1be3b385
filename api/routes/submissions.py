"""Submission endpoints used by the exam runner."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session as DbSession

from api.database import get_db
from api.dependencies.auth import get_current_user, require_staff
from api.models.submissions import (
    AnswerCreate,
    AnswerResponse,
    SubmissionCreate,
    SubmissionResponse,
)
from api.models.db.submission import Submission, SubmissionAnswer
from api.models.db.user import User
from api.services import submission_service

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


@router.post("", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
def create_submission(
    payload: SubmissionCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[DbSession, Depends(get_db)],
) -> Submission:
    return submission_service.create_submission(
        db, current_user, payload.purchase_id, payload.test_id
    )


@router.get("/student", response_model=list[SubmissionResponse])
def list_my_submissions(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[DbSession, Depends(get_db)],
) -> list[Submission]:
    return submission_service.list_for_student(db, current_user)


@router.get("/teacher", response_model=list[SubmissionResponse])
def list_teacher_submissions(
    current_user: Annotated[User, Depends(require_staff)],
    db: Annotated[DbSession, Depends(get_db)],
) -> list[Submission]:
    return submission_service.list_for_teacher(db, current_user)


@router.get("/test/{test_id}", response_model=list[SubmissionResponse])
def list_test_submissions(
    test_id: str,
    current_user: Annotated[User, Depends(require_staff)],
    db: Annotated[DbSession, Depends(get_db)],
) -> list[Submission]:
    return submission_service.list_for_test(db, test_id)


@router.get("/{submission_id}", response_model=SubmissionResponse)
def get_submission(
    submission_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[DbSession, Depends(get_db)],
) -> Submission:
    return submission_service.get_visible_submission(db, submission_id, current_user)


@router.post(
    "/{submission_id}/answer",
    response_model=AnswerResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_answer(
    submission_id: str,
    payload: AnswerCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[DbSession, Depends(get_db)],
) -> SubmissionAnswer:
    """Append a recorded answer; a later row for the same question supersedes."""
    submission = submission_service.get_owned_submission(db, submission_id, current_user)
    return submission_service.add_answer(
        db, submission, payload.question_id, payload.audio_url
    )


@router.post("/{submission_id}/complete", response_model=SubmissionResponse)
def complete_submission(
    submission_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[DbSession, Depends(get_db)],
) -> Submission:
    submission = submission_service.get_owned_submission(db, submission_id, current_user)
    return submission_service.complete_submission(db, submission)


@router.get("/{submission_id}/answers", response_model=list[AnswerResponse])
def list_answers(
    submission_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[DbSession, Depends(get_db)],
    latest_only: bool = Query(False),
) -> list[SubmissionAnswer]:
    submission = submission_service.get_visible_submission(db, submission_id, current_user)
    return submission_service.list_answers(db, submission, latest_only=latest_only)
