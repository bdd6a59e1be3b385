"""Grading endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session as DbSession

from api.database import get_db
from api.dependencies.auth import get_current_user, require_staff
from api.models.submissions import ResultCreate, ResultResponse
from api.models.db.submission import Result
from api.models.db.user import User
from api.services import submission_service

router = APIRouter(prefix="/api/results", tags=["results"])


@router.post("", response_model=ResultResponse, status_code=status.HTTP_201_CREATED)
def create_result(
    payload: ResultCreate,
    current_user: Annotated[User, Depends(require_staff)],
    db: Annotated[DbSession, Depends(get_db)],
) -> Result:
    submission = submission_service.get_submission(db, payload.submission_id)
    return submission_service.grade_submission(
        db,
        current_user,
        submission,
        score=payload.score,
        cefr_level=payload.cefr_level,
        feedback=payload.feedback,
    )


@router.get("/{submission_id}", response_model=ResultResponse)
def get_result(
    submission_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[DbSession, Depends(get_db)],
) -> Result:
    submission = submission_service.get_visible_submission(db, submission_id, current_user)
    return submission_service.get_result(db, submission)
