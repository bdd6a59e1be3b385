"""Question endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session as DbSession

from api.database import get_db
from api.dependencies.auth import get_current_user, require_staff
from api.models.exams import QuestionCreate, QuestionResponse, QuestionUpdate
from api.models.db.exam import Question
from api.models.db.user import User
from api.services import exam_service

router = APIRouter(prefix="/api", tags=["questions"])


@router.get("/sections/{section_id}/questions", response_model=list[QuestionResponse])
def list_questions(
    section_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[DbSession, Depends(get_db)],
) -> list[Question]:
    return exam_service.list_questions(db, section_id)


@router.post("/questions", response_model=QuestionResponse, status_code=status.HTTP_201_CREATED)
def create_question(
    payload: QuestionCreate,
    current_user: Annotated[User, Depends(require_staff)],
    db: Annotated[DbSession, Depends(get_db)],
) -> Question:
    section = exam_service.get_section(db, payload.section_id)
    exam_service.get_managed_test(db, section.test_id, current_user)
    return exam_service.create_question(db, payload.model_dump())


@router.patch("/questions/{question_id}", response_model=QuestionResponse)
def update_question(
    question_id: str,
    payload: QuestionUpdate,
    current_user: Annotated[User, Depends(require_staff)],
    db: Annotated[DbSession, Depends(get_db)],
) -> Question:
    question = exam_service.get_question(db, question_id)
    exam_service.get_managed_test(db, exam_service.owning_test_id(db, question), current_user)
    return exam_service.update_question(db, question, payload.model_dump(exclude_unset=True))


@router.delete("/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_question(
    question_id: str,
    current_user: Annotated[User, Depends(require_staff)],
    db: Annotated[DbSession, Depends(get_db)],
) -> None:
    question = exam_service.get_question(db, question_id)
    exam_service.get_managed_test(db, exam_service.owning_test_id(db, question), current_user)
    exam_service.delete_question(db, question)
