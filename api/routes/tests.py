"""Test management endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session as DbSession

from api.database import get_db
from api.dependencies.auth import get_current_user, get_optional_user, require_staff
from api.models.exams import SectionResponse, TestCreate, TestResponse, TestUpdate
from api.models.db.exam import Test, TestSection
from api.models.db.user import User
from api.services import exam_service

router = APIRouter(prefix="/api/tests", tags=["tests"])


@router.get("", response_model=list[TestResponse])
def list_tests(
    current_user: Annotated[User | None, Depends(get_optional_user)],
    db: Annotated[DbSession, Depends(get_db)],
    category_id: str | None = None,
    teacher_id: int | None = None,
) -> list[Test]:
    """List published tests and the ones the caller manages."""
    return exam_service.list_tests(
        db, current_user, category_id=category_id, teacher_id=teacher_id
    )


@router.post("", response_model=TestResponse, status_code=status.HTTP_201_CREATED)
def create_test(
    payload: TestCreate,
    current_user: Annotated[User, Depends(require_staff)],
    db: Annotated[DbSession, Depends(get_db)],
) -> Test:
    return exam_service.create_test(db, current_user, payload.model_dump())


@router.get("/{test_id}", response_model=TestResponse)
def get_test(
    test_id: str,
    current_user: Annotated[User | None, Depends(get_optional_user)],
    db: Annotated[DbSession, Depends(get_db)],
) -> Test:
    test = exam_service.get_test(db, test_id)
    if not test.is_published and (
        current_user is None or not exam_service.can_manage_test(current_user, test)
    ):
        raise HTTPException(status_code=404, detail="Test not found")
    return test


@router.patch("/{test_id}", response_model=TestResponse)
def update_test(
    test_id: str,
    payload: TestUpdate,
    current_user: Annotated[User, Depends(require_staff)],
    db: Annotated[DbSession, Depends(get_db)],
) -> Test:
    test = exam_service.get_managed_test(db, test_id, current_user)
    return exam_service.update_test(db, test, payload.model_dump(exclude_unset=True))


@router.delete("/{test_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_test(
    test_id: str,
    current_user: Annotated[User, Depends(require_staff)],
    db: Annotated[DbSession, Depends(get_db)],
) -> None:
    test = exam_service.get_managed_test(db, test_id, current_user)
    exam_service.delete_test(db, test)


@router.get("/{test_id}/sections", response_model=list[SectionResponse])
def list_sections(
    test_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[DbSession, Depends(get_db)],
) -> list[TestSection]:
    """Flat, unordered section list; clients rebuild the hierarchy."""
    return exam_service.list_sections(db, test_id)
