"""Test category endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session as DbSession

from api.database import get_db
from api.dependencies.auth import require_admin
from api.models.exams import CategoryCreate, CategoryResponse, CategoryUpdate
from api.models.db.exam import Category
from api.models.db.user import User
from api.services import exam_service

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=list[CategoryResponse])
def list_categories(db: Annotated[DbSession, Depends(get_db)]) -> list[Category]:
    return exam_service.list_categories(db)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    current_user: Annotated[User, Depends(require_admin)],
    db: Annotated[DbSession, Depends(get_db)],
) -> Category:
    return exam_service.create_category(db, payload.model_dump())


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(
    category_id: str,
    db: Annotated[DbSession, Depends(get_db)],
) -> Category:
    return exam_service.get_category(db, category_id)


@router.patch("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: str,
    payload: CategoryUpdate,
    current_user: Annotated[User, Depends(require_admin)],
    db: Annotated[DbSession, Depends(get_db)],
) -> Category:
    category = exam_service.get_category(db, category_id)
    return exam_service.update_category(db, category, payload.model_dump(exclude_unset=True))


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: str,
    current_user: Annotated[User, Depends(require_admin)],
    db: Annotated[DbSession, Depends(get_db)],
) -> None:
    category = exam_service.get_category(db, category_id)
    exam_service.delete_category(db, category)
