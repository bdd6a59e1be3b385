"""Purchase endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session as DbSession

from api.database import get_db
from api.dependencies.auth import get_current_user, require_admin
from api.models.purchases import PurchaseCreate, PurchaseResponse
from api.models.db.purchase import Purchase
from api.models.db.user import User
from api.services import purchase_service

router = APIRouter(prefix="/api/purchases", tags=["purchases"])


@router.post("", response_model=PurchaseResponse, status_code=status.HTTP_201_CREATED)
def create_purchase(
    payload: PurchaseCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[DbSession, Depends(get_db)],
) -> Purchase:
    return purchase_service.create_purchase(
        db, current_user, payload.test_id, receipt_url=payload.receipt_url
    )


@router.get("", response_model=list[PurchaseResponse])
def list_my_purchases(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[DbSession, Depends(get_db)],
) -> list[Purchase]:
    return purchase_service.list_for_student(db, current_user)


@router.get("/pending", response_model=list[PurchaseResponse])
def list_pending(
    current_user: Annotated[User, Depends(require_admin)],
    db: Annotated[DbSession, Depends(get_db)],
) -> list[Purchase]:
    return purchase_service.list_pending(db)


@router.patch("/{purchase_id}/approve", response_model=PurchaseResponse)
def approve_purchase(
    purchase_id: str,
    current_user: Annotated[User, Depends(require_admin)],
    db: Annotated[DbSession, Depends(get_db)],
) -> Purchase:
    return purchase_service.review_purchase(db, purchase_id, approve=True)


@router.patch("/{purchase_id}/reject", response_model=PurchaseResponse)
def reject_purchase(
    purchase_id: str,
    current_user: Annotated[User, Depends(require_admin)],
    db: Annotated[DbSession, Depends(get_db)],
) -> Purchase:
    return purchase_service.review_purchase(db, purchase_id, approve=False)


@router.get("/{purchase_id}", response_model=PurchaseResponse)
def get_purchase(
    purchase_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[DbSession, Depends(get_db)],
) -> Purchase:
    return purchase_service.get_purchase_for_user(db, purchase_id, current_user)
