"""Service layer for purchases."""
import logging

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session as DBSession

from api.models.db.exam import Test
from api.models.db.purchase import Purchase, PurchaseStatus
from api.models.db.user import User, UserRole
from api.utils import utc_now

logger = logging.getLogger(__name__)


def create_purchase(
    db: DBSession, student: User, test_id: str, receipt_url: str | None = None
) -> Purchase:
    """
    Request access to a test.
    Demo tests are approved immediately; paid ones wait for an admin.
    """
    test = db.get(Test, test_id)
    if test is None or not test.is_published:
        raise HTTPException(status_code=404, detail="Test not found")

    existing = db.execute(
        select(Purchase).where(
            Purchase.student_id == student.id,
            Purchase.test_id == test_id,
            Purchase.status != PurchaseStatus.REJECTED.value,
        )
    ).scalars().first()
    if existing:
        if receipt_url and not existing.receipt_url:
            existing.receipt_url = receipt_url
            db.commit()
            db.refresh(existing)
        return existing

    purchase = Purchase(student_id=student.id, test_id=test_id, receipt_url=receipt_url)
    if test.is_demo:
        purchase.status = PurchaseStatus.APPROVED.value
        purchase.is_demo_access = True
        purchase.reviewed_at = utc_now()

    db.add(purchase)
    db.commit()
    db.refresh(purchase)
    logger.info(
        "Purchase %s for test %s by user %s (%s)",
        purchase.id, test_id, student.id, purchase.status,
    )
    return purchase


def get_purchase_for_user(db: DBSession, purchase_id: str, user: User) -> Purchase:
    """The buyer and admins may read a purchase."""
    purchase = db.get(Purchase, purchase_id)
    if purchase is None:
        raise HTTPException(status_code=404, detail="Purchase not found")
    if purchase.student_id != user.id and user.role != UserRole.ADMIN.value:
        raise HTTPException(status_code=403, detail="Access denied")
    return purchase


def list_for_student(db: DBSession, student: User) -> list[Purchase]:
    return list(
        db.execute(
            select(Purchase)
            .where(Purchase.student_id == student.id)
            .order_by(Purchase.created_at.desc())
        ).scalars()
    )


def list_pending(db: DBSession) -> list[Purchase]:
    return list(
        db.execute(
            select(Purchase)
            .where(Purchase.status == PurchaseStatus.PENDING.value)
            .order_by(Purchase.created_at)
        ).scalars()
    )


def review_purchase(db: DBSession, purchase_id: str, approve: bool) -> Purchase:
    purchase = db.get(Purchase, purchase_id)
    if purchase is None:
        raise HTTPException(status_code=404, detail="Purchase not found")
    if purchase.status != PurchaseStatus.PENDING.value:
        raise HTTPException(
            status_code=409, detail=f"Purchase already {purchase.status}"
        )
    purchase.status = (
        PurchaseStatus.APPROVED.value if approve else PurchaseStatus.REJECTED.value
    )
    purchase.reviewed_at = utc_now()
    db.commit()
    db.refresh(purchase)
    return purchase
