"""Pydantic models for purchases."""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class PurchaseCreate(BaseModel):
    test_id: str
    receipt_url: str | None = Field(None, max_length=500)


class PurchaseResponse(BaseModel):
    id: str
    student_id: int
    test_id: str
    status: Literal["pending", "approved", "rejected"]
    is_demo_access: bool
    receipt_url: str | None
    created_at: datetime
    reviewed_at: datetime | None

    class Config:
        from_attributes = True


class ReceiptUploadResponse(BaseModel):
    url: str
    size: int
