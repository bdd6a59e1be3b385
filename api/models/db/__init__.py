"""Database models."""
from api.models.db.user import User, UserRole, Session
from api.models.db.exam import Category, Question, Test, TestSection
from api.models.db.purchase import Purchase, PurchaseStatus
from api.models.db.submission import (
    CefrLevel,
    Result,
    Submission,
    SubmissionAnswer,
    SubmissionStatus,
)

__all__ = [
    "User",
    "UserRole",
    "Session",
    "Category",
    "Test",
    "TestSection",
    "Question",
    "Purchase",
    "PurchaseStatus",
    "Submission",
    "SubmissionAnswer",
    "SubmissionStatus",
    "CefrLevel",
    "Result",
]
