"""Pydantic models."""
from api.models.auth import (
    MessageResponse,
    TokenResponse,
    UserLogin,
    UserRegister,
    UserResponse,
)
from api.models.exams import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    QuestionCreate,
    QuestionResponse,
    QuestionUpdate,
    SectionCreate,
    SectionResponse,
    SectionUpdate,
    TestCreate,
    TestResponse,
    TestUpdate,
)
from api.models.purchases import PurchaseCreate, PurchaseResponse, ReceiptUploadResponse
from api.models.submissions import (
    AnswerCreate,
    AnswerResponse,
    AudioUploadResponse,
    ResultCreate,
    ResultResponse,
    SubmissionCreate,
    SubmissionResponse,
)

__all__ = [
    "AnswerCreate",
    "AnswerResponse",
    "AudioUploadResponse",
    "CategoryCreate",
    "CategoryResponse",
    "CategoryUpdate",
    "MessageResponse",
    "PurchaseCreate",
    "PurchaseResponse",
    "QuestionCreate",
    "QuestionResponse",
    "QuestionUpdate",
    "ReceiptUploadResponse",
    "ResultCreate",
    "ResultResponse",
    "SectionCreate",
    "SectionResponse",
    "SectionUpdate",
    "SubmissionCreate",
    "SubmissionResponse",
    "TestCreate",
    "TestResponse",
    "TestUpdate",
    "TokenResponse",
    "UserLogin",
    "UserRegister",
    "UserResponse",
]
