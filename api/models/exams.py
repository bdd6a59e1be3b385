"""Pydantic models for categories, tests, sections and questions."""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None


class CategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None


class CategoryResponse(BaseModel):
    id: str
    name: str
    description: str | None
    created_at: datetime

    class Config:
        from_attributes = True


class TestCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    language: str = Field("english", max_length=50)
    price: Decimal = Field(Decimal("0"), ge=0)
    is_published: bool = False
    is_demo: bool = False
    category_id: str | None = None


class TestUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    language: str | None = Field(None, max_length=50)
    price: Decimal | None = Field(None, ge=0)
    is_published: bool | None = None
    is_demo: bool | None = None
    category_id: str | None = None


class TestResponse(BaseModel):
    id: str
    title: str
    description: str | None
    language: str
    price: Decimal
    is_published: bool
    is_demo: bool
    teacher_id: int | None
    category_id: str | None
    created_at: datetime

    class Config:
        from_attributes = True


class SectionCreate(BaseModel):
    test_id: str
    parent_section_id: str | None = None
    section_number: int = Field(..., ge=0)
    title: str = Field(..., min_length=1, max_length=255)
    instructions: str | None = None
    preparation_time: int = Field(30, ge=0)
    speaking_time: int = Field(60, ge=0)
    image_url: str | None = None


class SectionUpdate(BaseModel):
    parent_section_id: str | None = None
    section_number: int | None = Field(None, ge=0)
    title: str | None = Field(None, min_length=1, max_length=255)
    instructions: str | None = None
    preparation_time: int | None = Field(None, ge=0)
    speaking_time: int | None = Field(None, ge=0)
    image_url: str | None = None


class SectionResponse(BaseModel):
    id: str
    test_id: str
    parent_section_id: str | None
    section_number: int
    title: str
    instructions: str | None
    preparation_time: int
    speaking_time: int
    image_url: str | None

    class Config:
        from_attributes = True


class QuestionCreate(BaseModel):
    section_id: str
    question_number: int = Field(..., ge=0)
    question_text: str = Field(..., min_length=1)
    image_url: str | None = None
    question_audio_url: str | None = None
    preparation_time: int | None = Field(None, ge=0)
    speaking_time: int | None = Field(None, ge=0)
    key_facts_plus: str | None = None
    key_facts_plus_label: str | None = Field(None, max_length=255)
    key_facts_minus: str | None = None
    key_facts_minus_label: str | None = Field(None, max_length=255)


class QuestionUpdate(BaseModel):
    question_number: int | None = Field(None, ge=0)
    question_text: str | None = Field(None, min_length=1)
    image_url: str | None = None
    question_audio_url: str | None = None
    preparation_time: int | None = Field(None, ge=0)
    speaking_time: int | None = Field(None, ge=0)
    key_facts_plus: str | None = None
    key_facts_plus_label: str | None = Field(None, max_length=255)
    key_facts_minus: str | None = None
    key_facts_minus_label: str | None = Field(None, max_length=255)


class QuestionResponse(BaseModel):
    id: str
    section_id: str
    question_number: int
    question_text: str
    image_url: str | None
    question_audio_url: str | None
    preparation_time: int | None
    speaking_time: int | None
    key_facts_plus: str | None
    key_facts_plus_label: str | None
    key_facts_minus: str | None
    key_facts_minus_label: str | None

    class Config:
        from_attributes = True


class ImageUploadResponse(BaseModel):
    image_url: str
    size: int
