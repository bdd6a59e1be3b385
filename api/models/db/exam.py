"""
Category, Test, TestSection and Question database models.

Sections form a tree through ``parent_section_id``; the API returns them as a
flat list and the exam runner rebuilds the hierarchy.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from api.database import Base

if TYPE_CHECKING:
    from api.models.db.user import User


def _new_id() -> str:
    return str(uuid.uuid4())


class Category(Base):
    """Grouping shown in the test catalogue (e.g. a language or exam type)."""

    __tablename__ = "test_categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


class Test(Base):
    """A purchasable oral exam."""

    __tablename__ = "tests"
    __test__ = False  # not a pytest class

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    language: Mapped[str] = mapped_column(String(50), default="english", nullable=False)
    price: Mapped[Decimal] = mapped_column(
        sa.Numeric(10, 2), default=Decimal("0"), nullable=False
    )
    is_published: Mapped[bool] = mapped_column(default=False, nullable=False)
    is_demo: Mapped[bool] = mapped_column(default=False, nullable=False)
    teacher_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    # Deleting a category leaves its tests uncategorised.
    category_id: Mapped[str | None] = mapped_column(
        ForeignKey("test_categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    teacher: Mapped["User | None"] = relationship("User", foreign_keys=[teacher_id])
    category: Mapped["Category | None"] = relationship("Category")
    sections: Mapped[list["TestSection"]] = relationship(
        "TestSection", back_populates="test", cascade="all, delete-orphan"
    )


class TestSection(Base):
    """
    One part of a test.
    Preparation and speaking times are the defaults for its questions.
    """

    __tablename__ = "test_sections"
    __test__ = False

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    test_id: Mapped[str] = mapped_column(
        ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Plain column: deleting a parent leaves its children pointing at a missing id.
    parent_section_id: Mapped[str | None] = mapped_column(
        String(36), nullable=True, index=True
    )
    section_number: Mapped[int] = mapped_column(nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    preparation_time: Mapped[int] = mapped_column(default=30, nullable=False)
    speaking_time: Mapped[int] = mapped_column(default=60, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Relationships
    test: Mapped["Test"] = relationship("Test", back_populates="sections")
    questions: Mapped[list["Question"]] = relationship(
        "Question", back_populates="section", cascade="all, delete-orphan"
    )


class Question(Base):
    """A single spoken prompt inside a section."""

    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    section_id: Mapped[str] = mapped_column(
        ForeignKey("test_sections.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_number: Mapped[int] = mapped_column(nullable=False)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    question_audio_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Overrides of the section timers
    preparation_time: Mapped[int | None] = mapped_column(nullable=True)
    speaking_time: Mapped[int | None] = mapped_column(nullable=True)

    # Pros and cons shown next to a discussion question, with their headings
    key_facts_plus: Mapped[str | None] = mapped_column(Text, nullable=True)
    key_facts_plus_label: Mapped[str | None] = mapped_column(String(255), nullable=True)
    key_facts_minus: Mapped[str | None] = mapped_column(Text, nullable=True)
    key_facts_minus_label: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Relationships
    section: Mapped["TestSection"] = relationship("TestSection", back_populates="questions")
