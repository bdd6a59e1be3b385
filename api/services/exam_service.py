"""Service layer for tests, sections and questions."""
import logging
from typing import Any

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session as DBSession

from api.models.db.exam import Category, Question, Test, TestSection
from api.models.db.user import User, UserRole

logger = logging.getLogger(__name__)


# Categories


def list_categories(db: DBSession) -> list[Category]:
    return list(db.execute(select(Category).order_by(Category.name)).scalars())


def get_category(db: DBSession, category_id: str) -> Category:
    category = db.get(Category, category_id)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


def create_category(db: DBSession, data: dict[str, Any]) -> Category:
    category = Category(**data)
    db.add(category)
    db.commit()
    db.refresh(category)
    logger.info("Category %s created: %s", category.id, category.name)
    return category


def update_category(db: DBSession, category: Category, changes: dict[str, Any]) -> Category:
    for field, value in changes.items():
        setattr(category, field, value)
    db.commit()
    db.refresh(category)
    return category


def delete_category(db: DBSession, category: Category) -> None:
    """Delete a category. Its tests stay, without a category."""
    db.delete(category)
    db.commit()
    logger.info("Category %s deleted", category.id)


def _check_category(db: DBSession, category_id: str | None) -> None:
    if category_id is not None and db.get(Category, category_id) is None:
        raise HTTPException(status_code=400, detail="Category not found")


# Tests


def can_manage_test(user: User, test: Test) -> bool:
    """Admins manage every test, teachers only their own."""
    if user.role == UserRole.ADMIN.value:
        return True
    return user.role == UserRole.TEACHER.value and test.teacher_id == user.id


def list_tests(
    db: DBSession,
    user: User | None,
    category_id: str | None = None,
    teacher_id: int | None = None,
) -> list[Test]:
    """Published tests for everyone, plus unpublished ones the user manages."""
    query = select(Test).order_by(Test.created_at)
    if category_id is not None:
        query = query.where(Test.category_id == category_id)
    if teacher_id is not None:
        query = query.where(Test.teacher_id == teacher_id)
    tests = db.execute(query).scalars().all()
    return [
        test
        for test in tests
        if test.is_published or (user is not None and can_manage_test(user, test))
    ]


def get_test(db: DBSession, test_id: str) -> Test:
    test = db.get(Test, test_id)
    if test is None:
        raise HTTPException(status_code=404, detail="Test not found")
    return test


def get_managed_test(db: DBSession, test_id: str, user: User) -> Test:
    test = get_test(db, test_id)
    if not can_manage_test(user, test):
        raise HTTPException(status_code=403, detail="Not allowed to modify this test")
    return test


def create_test(db: DBSession, user: User, data: dict[str, Any]) -> Test:
    title = (data.get("title") or "").strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title is required")
    _check_category(db, data.get("category_id"))
    test = Test(**{**data, "title": title}, teacher_id=user.id)
    db.add(test)
    db.commit()
    db.refresh(test)
    logger.info("Test %s created by user %s", test.id, user.id)
    return test


def update_test(db: DBSession, test: Test, changes: dict[str, Any]) -> Test:
    if "category_id" in changes:
        _check_category(db, changes["category_id"])
    for field, value in changes.items():
        setattr(test, field, value)
    db.commit()
    db.refresh(test)
    return test


def delete_test(db: DBSession, test: Test) -> None:
    db.delete(test)
    db.commit()
    logger.info("Test %s deleted", test.id)


# Sections


def list_sections(db: DBSession, test_id: str) -> list[TestSection]:
    """All sections of a test as a flat list; the client builds the tree."""
    get_test(db, test_id)
    return list(
        db.execute(select(TestSection).where(TestSection.test_id == test_id)).scalars()
    )


def get_section(db: DBSession, section_id: str) -> TestSection:
    section = db.get(TestSection, section_id)
    if section is None:
        raise HTTPException(status_code=404, detail="Section not found")
    return section


def validate_parent(
    db: DBSession, test_id: str, parent_id: str | None, section_id: str | None = None
) -> None:
    """
    Check that the parent exists in the same test and that attaching
    ``section_id`` under it does not close a loop.
    """
    if parent_id is None:
        return
    if parent_id == section_id:
        raise HTTPException(status_code=400, detail="A section cannot be its own parent")

    parent = db.get(TestSection, parent_id)
    if parent is None:
        raise HTTPException(status_code=400, detail="Parent section not found")
    if parent.test_id != test_id:
        raise HTTPException(
            status_code=400, detail="Parent section belongs to another test"
        )

    if section_id is None:
        return
    seen = {parent_id}
    current = parent
    while current.parent_section_id is not None:
        if current.parent_section_id == section_id:
            raise HTTPException(
                status_code=400, detail="Section hierarchy would contain a cycle"
            )
        if current.parent_section_id in seen:
            # Existing loop above us; refuse to extend it.
            raise HTTPException(
                status_code=400, detail="Section hierarchy would contain a cycle"
            )
        seen.add(current.parent_section_id)
        current = db.get(TestSection, current.parent_section_id)
        if current is None:
            break


def create_section(db: DBSession, data: dict[str, Any]) -> TestSection:
    validate_parent(db, data["test_id"], data.get("parent_section_id"))
    section = TestSection(**data)
    db.add(section)
    db.commit()
    db.refresh(section)
    return section


def update_section(db: DBSession, section: TestSection, changes: dict[str, Any]) -> TestSection:
    if "parent_section_id" in changes:
        validate_parent(db, section.test_id, changes["parent_section_id"], section.id)
    for field, value in changes.items():
        setattr(section, field, value)
    db.commit()
    db.refresh(section)
    return section


def delete_section(db: DBSession, section: TestSection) -> None:
    """Delete a section and its questions. Child sections are left in place."""
    db.delete(section)
    db.commit()
    logger.info("Section %s deleted from test %s", section.id, section.test_id)


# Questions


def list_questions(db: DBSession, section_id: str) -> list[Question]:
    get_section(db, section_id)
    return list(
        db.execute(
            select(Question)
            .where(Question.section_id == section_id)
            .order_by(Question.question_number)
        ).scalars()
    )


def get_question(db: DBSession, question_id: str) -> Question:
    question = db.get(Question, question_id)
    if question is None:
        raise HTTPException(status_code=404, detail="Question not found")
    return question


def create_question(db: DBSession, data: dict[str, Any]) -> Question:
    get_section(db, data["section_id"])
    question = Question(**data)
    db.add(question)
    db.commit()
    db.refresh(question)
    return question


def update_question(db: DBSession, question: Question, changes: dict[str, Any]) -> Question:
    for field, value in changes.items():
        setattr(question, field, value)
    db.commit()
    db.refresh(question)
    return question


def delete_question(db: DBSession, question: Question) -> None:
    db.delete(question)
    db.commit()


def owning_test_id(db: DBSession, question: Question) -> str:
    return get_section(db, question.section_id).test_id
