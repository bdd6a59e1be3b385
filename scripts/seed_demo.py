#!/usr/bin/env python3
"""
Seed a local database with accounts and a short demo test.

This script:
1. Creates the tables if needed
2. Creates an admin, a teacher and a student account (password: "password")
3. Creates a published demo test with a nested section layout
4. Gives the student an approved demo purchase for it

Running it twice does not duplicate anything.

Usage:
    python scripts/seed_demo.py
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import select

from api.database import SessionLocal, init_db
from api.models.db.exam import Question, Test, TestSection
from api.models.db.user import User, UserRole
from api.services import purchase_service
from api.services.auth_service import create_user, get_user_by_username

DEMO_TITLE = "Speaking practice (demo)"
DEFAULT_PASSWORD = "password"


def get_or_create_user(db, username: str, role: UserRole) -> User:
    user = get_user_by_username(db, username)
    if user is None:
        user = create_user(
            db, username, f"{username}@example.com", DEFAULT_PASSWORD, role=role
        )
        print(f"Created {role.value}: {username}")
    return user


def create_demo_test(db, teacher: User) -> Test:
    existing = db.execute(select(Test).where(Test.title == DEMO_TITLE)).scalar_one_or_none()
    if existing:
        return existing

    test = Test(
        title=DEMO_TITLE,
        description="Two short parts to try the recorder and timers.",
        is_published=True,
        is_demo=True,
        teacher_id=teacher.id,
    )
    db.add(test)
    db.flush()

    intro = TestSection(
        test_id=test.id,
        section_number=1,
        title="Introduction",
        instructions="Answer each question in a few sentences.",
        preparation_time=10,
        speaking_time=30,
    )
    picture = TestSection(
        test_id=test.id,
        section_number=2,
        title="Picture description",
        instructions="Describe what you see.",
        preparation_time=20,
        speaking_time=45,
    )
    db.add_all([intro, picture])
    db.flush()

    details = TestSection(
        test_id=test.id,
        parent_section_id=picture.id,
        section_number=1,
        title="Details",
        preparation_time=15,
        speaking_time=30,
    )
    db.add(details)
    db.flush()

    db.add_all([
        Question(section_id=intro.id, question_number=1, question_text="Tell me about yourself."),
        Question(section_id=intro.id, question_number=2, question_text="What do you do in your free time?"),
        Question(section_id=picture.id, question_number=1, question_text="What is happening in the picture?"),
        Question(
            section_id=details.id,
            question_number=1,
            question_text="Should the city close the centre to cars?",
            speaking_time=60,
            key_facts_plus="Cleaner air\nSafer streets",
            key_facts_plus_label="For",
            key_facts_minus="Harder deliveries\nLonger commutes",
            key_facts_minus_label="Against",
        ),
    ])
    db.commit()
    db.refresh(test)
    print(f"Created demo test: {test.id}")
    return test


def seed() -> dict[str, str]:
    init_db()
    db = SessionLocal()
    try:
        get_or_create_user(db, "admin", UserRole.ADMIN)
        teacher = get_or_create_user(db, "teacher", UserRole.TEACHER)
        student = get_or_create_user(db, "student", UserRole.STUDENT)
        test = create_demo_test(db, teacher)
        purchase = purchase_service.create_purchase(db, student, test.id)
        return {"test_id": test.id, "purchase_id": purchase.id}
    finally:
        db.close()


def main():
    ids = seed()
    print(
        "\nTake the demo exam with:\n"
        f"  python cli.py --username student --password {DEFAULT_PASSWORD} "
        f"--test-id {ids['test_id']} --purchase-id {ids['purchase_id']}"
    )


if __name__ == "__main__":
    main()
