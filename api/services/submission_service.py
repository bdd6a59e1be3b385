"""Service layer for submissions, answers and results."""
import logging

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session as DBSession

from api.models.db.exam import Question, Test, TestSection
from api.models.db.purchase import Purchase
from api.models.db.submission import (
    Result,
    Submission,
    SubmissionAnswer,
    SubmissionStatus,
)
from api.models.db.user import User, UserRole
from api.utils import utc_now

logger = logging.getLogger(__name__)


def create_submission(
    db: DBSession, student: User, purchase_id: str, test_id: str
) -> Submission:
    """
    Start a new sitting.
    The purchase must belong to the caller, cover this test and be approved.
    """
    purchase = db.get(Purchase, purchase_id)
    if purchase is None or purchase.student_id != student.id:
        raise HTTPException(status_code=404, detail="Purchase not found")
    if purchase.test_id != test_id:
        raise HTTPException(status_code=400, detail="Purchase is for another test")
    if not purchase.is_approved:
        raise HTTPException(status_code=403, detail="Purchase is not approved")

    submission = Submission(
        purchase_id=purchase.id,
        test_id=test_id,
        student_id=student.id,
        status=SubmissionStatus.IN_PROGRESS.value,
        is_demo=purchase.is_demo_access,
    )
    db.add(submission)
    db.commit()
    db.refresh(submission)
    logger.info("Submission %s started by user %s", submission.id, student.id)
    return submission


def get_submission(db: DBSession, submission_id: str) -> Submission:
    submission = db.get(Submission, submission_id)
    if submission is None:
        raise HTTPException(status_code=404, detail="Submission not found")
    return submission


def get_visible_submission(db: DBSession, submission_id: str, user: User) -> Submission:
    """Owner, teachers and admins may read a submission."""
    submission = get_submission(db, submission_id)
    if submission.student_id != user.id and not user.is_staff:
        raise HTTPException(status_code=403, detail="Access denied")
    return submission


def get_owned_submission(db: DBSession, submission_id: str, user: User) -> Submission:
    submission = get_submission(db, submission_id)
    if submission.student_id != user.id:
        raise HTTPException(status_code=403, detail="Access denied")
    return submission


def list_for_student(db: DBSession, student: User) -> list[Submission]:
    return list(
        db.execute(
            select(Submission)
            .where(Submission.student_id == student.id)
            .order_by(Submission.started_at.desc())
        ).scalars()
    )


def list_for_teacher(db: DBSession, teacher: User) -> list[Submission]:
    """Submissions for the teacher's own tests; admins see every submission."""
    query = select(Submission).order_by(Submission.started_at.desc())
    if teacher.role != UserRole.ADMIN.value:
        query = query.join(Test, Submission.test_id == Test.id).where(
            Test.teacher_id == teacher.id
        )
    return list(db.execute(query).scalars())


def list_for_test(db: DBSession, test_id: str) -> list[Submission]:
    return list(
        db.execute(
            select(Submission)
            .where(Submission.test_id == test_id)
            .order_by(Submission.started_at.desc())
        ).scalars()
    )


def add_answer(
    db: DBSession, submission: Submission, question_id: str, audio_url: str
) -> SubmissionAnswer:
    """
    Append an answer row. Earlier rows for the same question are kept;
    readers take the latest one.
    """
    if not submission.is_in_progress:
        raise HTTPException(
            status_code=409, detail=f"Submission is already {submission.status}"
        )

    question = db.get(Question, question_id)
    section = db.get(TestSection, question.section_id) if question else None
    if section is None or section.test_id != submission.test_id:
        raise HTTPException(status_code=400, detail="Question is not part of this test")

    answer = SubmissionAnswer(
        submission_id=submission.id,
        question_id=question_id,
        audio_url=audio_url,
        answered_at=utc_now(),
    )
    db.add(answer)
    db.commit()
    db.refresh(answer)
    return answer


def complete_submission(db: DBSession, submission: Submission) -> Submission:
    """
    Move in_progress -> submitted.
    Completing an already submitted sitting returns it unchanged, so a client
    retrying after a lost response gets the same result.
    """
    if submission.status == SubmissionStatus.SUBMITTED.value:
        return submission
    if submission.status != SubmissionStatus.IN_PROGRESS.value:
        raise HTTPException(
            status_code=409, detail=f"Submission is already {submission.status}"
        )
    submission.status = SubmissionStatus.SUBMITTED.value
    submission.submitted_at = utc_now()
    db.commit()
    db.refresh(submission)
    logger.info(
        "Submission %s completed with %d answer rows",
        submission.id, len(submission.answers),
    )
    return submission


def list_answers(
    db: DBSession, submission: Submission, latest_only: bool = False
) -> list[SubmissionAnswer]:
    answers = list(
        db.execute(
            select(SubmissionAnswer)
            .where(SubmissionAnswer.submission_id == submission.id)
            .order_by(SubmissionAnswer.id)
        ).scalars()
    )
    if not latest_only:
        return answers
    latest: dict[str, SubmissionAnswer] = {}
    for answer in answers:
        latest[answer.question_id] = answer
    return sorted(latest.values(), key=lambda answer: answer.id)


def grade_submission(
    db: DBSession,
    teacher: User,
    submission: Submission,
    score: int,
    cefr_level: str,
    feedback: str | None = None,
) -> Result:
    """Record the grade and mark the submission graded."""
    if submission.status == SubmissionStatus.IN_PROGRESS.value:
        raise HTTPException(status_code=409, detail="Submission is not submitted yet")

    result = submission.result
    if result is None:
        result = Result(submission_id=submission.id)
        db.add(result)
    result.teacher_id = teacher.id
    result.score = score
    result.cefr_level = cefr_level
    result.feedback = feedback
    result.graded_at = utc_now()
    submission.status = SubmissionStatus.GRADED.value
    db.commit()
    db.refresh(result)
    return result


def get_result(db: DBSession, submission: Submission) -> Result:
    if submission.result is None:
        raise HTTPException(status_code=404, detail="Result not found")
    return submission.result
