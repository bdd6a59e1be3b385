"""Service for cleanup operations."""
import logging
import threading
import time

from sqlalchemy import delete

from api.config import ABANDONED_SUBMISSION_RETENTION_DAYS, CLEANUP_INTERVAL_SECONDS
from api.database import SessionLocal
from api.models.db.submission import Submission, SubmissionAnswer, SubmissionStatus
from api.services.auth_service import cleanup_expired_sessions
from api.utils import days_ago

logger = logging.getLogger(__name__)


def cleanup_abandoned_submissions(retention_days: int = ABANDONED_SUBMISSION_RETENTION_DAYS) -> int:
    """Remove in-progress submissions (and their answers) older than retention."""
    if retention_days <= 0:
        return 0

    cutoff = days_ago(retention_days)
    db = SessionLocal()
    try:
        stale = [
            row.id
            for row in db.query(Submission.id).filter(
                Submission.status == SubmissionStatus.IN_PROGRESS.value,
                Submission.started_at < cutoff,
            )
        ]
        if not stale:
            return 0
        db.execute(delete(SubmissionAnswer).where(SubmissionAnswer.submission_id.in_(stale)))
        db.execute(delete(Submission).where(Submission.id.in_(stale)))
        db.commit()
        logger.info(f"Cleaned up {len(stale)} abandoned submissions")
        return len(stale)
    finally:
        db.close()


def run_cleanup() -> None:
    """One cleanup pass; failures are logged and retried next interval."""
    try:
        cleanup_abandoned_submissions()
        db = SessionLocal()
        try:
            removed = cleanup_expired_sessions(db)
            if removed:
                logger.info(f"Removed {removed} expired sessions")
        finally:
            db.close()
    except Exception as e:
        logger.error(f"Cleanup failed: {e}")


def schedule_cleanup(initial_delay: float = 60) -> threading.Thread:
    """Run cleanup periodically in a daemon thread."""

    def _worker() -> None:
        time.sleep(initial_delay)
        while True:
            run_cleanup()
            time.sleep(CLEANUP_INTERVAL_SECONDS)

    thread = threading.Thread(
        target=_worker,
        name="submissions_cleanup",
        daemon=True,
    )
    thread.start()
    return thread
