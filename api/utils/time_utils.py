"""Time utilities."""
from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


def days_ago(days: int) -> datetime:
    """UTC time ``days`` days before now."""
    return utc_now() - timedelta(days=days)

