"""Utility helpers for the API."""
from api.utils.file_utils import safe_path, unique_filename, write_bytes
from api.utils.time_utils import days_ago, utc_now
from api.utils.validation import validate_extension, validate_id, validate_size

__all__ = [
    "days_ago",
    "safe_path",
    "unique_filename",
    "utc_now",
    "validate_extension",
    "validate_id",
    "validate_size",
    "write_bytes",
]
