"""Application configuration and constants."""
import os
from pathlib import Path


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Database
DB_DIR = Path(os.environ.get("DB_DIR", Path.cwd() / "data"))
DB_DIR.mkdir(parents=True, exist_ok=True)
DATABASE_URL = os.environ.get(
    "DATABASE_URL", f"sqlite:///{DB_DIR / 'oral_exam.db'}"
)

# Uploaded files
AUDIO_DIR = Path(os.environ.get("AUDIO_DIR", DB_DIR / "audio"))
AUDIO_DIR.mkdir(parents=True, exist_ok=True)
AUDIO_MAX_SIZE_BYTES = _parse_int_env("AUDIO_MAX_SIZE_BYTES", 50 * 1024 * 1024)
AUDIO_ALLOWED_EXTENSIONS = {".wav", ".webm", ".ogg", ".mp3", ".m4a"}

SECTION_IMAGES_DIR = Path(
    os.environ.get("SECTION_IMAGES_DIR", DB_DIR / "section_images")
)
SECTION_IMAGES_DIR.mkdir(parents=True, exist_ok=True)
SECTION_IMAGE_MAX_SIZE_BYTES = 10 * 1024 * 1024  # 10 MB
SECTION_IMAGE_MAX_DIMENSION = _parse_int_env("SECTION_IMAGE_MAX_DIMENSION", 1600)
SECTION_IMAGE_ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}

RECEIPTS_DIR = Path(os.environ.get("RECEIPTS_DIR", DB_DIR / "receipts"))
RECEIPTS_DIR.mkdir(parents=True, exist_ok=True)
RECEIPT_MAX_SIZE_BYTES = _parse_int_env("RECEIPT_MAX_SIZE_BYTES", 10 * 1024 * 1024)
RECEIPT_ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".pdf"}

# Authentication
SECRET_KEY = os.environ.get(
    "SECRET_KEY",
    "CHANGE_ME_IN_PRODUCTION_USE_openssl_rand_hex_32"
)
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = _parse_int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 60)
SESSION_EXTEND_MINUTES = _parse_int_env("SESSION_EXTEND_MINUTES", 60)

# Cleanup of submissions that were never completed
ABANDONED_SUBMISSION_RETENTION_DAYS = _parse_int_env(
    "ABANDONED_SUBMISSION_RETENTION_DAYS", 30
)
CLEANUP_INTERVAL_SECONDS = _parse_int_env("CLEANUP_INTERVAL_SECONDS", 24 * 60 * 60)
