"""Local storage for recorded answer audio and purchase receipts."""
import logging
from pathlib import Path

from fastapi import HTTPException, UploadFile, status

from api.config import (
    AUDIO_ALLOWED_EXTENSIONS,
    AUDIO_DIR,
    AUDIO_MAX_SIZE_BYTES,
    RECEIPT_ALLOWED_EXTENSIONS,
    RECEIPT_MAX_SIZE_BYTES,
    RECEIPTS_DIR,
)
from api.utils import safe_path, unique_filename, validate_extension, validate_id, validate_size, write_bytes

logger = logging.getLogger(__name__)

AUDIO_URL_PREFIX = "/api/audio/"
RECEIPT_URL_PREFIX = "/api/receipts/"


async def _store(
    file: UploadFile,
    user_id: int,
    target_dir: Path,
    allowed_extensions: set[str],
    max_size: int,
    kind: str,
) -> tuple[Path, int]:
    validate_extension(file.filename, allowed_extensions)
    content = await file.read()
    size = validate_size(content, max_size)

    filename = unique_filename(file.filename, prefix=str(user_id))
    try:
        path = write_bytes(target_dir, filename, content)
    except OSError as e:
        logger.error(f"Error saving {kind}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save {kind}",
        )
    logger.info(f"Stored {kind} {path.name} ({size} bytes) for user {user_id}")
    return path, size


async def store_audio(file: UploadFile, user_id: int) -> tuple[str, int]:
    """
    Save an uploaded answer recording under a generated name.

    Returns:
        Tuple of (public url, size in bytes)
    """
    path, size = await _store(
        file, user_id, AUDIO_DIR, AUDIO_ALLOWED_EXTENSIONS, AUDIO_MAX_SIZE_BYTES, "audio"
    )
    return AUDIO_URL_PREFIX + path.name, size


async def store_receipt(file: UploadFile, user_id: int) -> tuple[str, int]:
    """Save a payment receipt (image or pdf). Returns (public url, size)."""
    path, size = await _store(
        file, user_id, RECEIPTS_DIR, RECEIPT_ALLOWED_EXTENSIONS, RECEIPT_MAX_SIZE_BYTES, "receipt"
    )
    return RECEIPT_URL_PREFIX + path.name, size


def _stored_file(base_dir: Path, filename: str, missing: str) -> Path:
    validate_id("filename", filename)
    path = safe_path(base_dir, filename)
    if not path.is_file():
        raise HTTPException(status_code=404, detail=missing)
    return path


def audio_file_path(filename: str) -> Path:
    """Resolve a stored audio file or raise 404."""
    return _stored_file(AUDIO_DIR, filename, "Audio not found")


def receipt_file_path(filename: str) -> Path:
    return _stored_file(RECEIPTS_DIR, filename, "Receipt not found")
