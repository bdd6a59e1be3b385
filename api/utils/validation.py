"""Validation utilities."""
from pathlib import Path

from fastapi import HTTPException


def validate_id(name: str, value: str) -> str:
    """Validate ID string (no path traversal)."""
    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{name} is required")
    cleaned = value.strip()
    if not cleaned:
        raise HTTPException(status_code=400, detail=f"{name} is required")
    if Path(cleaned).name != cleaned or "/" in cleaned or "\\" in cleaned:
        raise HTTPException(status_code=400, detail=f"Invalid {name}")
    return cleaned


def validate_extension(filename: str | None, allowed: set[str]) -> str:
    """Return the lower-cased extension or raise 400 if it is not allowed."""
    if not filename:
        raise HTTPException(status_code=400, detail="No filename provided")
    ext = Path(filename).suffix.lower()
    if ext not in allowed:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type. Allowed: {', '.join(sorted(allowed))}",
        )
    return ext


def validate_size(content: bytes, max_bytes: int) -> int:
    """Return the content size or raise 400 if empty or too large."""
    size = len(content)
    if size == 0:
        raise HTTPException(status_code=400, detail="Empty file")
    if size > max_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size: {max_bytes // (1024 * 1024)}MB",
        )
    return size
