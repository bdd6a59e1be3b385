"""File handling utilities."""
import uuid
from pathlib import Path

from fastapi import HTTPException


def safe_path(base_dir: Path, relative_path: str) -> Path:
    """Resolve a stored file path safely (prevent path traversal)."""
    resolved = (base_dir / relative_path).resolve()
    if base_dir.resolve() not in resolved.parents:
        raise HTTPException(status_code=400, detail="Invalid file path")
    return resolved


def unique_filename(original: str | None, prefix: str = "") -> str:
    """Generate a collision-free name that keeps the original extension."""
    ext = Path(original or "").suffix.lower()
    stem = f"{prefix}_" if prefix else ""
    return f"{stem}{uuid.uuid4().hex}{ext}"


def write_bytes(target_dir: Path, filename: str, content: bytes) -> Path:
    """Write content into target_dir, refusing to overwrite."""
    target_dir.mkdir(parents=True, exist_ok=True)
    candidate = safe_path(target_dir, filename)
    if candidate.exists():
        candidate = target_dir / unique_filename(filename)
    candidate.write_bytes(content)
    return candidate
