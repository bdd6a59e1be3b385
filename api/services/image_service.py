"""Image processing service for section pictures."""
import io
import logging
from pathlib import Path

from fastapi import HTTPException, UploadFile, status
from PIL import Image, UnidentifiedImageError

from api.config import (
    SECTION_IMAGE_ALLOWED_EXTENSIONS,
    SECTION_IMAGE_MAX_DIMENSION,
    SECTION_IMAGE_MAX_SIZE_BYTES,
    SECTION_IMAGES_DIR,
)
from api.utils import safe_path, unique_filename, validate_extension, validate_id, validate_size

logger = logging.getLogger(__name__)

SECTION_IMAGE_URL_PREFIX = "/api/section-images/"

_FORMATS = {
    ".png": "PNG",
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".gif": "GIF",
    ".webp": "WEBP",
}


def downsize_image(content: bytes, ext: str, max_dimension: int) -> bytes:
    """
    Shrink the image to fit within max_dimension, keeping the aspect ratio.

    Raises:
        HTTPException: If the content is not a readable image
    """
    try:
        with Image.open(io.BytesIO(content)) as img:
            img.load()
            width, height = img.size
            if width <= max_dimension and height <= max_dimension:
                return content

            ratio = min(max_dimension / width, max_dimension / height)
            new_size = (max(1, int(width * ratio)), max(1, int(height * ratio)))
            fmt = _FORMATS[ext]
            if fmt == "JPEG" and img.mode in ("RGBA", "P"):
                img = img.convert("RGB")
            resized = img.resize(new_size, Image.Resampling.LANCZOS)

            out = io.BytesIO()
            resized.save(out, format=fmt, optimize=True)
            logger.info(f"Resized section image from {width}x{height} to {new_size}")
            return out.getvalue()
    except (UnidentifiedImageError, OSError) as e:
        logger.warning(f"Rejected unreadable image: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File is not a valid image",
        )


async def process_section_image(file: UploadFile, section_id: str) -> tuple[str, int]:
    """
    Validate, downsize and save an uploaded section image.

    Returns:
        Tuple of (image_url, size in bytes)
    """
    ext = validate_extension(file.filename, SECTION_IMAGE_ALLOWED_EXTENSIONS)
    content = await file.read()
    validate_size(content, SECTION_IMAGE_MAX_SIZE_BYTES)
    content = downsize_image(content, ext, SECTION_IMAGE_MAX_DIMENSION)

    filename = unique_filename(file.filename, prefix=section_id[:8])
    path = SECTION_IMAGES_DIR / filename
    SECTION_IMAGES_DIR.mkdir(parents=True, exist_ok=True)
    try:
        path.write_bytes(content)
    except OSError as e:
        logger.error(f"Error saving section image: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save image",
        )
    logger.info(f"Saved image for section {section_id}: {filename}")
    return SECTION_IMAGE_URL_PREFIX + filename, len(content)


def delete_section_image(image_url: str | None) -> bool:
    """Delete a previously uploaded image; foreign URLs are ignored."""
    if not image_url or not image_url.startswith(SECTION_IMAGE_URL_PREFIX):
        return False
    full_path = SECTION_IMAGES_DIR / Path(image_url).name
    if full_path.exists():
        try:
            full_path.unlink()
            logger.info(f"Deleted section image: {full_path.name}")
            return True
        except OSError as e:
            logger.error(f"Error deleting section image {full_path.name}: {e}")
            return False
    return False


def section_image_path(filename: str) -> Path:
    validate_id("filename", filename)
    path = safe_path(SECTION_IMAGES_DIR, filename)
    if not path.is_file():
        raise HTTPException(status_code=404, detail="Image not found")
    return path
