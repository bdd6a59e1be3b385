import io
import logging
from datetime import timedelta
from pathlib import Path

import pytest
from fastapi import HTTPException
from PIL import Image

from api.services.image_service import downsize_image
from api.utils import file_utils, time_utils, validation
from core.logging_setup import resolve_level


def test_safe_path_allows_nested(tmp_path: Path) -> None:
    base_dir = tmp_path / "audio"
    base_dir.mkdir()
    resolved = file_utils.safe_path(base_dir, "2024/answer.wav")
    assert resolved == (base_dir / "2024" / "answer.wav").resolve()


def test_safe_path_blocks_traversal(tmp_path: Path) -> None:
    base_dir = tmp_path / "audio"
    base_dir.mkdir()
    with pytest.raises(HTTPException) as excinfo:
        file_utils.safe_path(base_dir, "../secret.txt")
    assert excinfo.value.status_code == 400


def test_unique_filename_keeps_extension() -> None:
    first = file_utils.unique_filename("Answer.WAV", prefix="7")
    second = file_utils.unique_filename("Answer.WAV", prefix="7")

    assert first.startswith("7_")
    assert first.endswith(".wav")
    assert first != second
    assert file_utils.unique_filename(None).count("_") == 0


def test_write_bytes_never_overwrites(tmp_path: Path) -> None:
    target_dir = tmp_path / "uploads"
    first = file_utils.write_bytes(target_dir, "clip.wav", b"first")
    second = file_utils.write_bytes(target_dir, "clip.wav", b"second")

    assert first.name == "clip.wav"
    assert second.name != "clip.wav"
    assert second.suffix == ".wav"
    assert first.read_bytes() == b"first"
    assert second.read_bytes() == b"second"


def test_time_utils() -> None:
    now = time_utils.utc_now()
    assert now.tzinfo is not None

    past = time_utils.days_ago(3)
    assert timedelta(days=3) <= now - past < timedelta(days=3, seconds=5)


def test_validate_id() -> None:
    assert validation.validate_id("test", " abc ") == "abc"
    with pytest.raises(HTTPException):
        validation.validate_id("test", "")
    with pytest.raises(HTTPException):
        validation.validate_id("test", "../bad")


def test_validate_extension() -> None:
    allowed = {".wav", ".webm"}
    assert validation.validate_extension("Answer.WAV", allowed) == ".wav"
    with pytest.raises(HTTPException):
        validation.validate_extension("answer.mp4", allowed)
    with pytest.raises(HTTPException):
        validation.validate_extension(None, allowed)


def test_validate_size() -> None:
    assert validation.validate_size(b"abc", 10) == 3
    with pytest.raises(HTTPException):
        validation.validate_size(b"", 10)
    with pytest.raises(HTTPException) as excinfo:
        validation.validate_size(b"x" * 11, 10)
    assert "too large" in excinfo.value.detail


def test_downsize_image_keeps_small_images_untouched() -> None:
    buffer = io.BytesIO()
    Image.new("RGB", (40, 20)).save(buffer, format="JPEG")
    content = buffer.getvalue()

    assert downsize_image(content, ".jpg", 100) == content

    shrunk = downsize_image(content, ".jpg", 10)
    with Image.open(io.BytesIO(shrunk)) as img:
        assert img.size == (10, 5)


def test_resolve_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    assert resolve_level() == logging.INFO
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(logging.ERROR) == logging.ERROR
    assert resolve_level("nonsense") == logging.INFO

    monkeypatch.setenv("LOG_LEVEL", "warning")
    assert resolve_level() == logging.WARNING
