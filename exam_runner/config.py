"""Exam runner configuration."""
import os
from dataclasses import dataclass, field
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


def _parse_float_env(name: str, default: float) -> float:
    """Parse float from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass
class RunnerSettings:
    api_url: str = field(
        default_factory=lambda: os.environ.get("EXAM_API_URL", "http://127.0.0.1:8000")
    )
    api_token: str | None = field(
        default_factory=lambda: os.environ.get("EXAM_API_TOKEN")
    )
    http_timeout: float = field(
        default_factory=lambda: _parse_float_env("EXAM_HTTP_TIMEOUT", 30.0)
    )

    # Audio capture
    sample_rate: int = field(
        default_factory=lambda: _parse_int_env("EXAM_SAMPLE_RATE", 16000)
    )
    channels: int = field(default_factory=lambda: _parse_int_env("EXAM_CHANNELS", 1))

    # Timing
    tick_seconds: float = field(
        default_factory=lambda: _parse_float_env("EXAM_TICK_SECONDS", 1.0)
    )
    finalize_grace_seconds: float = field(
        default_factory=lambda: _parse_float_env("EXAM_FINALIZE_GRACE_SECONDS", 0.5)
    )
    upload_drain_seconds: float = field(
        default_factory=lambda: _parse_float_env("EXAM_UPLOAD_DRAIN_SECONDS", 30.0)
    )

    # Demo mode keeps answers on disk instead of sending them to the server
    demo_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("EXAM_DEMO_DIR", Path.cwd() / "data" / "demo")
        )
    )
