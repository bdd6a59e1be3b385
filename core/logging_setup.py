from __future__ import annotations
import logging
import os

# Third-party loggers that are chatty at DEBUG.
_QUIET_LOGGERS = ("urllib3", "multipart", "PIL", "python_multipart", "asyncio")


def resolve_level(value: str | int | None = None) -> int:
    """Accept a level name or number; falls back to LOG_LEVEL, then INFO."""
    if value is None:
        value = os.environ.get("LOG_LEVEL", "INFO")
    if isinstance(value, int):
        return value
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_console_logging(level: str | int | None = None) -> None:
    """
    Call once at app start. Prints logs to console.
    """
    level = resolve_level(level)
    root = logging.getLogger()
    if root.handlers:
        # already configured (avoid duplicates)
        root.setLevel(level)
        return

    root.setLevel(level)
    h = logging.StreamHandler()
    fmt = logging.Formatter(
        "[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    h.setFormatter(fmt)
    root.addHandler(h)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
