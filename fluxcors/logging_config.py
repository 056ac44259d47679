"""
flux-cors logging setup.

text/JSON formats, optional rotating log file, and escaping of control
characters coming from request headers (Origin, header lists) so a
client cannot forge extra log lines.

Usage:
    from fluxcors.logging_config import setup_logging, get_logger
    setup_logging(level="DEBUG", log_format="text")
    logger = get_logger("cors")
    logger.debug("Preflight aborted: empty origin")
"""

import os
import re
import json
import logging
import logging.handlers
from datetime import datetime
from typing import Optional

ROOT_LOGGER_NAME = "flux-cors"

_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")


def _escape_control(text: str) -> str:
    """Replace control characters with their escaped form (\\r, \\n, \\x1b...)"""
    return _CONTROL_RE.sub(lambda m: m.group(0).encode("unicode_escape").decode("ascii"), str(text))


def _escape_arg(value):
    """Escape string arguments; numbers and other types keep their type for %d/%f"""
    return _escape_control(value) if isinstance(value, str) else value


class HeaderSanitizingFilter(logging.Filter):
    """Escape control characters in messages and arguments"""
    def filter(self, record):
        if isinstance(record.msg, str):
            record.msg = _escape_control(record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: _escape_arg(v) for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(_escape_arg(a) for a in record.args)
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line"""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Plain text formatter"""

    def __init__(self):
        super().__init__(
            fmt="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


_initialized = False


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: Optional[str] = None,
    max_bytes: int = 10_485_760,
    backup_count: int = 5,
) -> None:
    """Configure the flux-cors logger hierarchy (first call wins).

    Args:
        level: DEBUG, INFO, WARNING or ERROR. DEBUG shows CORS decision traces.
        log_format: "text" or "json".
        log_file: Log file path (None or "" logs to stderr only).
        max_bytes: Size at which the log file rotates.
        backup_count: Rotated files to keep.
    """
    global _initialized
    if _initialized:
        return
    _initialized = True

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if log_format == "json":
        formatter = JSONFormatter()
    else:
        formatter = TextFormatter()

    sanitizer = HeaderSanitizingFilter()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.addFilter(sanitizer)
    root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.addFilter(sanitizer)
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Return the ``flux-cors.{name}`` logger (e.g. "cors", "server", "wsgi")"""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def reset_logging() -> None:
    """Undo setup_logging (tests)"""
    global _initialized
    _initialized = False
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(logging.WARNING)
