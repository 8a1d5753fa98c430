import logging
import re
import sys
from typing import Any

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_SENSITIVE_KEYS = (
    "authorization",
    "access_token",
    "client_secret",
    "password",
    "secret",
    "token",
)


def redact(value: Any) -> Any:
    """Mask bearer tokens and secret-looking keys before they are logged."""
    if isinstance(value, dict):
        out: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if any(part in key.lower() for part in _SENSITIVE_KEYS):
                out[key] = "<redacted>"
            else:
                out[key] = redact(v)
        return out

    if isinstance(value, (list, tuple)):
        return type(value)(redact(v) for v in value)

    if isinstance(value, str):
        redacted = re.sub(
            r"(?i)\b(bearer|basic)\s+[a-z0-9\-._~+/]+=*",
            lambda m: f"{m.group(1)} <redacted>",
            value,
        )
        return re.sub(
            r"(?i)((?:client_secret|access_token)=)[^&\s]+",
            r"\1<redacted>",
            redacted,
        )

    return value


def setup_logging(level: str | None = None) -> logging.Logger:
    """Configure the root logger with a single stderr handler.

    stdout is reserved for command output.

    Args:
        level: Log level name (defaults to settings.log_level)

    Returns:
        The package logger
    """
    if level is None:
        from .core.settings import get_settings

        level = get_settings().log_level

    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    app_logger = logging.getLogger("tap_explorer")
    app_logger.setLevel(log_level)
    return app_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)
