"""Logging configuration for Azure login."""

import logging
import re
import sys
from pathlib import Path
from typing import Optional

# Reconfigure stdout to handle Unicode on Windows consoles
if sys.stdout and hasattr(sys.stdout, "reconfigure"):
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    except Exception:
        pass

# Libraries that log request details (including token bodies) at DEBUG
NOISY_LOGGERS = ("msal", "urllib3")

_JWT = re.compile(r"eyJ[\w-]+\.[\w-]+\.[\w-]*")
_SECRET_PARAM = re.compile(
    r"\b((?:access_token|refresh_token|id_token|device_code|code|client_secret)[\"']?\s*[=:]\s*[\"']?)[^\s&\"',}]+"
)


def redact(message: str) -> str:
    """Mask bearer tokens and secret query/body parameters in ``message``."""
    message = _JWT.sub("<redacted-jwt>", message)
    return _SECRET_PARAM.sub(r"\1<redacted>", message)


class SecretRedactingFilter(logging.Filter):
    """Rewrites each record so tokens never reach a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact(record.getMessage())
        record.args = None
        return True


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure application logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("azure_login")
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()

    redacting = SecretRedactingFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if level.upper() == "DEBUG" else logging.INFO)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    console_handler.addFilter(redacting)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
            )
        )
        file_handler.addFilter(redacting)
        logger.addHandler(file_handler)

    if level.upper() != "DEBUG":
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    return logger
