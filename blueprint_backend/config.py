"""
Runtime configuration.

Every setting can be overridden with a BLUEPRINT_* environment variable;
the defaults match a local single-user setup.
"""

import logging
import os
import sys

from blueprint_core import ReplaceScope

HOST = os.environ.get("BLUEPRINT_HOST", "127.0.0.1")
PORT = int(os.environ.get("BLUEPRINT_PORT", "8765"))
API_BASE = os.environ.get("BLUEPRINT_API_BASE", f"http://{HOST}:{PORT}/api")

# Pause before a chat reply is delivered, in seconds
RESPONSE_DELAY_SECONDS = float(os.environ.get("BLUEPRINT_RESPONSE_DELAY", "1.5"))

MAX_HISTORY = int(os.environ.get("BLUEPRINT_MAX_HISTORY", "50"))
REPLACE_SCOPE = ReplaceScope(os.environ.get("BLUEPRINT_REPLACE_SCOPE", ReplaceScope.LABELS.value))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "BLUEPRINT_CORS_ORIGINS",
        "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173",
    ).split(",")
    if origin.strip()
]

LOG_LEVEL = os.environ.get("BLUEPRINT_LOG_LEVEL", "INFO").upper()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging with ISO timestamps, replacing existing handlers."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root_logger.setLevel(level or LOG_LEVEL)
    root_logger.addHandler(handler)

    # Reduce noise from chatty libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)
