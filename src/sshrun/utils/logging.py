"""Logging helpers."""

from __future__ import annotations

import logging
import os
from typing import Optional

_LOGGING_CONFIGURED = False


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    global _LOGGING_CONFIGURED
    resolved = (level or os.getenv("SSHRUN_LOG_LEVEL") or "INFO").upper()
    if not _LOGGING_CONFIGURED:
        logging.basicConfig(
            level=resolved,
            format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
        )
        # paramiko logs every packet-level event at INFO
        logging.getLogger("paramiko").setLevel(logging.WARNING)
        _LOGGING_CONFIGURED = True
    else:
        logging.getLogger().setLevel(resolved)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    if not _LOGGING_CONFIGURED:
        configure_logging()
    return logging.getLogger(name)
