"""Logging setup for the gateway

One named logger configured from LOG_LEVEL; modules ask for children of it
"""
import logging
import sys
from typing import Optional

from .config import LOG_LEVEL

logger = logging.getLogger("gateway")
logger.setLevel(LOG_LEVEL)

if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(console_handler)

# Avoid duplicate lines through the root logger (uvicorn configures its own)
logger.propagate = False


def get_logger(name: Optional[str] = None) -> logging.Logger:
    if name:
        return logging.getLogger(f"gateway.{name}")
    return logger
