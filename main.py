#!/usr/bin/env python3
"""
LOTTO645 server entrypoint.

Serves lotto645.api:app with uvicorn. HOST, PORT and LOG_LEVEL come from
the environment, optionally via a .env file.
"""
import os
from typing import Tuple

from dotenv import load_dotenv
from loguru import logger

UVICORN_LOG_LEVELS = ("critical", "error", "warning", "info", "debug", "trace")


def server_settings() -> Tuple[str, int, str]:
    """(host, port, log_level) from the environment, with invalid values replaced by defaults."""
    host = os.getenv("HOST", "0.0.0.0")

    raw_port = os.getenv("PORT", "8000")
    try:
        port = int(raw_port)
    except ValueError:
        logger.warning(f"Invalid PORT={raw_port!r}, serving on 8000")
        port = 8000

    log_level = os.getenv("LOG_LEVEL", "info").lower()
    if log_level not in UVICORN_LOG_LEVELS:
        logger.warning(f"Unsupported LOG_LEVEL={log_level!r}, using info")
        log_level = "info"

    return host, port, log_level


if __name__ == "__main__":
    import uvicorn

    load_dotenv()

    from lotto645.api import app

    host, port, log_level = server_settings()
    logger.info(f"Starting LOTTO645 engine on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level=log_level)
