"""
Quiet-by-default logging setup for processes embedding the aggregator.

The aggregator modules log through loguru's global ``logger`` and never
configure sinks themselves. Call ``setup_logging()`` once at startup to get
a WARNING-level console sink, plus an optional DEBUG file sink for forensics.

Usage:
    from tools.logging_setup import setup_logging
    setup_logging(level="INFO", log_file="logs/config-aggregator.log")
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger


def setup_logging(level: str = "WARNING", log_file: Optional[str] = None) -> None:
    """
    Configure quiet-by-default logging with optional file output.

    Console output:
    - Controlled by ``level`` (default: WARNING)
    - Minimal noise in logs

    File output (when ``log_file`` is given):
    - Always at DEBUG level
    - 10 MB rotation with 5-file retention
    """
    # Remove default logger handler
    logger.remove()

    logger.add(
        sys.stdout,
        level=level.upper(),
        enqueue=True,
        backtrace=False,
        diagnose=False,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
    )

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level="DEBUG",
            rotation="10 MB",
            retention=5,
            enqueue=True,
            backtrace=True,
            diagnose=False,
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        )
