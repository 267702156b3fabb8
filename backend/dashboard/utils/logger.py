"""
Logging setup
loguru sinks for the console and an optional rotating file. A patcher scrubs
credentials from every message before any sink sees it.
"""
import os
import sys
from typing import Optional

from loguru import logger

from ..security.sanitizer import sanitize

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]: <16}</cyan> | "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[name]} | {message}"


def _scrub_record(record) -> None:
    """loguru patcher: redact secrets from the rendered message"""
    record["message"] = sanitize(record["message"])


def setup_logger(
    log_level: str = 'INFO',
    log_file: Optional[str] = None,
    rotation: str = '10 MB',
    retention: str = '7 days'
) -> None:
    """
    (Re)configure loguru for the dashboard

    Args:
        log_level: minimum level; the LOG_LEVEL environment variable wins
        log_file: also write to this file when set
        rotation: size at which the log file rotates
        retention: how long rotated files are kept
    """
    level = os.environ.get('LOG_LEVEL', log_level).upper()

    logger.remove()
    logger.configure(patcher=_scrub_record, extra={'name': 'dashboard'})

    # Tracebacks with local variables could leak credentials
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True, backtrace=False, diagnose=False)

    if log_file:
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level=level,
            rotation=rotation,
            retention=retention,
            compression='zip',
            encoding='utf-8',
            backtrace=False,
            diagnose=False,
        )

    logger.bind(name='logging').debug(f"Logging at {level}{f', file {log_file}' if log_file else ''}")


def get_logger(name: str = None):
    """Logger whose lines are tagged with name"""
    return logger.bind(name=name) if name else logger


def log_sync_event(account_id: Optional[str], event: str, details: dict = None):
    """Record a sync lifecycle event (started / completed / failed)"""
    parts = [f"account={account_id or 'all'}", f"event={event}"]
    if details:
        parts.extend(f"{key}={value}" for key, value in details.items())
    logger.bind(name='sync').info("Sync event: " + ", ".join(parts))
