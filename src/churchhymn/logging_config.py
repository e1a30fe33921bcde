"""Logging configuration for churchhymn.

Library modules log through ``logging.getLogger(__name__)``, which places
them under the ``churchhymn`` logger. The CLI calls :func:`setup_logging`
once so the session is written to a file and never to the terminal.
"""

import logging
from pathlib import Path

LOGGER_NAME = "churchhymn"
LOG_FILE_NAME = "churchhymn.log"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-24s | %(message)s"


def _rotate_log_if_needed(log_file: Path, max_bytes: int = 10 * 1024 * 1024, backup_count: int = 5) -> None:
    """Rotate the log file on startup if it exceeds *max_bytes*."""
    if not log_file.exists():
        return

    if log_file.stat().st_size < max_bytes:
        return

    # Shift backups up by one (4 -> 5, 3 -> 4, ...), dropping the oldest.
    oldest = log_file.parent / f"{log_file.name}.{backup_count}"
    if oldest.exists():
        oldest.unlink()
    for i in range(backup_count - 1, 0, -1):
        source = log_file.parent / f"{log_file.name}.{i}"
        if source.exists():
            source.rename(log_file.parent / f"{log_file.name}.{i + 1}")

    log_file.rename(log_file.parent / f"{log_file.name}.1")


def setup_logging(log_dir: Path, level: str = "INFO") -> logging.Logger:
    """Set up session logging to ``<log_dir>/churchhymn.log``.

    Returns:
        The configured ``churchhymn`` logger
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME
    _rotate_log_if_needed(log_file)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(file_handler)

    logger.info("churchhymn session started (log file: %s)", log_file)
    return logger
