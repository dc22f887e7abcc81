"""Logging utilities for nefos modules."""

import logging


def get_logger(name: str) -> logging.Logger:
    """Get a logger that inherits from the root logger.

    Works with basicConfig() without an explicit setup_logging() call.
    When the root logger has no handlers yet, the logger defaults to
    WARNING so library output stays quiet.

    Args:
        name: Logger name (typically 'nefos.<area>')

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.propagate = True

    if not logging.getLogger().handlers:
        logger.setLevel(logging.WARNING)

    return logger


def redact(value: str, keep: int = 4) -> str:
    """Shorten a token for log output."""
    if not value:
        return '<empty>'
    if len(value) <= keep:
        return '*' * len(value)
    return f"{value[:keep]}...({len(value)} chars)"
