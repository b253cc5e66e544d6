#!/usr/bin/env python3
"""
Centralized logging configuration for the guest count check service
"""

import os
import logging
import sys


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _resolve_level(level: str = None) -> int:
    """Pick the log level from the argument, the DEBUG flag, or LOG_LEVEL"""
    if level:
        return getattr(logging, level.upper(), logging.INFO)
    if os.getenv('DEBUG'):
        return logging.DEBUG
    return getattr(logging, os.getenv('LOG_LEVEL', 'INFO').upper(), logging.INFO)


def setup_logger(name: str = None, level: str = None) -> logging.Logger:
    """
    Setup and return a configured logger instance

    Args:
        name: Logger name (defaults to 'guest_count')
        level: Logging level name (defaults to LOG_LEVEL, or DEBUG if DEBUG env var is set)

    Returns:
        Configured logger instance
    """
    logger_name = name or 'guest_count'
    logger = logging.getLogger(logger_name)

    # Only configure if not already configured
    if not logger.handlers:
        log_level = _resolve_level(level)
        logger.setLevel(log_level)

        # Flask and gunicorn both read stderr, keep everything on one stream
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(console_handler)

        # Prevent propagation to root logger
        logger.propagate = False

    return logger


def get_logger(name: str = None) -> logging.Logger:
    """
    Get or create a logger instance with the standard configuration

    Module loggers are namespaced under 'guest_count' so that one LOG_LEVEL
    controls the whole service.
    """
    if name and not name.startswith('guest_count'):
        name = f'guest_count.{name}'
    return setup_logger(name)
