#!/usr/bin/env python3
"""
Guestbook - core helpers shared by the web server and its tools.

Logging, the access/error log files, configuration loading and the
process-wide exception hooks live here so that ``guestbook_web.py`` only has
to deal with HTTP.
"""

import json
import logging
import os
import sys
import threading
from typing import Dict, Optional

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

ACCESS_LOGGER = 'guestbook.access'
ERROR_LOGGER = 'guestbook.errors'

FILE_LOG_FORMAT = '[%(asctime)s] %(message)s'


def setup_logging(level: str = 'INFO') -> logging.Logger:
    """Configure the root guestbook logger.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).

    Returns:
        Configured logger instance.
    """
    numeric = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger('guestbook')
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('[%(levelname)s] %(name)s: %(message)s'))
        logger.addHandler(handler)
    logger.setLevel(numeric)
    return logger


# Module-level logger used throughout guestbook.py
logger = setup_logging()


def attach_file_handler(target: logging.Logger, path: Optional[str],
                        fmt: str = FILE_LOG_FORMAT) -> Optional[logging.FileHandler]:
    """Point *target* at the log file *path*, replacing any earlier file.

    Passing an empty *path* just detaches the previous file handler.  Failing
    to open the file is logged and leaves *target* without a file handler;
    the server keeps running either way.
    """
    for old in [h for h in target.handlers if isinstance(h, logging.FileHandler)]:
        target.removeHandler(old)
        old.close()
    if not path:
        return None
    try:
        handler = logging.FileHandler(path, encoding='utf-8')
    except OSError as e:
        logger.error("Could not open log file %s: %s", path, e)
        return None
    handler.setFormatter(logging.Formatter(fmt))
    target.addHandler(handler)
    return handler


def configure_log_files(config: Dict) -> None:
    """Attach the access and error log files named in *config*."""
    access = logging.getLogger(ACCESS_LOGGER)
    access.setLevel(logging.INFO)
    access.propagate = False
    attach_file_handler(access, config.get('access_log'))

    errors = logging.getLogger(ERROR_LOGGER)
    errors.setLevel(logging.ERROR)
    attach_file_handler(errors, config.get('error_log'))


def log_access(ip: str, path: str, status: int) -> None:
    """Append one line to the access log."""
    logging.getLogger(ACCESS_LOGGER).info("IP: %s | Path: %s | Status: %s", ip, path, status)


# ---------------------------------------------------------------------------
# Process-level exception hooks
# ---------------------------------------------------------------------------

def _log_uncaught(exc_type, exc_value, exc_tb, where: str = '') -> None:
    logging.getLogger(ERROR_LOGGER).error(
        "UNCAUGHT EXCEPTION%s: %s", where, exc_value,
        exc_info=(exc_type, exc_value, exc_tb))


def _excepthook(exc_type, exc_value, exc_tb) -> None:
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_tb)
        return
    _log_uncaught(exc_type, exc_value, exc_tb)


def _thread_excepthook(args) -> None:
    if args.exc_type is SystemExit:
        return
    where = f' in thread {args.thread.name}' if args.thread is not None else ''
    _log_uncaught(args.exc_type, args.exc_value, args.exc_traceback, where)


def install_exception_hooks() -> None:
    """Log exceptions that escape every handler instead of losing them.

    Covers the main thread and the worker threads the WSGI server spawns for
    requests.  A dying worker thread does not take the server down.
    """
    sys.excepthook = _excepthook
    threading.excepthook = _thread_excepthook


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_CONFIG = {
    'host': '127.0.0.1',
    'port': 3000,
    'guests_file': 'guests.json',
    'access_log': 'access.log',
    'error_log': 'errors.log',
    'log_level': 'INFO',
}

ENV_OVERRIDES = {
    'GUESTBOOK_HOST': 'host',
    'GUESTBOOK_PORT': 'port',
    'GUESTBOOK_GUESTS_FILE': 'guests_file',
    'GUESTBOOK_ACCESS_LOG': 'access_log',
    'GUESTBOOK_ERROR_LOG': 'error_log',
    'GUESTBOOK_LOG_LEVEL': 'log_level',
}


def load_config(config_path: str = 'config.json') -> Dict:
    """Build the effective configuration.

    Precedence (lowest first): :data:`DEFAULT_CONFIG`, the JSON file at
    *config_path* if it exists, then the ``GUESTBOOK_*`` environment
    variables listed in :data:`ENV_OVERRIDES`.

    An unreadable or malformed config file is logged and skipped.

    Raises:
        ValueError: If ``port`` is not an integer.
    """
    config = dict(DEFAULT_CONFIG)

    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                file_config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring config file %s: %s", config_path, e)
        else:
            if isinstance(file_config, dict):
                config.update({k: v for k, v in file_config.items() if k in DEFAULT_CONFIG})
            else:
                logger.warning("Ignoring config file %s: not a JSON object", config_path)

    for env_name, key in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value is not None:
            config[key] = value

    try:
        config['port'] = int(config['port'])
    except (TypeError, ValueError):
        raise ValueError(f"Invalid port: {config['port']!r}")

    return config
