import logging
import os
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = 'brainspace'
ENV_PREFIX = 'BRAINSPACE_'

FILE_FORMAT = '[%(asctime)s] %(levelname)-8s [%(name)s:%(funcName)s:%(lineno)d] %(message)s'
FILE_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
CONSOLE_FORMAT = '%(levelname)s: %(message)s'
CONSOLE_DEBUG_FORMAT = '%(levelname)-8s [%(name)s] %(message)s'

def _env(name: str, default: str = '') -> str:
    return os.getenv(ENV_PREFIX + name, default)

def debug_enabled() -> bool:
    return _env('DEBUG').lower() in ('1', 'true', 'yes')

def console_level() -> int:
    """BRAINSPACE_DEBUG wins over BRAINSPACE_LOG_LEVEL; unknown or unset names mean WARNING."""
    if debug_enabled():
        return logging.DEBUG
    level = logging.getLevelName(_env('LOG_LEVEL').upper() or 'WARNING')
    return level if isinstance(level, int) else logging.WARNING

def log_dir() -> Path:
    default = Path.home() / ".local" / "share" / "brainspace" / "logs"
    return Path(_env('LOG_DIR') or default)

def _file_handler(directory: Path) -> Optional[logging.Handler]:
    # Engine calls must keep working on read-only homes
    try:
        directory.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(directory / "brainspace.log", encoding='utf-8')
    except OSError:
        return None
    handler.setFormatter(logging.Formatter(FILE_FORMAT, FILE_DATE_FORMAT))
    handler.setLevel(logging.DEBUG)
    return handler

def setup_logging() -> logging.Logger:
    """Configure the package logger: everything to the file log, the env-selected level to stderr."""
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(CONSOLE_DEBUG_FORMAT if debug_enabled() else CONSOLE_FORMAT))
    console.setLevel(console_level())

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.addHandler(console)

    directory = log_dir()
    file_handler = _file_handler(directory)
    if file_handler is None:
        logger.debug(f"File logging disabled, cannot open {directory}")
    else:
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger

setup_logging()

def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get the package logger, or the child logger for one module."""
    return logging.getLogger(f'{LOGGER_NAME}.{name}' if name else LOGGER_NAME)
