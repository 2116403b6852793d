"""
Logging for the Aid Station Planner.

Every module logs under the ``aidplanner`` namespace. setup_logging attaches
a console handler (INFO and above) and, optionally, a daily log file that
also receives DEBUG records such as function entry/exit traces.
"""

import functools
import logging
import sys
import time
from datetime import datetime
from pathlib import Path

ROOT_LOGGER_NAME = "aidplanner"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(log_level: str = "INFO", log_to_file: bool = True, log_dir: str = "logs") -> logging.Logger:
    """
    Configure the ``aidplanner`` logger; calling it again replaces the handlers.

    Args:
        log_level: Level name for the package logger
        log_to_file: Also write aidplanner_YYYYMMDD.log under log_dir
        log_dir: Created if missing

    Returns:
        The package root logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper()))
    logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.INFO)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_to_file:
        log_file = Path(log_dir) / f"aidplanner_{datetime.now():%Y%m%d}.log"
        try:
            log_file.parent.mkdir(exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        except OSError as e:
            logger.warning(f"File logging disabled, cannot open {log_file}: {e}")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
            logger.info(f"Logging to file: {log_file}")

    logger.debug(f"Log level {log_level}")
    return logger


def get_logger(name: str = None) -> logging.Logger:
    """Logger under the package namespace; module names already inside it are kept."""
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def log_function_entry(logger: logging.Logger, func_name: str, **kwargs):
    """DEBUG trace of a call and its (summarised) arguments."""
    params = ", ".join(f"{k}={v}" for k, v in kwargs.items())
    logger.debug(f"Entering {func_name}({params})")


def log_function_exit(logger: logging.Logger, func_name: str, result=None):
    """DEBUG trace of a return; only the result type is logged, never track data."""
    suffix = f" -> {type(result).__name__}" if result is not None else ""
    logger.debug(f"Exiting {func_name}(){suffix}")


def log_error(logger: logging.Logger, error: Exception, context: str = None):
    message = f"{type(error).__name__}: {error}"
    if context:
        message = f"{context} - {message}"
    logger.error(message, exc_info=True)


def log_performance(logger: logging.Logger, operation: str, duration: float, details: str = None):
    message = f"Performance: {operation} took {duration:.3f}s"
    if details:
        message += f" ({details})"
    logger.info(message)


def log_execution_time(logger: logging.Logger = None):
    """
    Decorator timing each call with log_performance.

    Failures are logged with log_error and re-raised. Without an explicit
    logger, the decorated function's module logger is used.
    """
    def decorator(func):
        target = logger or get_logger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log_performance(target, f"{func.__name__} (failed)", time.time() - start_time)
                log_error(target, e, f"Error in {func.__name__}")
                raise
            log_performance(target, func.__name__, time.time() - start_time)
            return result

        return wrapper
    return decorator
