"""
Gazette Collector Logging Configuration

One call configures the whole package logger (``gazette_collector``); every
module logs through ``logging.getLogger(__name__)`` below it. Records carry
the thread name because gazette workers run concurrently and often log
about the same issue.

Environment overrides:
    COLLECTOR_LOG_LEVEL   default level (INFO)
    COLLECTOR_LOG_FORMAT  record format
    COLLECTOR_LOG_DIR     directory of the optional log file (./logs)
"""
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

from gazette_collector.core.exceptions import ConfigurationError

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_DIR = Path("logs")

ENV_LOG_LEVEL = "COLLECTOR_LOG_LEVEL"
ENV_LOG_FORMAT = "COLLECTOR_LOG_FORMAT"
ENV_LOG_DIR = "COLLECTOR_LOG_DIR"

# Libraries that log every HTTP call, driver command or PDF token at DEBUG/INFO
NOISY_LOGGERS = ("selenium", "urllib3", "WDM", "pdfminer")


def parse_level(level: Union[str, int]) -> int:
    """
    Turn a level name ("debug", "INFO") or number into a logging level.

    Raises:
        ConfigurationError: For an unknown level name
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ConfigurationError(f"Unknown log level {level!r}", config_key=ENV_LOG_LEVEL)
    return value


def setup_logging(
    name: str,
    level: Optional[Union[str, int]] = None,
    log_file: Optional[str] = None,
    log_dir: Optional[Path] = None,
    console: bool = True,
    quiet_libraries: bool = True,
) -> logging.Logger:
    """
    Configure a logger with console and optional file output.

    Calling it again replaces the handlers instead of adding more.

    Args:
        name: Logger name, usually the package name
        level: Level name or number; COLLECTOR_LOG_LEVEL or INFO when omitted
        log_file: File name created in log_dir
        log_dir: Directory of log_file; COLLECTOR_LOG_DIR or ./logs when omitted
        console: Log to stdout
        quiet_libraries: Raise Selenium, urllib3, webdriver-manager and
                         pdfminer loggers to WARNING

    Returns:
        The configured logger

    Examples:
        >>> logger = setup_logging("gazette_collector")
        >>> logger = setup_logging("gazette_collector", level="DEBUG", log_file="gazette.log")
    """
    numeric_level = parse_level(level if level is not None else os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL))
    formatter = logging.Formatter(os.getenv(ENV_LOG_FORMAT, DEFAULT_LOG_FORMAT), datefmt=DEFAULT_DATE_FORMAT)

    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers = []
    if console:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        if log_dir is None:
            log_dir = Path(os.getenv(ENV_LOG_DIR, str(DEFAULT_LOG_DIR)))
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(numeric_level)
        logger.addHandler(handler)

    if quiet_libraries:
        for noisy in NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger


class LoggerContext:
    """
    Temporarily change the level of a logger.

    Examples:
        >>> with LoggerContext(logging.getLogger("gazette_collector"), "DEBUG"):
        ...     coordinator.acquire_any(request, ["45/21"])
    """

    def __init__(self, logger: logging.Logger, level: Union[str, int]):
        self.logger = logger
        self.new_level = parse_level(level)
        self.old_level = None

    def __enter__(self):
        self.old_level = self.logger.level
        self.logger.setLevel(self.new_level)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.old_level is not None:
            self.logger.setLevel(self.old_level)
        return False
