"""
contractfuzz Structured Logging System
Provides structured logging with DEBUG, INFO, WARNING, ERROR levels
"""

import logging
import sys
from typing import Any, Dict, Optional
import structlog
from structlog.stdlib import LoggerFactory


ROOT_LOGGER_NAME = "contractfuzz"
TEST_CASE_LOGGER_NAME = f"{ROOT_LOGGER_NAME}.testcases"


def setup_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_file: Optional[str] = None
) -> structlog.stdlib.BoundLogger:
    """
    Configure structured logging for contractfuzz

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_logs: Whether to output JSON formatted logs
        log_file: Optional log file path

    Returns:
        Configured structlog logger
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper())
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(getattr(logging, level.upper()))
        logging.getLogger().addHandler(file_handler)

    return structlog.get_logger(ROOT_LOGGER_NAME)


def set_reporting_level(level: str) -> None:
    """
    Set the level of the test case logger

    Used to silence INFO test case lines and keep only WARN and ERROR results,
    session lines such as the summary are not affected.
    """
    logging.getLogger(TEST_CASE_LOGGER_NAME).setLevel(_to_level(level))


def set_package_log_level(override: str) -> str:
    """
    Apply a ``package:level`` override to a single stdlib logger

    Returns:
        The package name the level was applied to

    Raises:
        ValueError: If the value is not in ``package:level`` form
    """
    package, separator, level = override.partition(":")
    if not separator or not package or not level:
        raise ValueError(f"Invalid log level override '{override}', expected PACKAGE:LEVEL")
    logging.getLogger(package).setLevel(_to_level(level))
    return package


def _to_level(level: str) -> int:
    # WARN is accepted as an alias, the CLI documents it that way
    name = level.strip().upper()
    if name == "WARN":
        name = "WARNING"
    value = logging.getLevelName(name)
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


class ContractFuzzLogger:
    """
    contractfuzz logging wrapper with context management
    """

    def __init__(self, logger: structlog.stdlib.BoundLogger):
        self.logger = logger
        self._context: Dict[str, Any] = {}

    def bind(self, **kwargs) -> "ContractFuzzLogger":
        """Bind context to logger"""
        new_logger = ContractFuzzLogger(self.logger.bind(**kwargs))
        new_logger._context = {**self._context, **kwargs}
        return new_logger

    def debug(self, message: str, **kwargs) -> None:
        """Log debug message"""
        self.logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        """Log info message"""
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        """Log warning message"""
        self.logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        """Log error message"""
        self.logger.error(message, **kwargs)

    def exception(self, message: str, **kwargs) -> None:
        """Log exception with traceback"""
        self.logger.exception(message, **kwargs)


def get_logger(name: str = ROOT_LOGGER_NAME) -> ContractFuzzLogger:
    """Get a configured contractfuzz logger

    Module names are placed under the ``contractfuzz`` logger tree so that
    ``--reportingLevel`` applies to all of them.
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return ContractFuzzLogger(structlog.get_logger(name))
