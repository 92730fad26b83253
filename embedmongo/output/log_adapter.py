"""
Log Adapter

Forwards embedded MongoDB process output and image download progress into
the standard logging module. Every line or event is forwarded synchronously,
with no buffering or filtering.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict

TRACE = 5
logging.addLevelName(TRACE, "TRACE")


class LogLevel(str, Enum):
    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    def log(self, logger: logging.Logger, message: str) -> None:
        """Forward message to logger at this level."""
        _FORWARDERS[self](logger, message)


def _trace(logger: logging.Logger, message: str) -> None:
    logger.log(TRACE, message)


def _debug(logger: logging.Logger, message: str) -> None:
    logger.debug(message)


def _info(logger: logging.Logger, message: str) -> None:
    logger.info(message)


def _warn(logger: logging.Logger, message: str) -> None:
    logger.warning(message)


def _error(logger: logging.Logger, message: str) -> None:
    logger.error(message)


_FORWARDERS: Dict[LogLevel, Callable[[logging.Logger, str], None]] = {
    LogLevel.TRACE: _trace,
    LogLevel.DEBUG: _debug,
    LogLevel.INFO: _info,
    LogLevel.WARN: _warn,
    LogLevel.ERROR: _error,
}


class LoggingStreamProcessor:
    """Consumes blocks of process output and logs them at a fixed level."""

    def __init__(self, logger: logging.Logger, level: LogLevel):
        self.logger = logger
        self.level = level

    def process(self, block: str) -> None:
        if block.endswith("\n"):
            block = block[:-1]
        self.level.log(self.logger, block)

    def on_processed(self) -> None:
        pass


class LoggingProgressListener:
    """Logs download progress events at debug level."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def start(self, label: str) -> None:
        self.logger.debug(f"{label} : starting...")

    def progress(self, label: str, percent: int) -> None:
        self.logger.debug(f"{label} : {percent}%")

    def done(self, label: str) -> None:
        self.logger.debug(f"{label} : finished")

    def info(self, label: str, message: str) -> None:
        self.logger.debug(f"{label} : {message}")


@dataclass
class ProcessOutput:
    """
    Where the embedded process output goes.

    Attributes:
        output: Raw standard output of mongod
        error: Standard error of mongod
        commands: Lifecycle messages of the provisioner itself
    """
    output: LoggingStreamProcessor
    error: LoggingStreamProcessor
    commands: LoggingStreamProcessor

    @classmethod
    def for_logger(cls, logger: logging.Logger) -> "ProcessOutput":
        """Route stdout at trace, stderr at warn and commands at info."""
        return cls(
            output=LoggingStreamProcessor(logger, LogLevel.TRACE),
            error=LoggingStreamProcessor(logger, LogLevel.WARN),
            commands=LoggingStreamProcessor(logger, LogLevel.INFO),
        )
