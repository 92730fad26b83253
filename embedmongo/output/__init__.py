"""Logging bridge for embedded MongoDB output and download progress."""

from .log_adapter import (
    TRACE,
    LoggingProgressListener,
    LoggingStreamProcessor,
    LogLevel,
    ProcessOutput,
)

__all__ = [
    'TRACE',
    'LoggingProgressListener',
    'LoggingStreamProcessor',
    'LogLevel',
    'ProcessOutput',
]
