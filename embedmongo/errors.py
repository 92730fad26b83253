"""
Error types for embedmongo.

- EmbeddedMongoError: Base exception
- InvalidArgumentError: Builder option rejected by validation
- StartupError: Port resolution, image pull or process start failed
- InvalidStateError: Lifecycle operation not allowed in the current state
"""


class EmbeddedMongoError(Exception):
    """Base exception for all embedmongo errors."""
    pass


class InvalidArgumentError(EmbeddedMongoError, ValueError):
    """Raised when a builder option fails validation."""
    pass


class StartupError(EmbeddedMongoError, OSError):
    """Raised when the embedded MongoDB process cannot be started."""
    pass


class InvalidStateError(EmbeddedMongoError, RuntimeError):
    """Raised when a lifecycle operation is not allowed in the current state."""
    pass
