"""
embedmongo - Embedded MongoDB for Tests

Starts a throwaway MongoDB instance in Docker, hands back a connected
pymongo client, and stops the instance again when the client is closed.
"""

from .builder import EmbeddedMongoBuilder, EmbeddedMongoClient
from .distribution import GenericVersion, Main, Version
from .errors import EmbeddedMongoError, InvalidArgumentError, InvalidStateError, StartupError
from .factory import EmbeddedMongoFactory, LifecycleState

__version__ = "1.0.0"

__all__ = [
    'EmbeddedMongoBuilder',
    'EmbeddedMongoClient',
    'EmbeddedMongoFactory',
    'LifecycleState',
    'GenericVersion',
    'Main',
    'Version',
    'EmbeddedMongoError',
    'InvalidArgumentError',
    'InvalidStateError',
    'StartupError',
]
