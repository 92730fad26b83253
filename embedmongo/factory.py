"""
Embedded MongoDB Factory

Lifecycle object around EmbeddedMongoBuilder: opens a single shared client on
first use and closes it, together with its mongod, on teardown. Use it as a
context manager to guarantee teardown on every exit path.
"""

import logging
from enum import Enum
from typing import Optional, Type

from pymongo import MongoClient

from embedmongo.builder import EmbeddedMongoBuilder, EmbeddedMongoClient
from embedmongo.errors import InvalidStateError

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    UNSTARTED = "unstarted"
    RUNNING = "running"
    STOPPED = "stopped"


class EmbeddedMongoFactory:
    """
    Produces a single embedded MongoDB client and tears it down.

    States move UNSTARTED -> RUNNING -> STOPPED. Opening a running factory
    returns the existing client; closing an unstarted or stopped factory does
    nothing; a stopped factory cannot be opened again.
    """

    def __init__(self, builder: Optional[EmbeddedMongoBuilder] = None):
        self.builder = builder or EmbeddedMongoBuilder()
        self._client: Optional[MongoClient] = None
        self._state = LifecycleState.UNSTARTED

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def client(self) -> Optional[MongoClient]:
        return self._client

    def open(self) -> MongoClient:
        """
        Start the embedded instance on first call and return its client.

        Raises:
            InvalidStateError: If the factory was already closed
            StartupError: If mongod fails to start
        """
        if self._state == LifecycleState.STOPPED:
            raise InvalidStateError("Embedded MongoDB factory is closed")
        if self._client is None:
            self._client = self.builder.build()
            self._state = LifecycleState.RUNNING
        return self._client

    def close(self) -> None:
        """Close the client, which stops its mongod. Errors from close propagate."""
        if self._client is None:
            return

        logger.info("Stopping embedded MongoDB instance")
        client, self._client = self._client, None
        self._state = LifecycleState.STOPPED
        client.close()

    # Factory-style names for host frameworks
    produce = open
    destroy = close

    @staticmethod
    def produced_type() -> Type[MongoClient]:
        return EmbeddedMongoClient

    @staticmethod
    def is_singleton() -> bool:
        return True

    def set_version(self, version: str) -> None:
        self.builder.version(version)

    def set_port(self, port: int) -> None:
        self.builder.port(port)

    def set_bind_ip(self, bind_ip: str) -> None:
        self.builder.bind_ip(bind_ip)

    def __enter__(self) -> MongoClient:
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
