"""
Embedded MongoDB Builder

Collects version, bind address and port for an embedded MongoDB instance,
validating each as it is set, then starts mongod and returns a connected
client.
"""

import logging
from typing import Callable, Optional, Union

from pymongo import MongoClient

from embedmongo.config import ConfigManager
from embedmongo.distribution import GenericVersion, Main, Version, VersionSelector, parse_version
from embedmongo.errors import InvalidArgumentError, StartupError
from embedmongo.network import get_free_server_port, get_loopback_address
from embedmongo.output import LoggingProgressListener, ProcessOutput
from embedmongo.runtime import (
    ArtifactStoreConfig,
    Command,
    DockerProvisioner,
    DownloadConfig,
    MongodConfig,
    MongodExecutable,
    Net,
    Provisioner,
    RuntimeConfig,
)
from embedmongo.runtime.config import DEFAULT_IMAGE_REPOSITORY, DEFAULT_STARTUP_TIMEOUT

logger = logging.getLogger(__name__)

PROCESS_LOGGER = "embedmongo.process"
DOWNLOAD_LOGGER = "embedmongo.download"


class EmbeddedMongoClient(MongoClient):
    """
    MongoClient that owns the embedded mongod it is connected to.

    Closing the client also stops the mongod process.
    """

    def __init__(self, host: str, port: int, executable: Optional[MongodExecutable] = None, **kwargs):
        self._executable = executable
        super().__init__(host=host, port=port, **kwargs)

    def close(self) -> None:
        try:
            super().close()
        finally:
            executable, self._executable = self._executable, None
            if executable is not None:
                executable.stop()


class EmbeddedMongoBuilder:
    """
    Fluent builder for an embedded MongoDB instance.

    Every setter validates its argument immediately and returns the builder.
    The port is resolved lazily: when none is set, a free port is requested
    from the operating system on first use and kept for the builder's life.
    """

    def __init__(
        self,
        provisioner_factory: Optional[Callable[[RuntimeConfig], Provisioner]] = None,
        client_factory: Optional[Callable[..., MongoClient]] = None,
        image_repository: str = DEFAULT_IMAGE_REPOSITORY,
        startup_timeout: float = DEFAULT_STARTUP_TIMEOUT
    ):
        """
        Initialize EmbeddedMongoBuilder.

        Args:
            provisioner_factory: Creates the provisioner from a RuntimeConfig
                (default: DockerProvisioner)
            client_factory: Creates the client from host, port and executable
                (default: EmbeddedMongoClient)
            image_repository: Docker image repository MongoDB is run from
            startup_timeout: Seconds to wait for mongod to accept connections
        """
        self._provisioner_factory = provisioner_factory or DockerProvisioner
        self._client_factory = client_factory or EmbeddedMongoClient
        self._image_repository = image_repository
        self._startup_timeout = startup_timeout

        self._version: VersionSelector = Main.PRODUCTION
        self._port: Optional[int] = None
        self._bind_ip: str = get_loopback_address()

    @classmethod
    def from_config(cls, config_manager: ConfigManager, **kwargs) -> "EmbeddedMongoBuilder":
        """Create a builder with the defaults from a ConfigManager applied."""
        builder = cls(
            image_repository=config_manager.image_repository,
            startup_timeout=config_manager.startup_timeout,
            **kwargs
        )
        if config_manager.version:
            builder.version(config_manager.version)
        if config_manager.port is not None:
            builder.port(config_manager.port)
        if config_manager.bind_ip:
            builder.bind_ip(config_manager.bind_ip)
        return builder

    def build(self) -> MongoClient:
        """
        Start an embedded MongoDB instance and connect to it.

        Each call starts a new, independent mongod.

        Returns:
            Client connected to the bind address and port of the new instance

        Raises:
            StartupError: If no port can be resolved or mongod fails to start
        """
        logger.info("Initializing embedded MongoDB instance")
        provisioner = self._provisioner_factory(self.build_runtime_config())
        mongod_config = self.build_mongod_config()
        executable = provisioner.prepare(mongod_config)

        logger.info(f"Starting embedded MongoDB {mongod_config.version.release} on {mongod_config.net.address}")
        executable.start()

        try:
            return self._client_factory(
                host=mongod_config.net.host,
                port=mongod_config.net.port,
                executable=executable
            )
        except Exception:
            executable.stop()
            raise

    def version(self, version: Union[VersionSelector, str]) -> "EmbeddedMongoBuilder":
        """
        The version of MongoDB to run. Main.PRODUCTION is used when no
        version is set.

        Args:
            version: A Version, Main or GenericVersion, or a release string
                such as "4.2.0". Unknown release strings are run as-is.
        """
        if version is None:
            raise InvalidArgumentError("Version must not be None")

        if isinstance(version, str):
            if not version:
                raise InvalidArgumentError("Version must not be None or empty")
            self._version = parse_version(version)
        elif isinstance(version, (Version, Main, GenericVersion)):
            self._version = version
        else:
            raise InvalidArgumentError(f"Unsupported version type: {type(version).__name__}")
        return self

    def port(self, port: int) -> "EmbeddedMongoBuilder":
        if isinstance(port, bool) or not isinstance(port, int) or not (1 <= port <= 65535):
            raise InvalidArgumentError(f"Port number must be between 1 and 65535, got {port!r}")
        self._port = port
        return self

    def bind_ip(self, bind_ip: str) -> "EmbeddedMongoBuilder":
        if not bind_ip:
            raise InvalidArgumentError("Bind address must not be None or empty")
        self._bind_ip = bind_ip
        return self

    def get_version(self) -> VersionSelector:
        return self._version

    def get_bind_ip(self) -> str:
        return self._bind_ip

    def resolve_port(self) -> int:
        """Get the configured port, asking the OS for a free one on first use."""
        if self._port is None:
            try:
                self._port = get_free_server_port(self._bind_ip)
            except OSError as e:
                logger.error(f"Could not get free server port on {self._bind_ip}: {e}")
                raise StartupError(f"Could not get free server port on {self._bind_ip}: {e}") from e
        return self._port

    def build_output_config(self) -> ProcessOutput:
        return ProcessOutput.for_logger(logging.getLogger(PROCESS_LOGGER))

    def build_artifact_store(self) -> ArtifactStoreConfig:
        listener = LoggingProgressListener(logging.getLogger(DOWNLOAD_LOGGER))
        return ArtifactStoreConfig(
            download=DownloadConfig(
                progress_listener=listener,
                image_repository=self._image_repository
            )
        )

    def build_runtime_config(self) -> RuntimeConfig:
        return RuntimeConfig(
            process_output=self.build_output_config(),
            artifact_store=self.build_artifact_store(),
            command=Command.MONGOD,
            startup_timeout=self._startup_timeout
        )

    def build_mongod_config(self) -> MongodConfig:
        return MongodConfig(
            version=self._version,
            net=Net(bind_ip=self._bind_ip, port=self.resolve_port())
        )
