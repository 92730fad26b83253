"""
Runtime Configuration

Configuration objects handed to a provisioner: how to obtain the MongoDB
image, where process output goes, and which version to run on which endpoint.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List

from embedmongo.distribution import VersionSelector
from embedmongo.output import LoggingProgressListener, ProcessOutput

DEFAULT_IMAGE_REPOSITORY = "mongo"
DEFAULT_STARTUP_TIMEOUT = 60.0
MONGOD_CONTAINER_PORT = 27017


class Command(str, Enum):
    MONGOD = "mongod"

    def default_args(self) -> List[str]:
        """Arguments every launch of this command gets."""
        return ["--port", str(MONGOD_CONTAINER_PORT), "--bind_ip_all"]


@dataclass
class DownloadConfig:
    """How the MongoDB image is fetched when it is not cached locally."""
    progress_listener: LoggingProgressListener
    image_repository: str = DEFAULT_IMAGE_REPOSITORY


@dataclass
class ArtifactStoreConfig:
    """Image lookup and download settings."""
    download: DownloadConfig

    def image_name(self, version: VersionSelector) -> str:
        """Get the full image reference for a version, e.g. 'mongo:4.2.0'."""
        return f"{self.download.image_repository}:{version.release}"


@dataclass
class RuntimeConfig:
    """Settings shared by every process a provisioner launches."""
    process_output: ProcessOutput
    artifact_store: ArtifactStoreConfig
    command: Command = Command.MONGOD
    startup_timeout: float = DEFAULT_STARTUP_TIMEOUT


@dataclass(frozen=True)
class Net:
    """Host endpoint the MongoDB port is published on."""
    bind_ip: str
    port: int

    @property
    def host(self) -> str:
        """Bind address in host form, IPv6 literals in brackets."""
        if ":" in self.bind_ip:
            return f"[{self.bind_ip}]"
        return self.bind_ip

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass
class MongodConfig:
    """Settings for a single mongod launch."""
    version: VersionSelector
    net: Net
