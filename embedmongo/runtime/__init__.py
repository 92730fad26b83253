"""Provisioning of mongod processes for embedmongo."""

from .config import (
    ArtifactStoreConfig,
    Command,
    DownloadConfig,
    MongodConfig,
    Net,
    RuntimeConfig,
)
from .provisioner import (
    DockerMongodExecutable,
    DockerProvisioner,
    MongodExecutable,
    MongodProcess,
    Provisioner,
)

__all__ = [
    'ArtifactStoreConfig',
    'Command',
    'DownloadConfig',
    'MongodConfig',
    'Net',
    'RuntimeConfig',
    'DockerMongodExecutable',
    'DockerProvisioner',
    'MongodExecutable',
    'MongodProcess',
    'Provisioner',
]
