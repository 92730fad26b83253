"""
Centralized test configuration and fixtures for embedmongo.

This module provides shared test fixtures that:
1. Replace the Docker provisioner with an in-memory test double for unit tests
2. Provide a mocked Docker client for provisioner tests
3. Isolate tests from EMBEDMONGO_* variables in the developer's environment
"""

import os
import logging
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock, patch

import docker
import pytest

from embedmongo.builder import EmbeddedMongoBuilder
from embedmongo.runtime import MongodConfig, RuntimeConfig

# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FakeExecutable:
    """Test double for a prepared mongod launch."""

    def __init__(self, mongod_config: MongodConfig, fail_on_start: Optional[Exception] = None):
        self.mongod_config = mongod_config
        self.fail_on_start = fail_on_start
        self.start_calls = 0
        self.stop_calls = 0

    @property
    def running(self) -> bool:
        return self.start_calls > 0 and self.stop_calls == 0

    def start(self):
        if self.fail_on_start is not None:
            raise self.fail_on_start
        self.start_calls += 1
        return self

    def stop(self):
        self.stop_calls += 1


class FakeProvisioner:
    """Test double for a provisioner, records every executable it prepares."""

    def __init__(self, runtime_config: RuntimeConfig, fail_on_start: Optional[Exception] = None):
        self.runtime_config = runtime_config
        self.fail_on_start = fail_on_start
        self.executables: List[FakeExecutable] = []

    def prepare(self, mongod_config: MongodConfig) -> FakeExecutable:
        executable = FakeExecutable(mongod_config, self.fail_on_start)
        self.executables.append(executable)
        return executable


class RecordingProvisionerFactory:
    """Creates FakeProvisioners and remembers them."""

    def __init__(self):
        self.provisioners: List[FakeProvisioner] = []
        self.fail_on_start: Optional[Exception] = None

    def __call__(self, runtime_config: RuntimeConfig) -> FakeProvisioner:
        provisioner = FakeProvisioner(runtime_config, self.fail_on_start)
        self.provisioners.append(provisioner)
        return provisioner

    @property
    def executables(self) -> List[FakeExecutable]:
        return [exe for p in self.provisioners for exe in p.executables]


class FakeClient:
    """Test double for EmbeddedMongoClient that does not open connections."""

    def __init__(self, host: str, port: int, executable=None, **kwargs: Any):
        self.host = host
        self.port = port
        self.executable = executable
        self.kwargs: Dict[str, Any] = kwargs
        self.close_calls = 0

    def close(self):
        self.close_calls += 1
        if self.executable is not None:
            self.executable.stop()


# Pytest configuration

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "docker: mark test as requiring Docker")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on test location."""
    for item in items:
        # Add integration marker for tests in integration directory
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.docker)


# Environment fixtures

@pytest.fixture(autouse=True)
def clean_embedmongo_env():
    """Hide EMBEDMONGO_* variables of the surrounding environment."""
    env = {k: v for k, v in os.environ.items() if not k.startswith('EMBEDMONGO_')}
    with patch.dict(os.environ, env, clear=True):
        yield


# Provisioner fixtures

@pytest.fixture
def provisioner_factory():
    """Factory producing in-memory provisioners instead of Docker ones."""
    return RecordingProvisionerFactory()


@pytest.fixture
def builder(provisioner_factory):
    """EmbeddedMongoBuilder wired to test doubles."""
    return EmbeddedMongoBuilder(
        provisioner_factory=provisioner_factory,
        client_factory=FakeClient
    )


# Docker fixtures

@pytest.fixture
def mock_container():
    """Mock mongod container that reports readiness on stdout."""
    container = MagicMock()
    container.name = "embedmongo_27017_12345"
    container.status = "running"
    container.attrs = {'State': {'Status': 'running', 'ExitCode': 0}}

    def logs(stream=False, follow=False, stdout=True, stderr=True, **kwargs):
        if stdout:
            return iter([
                b'{"t":{"$date":"2024-01-01T00:00:00.000+00:00"},"s":"I","msg":"Build Info"}\n',
                b'{"t":{"$date":"2024-01-01T00:00:01.000+00:00"},"s":"I",',
                b'"msg":"Waiting for connections","attr":{"port":27017}}\n',
            ])
        return iter([b'warning: using default config\n'])

    container.logs.side_effect = logs
    return container


@pytest.fixture
def mock_docker_client(mock_container):
    """Mock Docker client with the MongoDB image already cached."""
    client = MagicMock()
    client.images.get.return_value = MagicMock()
    client.containers.run.return_value = mock_container
    client.api.pull.return_value = iter([])
    return client


@pytest.fixture
def uncached_docker_client(mock_docker_client):
    """Mock Docker client that has to pull the MongoDB image first."""
    mock_docker_client.images.get.side_effect = docker.errors.ImageNotFound("No such image")
    mock_docker_client.api.pull.return_value = iter([
        {'status': 'Pulling from library/mongo', 'id': '4.2.0'},
        {'status': 'Downloading', 'id': 'a1b2c3', 'progressDetail': {'current': 10, 'total': 100}},
        {'status': 'Downloading', 'id': 'a1b2c3', 'progressDetail': {'current': 10, 'total': 100}},
        {'status': 'Downloading', 'id': 'a1b2c3', 'progressDetail': {'current': 100, 'total': 100}},
        {'status': 'Digest: sha256:0123456789abcdef'},
    ])
    return mock_docker_client
