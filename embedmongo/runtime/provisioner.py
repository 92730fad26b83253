"""
MongoDB Provisioner

Launches mongod through the Docker Engine and waits until it accepts
connections. Docker pulls and caches the MongoDB image and supervises the
container; this module only drives it and forwards its output.
"""

import atexit
import logging
import re
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Iterator, Optional

import docker

from embedmongo.errors import StartupError
from embedmongo.network import check_port_reachable
from embedmongo.output import LoggingProgressListener, LoggingStreamProcessor
from embedmongo.runtime.config import MONGOD_CONTAINER_PORT, MongodConfig, RuntimeConfig

logger = logging.getLogger(__name__)

READY_PATTERN = re.compile(r"waiting for connections", re.IGNORECASE)
CONTAINER_LABEL = "embedmongo"


class MongodExecutable(ABC):
    """A prepared mongod launch that can be started once and stopped."""

    @abstractmethod
    def start(self) -> Any:
        """Start mongod and block until it accepts connections."""

    @abstractmethod
    def stop(self) -> None:
        """Stop mongod if it was started."""


class Provisioner(ABC):
    """Turns a mongod configuration into something that can be started."""

    @abstractmethod
    def prepare(self, mongod_config: MongodConfig) -> MongodExecutable:
        pass


class MongodProcess:
    """A running mongod container."""

    def __init__(self, container, config: MongodConfig, commands: LoggingStreamProcessor):
        self.container = container
        self.config = config
        self._commands = commands
        self._stopped = False

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    def stop(self, timeout: int = 10):
        """Stop and remove the container. Safe to call more than once."""
        if self._stopped:
            return
        self._stopped = True

        self._commands.process(f"Stopping mongod container {self.container.name}")
        try:
            self.container.stop(timeout=timeout)
            self.container.remove(force=True, v=True)  # v=True removes anonymous volumes
        except docker.errors.NotFound:
            logger.debug(f"Container {self.container.name} was already removed")


class DockerMongodExecutable(MongodExecutable):
    """Runs one mongod container for a MongodConfig."""

    def __init__(self, docker_client, runtime_config: RuntimeConfig, mongod_config: MongodConfig):
        self.docker_client = docker_client
        self.runtime_config = runtime_config
        self.mongod_config = mongod_config
        self._output = runtime_config.process_output
        self._process: Optional[MongodProcess] = None

    @property
    def image(self) -> str:
        return self.runtime_config.artifact_store.image_name(self.mongod_config.version)

    def start(self) -> MongodProcess:
        """
        Start mongod.

        Pulls the image when it is not cached, runs the container and waits
        until mongod reports it is waiting for connections and the published
        port accepts TCP connections.

        Returns:
            The running process

        Raises:
            StartupError: If the image cannot be obtained, the container cannot
                be started, or mongod is not ready within the startup timeout
        """
        if self._process is not None and not self._process.is_stopped:
            return self._process

        self._ensure_image()
        container = self._run_container()
        try:
            self._wait_until_ready(container)
        except Exception:
            self._discard(container)
            raise

        self._process = MongodProcess(container, self.mongod_config, self._output.commands)
        # Stop containers the caller forgot to close
        atexit.register(self.stop)
        return self._process

    def stop(self) -> None:
        if self._process is None:
            return
        atexit.unregister(self.stop)
        self._process.stop()

    def _ensure_image(self):
        """Pull the image unless Docker already has it cached."""
        image = self.image
        try:
            self.docker_client.images.get(image)
            logger.debug(f"Using cached image {image}")
            return
        except docker.errors.ImageNotFound:
            logger.info(f"Image {image} not cached, downloading")
        except docker.errors.APIError as e:
            raise StartupError(f"Cannot inspect image {image}: {e}") from e

        self._pull(image)

    def _pull(self, image: str):
        listener = self.runtime_config.artifact_store.download.progress_listener
        repository, tag = image.rsplit(":", 1)
        label = f"Download {image}"
        last_percent: Dict[str, int] = {}

        listener.start(label)
        try:
            events = self.docker_client.api.pull(repository, tag=tag, stream=True, decode=True)
            for event in events:
                if 'error' in event:
                    raise StartupError(f"Failed to pull image {image}: {event['error']}")
                self._report_progress(listener, label, event, last_percent)
        except docker.errors.APIError as e:
            raise StartupError(f"Failed to pull image {image}: {e}") from e
        listener.done(label)

    @staticmethod
    def _report_progress(
        listener: LoggingProgressListener,
        label: str,
        event: Dict[str, Any],
        last_percent: Dict[str, int]
    ):
        layer = event.get('id')
        detail = event.get('progressDetail') or {}
        total = detail.get('total')

        if layer and total:
            percent = int(detail.get('current', 0) * 100 / total)
            # Docker sends an event per chunk, report only when the percentage moves
            if last_percent.get(layer) != percent:
                last_percent[layer] = percent
                listener.progress(f"{label} [{layer}]", percent)
        elif 'status' in event:
            status = f"{layer}: {event['status']}" if layer else event['status']
            listener.info(label, status)

    def _run_container(self):
        net = self.mongod_config.net
        command = self.runtime_config.command.default_args()
        name = f"embedmongo_{net.port}_{int(time.time() * 1000) % 100000}"

        self._output.commands.process(f"Starting {self.image} as {name} on {net.address}")
        try:
            return self.docker_client.containers.run(
                image=self.image,
                command=command,
                name=name,
                detach=True,
                ports={f"{MONGOD_CONTAINER_PORT}/tcp": (net.bind_ip, net.port)},
                labels={CONTAINER_LABEL: "true"},
            )
        except docker.errors.APIError as e:
            raise StartupError(f"Failed to start container from {self.image}: {e}") from e

    def _wait_until_ready(self, container):
        ready = threading.Event()
        self._follow(container, self._output.output, ready, stdout=True, stderr=False)
        self._follow(container, self._output.error, None, stdout=False, stderr=True)

        timeout = self.runtime_config.startup_timeout
        deadline = time.monotonic() + timeout
        while not ready.wait(timeout=0.5):
            self._check_running(container)
            if time.monotonic() > deadline:
                raise StartupError(f"mongod in {container.name} not ready after {timeout}s")

        net = self.mongod_config.net
        while not check_port_reachable(net.bind_ip, net.port):
            if time.monotonic() > deadline:
                raise StartupError(f"mongod port {net.address} not reachable after {timeout}s")
            time.sleep(0.2)

        self._output.commands.process(f"mongod ready on {net.address}")

    @staticmethod
    def _check_running(container):
        try:
            container.reload()
        except docker.errors.NotFound as e:
            raise StartupError(f"Container {container.name} disappeared during startup") from e

        if container.status in ('exited', 'dead'):
            exit_code = container.attrs.get('State', {}).get('ExitCode')
            raise StartupError(
                f"mongod in {container.name} exited with code {exit_code} before accepting connections"
            )

    @staticmethod
    def _follow(container, processor: LoggingStreamProcessor, ready: Optional[threading.Event], **streams):
        """Forward container log lines to processor on a daemon thread."""
        def pump():
            try:
                chunks = container.logs(stream=True, follow=True, **streams)
                for line in _iter_lines(chunks):
                    processor.process(line)
                    if ready is not None and READY_PATTERN.search(line):
                        ready.set()
            except (docker.errors.APIError, OSError) as e:
                logger.debug(f"Stopped following logs of {container.name}: {e}")
            processor.on_processed()

        thread = threading.Thread(target=pump, name=f"{container.name}-logs", daemon=True)
        thread.start()
        return thread

    @staticmethod
    def _discard(container):
        try:
            container.remove(force=True, v=True)
        except docker.errors.APIError as e:
            logger.warning(f"Could not remove container {container.name} after failed startup: {e}")


class DockerProvisioner(Provisioner):
    """Provisions mongod containers with the Docker Engine."""

    def __init__(self, runtime_config: RuntimeConfig, docker_client=None):
        """Initialize DockerProvisioner with an optional Docker client."""
        self.runtime_config = runtime_config
        if docker_client is None:
            try:
                docker_client = docker.from_env()
            except docker.errors.DockerException as e:
                raise StartupError(f"Docker is not available: {e}") from e
        self.docker_client = docker_client

    def prepare(self, mongod_config: MongodConfig) -> DockerMongodExecutable:
        return DockerMongodExecutable(self.docker_client, self.runtime_config, mongod_config)


def _iter_lines(chunks: Iterable[bytes]) -> Iterator[str]:
    """Split a stream of byte chunks into text lines."""
    pending = ""
    for chunk in chunks:
        pending += chunk.decode("utf-8", errors="replace")
        *lines, pending = pending.split("\n")
        for line in lines:
            yield line
    if pending:
        yield pending
