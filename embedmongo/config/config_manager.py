"""
Configuration Manager for embedmongo

Reads embedded MongoDB defaults from environment variables and environment
files so test suites can pick a version, port or image without code changes.
"""

import os
from pathlib import Path
from typing import Dict, Optional

from embedmongo.runtime.config import DEFAULT_IMAGE_REPOSITORY, DEFAULT_STARTUP_TIMEOUT


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


class ConfigManager:
    """
    Configuration for embedded MongoDB instances.

    Provides:
    - Version, port and bind address defaults from environment variables
    - Environment file loading with precedence (.env.test > .env)
    - Image repository and startup timeout settings
    - Configuration validation
    """

    ENV_FILES = ['.env', '.env.test']

    VERSION_ENV_VAR = 'EMBEDMONGO_VERSION'
    PORT_ENV_VAR = 'EMBEDMONGO_PORT'
    BIND_IP_ENV_VAR = 'EMBEDMONGO_BIND_IP'
    IMAGE_ENV_VAR = 'EMBEDMONGO_IMAGE'
    STARTUP_TIMEOUT_ENV_VAR = 'EMBEDMONGO_STARTUP_TIMEOUT'

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize ConfigManager.

        Args:
            config_dir: Directory containing environment files (default: cwd)
        """
        self.config_dir = Path(config_dir) if config_dir else Path.cwd()
        self._env_vars: Dict[str, str] = {}

        self._load_env_files()
        self._validate()

    def _validate(self):
        """Validate values that have a format."""
        _ = self.port
        _ = self.startup_timeout

    def _load_env_files(self):
        """Load environment files, later files override earlier ones."""
        for env_file in self.ENV_FILES:
            env_path = self.config_dir / env_file
            if env_path.exists():
                self._load_env_file(env_path)

    def _load_env_file(self, env_path: Path):
        """Load a single environment file into our internal env_vars dict."""
        with open(env_path, 'r') as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith('#') and '=' in line:
                    key, value = line.split('=', 1)
                    self._env_vars[key.strip()] = value.strip()

    def _get(self, name: str) -> Optional[str]:
        # os.environ first (highest precedence), then file-loaded env_vars.
        # A variable set to an empty string is unset and hides the file value.
        if name in os.environ:
            return os.environ[name] or None
        return self._env_vars.get(name) or None

    @property
    def version(self) -> Optional[str]:
        """Get the configured MongoDB version, if any."""
        return self._get(self.VERSION_ENV_VAR)

    @property
    def port(self) -> Optional[int]:
        """Get the configured MongoDB port, if any."""
        value = self._get(self.PORT_ENV_VAR)
        if value is None:
            return None
        try:
            port = int(value)
        except ValueError:
            raise ConfigValidationError(
                f"Invalid {self.PORT_ENV_VAR}: '{value}' - port must be a number between 1 and 65535"
            )
        if not (1 <= port <= 65535):
            raise ConfigValidationError(
                f"Invalid {self.PORT_ENV_VAR}: '{value}' - port must be between 1 and 65535"
            )
        return port

    @property
    def bind_ip(self) -> Optional[str]:
        """Get the configured bind address, if any."""
        return self._get(self.BIND_IP_ENV_VAR)

    @property
    def image_repository(self) -> str:
        """Get the Docker image repository MongoDB is run from."""
        return self._get(self.IMAGE_ENV_VAR) or DEFAULT_IMAGE_REPOSITORY

    @property
    def startup_timeout(self) -> float:
        """Get the number of seconds to wait for mongod to accept connections."""
        value = self._get(self.STARTUP_TIMEOUT_ENV_VAR)
        if value is None:
            return DEFAULT_STARTUP_TIMEOUT
        try:
            timeout = float(value)
        except ValueError:
            raise ConfigValidationError(
                f"Invalid {self.STARTUP_TIMEOUT_ENV_VAR}: '{value}' - must be a number of seconds"
            )
        if timeout <= 0:
            raise ConfigValidationError(
                f"Invalid {self.STARTUP_TIMEOUT_ENV_VAR}: '{value}' - must be positive"
            )
        return timeout
