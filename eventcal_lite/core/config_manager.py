"""Environment-driven configuration for the eventcal_lite server."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a .env file and return key-value pairs.

    Args:
        path: Path to .env file

    Returns:
        Dictionary of key-value pairs from the .env file.
        Empty dict if file doesn't exist or cannot be read.

    Note:
        - Skips empty lines and comments (lines starting with #)
        - Strips quotes (both single and double) from values
        - Handles KEY=VALUE format with optional whitespace
    """
    if not path.exists():
        return {}

    result: dict[str, str] = {}

    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        logger.debug("Failed to read .env file (continuing): %s", str(path), exc_info=True)
        return result

    for raw_line in content.splitlines():
        line = raw_line.strip()

        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue

        key, val = line.split("=", 1)
        key = key.strip()
        val = val.strip().strip('"').strip("'")

        if key:
            result[key] = val

    return result


class ConfigManager:
    """Manages application configuration from environment variables and .env files."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        parsed = parse_env_file(self.env_file_path)

        set_keys = []
        for key, val in parsed.items():
            if key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    def build_config_from_env(self) -> dict[str, Any]:
        """Build configuration overrides from environment variables.

        Recognizes:
        - EVENTCAL_STORE_PATH -> 'store_path'
        - EVENTCAL_SERVER_BIND -> 'server_bind'
        - EVENTCAL_SERVER_PORT -> 'server_port' (int)
        - EVENTCAL_LOG_LEVEL -> 'log_level'
        - EVENTCAL_MAX_OCCURRENCES -> 'max_occurrences' (int)
        - EVENTCAL_SORT_GLOBALLY -> 'sort_globally'
        - EVENTCAL_API_BEARER_TOKEN -> 'api_bearer_token'

        Returns:
            Configuration dictionary suitable for ``Config.merged``
        """
        cfg: dict[str, Any] = {}

        store_path = os.environ.get("EVENTCAL_STORE_PATH")
        if store_path:
            cfg["store_path"] = store_path

        host = os.environ.get("EVENTCAL_SERVER_BIND")
        if host:
            cfg["server_bind"] = host

        port = os.environ.get("EVENTCAL_SERVER_PORT")
        if port:
            try:
                cfg["server_port"] = int(port)
            except ValueError:
                logger.warning("Invalid EVENTCAL_SERVER_PORT=%r; ignoring", port)

        log_level = os.environ.get("EVENTCAL_LOG_LEVEL")
        if log_level:
            cfg["log_level"] = log_level

        max_occurrences = os.environ.get("EVENTCAL_MAX_OCCURRENCES")
        if max_occurrences:
            try:
                cfg["max_occurrences"] = int(max_occurrences)
            except ValueError:
                logger.warning("Invalid EVENTCAL_MAX_OCCURRENCES=%r; ignoring", max_occurrences)

        sort_globally = os.environ.get("EVENTCAL_SORT_GLOBALLY")
        if sort_globally:
            cfg["sort_globally"] = sort_globally

        token = os.environ.get("EVENTCAL_API_BEARER_TOKEN")
        if token:
            cfg["api_bearer_token"] = token

        return cfg

    def load_full_config(self) -> dict[str, Any]:
        """Load .env file and build configuration overrides from environment."""
        self.load_env_file()
        return self.build_config_from_env()
