"""eventcal_lite.config_loader

Lightweight config loader for eventcal_lite.

- Reads YAML with PyYAML (JSON is valid YAML, so JSON files work too).
- Exposes a typed dataclass `Config` and a `load_config()` helper that accepts
  an optional path override.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

MIN_MAX_OCCURRENCES = 1
MAX_MAX_OCCURRENCES = 100_000


@dataclass
class Config:
    """Typed configuration for eventcal_lite.

    Fields:
        store_path: JSON file backing the event store; None keeps events in memory
        server_bind: host to bind the HTTP server to
        server_port: port for the HTTP server
        log_level: logging level name
        max_occurrences: per-template expansion safety cap (1..100000)
        sort_globally: sort merged occurrences by start time
        api_bearer_token: optional bearer token required on /api/events routes
    """

    store_path: str | None = None
    server_bind: str = "127.0.0.1"
    server_port: int = 8080
    log_level: str = "INFO"
    max_occurrences: int = 1000
    sort_globally: bool = True
    api_bearer_token: str | None = field(default=None, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Config:
        """Create Config from a plain mapping, applying defaults and validation.

        Numeric-like values are coerced to int, and max_occurrences is clamped
        to its allowed range, logging warnings when coercions occur.
        """
        if data is None:
            data = {}

        def _coerce_int(key: str, default: int) -> int:
            raw = data.get(key, default)
            try:
                return int(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not an int; using default %d", key, raw, default)
                return default

        def _coerce_bool(key: str, default: bool) -> bool:
            raw = data.get(key, default)
            if isinstance(raw, bool):
                return raw
            if isinstance(raw, str) and raw.strip().lower() in ("1", "true", "yes", "on"):
                return True
            if isinstance(raw, str) and raw.strip().lower() in ("0", "false", "no", "off"):
                return False
            logger.warning("Config %s=%r is not a boolean; using default %s", key, raw, default)
            return default

        max_occurrences = _coerce_int("max_occurrences", 1000)
        if max_occurrences < MIN_MAX_OCCURRENCES:
            logger.warning(
                "max_occurrences %d below minimum; coercing to %d",
                max_occurrences,
                MIN_MAX_OCCURRENCES,
            )
            max_occurrences = MIN_MAX_OCCURRENCES
        elif max_occurrences > MAX_MAX_OCCURRENCES:
            logger.warning(
                "max_occurrences %d above maximum; coercing to %d",
                max_occurrences,
                MAX_MAX_OCCURRENCES,
            )
            max_occurrences = MAX_MAX_OCCURRENCES

        store_path = data.get("store_path")
        store_path = str(store_path) if store_path else None

        server_bind = data.get("server_bind", "127.0.0.1")
        server_bind = str(server_bind) if server_bind is not None else "127.0.0.1"

        log_level = data.get("log_level", "INFO")
        log_level = str(log_level).upper() if log_level is not None else "INFO"

        api_bearer_token = data.get("api_bearer_token")
        if api_bearer_token is not None:
            api_bearer_token = str(api_bearer_token)

        return cls(
            store_path=store_path,
            server_bind=server_bind,
            server_port=_coerce_int("server_port", 8080),
            log_level=log_level,
            max_occurrences=max_occurrences,
            sort_globally=_coerce_bool("sort_globally", True),
            api_bearer_token=api_bearer_token,
        )

    def merged(self, overrides: dict[str, Any]) -> Config:
        """Return a new Config with ``overrides`` applied on top of this one."""
        base = {
            "store_path": self.store_path,
            "server_bind": self.server_bind,
            "server_port": self.server_port,
            "log_level": self.log_level,
            "max_occurrences": self.max_occurrences,
            "sort_globally": self.sort_globally,
            "api_bearer_token": self.api_bearer_token,
        }
        base.update({k: v for k, v in overrides.items() if v is not None})
        return Config.from_dict(base)


def _load_yaml(path: Path) -> Any:
    """Load a mapping from a YAML (or JSON) file; empty files yield an empty dict."""
    loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    if loaded is None:
        return {}
    return loaded


def load_config(path: str | None = None) -> Config:
    """Load configuration from a YAML/JSON file and return a Config instance.

    Args:
        path: Optional path to the config file. If not provided the default is
              ./eventcal_lite/config.yaml (relative to current working dir).

    Returns:
        Config dataclass instance with values from file (or defaults).

    Behavior:
    - If file is missing: returns Config() with defaults.
    - If file exists but top-level is not a mapping: raises ValueError.
    - If the file is not valid YAML: raises ValueError.
    """
    p = Path(path) if path else Path.cwd() / "eventcal_lite" / "config.yaml"
    logger.debug("Attempting to load config from %s", p)
    if not p.exists():
        logger.info("Config file %s not found; using defaults", p)
        return Config()

    try:
        raw = _load_yaml(p)
    except yaml.YAMLError as exc:
        raise ValueError(f"Config file {p} is not valid YAML") from exc
    if not isinstance(raw, dict):
        logger.warning("Config file %s parsed but top-level is not a mapping: %r", p, raw)
        raise ValueError("Config file must contain a mapping at top level")  # noqa: TRY004
    cfg = Config.from_dict(raw)
    logger.info("Loaded configuration from %s", p)
    logger.debug("Configuration values: %s", cfg)
    return cfg
