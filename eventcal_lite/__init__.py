"""eventcal_lite - personal calendar events with recurring occurrence resolution.

Top-level imports are kept light; the aiohttp server is imported only when
``run_server`` is called.
"""

__version__ = "0.1.0"

from typing import Optional


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Honors EVENTCAL_DEBUG (truthy values: "1", "true", "yes", "on"), which
    forces DEBUG verbosity regardless of ``level_name``.
    """
    import logging
    import os
    import sys

    debug_env = os.environ.get("EVENTCAL_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # Prefer colorlog when installed
        try:
            from colorlog import ColoredFormatter  # type: ignore[import-not-found]

            fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
            log_colors = {
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            }
            formatter = ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors)
        except ImportError:
            fmt = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
            formatter = logging.Formatter(fmt, datefmt="%H:%M:%S")

        handler.setFormatter(formatter)
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
    root.setLevel(level)
    logging.getLogger(__name__).debug(
        "Logging initialized at level %s", logging.getLevelName(level)
    )


def run_server(args: Optional[object] = None) -> None:
    """Start the eventcal_lite server.

    Configuration is layered: config file (``args.config``), then .env and
    EVENTCAL_* environment variables, then command line overrides
    (``args.port``, ``args.store``).
    """
    import logging
    import os

    _init_logging(os.environ.get("EVENTCAL_LOG_LEVEL"))
    logger = logging.getLogger(__name__)

    from .config_loader import load_config
    from .core.config_manager import ConfigManager

    cfg = load_config(getattr(args, "config", None))
    cfg = cfg.merged(ConfigManager().load_full_config())

    cli_overrides = {
        "server_port": getattr(args, "port", None),
        "store_path": getattr(args, "store", None),
    }
    cfg = cfg.merged(cli_overrides)

    _init_logging(cfg.log_level)
    logger.info("Starting eventcal_lite on %s:%d", cfg.server_bind, cfg.server_port)

    from .api.server import start_server

    start_server(cfg)
