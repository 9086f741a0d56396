"""aiohttp server for eventcal_lite."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import Optional

from aiohttp import web

from eventcal_lite.config_loader import Config
from eventcal_lite.domain.event_service import EventService
from eventcal_lite.domain.event_store import EventStore, InMemoryEventStore, JsonEventStore
from eventcal_lite.domain.occurrence_resolver import OccurrenceResolver, ResolverConfig

from .middleware import correlation_id_middleware, error_middleware
from .routes import register_event_routes

logger = logging.getLogger(__name__)


def build_store(config: Config) -> EventStore:
    """Create the event store selected by ``config.store_path``."""
    if config.store_path:
        logger.info("Using JSON event store at %s", config.store_path)
        return JsonEventStore(config.store_path)
    logger.info("Using in-memory event store; events are lost on shutdown")
    return InMemoryEventStore()


def make_app(config: Config, store: Optional[EventStore] = None) -> web.Application:
    """Build the aiohttp application with middleware and routes wired up.

    Args:
        config: Application configuration
        store: Event store to serve; built from ``config`` when omitted
    """
    store = store if store is not None else build_store(config)
    resolver = OccurrenceResolver(store, ResolverConfig.from_settings(config))
    service = EventService(store, resolver)

    app = web.Application(middlewares=[correlation_id_middleware, error_middleware])
    app["config"] = config
    app["event_service"] = service
    register_event_routes(app, service, bearer_token=config.api_bearer_token)

    logger.debug(
        "Application built: max_occurrences=%d sort_globally=%s",
        resolver.config.expansion.max_occurrences,
        resolver.config.sort_globally,
    )
    return app


async def _serve(config: Config) -> None:
    """Run the HTTP server until SIGINT/SIGTERM."""
    app = make_app(config)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host=config.server_bind, port=config.server_port)
    await site.start()
    logger.info("Serving on http://%s:%d", config.server_bind, config.server_port)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _on_signal() -> None:
        logger.info("Shutdown signal received")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, _on_signal)

    try:
        await stop_event.wait()
    finally:
        await runner.cleanup()
        logger.info("Server shutdown complete")


def start_server(config: Config) -> None:
    """Configure logging and run the server, blocking until stopped."""
    from eventcal_lite.lite_logging import configure_lite_logging

    configure_lite_logging(debug_mode=config.log_level == "DEBUG")

    try:
        asyncio.run(_serve(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
