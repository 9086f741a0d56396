"""Event API routes for eventcal_lite.

The owning user is identified by the ``X-User-Id`` header, which an upstream
authentication layer is expected to set. When a bearer token is configured,
requests must also present ``Authorization: Bearer <token>``.
"""

from __future__ import annotations

import hmac
import logging
from typing import Any

from aiohttp import web

from eventcal_lite.core.datetime_utils import now_utc, parse_instant
from eventcal_lite.core.exceptions import (
    AuthenticationError,
    EventValidationError,
    InvalidWindowError,
)
from eventcal_lite.domain.event_service import EventService

from ..middleware.error_handling import json_envelope

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"


def _check_bearer_token(request: web.Request, required_token: str | None) -> bool:
    """Return True if no token is required or the request presents it."""
    if not required_token:
        return True
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return False
    return hmac.compare_digest(auth_header[len("Bearer ") :].strip(), required_token)


def _window_param(request: web.Request, *names: str) -> str:
    for name in names:
        value = request.query.get(name)
        if value:
            return value
    return ""


async def _json_body(request: web.Request) -> dict[str, Any]:
    try:
        data = await request.json()
    except ValueError as exc:
        raise EventValidationError("invalid json") from exc
    if not isinstance(data, dict):
        raise EventValidationError("request body must be a JSON object")
    return data


def register_event_routes(
    app: web.Application, service: EventService, bearer_token: str | None = None
) -> None:
    """Register the event CRUD, window query and health routes.

    Args:
        app: aiohttp web application
        service: Event service backing the routes
        bearer_token: Optional token required on /api/events routes
    """

    def _require_user(request: web.Request) -> str:
        if not _check_bearer_token(request, bearer_token):
            raise AuthenticationError("Authorization Failure: invalid or missing bearer token")
        user_id = request.headers.get(USER_ID_HEADER, "").strip()
        if not user_id:
            raise AuthenticationError("Authorization Failure: missing user identity")
        return user_id

    async def list_events(request: web.Request) -> web.Response:
        """Return the caller's occurrences inside ``start``..``end``."""
        user_id = _require_user(request)
        raw_start = _window_param(request, "start", "startDate")
        raw_end = _window_param(request, "end", "endDate")
        if not raw_start or not raw_end:
            raise InvalidWindowError("Start date and end date are required")
        try:
            window_start = parse_instant(raw_start)
            window_end = parse_instant(raw_end)
        except ValueError as exc:
            raise InvalidWindowError(str(exc)) from exc

        occurrences = await service.get_events_for_user(user_id, window_start, window_end)
        return json_envelope(
            200,
            "Events retrieved successfully",
            [o.model_dump(mode="json") for o in occurrences],
        )

    async def create_event(request: web.Request) -> web.Response:
        user_id = _require_user(request)
        data = await _json_body(request)
        event = await service.create_event(user_id, data)
        return json_envelope(201, "Event created successfully", event.model_dump(mode="json"))

    async def get_event(request: web.Request) -> web.Response:
        user_id = _require_user(request)
        event = await service.get_event(user_id, request.match_info["event_id"])
        return json_envelope(200, "Event retrieved successfully", event.model_dump(mode="json"))

    async def update_event(request: web.Request) -> web.Response:
        user_id = _require_user(request)
        data = await _json_body(request)
        event = await service.update_event(user_id, request.match_info["event_id"], data)
        return json_envelope(200, "Event updated successfully", event.model_dump(mode="json"))

    async def delete_event(request: web.Request) -> web.Response:
        user_id = _require_user(request)
        await service.delete_event(user_id, request.match_info["event_id"])
        return json_envelope(200, "Event deleted successfully")

    async def health_check(_request: web.Request) -> web.Response:
        return web.json_response({"status": "ok", "server_time_iso": now_utc().isoformat()})

    app.router.add_get("/api/events", list_events)
    app.router.add_post("/api/events", create_event)
    app.router.add_get("/api/events/{event_id}", get_event)
    app.router.add_put("/api/events/{event_id}", update_event)
    app.router.add_delete("/api/events/{event_id}", delete_event)
    app.router.add_get("/api/health", health_check)

    logger.debug("Event routes registered (bearer token %s)", "on" if bearer_token else "off")
