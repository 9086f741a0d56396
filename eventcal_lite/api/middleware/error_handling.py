"""Error middleware mapping the eventcal_lite exception hierarchy to JSON responses."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from aiohttp import web

from eventcal_lite.core.datetime_utils import now_utc
from eventcal_lite.core.exceptions import EventCalError

logger = logging.getLogger(__name__)


def json_envelope(
    status: int, message: str, data: Any = None, errors: list[str] | None = None
) -> web.Response:
    """Build the uniform response body.

    Success responses carry ``data``; error responses carry ``error`` with a
    timestamp and the list of error messages.
    """
    body: dict[str, Any] = {"status": status, "message": message}
    if status < 400:
        body["data"] = data
    else:
        body["error"] = {"timestamp": now_utc().isoformat(), "errors": errors or [message]}
    return web.json_response(body, status=status)


@web.middleware
async def error_middleware(
    request: web.Request, handler: Callable[[web.Request], Any]
) -> web.StreamResponse:
    """Convert domain errors into enveloped JSON error responses."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except EventCalError as exc:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, exc)
        else:
            logger.info("%s %s rejected (%d): %s", request.method, request.path, exc.status_code, exc)
        return json_envelope(exc.status_code, str(exc))
    except Exception:
        logger.exception("Unhandled error for %s %s", request.method, request.path)
        return json_envelope(500, "Internal Server Error")
