"""Event operations for one owning user: CRUD plus window queries."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import ValidationError

from eventcal_lite.calendar.lite_models import EventTemplate, Occurrence
from eventcal_lite.core.datetime_utils import now_utc
from eventcal_lite.core.exceptions import (
    EventAccessDeniedError,
    EventNotFoundError,
    EventValidationError,
)

from .event_store import EventStore
from .occurrence_resolver import OccurrenceResolver

logger = logging.getLogger(__name__)

# Fields managed by the service; ignored in create payloads
_SERVER_MANAGED_FIELDS = frozenset({"created_at", "updated_at", "deleted_at"})
# Fields an update may restate but never change
_IMMUTABLE_FIELDS = ("id", "user_id")


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "event"
        parts.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)


class EventService:
    """Ownership-checked event operations backed by an ``EventStore``."""

    def __init__(self, store: EventStore, resolver: Optional[OccurrenceResolver] = None) -> None:
        self.store = store
        self.resolver = resolver or OccurrenceResolver(store)

    async def create_event(self, user_id: str, data: dict[str, Any]) -> EventTemplate:
        """Create a template owned by ``user_id``.

        Any ``id`` or ``user_id`` in ``data`` is ignored.

        Raises:
            EventValidationError: If the payload does not form a valid template
            StorageUnavailableError: If the store cannot persist it
        """
        payload = {
            k: v
            for k, v in data.items()
            if k not in _SERVER_MANAGED_FIELDS and k not in _IMMUTABLE_FIELDS
        }
        now = now_utc()
        payload.update(id=uuid.uuid4().hex, user_id=user_id, created_at=now, updated_at=now)
        try:
            template = EventTemplate.model_validate(payload)
        except ValidationError as exc:
            raise EventValidationError(_validation_message(exc)) from exc

        created = await self.store.create(template)
        logger.info("Created event %s for user %s", created.id, user_id)
        return created

    async def get_event(self, user_id: str, event_id: str) -> EventTemplate:
        """Return the template if it exists and belongs to ``user_id``.

        Raises:
            EventNotFoundError: If there is no live template with this id
            EventAccessDeniedError: If it belongs to another user
        """
        template = await self.store.get(event_id)
        if template is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        if template.user_id != user_id:
            logger.warning("User %s denied access to event %s", user_id, event_id)
            raise EventAccessDeniedError("Access denied")
        return template

    async def update_event(
        self, user_id: str, event_id: str, changes: dict[str, Any]
    ) -> EventTemplate:
        """Apply a partial update and return the stored template.

        Raises:
            EventValidationError: If changes alter id/user_id or break validation
            EventNotFoundError: If the template is missing or was deleted meanwhile
            EventAccessDeniedError: If it belongs to another user
        """
        current = await self.get_event(user_id, event_id)

        for key in _IMMUTABLE_FIELDS:
            if key in changes and changes[key] != getattr(current, key):
                raise EventValidationError(f"{key} cannot be changed")

        merged = current.model_dump()
        merged.update({k: v for k, v in changes.items() if k not in _SERVER_MANAGED_FIELDS})
        merged["updated_at"] = now_utc()
        try:
            updated = EventTemplate.model_validate(merged)
        except ValidationError as exc:
            raise EventValidationError(_validation_message(exc)) from exc

        try:
            stored = await self.store.update(updated)
        except KeyError as exc:
            raise EventNotFoundError(f"Event {event_id} not found") from exc
        logger.info("Updated event %s", event_id)
        return stored

    async def delete_event(self, user_id: str, event_id: str) -> None:
        """Soft-delete the template.

        Raises:
            EventNotFoundError: If there is no live template with this id
            EventAccessDeniedError: If it belongs to another user
        """
        await self.get_event(user_id, event_id)
        if not await self.store.delete(event_id, now_utc()):
            raise EventNotFoundError(f"Event {event_id} not found")
        logger.info("Deleted event %s", event_id)

    async def get_events_for_user(
        self, user_id: str, window_start: datetime, window_end: datetime
    ) -> list[Occurrence]:
        """Return the user's occurrences inside ``[window_start, window_end]``."""
        logger.info(
            "Fetching events for user %s between %s and %s",
            user_id,
            window_start.isoformat(),
            window_end.isoformat(),
        )
        occurrences = await self.resolver.resolve(user_id, window_start, window_end)
        logger.info("Returning %d occurrences for user %s", len(occurrences), user_id)
        return occurrences
