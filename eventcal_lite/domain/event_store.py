"""Event template storage for eventcal_lite.

``EventStore`` is the boundary the resolver and service depend on. Two
implementations ship with the package:

- ``InMemoryEventStore``: process-local dict, used by tests and ephemeral servers.
- ``JsonEventStore``: the same, persisted to a JSON file with atomic writes.

Deletes are soft: the template keeps its row with ``deleted_at`` set and is
hidden from every read.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
import threading
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol

from pydantic import ValidationError

from eventcal_lite.calendar.lite_models import EventTemplate
from eventcal_lite.core.datetime_utils import as_naive_utc
from eventcal_lite.core.exceptions import StorageUnavailableError

from .candidate_selector import CandidateQuery

logger = logging.getLogger(__name__)


class EventStore(Protocol):
    """Storage collaborator for event templates."""

    async def create(self, template: EventTemplate) -> EventTemplate:
        """Persist a new template and return it."""
        ...

    async def get(self, event_id: str) -> Optional[EventTemplate]:
        """Return the live template with ``event_id`` or None."""
        ...

    async def update(self, template: EventTemplate) -> EventTemplate:
        """Replace the stored template with the same id."""
        ...

    async def delete(self, event_id: str, deleted_at: datetime) -> bool:
        """Soft-delete a template; return False if it was not live."""
        ...

    async def find_candidates(self, query: CandidateQuery) -> list[EventTemplate]:
        """Return the candidate set for ``query`` ordered by start_date."""
        ...


class InMemoryEventStore:
    """Thread-safe in-process event store."""

    def __init__(self, templates: Optional[Iterable[EventTemplate]] = None) -> None:
        self._lock = threading.Lock()
        self._templates: dict[str, EventTemplate] = {}
        for template in templates or ():
            self._templates[template.id] = template

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for t in self._templates.values() if not t.is_deleted)

    async def create(self, template: EventTemplate) -> EventTemplate:
        with self._lock:
            if template.id in self._templates:
                raise ValueError(f"event {template.id} already exists")
            self._templates[template.id] = template
            try:
                self._persist()
            except StorageUnavailableError:
                del self._templates[template.id]
                raise
        logger.debug("Created event %s for user %s", template.id, template.user_id)
        return template

    async def get(self, event_id: str) -> Optional[EventTemplate]:
        with self._lock:
            template = self._templates.get(event_id)
        if template is None or template.is_deleted:
            return None
        return template

    async def update(self, template: EventTemplate) -> EventTemplate:
        with self._lock:
            previous = self._templates.get(template.id)
            if previous is None or previous.is_deleted:
                raise KeyError(template.id)
            self._templates[template.id] = template
            try:
                self._persist()
            except StorageUnavailableError:
                self._templates[template.id] = previous
                raise
        logger.debug("Updated event %s", template.id)
        return template

    async def delete(self, event_id: str, deleted_at: datetime) -> bool:
        with self._lock:
            previous = self._templates.get(event_id)
            if previous is None or previous.is_deleted:
                return False
            self._templates[event_id] = previous.model_copy(
                update={"deleted_at": as_naive_utc(deleted_at)}
            )
            try:
                self._persist()
            except StorageUnavailableError:
                self._templates[event_id] = previous
                raise
        logger.debug("Soft-deleted event %s", event_id)
        return True

    async def find_candidates(self, query: CandidateQuery) -> list[EventTemplate]:
        with self._lock:
            candidates = [t for t in self._templates.values() if query.matches(t)]
        candidates.sort(key=lambda t: t.start_date)
        logger.debug(
            "Candidate fetch for user %s: %d templates (%d recurring)",
            query.user_id,
            len(candidates),
            sum(1 for t in candidates if t.is_recurring),
        )
        return candidates

    def _persist(self) -> None:
        """Hook for durable subclasses. Called with the lock held."""


class JsonEventStore(InMemoryEventStore):
    """Event store persisted as a JSON object mapping event id -> template.

    Every mutation rewrites the file atomically (temporary file in the same
    directory, then replace). Read or write failures raise
    ``StorageUnavailableError`` and leave the in-memory state unchanged.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        super().__init__()
        self._path = Path(path)
        self.load()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> None:
        """Load templates from disk, replacing the in-memory state.

        A missing file is an empty store.
        """
        with self._lock:
            if not self._path.exists():
                logger.debug("Event store file not found; starting empty: %s", self._path)
                self._templates = {}
                return

            try:
                with self._path.open("r", encoding="utf-8") as fh:
                    data = json.load(fh)
                if not isinstance(data, dict):
                    raise ValueError("event store JSON root must be an object")  # noqa: TRY004
                templates = {k: EventTemplate.model_validate(v) for k, v in data.items()}
            except (OSError, ValueError, ValidationError) as exc:
                logger.error("Failed to read event store %s: %s", self._path, exc)
                raise StorageUnavailableError(f"Cannot read event store {self._path}") from exc

            self._templates = templates
            logger.debug("Loaded event store %s (%d templates)", self._path, len(templates))

    def _persist(self) -> None:
        data = {k: t.model_dump(mode="json") for k, t in self._templates.items()}

        tmp_path = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", dir=self._path.parent, delete=False, encoding="utf-8"
            ) as tf:
                tmp_path = Path(tf.name)
                json.dump(data, tf, ensure_ascii=False)
                tf.flush()
                with contextlib.suppress(OSError):
                    os.fsync(tf.fileno())
            tmp_path.replace(self._path)
        except OSError as exc:
            logger.warning("Failed to persist event store to %s: %s", self._path, exc)
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    tmp_path.unlink()
            raise StorageUnavailableError(f"Cannot write event store {self._path}") from exc
