"""Occurrence resolution: answer "which occurrences fall in this window" for a user.

The resolver fetches the broad-phase candidate set from the store, expands
each template independently, and merges the results. Store errors propagate
unchanged and no partial result is ever returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from eventcal_lite.calendar.lite_models import Occurrence
from eventcal_lite.calendar.occurrence_generator import ExpansionConfig, generate_occurrences
from eventcal_lite.core.datetime_utils import as_naive_utc
from eventcal_lite.core.exceptions import InvalidWindowError

from .candidate_selector import CandidateQuery
from .event_store import EventStore

logger = logging.getLogger(__name__)


@dataclass
class ResolverConfig:
    """Configuration for occurrence resolution.

    Attributes:
        expansion: Per-template expansion limits
        sort_globally: Stable-sort the merged result by occurrence start. When
            False, results keep candidate order with each template's
            occurrences contiguous and chronological.
    """

    expansion: ExpansionConfig = field(default_factory=ExpansionConfig)
    sort_globally: bool = True

    @classmethod
    def from_settings(cls, settings: Any) -> ResolverConfig:
        if isinstance(settings, dict):
            sort_globally = settings.get("sort_globally", True)
        else:
            sort_globally = getattr(settings, "sort_globally", True)
        return cls(
            expansion=ExpansionConfig.from_settings(settings),
            sort_globally=bool(sort_globally),
        )


def validate_window(window_start: datetime, window_end: datetime) -> tuple[datetime, datetime]:
    """Bring the window into the stored-instant zone and check its order.

    Returns:
        ``(window_start, window_end)`` as naive UTC instants.

    Raises:
        InvalidWindowError: If the start is after the end.
    """
    window_start, window_end = as_naive_utc(window_start), as_naive_utc(window_end)
    if window_start > window_end:
        raise InvalidWindowError(
            f"window start {window_start.isoformat()} is after window end {window_end.isoformat()}"
        )
    return window_start, window_end


class OccurrenceResolver:
    """Resolves a user's event occurrences for a window."""

    def __init__(self, store: EventStore, config: Optional[ResolverConfig] = None) -> None:
        self.store = store
        self.config = config or ResolverConfig()

    async def resolve(
        self, user_id: str, window_start: datetime, window_end: datetime
    ) -> list[Occurrence]:
        """Return every occurrence of ``user_id``'s events inside the window.

        Args:
            user_id: Owner of the events
            window_start: Inclusive window start
            window_end: Inclusive window end

        Returns:
            Occurrences sorted by start (stable across equal starts), or in
            candidate order when ``sort_globally`` is disabled.

        Raises:
            InvalidWindowError: If the window is inverted
            StorageUnavailableError: If the candidate fetch fails
        """
        window_start, window_end = validate_window(window_start, window_end)

        query = CandidateQuery(user_id=user_id, window_start=window_start, window_end=window_end)
        candidates = await self.store.find_candidates(query)
        logger.debug(
            "Resolving window %s..%s for user %s: %d candidate templates",
            window_start.isoformat(),
            window_end.isoformat(),
            user_id,
            len(candidates),
        )

        occurrences: list[Occurrence] = []
        for template in candidates:
            occurrences.extend(
                generate_occurrences(template, window_start, window_end, self.config.expansion)
            )

        if self.config.sort_globally:
            occurrences.sort(key=lambda o: o.start_date)

        logger.debug("Resolved %d occurrences for user %s", len(occurrences), user_id)
        return occurrences
