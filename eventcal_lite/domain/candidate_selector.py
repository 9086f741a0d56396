"""Broad-phase candidate selection for occurrence queries.

Defines which stored templates must be fetched to answer "which occurrences
fall inside this window" for one user:

1. One-off templates whose own ``[start_date, end_date]`` overlaps the window.
2. Every recurring template of the user, whatever its own dates. A series
   that started long before the window can still have occurrences inside it,
   so precision is left to recurrence expansion.

Stores either translate ``CandidateQuery`` into their own query language or,
for in-process stores, filter with ``CandidateQuery.matches``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from eventcal_lite.calendar.lite_models import EventTemplate


def overlaps(
    start: datetime, end: datetime, window_start: datetime, window_end: datetime
) -> bool:
    """Inclusive overlap test between an event span and a window.

    True when the event starts in the window, ends in the window, or spans
    the whole window.
    """
    return (
        (window_start <= start <= window_end)
        or (window_start <= end <= window_end)
        or (start <= window_start and end >= window_end)
    )


@dataclass(frozen=True)
class CandidateQuery:
    """Description of the fetch needed for one user's window query."""

    user_id: str
    window_start: datetime
    window_end: datetime

    def matches(self, template: EventTemplate) -> bool:
        """Return True if ``template`` belongs in the candidate set.

        Soft-deleted templates never match.
        """
        if template.user_id != self.user_id or template.is_deleted:
            return False
        if template.is_recurring:
            return True
        return overlaps(template.start_date, template.end_date, self.window_start, self.window_end)
