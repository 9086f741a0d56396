"""Exception hierarchy for eventcal_lite.

Every error raised by the store, the resolver, the service and the API layer
derives from ``EventCalError`` so callers can handle the whole family in one
place. Recurrence expansion itself never raises: malformed recurrence fields
degrade to a default stepping rule instead.
"""


class EventCalError(Exception):
    """Base exception for all eventcal_lite errors."""

    status_code = 500


class StorageUnavailableError(EventCalError):
    """The event store could not be read or written.

    Raised when:
    - The backing file cannot be opened, parsed or replaced
    - A store implementation reports a backend failure

    Fatal to the request; not retried by the resolver.
    Should result in HTTP 503 Service Unavailable response.
    """

    status_code = 503


class InvalidWindowError(EventCalError):
    """Query window is unusable.

    Raised when:
    - window_start is after window_end
    - a bound cannot be parsed

    Should result in HTTP 400 Bad Request response.
    """

    status_code = 400


class EventValidationError(EventCalError):
    """Event payload failed validation.

    Raised when:
    - Required fields are missing or have the wrong type
    - end_date precedes start_date
    - An update tries to change id or user_id

    Should result in HTTP 400 Bad Request response.
    """

    status_code = 400


class EventNotFoundError(EventCalError):
    """No live event exists with the requested id.

    Soft-deleted events are reported as not found.
    Should result in HTTP 404 Not Found response.
    """

    status_code = 404


class EventAccessDeniedError(EventCalError):
    """Event exists but belongs to another user.

    Should result in HTTP 403 Forbidden response.
    """

    status_code = 403


class AuthenticationError(EventCalError):
    """Caller identity is missing or the bearer token is invalid.

    Should result in HTTP 401 Unauthorized response.
    """

    status_code = 401
