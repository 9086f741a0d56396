"""Route registration modules for eventcal_lite."""

from .event_routes import register_event_routes

__all__ = ["register_event_routes"]
