"""Core infrastructure for eventcal_lite: configuration, errors and time helpers."""
