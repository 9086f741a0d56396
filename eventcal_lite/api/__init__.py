"""aiohttp API layer for eventcal_lite."""
