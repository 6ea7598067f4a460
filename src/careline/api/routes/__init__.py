"""Route group exports."""

from . import audit, driver, health, notifications, routes, stops, tracking

__all__ = ["audit", "driver", "health", "notifications", "routes", "stops", "tracking"]
