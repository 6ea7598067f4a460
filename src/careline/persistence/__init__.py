"""Persistence layer exports."""

from .filesystem import FileStorage
from .repository import DeliveryRepository, RouteBook

__all__ = ["FileStorage", "DeliveryRepository", "RouteBook"]
