"""Tracking query exports."""

from .service import StopLookup, TrackingService, TrackingSnapshot

__all__ = ["StopLookup", "TrackingService", "TrackingSnapshot"]
