"""Health endpoints."""

from __future__ import annotations

import os

from fastapi import APIRouter, Depends, status

from ...services.registry import ServiceRegistry
from ..dependencies import get_services

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/storage", status_code=status.HTTP_200_OK)
def health_storage(services: ServiceRegistry = Depends(get_services)) -> dict:
    """Report where collections live and how many records each holds."""
    repository = services.repository
    root = repository.storage.root
    book = repository.load_route_book()
    return {
        "data_root": str(root),
        "writable": root.is_dir() and os.access(root, os.W_OK),
        "drivers": len(book.drivers),
        "routes": len(book.routes),
        "stops": sum(len(route.stops) for route in book.routes),
        "live_positions": len(repository.load_positions()),
        "notifications": len(repository.load_notifications()),
        "proof_records": len(repository.load_proof_records()),
    }
