"""Wiring of the repository and services shared by the API layer."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..config import Settings, settings as default_settings
from ..persistence.filesystem import FileStorage
from ..persistence.repository import DeliveryRepository
from .audit import AuditLog
from .lifecycle import StopLifecycleManager
from .notifications import NotificationChannel, NotificationDispatcher
from .tracking import TrackingService


@dataclass
class ServiceRegistry:
    config: Settings
    repository: DeliveryRepository
    dispatcher: NotificationDispatcher
    lifecycle: StopLifecycleManager
    tracking: TrackingService
    audit: AuditLog

    @classmethod
    def build(
        cls,
        config: Settings | None = None,
        *,
        data_root: Path | None = None,
        channel: NotificationChannel | None = None,
    ) -> "ServiceRegistry":
        config = config or default_settings
        repository = DeliveryRepository(FileStorage(root=data_root or config.data_root))
        dispatcher = NotificationDispatcher(repository, channel=channel, config=config)
        return cls(
            config=config,
            repository=repository,
            dispatcher=dispatcher,
            lifecycle=StopLifecycleManager(repository, dispatcher, config=config),
            tracking=TrackingService(repository, config=config),
            audit=AuditLog(repository),
        )
