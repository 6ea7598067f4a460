"""Outbound channels used to hand rendered notifications to a provider."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod

import httpx

from ...config import Settings, settings as default_settings
from ...models.domain import TemplateSet

logger = logging.getLogger(__name__)


class NotificationChannel(ABC):
    """Contract for send integrations (SMS gateway, email provider, ...)."""

    name: str = "abstract"

    @abstractmethod
    def send(self, templates: TemplateSet, destination: str) -> bool:
        """Deliver the rendered templates; return True when the provider accepted them."""
        raise NotImplementedError


class LoggingChannel(NotificationChannel):
    """Default channel: logs what would be sent and never contacts anyone."""

    name = "log"

    def send(self, templates: TemplateSet, destination: str) -> bool:
        template = templates.patient or templates.facility or templates.admin
        subject = template.subject if template else "(empty)"
        logger.info(f"Notification for {destination} not sent (logging channel): {subject}")
        return True


class WebhookChannel(NotificationChannel):
    """POST rendered templates as JSON to an HTTP endpoint, retrying with backoff."""

    name = "webhook"

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.url = url or default_settings.notification_webhook_url
        if not self.url:
            raise ValueError("Notification webhook URL is not configured.")
        self.timeout = timeout if timeout is not None else default_settings.notification_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else default_settings.notification_max_retries
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else default_settings.notification_backoff_seconds
        )
        self._client = client

    def _get_client(self) -> httpx.Client:
        return self._client or httpx.Client(timeout=httpx.Timeout(self.timeout, connect=5.0))

    def send(self, templates: TemplateSet, destination: str) -> bool:
        payload = {"destination": destination, "templates": templates.to_record()}
        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.post(self.url, json=payload)
                    response.raise_for_status()
                    logger.info(f"Notification for {destination} accepted by {self.url}")
                    return True
                except httpx.HTTPStatusError as e:
                    # 4xx responses will not succeed on retry
                    if e.response.status_code < 500:
                        logger.error(f"Webhook rejected notification for {destination}: {e}")
                        return False
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.error(f"Webhook failed after {self.max_retries} retries: {e}")
                        return False
                    time.sleep(self.backoff_seconds * attempt)
                except httpx.HTTPError as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.error(f"Webhook unreachable after {self.max_retries} retries: {e}")
                        return False
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(
                        f"Webhook network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}"
                    )
                    time.sleep(wait_time)
        finally:
            if self._client is None:
                client.close()


def get_channel(name: str, config: Settings | None = None) -> NotificationChannel:
    config = config or default_settings
    match name:
        case "log":
            return LoggingChannel()
        case "webhook":
            return WebhookChannel(
                url=config.notification_webhook_url,
                timeout=config.notification_timeout_seconds,
                max_retries=config.notification_max_retries,
                backoff_seconds=config.notification_backoff_seconds,
            )
        case _:
            raise ValueError(f"Unknown notification channel '{name}'.")
