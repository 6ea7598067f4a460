"""Notification templates, channels and dispatcher exports."""

from .channels import LoggingChannel, NotificationChannel, WebhookChannel, get_channel
from .dispatcher import NotificationDispatcher
from .templates import build_templates, build_tracking_url

__all__ = [
    "LoggingChannel",
    "NotificationChannel",
    "NotificationDispatcher",
    "WebhookChannel",
    "build_templates",
    "build_tracking_url",
    "get_channel",
]
