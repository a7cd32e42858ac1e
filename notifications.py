"""Notification delivery for the library registry.

The registry only depends on the NotificationService capability, so the
delivery mechanism can be swapped without touching the registry:
- console output (rich)
- the logging system
- an in-memory outbox
- an HTTP webhook (httpx)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import httpx
from rich.console import Console
from rich.markup import escape

from config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class ExternalServiceError(Exception):
    pass


class NotificationService(ABC):
    """Sends a text message to a user identifier."""

    @abstractmethod
    def send(self, user_id: str, message: str) -> None:
        ...


class ConsoleNotificationService(NotificationService):
    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def send(self, user_id: str, message: str) -> None:
        self.console.print(f"[bold cyan]Sending notification to {escape(user_id)}:[/] {escape(message)}")


class LoggingNotificationService(NotificationService):
    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level

    def send(self, user_id: str, message: str) -> None:
        logger.log(self.level, f"Notification to {user_id}: {message}")


class InMemoryNotificationService(NotificationService):
    """Collects messages instead of delivering them."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str]] = []

    def send(self, user_id: str, message: str) -> None:
        self.sent.append((user_id, message))

    def messages_for(self, user_id: str) -> List[str]:
        return [message for uid, message in self.sent if uid == user_id]

    def clear(self) -> None:
        self.sent.clear()


class WebhookNotificationService(NotificationService):
    """Posts each notification as JSON to an HTTP endpoint."""

    def __init__(self, url: str, timeout: float = 10.0) -> None:
        if not url:
            raise ValueError("Webhook URL cannot be empty.")
        self.url = url
        self.timeout = timeout

    def send(self, user_id: str, message: str) -> None:
        payload = {"user_id": user_id, "message": message}
        try:
            resp = httpx.post(self.url, json=payload, timeout=self.timeout)
        except httpx.RequestError as exc:
            logger.error(f"Webhook request failed: {exc}")
            raise ExternalServiceError("Notification webhook unreachable") from exc

        if resp.status_code < 200 or resp.status_code >= 300:
            logger.error(f"Webhook rejected notification: {resp.status_code}")
            raise ExternalServiceError(f"Notification webhook returned {resp.status_code}")


def build_notification_service(config: Optional[Settings] = None) -> NotificationService:
    """Create the notification service selected by the settings."""
    config = config or default_settings
    backend = (config.notification_backend or "").lower().strip()

    if backend == "console":
        return ConsoleNotificationService()
    if backend == "log":
        return LoggingNotificationService()
    if backend == "memory":
        return InMemoryNotificationService()
    if backend == "webhook":
        if not config.notification_webhook_url:
            raise ValueError("NOTIFICATION_WEBHOOK_URL must be set for the webhook backend.")
        return WebhookNotificationService(config.notification_webhook_url, timeout=config.notification_timeout)
    raise ValueError(f"Unsupported notification backend: {config.notification_backend}")
