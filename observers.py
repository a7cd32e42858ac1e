from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from notifications import NotificationService

logger = logging.getLogger(__name__)


class BookObserver(ABC):
    """Receives library events such as a newly added book."""

    @abstractmethod
    def update(self, message: str) -> None:
        ...


class UserObserver(BookObserver):
    """A library user who wants to hear about new books."""

    def __init__(self, user_id: str, notifier: NotificationService) -> None:
        self.user_id = user_id
        self.notifier = notifier

    def update(self, message: str) -> None:
        self.notifier.send(self.user_id, message)

    def __repr__(self) -> str:  # pragma: no cover
        return f"UserObserver({self.user_id!r})"


class LoggingObserver(BookObserver):
    def update(self, message: str) -> None:
        logger.info(f"Library event: {message}")
