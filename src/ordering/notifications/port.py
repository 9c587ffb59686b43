"""Notification dispatcher port — fire-and-forget customer messages."""

from abc import ABC, abstractmethod


class NotificationDispatcher(ABC):
    @abstractmethod
    def dispatch(self, user_id: str, kind: str, title: str, body: str, data: dict | None = None) -> None:
        """Hand a message to the delivery channel. Must not block on delivery."""
        ...
