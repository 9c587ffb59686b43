"""Notification dispatcher factory."""

from ordering.notifications.fake_dispatcher import FakeNotificationDispatcher
from ordering.notifications.port import NotificationDispatcher

_current_dispatcher: NotificationDispatcher | None = None


def get_dispatcher() -> NotificationDispatcher:
    """Return the active dispatcher. Defaults to FakeNotificationDispatcher."""
    global _current_dispatcher
    if _current_dispatcher is None:
        _current_dispatcher = FakeNotificationDispatcher()
    return _current_dispatcher


def set_dispatcher(dispatcher: NotificationDispatcher) -> None:
    global _current_dispatcher
    _current_dispatcher = dispatcher


def reset_dispatcher() -> None:
    global _current_dispatcher
    _current_dispatcher = None
