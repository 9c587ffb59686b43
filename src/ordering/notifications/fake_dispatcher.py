"""Recording notification dispatcher for development and testing."""

import structlog

from ordering.notifications.port import NotificationDispatcher

logger = structlog.get_logger(__name__)


class FakeNotificationDispatcher(NotificationDispatcher):
    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.should_fail: bool = False

    def dispatch(self, user_id: str, kind: str, title: str, body: str, data: dict | None = None) -> None:
        if self.should_fail:
            raise ConnectionError("Notification channel unavailable")
        message = {"user_id": user_id, "kind": kind, "title": title, "body": body, "data": data or {}}
        self.sent.append(message)
        logger.debug("Notification recorded", user_id=user_id, kind=kind)
