"""
Notification Dispatcher
Hands booking events to the external delivery service (email, push)
Delivery is best-effort: failures are logged and never reach the caller
"""

import logging
from datetime import date, datetime
from typing import Any, Optional

import httpx
from fastapi import BackgroundTasks, Depends

from ..config import NOTIFICATION_TIMEOUT_SECONDS, NOTIFICATION_WEBHOOK_URL

logger = logging.getLogger(__name__)

BOOKING_CREATED = "booking_created"
BOOKING_STATUS_CHANGED = "booking_status_changed"
BOOKING_RESCHEDULED = "booking_rescheduled"
GROUP_SESSION_SCHEDULED = "group_session_scheduled"
SESSION_REMINDER = "session_reminder"


def _json_safe(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


class NotificationDispatcher:
    """Interface for the external notification collaborator"""

    def notify(self, recipient_id: int, event_type: str, payload: dict) -> bool:
        """
        Dispatch one event.

        Returns:
            True when the event was handed off, False when delivery failed
        """
        try:
            self.deliver(recipient_id, event_type, _json_safe(payload))
            logger.info(f"✅ {event_type} notification dispatched to account {recipient_id}")
            return True
        except Exception as e:
            logger.error(f"❌ Failed to dispatch {event_type} notification to {recipient_id}: {e}")
            return False

    def deliver(self, recipient_id: int, event_type: str, payload: dict) -> None:
        raise NotImplementedError


class LoggingNotificationDispatcher(NotificationDispatcher):
    """Used when no delivery webhook is configured"""

    def deliver(self, recipient_id: int, event_type: str, payload: dict) -> None:
        logger.info(f"📭 No notification webhook configured; {event_type} for {recipient_id}: {payload}")


class WebhookNotificationDispatcher(NotificationDispatcher):
    """POSTs events as JSON to the delivery service"""

    def __init__(self, url: str, timeout: float = NOTIFICATION_TIMEOUT_SECONDS):
        self.url = url
        self.timeout = timeout

    def deliver(self, recipient_id: int, event_type: str, payload: dict) -> None:
        body = {"recipientId": recipient_id, "eventType": event_type, "payload": payload}
        with httpx.Client(timeout=self.timeout) as client:
            response = client.post(self.url, json=body)
        if response.status_code >= 400:
            raise RuntimeError(f"HTTP {response.status_code}: {response.text[:200]}")


_dispatcher: Optional[NotificationDispatcher] = None


def get_notification_dispatcher() -> NotificationDispatcher:
    """Dependency injection for the notification dispatcher"""
    global _dispatcher
    if _dispatcher is None:
        if NOTIFICATION_WEBHOOK_URL:
            _dispatcher = WebhookNotificationDispatcher(NOTIFICATION_WEBHOOK_URL)
        else:
            _dispatcher = LoggingNotificationDispatcher()
    return _dispatcher


class BackgroundNotificationDispatcher(NotificationDispatcher):
    """
    Defers delivery to FastAPI background tasks, which run after the response is
    sent. ``notify`` only queues the event, so it always reports a hand-off.
    """

    def __init__(self, background_tasks: BackgroundTasks, dispatcher: NotificationDispatcher):
        self.background_tasks = background_tasks
        self.dispatcher = dispatcher

    def notify(self, recipient_id: int, event_type: str, payload: dict) -> bool:
        self.background_tasks.add_task(self.dispatcher.notify, recipient_id, event_type, payload)
        logger.debug(f"📨 {event_type} notification for {recipient_id} queued")
        return True


def get_request_notifier(
    background_tasks: BackgroundTasks,
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> NotificationDispatcher:
    """Dispatcher for request handlers: delivery never holds up the response"""
    return BackgroundNotificationDispatcher(background_tasks, dispatcher)
