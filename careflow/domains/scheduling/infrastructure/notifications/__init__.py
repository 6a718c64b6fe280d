"""
Scheduling Notifications
"""

from .notification_service import (
    NOTIFIED_EVENTS,
    LoggingNotificationService,
    WebhookNotificationService,
    register_notification_handlers,
)

__all__ = [
    "LoggingNotificationService",
    "NOTIFIED_EVENTS",
    "WebhookNotificationService",
    "register_notification_handlers",
]
