"""Pydantic models for data validation and type checking."""

from models.notification import (
    CreateNotificationsRequest,
    Notification,
    NotificationCreate,
    NotificationEvent,
    QueuedEmail,
    UserProfile,
)
from models.preferences import NotificationPreferences, default_preferences

__all__ = [
    "CreateNotificationsRequest",
    "Notification",
    "NotificationCreate",
    "NotificationEvent",
    "NotificationPreferences",
    "QueuedEmail",
    "UserProfile",
    "default_preferences",
]
