"""Factory functions for creating test notification data."""

import uuid
from datetime import datetime, timezone
from typing import Any

from models.notification import Notification, NotificationCreate


def create_test_notification_row(
    notification_id: str | None = None,
    recipient_id: str = "user-1",
    sender_id: str | None = None,
    notification_type: str = "inspection_completed",
    priority: str = "medium",
    title: str = "Inspection completed",
    message: str = "The inspection at 123 Main St was completed.",
    data: dict[str, Any] | None = None,
    created_at: str | None = None,
    read_at: str | None = None,
    dismissed_at: str | None = None,
    **overrides,
) -> dict[str, Any]:
    """Factory for a notifications table row."""
    created = created_at or datetime.now(timezone.utc).isoformat()
    row = {
        "id": notification_id or str(uuid.uuid4()),
        "recipient_id": recipient_id,
        "sender_id": sender_id,
        "type": notification_type,
        "priority": priority,
        "title": title,
        "message": message,
        "data": data or {},
        "created_at": created,
        "updated_at": created,
        "read_at": read_at,
        "dismissed_at": dismissed_at,
    }
    row.update(overrides)
    return row


def create_test_notification(**kwargs) -> Notification:
    """Factory for a validated Notification model."""
    return Notification.model_validate(create_test_notification_row(**kwargs))


def create_test_notification_create(
    recipient_id: str = "user-1",
    notification_type: str = "inspection_completed",
    priority: str = "medium",
    title: str = "Inspection completed",
    message: str = "The inspection at 123 Main St was completed.",
    sender_id: str | None = "admin-1",
    data: dict[str, Any] | None = None,
) -> NotificationCreate:
    """Factory for a single-recipient insert."""
    return NotificationCreate(
        recipient_id=recipient_id,
        sender_id=sender_id,
        type=notification_type,
        priority=priority,
        title=title,
        message=message,
        data=data or {},
    )


def create_test_queued_email_row(
    queue_id: int = 1,
    notification_id: str | None = None,
    email_address: str = "inspector@example.com",
    subject: str = "[Caltor Inspections] Inspection completed",
    body: str = "<html><body>Inspection completed</body></html>",
    scheduled_for: str = "2024-01-01T09:00:00+00:00",
    status: str = "pending",
    **overrides,
) -> dict[str, Any]:
    """Factory for a notification_queue row."""
    row = {
        "id": queue_id,
        "notification_id": notification_id or str(uuid.uuid4()),
        "email_address": email_address,
        "subject": subject,
        "body": body,
        "scheduled_for": scheduled_for,
        "status": status,
    }
    row.update(overrides)
    return row
