"""
Supabase-backed access to the notifications, notification_queue and users
tables.

Methods raise whatever the Supabase client raises; callers decide whether a
failure is per-item, logged, or ignorable.
"""

from datetime import datetime
from typing import Any, cast

from supabase import Client

from models.notification import (
    Notification,
    NotificationCreate,
    QueuedEmail,
    UserProfile,
)
from models.types import NotificationID, UserID
from shared.utils import utc_now

NOTIFICATIONS_TABLE = "notifications"
EMAIL_QUEUE_TABLE = "notification_queue"
USERS_TABLE = "users"


class NotificationRepository:
    """Persisted notification records."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def insert(self, notification: NotificationCreate) -> Notification:
        response = (
            self._client.table(NOTIFICATIONS_TABLE)
            .insert(notification.to_row())
            .execute()
        )
        if not response.data:
            raise RuntimeError(
                f"Insert returned no row for recipient {notification.recipient_id}"
            )
        return Notification.model_validate(response.data[0])

    def get(self, notification_id: NotificationID) -> Notification | None:
        response = (
            self._client.table(NOTIFICATIONS_TABLE)
            .select("*")
            .eq("id", notification_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return Notification.model_validate(response.data[0])

    def list_for_recipient(
        self, user_id: UserID, limit: int = 50, offset: int = 0
    ) -> list[Notification]:
        """Newest first, one page."""
        response = (
            self._client.table(NOTIFICATIONS_TABLE)
            .select("*")
            .eq("recipient_id", user_id)
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        return [Notification.model_validate(row) for row in response.data or []]

    def count_unread(self, user_id: UserID) -> int:
        response = (
            self._client.table(NOTIFICATIONS_TABLE)
            .select("id", count="exact", head=True)
            .eq("recipient_id", user_id)
            .is_("read_at", "null")
            .is_("dismissed_at", "null")
            .execute()
        )
        return response.count or 0

    def mark_as_read(self, notification_id: NotificationID) -> Notification | None:
        """Returns the updated row, or None if it was already read or is missing."""
        # Filtered on read_at IS NULL so the first read time is kept
        now = utc_now().isoformat()
        response = (
            self._client.table(NOTIFICATIONS_TABLE)
            .update({"read_at": now, "updated_at": now})
            .eq("id", notification_id)
            .is_("read_at", "null")
            .execute()
        )
        return _first_notification(response.data)

    def mark_all_as_read(self, user_id: UserID) -> None:
        now = utc_now().isoformat()
        (
            self._client.table(NOTIFICATIONS_TABLE)
            .update({"read_at": now, "updated_at": now})
            .eq("recipient_id", user_id)
            .is_("read_at", "null")
            .execute()
        )

    def dismiss(self, notification_id: NotificationID) -> Notification | None:
        """Returns the updated row, or None if it was already dismissed or is missing."""
        now = utc_now().isoformat()
        response = (
            self._client.table(NOTIFICATIONS_TABLE)
            .update({"dismissed_at": now, "updated_at": now})
            .eq("id", notification_id)
            .is_("dismissed_at", "null")
            .execute()
        )
        return _first_notification(response.data)


def _first_notification(rows: Any) -> Notification | None:
    if not rows:
        return None
    return Notification.model_validate(rows[0])


class EmailQueueRepository:
    """Rendered emails waiting for the mailer."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def insert(self, email: QueuedEmail) -> None:
        row = email.model_dump(
            mode="json",
            include={
                "notification_id",
                "email_address",
                "subject",
                "body",
                "scheduled_for",
                "status",
            },
        )
        self._client.table(EMAIL_QUEUE_TABLE).insert(row, returning="minimal").execute()

    def exists_for_notification(self, notification_id: NotificationID) -> bool:
        response = (
            self._client.table(EMAIL_QUEUE_TABLE)
            .select("id")
            .eq("notification_id", notification_id)
            .limit(1)
            .execute()
        )
        return bool(response.data)

    def list_due(self, now: datetime | None = None, limit: int = 100) -> list[QueuedEmail]:
        """Pending emails whose scheduled_for has passed, oldest first."""
        now = now or utc_now()
        response = (
            self._client.table(EMAIL_QUEUE_TABLE)
            .select("*")
            .eq("status", "pending")
            .lte("scheduled_for", now.isoformat())
            .order("scheduled_for", desc=False)
            .limit(limit)
            .execute()
        )
        return [QueuedEmail.model_validate(row) for row in response.data or []]

    def mark_sent(self, email_id: int, resend_email_id: str | None = None) -> None:
        (
            self._client.table(EMAIL_QUEUE_TABLE)
            .update(
                {
                    "status": "sent",
                    "sent_at": utc_now().isoformat(),
                    "resend_email_id": resend_email_id,
                }
            )
            .eq("id", email_id)
            .execute()
        )

    def mark_failed(self, email_id: int, error_message: str) -> None:
        (
            self._client.table(EMAIL_QUEUE_TABLE)
            .update({"status": "failed", "error_message": error_message})
            .eq("id", email_id)
            .execute()
        )


class UserDirectory:
    """Read-only lookups against the users table."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def get(self, user_id: UserID) -> UserProfile | None:
        response = (
            self._client.table(USERS_TABLE)
            .select("id, email, full_name, role")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return UserProfile.model_validate(cast(dict[str, Any], response.data[0]))

    def is_admin(self, user_id: UserID) -> bool:
        profile = self.get(user_id)
        return profile is not None and profile.role == "admin"
