"""
Email queue scheduling for notifications.

Renders the email for a notification and inserts one notification_queue row
whose scheduled_for follows the recipient's email frequency. Sending is done
separately by process_email_queue.
"""

from datetime import datetime, time, timedelta

from models.notification import Notification, QueuedEmail
from models.preferences import NotificationPreferences
from models.types import NotificationID
from notifications.delivery_rules import resolve_timezone, should_email
from notifications.email_content import build_body, build_subject
from notifications.error_logger import log_notification_error
from notifications.preference_store import PreferenceStore
from notifications.repository import (
    EmailQueueRepository,
    NotificationRepository,
    UserDirectory,
)
from shared.db import is_ignorable_backend_error
from shared.utils import utc_now

DIGEST_SEND_TIME = time(9, 0)


def calculate_scheduled_time(
    prefs: NotificationPreferences | None, now: datetime | None = None
) -> datetime:
    """
    When a queued email should go out.

    immediate -> now; hourly -> now + 1h; daily -> tomorrow at 09:00 and
    weekly -> in 7 days at 09:00, both on the recipient's local calendar.

    Args:
        prefs: Recipient preferences (None sends immediately)
        now: Current time. Naive values are taken as recipient-local.

    Returns:
        Timezone-aware datetime, never earlier than ``now``
    """
    tz = resolve_timezone(prefs.timezone if prefs else None)
    if now is None:
        now = utc_now()
    elif now.tzinfo is None:
        now = now.replace(tzinfo=tz)

    frequency = prefs.email_frequency if prefs else "immediate"

    if frequency == "hourly":
        return now + timedelta(hours=1)

    if frequency in ("daily", "weekly"):
        days = 1 if frequency == "daily" else 7
        local_date = now.astimezone(tz).date() + timedelta(days=days)
        return datetime.combine(local_date, DIGEST_SEND_TIME, tzinfo=tz)

    return now


class EmailQueueScheduler:
    """Decides whether a notification is emailed and queues it."""

    def __init__(
        self,
        notifications: NotificationRepository,
        preferences: PreferenceStore,
        users: UserDirectory,
        queue: EmailQueueRepository,
    ) -> None:
        self._notifications = notifications
        self._preferences = preferences
        self._users = users
        self._queue = queue

    def queue_email_notification(self, notification_id: NotificationID) -> bool:
        """
        Queue the email for a stored notification if the recipient wants it.

        Safe to call repeatedly: disabled types are a no-op and a notification
        that already has a queued email is skipped. Never raises.

        Returns:
            True if a notification_queue row was inserted
        """
        try:
            notification = self._notifications.get(notification_id)
        except Exception as e:
            self._report(e, {"notification_id": notification_id})
            return False

        if notification is None:
            print(f"  ⚠ Notification {notification_id} not found, no email queued")
            return False

        prefs = self._preferences.get_or_default(notification.recipient_id)
        return self.schedule(notification, prefs)

    def schedule(
        self,
        notification: Notification,
        prefs: NotificationPreferences,
        now: datetime | None = None,
    ) -> bool:
        """Queue the email for an already-loaded notification. Never raises."""
        if not should_email(prefs, notification.type):
            return False

        try:
            if self._queue.exists_for_notification(notification.id):
                return False

            recipient = self._users.get(notification.recipient_id)
            if recipient is None or not recipient.email:
                print(
                    f"  ⚠ No email address for user {notification.recipient_id}, skipping email"
                )
                return False

            now = now or utc_now()
            self._queue.insert(
                QueuedEmail(
                    notification_id=notification.id,
                    email_address=recipient.email,
                    subject=build_subject(notification),
                    body=build_body(notification, recipient),
                    scheduled_for=calculate_scheduled_time(prefs, now),
                )
            )
            return True

        except Exception as e:
            self._report(
                e,
                {
                    "notification_id": notification.id,
                    "recipient_id": notification.recipient_id,
                    "type": notification.type,
                },
            )
            return False

    @staticmethod
    def _report(error: Exception, context: dict[str, str]) -> None:
        if is_ignorable_backend_error(error):
            return
        error_file = log_notification_error(
            error_type="queuing", error_message=str(error), context=context
        )
        print(f"  ⚠️  Error queueing email notification. Details logged to: {error_file}")
