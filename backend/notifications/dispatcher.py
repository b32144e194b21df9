"""
Fan-out of notification events into per-recipient notification rows.

Each row is inserted on its own so one bad recipient cannot block the rest
of the batch, and each successful insert is followed by email queueing.
"""

from datetime import datetime
from typing import Any, Sequence

from supabase import Client

from models.notification import Notification, NotificationCreate, NotificationEvent
from models.preferences import NotificationPreferences
from models.types import UserID
from notifications.delivery_rules import decide_delivery
from notifications.email_scheduler import EmailQueueScheduler
from notifications.error_logger import log_notification_error
from notifications.preference_store import PreferenceStore
from notifications.repository import (
    EmailQueueRepository,
    NotificationRepository,
    UserDirectory,
)
from shared.db import get_supabase_client
from shared.utils import utc_now


class NotificationDispatcher:
    """Creates notification rows and schedules their emails."""

    def __init__(
        self,
        notifications: NotificationRepository,
        preferences: PreferenceStore,
        scheduler: EmailQueueScheduler,
    ) -> None:
        self._notifications = notifications
        self._preferences = preferences
        self._scheduler = scheduler

    def dispatch_event(self, event: NotificationEvent) -> list[Notification]:
        """Fan an event out to all of its recipients."""
        return self.create_bulk_notifications(event.expand())

    def create_notification(self, item: NotificationCreate) -> Notification | None:
        """Single-recipient form of create_bulk_notifications."""
        created = self.create_bulk_notifications([item])
        return created[0] if created else None

    def create_bulk_notifications(
        self, items: Sequence[NotificationCreate], now: datetime | None = None
    ) -> list[Notification]:
        """
        Insert one notification per item and queue its email.

        Failures are per item: the rest of the batch is still attempted, and
        an email queueing failure never undoes the notification insert. Not
        idempotent; calling twice with the same items creates duplicate rows.

        Args:
            items: One entry per recipient
            now: Reference time for quiet-hours decisions (defaults to now)

        Returns:
            The successfully created notifications in input order. Compare its
            length with len(items) to detect partial failure.
        """
        if not items:
            return []

        now = now or utc_now()
        created: list[Notification] = []
        failures: list[dict[str, Any]] = []
        prefs_by_recipient: dict[UserID, NotificationPreferences] = {}
        stats = {"emails_queued": 0, "push_eligible": 0, "quiet_hours": 0}

        for item in items:
            try:
                notification = self._notifications.insert(item)
            except Exception as e:
                failures.append({"recipient_id": item.recipient_id, "error": str(e)})
                print(f"  ⚠ Could not create notification for user {item.recipient_id}: {e}")
                continue

            created.append(notification)

            if item.recipient_id not in prefs_by_recipient:
                prefs_by_recipient[item.recipient_id] = self._preferences.get_or_default(
                    item.recipient_id
                )
            prefs = prefs_by_recipient[item.recipient_id]

            decision = decide_delivery(prefs, notification.type, now)
            if decision.push:
                stats["push_eligible"] += 1
            if decision.quiet_hours:
                stats["quiet_hours"] += 1
            if decision.email and self._scheduler.schedule(notification, prefs, now):
                stats["emails_queued"] += 1

        if failures:
            error_file = log_notification_error(
                error_type="fanout",
                error_message=f"Failed to create {len(failures)} of {len(items)} notification(s)",
                context={
                    "type": items[0].type,
                    "title": items[0].title,
                    "failures": failures,
                },
            )
            print(f"  ⚠️  Partial fan-out failure. Details logged to: {error_file}")

        print(
            f"  ✓ Created {len(created)}/{len(items)} notification(s), "
            f"{stats['emails_queued']} email(s) queued, "
            f"{stats['push_eligible']} push-eligible, "
            f"{stats['quiet_hours']} in quiet hours"
        )
        return created


def build_dispatcher(client: Client | None = None) -> NotificationDispatcher:
    """Wire a dispatcher against the process-wide service-role client."""
    client = client or get_supabase_client()
    notifications = NotificationRepository(client)
    preferences = PreferenceStore(client)
    scheduler = EmailQueueScheduler(
        notifications=notifications,
        preferences=preferences,
        users=UserDirectory(client),
        queue=EmailQueueRepository(client),
    )
    return NotificationDispatcher(notifications, preferences, scheduler)
