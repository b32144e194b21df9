"""
Realtime delivery of newly inserted notifications to one session.

Wraps a Supabase realtime channel filtered on recipient_id. Only inserts made
after subscribing are delivered; history comes from NotificationRepository.
"""

from typing import Any, Callable

from pydantic import ValidationError
from realtime import AsyncRealtimeClient

from models.notification import Notification
from models.types import UserID
from notifications.error_logger import log_notification_error
from notifications.repository import NOTIFICATIONS_TABLE
from shared.db import is_ignorable_backend_error

InsertCallback = Callable[[Notification], None]


def extract_record(payload: dict[str, Any]) -> dict[str, Any] | None:
    """Pull the inserted row out of a postgres_changes payload."""
    data = payload.get("data", payload)
    if not isinstance(data, dict):
        return None
    record = data.get("record") or data.get("new")
    return record if isinstance(record, dict) else None


class Subscription:
    """Handle for one live subscription.

    unsubscribe() is idempotent and no callback runs once it has been called.
    """

    def __init__(
        self,
        user_id: UserID,
        on_insert: InsertCallback,
        client: AsyncRealtimeClient | None = None,
        channel: Any = None,
    ) -> None:
        self.user_id = user_id
        self._on_insert = on_insert
        self._client = client
        self._channel = channel
        self._active = channel is not None

    @property
    def active(self) -> bool:
        return self._active

    def handle_payload(self, payload: dict[str, Any]) -> None:
        if not self._active:
            return

        record = extract_record(payload)
        if record is None:
            return
        try:
            notification = Notification.model_validate(record)
        except ValidationError as e:
            log_notification_error(
                error_type="realtime",
                error_message=f"Malformed notification payload: {e}",
                context={"user_id": self.user_id, "record": record},
            )
            return

        # The channel filter should guarantee this already
        if notification.recipient_id != self.user_id:
            return
        self._on_insert(notification)

    async def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False

        try:
            await self._client.remove_channel(self._channel)
        except Exception as e:
            if not is_ignorable_backend_error(e):
                log_notification_error(
                    error_type="realtime",
                    error_message=f"Error removing channel: {e}",
                    context={"user_id": self.user_id},
                )


class NoopSubscription(Subscription):
    """Returned when live updates are unavailable."""

    def __init__(self, user_id: UserID | None = None) -> None:
        super().__init__(user_id or UserID(""), lambda notification: None)

    async def unsubscribe(self) -> None:
        return None


class LiveDeliveryChannel:
    """Subscribes sessions to their own notification inserts."""

    def __init__(self, client: AsyncRealtimeClient | None) -> None:
        self._client = client

    async def set_auth(self, access_token: str | None) -> bool:
        """
        Send the session's JWT to the realtime server.

        Row level security on notifications filters postgres_changes by the
        token's user, so without it the channel joins but delivers nothing.
        Never raises; returns False when the token could not be applied.
        """
        if self._client is None or not access_token:
            return False
        try:
            await self._client.set_auth(access_token)
            return True
        except Exception as e:
            if not is_ignorable_backend_error(e):
                log_notification_error(
                    error_type="realtime",
                    error_message=f"Error setting realtime auth: {e}",
                )
            return False

    async def subscribe(
        self, user_id: UserID, on_insert: InsertCallback, access_token: str | None = None
    ) -> Subscription:
        """
        Start streaming inserts for ``user_id`` to ``on_insert``.

        ``access_token`` is the signed-in session's JWT; it is applied before
        joining the channel.

        Never raises: when the realtime transport is missing or fails to
        subscribe, a NoopSubscription is returned instead.
        """
        if self._client is None or not user_id:
            return NoopSubscription(user_id)

        await self.set_auth(access_token)

        subscription = None
        try:
            channel = self._client.channel(f"{NOTIFICATIONS_TABLE}:{user_id}")
            subscription = Subscription(user_id, on_insert, self._client, channel)
            channel.on_postgres_changes(
                "INSERT",
                callback=subscription.handle_payload,
                table=NOTIFICATIONS_TABLE,
                schema="public",
                filter=f"recipient_id=eq.{user_id}",
            )
            await channel.subscribe()
            return subscription
        except Exception as e:
            if subscription is not None:
                subscription._active = False
            if not is_ignorable_backend_error(e):
                error_file = log_notification_error(
                    error_type="realtime",
                    error_message=f"Error subscribing to notifications: {e}",
                    context={"user_id": user_id},
                )
                print(f"  ⚠️  Live notifications unavailable. Details logged to: {error_file}")
            return NoopSubscription(user_id)
