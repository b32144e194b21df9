"""
Per-session view of a user's notifications.

Loads the newest page and the unread count once, then stays current from the
live channel and from the session's own read/dismiss calls. Local updates are
optimistic: the remote write happens afterwards and a failure is only logged.
Backend trouble never raises to the caller; the cache just shows nothing.

All methods are meant to run on the session's event loop.
"""

import asyncio
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from models.notification import Notification
from models.types import ALERT_PRIORITIES, NotificationID, UserID
from notifications.auth_context import AuthContext, AuthSubscription, SupabaseAuthContext
from notifications.error_logger import log_notification_error
from notifications.live_channel import LiveDeliveryChannel, NoopSubscription, Subscription
from notifications.repository import NotificationRepository
from shared.db import (
    get_realtime_client,
    get_supabase_client,
    is_ignorable_backend_error,
)
from shared.utils import utc_now

AlertCallback = Callable[[Notification], None]

# Early reads and dismissals kept per session while their insert is pending
MAX_PENDING_MUTATIONS = 100


class CacheState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    DISABLED = "disabled"


class NotificationCache:
    """
    State machine: UNINITIALIZED -> LOADING -> READY, or -> DISABLED.

    DISABLED is final for the session (backend not configured, nobody signed
    in, sign-out, or close()). A failed initial load still ends in READY with
    an empty list.
    """

    def __init__(
        self,
        repository: NotificationRepository | None,
        live_channel: LiveDeliveryChannel,
        auth: AuthContext | None,
        configured: bool = True,
        on_alert: AlertCallback | None = None,
        page_size: int = 50,
    ) -> None:
        self._repository = repository
        self._live_channel = live_channel
        self._auth = auth
        self._configured = configured
        self._on_alert = on_alert
        self._page_size = page_size

        self._state = CacheState.UNINITIALIZED
        self._user_id: UserID | None = None
        self._items: list[Notification] = []
        self._unread_count = 0
        self._pending_inserts: list[Notification] = []
        # Mutations that arrived before the matching insert, oldest first
        self._early_reads: dict[NotificationID, datetime] = {}
        self._early_dismissals: dict[NotificationID, None] = {}
        # created_at of the oldest loaded row when older rows were left unpaged
        self._page_floor: datetime | None = None
        self._load_generation = 0

        self._subscription: Subscription = NoopSubscription()
        self._auth_subscription: AuthSubscription | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def user_id(self) -> UserID | None:
        return self._user_id

    @property
    def notifications(self) -> list[Notification]:
        """Newest first."""
        return list(self._items)

    @property
    def unread_count(self) -> int:
        return self._unread_count

    async def start(self) -> CacheState:
        """Resolve the user, subscribe to live inserts and load the first page."""
        if self._state is not CacheState.UNINITIALIZED:
            return self._state

        self._loop = asyncio.get_running_loop()

        if not self._configured or self._repository is None or self._auth is None:
            print("⚠ Notifications backend is not configured. Notification cache disabled.")
            self._disable()
            return self._state

        user_id = await asyncio.to_thread(self._auth.get_current_user_id)
        if not user_id:
            self._disable()
            return self._state

        self._user_id = user_id
        self._state = CacheState.LOADING

        # Subscribe before loading so nothing inserted during the load is lost
        access_token = await asyncio.to_thread(self._auth.get_access_token)
        self._subscription = await self._live_channel.subscribe(
            user_id, self._handle_insert, access_token=access_token
        )
        self._auth_subscription = self._auth.on_auth_state_change(self._handle_auth_change)

        await self._load()
        return self._state

    async def refresh(self) -> None:
        """Reload from the database; the server copy replaces local state."""
        if self._state is not CacheState.READY:
            return
        self._state = CacheState.LOADING
        await self._load()

    async def mark_as_read(self, notification_id: NotificationID) -> None:
        if self._state is not CacheState.READY:
            return

        now = utc_now()
        index = self._find(notification_id)
        if index is None:
            _remember(self._early_reads, notification_id, now)
        else:
            item = self._items[index]
            if item.read_at is None:
                if item.is_unread:
                    self._unread_count = max(0, self._unread_count - 1)
                self._items[index] = item.model_copy(update={"read_at": now})

        generation = self._load_generation
        updated = await self._remote("markAsRead", self._repository.mark_as_read, notification_id)
        if index is None and self._is_unpaged(updated, generation):
            self._early_reads.pop(notification_id, None)
            if updated.dismissed_at is None:
                self._unread_count = max(0, self._unread_count - 1)

    async def mark_all_as_read(self) -> None:
        if self._state is not CacheState.READY:
            return

        now = utc_now()
        self._items = [
            item if item.read_at is not None else item.model_copy(update={"read_at": now})
            for item in self._items
        ]
        self._unread_count = 0

        await self._remote("markAllAsRead", self._repository.mark_all_as_read, self._user_id)

    async def dismiss_notification(self, notification_id: NotificationID) -> None:
        if self._state is not CacheState.READY:
            return

        index = self._find(notification_id)
        if index is None:
            _remember(self._early_dismissals, notification_id, None)
        else:
            item = self._items.pop(index)
            if item.is_unread:
                self._unread_count = max(0, self._unread_count - 1)

        generation = self._load_generation
        updated = await self._remote("dismissNotification", self._repository.dismiss, notification_id)
        if index is None and self._is_unpaged(updated, generation):
            self._early_dismissals.pop(notification_id, None)
            if updated.read_at is None:
                self._unread_count = max(0, self._unread_count - 1)

    async def close(self) -> None:
        """Tear down the session: stop live updates and forget everything."""
        self._disable()
        await self._release()

    async def _load(self) -> None:
        # Count first: a row committed during the count is then on the page,
        # so its buffered insert is dropped as a duplicate instead of counted twice
        try:
            unread_count = await asyncio.to_thread(self._repository.count_unread, self._user_id)
            items = await asyncio.to_thread(
                self._repository.list_for_recipient, self._user_id, self._page_size
            )
        except Exception as e:
            self._report("loadNotifications", e)
            items, unread_count = [], 0

        if self._state is not CacheState.LOADING:
            # Signed out or closed while loading
            return

        page_unread = sum(1 for item in items if item.is_unread)
        if len(items) < self._page_size:
            # Whole history is on the page
            unread_count = page_unread
            self._page_floor = None
        else:
            unread_count = max(unread_count, page_unread)
            self._page_floor = items[-1].created_at

        self._items = list(items)
        self._unread_count = unread_count
        self._early_reads.clear()
        self._early_dismissals.clear()
        self._load_generation += 1
        self._state = CacheState.READY

        pending, self._pending_inserts = self._pending_inserts, []
        for notification in reversed(pending):
            self._apply_insert(notification)

    def _is_unpaged(self, notification: Notification | None, generation: int) -> bool:
        """True for a row older than the loaded page, counted but never shown."""
        return (
            notification is not None
            and self._state is CacheState.READY
            and generation == self._load_generation
            and self._page_floor is not None
            and notification.created_at <= self._page_floor
            and self._find(notification.id) is None
        )

    def _handle_insert(self, notification: Notification) -> None:
        if self._state is CacheState.LOADING:
            self._pending_inserts.insert(0, notification)
        elif self._state is CacheState.READY:
            self._apply_insert(notification)

    def _apply_insert(self, notification: Notification) -> None:
        if self._find(notification.id) is not None:
            return
        if notification.id in self._early_dismissals:
            del self._early_dismissals[notification.id]
            return
        early_read = self._early_reads.pop(notification.id, None)
        if early_read is not None and notification.read_at is None:
            notification = notification.model_copy(update={"read_at": early_read})

        self._items.insert(0, notification)
        if notification.is_unread:
            self._unread_count += 1

        # Fires regardless of quiet hours
        if self._on_alert and notification.priority in ALERT_PRIORITIES:
            try:
                self._on_alert(notification)
            except Exception as e:
                self._report("alert", e)

    def _handle_auth_change(self, user_id: UserID | None) -> None:
        """May be called from the auth client's thread."""
        if self._loop is None or self._loop.is_closed():
            if user_id is None or user_id != self._user_id:
                self._disable()
            return
        if user_id is not None and user_id == self._user_id:
            # Token refresh for the same user
            self._loop.call_soon_threadsafe(self._on_token_refreshed)
            return
        self._loop.call_soon_threadsafe(self._on_signed_out)

    def _on_token_refreshed(self) -> None:
        if self._state is CacheState.DISABLED:
            return
        asyncio.ensure_future(self._refresh_live_auth())

    async def _refresh_live_auth(self) -> None:
        access_token = await asyncio.to_thread(self._auth.get_access_token)
        await self._live_channel.set_auth(access_token)

    def _on_signed_out(self) -> None:
        self._disable()
        asyncio.ensure_future(self._release())

    def _disable(self) -> None:
        self._state = CacheState.DISABLED
        self._items = []
        self._unread_count = 0
        self._pending_inserts = []
        self._early_reads.clear()
        self._early_dismissals.clear()
        self._page_floor = None

    async def _release(self) -> None:
        subscription, self._subscription = self._subscription, NoopSubscription()
        await subscription.unsubscribe()

        auth_subscription, self._auth_subscription = self._auth_subscription, None
        if auth_subscription is not None:
            try:
                auth_subscription.unsubscribe()
            except Exception as e:
                self._report("authUnsubscribe", e)

    def _find(self, notification_id: NotificationID) -> int | None:
        for index, item in enumerate(self._items):
            if item.id == notification_id:
                return index
        return None

    async def _remote(self, operation: str, func: Callable, *args) -> Any:
        try:
            return await asyncio.to_thread(func, *args)
        except Exception as e:
            # Optimistic update stays; the next refresh reconciles
            self._report(operation, e)
            return None

    def _report(self, operation: str, error: Exception) -> None:
        if is_ignorable_backend_error(error):
            return
        error_file = log_notification_error(
            error_type="cache",
            error_message=f"Error in {operation}: {error}",
            context={"user_id": self._user_id, "operation": operation},
        )
        print(f"  ⚠️  Error in {operation}. Details logged to: {error_file}")


def _remember(tombstones: dict, notification_id: NotificationID, value: Any) -> None:
    """Keep the first mutation per id, evicting the oldest past the cap."""
    if notification_id in tombstones:
        return
    tombstones[notification_id] = value
    while len(tombstones) > MAX_PENDING_MUTATIONS:
        del tombstones[next(iter(tombstones))]


def build_notification_cache(
    on_alert: AlertCallback | None = None, key_var: str = "SUPABASE_ANON_KEY"
) -> NotificationCache:
    """Wire a cache for one session from environment configuration."""
    try:
        client = get_supabase_client(key_var)
    except Exception as e:
        if not is_ignorable_backend_error(e):
            print(f"⚠ Supabase client unavailable: {e}")
        return NotificationCache(
            None, LiveDeliveryChannel(None), None, configured=False, on_alert=on_alert
        )

    try:
        realtime = get_realtime_client(key_var)
    except Exception as e:
        print(f"⚠ Live notifications unavailable: {e}")
        realtime = None

    return NotificationCache(
        NotificationRepository(client),
        LiveDeliveryChannel(realtime),
        SupabaseAuthContext(client),
        on_alert=on_alert,
    )
