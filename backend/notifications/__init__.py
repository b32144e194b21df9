"""
In-app notification system for inspection reports.

This module handles:
- Deciding per recipient whether email/push may fire (preferences, quiet hours)
- Fanning events out into per-recipient notification rows
- Queueing notification emails according to each recipient's email frequency
- Streaming new notifications to live sessions and caching them per session
- Sending due queued emails via Resend
"""

from .delivery_rules import decide_delivery, is_quiet_hours, should_email, should_push
from .dispatcher import NotificationDispatcher, build_dispatcher
from .email_scheduler import EmailQueueScheduler, calculate_scheduled_time
from .client_cache import CacheState, NotificationCache, build_notification_cache
from .live_channel import LiveDeliveryChannel, NoopSubscription, Subscription

__all__ = [
    "decide_delivery",
    "is_quiet_hours",
    "should_email",
    "should_push",
    "NotificationDispatcher",
    "build_dispatcher",
    "EmailQueueScheduler",
    "calculate_scheduled_time",
    "CacheState",
    "NotificationCache",
    "build_notification_cache",
    "LiveDeliveryChannel",
    "NoopSubscription",
    "Subscription",
]
