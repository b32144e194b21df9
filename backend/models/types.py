"""Shared type definitions for type checking.

Uses NewType for IDs to provide compile-time type safety - prevents mixing
different ID types (e.g., passing UserID where NotificationID expected).

Uses Literal/TypeAlias for the enumerations stored as text columns.
"""

from typing import Literal, NewType, TypeAlias, get_args

# ID types using NewType for type safety
NotificationID = NewType("NotificationID", str)
UserID = NewType("UserID", str)

NotificationType: TypeAlias = Literal[
    "inspection_assigned",
    "inspection_completed",
    "inspection_reviewed",
    "status_changed",
    "urgent_alert",
    "system_announcement",
    "user_mention",
]
NotificationPriority: TypeAlias = Literal["low", "medium", "high", "urgent"]
EmailFrequency: TypeAlias = Literal["immediate", "hourly", "daily", "weekly"]
QueueStatus: TypeAlias = Literal["pending", "sent", "failed"]

NOTIFICATION_TYPES: tuple[str, ...] = get_args(NotificationType)
NOTIFICATION_PRIORITIES: tuple[str, ...] = get_args(NotificationPriority)
EMAIL_FREQUENCIES: tuple[str, ...] = get_args(EmailFrequency)

# Priorities that raise an in-session alert when delivered live
ALERT_PRIORITIES = frozenset({"high", "urgent"})

TimeOfDay: TypeAlias = str  # HH:MM or HH:MM:SS, recipient-local
TimezoneName: TypeAlias = str  # IANA name, e.g. America/Chicago
