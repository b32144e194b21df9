"""
Delivery decisions for a single recipient.

Pure functions over NotificationPreferences: whether a notification type may
be emailed or pushed, and whether the recipient is inside quiet hours. No I/O.
"""

from dataclasses import dataclass
from datetime import datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from models.preferences import NotificationPreferences, default_preferences
from models.types import NOTIFICATION_TYPES

# Event type -> (email field, push field) on NotificationPreferences.
# user_mention has no stored preference columns, so it is never emailed/pushed.
PREFERENCE_FIELDS: dict[str, tuple[str, str]] = {
    "inspection_assigned": ("inspection_assigned_email", "inspection_assigned_push"),
    "inspection_completed": ("inspection_completed_email", "inspection_completed_push"),
    "inspection_reviewed": ("inspection_reviewed_email", "inspection_reviewed_push"),
    "status_changed": ("status_changed_email", "status_changed_push"),
    "urgent_alert": ("urgent_alert_email", "urgent_alert_push"),
    "system_announcement": ("system_announcement_email", "system_announcement_push"),
}


def validate_preference_fields() -> None:
    """Check PREFERENCE_FIELDS against the type enum and preference schema.

    Raises:
        ValueError: If a mapped type is not a known notification type or a
            mapped field does not exist on NotificationPreferences
    """
    known_fields = NotificationPreferences.model_fields
    for notification_type, fields in PREFERENCE_FIELDS.items():
        if notification_type not in NOTIFICATION_TYPES:
            raise ValueError(f"Unknown notification type in preference map: {notification_type}")
        for field in fields:
            if field not in known_fields:
                raise ValueError(f"Preference field {field} does not exist")


validate_preference_fields()


@dataclass(frozen=True)
class DeliveryDecision:
    """Which channels may fire for one recipient of one notification."""

    email: bool
    push: bool
    quiet_hours: bool


def _resolve(prefs: NotificationPreferences | None) -> NotificationPreferences:
    return prefs if prefs is not None else default_preferences()


def should_email(prefs: NotificationPreferences | None, notification_type: str) -> bool:
    """Master email switch AND the per-type email switch."""
    prefs = _resolve(prefs)
    fields = PREFERENCE_FIELDS.get(notification_type)
    if fields is None:
        return False
    return bool(prefs.email_enabled and getattr(prefs, fields[0]))


def should_push(prefs: NotificationPreferences | None, notification_type: str) -> bool:
    """Master push switch AND the per-type push switch."""
    prefs = _resolve(prefs)
    fields = PREFERENCE_FIELDS.get(notification_type)
    if fields is None:
        return False
    return bool(prefs.push_enabled and getattr(prefs, fields[1]))


def resolve_timezone(name: str | None) -> ZoneInfo:
    """ZoneInfo for ``name``, falling back to UTC for blank or unknown names."""
    if not name:
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def parse_time_of_day(value: str | None) -> time | None:
    """Parse 'HH:MM' or 'HH:MM:SS'. Returns None for anything else."""
    if not value:
        return None
    try:
        return time.fromisoformat(value)
    except ValueError:
        return None


def _local_time(prefs: NotificationPreferences, now: datetime | time | None) -> time:
    if isinstance(now, time):
        return now
    if now is None:
        return datetime.now(resolve_timezone(prefs.timezone)).time()
    if now.tzinfo is not None:
        now = now.astimezone(resolve_timezone(prefs.timezone))
    return now.time()


def is_quiet_hours(
    prefs: NotificationPreferences | None, now: datetime | time | None = None
) -> bool:
    """
    Check whether ``now`` falls inside the recipient's quiet hours.

    The window is half-open, [start, end). When start is later than end the
    window wraps midnight: 22:00-08:00 is quiet from 22:00 through 07:59.
    An empty window (start == end) or unparseable bounds are never quiet.

    Args:
        prefs: Recipient preferences (defaults apply when None)
        now: Aware datetime (converted to the recipient's timezone), naive
            datetime or time (taken as already local). Defaults to current time.
    """
    prefs = _resolve(prefs)
    start = parse_time_of_day(prefs.quiet_hours_start)
    end = parse_time_of_day(prefs.quiet_hours_end)
    if start is None or end is None or start == end:
        return False

    current = _local_time(prefs, now)
    if start < end:
        return start <= current < end
    return current >= start or current < end


def decide_delivery(
    prefs: NotificationPreferences | None,
    notification_type: str,
    now: datetime | None = None,
) -> DeliveryDecision:
    """Combine the channel switches with quiet hours for one recipient.

    Quiet hours only hold back push; email scheduling is governed by the
    recipient's email frequency instead.
    """
    quiet = is_quiet_hours(prefs, now)
    return DeliveryDecision(
        email=should_email(prefs, notification_type),
        push=should_push(prefs, notification_type) and not quiet,
        quiet_hours=quiet,
    )
