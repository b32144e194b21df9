"""Pydantic model for per-user notification preferences."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from models.types import EmailFrequency, TimeOfDay, TimezoneName, UserID

TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$"


class NotificationPreferences(BaseModel):
    """One preference record per user, created lazily on first update.

    Field defaults are the documented default preference set used whenever
    a user has no stored record.
    """

    model_config = ConfigDict(validate_assignment=True, extra="ignore")

    id: str | None = None
    user_id: UserID | None = None

    email_enabled: bool = True
    push_enabled: bool = True

    inspection_assigned_email: bool = True
    inspection_assigned_push: bool = True
    inspection_completed_email: bool = True
    inspection_completed_push: bool = True
    inspection_reviewed_email: bool = False
    inspection_reviewed_push: bool = True
    status_changed_email: bool = True
    status_changed_push: bool = True
    urgent_alert_email: bool = True
    urgent_alert_push: bool = True
    system_announcement_email: bool = True
    system_announcement_push: bool = True

    email_frequency: EmailFrequency = "immediate"
    quiet_hours_start: TimeOfDay = Field("22:00", pattern=TIME_OF_DAY_PATTERN)
    quiet_hours_end: TimeOfDay = Field("08:00", pattern=TIME_OF_DAY_PATTERN)
    timezone: TimezoneName = "UTC"

    updated_at: datetime | None = None

    def to_row(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude={"id", "updated_at"})


def default_preferences(user_id: UserID | None = None) -> NotificationPreferences:
    """Documented default preference set."""
    return NotificationPreferences(user_id=user_id)
