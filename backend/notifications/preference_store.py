"""
Per-user notification preferences stored in the notification_preferences
table. Records are created lazily; a missing or unreadable record behaves as
the documented defaults.
"""

from typing import Any

from pydantic import ValidationError
from supabase import Client

from models.preferences import NotificationPreferences, default_preferences
from models.types import UserID
from notifications.error_logger import log_notification_error
from shared.db import is_ignorable_backend_error
from shared.utils import utc_now

PREFERENCES_TABLE = "notification_preferences"


class PreferenceStore:
    """Read and upsert NotificationPreferences."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def get(self, user_id: UserID) -> NotificationPreferences | None:
        """Stored preferences, or None when the user has no record."""
        response = (
            self._client.table(PREFERENCES_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return NotificationPreferences.model_validate(response.data[0])

    def get_or_default(self, user_id: UserID) -> NotificationPreferences:
        """Stored preferences, falling back to defaults on a miss or error."""
        try:
            prefs = self.get(user_id)
        except ValidationError as e:
            log_notification_error(
                error_type="preferences",
                error_message=f"Stored preferences are malformed: {e}",
                context={"user_id": user_id},
            )
            prefs = None
        except Exception as e:
            if not is_ignorable_backend_error(e):
                log_notification_error(
                    error_type="preferences",
                    error_message=str(e),
                    context={"user_id": user_id},
                )
            prefs = None

        return prefs if prefs is not None else default_preferences(user_id)

    def update(
        self, user_id: UserID, changes: dict[str, Any]
    ) -> NotificationPreferences | None:
        """
        Apply ``changes`` on top of the current (or default) preferences and
        upsert the result.

        Returns:
            The saved preferences, or None if reading or writing the record
            failed (the failure is logged)

        Raises:
            ValueError: If a change names an unknown field
            pydantic.ValidationError: If a change has the wrong type or format
        """
        try:
            current = self.get(user_id) or default_preferences(user_id)
        except Exception as e:
            self._report("Error reading preferences before update", e, user_id)
            return None

        merged = current.model_copy()
        for field, value in changes.items():
            if field in ("id", "user_id", "updated_at"):
                continue
            if field not in NotificationPreferences.model_fields:
                raise ValueError(f"Unknown preference field: {field}")
            setattr(merged, field, value)

        row = merged.to_row()
        row["user_id"] = user_id
        row["updated_at"] = utc_now().isoformat()
        try:
            self._client.table(PREFERENCES_TABLE).upsert(
                row, on_conflict="user_id"
            ).execute()
        except Exception as e:
            self._report("Error saving preferences", e, user_id)
            return None
        return merged

    def disable_email(self, user_id: UserID) -> NotificationPreferences | None:
        return self.update(user_id, {"email_enabled": False})

    def _report(self, message: str, error: Exception, user_id: UserID) -> None:
        if is_ignorable_backend_error(error):
            return
        error_file = log_notification_error(
            error_type="preferences",
            error_message=f"{message}: {error}",
            context={"user_id": user_id},
        )
        print(f"  ⚠️  {message}. Details logged to: {error_file}")
