"""
Entry point for privileged callers (admin actions) that create notifications
for a list of recipients.
"""

from typing import Any

from pydantic import ValidationError

from models.notification import CreateNotificationsRequest
from models.types import UserID
from notifications.dispatcher import NotificationDispatcher, build_dispatcher
from notifications.error_logger import log_notification_error
from notifications.repository import UserDirectory
from shared.db import get_supabase_client, is_ignorable_backend_error, is_supabase_configured


class NotificationApiError(Exception):
    """Base class for rejected create-notifications calls."""


class NotificationRequestError(NotificationApiError):
    """The create-notifications payload is malformed."""


class NotificationPermissionError(NotificationApiError):
    """The caller is not allowed to create notifications."""


class NotificationBackendError(NotificationApiError):
    """The notifications backend is not configured or unreachable."""


def _describe_validation_error(error: ValidationError) -> str:
    fields = {str(err["loc"][0]) for err in error.errors() if err.get("loc")}
    if "recipientIds" in fields or "recipient_ids" in fields:
        return "Recipient IDs are required"
    if fields & {"type", "title", "message"}:
        return "Type, title, and message are required"
    return str(error)


def _connect(
    dispatcher: NotificationDispatcher | None, users: UserDirectory | None
) -> tuple[NotificationDispatcher, UserDirectory]:
    if dispatcher is not None and users is not None:
        return dispatcher, users

    if not is_supabase_configured():
        raise NotificationBackendError("Notifications backend is not configured")
    try:
        client = get_supabase_client()
    except Exception as e:
        if not is_ignorable_backend_error(e):
            log_notification_error(
                error_type="api",
                error_message=f"Could not create Supabase client: {e}",
            )
        raise NotificationBackendError("Notifications backend is unavailable") from e

    return dispatcher or build_dispatcher(client), users or UserDirectory(client)


def create_notifications_for_recipients(
    caller_id: UserID | None,
    payload: dict[str, Any],
    dispatcher: NotificationDispatcher | None = None,
    users: UserDirectory | None = None,
) -> dict[str, Any]:
    """
    Create one notification per recipient on behalf of an admin.

    Args:
        caller_id: Authenticated user making the request (None if signed out)
        payload: {recipientIds, type, priority?, title, message, data?}

    Returns:
        {"count": n, "notifications": [...]} where n may be lower than the
        number of recipients if some inserts failed

    Raises:
        NotificationPermissionError: Caller is missing or not an admin
        NotificationRequestError: Payload failed validation (nothing written)
        NotificationBackendError: Backend not configured (nothing written)
    """
    if not caller_id:
        raise NotificationPermissionError("Unauthorized")

    dispatcher, users = _connect(dispatcher, users)

    try:
        is_admin = users.is_admin(caller_id)
    except Exception as e:
        log_notification_error(
            error_type="api",
            error_message=f"Role lookup failed: {e}",
            context={"caller_id": caller_id},
        )
        is_admin = False
    if not is_admin:
        raise NotificationPermissionError("Unauthorized - Admin access required")

    try:
        request = CreateNotificationsRequest.model_validate(payload)
    except ValidationError as e:
        raise NotificationRequestError(_describe_validation_error(e)) from e

    created = dispatcher.dispatch_event(request.to_event(caller_id))

    return {
        "count": len(created),
        "notifications": [n.model_dump(mode="json") for n in created],
    }
