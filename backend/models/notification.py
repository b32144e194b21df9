"""Pydantic models for notification records and delivery queue."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from models.types import (
    NotificationID,
    NotificationPriority,
    NotificationType,
    QueueStatus,
    UserID,
)


class NotificationCreate(BaseModel):
    """One notification row to insert (a single recipient of an event)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    recipient_id: UserID = Field(..., min_length=1)
    sender_id: UserID | None = None
    type: NotificationType
    priority: NotificationPriority = "medium"
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)

    def to_row(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class NotificationEvent(BaseModel):
    """Author-supplied event to fan out to every recipient."""

    model_config = ConfigDict(str_strip_whitespace=True)

    type: NotificationType
    priority: NotificationPriority = "medium"
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)
    sender_id: UserID | None = None
    recipient_ids: list[UserID] = Field(default_factory=list)

    def expand(self) -> list[NotificationCreate]:
        """Split the event into one insert per recipient, keeping order."""
        return [
            NotificationCreate(
                recipient_id=recipient_id,
                sender_id=self.sender_id,
                type=self.type,
                priority=self.priority,
                title=self.title,
                message=self.message,
                data=dict(self.data),
            )
            for recipient_id in self.recipient_ids
        ]


class Notification(BaseModel):
    """Persisted notification record from database."""

    id: NotificationID
    recipient_id: UserID
    sender_id: UserID | None = None
    # Plain str: rows may carry types newer than this code knows about
    type: str
    priority: str = "medium"
    title: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime | None = None
    read_at: datetime | None = None
    dismissed_at: datetime | None = None

    @property
    def is_unread(self) -> bool:
        return self.read_at is None and self.dismissed_at is None


class QueuedEmail(BaseModel):
    """Rendered email waiting for the mailer to send it."""

    id: int | None = None
    notification_id: NotificationID
    email_address: str = Field(..., pattern=r"^[^@]+@[^@]+\.[^@]+$")
    subject: str = Field(..., min_length=1)
    body: str
    scheduled_for: datetime
    status: QueueStatus = "pending"
    sent_at: datetime | None = None
    resend_email_id: str | None = None
    error_message: str | None = None


class UserProfile(BaseModel):
    """Recipient identity as stored in the users table."""

    id: UserID
    email: str | None = None
    full_name: str | None = None
    role: str = "user"


class CreateNotificationsRequest(BaseModel):
    """Payload accepted by the create-notifications API."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    recipient_ids: list[UserID] = Field(..., alias="recipientIds", min_length=1)
    type: NotificationType
    priority: NotificationPriority = "medium"
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)

    def to_event(self, sender_id: UserID) -> NotificationEvent:
        return NotificationEvent(
            type=self.type,
            priority=self.priority,
            title=self.title,
            message=self.message,
            data=self.data,
            sender_id=sender_id,
            recipient_ids=self.recipient_ids,
        )
