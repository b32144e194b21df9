"""Unit tests for Pydantic models."""

import unittest

from pydantic import ValidationError

from models import (
    CreateNotificationsRequest,
    Notification,
    NotificationCreate,
    NotificationEvent,
    NotificationPreferences,
    QueuedEmail,
    default_preferences,
)
from tests.fixtures.notification_factory import create_test_notification_row


class TestNotificationModels(unittest.TestCase):
    """Tests for notification Pydantic models."""

    def test_create_defaults(self):
        item = NotificationCreate(
            recipient_id="user-1", type="status_changed", title="Status", message="Now in review"
        )

        self.assertEqual(item.priority, "medium")
        self.assertEqual(item.data, {})
        self.assertIsNone(item.sender_id)

    def test_create_rejects_unknown_type_and_priority(self):
        with self.assertRaises(ValidationError):
            NotificationCreate(recipient_id="u", type="gossip", title="t", message="m")
        with self.assertRaises(ValidationError):
            NotificationCreate(
                recipient_id="u", type="status_changed", priority="critical", title="t", message="m"
            )

    def test_event_expands_in_recipient_order(self):
        event = NotificationEvent(
            type="inspection_assigned",
            title="New inspection",
            message="You have been assigned 55 Elm St",
            data={"inspection_id": "insp-1"},
            sender_id="admin-1",
            recipient_ids=["B", "A", "B"],
        )

        items = event.expand()

        self.assertEqual([i.recipient_id for i in items], ["B", "A", "B"])
        self.assertTrue(all(i.data == {"inspection_id": "insp-1"} for i in items))
        # Each item owns its data dict
        items[0].data["extra"] = True
        self.assertNotIn("extra", items[1].data)

    def test_stored_row_with_future_type(self):
        """Rows written by newer code still load"""
        notification = Notification.model_validate(
            create_test_notification_row(notification_type="invoice_sent")
        )

        self.assertEqual(notification.type, "invoice_sent")

    def test_is_unread(self):
        unread = Notification.model_validate(create_test_notification_row())
        read = Notification.model_validate(create_test_notification_row(read_at="2024-01-01T00:00:00Z"))
        dismissed = Notification.model_validate(
            create_test_notification_row(dismissed_at="2024-01-01T00:00:00Z")
        )

        self.assertTrue(unread.is_unread)
        self.assertFalse(read.is_unread)
        self.assertFalse(dismissed.is_unread)

    def test_queued_email_validates_address(self):
        with self.assertRaises(ValidationError):
            QueuedEmail(
                notification_id="n-1",
                email_address="not-an-address",
                subject="s",
                body="b",
                scheduled_for="2024-01-01T09:00:00Z",
            )

    def test_request_accepts_camel_case_recipients(self):
        request = CreateNotificationsRequest.model_validate(
            {"recipientIds": ["A"], "type": "urgent_alert", "title": "t", "message": "m"}
        )

        self.assertEqual(request.recipient_ids, ["A"])
        self.assertEqual(request.to_event("admin-1").sender_id, "admin-1")


class TestPreferenceModels(unittest.TestCase):
    """Tests for NotificationPreferences."""

    def test_defaults(self):
        prefs = default_preferences("user-1")

        self.assertTrue(prefs.email_enabled)
        self.assertTrue(prefs.push_enabled)
        self.assertEqual(prefs.email_frequency, "immediate")
        self.assertEqual((prefs.quiet_hours_start, prefs.quiet_hours_end), ("22:00", "08:00"))
        self.assertEqual(prefs.timezone, "UTC")
        self.assertFalse(prefs.inspection_reviewed_email)
        self.assertTrue(prefs.system_announcement_email)
        self.assertTrue(prefs.urgent_alert_email)

    def test_assignment_is_validated(self):
        prefs = NotificationPreferences()

        with self.assertRaises(ValidationError):
            prefs.email_frequency = "monthly"
        with self.assertRaises(ValidationError):
            prefs.quiet_hours_start = "7pm"

    def test_to_row_excludes_server_columns(self):
        row = NotificationPreferences(id="p-1", user_id="user-1").to_row()

        self.assertNotIn("id", row)
        self.assertNotIn("updated_at", row)
        self.assertEqual(row["user_id"], "user-1")


if __name__ == "__main__":
    unittest.main()
