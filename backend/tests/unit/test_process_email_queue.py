"""
Unit tests for notifications/process_email_queue.py
"""

import unittest
from datetime import datetime, timezone
from unittest.mock import Mock, patch

from models.notification import QueuedEmail
from notifications.process_email_queue import process_email_queue
from tests.fixtures.notification_factory import create_test_queued_email_row

NOW = datetime(2024, 1, 2, 9, 0, tzinfo=timezone.utc)


def _due(*queue_ids):
    return [QueuedEmail.model_validate(create_test_queued_email_row(queue_id=i)) for i in queue_ids]


@patch("notifications.process_email_queue.time.sleep")
@patch("builtins.print")
class TestProcessEmailQueue(unittest.TestCase):
    """Tests for process_email_queue()"""

    def setUp(self):
        self.queue = Mock()

    @patch("notifications.process_email_queue.send_queued_email")
    def test_sends_due_emails(self, mock_send, mock_print, mock_sleep):
        self.queue.list_due.return_value = _due(1, 2)
        mock_send.return_value = {"success": True, "email_id": "email_1"}

        stats = process_email_queue(queue=self.queue, now=NOW)

        self.assertEqual(stats, {"sent": 2, "failed": 0})
        self.queue.list_due.assert_called_once_with(NOW, limit=100)
        self.queue.mark_sent.assert_any_call(1, "email_1")
        self.queue.mark_sent.assert_any_call(2, "email_1")

    @patch("notifications.process_email_queue.log_notification_error")
    @patch("notifications.process_email_queue.send_queued_email")
    def test_failure_recorded_and_rest_continue(self, mock_send, mock_log, mock_print, mock_sleep):
        self.queue.list_due.return_value = _due(1, 2)
        mock_send.side_effect = [
            {"success": False, "error": "Invalid recipient"},
            {"success": True, "email_id": "email_2"},
        ]

        stats = process_email_queue(queue=self.queue, now=NOW)

        self.assertEqual(stats, {"sent": 1, "failed": 1})
        self.queue.mark_failed.assert_called_once_with(1, "Invalid recipient")
        self.queue.mark_sent.assert_called_once_with(2, "email_2")
        self.assertEqual(mock_log.call_args[1]["error_type"], "sending")

    @patch("notifications.process_email_queue.log_notification_error")
    @patch("notifications.process_email_queue.send_queued_email")
    def test_status_update_failure_counts_as_failed(self, mock_send, mock_log, mock_print, mock_sleep):
        self.queue.list_due.return_value = _due(1)
        self.queue.mark_sent.side_effect = Exception("connection reset")
        mock_send.return_value = {"success": True, "email_id": "email_1"}

        stats = process_email_queue(queue=self.queue, now=NOW)

        self.assertEqual(stats["failed"], 1)
        mock_log.assert_called_once()

    @patch("notifications.process_email_queue.send_queued_email")
    def test_dry_run_sends_nothing(self, mock_send, mock_print, mock_sleep):
        self.queue.list_due.return_value = _due(1)

        stats = process_email_queue(queue=self.queue, now=NOW, dry_run=True)

        self.assertEqual(stats["sent"], 1)
        mock_send.assert_not_called()
        self.queue.mark_sent.assert_not_called()

    @patch("notifications.process_email_queue.send_queued_email")
    def test_nothing_due(self, mock_send, mock_print, mock_sleep):
        self.queue.list_due.return_value = []

        self.assertEqual(process_email_queue(queue=self.queue, now=NOW), {"sent": 0, "failed": 0})
        mock_send.assert_not_called()


if __name__ == "__main__":
    unittest.main()
