"""
Unit tests for notifications/preference_store.py
"""

import unittest
from unittest.mock import Mock, patch

from pydantic import ValidationError

from notifications.preference_store import PreferenceStore
from tests.fixtures.mock_helpers import create_mock_supabase
from tests.fixtures.user_factory import create_test_preferences


class TestGetPreferences(unittest.TestCase):
    """Tests for PreferenceStore.get() and get_or_default()"""

    def test_get_returns_stored_record(self):
        row = create_test_preferences(user_id="user-1", email_frequency="daily")
        store = PreferenceStore(create_mock_supabase([row]))

        prefs = store.get("user-1")

        self.assertEqual(prefs.user_id, "user-1")
        self.assertEqual(prefs.email_frequency, "daily")

    def test_get_missing_record(self):
        self.assertIsNone(PreferenceStore(create_mock_supabase([])).get("user-1"))

    def test_get_or_default_missing_record(self):
        prefs = PreferenceStore(create_mock_supabase([])).get_or_default("user-1")

        self.assertEqual(prefs.user_id, "user-1")
        self.assertTrue(prefs.email_enabled)
        self.assertFalse(prefs.inspection_reviewed_email)
        self.assertTrue(prefs.system_announcement_email)

    @patch("notifications.preference_store.log_notification_error")
    def test_get_or_default_malformed_record(self, mock_log):
        row = create_test_preferences(user_id="user-1", quiet_hours_start="late evening")
        store = PreferenceStore(create_mock_supabase([row]))

        prefs = store.get_or_default("user-1")

        self.assertEqual(prefs.quiet_hours_start, "22:00")
        self.assertEqual(mock_log.call_args[1]["error_type"], "preferences")

    @patch("notifications.preference_store.log_notification_error")
    def test_get_or_default_backend_error(self, mock_log):
        mock_supabase = Mock()
        mock_supabase.table.side_effect = Exception("relation does not exist")

        prefs = PreferenceStore(mock_supabase).get_or_default("user-1")

        self.assertTrue(prefs.email_enabled)
        mock_log.assert_called_once()

    def test_extra_columns_ignored(self):
        row = create_test_preferences(user_id="user-1", created_at="2024-01-01T00:00:00Z")

        prefs = PreferenceStore(create_mock_supabase([row])).get("user-1")

        self.assertFalse(hasattr(prefs, "created_at"))


class TestUpdatePreferences(unittest.TestCase):
    """Tests for PreferenceStore.update()"""

    def test_creates_record_from_defaults(self):
        mock_supabase = create_mock_supabase([])
        store = PreferenceStore(mock_supabase)

        prefs = store.update("user-1", {"email_frequency": "weekly"})

        self.assertEqual(prefs.email_frequency, "weekly")
        row = mock_supabase.upsert.call_args[0][0]
        self.assertEqual(row["user_id"], "user-1")
        self.assertEqual(row["email_frequency"], "weekly")
        self.assertIn("updated_at", row)
        self.assertNotIn("id", row)
        self.assertEqual(mock_supabase.upsert.call_args[1]["on_conflict"], "user_id")

    def test_keeps_existing_values(self):
        row = create_test_preferences(user_id="user-1", timezone="America/Chicago")
        mock_supabase = create_mock_supabase([row])

        prefs = PreferenceStore(mock_supabase).update("user-1", {"push_enabled": False})

        self.assertEqual(prefs.timezone, "America/Chicago")
        self.assertFalse(prefs.push_enabled)

    def test_user_id_cannot_be_changed(self):
        mock_supabase = create_mock_supabase([])

        PreferenceStore(mock_supabase).update("user-1", {"user_id": "user-2"})

        self.assertEqual(mock_supabase.upsert.call_args[0][0]["user_id"], "user-1")

    def test_unknown_field_rejected(self):
        mock_supabase = create_mock_supabase([])

        with self.assertRaises(ValueError):
            PreferenceStore(mock_supabase).update("user-1", {"sms_enabled": True})
        mock_supabase.upsert.assert_not_called()

    def test_invalid_value_rejected(self):
        mock_supabase = create_mock_supabase([])

        with self.assertRaises(ValidationError):
            PreferenceStore(mock_supabase).update("user-1", {"quiet_hours_end": "25:00"})
        mock_supabase.upsert.assert_not_called()

    def test_disable_email(self):
        mock_supabase = create_mock_supabase([create_test_preferences(user_id="user-1")])

        prefs = PreferenceStore(mock_supabase).disable_email("user-1")

        self.assertFalse(prefs.email_enabled)
        self.assertFalse(mock_supabase.upsert.call_args[0][0]["email_enabled"])

    @patch("builtins.print")
    @patch("notifications.preference_store.log_notification_error")
    def test_upsert_failure_is_logged(self, mock_log, mock_print):
        mock_supabase = create_mock_supabase([])
        # The read succeeds, the upsert fails
        mock_supabase.execute.side_effect = [
            mock_supabase.execute.return_value,
            Exception("new row violates row-level security policy"),
        ]

        prefs = PreferenceStore(mock_supabase).update("user-1", {"push_enabled": False})

        self.assertIsNone(prefs)
        self.assertEqual(mock_log.call_args[1]["error_type"], "preferences")
        self.assertEqual(mock_log.call_args[1]["context"], {"user_id": "user-1"})

    @patch("builtins.print")
    @patch("notifications.preference_store.log_notification_error")
    def test_read_failure_skips_upsert(self, mock_log, mock_print):
        mock_supabase = create_mock_supabase([])
        mock_supabase.execute.side_effect = Exception("statement timeout")

        self.assertIsNone(PreferenceStore(mock_supabase).disable_email("user-1"))
        mock_supabase.upsert.assert_not_called()
        self.assertEqual(mock_log.call_args[1]["error_type"], "preferences")

    @patch("notifications.preference_store.log_notification_error")
    def test_unreachable_backend_not_logged(self, mock_log):
        mock_supabase = create_mock_supabase([])
        mock_supabase.execute.side_effect = Exception("TypeError: Failed to fetch")

        self.assertIsNone(PreferenceStore(mock_supabase).update("user-1", {"push_enabled": False}))
        mock_log.assert_not_called()


if __name__ == "__main__":
    unittest.main()
