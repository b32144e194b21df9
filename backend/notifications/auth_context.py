"""
Current-user lookup and sign-in/sign-out events from Supabase auth.

Only used to scope a session's notification cache; authentication itself is
handled by Supabase.
"""

from typing import Any, Callable, Protocol

from supabase import Client

from models.types import UserID
from notifications.error_logger import log_notification_error
from shared.db import is_ignorable_backend_error

AuthChangeCallback = Callable[[UserID | None], None]


class AuthSubscription(Protocol):
    def unsubscribe(self) -> None: ...


class AuthContext(Protocol):
    def get_current_user_id(self) -> UserID | None: ...

    def get_access_token(self) -> str | None: ...

    def on_auth_state_change(self, callback: AuthChangeCallback) -> AuthSubscription: ...


class _NoopAuthSubscription:
    def unsubscribe(self) -> None:
        return None


def _user_id_from_session(session: Any) -> UserID | None:
    user = getattr(session, "user", None) if session is not None else None
    user_id = getattr(user, "id", None)
    return UserID(str(user_id)) if user_id else None


class SupabaseAuthContext:
    """AuthContext backed by a session-scoped (anon key) Supabase client."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def get_current_user_id(self) -> UserID | None:
        """Signed-in user's id; None when signed out, expired or unreachable."""
        try:
            response = self._client.auth.get_user()
        except Exception as e:
            if not is_ignorable_backend_error(e):
                log_notification_error(
                    error_type="cache",
                    error_message=f"Error getting user: {e}",
                )
            return None

        user = getattr(response, "user", None) if response is not None else None
        user_id = getattr(user, "id", None)
        return UserID(str(user_id)) if user_id else None

    def get_access_token(self) -> str | None:
        """JWT of the current session, for the realtime connection."""
        try:
            session = self._client.auth.get_session()
        except Exception as e:
            if not is_ignorable_backend_error(e):
                log_notification_error(
                    error_type="cache",
                    error_message=f"Error getting session: {e}",
                )
            return None

        return getattr(session, "access_token", None) if session is not None else None

    def on_auth_state_change(self, callback: AuthChangeCallback) -> AuthSubscription:
        """Call ``callback`` with the new user id (None on sign-out)."""
        try:
            return self._client.auth.on_auth_state_change(
                lambda event, session: callback(_user_id_from_session(session))
            )
        except Exception as e:
            if not is_ignorable_backend_error(e):
                log_notification_error(
                    error_type="cache",
                    error_message=f"Error listening for auth changes: {e}",
                )
            return _NoopAuthSubscription()
