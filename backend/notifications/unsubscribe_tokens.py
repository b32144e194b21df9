"""
Signed one-click unsubscribe links for notification emails.

Tokens carry only the user id, are signed with UNSUBSCRIBE_SECRET_KEY and
expire after 90 days. Redeeming one turns off email delivery for that user.
"""

import hashlib
import os
from urllib.parse import quote

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from models.types import UserID
from notifications.preference_store import PreferenceStore

UNSUBSCRIBE_SALT = "email-unsubscribe"
DEFAULT_MAX_AGE_DAYS = 90


def _get_serializer() -> URLSafeTimedSerializer:
    """
    Raises:
        ValueError: If UNSUBSCRIBE_SECRET_KEY environment variable not set
    """
    secret_key = os.getenv("UNSUBSCRIBE_SECRET_KEY")
    if not secret_key:
        raise ValueError("UNSUBSCRIBE_SECRET_KEY environment variable must be set.")

    return URLSafeTimedSerializer(
        secret_key,
        salt=UNSUBSCRIBE_SALT,
        signer_kwargs={"digest_method": hashlib.sha256},
    )


def generate_unsubscribe_token(user_id: UserID) -> str:
    """URL-safe signed token (payload.timestamp.signature) for ``user_id``."""
    return _get_serializer().dumps(user_id)


def validate_unsubscribe_token(
    token: str, max_age_days: int = DEFAULT_MAX_AGE_DAYS
) -> UserID | None:
    """
    Return the user id inside a valid token.

    Never raises: bad signatures, expired or malformed tokens and a missing
    secret all yield None.
    """
    try:
        user_id = _get_serializer().loads(token, max_age=max_age_days * 24 * 60 * 60)
    except (BadSignature, SignatureExpired, ValueError, TypeError):
        return None
    if not isinstance(user_id, str) or not user_id:
        return None
    return UserID(user_id)


def build_unsubscribe_url(base_url: str, user_id: UserID) -> str | None:
    """Unsubscribe link for emails, or None when signing is not configured."""
    try:
        token = generate_unsubscribe_token(user_id)
    except ValueError:
        return None
    return f"{base_url.rstrip('/')}/unsubscribe?token={quote(token)}"


def unsubscribe_from_email(token: str, store: PreferenceStore) -> UserID | None:
    """
    Turn off email for the token's user. Returns the user id, or None when
    the token is invalid or the preference store could not be updated.
    """
    user_id = validate_unsubscribe_token(token)
    if user_id is None:
        return None
    if store.disable_email(user_id) is None:
        return None
    return user_id
