"""
Email sending via Resend API for queued notification emails.
"""

import os
from typing import Any

import resend

from models.notification import QueuedEmail
from notifications.email_content import product_name

DEFAULT_FROM_EMAIL = "notifications@caltor-inspections.com"


def send_queued_email(email: QueuedEmail) -> dict[str, Any]:
    """
    Send one queued notification email.

    Args:
        email: Row from notification_queue

    Returns:
        Dictionary with 'success' (bool), 'email_id' (str if success), 'error' (str if failed)
    """
    api_key = os.getenv("RESEND_API_KEY")
    if not api_key:
        return {"success": False, "error": "RESEND_API_KEY is not set"}
    resend.api_key = api_key

    from_email = os.getenv("NOTIFICATION_FROM_EMAIL", DEFAULT_FROM_EMAIL)

    try:
        response = resend.Emails.send(
            {
                "from": f"{product_name()} <{from_email}>",
                "to": email.email_address,
                "subject": email.subject,
                "html": email.body,
            }
        )
        return {"success": True, "email_id": response.get("id")}

    except Exception as e:
        return {"success": False, "error": str(e)}
