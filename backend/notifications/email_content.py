"""
Subject and HTML body for a single notification email.
"""

import os
from html import escape
from typing import Any

from models.notification import Notification, UserProfile
from notifications.unsubscribe_tokens import build_unsubscribe_url

DEFAULT_PRODUCT_NAME = "Caltor Inspections"
DEFAULT_FRONTEND_BASE_URL = "http://localhost:3000"


def product_name() -> str:
    return os.getenv("PRODUCT_NAME", DEFAULT_PRODUCT_NAME)


def frontend_base_url() -> str:
    return os.getenv("FRONTEND_BASE_URL", DEFAULT_FRONTEND_BASE_URL).rstrip("/")


def build_subject(notification: Notification) -> str:
    return f"[{product_name()}] {notification.title}"


def _inspection_details(data: dict[str, Any]) -> str:
    """Details block, only for notifications about a specific inspection."""
    inspection_id = data.get("inspection_id")
    if not inspection_id:
        return ""

    lines = []
    if data.get("client_name"):
        lines.append(f"Client: {escape(str(data['client_name']))}<br>")
    if data.get("inspector_name"):
        lines.append(f"Inspector: {escape(str(data['inspector_name']))}<br>")
    lines.append(f"Inspection ID: {escape(str(inspection_id))}")

    return f"""
            <div class="details">
                <p><strong>Inspection Details:</strong><br>
                {''.join(lines)}
                </p>
            </div>
"""


def build_body(notification: Notification, recipient: UserProfile) -> str:
    """
    Build HTML email body for one notification.

    Args:
        notification: The persisted notification
        recipient: Recipient profile (used for the greeting and unsubscribe link)

    Returns:
        HTML string
    """
    base_url = frontend_base_url()
    name = product_name()
    greeting = (
        f"<p class=\"greeting\">Hi {escape(recipient.full_name)},</p>"
        if recipient.full_name
        else ""
    )
    unsubscribe_url = build_unsubscribe_url(base_url, recipient.id)
    unsubscribe_html = (
        f' &bull; <a href="{unsubscribe_url}">Unsubscribe from all emails</a>'
        if unsubscribe_url
        else ""
    )

    return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{escape(notification.title)}</title>
    <style>
        body {{
            font-family: Arial, sans-serif;
            max-width: 600px;
            margin: 0 auto;
        }}
        .container {{
            background-color: #f8f9fa;
            padding: 20px;
            border-radius: 8px;
        }}
        .header {{
            background-color: #2563eb;
            color: white;
            padding: 15px;
            border-radius: 6px;
            margin-bottom: 20px;
        }}
        .header h1 {{
            margin: 0;
            font-size: 24px;
        }}
        h2 {{
            color: #1f2937;
            margin-bottom: 15px;
        }}
        .message {{
            background-color: white;
            padding: 20px;
            border-radius: 6px;
            border-left: 4px solid #2563eb;
            color: #374151;
            line-height: 1.6;
        }}
        .details {{
            margin-top: 20px;
            padding: 15px;
            background-color: #e5e7eb;
            border-radius: 6px;
            color: #6b7280;
            font-size: 14px;
        }}
        .button {{
            background-color: #2563eb;
            color: white;
            padding: 12px 24px;
            text-decoration: none;
            border-radius: 6px;
            display: inline-block;
        }}
        .footer {{
            margin-top: 30px;
            padding-top: 20px;
            border-top: 1px solid #e5e7eb;
            text-align: center;
            color: #6b7280;
            font-size: 12px;
        }}
        .footer a {{
            color: #2563eb;
        }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>{escape(name)}</h1>
        </div>
        {greeting}
        <h2>{escape(notification.title)}</h2>
        <div class="message">{escape(notification.message)}</div>
{_inspection_details(notification.data)}
        <div style="margin-top: 30px; text-align: center;">
            <a href="{base_url}/dashboard" class="button">View Dashboard</a>
        </div>
        <div class="footer">
            <p>
                You received this email because you have notifications enabled for this type of update.
                <br>
                <a href="{base_url}/dashboard/settings/notifications">Manage your notification preferences</a>{unsubscribe_html}
            </p>
        </div>
    </div>
</body>
</html>
"""
