"""
CLI script for creating notifications as an admin.

Usage:
    # Notify two inspectors that an inspection was completed
    uv run python -m notifications.send_notifications --sender <admin-id> \
        --recipient <user-a> --recipient <user-b> --type inspection_completed \
        --title "Inspection completed" --message "123 Main St is done" \
        --data '{"inspection_id": "insp-42", "client_name": "Acme"}'

    # Validate the request without writing anything
    uv run python -m notifications.send_notifications ... --dry-run
"""

import argparse
import json
import sys

from pydantic import ValidationError

from models.notification import CreateNotificationsRequest
from models.types import NOTIFICATION_PRIORITIES, NOTIFICATION_TYPES, UserID
from notifications.api import (
    NotificationApiError,
    create_notifications_for_recipients,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create notifications for a list of recipients")
    parser.add_argument("--sender", required=True, help="Admin user ID creating the notifications")
    parser.add_argument(
        "--recipient",
        action="append",
        default=[],
        help="Recipient user ID (repeat for several recipients)",
    )
    parser.add_argument("--type", required=True, choices=NOTIFICATION_TYPES)
    parser.add_argument("--priority", default="medium", choices=NOTIFICATION_PRIORITIES)
    parser.add_argument("--title", required=True)
    parser.add_argument("--message", required=True)
    parser.add_argument("--data", default="{}", help="JSON object with extra fields")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate the request only (don't create notifications)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        data = json.loads(args.data)
    except json.JSONDecodeError as e:
        parser.error(f"--data must be valid JSON: {e}")
    if not isinstance(data, dict):
        parser.error("--data must be a JSON object")

    payload = {
        "recipientIds": args.recipient,
        "type": args.type,
        "priority": args.priority,
        "title": args.title,
        "message": args.message,
        "data": data,
    }

    if args.dry_run:
        try:
            request = CreateNotificationsRequest.model_validate(payload)
        except ValidationError as e:
            print(f"✗ Invalid request: {e}")
            return 1
        print(f"[DRY RUN] Would notify {len(request.recipient_ids)} recipient(s)")
        return 0

    try:
        result = create_notifications_for_recipients(UserID(args.sender), payload)
    except NotificationApiError as e:
        print(f"✗ {e}")
        return 1

    print(f"✓ Created {result['count']} of {len(args.recipient)} notification(s)")
    return 0 if result["count"] == len(args.recipient) else 2


if __name__ == "__main__":
    sys.exit(main())
