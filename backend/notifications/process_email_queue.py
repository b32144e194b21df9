"""
CLI script for sending due notification emails.

Usage:
    # Send every pending email whose scheduled_for has passed
    uv run python -m notifications.process_email_queue

    # Cap the batch size
    uv run python -m notifications.process_email_queue --limit 50

    # Dry run (don't actually send emails)
    uv run python -m notifications.process_email_queue --dry-run
"""

import argparse
import time
from datetime import datetime

from notifications.email_sender import send_queued_email
from notifications.error_logger import log_notification_error
from notifications.repository import EmailQueueRepository
from shared.db import get_supabase_client
from shared.utils import print_summary, utc_now


def process_email_queue(
    queue: EmailQueueRepository | None = None,
    now: datetime | None = None,
    limit: int = 100,
    dry_run: bool = False,
) -> dict[str, int]:
    """
    Send pending emails scheduled at or before ``now``.

    One failed email is recorded on its row and does not stop the rest.

    Returns:
        Dictionary with stats: sent, failed
    """
    queue = queue or EmailQueueRepository(get_supabase_client())
    now = now or utc_now()

    due = queue.list_due(now, limit=limit)
    stats = {"sent": 0, "failed": 0}

    if not due:
        print("No queued emails are due.")
        return stats

    print(f"Found {len(due)} due email(s)")

    for email in due:
        if dry_run:
            print(f"  [DRY RUN] Would send '{email.subject}' to {email.email_address}")
            stats["sent"] += 1
            continue

        result = send_queued_email(email)

        try:
            if result["success"]:
                queue.mark_sent(email.id, result.get("email_id"))
                print(f"  ✓ Sent email {email.id} for notification {email.notification_id}")
                stats["sent"] += 1
            else:
                error_msg = result.get("error", "Unknown error")
                queue.mark_failed(email.id, error_msg)
                error_file = log_notification_error(
                    error_type="sending",
                    error_message=error_msg,
                    context={
                        "queue_id": email.id,
                        "notification_id": email.notification_id,
                    },
                )
                print(f"  ✗ Failed to send email {email.id}: {error_msg}")
                print(f"    Error details logged to: {error_file}")
                stats["failed"] += 1
        except Exception as e:
            # Status update failed; the row stays pending and is retried next run
            log_notification_error(
                error_type="sending",
                error_message=f"Could not update queue row: {e}",
                context={"queue_id": email.id, "send_result": result},
            )
            stats["failed"] += 1

        # Rate limiting: max 10 emails/second
        time.sleep(0.1)

    print_summary("Email Queue Processing Complete", stats)
    return stats


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Send due notification emails")
    parser.add_argument(
        "--limit", type=int, default=100, help="Maximum number of emails to send"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Dry run mode (don't actually send emails)",
    )
    args = parser.parse_args()

    process_email_queue(limit=args.limit, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
