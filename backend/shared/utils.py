from datetime import datetime, timezone
from dateutil import parser as date_parser


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse a Postgres/ISO timestamp into an aware datetime (UTC if naive)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = date_parser.isoparse(value)
        except (ValueError, OverflowError, TypeError):
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def print_summary(title: str, stats: dict[str, int]) -> None:
    """Print processing summary."""
    print(f"\n{'=' * 60}")
    print(f"[{datetime.now()}] {title}")
    print(f"{'=' * 60}")
    for name, value in stats.items():
        print(f"{name.replace('_', ' ').capitalize() + ':':<18}{value}")
    print(f"{'=' * 60}\n")
