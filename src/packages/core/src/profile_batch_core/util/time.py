"""Time utilities."""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Get current UTC time in ISO format."""
    return to_iso(utc_now())


def to_iso(value: datetime) -> str:
    """Format an aware datetime the way the repo stores it."""
    return value.astimezone(timezone.utc).replace(tzinfo=None).isoformat() + "Z"


def parse_iso(value: str | None) -> datetime | None:
    """Parse a timestamp written by to_iso."""
    if not value:
        return None
    return datetime.fromisoformat(value.rstrip("Z")).replace(tzinfo=timezone.utc)
