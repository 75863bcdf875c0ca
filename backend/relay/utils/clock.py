# relay/utils/clock.py

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC now, matching the naive DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_instant(value: str) -> datetime:
    """
    Parse a client ISO-8601 timestamp and normalize it for storage:
    converted to UTC, made naive, truncated to whole seconds.
    Raises ValueError on anything fromisoformat rejects.
    """
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed.replace(microsecond=0)


def format_server_instant(moment: datetime) -> str:
    """2024-02-15T09:02:46.206Z"""
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"
