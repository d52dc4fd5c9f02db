from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the form stored in the database)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC, pass naive ones through"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
