from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime, assume_zone=None) -> datetime:
    """Convert an aware datetime to naive UTC.

    Naive values are taken to be in ``assume_zone`` when given, otherwise UTC.
    """
    if value.tzinfo is None:
        if assume_zone is None:
            return value
        value = value.replace(tzinfo=assume_zone)
    return value.astimezone(timezone.utc).replace(tzinfo=None)
