# Overview: UTC clock and ISO-8601 helpers shared by models, services and query parsing.

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC; every timestamp column stores this form."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: str) -> datetime:
    """
    Parse a query-string timestamp into naive UTC.

    Offsets (including a trailing Z) are converted to UTC; values without an
    offset are taken as UTC already. Raises ValueError on anything else.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_utc_z(moment: datetime | None) -> str | None:
    """Render a stored timestamp as second-precision ISO-8601 with a Z suffix."""
    if moment is None:
        return None
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment.replace(microsecond=0).isoformat() + "Z"
