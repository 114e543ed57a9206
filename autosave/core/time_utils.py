from __future__ import annotations

from datetime import datetime, timezone

PRIMARY_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Tried in order; the first format that matches wins.
ACCEPTED_TIMESTAMP_FORMATS = (
    PRIMARY_TIMESTAMP_FORMAT,
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
)


class ParseError(ValueError):
    """Raised when a timestamp matches none of the accepted formats."""


def _render(dt: datetime, fmt: str) -> str:
    # %Y is not zero padded below year 1000 on every platform.
    return dt.strftime(fmt.replace("%Y", f"{dt.year:04d}"))


def _parse_with_format(cleaned: str, fmt: str) -> datetime | None:
    try:
        dt = datetime.strptime(cleaned, fmt)
    except ValueError:
        return None
    # strptime tolerates unpadded fields ("2023-7-1"); require the exact layout.
    if _render(dt, fmt) != cleaned:
        return None
    return dt


def parse_timestamp(value: str) -> datetime:
    if not isinstance(value, str) or not value.strip():
        raise ParseError("Timestamp must be a non-empty string.")

    cleaned = value.strip()
    for fmt in ACCEPTED_TIMESTAMP_FORMATS:
        dt = _parse_with_format(cleaned, fmt)
        if dt is not None:
            return dt
    raise ParseError(
        f"Invalid timestamp format: {cleaned!r}. "
        "Expected 'YYYY-MM-DD HH:mm:ss' (or HH:mm, optionally 'T'-separated)."
    )


def format_timestamp(dt: datetime) -> str:
    return _render(dt, PRIMARY_TIMESTAMP_FORMAT)


def to_epoch_seconds(dt: datetime) -> int:
    return int(dt.replace(tzinfo=timezone.utc).timestamp())


def parse_timestamp_to_epoch(value: str) -> tuple[str, int]:
    # The canonical string is also the deduplication key.
    dt = parse_timestamp(value)
    return format_timestamp(dt), to_epoch_seconds(dt)
