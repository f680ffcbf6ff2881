"""InfluxDB line protocol rendering for sensor readings.

Format: ``measurement,tag=v,tag=v field=v,field=v timestamp_ns``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Mapping

# Characters that must be backslash-escaped in tag keys and values
_TAG_ESCAPES = str.maketrans({"\\": "\\\\", ",": r"\,", "=": r"\=", " ": r"\ "})
_MEASUREMENT_ESCAPES = str.maketrans({",": r"\,", " ": r"\ "})


def escape_tag(value: str) -> str:
    """Escape backslashes, commas, equals signs and spaces in a tag key or value.

    Raises:
        ValueError: If the value contains a line break, which would split the record.

    Examples:
        >>> escape_tag("living room")
        'living\\\\ room'
        >>> escape_tag("a=b,c")
        'a\\\\=b\\\\,c'
    """
    if "\n" in value or "\r" in value:
        raise ValueError("tag values must not contain line breaks")
    return value.translate(_TAG_ESCAPES)


def to_nanoseconds(ts: datetime) -> int:
    """Convert a datetime to integer nanoseconds since the epoch.

    Naive datetimes are interpreted as UTC.
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    delta = ts - datetime(1970, 1, 1, tzinfo=timezone.utc)
    return (delta.days * 86_400 + delta.seconds) * 1_000_000_000 + delta.microseconds * 1_000


def _format_field(value: float) -> str:
    return repr(float(value))


def build_line(
    measurement: str,
    tags: Mapping[str, str | None],
    fields: Mapping[str, float | None],
    timestamp: datetime,
) -> str:
    """Render one line-protocol record.

    Tags and fields whose value is None are omitted. Tags are written in
    the given order.

    Raises:
        ValueError: If no field has a value (InfluxDB rejects such lines).
    """
    tag_part = ",".join(
        f"{escape_tag(key)}={escape_tag(value)}"
        for key, value in tags.items()
        if value is not None and value != ""
    )
    field_part = ",".join(
        f"{escape_tag(key)}={_format_field(value)}"
        for key, value in fields.items()
        if value is not None
    )
    if not field_part:
        raise ValueError("line protocol record requires at least one field")

    head = measurement.translate(_MEASUREMENT_ESCAPES)
    if tag_part:
        head = f"{head},{tag_part}"
    return f"{head} {field_part} {to_nanoseconds(timestamp)}"
