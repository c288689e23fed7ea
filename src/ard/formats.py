# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Text encodings used by the batch tool for issue fields."""

import logging
from datetime import datetime, timezone

from ard.model import ChangeSet, FieldDiff

logger = logging.getLogger(__name__)

PAIR_SEPARATOR = ";"
DIFF_SEPARATOR = ","
DIFF_VALUES_SEPARATOR = "|"

_DATE_FORMATS = ("%Y-%m-%dT%H:%M:%S%z", "%Y-%m-%dT%H:%M:%S.%f%z")


def parse_key_values(data: str | None) -> dict[str, str | None]:
    """Parse a ``key=value;key=value`` blob.

    Args:
        data: Encoded blob, possibly empty or ``None``.

    Returns:
        Mapping in encoded order. Keys without ``=`` map to ``None``.
    """
    values: dict[str, str | None] = {}
    if not data:
        return values
    for entry in data.split(PAIR_SEPARATOR):
        if not entry:
            continue
        key, sep, value = entry.partition("=")
        values[key] = value if sep else None
    return values


def format_key_values(values: dict[str, str | None]) -> str:
    """Render a mapping back to the ``key=value;key=value`` form."""
    return PAIR_SEPARATOR.join(
        key if value is None else f"{key}={value}" for key, value in values.items()
    )


def parse_field_diffs(data: str | None) -> ChangeSet:
    """Parse a ``field=old|new,field=new`` diff string.

    Args:
        data: Encoded diffs, possibly empty or ``None``.

    Returns:
        Change set without a creation date.
    """
    diffs: dict[str, FieldDiff] = {}
    if data:
        for entry in data.split(DIFF_SEPARATOR):
            if not entry:
                continue
            field_name, sep, encoded = entry.partition("=")
            if not sep:
                diffs[field_name] = FieldDiff(old_value=None, new_value=None)
                continue
            old, values_sep, new = encoded.partition(DIFF_VALUES_SEPARATOR)
            if not values_sep:
                old, new = "", encoded
            diffs[field_name] = FieldDiff(old_value=old or None, new_value=new or None)
    return ChangeSet(diffs=diffs)


def format_field_diffs(change: ChangeSet) -> str:
    """Render a change set back to its textual diff form."""
    entries = []
    for field_name, diff in change.diffs.items():
        entry = f"{field_name}="
        if diff.old_value is not None:
            entry += f"{diff.old_value}{DIFF_VALUES_SEPARATOR}"
        entry += diff.new_value or ""
        entries.append(entry)
    return DIFF_SEPARATOR.join(entries)


def parse_datetime(value: str | int) -> datetime:
    """Parse an ISO-8601 string or epoch milliseconds.

    Args:
        value: Encoded date.

    Returns:
        Parsed datetime. Epoch values are UTC.

    Raises:
        ValueError: If the value is not a supported date encoding.
    """
    if isinstance(value, bool):
        raise ValueError(f"Unsupported date value: {value!r}")
    if isinstance(value, int):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date value: {value!r}")
    for date_format in _DATE_FORMATS:
        try:
            return datetime.strptime(value, date_format)
        except ValueError:
            continue
    return datetime.fromisoformat(value)


def parse_optional_datetime(value: object, field_name: str) -> datetime | None:
    """Parse an optional date, degrading malformed values to ``None``."""
    if value is None:
        return None
    try:
        return parse_datetime(value)  # type: ignore[arg-type]
    except (ValueError, OverflowError, OSError) as exc:
        logger.warning(f"Ignoring malformed date (field={field_name} value={value!r} error={exc})")
        return None
