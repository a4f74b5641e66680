# ocifsync/utils/datetime_utils.py
"""
Datetime utilities for OCIF SOAP requests and responses.

OCIF stores audit timestamps in a DB2-style layout rather than ISO 8601.
"""

import re
from datetime import UTC, date, datetime

OCIF_TIMESTAMP_FORMAT: str = '%Y-%m-%d-%H.%M.%S.%f'
_OCIF_TIMESTAMP: re.Pattern[str] = re.compile(r'\d{4}-\d{2}-\d{2}-\d{2}\.\d{2}\.\d{2}\.\d{1,6}')


def is_ocif_timestamp(value: object) -> bool:
    """True when value is a string in the OCIF timestamp layout."""
    return isinstance(value, str) and _OCIF_TIMESTAMP.fullmatch(value) is not None


def format_for_ocif(value: str | date | datetime | None) -> str | None:
    """
    Format a timestamp for OCIF request fields such as LastMaintainedDate.

    The OCIF layout is ``YYYY-MM-DD-hh.mm.ss.ffffff`` expressed in UTC.

    Args:
        value: An ISO 8601 string (a trailing 'Z' is accepted), a date, or a
               datetime. Dates become midnight UTC and naive datetimes are
               assumed to be UTC.

    Returns:
        The OCIF formatted timestamp, or None for None/empty input.

    Raises:
        ValueError: If a string value is not valid ISO 8601.

    Examples:
        >>> format_for_ocif('2023-10-30T12:34:56.789Z')
        '2023-10-30-12.34.56.789000'
        >>> format_for_ocif(date(2023, 10, 30))
        '2023-10-30-00.00.00.000000'
    """
    if value is None or value == '':
        return None

    if isinstance(value, str):
        dt: datetime = datetime.fromisoformat(value.replace('Z', '+00:00'))
    elif isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.combine(value, datetime.min.time(), tzinfo=UTC)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)

    return dt.strftime(OCIF_TIMESTAMP_FORMAT)


def convert_ocif_to_iso(value: str | date | datetime | None, date_only: bool = False) -> str | None:
    """
    Convert an OCIF response timestamp back to ISO 8601.

    Accepts the OCIF layout (``YYYY-MM-DD-hh.mm.ss.ffffff``), ISO 8601 strings,
    dates and datetimes. The result is UTC with millisecond precision and a
    trailing 'Z', or just the calendar date when ``date_only`` is set.

    Raises:
        ValueError: If a string value is in neither layout.

    Examples:
        >>> convert_ocif_to_iso('2023-09-27-20.49.19.198000')
        '2023-09-27T20:49:19.198Z'
        >>> convert_ocif_to_iso('2023-09-27T20:49:19.198Z', date_only=True)
        '2023-09-27'
    """
    if value is None or value == '':
        return None

    if isinstance(value, str):
        if is_ocif_timestamp(value):
            dt: datetime = datetime.strptime(value, OCIF_TIMESTAMP_FORMAT)
        else:
            dt = datetime.fromisoformat(value.replace('Z', '+00:00'))
    elif isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.combine(value, datetime.min.time(), tzinfo=UTC)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)

    if date_only:
        return dt.date().isoformat()
    return dt.strftime('%Y-%m-%dT%H:%M:%S.') + f'{dt.microsecond // 1000:03d}Z'
