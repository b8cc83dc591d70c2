"""OFX date-time parsing.

OFX writes timestamps as ``YYYYMMDD[HHMMSS[.XXX]][[offset:TZ]]``, for example
``20170301``, ``20170301120000`` or ``20170301120000.000[-5:EST]``. The bracketed
offset is a number of hours from GMT, optionally fractional (``+5.5``), and the
zone name after the colon is informational only.
"""

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

OFX_DATE_PATTERN = re.compile(
    r"""
    ^(?P<year>\d{4})(?P<month>\d{2})(?P<day>\d{2})
    (?:(?P<hour>\d{2})(?P<minute>\d{2})(?P<second>\d{2})
       (?:\.(?P<millis>\d{1,3}))?)?
    \s*
    (?:\[\s*(?P<offset>[+-]?\d{1,2}(?:\.\d+)?)\s*(?::\s*(?P<tzname>[^\]]*))?\])?
    $
    """,
    re.VERBOSE,
)


def parse_ofx_date(text: Optional[str]) -> Optional[datetime]:
    """Parse an OFX date-time string.

    Args:
        text: Date string as found in the document; surrounding whitespace is
            ignored

    Returns:
        A timezone-aware datetime when the string carries a GMT offset, a naive
        datetime otherwise, or None for empty or invalid strings
    """
    if not text:
        return None
    match = OFX_DATE_PATTERN.match(text.strip())
    if match is None:
        return None

    parts = match.groupdict()
    tzinfo = None
    if parts["offset"] is not None:
        try:
            hours = Decimal(parts["offset"])
        except InvalidOperation:
            return None
        offset = timedelta(minutes=int(hours * 60))
        name = (parts["tzname"] or "").strip()
        try:
            tzinfo = timezone(offset, name) if name else timezone(offset)
        except ValueError:
            return None

    millis = parts["millis"] or "0"
    try:
        return datetime(
            int(parts["year"]),
            int(parts["month"]),
            int(parts["day"]),
            int(parts["hour"] or 0),
            int(parts["minute"] or 0),
            int(parts["second"] or 0),
            int(millis.ljust(3, "0")) * 1000,
            tzinfo=tzinfo,
        )
    except ValueError:
        return None
