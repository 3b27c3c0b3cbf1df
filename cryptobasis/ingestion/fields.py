"""Field-level parsing shared by the exchange adapters."""

import re
from datetime import datetime, timezone

_NUMBER_NOISE = re.compile(r"[$€£,\s]")
_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_MDY = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")
_YMD_SLASH = re.compile(r"(\d{4})/(\d{1,2})/(\d{1,2})")


def parse_number(value: str) -> float | None:
    """Parse the leading number of a cell, or None if there is none.

    Currency symbols and thousands separators are ignored, and trailing
    units are dropped, so "$42,000.00" and "0.5BTC" both parse.
    """
    cleaned = _NUMBER_NOISE.sub("", value)
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return None
    return float(match.group(0))


def normalize_date(value: str) -> str:
    """Normalize a timestamp or date string to YYYY-MM-DD.

    Tries ISO-8601 first (aware timestamps are converted to UTC), then
    MM/DD/YYYY and YYYY/MM/DD, and finally returns whatever precedes the
    first space or "T".
    """
    text = value.strip()
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        parsed = None

    if parsed is not None:
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc)
        return parsed.date().isoformat()

    mdy = _MDY.search(text)
    if mdy:
        month, day, year = mdy.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

    ymd = _YMD_SLASH.search(text)
    if ymd:
        year, month, day = ymd.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

    return text.split(" ")[0].split("T")[0]
