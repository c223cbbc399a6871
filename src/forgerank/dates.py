"""Date parsing shared by configuration and evidence recency."""

from __future__ import annotations

import pendulum


def parse_date(value: str | None, *, default: pendulum.DateTime | None = None) -> pendulum.DateTime | None:
    """Parse ``YYYY-MM`` or any ISO 8601 date/datetime into a pendulum DateTime.

    Unparsable values return ``default``.
    """
    if not value:
        return default
    try:
        if len(value) == 7 and value[4] == "-":
            return pendulum.datetime(int(value[:4]), int(value[5:7]), 1)
        parsed = pendulum.parse(value)
    except (ValueError, pendulum.parsing.exceptions.ParserError):
        return default
    if not isinstance(parsed, pendulum.DateTime):
        # bare dates and times parse to other types
        if isinstance(parsed, pendulum.Date):
            return pendulum.datetime(parsed.year, parsed.month, parsed.day)
        return default
    return parsed
