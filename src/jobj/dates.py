"""Date parsing for model output.

Models emit dates in whatever format they saw most in training. Parsing
tries an ordered, immutable list of layouts; callers that need other
formats pass their own tuple instead of mutating shared state.
"""

from datetime import datetime
from functools import partial
from typing import Annotated, Any

from pydantic import BeforeValidator

from jobj.core.errors import DateParseError

DATE_ONLY = "%Y-%m-%d"

DEFAULT_DATE_LAYOUTS: tuple[str, ...] = (
    "%Y-%m-%dT%H:%M:%S%z",  # RFC 3339, "Z" or offset
    "%Y-%m-%d %H:%M:%S",
    DATE_ONLY,
    "%Y-%m-%dT%H:%M:%S.%f%z",  # RFC 3339 with fractional seconds
    "%Y-%m-%dT%H:%M:%S",
    "%a %b %d %H:%M:%S %z %Y",  # Ruby date
    "%d %b %y %H:%M %Z",  # RFC 822
    "%a, %d %b %Y %H:%M:%S %z",  # RFC 1123 with numeric zone
    "%a, %d %b %Y %H:%M:%S %Z",  # RFC 1123
    "%d %b %y %H:%M %z",  # RFC 822 with numeric zone
    "%A, %d-%b-%y %H:%M:%S %Z",  # RFC 850
    "%m/%d %I:%M:%S%p '%y %z",
    "%a %b %d %H:%M:%S %Y",  # ANSI C
    "%a %b %d %H:%M:%S %Z %Y",  # Unix date
    "%b %d %H:%M:%S",
    "%b %d %H:%M:%S.%f",
)


def parse_published_time(
    value: str, layouts: tuple[str, ...] = DEFAULT_DATE_LAYOUTS
) -> datetime:
    """
    Parse a timestamp by trying each layout in order.

    Args:
        value: Timestamp text
        layouts: strptime layouts, tried first to last

    Returns:
        The first successful parse

    Raises:
        DateParseError: If no layout matches
    """
    text = value.strip()
    for layout in layouts:
        try:
            return datetime.strptime(text, layout)
        except ValueError:
            continue
    raise DateParseError(f"failed to parse published time: {value!r}")


def parse_json_date(value: Any, layouts: tuple[str, ...] = DEFAULT_DATE_LAYOUTS) -> datetime:
    """Parse a JSON date value, preferring YYYY-MM-DD."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise DateParseError(f"date must be a string, got: {type(value).__name__}")

    try:
        return datetime.strptime(value.strip(), DATE_ONLY)
    except ValueError:
        pass
    try:
        return parse_published_time(value, layouts)
    except DateParseError as e:
        raise DateParseError(f"invalid date format: {value!r}") from e


def json_date_type(layouts: tuple[str, ...]) -> Any:
    """Build a pydantic-compatible datetime type that accepts the given layouts."""
    return Annotated[datetime, BeforeValidator(partial(parse_json_date, layouts=layouts))]


# Use as a field annotation: `published: JsonDate`
JsonDate = json_date_type(DEFAULT_DATE_LAYOUTS)
