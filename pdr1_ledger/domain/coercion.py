"""Cell value coercion for spreadsheet exports.

Coercion never raises: a value that cannot be interpreted for its declared
column kind becomes None so the remaining columns of the row still map. Date
text goes through a fixed cascade; the first matching notation wins.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime, timezone
from enum import Enum

from dateutil import parser as dateutil_parser

_log = logging.getLogger(__name__)

_DOMAIN_BLANK_SENTINELS = frozenset({"", "blank", "float"})

_DOMAIN_MONTH_ABBREVIATIONS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)
_DOMAIN_MONTH_NUMBER_BY_ABBREVIATION = {
    abbreviation.upper(): index + 1 for index, abbreviation in enumerate(_DOMAIN_MONTH_ABBREVIATIONS)
}

_DOMAIN_ISO_DATE_PREFIX_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}")
_DOMAIN_DELIMITED_DATE_MAX_LENGTH = 15
_DOMAIN_LEADING_INTEGER_PATTERN = re.compile(r"^\s*([+-]?\d+)")


class ColumnKind(str, Enum):
    """Semantic kind of one canonical column."""

    NUMERIC = "numeric"
    INTEGER = "integer"
    DATE = "date"
    TEXT = "text"


def domain_is_blank_sentinel(raw_value: object) -> bool:
    """Return whether one raw cell value is a blank marker.

    Args:
        raw_value: Raw cell value.

    Returns:
        bool: True for None, empty text and the `blank`/`float` export tokens.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if raw_value is None:
        return True
    if isinstance(raw_value, str):
        return raw_value.strip().lower() in _DOMAIN_BLANK_SENTINELS
    return False


def domain_coerce_value(column_kind: ColumnKind, raw_value: object) -> object | None:
    """Coerce one raw cell value into the typed value for its column kind.

    Args:
        column_kind: Declared semantic kind of the target column.
        raw_value: Raw cell value from the workbook.

    Returns:
        object | None: `float`, `int`, `date` or `str` value, or None when blank or unparseable.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if domain_is_blank_sentinel(raw_value):
        return None
    if column_kind == ColumnKind.NUMERIC:
        return domain_coerce_numeric(raw_value)
    if column_kind == ColumnKind.INTEGER:
        return domain_coerce_integer(raw_value)
    if column_kind == ColumnKind.DATE:
        return domain_parse_date(raw_value)
    return str(raw_value).strip()


def domain_coerce_numeric(raw_value: object) -> float | None:
    """Parse a numeric cell, tolerating thousands separators.

    Args:
        raw_value: Raw cell value.

    Returns:
        float | None: Finite float value, else None.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if domain_is_blank_sentinel(raw_value) or isinstance(raw_value, bool):
        return None
    if isinstance(raw_value, (int, float)):
        numeric_value = float(raw_value)
    else:
        try:
            numeric_value = float(str(raw_value).replace(",", "").strip())
        except ValueError:
            return None
    if not math.isfinite(numeric_value):
        return None
    return numeric_value


def domain_coerce_integer(raw_value: object) -> int | None:
    """Parse an integer cell from its leading digits.

    Text such as `7 Day` yields 7, matching how repo periods are exported.

    Args:
        raw_value: Raw cell value.

    Returns:
        int | None: Parsed integer, else None.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if domain_is_blank_sentinel(raw_value) or isinstance(raw_value, bool):
        return None
    if isinstance(raw_value, (int, float)):
        if isinstance(raw_value, float) and not math.isfinite(raw_value):
            return None
        return int(raw_value)
    match = _DOMAIN_LEADING_INTEGER_PATTERN.match(str(raw_value).replace(",", ""))
    if match is None:
        return None
    return int(match.group(1))


def domain_parse_date(raw_value: object) -> date | None:
    """Parse one date cell through the supported notation cascade.

    Order: typed date/datetime, `YYYY-MM-DD[ ...]`, `DD-Mon-YYYY` (also `/`),
    `MM/DD/YYYY`, then a generic parser. Unknown month tokens and impossible
    calendar dates yield None.

    Args:
        raw_value: Raw cell value.

    Returns:
        date | None: Calendar date in UTC terms, else None.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if domain_is_blank_sentinel(raw_value):
        return None
    if isinstance(raw_value, datetime):
        if raw_value.tzinfo is not None:
            raw_value = raw_value.astimezone(timezone.utc)
        return date(raw_value.year, raw_value.month, raw_value.day)
    if isinstance(raw_value, date):
        return raw_value

    date_text = str(raw_value).strip()

    if _DOMAIN_ISO_DATE_PREFIX_PATTERN.match(date_text):
        date_part = date_text.split(" ", maxsplit=1)[0].split("T", maxsplit=1)[0]
        return _domain_build_date(date_part.split("-"), order=("year", "month", "day"), source_text=date_text)

    delimited_parts = re.split(r"[-/]", date_text)
    has_letters = any(character.isalpha() for character in date_text)
    if (
        ("-" in date_text or ("/" in date_text and has_letters))
        and len(date_text) <= _DOMAIN_DELIMITED_DATE_MAX_LENGTH
        and len(delimited_parts) == 3
    ):
        month_number = _DOMAIN_MONTH_NUMBER_BY_ABBREVIATION.get(delimited_parts[1].strip()[:3].upper())
        if month_number is None:
            _log.warning("Unrecognised month token in date value %r", date_text)
            return None
        return _domain_build_date(
            [delimited_parts[0], str(month_number), delimited_parts[2]],
            order=("day", "month", "year"),
            source_text=date_text,
        )

    if "/" in date_text and len(delimited_parts) == 3:
        return _domain_build_date(delimited_parts, order=("month", "day", "year"), source_text=date_text)

    try:
        parsed_value = dateutil_parser.parse(date_text)
    except (ValueError, OverflowError):
        _log.warning("Could not parse date value %r", date_text)
        return None
    return domain_parse_date(parsed_value)


def _domain_build_date(parts: list[str], order: tuple[str, str, str], source_text: str) -> date | None:
    """Assemble a date from positional text components.

    Args:
        parts: Three text components.
        order: Component meaning for each position.
        source_text: Raw date text for diagnostics.

    Returns:
        date | None: Assembled date, or None when any component is invalid.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    components: dict[str, int] = {}
    for component_name, component_text in zip(order, parts):
        try:
            components[component_name] = int(component_text.strip())
        except ValueError:
            _log.warning("Invalid date component %r in %r", component_text, source_text)
            return None
    try:
        return date(components["year"], components["month"], components["day"])
    except ValueError:
        _log.warning("Invalid calendar date %r", source_text)
        return None
