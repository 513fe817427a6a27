"""Report formatting helpers for line-item dates and amounts."""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal

RUPEES_PER_CRORE = 10_000_000
RUPEES_PER_LAKH = 100_000
LAKHS_PER_CRORE = 100

_REPORT_MONTH_ABBREVIATIONS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def domain_format_report_date(value: date) -> str:
    """Format one calendar date as `DD-Mon-YYYY`.

    The month table is fixed English so output does not depend on process locale.

    Args:
        value: Calendar date.

    Returns:
        str: Formatted date key such as `01-Apr-2024`.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return f"{value.day:02d}-{_REPORT_MONTH_ABBREVIATIONS[value.month - 1]}-{value.year:04d}"


def domain_parse_report_date(value: str) -> date:
    """Parse one `DD-Mon-YYYY` report key back into a date.

    Args:
        value: Formatted report date key.

    Returns:
        date: Calendar date.

    Raises:
        ValueError: Raised when the key is not in report format.
    """

    parts = value.strip().split("-")
    if len(parts) != 3 or parts[1] not in _REPORT_MONTH_ABBREVIATIONS:
        raise ValueError(f"invalid report date key={value}")
    return date(int(parts[2]), _REPORT_MONTH_ABBREVIATIONS.index(parts[1]) + 1, int(parts[0]))


def domain_round_amount(value: float, places: int = 2) -> float:
    """Round one amount to a fixed number of decimal places, ties toward positive infinity.

    Negative ties therefore move toward zero: `-0.125` becomes `-0.12`.

    Args:
        value: Amount to round.
        places: Decimal places to keep.

    Returns:
        float: Rounded amount.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    quantum = Decimal(1).scaleb(-places)
    rounding = ROUND_HALF_UP if value >= 0 else ROUND_HALF_DOWN
    return float(Decimal(str(value)).quantize(quantum, rounding=rounding))


def domain_rupees_to_crores(amount: float) -> float:
    """Convert an absolute rupee amount to crores rounded to 2 places."""

    return domain_round_amount(amount / RUPEES_PER_CRORE)


def domain_lakhs_to_crores(amount: float) -> float:
    """Convert a lakh-denominated amount to crores rounded to 2 places."""

    return domain_round_amount(amount / LAKHS_PER_CRORE)
