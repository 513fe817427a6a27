"""Conversion of grouped aggregates into report date series."""

from __future__ import annotations

from datetime import date
from typing import Callable, Mapping, Sequence

from pdr1_ledger.domain import domain_format_report_date, domain_round_amount, domain_rupees_to_crores
from pdr1_ledger.domain.predicates import DatedAggregate


def calculation_totals_by_date(
    aggregates: Sequence[DatedAggregate],
    total_index: int = 0,
    skip_zero: bool = True,
) -> dict[date, float]:
    """Select one total per grouped date.

    Args:
        aggregates: Grouped aggregation rows.
        total_index: Position of the measure within `totals`.
        skip_zero: Drop dates whose total is zero.

    Returns:
        dict[date, float]: Raw totals keyed by calendar date; null totals are dropped.

    Raises:
        IndexError: Raised when `total_index` exceeds the measures of a row.
    """

    totals_by_date: dict[date, float] = {}
    for aggregate in aggregates:
        total = aggregate.totals[total_index]
        if total is None or (skip_zero and total == 0):
            continue
        totals_by_date[aggregate.group_date] = total
    return totals_by_date


def calculation_format_series(
    totals_by_date: Mapping[date, float],
    convert: Callable[[float], float] = domain_rupees_to_crores,
) -> dict[str, float]:
    """Convert, round and key raw totals by report date.

    Args:
        totals_by_date: Raw totals keyed by calendar date.
        convert: Unit conversion applied before rounding.

    Returns:
        dict[str, float]: Values rounded to two places keyed `DD-Mon-YYYY`, in date order.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return {
        domain_format_report_date(value_date): domain_round_amount(convert(total))
        for value_date, total in sorted(totals_by_date.items())
    }


def calculation_crore_series(aggregates: Sequence[DatedAggregate], total_index: int = 0) -> dict[str, float]:
    """Return non-zero rupee totals as a crore series keyed by report date."""

    return calculation_format_series(calculation_totals_by_date(aggregates, total_index=total_index))
