"""SLR pledge filters and book-value netting shared by sections 2B and 3."""

from __future__ import annotations

from datetime import date
from typing import Mapping, Sequence
from uuid import UUID

from pdr1_ledger.db.interfaces import SectionQueryPort
from pdr1_ledger.domain.predicates import AnyOf, DatedAggregate, FieldContains, PledgeJoinQuery, Predicate

from .series import calculation_totals_by_date

GOVERNMENT_PLEDGE_PREDICATE: Predicate = AnyOf(
    (
        FieldContains("instrument_name", "GOI"),
        FieldContains("instrument_name", "GS"),
    )
)
STATE_LOAN_PLEDGE_PREDICATE: Predicate = AnyOf(
    (
        FieldContains("instrument_name", "SDL"),
        FieldContains("instrument_name", "SGS"),
        FieldContains("instrument_name", "UDAY"),
    )
)
TREASURY_BILL_PLEDGE_PREDICATE: Predicate = FieldContains("instrument_name", "DTB")

STATE_LOAN_PORTFOLIOS = ("FVLG", "AMRT", "NC/NNC")


def calculation_treasury_bill_pledge_predicate(tenor_days: int) -> Predicate:
    """Match SLR rows of one treasury-bill tenor, labelled like `91 DTB`."""

    return FieldContains("instrument_name", f"{tenor_days} DTB")


def calculation_pledge_valuation_by_date(
    query_service: SectionQueryPort,
    batch_id: UUID,
    pledge_predicate: Predicate,
) -> dict[date, float]:
    """Value repo and RBI-refinance pledges at FIMMDA weighted-average prices per date.

    Args:
        query_service: Aggregate query service.
        batch_id: Upload batch identifier.
        pledge_predicate: Instrument-class filter on SLR instrument names.

    Returns:
        dict[date, float]: `SUM((repo + rbi_refinance) * wap)` per SLR value date.

    Raises:
        RuntimeError: Raised when a store query fails.
    """

    aggregates = query_service.db_section_pledge_join(
        PledgeJoinQuery(
            batch_id=batch_id,
            slr_fields=("repo", "rbi_refinance"),
            slr_predicates=(pledge_predicate,),
        )
    )
    return calculation_totals_by_date(aggregates, skip_zero=False)


def calculation_net_of_pledge(
    book_aggregates: Sequence[DatedAggregate],
    pledge_by_date: Mapping[date, float],
) -> dict[date, float]:
    """Subtract same-date pledges from non-zero book-value totals.

    Args:
        book_aggregates: Grouped book or face value totals.
        pledge_by_date: Pledge amounts per date; missing dates count as zero.

    Returns:
        dict[date, float]: `book - pledge` per book-value date.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return {
        value_date: book_total - pledge_by_date.get(value_date, 0.0)
        for value_date, book_total in calculation_totals_by_date(book_aggregates).items()
    }
