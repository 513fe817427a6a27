"""Section 2A: sources of funds outstanding on IM-Deal value dates.

Outstanding balances come from the money-market outstanding listing keyed by
its `date` column. Every line-item is restricted to dates that also appear as
IM-Deal value dates of the same batch.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Collection, Sequence
from uuid import UUID

from pdr1_ledger.db.interfaces import SectionQueryPort
from pdr1_ledger.domain import SourceType
from pdr1_ledger.domain.predicates import (
    AggregateQuery,
    AnyOf,
    DatedAggregate,
    FieldCompare,
    FieldEquals,
    FieldIsNotNull,
    FieldMeasure,
    Predicate,
)

from .instrument_matching import InstrumentMatchRule, calculation_sum_by_instrument
from .interfaces import SectionCalculatorPort, SectionValues
from .series import calculation_format_series, calculation_totals_by_date

_log = logging.getLogger(__name__)

CALL_BORROWING_RULE = InstrumentMatchRule(
    exact_labels=("CALL BORROWING (NDS)", "CALL BORROWING", "CALL MONEY BORROWINGS"),
    pattern_groups=(("CALL", "BORROW"),),
)
NOTICE_BORROWING_RULE = InstrumentMatchRule(
    exact_labels=("NOTICE BORROWING (NDS)", "NOTICE BORROWING", "NOTICE MONEY BORROWINGS"),
    pattern_groups=(("NOTICE", "BORROW"),),
)
TERM_BORROWING_RULE = InstrumentMatchRule(
    exact_labels=("TERM BORROWING (NDS)", "TERM BORROWING", "TERM MONEY BORROWINGS"),
    pattern_groups=(("TERM", "BORROW"),),
)
RBI_REFINANCE_RULE = InstrumentMatchRule(
    exact_labels=("RBI - REFINANCE", "RBI-REFINANCE"),
    pattern_groups=(("RBI", "REFINANCE"),),
)
TREPS_BORROWING_RULE = InstrumentMatchRule(
    exact_labels=("TREPS BORROWING",),
    pattern_groups=(("TREPS", "BORROW"),),
)
INTER_CORPORATE_DEPOSIT_RULE = InstrumentMatchRule(
    exact_labels=("INTER CORPORATE DEPOSIT BORROWING", "INTER-CORPORATE DEPOSITS"),
    pattern_groups=(("INTER", "CORPORATE"),),
)

SHORT_TERM_DEPOSIT_MAX_TENOR_DAYS = 14

# Line-item code -> (instrument rule, extra row filters)
OUTSTANDING_LINE_ITEMS: dict[str, tuple[InstrumentMatchRule, tuple[Predicate, ...]]] = {
    "2A2": (CALL_BORROWING_RULE, ()),
    "2A3": (NOTICE_BORROWING_RULE, ()),
    "2A4": (TERM_BORROWING_RULE, ()),
    "2A5": (RBI_REFINANCE_RULE, ()),
    "2A7": (TREPS_BORROWING_RULE, ()),
    "2A8": (INTER_CORPORATE_DEPOSIT_RULE, ()),
    "2A9": (
        INTER_CORPORATE_DEPOSIT_RULE,
        (FieldCompare("tenor", "<=", SHORT_TERM_DEPOSIT_MAX_TENOR_DAYS),),
    ),
    "2A10": (
        INTER_CORPORATE_DEPOSIT_RULE,
        (FieldCompare("tenor", ">", SHORT_TERM_DEPOSIT_MAX_TENOR_DAYS),),
    ),
}


def calculation_outstanding_totals(aggregates: Sequence[DatedAggregate]) -> dict[date, float]:
    """Pick `sum(base_eqvlnt)`, else `sum(outstanding_amount)`, else zero per date.

    Args:
        aggregates: Rows carrying the two sums in that order.

    Returns:
        dict[date, float]: Raw totals per date; zero totals are kept.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return {
        aggregate.group_date: aggregate.totals[0] or aggregate.totals[1] or 0.0
        for aggregate in aggregates
    }


def calculation_restrict_to_dates(
    totals_by_date: dict[date, float],
    allowed_dates: Collection[date],
) -> dict[date, float]:
    """Keep only totals whose date belongs to the reference date set."""

    return {value_date: total for value_date, total in totals_by_date.items() if value_date in allowed_dates}


class SourcesOfFundsCalculator(SectionCalculatorPort):
    """Outstanding borrowings (2A2..2A10) on IM-Deal value dates.

    Net owned funds (2A1) and the FCNR, commercial-paper and bond-issuance
    items (2A11..2A14) have no agreed formula and are not emitted.
    """

    def __init__(self, query_service: SectionQueryPort):
        """Initialize calculator.

        Args:
            query_service: Aggregate query service.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when query_service is None.
        """

        if query_service is None:
            raise ValueError("query_service must not be None")
        self._query_service = query_service

    def calculation_section_name(self) -> str:
        return "sources_of_funds"

    def calculation_compute(self, batch_id: UUID) -> SectionValues:
        """Compute outstanding borrowing line-items for one batch.

        Args:
            batch_id: Upload batch identifier.

        Returns:
            SectionValues: Outstanding amounts in crores on IM-Deal value dates.

        Raises:
            RuntimeError: Raised when a store query fails.
        """

        deal_dates = frozenset(self._query_service.db_section_distinct_dates(SourceType.IM_DEAL, batch_id))

        section_values: SectionValues = {}
        for line_item, (rule, extra_predicates) in OUTSTANDING_LINE_ITEMS.items():
            aggregates = calculation_sum_by_instrument(
                self._query_service,
                AggregateQuery(
                    source_type=SourceType.MM_DEAL_OUTSTANDING,
                    batch_id=batch_id,
                    measures=(FieldMeasure("base_eqvlnt"), FieldMeasure("outstanding_amount")),
                    predicates=(
                        AnyOf((FieldIsNotNull("base_eqvlnt"), FieldIsNotNull("outstanding_amount"))),
                        *extra_predicates,
                    ),
                    group_field="date",
                ),
                "instrument_name",
                rule,
            )
            section_values[line_item] = calculation_format_series(
                calculation_restrict_to_dates(calculation_outstanding_totals(aggregates), deal_dates)
            )
            _log.debug("Computed %s for %d dates", line_item, len(section_values[line_item]))

        repo_aggregates = self._query_service.db_section_sum_by_date(
            AggregateQuery(
                source_type=SourceType.REPO_DEAL,
                batch_id=batch_id,
                measures=(FieldMeasure("settlement_amount_leg1"),),
                predicates=(FieldEquals("instrument", "MARKET REPO"), FieldIsNotNull("settlement_amount_leg1")),
            )
        )
        section_values["2A6"] = calculation_format_series(
            calculation_restrict_to_dates(calculation_totals_by_date(repo_aggregates), deal_dates)
        )
        _log.debug("Computed 2A6 for %d dates", len(section_values["2A6"]))
        return section_values
