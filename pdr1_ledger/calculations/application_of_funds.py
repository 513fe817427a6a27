"""Section 2B: application of funds in SLR securities."""

from __future__ import annotations

import logging
from uuid import UUID

from pdr1_ledger.db.interfaces import SectionQueryPort
from pdr1_ledger.domain import SourceType, domain_lakhs_to_crores
from pdr1_ledger.domain.predicates import (
    AggregateQuery,
    FieldEquals,
    FieldIn,
    FieldIsNotNull,
    FieldMeasure,
    PledgeJoinQuery,
    Predicate,
)

from .interfaces import SectionCalculatorPort, SectionValues
from .pledge_netting import (
    GOVERNMENT_PLEDGE_PREDICATE,
    STATE_LOAN_PLEDGE_PREDICATE,
    STATE_LOAN_PORTFOLIOS,
    calculation_net_of_pledge,
    calculation_pledge_valuation_by_date,
    calculation_treasury_bill_pledge_predicate,
)
from .series import calculation_format_series, calculation_totals_by_date

_log = logging.getLogger(__name__)

TREASURY_BILL_LINE_ITEMS = {
    "2B1a3": 91,
    "2B1a4": 182,
    "2B1a5": 364,
}

# Line-item code -> SLR pledge component valued at WAP
ENCUMBERED_STOCK_LINE_ITEMS = {
    "2B1b": "rbi_refinance",
    "2B1c": "repo",
}


class ApplicationOfFundsCalculator(SectionCalculatorPort):
    """Book value of SLR securities net of pledges, and stock encumbered with RBI or market repo."""

    def __init__(self, query_service: SectionQueryPort):
        if query_service is None:
            raise ValueError("query_service must not be None")
        self._query_service = query_service

    def calculation_section_name(self) -> str:
        return "application_of_funds"

    def calculation_compute(self, batch_id: UUID) -> SectionValues:
        """Compute 2B1a1..2B1a5, 2B1b and 2B1c for one batch.

        Args:
            batch_id: Upload batch identifier.

        Returns:
            SectionValues: Values in crores per value date.

        Raises:
            RuntimeError: Raised when a store query fails.
        """

        section_values: SectionValues = {
            "2B1a1": self._calculation_net_book_value(
                batch_id,
                (FieldEquals("category", "Central Government Bond"), FieldEquals("portfolio", "FVLG")),
                GOVERNMENT_PLEDGE_PREDICATE,
            ),
            "2B1a2": self._calculation_net_book_value(
                batch_id,
                (FieldEquals("category", "State Government Bond"), FieldIn("portfolio", STATE_LOAN_PORTFOLIOS)),
                STATE_LOAN_PLEDGE_PREDICATE,
            ),
        }
        for line_item, tenor_days in TREASURY_BILL_LINE_ITEMS.items():
            section_values[line_item] = self._calculation_net_book_value(
                batch_id,
                (
                    FieldEquals("category", "Treasury Bills"),
                    FieldEquals("sub_category", f"{tenor_days} DAYS TBILL"),
                    FieldEquals("portfolio", "FVLG"),
                ),
                calculation_treasury_bill_pledge_predicate(tenor_days),
            )
        for line_item, component_field in ENCUMBERED_STOCK_LINE_ITEMS.items():
            aggregates = self._query_service.db_section_pledge_join(
                PledgeJoinQuery(batch_id=batch_id, slr_fields=(component_field,))
            )
            section_values[line_item] = calculation_format_series(
                calculation_totals_by_date(aggregates, skip_zero=False),
                convert=domain_lakhs_to_crores,
            )

        for line_item, series in section_values.items():
            _log.debug("Computed %s for %d dates", line_item, len(series))
        return section_values

    def _calculation_net_book_value(
        self,
        batch_id: UUID,
        holding_predicates: tuple[Predicate, ...],
        pledge_predicate: Predicate,
    ) -> dict[str, float]:
        """Return FIMMDA book value net of same-date pledges, in crores."""

        book_aggregates = self._query_service.db_section_sum_by_date(
            AggregateQuery(
                source_type=SourceType.FIMMDA_VAL,
                batch_id=batch_id,
                measures=(FieldMeasure("book_value"),),
                predicates=(*holding_predicates, FieldIsNotNull("book_value")),
            )
        )
        pledge_by_date = calculation_pledge_valuation_by_date(self._query_service, batch_id, pledge_predicate)
        return calculation_format_series(calculation_net_of_pledge(book_aggregates, pledge_by_date))
