"""Section 3: free stock position of SLR securities at face value."""

from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

from pdr1_ledger.db.interfaces import SectionQueryPort
from pdr1_ledger.domain import SLR_PLEDGE_COMPONENT_FIELDS, SourceType
from pdr1_ledger.domain.predicates import (
    AggregateQuery,
    CoalescedSumMeasure,
    FieldEquals,
    FieldIn,
    FieldIsNotNull,
    FieldMeasure,
    Predicate,
)
from pdr1_ledger.domain.reporting import RUPEES_PER_LAKH

from .interfaces import SectionCalculatorPort, SectionValues
from .pledge_netting import (
    GOVERNMENT_PLEDGE_PREDICATE,
    STATE_LOAN_PLEDGE_PREDICATE,
    STATE_LOAN_PORTFOLIOS,
    TREASURY_BILL_PLEDGE_PREDICATE,
    calculation_net_of_pledge,
)
from .series import calculation_format_series, calculation_totals_by_date

_log = logging.getLogger(__name__)

# Line-item code -> (FIMMDA holding filters, SLR pledge filter)
STOCK_POSITION_LINE_ITEMS: dict[str, tuple[tuple[Predicate, ...], Predicate]] = {
    "3A": (
        (FieldEquals("category", "Treasury Bills"), FieldEquals("portfolio", "FVLG")),
        TREASURY_BILL_PLEDGE_PREDICATE,
    ),
    "3B": (
        (FieldEquals("category", "Central Government Securities"), FieldEquals("portfolio", "FVLG")),
        GOVERNMENT_PLEDGE_PREDICATE,
    ),
    "3C": (
        (FieldEquals("category", "State Government Securities"), FieldIn("portfolio", STATE_LOAN_PORTFOLIOS)),
        STATE_LOAN_PLEDGE_PREDICATE,
    ),
}


class StockPositionCalculator(SectionCalculatorPort):
    """FIMMDA face value net of every SLR pledge component per value date.

    SLR components are reported in lakhs and are converted to rupees before
    netting.
    """

    def __init__(self, query_service: SectionQueryPort):
        if query_service is None:
            raise ValueError("query_service must not be None")
        self._query_service = query_service

    def calculation_section_name(self) -> str:
        return "stock_position"

    def calculation_compute(self, batch_id: UUID) -> SectionValues:
        section_values: SectionValues = {}
        for line_item, (holding_predicates, pledge_predicate) in STOCK_POSITION_LINE_ITEMS.items():
            face_aggregates = self._query_service.db_section_sum_by_date(
                AggregateQuery(
                    source_type=SourceType.FIMMDA_VAL,
                    batch_id=batch_id,
                    measures=(FieldMeasure("face_value"),),
                    predicates=(*holding_predicates, FieldIsNotNull("face_value")),
                )
            )
            pledged_by_date = self._calculation_pledged_rupees_by_date(batch_id, pledge_predicate)
            section_values[line_item] = calculation_format_series(
                calculation_net_of_pledge(face_aggregates, pledged_by_date)
            )
            _log.debug("Computed %s for %d dates", line_item, len(section_values[line_item]))
        return section_values

    def _calculation_pledged_rupees_by_date(self, batch_id: UUID, pledge_predicate: Predicate) -> dict[date, float]:
        """Sum all eight SLR pledge components per value date, in rupees."""

        pledge_aggregates = self._query_service.db_section_sum_by_date(
            AggregateQuery(
                source_type=SourceType.SLR_NDS,
                batch_id=batch_id,
                measures=(CoalescedSumMeasure(SLR_PLEDGE_COMPONENT_FIELDS),),
                predicates=(pledge_predicate,),
            )
        )
        return {
            value_date: total_lakhs * RUPEES_PER_LAKH
            for value_date, total_lakhs in calculation_totals_by_date(pledge_aggregates, skip_zero=False).items()
        }
