"""Section 1D: call, notice and term money borrowings."""

from __future__ import annotations

import logging
from uuid import UUID

from pdr1_ledger.db.interfaces import SectionQueryPort
from pdr1_ledger.domain import SourceType
from pdr1_ledger.domain.predicates import AggregateQuery, FieldMeasure

from .instrument_matching import InstrumentMatchRule, calculation_sum_by_instrument
from .interfaces import SectionCalculatorPort, SectionValues
from .series import calculation_crore_series

_log = logging.getLogger(__name__)

CALL_MONEY_BORROWING_RULE = InstrumentMatchRule(
    exact_labels=(
        "CALL BORROWING (NDS)",
        "NOTICE BORROWING (NDS)",
        "TERM BORROWING (NDS)",
        "CALL BORROWING",
        "NOTICE BORROWING",
        "TERM BORROWING",
    ),
    pattern_groups=(("CALL", "BORROW"), ("NOTICE", "BORROW"), ("TERM", "BORROW")),
)


class CallMoneyCalculator(SectionCalculatorPort):
    """Sum money-market borrowing amounts (`base_eqvlnt`) per value date into 1D1."""

    def __init__(self, query_service: SectionQueryPort):
        if query_service is None:
            raise ValueError("query_service must not be None")
        self._query_service = query_service

    def calculation_section_name(self) -> str:
        return "call_money"

    def calculation_compute(self, batch_id: UUID) -> SectionValues:
        aggregates = calculation_sum_by_instrument(
            self._query_service,
            AggregateQuery(
                source_type=SourceType.MM_DEAL,
                batch_id=batch_id,
                measures=(FieldMeasure("base_eqvlnt"),),
            ),
            "instrument_name",
            CALL_MONEY_BORROWING_RULE,
        )
        section_values: SectionValues = {"1D1": calculation_crore_series(aggregates)}
        _log.debug("Computed 1D1 for %d dates", len(section_values["1D1"]))
        return section_values
