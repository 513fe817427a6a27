"""Section 1C: market repo and reverse repo transactions."""

from __future__ import annotations

import logging
from uuid import UUID

from pdr1_ledger.db.interfaces import SectionQueryPort
from pdr1_ledger.domain import SourceType
from pdr1_ledger.domain.predicates import AggregateQuery, FieldEquals, ProductMeasure

from .interfaces import SectionCalculatorPort, SectionValues
from .series import calculation_crore_series

_log = logging.getLogger(__name__)

REPO_LINE_ITEMS = {
    "1C1": "MARKET REPO",
    "1C2": "MARKET REVERSE REPO",
}


class RepoTransactionsCalculator(SectionCalculatorPort):
    """Sum first-leg consideration (`face_value * leg1_price / 100`) of repo deals per value date."""

    def __init__(self, query_service: SectionQueryPort):
        if query_service is None:
            raise ValueError("query_service must not be None")
        self._query_service = query_service

    def calculation_section_name(self) -> str:
        return "repo_transactions"

    def calculation_compute(self, batch_id: UUID) -> SectionValues:
        section_values: SectionValues = {}
        for line_item, instrument in REPO_LINE_ITEMS.items():
            aggregates = self._query_service.db_section_sum_by_date(
                AggregateQuery(
                    source_type=SourceType.REPO_DEAL,
                    batch_id=batch_id,
                    measures=(ProductMeasure("face_value", "leg1_price", divisor=100.0),),
                    predicates=(FieldEquals("instrument", instrument),),
                )
            )
            section_values[line_item] = calculation_crore_series(aggregates)
            _log.debug("Computed %s for %d dates", line_item, len(section_values[line_item]))
        return section_values
