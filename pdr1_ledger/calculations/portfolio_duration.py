"""Sections 4A/5A: market-value weighted modified duration of the trading book."""

from __future__ import annotations

import logging
from datetime import date
from typing import Mapping, Sequence
from uuid import UUID

from pdr1_ledger.db.interfaces import SectionQueryPort
from pdr1_ledger.domain import SourceType, domain_format_report_date, domain_round_amount
from pdr1_ledger.domain.predicates import (
    AggregateQuery,
    DatedAggregate,
    FieldContains,
    FieldEquals,
    FieldIn,
    FieldIsNotNull,
    FieldMeasure,
    Not,
    Predicate,
    ProductMeasure,
)

from .interfaces import SectionCalculatorPort, SectionValues

_log = logging.getLogger(__name__)

DURATION_PORTFOLIOS = ("FVLG", "FVSS")
DATED_SECURITY_CATEGORIES = ("Central Government Sec", "State Government Sec", "Treasury Bills")

_WEIGHTED_MEASURES = (FieldMeasure("market_value"), ProductMeasure("market_value", "m_duration"))
_VALUED_ROW_PREDICATES: tuple[Predicate, ...] = (FieldIsNotNull("market_value"), FieldIsNotNull("m_duration"))


def calculation_duration_series(partitions: Sequence[Sequence[DatedAggregate]]) -> dict[str, float]:
    """Combine portfolio partitions per date into `sum(MV * MD) / sum(MV)`.

    A date present in any partition contributes; missing partitions count as
    zero. Dates whose market-value total is zero are omitted.

    Args:
        partitions: Per-partition rows with totals `(sum_mv, sum_mv_md)`.

    Returns:
        dict[str, float]: Durations rounded to two places keyed by report date.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    market_value_by_date: dict[date, float] = {}
    weighted_by_date: dict[date, float] = {}
    for partition in partitions:
        for aggregate in partition:
            market_value_total, weighted_total = aggregate.totals
            market_value_by_date[aggregate.group_date] = (
                market_value_by_date.get(aggregate.group_date, 0.0) + (market_value_total or 0.0)
            )
            weighted_by_date[aggregate.group_date] = (
                weighted_by_date.get(aggregate.group_date, 0.0) + (weighted_total or 0.0)
            )
    return _calculation_ratio_series(weighted_by_date, market_value_by_date)


def _calculation_ratio_series(numerators: Mapping[date, float], denominators: Mapping[date, float]) -> dict[str, float]:
    return {
        domain_format_report_date(value_date): domain_round_amount(numerators[value_date] / denominator)
        for value_date, denominator in sorted(denominators.items())
        if denominator != 0
    }


class PortfolioDurationCalculator(SectionCalculatorPort):
    """Portfolio duration of non-equity holdings (4A) and of dated government securities (5A)."""

    def __init__(self, query_service: SectionQueryPort):
        if query_service is None:
            raise ValueError("query_service must not be None")
        self._query_service = query_service

    def calculation_section_name(self) -> str:
        return "portfolio_duration"

    def calculation_compute(self, batch_id: UUID) -> SectionValues:
        """Compute 4A and 5A for one batch.

        Args:
            batch_id: Upload batch identifier.

        Returns:
            SectionValues: Durations in years per value date.

        Raises:
            RuntimeError: Raised when a store query fails.
        """

        partitions = [
            self._calculation_weighted_totals(
                batch_id,
                (FieldEquals("portfolio", portfolio), Not(FieldContains("category", "EQUITY"))),
            )
            for portfolio in DURATION_PORTFOLIOS
        ]
        dated_securities = self._calculation_weighted_totals(
            batch_id,
            (FieldIn("portfolio", DURATION_PORTFOLIOS), FieldIn("category", DATED_SECURITY_CATEGORIES)),
        )
        section_values: SectionValues = {
            "4A": calculation_duration_series(partitions),
            "5A": calculation_duration_series([dated_securities]),
        }
        for line_item, series in section_values.items():
            _log.debug("Computed %s for %d dates", line_item, len(series))
        return section_values

    def _calculation_weighted_totals(
        self,
        batch_id: UUID,
        predicates: tuple[Predicate, ...],
    ) -> list[DatedAggregate]:
        return self._query_service.db_section_sum_by_date(
            AggregateQuery(
                source_type=SourceType.FIMMDA_VAL,
                batch_id=batch_id,
                measures=_WEIGHTED_MEASURES,
                predicates=(*predicates, *_VALUED_ROW_PREDICATES),
            )
        )
