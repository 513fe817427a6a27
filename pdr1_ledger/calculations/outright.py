"""Section 1A/1B: outright purchases and sales of securities."""

from __future__ import annotations

import logging
from uuid import UUID

from pdr1_ledger.db.interfaces import SectionQueryPort
from pdr1_ledger.domain import SourceType
from pdr1_ledger.domain.predicates import (
    AggregateQuery,
    AllOf,
    AnyOf,
    FieldContains,
    FieldEquals,
    FieldIn,
    FieldIsNotNull,
    FieldMeasure,
    FieldStartsWith,
    Not,
    Predicate,
)

from .interfaces import SectionCalculatorPort, SectionValues
from .series import calculation_crore_series

_log = logging.getLogger(__name__)

GOVERNMENT_CATEGORIES = (
    "CENTRAL GOVT BONDS",
    "STATE GOVT BONDS",
    "TREASURY BILLS",
    "CENTRAL GOVERNMENT BONDS",
    "STATE GOVERNMENT BONDS",
    "T-BILLS",
)

TRADING_PORTFOLIO_PREFIXES = ("FVLG", "FVSS")

GOVERNMENT_SECURITY_PREDICATE: Predicate = AnyOf(
    (
        FieldIn("category", GOVERNMENT_CATEGORIES),
        AllOf((FieldContains("category", "GOVT"), FieldContains("category", "BOND"))),
        AllOf((FieldContains("category", "TREASURY"), FieldContains("category", "BILL"))),
    )
)

# Line-item code -> (operation type, government securities?)
OUTRIGHT_LINE_ITEMS: dict[str, tuple[str, bool]] = {
    "1A1": ("BUY", True),
    "1A2": ("BUY", False),
    "1B1": ("SELL", True),
    "1B2": ("SELL", False),
}


class OutrightTransactionsCalculator(SectionCalculatorPort):
    """Sum IM-Deal quantities of trading-book purchases and sales per value date."""

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
        return "outright_transactions"

    def calculation_compute(self, batch_id: UUID) -> SectionValues:
        """Compute 1A1 (govt buys), 1A2 (other buys), 1B1 (govt sells) and 1B2 (other sells).

        Args:
            batch_id: Upload batch identifier.

        Returns:
            SectionValues: Quantities in crores per value date.

        Raises:
            RuntimeError: Raised when a store query fails.
        """

        section_values: SectionValues = {}
        for line_item, (operation_type, government) in OUTRIGHT_LINE_ITEMS.items():
            category_predicate = GOVERNMENT_SECURITY_PREDICATE if government else Not(GOVERNMENT_SECURITY_PREDICATE)
            aggregates = self._query_service.db_section_sum_by_date(
                AggregateQuery(
                    source_type=SourceType.IM_DEAL,
                    batch_id=batch_id,
                    measures=(FieldMeasure("quantity"),),
                    predicates=(
                        FieldEquals("opn_type", operation_type),
                        FieldIsNotNull("quantity"),
                        AnyOf(tuple(FieldStartsWith("portfolio", prefix) for prefix in TRADING_PORTFOLIO_PREFIXES)),
                        category_predicate,
                    ),
                )
            )
            section_values[line_item] = calculation_crore_series(aggregates)
            _log.debug("Computed %s for %d dates", line_item, len(section_values[line_item]))
        return section_values
