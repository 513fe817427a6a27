"""Default section calculator registry."""

from __future__ import annotations

from pdr1_ledger.db.interfaces import SectionQueryPort

from .application_of_funds import ApplicationOfFundsCalculator
from .call_money import CallMoneyCalculator
from .interfaces import SectionCalculatorPort
from .outright import OutrightTransactionsCalculator
from .portfolio_duration import PortfolioDurationCalculator
from .repo import RepoTransactionsCalculator
from .sources_of_funds import SourcesOfFundsCalculator
from .stock_position import StockPositionCalculator
from .value_at_risk import ValueAtRiskCalculator


def calculation_build_default_calculators(query_service: SectionQueryPort) -> tuple[SectionCalculatorPort, ...]:
    """Build every section calculator in report order.

    Args:
        query_service: Aggregate query service shared by all calculators.

    Returns:
        tuple[SectionCalculatorPort, ...]: Calculators for sections 1 through 7.

    Raises:
        ValueError: Raised when query_service is None.
    """

    if query_service is None:
        raise ValueError("query_service must not be None")

    return (
        OutrightTransactionsCalculator(query_service),
        RepoTransactionsCalculator(query_service),
        CallMoneyCalculator(query_service),
        SourcesOfFundsCalculator(query_service),
        ApplicationOfFundsCalculator(query_service),
        StockPositionCalculator(query_service),
        PortfolioDurationCalculator(query_service),
        ValueAtRiskCalculator(),
    )
