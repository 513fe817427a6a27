"""Calculation layer package for regulatory section line-items."""

from .application_of_funds import ApplicationOfFundsCalculator
from .call_money import CallMoneyCalculator
from .instrument_matching import InstrumentMatchRule, calculation_sum_by_instrument
from .interfaces import SectionCalculatorPort, SectionValues
from .outright import OutrightTransactionsCalculator
from .portfolio_duration import PortfolioDurationCalculator
from .registry import calculation_build_default_calculators
from .repo import RepoTransactionsCalculator
from .sources_of_funds import SourcesOfFundsCalculator
from .stock_position import StockPositionCalculator
from .value_at_risk import ValueAtRiskCalculator

__all__ = [
	"ApplicationOfFundsCalculator",
	"CallMoneyCalculator",
	"InstrumentMatchRule",
	"OutrightTransactionsCalculator",
	"PortfolioDurationCalculator",
	"RepoTransactionsCalculator",
	"SectionCalculatorPort",
	"SectionValues",
	"SourcesOfFundsCalculator",
	"StockPositionCalculator",
	"ValueAtRiskCalculator",
	"calculation_build_default_calculators",
	"calculation_sum_by_instrument",
]
