"""Scenario tests for section calculators against an in-memory canonical store.

Each scenario seeds canonical records for one batch and asserts the line-item
series a calculator derives from them.
"""

from __future__ import annotations

from datetime import date
from typing import Sequence
from uuid import UUID

from pdr1_ledger.calculations import (
    ApplicationOfFundsCalculator,
    CallMoneyCalculator,
    OutrightTransactionsCalculator,
    PortfolioDurationCalculator,
    RepoTransactionsCalculator,
    SourcesOfFundsCalculator,
    StockPositionCalculator,
    ValueAtRiskCalculator,
    calculation_build_default_calculators,
)
from pdr1_ledger.calculations.portfolio_duration import calculation_duration_series
from pdr1_ledger.db import (
    SQLAlchemyCanonicalStoreService,
    SQLAlchemySectionQueryService,
    SQLAlchemyUploadBatchService,
    db_create_engine,
    db_create_schema,
)
from pdr1_ledger.domain import CanonicalRecord, SourceType
from pdr1_ledger.domain.predicates import DatedAggregate
from pdr1_ledger.domain.records import (
    FimmdaValRecord,
    IMDealRecord,
    MMDealOutstandingRecord,
    MMDealRecord,
    RepoDealRecord,
    SlrNdsRecord,
)

_DEAL_DATE = date(2024, 4, 1)
_OTHER_DATE = date(2024, 4, 3)


class _SectionScenario:
    """In-memory store seeded per test with one batch of canonical records."""

    def __init__(self):
        """Create the schema and one empty upload batch.

        Returns:
            None: Initializer does not return values.

        Raises:
            RuntimeError: Raised when the batch row cannot be created.
        """

        engine = db_create_engine("sqlite://")
        db_create_schema(engine)
        self.store = SQLAlchemyCanonicalStoreService(engine)
        self.query_service = SQLAlchemySectionQueryService(engine)
        batch = SQLAlchemyUploadBatchService(engine).db_upload_batch_create(uploaded_by="TEST_PD")
        self.batch_id: UUID = batch.batch_id

    def seed(self, source_type: SourceType, records: Sequence[CanonicalRecord]) -> None:
        """Replace the batch's records of one source type.

        Args:
            source_type: Canonical table to write.
            records: Records to store.

        Returns:
            None: Records are persisted as a side effect.

        Raises:
            RuntimeError: Raised when persistence fails.
        """

        self.store.db_canonical_replace_records(self.batch_id, source_type, records)


def _sections_im_deal(
    opn_type: str,
    quantity: float,
    category: str = "CENTRAL GOVT BONDS",
    portfolio: str = "FVLG1",
    value_date: date = _DEAL_DATE,
) -> IMDealRecord:
    return IMDealRecord(
        portfolio=portfolio,
        category=category,
        value_date=value_date,
        opn_type=opn_type,
        quantity=quantity,
    )


def test_calculations_outright_splits_government_and_other_trades() -> None:
    """Sum trading-book buys and sells by government classification in crores.

    Returns:
        None: Assertions validate 1A/1B line-items.

    Raises:
        AssertionError: Raised when a line-item differs.
    """

    scenario = _SectionScenario()
    scenario.seed(
        SourceType.IM_DEAL,
        [
            _sections_im_deal("BUY", 50_000_000),
            _sections_im_deal("BUY", 30_000_000),
            _sections_im_deal("BUY", 20_000_000, category="CORPORATE BONDS", portfolio="FVSS2"),
            _sections_im_deal("SELL", 10_000_000, category="Treasury Bills"),
            _sections_im_deal("BUY", 90_000_000, portfolio="AFS1"),
        ],
    )

    section_values = OutrightTransactionsCalculator(scenario.query_service).calculation_compute(scenario.batch_id)

    assert section_values == {
        "1A1": {"01-Apr-2024": 8.0},
        "1A2": {"01-Apr-2024": 2.0},
        "1B1": {"01-Apr-2024": 1.0},
        "1B2": {},
    }


def test_calculations_repo_values_first_leg_consideration() -> None:
    """Sum `face_value * leg1_price / 100` per repo instrument."""

    scenario = _SectionScenario()
    scenario.seed(
        SourceType.REPO_DEAL,
        [
            RepoDealRecord(
                instrument="Market Repo", value_date=date(2024, 4, 2), face_value=100_000_000, leg1_price=99.5
            ),
            RepoDealRecord(
                instrument=" market reverse repo ", value_date=date(2024, 4, 2), face_value=50_000_000, leg1_price=100
            ),
        ],
    )

    section_values = RepoTransactionsCalculator(scenario.query_service).calculation_compute(scenario.batch_id)

    assert section_values == {"1C1": {"02-Apr-2024": 9.95}, "1C2": {"02-Apr-2024": 5.0}}


def test_calculations_call_money_falls_back_to_patterns_only_without_exact_labels() -> None:
    """Use ordered-fragment matching only when no exact label matched any date.

    Returns:
        None: Assertions validate tiered instrument matching.

    Raises:
        AssertionError: Raised when tiers are mixed.
    """

    exact_scenario = _SectionScenario()
    exact_scenario.seed(
        SourceType.MM_DEAL,
        [
            MMDealRecord(instrument_name="CALL BORROWING", value_date=_DEAL_DATE, base_eqvlnt=10_000_000),
            MMDealRecord(
                instrument_name="Call Money Borrowing - Bank X", value_date=_OTHER_DATE, base_eqvlnt=20_000_000
            ),
        ],
    )
    pattern_scenario = _SectionScenario()
    pattern_scenario.seed(
        SourceType.MM_DEAL,
        [
            MMDealRecord(
                instrument_name="Call Money Borrowing - Bank X", value_date=_OTHER_DATE, base_eqvlnt=20_000_000
            )
        ],
    )

    exact_values = CallMoneyCalculator(exact_scenario.query_service).calculation_compute(exact_scenario.batch_id)
    pattern_values = CallMoneyCalculator(pattern_scenario.query_service).calculation_compute(pattern_scenario.batch_id)

    assert exact_values == {"1D1": {"01-Apr-2024": 1.0}}
    assert pattern_values == {"1D1": {"03-Apr-2024": 2.0}}


def test_calculations_sources_of_funds_restricts_to_im_deal_dates() -> None:
    """Report outstanding borrowings only on dates that carry IM-Deal trades.

    Returns:
        None: Assertions validate the deal-date restriction.

    Raises:
        AssertionError: Raised when off-date balances leak into the report.
    """

    scenario = _SectionScenario()
    scenario.seed(
        SourceType.MM_DEAL_OUTSTANDING,
        [
            MMDealOutstandingRecord(instrument_name="CALL BORROWING (NDS)", date=_OTHER_DATE, base_eqvlnt=20_000_000),
            MMDealOutstandingRecord(
                instrument_name="CALL BORROWING (NDS)", date=_DEAL_DATE, outstanding_amount=5_000_000
            ),
            MMDealOutstandingRecord(
                instrument_name="INTER CORPORATE DEPOSIT BORROWING",
                date=_OTHER_DATE,
                base_eqvlnt=30_000_000,
                tenor=7,
            ),
            MMDealOutstandingRecord(
                instrument_name="INTER CORPORATE DEPOSIT BORROWING",
                date=_OTHER_DATE,
                base_eqvlnt=10_000_000,
                tenor=91,
            ),
        ],
    )
    scenario.seed(
        SourceType.REPO_DEAL,
        [RepoDealRecord(instrument="MARKET REPO", value_date=date(2024, 4, 2), settlement_amount_leg1=40_000_000)],
    )
    calculator = SourcesOfFundsCalculator(scenario.query_service)

    without_deals = calculator.calculation_compute(scenario.batch_id)
    scenario.seed(SourceType.IM_DEAL, [_sections_im_deal("BUY", 1_000, value_date=_OTHER_DATE)])
    with_deals = calculator.calculation_compute(scenario.batch_id)

    assert without_deals["2A2"] == {}
    assert with_deals["2A2"] == {"03-Apr-2024": 2.0}
    assert with_deals["2A8"] == {"03-Apr-2024": 4.0}
    assert with_deals["2A9"] == {"03-Apr-2024": 3.0}
    assert with_deals["2A10"] == {"03-Apr-2024": 1.0}
    assert with_deals["2A6"] == {}
    assert "2A1" not in with_deals


def test_calculations_application_of_funds_nets_pledges_at_wap() -> None:
    """Subtract WAP-valued repo pledges from FIMMDA book value.

    Returns:
        None: Assertions validate 2B1a1 and the encumbered-stock items.

    Raises:
        AssertionError: Raised when netting differs.
    """

    scenario = _SectionScenario()
    scenario.seed(
        SourceType.FIMMDA_VAL,
        [
            FimmdaValRecord(
                identification_no="IN0020230010",
                portfolio="FVLG",
                value_date=_DEAL_DATE,
                category="Central Government Bond",
                book_value=500_000_000,
                wap=100,
            )
        ],
    )
    scenario.seed(
        SourceType.SLR_NDS,
        [
            SlrNdsRecord(
                isin="IN0020230010",
                instrument_name="7.26% GOI 2033",
                value_date=_DEAL_DATE,
                repo=1_000_000,
            )
        ],
    )

    section_values = ApplicationOfFundsCalculator(scenario.query_service).calculation_compute(scenario.batch_id)

    assert section_values["2B1a1"] == {"01-Apr-2024": 40.0}
    assert section_values["2B1a2"] == {}
    assert section_values["2B1b"] == {}
    assert section_values["2B1c"] == {"01-Apr-2024": 1_000_000.0}


def test_calculations_stock_position_nets_all_pledge_components_in_rupees() -> None:
    """Subtract every SLR pledge component, converted from lakhs, from face value."""

    scenario = _SectionScenario()
    scenario.seed(
        SourceType.FIMMDA_VAL,
        [
            FimmdaValRecord(
                identification_no="IN0020230010",
                portfolio="FVLG",
                value_date=_DEAL_DATE,
                category="Central Government Securities",
                face_value=300_000_000,
            )
        ],
    )
    scenario.seed(
        SourceType.SLR_NDS,
        [SlrNdsRecord(isin="IN0020230010", instrument_name="GOI 2030", value_date=_DEAL_DATE, repo=100, lien=50)],
    )

    section_values = StockPositionCalculator(scenario.query_service).calculation_compute(scenario.batch_id)

    assert section_values == {"3A": {}, "3B": {"01-Apr-2024": 28.5}, "3C": {}}


def test_calculations_portfolio_duration_weights_by_market_value() -> None:
    """Weight modified duration by market value and skip zero-value dates.

    Returns:
        None: Assertions validate 4A and 5A.

    Raises:
        AssertionError: Raised when weighting or suppression differs.
    """

    scenario = _SectionScenario()
    scenario.seed(
        SourceType.FIMMDA_VAL,
        [
            FimmdaValRecord(
                identification_no="A",
                portfolio="FVLG",
                value_date=_DEAL_DATE,
                category="Central Government Sec",
                market_value=100,
                m_duration=2,
            ),
            FimmdaValRecord(
                identification_no="B",
                portfolio="FVSS",
                value_date=_DEAL_DATE,
                category="Central Government Sec",
                market_value=300,
                m_duration=4,
            ),
            FimmdaValRecord(
                identification_no="C",
                portfolio="FVLG",
                value_date=_DEAL_DATE,
                category="EQUITY SHARES",
                market_value=1_000,
                m_duration=1,
            ),
            FimmdaValRecord(
                identification_no="D",
                portfolio="FVLG",
                value_date=_OTHER_DATE,
                category="Central Government Sec",
                market_value=0,
                m_duration=5,
            ),
        ],
    )

    section_values = PortfolioDurationCalculator(scenario.query_service).calculation_compute(scenario.batch_id)

    assert section_values == {"4A": {"01-Apr-2024": 3.5}, "5A": {"01-Apr-2024": 3.5}}


def test_calculations_duration_series_combines_partitions_per_date() -> None:
    """Treat dates missing from one partition as zero contributions."""

    series = calculation_duration_series(
        [
            [DatedAggregate(group_date=_DEAL_DATE, totals=(100.0, 200.0))],
            [
                DatedAggregate(group_date=_DEAL_DATE, totals=(300.0, 1200.0)),
                DatedAggregate(group_date=_OTHER_DATE, totals=(50.0, 75.0)),
            ],
        ]
    )

    assert series == {"01-Apr-2024": 3.5, "03-Apr-2024": 1.5}


def test_calculations_value_at_risk_emits_empty_series() -> None:
    """Emit the VaR line-items without values."""

    scenario = _SectionScenario()

    assert ValueAtRiskCalculator().calculation_compute(scenario.batch_id) == {"6A": {}, "7A": {}}


def test_calculations_default_registry_orders_calculators() -> None:
    """Build every section calculator in reporting order."""

    scenario = _SectionScenario()

    calculators = calculation_build_default_calculators(scenario.query_service)

    assert [calculator.calculation_section_name() for calculator in calculators] == [
        "outright_transactions",
        "repo_transactions",
        "call_money",
        "sources_of_funds",
        "application_of_funds",
        "stock_position",
        "portfolio_duration",
        "value_at_risk",
    ]
