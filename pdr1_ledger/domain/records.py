"""Canonical per-source record contracts produced by workbook mapping.

Every record type is a frozen dataclass whose field names match the columns of
its canonical table. Mapping code builds records through `domain_build_record`
so unknown keys never leak past the mapper boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from typing import ClassVar, Union

from .models import SourceType


@dataclass(frozen=True)
class IMDealRecord:
    """Investment-management deal blotter row (outright securities trades).

    Attributes:
        portfolio: Portfolio code such as `FVLG1`.
        category: Security category label.
        value_date: Settlement value date.
        opn_type: Upper-cased operation type (`BUY`/`SELL`).
        quantity: Traded quantity in rupees.
    """

    SOURCE_TYPE: ClassVar[SourceType] = SourceType.IM_DEAL

    portfolio: str
    category: str
    value_date: date
    security_name: str | None = None
    identification_no: str | None = None
    instrument_type: str | None = None
    deal_ref: str | None = None
    sub_category: str | None = None
    counterparty: str | None = None
    deal_date: date | None = None
    deal_time: str | None = None
    maturity_date: date | None = None
    opn_type: str | None = None
    quantity: float | None = None
    mkt_nominal_val: float | None = None
    price: float | None = None
    rate_yield: float | None = None
    book_value: float | None = None
    accrued_interest_days: float | None = None
    accrued_interest_amount: float | None = None
    ccy: str | None = None
    settlement_amount: float | None = None
    dealer: str | None = None
    broker_name: str | None = None
    brokerage_amount: float | None = None
    tax_other_charges: float | None = None
    holding_cost: float | None = None
    profit_loss: float | None = None
    slr_nslr: str | None = None
    authorizer_time: str | None = None
    authorizer_date: date | None = None
    authorizer_name: str | None = None
    remarks: str | None = None


@dataclass(frozen=True)
class RepoDealRecord:
    """Repo deal row with both settlement legs.

    Attributes:
        instrument: Repo instrument label (`Market Repo`, `Market Reverse Repo`).
        value_date: First-leg value date.
        face_value: Face value of the underlying security.
        leg1_price: First-leg clean price per 100.
        settlement_amount_leg1: First-leg settlement amount.
    """

    SOURCE_TYPE: ClassVar[SourceType] = SourceType.REPO_DEAL

    instrument: str
    value_date: date
    deal_no: str | None = None
    security_name: str | None = None
    isin: str | None = None
    deal_date: date | None = None
    maturity_date: date | None = None
    face_value: float | None = None
    leg1_price: float | None = None
    leg2_price: float | None = None
    rate: float | None = None
    tenor: int | None = None
    settlement_amount_leg1: float | None = None
    settlement_amount_leg2: float | None = None
    counterparty: str | None = None
    remarks: str | None = None


@dataclass(frozen=True)
class RepoDealOutstandingRecord:
    """Outstanding repo position row."""

    SOURCE_TYPE: ClassVar[SourceType] = SourceType.REPO_DEAL_OUTSTANDING

    value_date: date
    instrument: str | None = None
    deal_no: str | None = None
    security_name: str | None = None
    isin: str | None = None
    deal_date: date | None = None
    maturity_date: date | None = None
    face_value: float | None = None
    leg1_price: float | None = None
    leg2_price: float | None = None
    rate: float | None = None
    tenor: int | None = None
    settlement_amount_leg1: float | None = None
    settlement_amount_leg2: float | None = None
    outstanding_amount_leg1: float | None = None
    outstanding_amount_leg2: float | None = None
    counterparty: str | None = None
    remarks: str | None = None


@dataclass(frozen=True)
class MMDealRecord:
    """Money-market deal row.

    Attributes:
        instrument_name: Free-text instrument label such as `CALL BORROWING (NDS)`.
        value_date: Deal value date.
        base_eqvlnt: Base-currency equivalent amount.
    """

    SOURCE_TYPE: ClassVar[SourceType] = SourceType.MM_DEAL

    instrument_name: str
    value_date: date
    deal_ref: str | None = None
    instrument_type: str | None = None
    deal_date: date | None = None
    maturity_date: date | None = None
    principal: float | None = None
    rate: float | None = None
    tenor: int | None = None
    base_eqvlnt: float | None = None
    counterparty: str | None = None
    status: str | None = None
    remarks: str | None = None


@dataclass(frozen=True)
class MMDealOutstandingRecord:
    """Outstanding money-market balance row.

    Attributes:
        instrument_name: Free-text instrument label.
        date: Position date used for grouping.
        base_eqvlnt: Base-currency equivalent amount.
        outstanding_amount: Outstanding amount, defaulting to `base_eqvlnt`.
        tenor: Contractual tenor in days.
    """

    SOURCE_TYPE: ClassVar[SourceType] = SourceType.MM_DEAL_OUTSTANDING

    instrument_name: str
    date: date
    deal_ref: str | None = None
    dealer: str | None = None
    counterparty: str | None = None
    portfolio: str | None = None
    instrument_type: str | None = None
    instrument_category: str | None = None
    deal_date: date | None = None
    deal_time: str | None = None
    value_date: date | None = None
    tenor: int | None = None
    maturity_date: date | None = None
    operation_type: str | None = None
    deal_currency: str | None = None
    interest_practice: str | None = None
    interest_basis: str | None = None
    benchmark: str | None = None
    spread: float | None = None
    interest_settlement_frequency: str | None = None
    interest_fixing_frequency: str | None = None
    rate: float | None = None
    principal: float | None = None
    base_eqvlnt: float | None = None
    interest_amount: float | None = None
    principal_plus_interest: float | None = None
    status: str | None = None
    remarks: str | None = None
    last_interest_date: date | None = None
    next_interest_date: date | None = None
    accrued_interest: float | None = None
    outstanding_amount: float | None = None


@dataclass(frozen=True)
class FimmdaValRecord:
    """FIMMDA valuation row for one security holding.

    Attributes:
        identification_no: ISIN of the holding.
        portfolio: Portfolio code (`FVLG`, `FVSS`, `AMRT`, `NC/NNC`).
        value_date: Valuation date.
        wap: Weighted average price.
        m_duration: Modified duration.
    """

    SOURCE_TYPE: ClassVar[SourceType] = SourceType.FIMMDA_VAL

    identification_no: str
    portfolio: str
    value_date: date
    security_name: str | None = None
    category: str | None = None
    sub_category: str | None = None
    face_value: float | None = None
    book_value: float | None = None
    market_value: float | None = None
    market_price: float | None = None
    wap: float | None = None
    m_duration: float | None = None
    pvbp: float | None = None
    accrued_interest: float | None = None


SLR_PLEDGE_COMPONENT_FIELDS = (
    "repo",
    "rbi_refinance",
    "collateral",
    "lien",
    "sgf",
    "derivative",
    "treps",
    "deflt",
)


@dataclass(frozen=True)
class SlrNdsRecord:
    """SLR/NDS holding row with pledge components in lakhs.

    Attributes:
        isin: ISIN of the holding.
        instrument_name: Security description used for instrument-class filters.
        value_date: Position date.
        own_stock: Own stock in lakhs.
        total_pledged: Sum of the eight pledge components.
        net_position: `own_stock - total_pledged`.
    """

    SOURCE_TYPE: ClassVar[SourceType] = SourceType.SLR_NDS

    isin: str
    instrument_name: str
    value_date: date
    own_stock: float | None = None
    repo: float | None = None
    rbi_refinance: float | None = None
    collateral: float | None = None
    lien: float | None = None
    sgf: float | None = None
    derivative: float | None = None
    treps: float | None = None
    deflt: float | None = None
    total_pledged: float | None = None
    net_position: float | None = None


@dataclass(frozen=True)
class GSecRecord:
    """Central government security price row."""

    SOURCE_TYPE: ClassVar[SourceType] = SourceType.G_SEC

    isin: str
    coupon: float
    price: float
    description: str | None = None
    maturity_date: date | None = None
    ytm: float | None = None


@dataclass(frozen=True)
class SdlRecord:
    """State development loan price row."""

    SOURCE_TYPE: ClassVar[SourceType] = SourceType.SDL

    isin: str
    coupon: float
    price: float
    description: str | None = None
    maturity_date: date | None = None
    ytm: float | None = None


CanonicalRecord = Union[
    IMDealRecord,
    RepoDealRecord,
    RepoDealOutstandingRecord,
    MMDealRecord,
    MMDealOutstandingRecord,
    FimmdaValRecord,
    SlrNdsRecord,
    GSecRecord,
    SdlRecord,
]

RECORD_TYPES: dict[SourceType, type] = {
    record_type.SOURCE_TYPE: record_type
    for record_type in (
        IMDealRecord,
        RepoDealRecord,
        RepoDealOutstandingRecord,
        MMDealRecord,
        MMDealOutstandingRecord,
        FimmdaValRecord,
        SlrNdsRecord,
        GSecRecord,
        SdlRecord,
    )
}


def domain_record_field_names(source_type: SourceType) -> tuple[str, ...]:
    """Return canonical field names for one source type in declaration order.

    Args:
        source_type: Source type key.

    Returns:
        tuple[str, ...]: Field names of the record dataclass.

    Raises:
        KeyError: Raised when the source type has no record contract.
    """

    return tuple(field.name for field in fields(RECORD_TYPES[source_type]))


def domain_build_record(source_type: SourceType, values: dict[str, object]) -> CanonicalRecord:
    """Build one typed canonical record from mapped field values.

    Args:
        source_type: Source type key.
        values: Mapped field values; keys outside the record contract are ignored.

    Returns:
        CanonicalRecord: Frozen record instance.

    Raises:
        TypeError: Raised when a required field is absent from `values`.
    """

    record_type = RECORD_TYPES[source_type]
    allowed_names = set(domain_record_field_names(source_type))
    return record_type(**{name: value for name, value in values.items() if name in allowed_names})
