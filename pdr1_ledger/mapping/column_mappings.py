"""Static header-to-field tables per source workbook.

Keys are normalized header text (lower-cased, trimmed, single-spaced); values
are canonical record field names. Several export variants of one header map to
the same field.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from pdr1_ledger.domain import ColumnKind, SourceType

IM_DEAL_COLUMN_MAPPING: Mapping[str, str] = MappingProxyType(
    {
        "security name": "security_name",
        "identification no": "identification_no",
        "instrument type": "instrument_type",
        "portfolio": "portfolio",
        "deal ref": "deal_ref",
        "category": "category",
        "sub category": "sub_category",
        "counterparty": "counterparty",
        "deal date": "deal_date",
        "deal time": "deal_time",
        "value date": "value_date",
        "maturity date": "maturity_date",
        "opn type": "opn_type",
        "quantity": "quantity",
        "mkt nominal val": "mkt_nominal_val",
        "price": "price",
        "rate/yield": "rate_yield",
        "book value": "book_value",
        "accrued interest-days": "accrued_interest_days",
        "accrued interest-amount": "accrued_interest_amount",
        "ccy": "ccy",
        "settlement amount": "settlement_amount",
        "dealer": "dealer",
        "broker name": "broker_name",
        "brokerage amount": "brokerage_amount",
        "tax/other charges": "tax_other_charges",
        "holding cost": "holding_cost",
        "profit/loss": "profit_loss",
        "slr/ nslr": "slr_nslr",
        "slr/nslr": "slr_nslr",
        "authorizer time": "authorizer_time",
        "authorizer date": "authorizer_date",
        "authorizer name": "authorizer_name",
        "remarks": "remarks",
    }
)

REPO_DEAL_COLUMN_MAPPING: Mapping[str, str] = MappingProxyType(
    {
        "deal ref": "deal_no",
        "deal reference": "deal_no",
        "instrument": "instrument",
        "security name": "security_name",
        "isin": "isin",
        "deal date": "deal_date",
        "value date": "value_date",
        "maturity date": "maturity_date",
        "face value": "face_value",
        "leg1 price": "leg1_price",
        "leg2 price": "leg2_price",
        "repo rate": "rate",
        "repo period": "tenor",
        "settlement amt leg1": "settlement_amount_leg1",
        "settlement amt leg2": "settlement_amount_leg2",
        "settlement amount leg1": "settlement_amount_leg1",
        "settlement amount leg2": "settlement_amount_leg2",
        "counterparty": "counterparty",
        "remarks": "remarks",
    }
)

REPO_DEAL_OUTSTANDING_COLUMN_MAPPING: Mapping[str, str] = MappingProxyType(
    {
        **REPO_DEAL_COLUMN_MAPPING,
        "base settlement amnt leg1": "outstanding_amount_leg1",
        "base settlement amnt leg2": "outstanding_amount_leg2",
    }
)

MM_DEAL_COLUMN_MAPPING: Mapping[str, str] = MappingProxyType(
    {
        "deal ref": "deal_ref",
        "deal reference": "deal_ref",
        "instrument name": "instrument_name",
        "instrument type": "instrument_type",
        "deal date": "deal_date",
        "value date": "value_date",
        "maturity date": "maturity_date",
        "principal amt(acpt-plc)": "principal",
        "principal amount(acpt-plc)": "principal",
        "principal amt (acpt-plc)": "principal",
        "deal rate": "rate",
        "tenor": "tenor",
        "base eqvlnt(acpt-plc)": "base_eqvlnt",
        "base eqvlnt (acpt-plc)": "base_eqvlnt",
        "base equivalent(acpt-plc)": "base_eqvlnt",
        "base equivalent (acpt-plc)": "base_eqvlnt",
        "counterparty": "counterparty",
        "deal status": "status",
        "remarks": "remarks",
    }
)

MM_DEAL_OUTSTANDING_COLUMN_MAPPING: Mapping[str, str] = MappingProxyType(
    {
        "date": "date",
        "deal ref": "deal_ref",
        "deal reference": "deal_ref",
        "dealer": "dealer",
        "counterparty": "counterparty",
        "portfolio": "portfolio",
        "instrument name": "instrument_name",
        "instrument type": "instrument_type",
        "instrument category": "instrument_category",
        "deal date": "deal_date",
        "deal time": "deal_time",
        "value date": "value_date",
        "tenor": "tenor",
        "maturity date": "maturity_date",
        "operation type": "operation_type",
        "deal crncy": "deal_currency",
        "interest practice": "interest_practice",
        "interest basis": "interest_basis",
        "benchmark": "benchmark",
        "spread": "spread",
        "intrsettfreq": "interest_settlement_frequency",
        "intr fixing freq": "interest_fixing_frequency",
        "deal rate": "rate",
        "principal amt(acpt-plc)": "principal",
        "principal amt (acpt-plc)": "principal",
        "base eqvlnt(acpt-plc)": "base_eqvlnt",
        "base eqvlnt (acpt-plc)": "base_eqvlnt",
        "interest amount": "interest_amount",
        "(principal + interest)": "principal_plus_interest",
        "outstanding amount": "outstanding_amount",
        "deal status": "status",
        "remarks": "remarks",
        "last interest date": "last_interest_date",
        "next interest date": "next_interest_date",
        "accrued interest": "accrued_interest",
    }
)

FIMMDA_VAL_COLUMN_MAPPING: Mapping[str, str] = MappingProxyType(
    {
        "security name": "security_name",
        "identification no": "identification_no",
        "isin": "identification_no",
        "category": "category",
        "sub category": "sub_category",
        "portfolio": "portfolio",
        "face value": "face_value",
        "book value": "book_value",
        "market value": "market_value",
        "market price": "market_price",
        "wap": "wap",
        "mduration": "m_duration",
        "pvbp": "pvbp",
        "accrued interest": "accrued_interest",
        "value date": "value_date",
        "valuation date": "value_date",
    }
)

SLR_NDS_COLUMN_MAPPING: Mapping[str, str] = MappingProxyType(
    {
        "instrument name": "instrument_name",
        "isin": "isin",
        "own stock": "own_stock",
        "repo": "repo",
        "rbi refinance": "rbi_refinance",
        "collateral": "collateral",
        "lien": "lien",
        "sgf": "sgf",
        "derivative": "derivative",
        "treps": "treps",
        "deflt": "deflt",
        "total pledged": "total_pledged",
        "net position": "net_position",
        "value date": "value_date",
    }
)

PRICE_LIST_COLUMN_MAPPING: Mapping[str, str] = MappingProxyType(
    {
        "isin": "isin",
        "description": "description",
        "coupon": "coupon",
        "maturity(dd-mmm-yyyy)": "maturity_date",
        "maturity": "maturity_date",
        "price(rs)": "price",
        "price": "price",
        "ytm% p.a. (semi-annual)": "ytm",
        "ytm": "ytm",
    }
)

COLUMN_MAPPINGS: Mapping[SourceType, Mapping[str, str]] = MappingProxyType(
    {
        SourceType.IM_DEAL: IM_DEAL_COLUMN_MAPPING,
        SourceType.REPO_DEAL: REPO_DEAL_COLUMN_MAPPING,
        SourceType.REPO_DEAL_OUTSTANDING: REPO_DEAL_OUTSTANDING_COLUMN_MAPPING,
        SourceType.MM_DEAL: MM_DEAL_COLUMN_MAPPING,
        SourceType.MM_DEAL_OUTSTANDING: MM_DEAL_OUTSTANDING_COLUMN_MAPPING,
        SourceType.FIMMDA_VAL: FIMMDA_VAL_COLUMN_MAPPING,
        SourceType.SLR_NDS: SLR_NDS_COLUMN_MAPPING,
        SourceType.G_SEC: PRICE_LIST_COLUMN_MAPPING,
        SourceType.SDL: PRICE_LIST_COLUMN_MAPPING,
    }
)

NUMERIC_FIELDS = frozenset(
    {
        "quantity",
        "mkt_nominal_val",
        "price",
        "rate_yield",
        "book_value",
        "accrued_interest_days",
        "accrued_interest_amount",
        "settlement_amount",
        "brokerage_amount",
        "tax_other_charges",
        "holding_cost",
        "profit_loss",
        "face_value",
        "leg1_price",
        "leg2_price",
        "rate",
        "principal",
        "base_eqvlnt",
        "market_value",
        "market_price",
        "wap",
        "m_duration",
        "pvbp",
        "accrued_interest",
        "own_stock",
        "repo",
        "rbi_refinance",
        "collateral",
        "lien",
        "sgf",
        "derivative",
        "treps",
        "deflt",
        "total_pledged",
        "net_position",
        "settlement_amount_leg1",
        "settlement_amount_leg2",
        "outstanding_amount",
        "outstanding_amount_leg1",
        "outstanding_amount_leg2",
        "interest_amount",
        "principal_plus_interest",
        "spread",
        "coupon",
        "ytm",
    }
)

INTEGER_FIELDS = frozenset({"tenor"})

DATE_FIELDS = frozenset(
    {
        "value_date",
        "deal_date",
        "maturity_date",
        "authorizer_date",
        "date",
        "last_interest_date",
        "next_interest_date",
    }
)


def mapping_column_kind(field_name: str) -> ColumnKind:
    """Return the semantic column kind of one canonical field.

    Args:
        field_name: Canonical field name.

    Returns:
        ColumnKind: Declared kind; text when the field is not numeric, integer or date.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if field_name in INTEGER_FIELDS:
        return ColumnKind.INTEGER
    if field_name in NUMERIC_FIELDS:
        return ColumnKind.NUMERIC
    if field_name in DATE_FIELDS:
        return ColumnKind.DATE
    return ColumnKind.TEXT
