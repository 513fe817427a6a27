"""SQLAlchemy Core schema shared by db services and Alembic migrations.

Canonical tables hold one column per canonical record field and are partitioned
by `upload_batch_id`. Monetary columns are read back as floats.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping
from uuid import uuid4

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from pdr1_ledger.domain import BATCH_STATUSES, SourceType

db_metadata = sa.MetaData()

JSON_DOCUMENT = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")


def _db_amount(name: str) -> sa.Column:
    """Build one nullable monetary or ratio column."""

    return sa.Column(name, sa.Numeric(asdecimal=False), nullable=True)


def _db_text(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.Text(), nullable=nullable)


def _db_date(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.Date(), nullable=nullable)


def _db_record_key_columns() -> list[sa.Column]:
    """Build the surrogate key and batch foreign key shared by canonical tables."""

    return [
        sa.Column("record_id", sa.Uuid(), primary_key=True, default=uuid4),
        sa.Column(
            "upload_batch_id",
            sa.Uuid(),
            sa.ForeignKey("upload_batch.batch_id", ondelete="CASCADE"),
            nullable=False,
        ),
    ]


def db_source_uploaded_column(source_type: SourceType) -> str:
    """Return the upload-flag column name of one source type on `upload_batch`."""

    return f"{source_type.value.lower()}_uploaded"


_batch_status_values = ", ".join(f"'{status}'" for status in BATCH_STATUSES)

upload_batch_table = sa.Table(
    "upload_batch",
    db_metadata,
    sa.Column("batch_id", sa.Uuid(), primary_key=True, default=uuid4),
    sa.Column("status", sa.Text(), nullable=False),
    sa.Column("uploaded_by", sa.Text(), nullable=False),
    *[
        sa.Column(db_source_uploaded_column(source_type), sa.Boolean(), nullable=False, default=False)
        for source_type in SourceType
    ],
    sa.Column("total_records", sa.Integer(), nullable=False, default=0),
    sa.Column("processed_records", sa.Integer(), nullable=False, default=0),
    sa.Column("error_records", sa.Integer(), nullable=False, default=0),
    sa.Column("processing_started_at_utc", sa.DateTime(timezone=True), nullable=True),
    sa.Column("processing_completed_at_utc", sa.DateTime(timezone=True), nullable=True),
    sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False),
    sa.Column("errors", JSON_DOCUMENT, nullable=True),
    sa.Column("diagnostics", JSON_DOCUMENT, nullable=True),
    sa.CheckConstraint(f"status in ({_batch_status_values})", name="ck_upload_batch_status"),
)
sa.Index("ix_upload_batch_created_at_utc", upload_batch_table.c.created_at_utc)

im_deal_table = sa.Table(
    "im_deal",
    db_metadata,
    *_db_record_key_columns(),
    _db_text("portfolio", nullable=False),
    _db_text("category", nullable=False),
    _db_date("value_date", nullable=False),
    _db_text("security_name"),
    _db_text("identification_no"),
    _db_text("instrument_type"),
    _db_text("deal_ref"),
    _db_text("sub_category"),
    _db_text("counterparty"),
    _db_date("deal_date"),
    _db_text("deal_time"),
    _db_date("maturity_date"),
    _db_text("opn_type"),
    _db_amount("quantity"),
    _db_amount("mkt_nominal_val"),
    _db_amount("price"),
    _db_amount("rate_yield"),
    _db_amount("book_value"),
    _db_amount("accrued_interest_days"),
    _db_amount("accrued_interest_amount"),
    _db_text("ccy"),
    _db_amount("settlement_amount"),
    _db_text("dealer"),
    _db_text("broker_name"),
    _db_amount("brokerage_amount"),
    _db_amount("tax_other_charges"),
    _db_amount("holding_cost"),
    _db_amount("profit_loss"),
    _db_text("slr_nslr"),
    _db_text("authorizer_time"),
    _db_date("authorizer_date"),
    _db_text("authorizer_name"),
    _db_text("remarks"),
)
sa.Index("ix_im_deal_batch_value_date", im_deal_table.c.upload_batch_id, im_deal_table.c.value_date)


def _db_repo_columns(instrument_nullable: bool) -> list[sa.Column]:
    """Build the field columns shared by repo deal and repo outstanding tables."""

    return [
        _db_text("instrument", nullable=instrument_nullable),
        _db_date("value_date", nullable=False),
        _db_text("deal_no"),
        _db_text("security_name"),
        _db_text("isin"),
        _db_date("deal_date"),
        _db_date("maturity_date"),
        _db_amount("face_value"),
        _db_amount("leg1_price"),
        _db_amount("leg2_price"),
        _db_amount("rate"),
        sa.Column("tenor", sa.Integer(), nullable=True),
        _db_amount("settlement_amount_leg1"),
        _db_amount("settlement_amount_leg2"),
        _db_text("counterparty"),
        _db_text("remarks"),
    ]


repo_deal_table = sa.Table(
    "repo_deal",
    db_metadata,
    *_db_record_key_columns(),
    *_db_repo_columns(instrument_nullable=False),
)
sa.Index("ix_repo_deal_batch_value_date", repo_deal_table.c.upload_batch_id, repo_deal_table.c.value_date)

repo_deal_outstanding_table = sa.Table(
    "repo_deal_outstanding",
    db_metadata,
    *_db_record_key_columns(),
    *_db_repo_columns(instrument_nullable=True),
    _db_amount("outstanding_amount_leg1"),
    _db_amount("outstanding_amount_leg2"),
)
sa.Index(
    "ix_repo_deal_outstanding_batch_value_date",
    repo_deal_outstanding_table.c.upload_batch_id,
    repo_deal_outstanding_table.c.value_date,
)

mm_deal_table = sa.Table(
    "mm_deal",
    db_metadata,
    *_db_record_key_columns(),
    _db_text("instrument_name", nullable=False),
    _db_date("value_date", nullable=False),
    _db_text("deal_ref"),
    _db_text("instrument_type"),
    _db_date("deal_date"),
    _db_date("maturity_date"),
    _db_amount("principal"),
    _db_amount("rate"),
    sa.Column("tenor", sa.Integer(), nullable=True),
    _db_amount("base_eqvlnt"),
    _db_text("counterparty"),
    _db_text("status"),
    _db_text("remarks"),
)
sa.Index("ix_mm_deal_batch_value_date", mm_deal_table.c.upload_batch_id, mm_deal_table.c.value_date)

mm_deal_outstanding_table = sa.Table(
    "mm_deal_outstanding",
    db_metadata,
    *_db_record_key_columns(),
    _db_text("instrument_name", nullable=False),
    _db_date("date", nullable=False),
    _db_text("deal_ref"),
    _db_text("dealer"),
    _db_text("counterparty"),
    _db_text("portfolio"),
    _db_text("instrument_type"),
    _db_text("instrument_category"),
    _db_date("deal_date"),
    _db_text("deal_time"),
    _db_date("value_date"),
    sa.Column("tenor", sa.Integer(), nullable=True),
    _db_date("maturity_date"),
    _db_text("operation_type"),
    _db_text("deal_currency"),
    _db_text("interest_practice"),
    _db_text("interest_basis"),
    _db_text("benchmark"),
    _db_amount("spread"),
    _db_text("interest_settlement_frequency"),
    _db_text("interest_fixing_frequency"),
    _db_amount("rate"),
    _db_amount("principal"),
    _db_amount("base_eqvlnt"),
    _db_amount("interest_amount"),
    _db_amount("principal_plus_interest"),
    _db_text("status"),
    _db_text("remarks"),
    _db_date("last_interest_date"),
    _db_date("next_interest_date"),
    _db_amount("accrued_interest"),
    _db_amount("outstanding_amount"),
)
sa.Index(
    "ix_mm_deal_outstanding_batch_date",
    mm_deal_outstanding_table.c.upload_batch_id,
    mm_deal_outstanding_table.c.date,
)

fimmda_val_table = sa.Table(
    "fimmda_val",
    db_metadata,
    *_db_record_key_columns(),
    _db_text("identification_no", nullable=False),
    _db_text("portfolio", nullable=False),
    _db_date("value_date", nullable=False),
    _db_text("security_name"),
    _db_text("category"),
    _db_text("sub_category"),
    _db_amount("face_value"),
    _db_amount("book_value"),
    _db_amount("market_value"),
    _db_amount("market_price"),
    _db_amount("wap"),
    _db_amount("m_duration"),
    _db_amount("pvbp"),
    _db_amount("accrued_interest"),
)
sa.Index("ix_fimmda_val_batch_value_date", fimmda_val_table.c.upload_batch_id, fimmda_val_table.c.value_date)
sa.Index(
    "ix_fimmda_val_batch_identification_no",
    fimmda_val_table.c.upload_batch_id,
    fimmda_val_table.c.identification_no,
)

slr_nds_table = sa.Table(
    "slr_nds",
    db_metadata,
    *_db_record_key_columns(),
    _db_text("isin", nullable=False),
    _db_text("instrument_name", nullable=False),
    _db_date("value_date", nullable=False),
    _db_amount("own_stock"),
    _db_amount("repo"),
    _db_amount("rbi_refinance"),
    _db_amount("collateral"),
    _db_amount("lien"),
    _db_amount("sgf"),
    _db_amount("derivative"),
    _db_amount("treps"),
    _db_amount("deflt"),
    _db_amount("total_pledged"),
    _db_amount("net_position"),
)
sa.Index("ix_slr_nds_batch_value_date", slr_nds_table.c.upload_batch_id, slr_nds_table.c.value_date)
sa.Index("ix_slr_nds_batch_isin", slr_nds_table.c.upload_batch_id, slr_nds_table.c.isin)


def _db_price_list_table(table_name: str) -> sa.Table:
    """Build one first-write-wins reference price-list table keyed by unique ISIN."""

    return sa.Table(
        table_name,
        db_metadata,
        *_db_record_key_columns(),
        _db_text("isin", nullable=False),
        _db_amount("coupon"),
        _db_amount("price"),
        _db_text("description"),
        _db_date("maturity_date"),
        _db_amount("ytm"),
        sa.UniqueConstraint("isin", name=f"uq_{table_name}_isin"),
    )


gsec_valuation_table = _db_price_list_table("gsec_valuation")
sdl_valuation_table = _db_price_list_table("sdl_valuation")

calculated_result_table = sa.Table(
    "calculated_result",
    db_metadata,
    sa.Column("result_id", sa.Uuid(), primary_key=True, default=uuid4),
    sa.Column(
        "batch_id",
        sa.Uuid(),
        sa.ForeignKey("upload_batch.batch_id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column("section_id", sa.Text(), nullable=False),
    sa.Column("value_date", sa.Text(), nullable=False),
    sa.Column("value", sa.Numeric(asdecimal=False), nullable=False),
    sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False),
    sa.UniqueConstraint("batch_id", "section_id", "value_date", name="uq_calculated_result_batch_section_date"),
)

SOURCE_TABLES: Mapping[SourceType, sa.Table] = MappingProxyType(
    {
        SourceType.IM_DEAL: im_deal_table,
        SourceType.REPO_DEAL: repo_deal_table,
        SourceType.REPO_DEAL_OUTSTANDING: repo_deal_outstanding_table,
        SourceType.MM_DEAL: mm_deal_table,
        SourceType.MM_DEAL_OUTSTANDING: mm_deal_outstanding_table,
        SourceType.FIMMDA_VAL: fimmda_val_table,
        SourceType.SLR_NDS: slr_nds_table,
        SourceType.G_SEC: gsec_valuation_table,
        SourceType.SDL: sdl_valuation_table,
    }
)
