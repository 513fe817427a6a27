"""PDR1 report ledger schema baseline

Revision ID: 20261019_01
Revises: None
Create Date: 2026-10-19
"""
# pylint: disable=no-member,invalid-name,wrong-import-order

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "20261019_01"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_SOURCE_FLAG_COLUMNS = (
    "im_deal_uploaded",
    "repo_deal_uploaded",
    "mm_deal_uploaded",
    "mm_deal_outstanding_uploaded",
    "repo_deal_outstanding_uploaded",
    "fimmda_val_uploaded",
    "slr_nds_uploaded",
    "g_sec_uploaded",
    "sdl_uploaded",
)


def _amount(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(), nullable=True)


def _text(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.Text(), nullable=nullable)


def _date(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.Date(), nullable=nullable)


def _record_keys() -> list[sa.Column]:
    return [
        sa.Column("record_id", sa.Uuid(), primary_key=True),
        sa.Column(
            "upload_batch_id",
            sa.Uuid(),
            sa.ForeignKey("upload_batch.batch_id", ondelete="CASCADE"),
            nullable=False,
        ),
    ]


def _repo_columns(instrument_nullable: bool) -> list[sa.Column]:
    return [
        _text("instrument", nullable=instrument_nullable),
        _date("value_date", nullable=False),
        _text("deal_no"),
        _text("security_name"),
        _text("isin"),
        _date("deal_date"),
        _date("maturity_date"),
        _amount("face_value"),
        _amount("leg1_price"),
        _amount("leg2_price"),
        _amount("rate"),
        sa.Column("tenor", sa.Integer(), nullable=True),
        _amount("settlement_amount_leg1"),
        _amount("settlement_amount_leg2"),
        _text("counterparty"),
        _text("remarks"),
    ]


def _price_list_columns(table_name: str) -> list:
    return [
        *_record_keys(),
        _text("isin", nullable=False),
        _amount("coupon"),
        _amount("price"),
        _text("description"),
        _date("maturity_date"),
        _amount("ytm"),
        sa.UniqueConstraint("isin", name=f"uq_{table_name}_isin"),
    ]


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "upload_batch",
        sa.Column("batch_id", sa.Uuid(), primary_key=True),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("uploaded_by", sa.Text(), nullable=False),
        *[
            sa.Column(column_name, sa.Boolean(), nullable=False, server_default=sa.false())
            for column_name in _SOURCE_FLAG_COLUMNS
        ],
        sa.Column("total_records", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("processed_records", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("error_records", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("processing_started_at_utc", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processing_completed_at_utc", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("errors", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("diagnostics", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.CheckConstraint(
            "status in ('uploading', 'processing', 'completed', 'failed')",
            name="ck_upload_batch_status",
        ),
    )
    op.create_index("ix_upload_batch_created_at_utc", "upload_batch", ["created_at_utc"])

    op.create_table(
        "im_deal",
        *_record_keys(),
        _text("portfolio", nullable=False),
        _text("category", nullable=False),
        _date("value_date", nullable=False),
        _text("security_name"),
        _text("identification_no"),
        _text("instrument_type"),
        _text("deal_ref"),
        _text("sub_category"),
        _text("counterparty"),
        _date("deal_date"),
        _text("deal_time"),
        _date("maturity_date"),
        _text("opn_type"),
        _amount("quantity"),
        _amount("mkt_nominal_val"),
        _amount("price"),
        _amount("rate_yield"),
        _amount("book_value"),
        _amount("accrued_interest_days"),
        _amount("accrued_interest_amount"),
        _text("ccy"),
        _amount("settlement_amount"),
        _text("dealer"),
        _text("broker_name"),
        _amount("brokerage_amount"),
        _amount("tax_other_charges"),
        _amount("holding_cost"),
        _amount("profit_loss"),
        _text("slr_nslr"),
        _text("authorizer_time"),
        _date("authorizer_date"),
        _text("authorizer_name"),
        _text("remarks"),
    )
    op.create_index("ix_im_deal_batch_value_date", "im_deal", ["upload_batch_id", "value_date"])

    op.create_table("repo_deal", *_record_keys(), *_repo_columns(instrument_nullable=False))
    op.create_index("ix_repo_deal_batch_value_date", "repo_deal", ["upload_batch_id", "value_date"])

    op.create_table(
        "repo_deal_outstanding",
        *_record_keys(),
        *_repo_columns(instrument_nullable=True),
        _amount("outstanding_amount_leg1"),
        _amount("outstanding_amount_leg2"),
    )
    op.create_index(
        "ix_repo_deal_outstanding_batch_value_date",
        "repo_deal_outstanding",
        ["upload_batch_id", "value_date"],
    )

    op.create_table(
        "mm_deal",
        *_record_keys(),
        _text("instrument_name", nullable=False),
        _date("value_date", nullable=False),
        _text("deal_ref"),
        _text("instrument_type"),
        _date("deal_date"),
        _date("maturity_date"),
        _amount("principal"),
        _amount("rate"),
        sa.Column("tenor", sa.Integer(), nullable=True),
        _amount("base_eqvlnt"),
        _text("counterparty"),
        _text("status"),
        _text("remarks"),
    )
    op.create_index("ix_mm_deal_batch_value_date", "mm_deal", ["upload_batch_id", "value_date"])

    op.create_table(
        "mm_deal_outstanding",
        *_record_keys(),
        _text("instrument_name", nullable=False),
        _date("date", nullable=False),
        _text("deal_ref"),
        _text("dealer"),
        _text("counterparty"),
        _text("portfolio"),
        _text("instrument_type"),
        _text("instrument_category"),
        _date("deal_date"),
        _text("deal_time"),
        _date("value_date"),
        sa.Column("tenor", sa.Integer(), nullable=True),
        _date("maturity_date"),
        _text("operation_type"),
        _text("deal_currency"),
        _text("interest_practice"),
        _text("interest_basis"),
        _text("benchmark"),
        _amount("spread"),
        _text("interest_settlement_frequency"),
        _text("interest_fixing_frequency"),
        _amount("rate"),
        _amount("principal"),
        _amount("base_eqvlnt"),
        _amount("interest_amount"),
        _amount("principal_plus_interest"),
        _text("status"),
        _text("remarks"),
        _date("last_interest_date"),
        _date("next_interest_date"),
        _amount("accrued_interest"),
        _amount("outstanding_amount"),
    )
    op.create_index("ix_mm_deal_outstanding_batch_date", "mm_deal_outstanding", ["upload_batch_id", "date"])

    op.create_table(
        "fimmda_val",
        *_record_keys(),
        _text("identification_no", nullable=False),
        _text("portfolio", nullable=False),
        _date("value_date", nullable=False),
        _text("security_name"),
        _text("category"),
        _text("sub_category"),
        _amount("face_value"),
        _amount("book_value"),
        _amount("market_value"),
        _amount("market_price"),
        _amount("wap"),
        _amount("m_duration"),
        _amount("pvbp"),
        _amount("accrued_interest"),
    )
    op.create_index("ix_fimmda_val_batch_value_date", "fimmda_val", ["upload_batch_id", "value_date"])
    op.create_index(
        "ix_fimmda_val_batch_identification_no",
        "fimmda_val",
        ["upload_batch_id", "identification_no"],
    )

    op.create_table(
        "slr_nds",
        *_record_keys(),
        _text("isin", nullable=False),
        _text("instrument_name", nullable=False),
        _date("value_date", nullable=False),
        _amount("own_stock"),
        _amount("repo"),
        _amount("rbi_refinance"),
        _amount("collateral"),
        _amount("lien"),
        _amount("sgf"),
        _amount("derivative"),
        _amount("treps"),
        _amount("deflt"),
        _amount("total_pledged"),
        _amount("net_position"),
    )
    op.create_index("ix_slr_nds_batch_value_date", "slr_nds", ["upload_batch_id", "value_date"])
    op.create_index("ix_slr_nds_batch_isin", "slr_nds", ["upload_batch_id", "isin"])

    op.create_table("gsec_valuation", *_price_list_columns("gsec_valuation"))
    op.create_table("sdl_valuation", *_price_list_columns("sdl_valuation"))

    op.create_table(
        "calculated_result",
        sa.Column("result_id", sa.Uuid(), primary_key=True),
        sa.Column(
            "batch_id",
            sa.Uuid(),
            sa.ForeignKey("upload_batch.batch_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("section_id", sa.Text(), nullable=False),
        sa.Column("value_date", sa.Text(), nullable=False),
        sa.Column("value", sa.Numeric(), nullable=False),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("batch_id", "section_id", "value_date", name="uq_calculated_result_batch_section_date"),
    )


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_table("calculated_result")
    op.drop_table("sdl_valuation")
    op.drop_table("gsec_valuation")
    op.drop_index("ix_slr_nds_batch_isin", table_name="slr_nds")
    op.drop_index("ix_slr_nds_batch_value_date", table_name="slr_nds")
    op.drop_table("slr_nds")
    op.drop_index("ix_fimmda_val_batch_identification_no", table_name="fimmda_val")
    op.drop_index("ix_fimmda_val_batch_value_date", table_name="fimmda_val")
    op.drop_table("fimmda_val")
    op.drop_index("ix_mm_deal_outstanding_batch_date", table_name="mm_deal_outstanding")
    op.drop_table("mm_deal_outstanding")
    op.drop_index("ix_mm_deal_batch_value_date", table_name="mm_deal")
    op.drop_table("mm_deal")
    op.drop_index("ix_repo_deal_outstanding_batch_value_date", table_name="repo_deal_outstanding")
    op.drop_table("repo_deal_outstanding")
    op.drop_index("ix_repo_deal_batch_value_date", table_name="repo_deal")
    op.drop_table("repo_deal")
    op.drop_index("ix_im_deal_batch_value_date", table_name="im_deal")
    op.drop_table("im_deal")
    op.drop_index("ix_upload_batch_created_at_utc", table_name="upload_batch")
    op.drop_table("upload_batch")
