"""Tests for canonical record and calculated result persistence on in-memory SQLite."""

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import Engine

from pdr1_ledger.db import (
    CalculatedResultRecord,
    SQLAlchemyCalculatedResultService,
    SQLAlchemyCanonicalStoreService,
    SQLAlchemyUploadBatchService,
    db_create_engine,
    db_create_schema,
)
from pdr1_ledger.domain import SourceType
from pdr1_ledger.domain.records import GSecRecord, IMDealRecord, RepoDealRecord


def _store_build_engine() -> Engine:
    """Create an isolated in-memory database with the application schema."""

    engine = db_create_engine("sqlite://")
    db_create_schema(engine)
    return engine


def _store_im_deal(quantity: float) -> IMDealRecord:
    return IMDealRecord(
        portfolio="FVLG1",
        category="CENTRAL GOVT BONDS",
        value_date=date(2024, 4, 1),
        opn_type="BUY",
        quantity=quantity,
    )


def test_db_canonical_replace_records_is_idempotent_per_batch() -> None:
    """Replace a source's records for one batch without touching other batches.

    Returns:
        None: Assertions validate replace semantics.

    Raises:
        AssertionError: Raised when stale records survive a replace.
    """

    engine = _store_build_engine()
    batch_service = SQLAlchemyUploadBatchService(engine)
    store = SQLAlchemyCanonicalStoreService(engine)
    first_batch_id = batch_service.db_upload_batch_create(uploaded_by="TEST_PD").batch_id
    second_batch_id = batch_service.db_upload_batch_create(uploaded_by="TEST_PD").batch_id

    first_records = [_store_im_deal(1), _store_im_deal(2)]
    assert store.db_canonical_replace_records(first_batch_id, SourceType.IM_DEAL, first_records) == 2
    assert store.db_canonical_replace_records(second_batch_id, SourceType.IM_DEAL, [_store_im_deal(3)]) == 1
    assert store.db_canonical_replace_records(first_batch_id, SourceType.IM_DEAL, [_store_im_deal(4)]) == 1

    assert store.db_canonical_count_records(first_batch_id, SourceType.IM_DEAL) == 1
    assert store.db_canonical_count_records(second_batch_id, SourceType.IM_DEAL) == 1
    assert store.db_canonical_count_records(first_batch_id, SourceType.REPO_DEAL) == 0


def test_db_canonical_replace_records_rejects_mismatched_record_types() -> None:
    """Reject records whose contract does not belong to the target source."""

    engine = _store_build_engine()
    batch_id = SQLAlchemyUploadBatchService(engine).db_upload_batch_create(uploaded_by="TEST_PD").batch_id
    store = SQLAlchemyCanonicalStoreService(engine)
    repo_record = RepoDealRecord(instrument="Market Repo", value_date=date(2024, 4, 2))

    with pytest.raises(ValueError):
        store.db_canonical_replace_records(batch_id, SourceType.IM_DEAL, [repo_record])


def test_db_canonical_reference_records_keep_first_isin_across_batches() -> None:
    """Skip price-list ISINs already stored by any batch.

    Returns:
        None: Assertions validate first-write-wins reference semantics.

    Raises:
        AssertionError: Raised when duplicate ISINs are inserted.
    """

    engine = _store_build_engine()
    batch_service = SQLAlchemyUploadBatchService(engine)
    store = SQLAlchemyCanonicalStoreService(engine)
    first_batch_id = batch_service.db_upload_batch_create(uploaded_by="TEST_PD").batch_id
    second_batch_id = batch_service.db_upload_batch_create(uploaded_by="TEST_PD").batch_id

    first_inserted = store.db_canonical_insert_reference_records(
        first_batch_id,
        SourceType.G_SEC,
        [GSecRecord(isin="IN0020230010", coupon=7.26, price=101.25)],
    )
    second_inserted = store.db_canonical_insert_reference_records(
        second_batch_id,
        SourceType.G_SEC,
        [
            GSecRecord(isin="IN0020230010", coupon=7.26, price=99.0),
            GSecRecord(isin="IN0020230028", coupon=7.18, price=100.5),
        ],
    )

    assert first_inserted == 1
    assert second_inserted == 1
    assert store.db_canonical_count_records(second_batch_id, SourceType.G_SEC) == 1

    with pytest.raises(ValueError):
        store.db_canonical_insert_reference_records(first_batch_id, SourceType.IM_DEAL, [_store_im_deal(1)])


def test_db_calculated_results_keep_first_value_per_key() -> None:
    """Persist line-item values once per (batch, section, date) and list them back."""

    engine = _store_build_engine()
    batch_id = SQLAlchemyUploadBatchService(engine).db_upload_batch_create(uploaded_by="TEST_PD").batch_id
    service = SQLAlchemyCalculatedResultService(engine)

    inserted_count = service.db_calculated_result_save(
        [
            CalculatedResultRecord(batch_id=batch_id, section_id="1A1", value_date="01-Apr-2024", value=8.0),
            CalculatedResultRecord(batch_id=batch_id, section_id="1A1", value_date="01-Apr-2024", value=9.0),
            CalculatedResultRecord(batch_id=batch_id, section_id="1C1", value_date="02-Apr-2024", value=9.95),
        ]
    )
    repeated_count = service.db_calculated_result_save(
        [CalculatedResultRecord(batch_id=batch_id, section_id="1A1", value_date="01-Apr-2024", value=1.0)]
    )

    assert inserted_count == 2
    assert repeated_count == 0
    assert service.db_calculated_result_list(batch_id) == [
        CalculatedResultRecord(batch_id=batch_id, section_id="1A1", value_date="01-Apr-2024", value=8.0),
        CalculatedResultRecord(batch_id=batch_id, section_id="1C1", value_date="02-Apr-2024", value=9.95),
    ]
    assert service.db_calculated_result_save([]) == 0
