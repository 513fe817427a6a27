"""Single-workbook ingestion: parse one file and persist its canonical records."""

from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

from pdr1_ledger.db import CanonicalStorePort
from pdr1_ledger.domain import REFERENCE_SOURCE_TYPES, SourceType
from pdr1_ledger.mapping import mapping_parse_source_file
from pdr1_ledger.mapping.header_mapper import DEFAULT_HEADER_SCAN_ROW_LIMIT

from .interfaces import SourceIngestionCounts

_log = logging.getLogger(__name__)


def job_ingest_source_file(
    source_type: SourceType,
    payload: bytes,
    batch_id: UUID,
    canonical_store: CanonicalStorePort,
    scan_row_limit: int = DEFAULT_HEADER_SCAN_ROW_LIMIT,
    processing_date: date | None = None,
) -> SourceIngestionCounts:
    """Parse one workbook and persist its records under one batch.

    Deal and position sources replace whatever the batch already holds for
    the source type. G-Sec and SDL price lists keep the first record stored
    per ISIN; records skipped that way still count as processed.

    Args:
        source_type: Source type of the workbook.
        payload: Raw workbook bytes.
        batch_id: Owning batch identifier.
        canonical_store: Canonical record persistence service.
        scan_row_limit: Number of leading rows searched for header rows.
        processing_date: Fallback value date for sources without one.

    Returns:
        SourceIngestionCounts: Row counts of the workbook.

    Raises:
        StructuralIngestionError: Raised when a required sheet or header row is missing.
        RuntimeError: Raised when persistence fails.
    """

    parsed_file = mapping_parse_source_file(
        source_type,
        payload,
        scan_row_limit=scan_row_limit,
        processing_date=processing_date,
    )
    if source_type in REFERENCE_SOURCE_TYPES:
        canonical_store.db_canonical_insert_reference_records(batch_id, source_type, parsed_file.records)
    else:
        canonical_store.db_canonical_replace_records(batch_id, source_type, parsed_file.records)

    counts = SourceIngestionCounts(
        total=parsed_file.total_rows,
        processed=len(parsed_file.records),
        error=parsed_file.error_rows,
    )
    _log.info(
        "Ingested %s for batch %s from sheets %s: total=%d processed=%d error=%d",
        source_type.value,
        batch_id,
        list(parsed_file.sheet_names),
        counts.total,
        counts.processed,
        counts.error,
    )
    return counts
