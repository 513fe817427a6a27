"""Typed interfaces for workbook mapping responsibilities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from pdr1_ledger.domain import CanonicalRecord, SourceType


class StructuralIngestionError(ValueError):
    """Raised when a workbook lacks a required sheet or a header row.

    Attributes:
        source_type: Source type of the rejected workbook.
        sheet_name: Offending sheet name when one applies.
    """

    def __init__(self, message: str, source_type: SourceType, sheet_name: str | None = None):
        super().__init__(message)
        self.source_type = source_type
        self.sheet_name = sheet_name


class RecordMappingError(ValueError):
    """Raised for one data row that cannot become a canonical record."""


class UnknownSourceTypeError(ValueError):
    """Raised when a file is submitted under an unsupported source key."""


@dataclass(frozen=True)
class WorkbookSheet:
    """One worksheet as a dense row matrix.

    Attributes:
        name: Sheet title as exported.
        rows: Cell values row by row; trailing empty cells may be absent.
    """

    name: str
    rows: tuple[tuple[object, ...], ...]


@dataclass(frozen=True)
class ParsedSourceFile:
    """Mapping outcome for one uploaded workbook.

    Attributes:
        source_type: Source type the workbook was parsed as.
        records: Canonical records ready for persistence.
        total_rows: Non-empty data rows seen below header rows.
        error_rows: Rows rejected by required-field checks or derivation failures.
        sheet_names: Sheets that contributed a header row.
    """

    source_type: SourceType
    records: tuple[CanonicalRecord, ...]
    total_rows: int
    error_rows: int
    sheet_names: tuple[str, ...]


class WorkbookParserPort(Protocol):
    """Port definition for one source-specific workbook parser."""

    def mapping_source_type(self) -> SourceType:
        """Return the source type produced by this parser.

        Returns:
            SourceType: Source type key.

        Raises:
            RuntimeError: Raised when parser metadata is unavailable.
        """

    def mapping_parse_workbook(self, payload: bytes) -> ParsedSourceFile:
        """Parse one workbook payload into canonical records.

        Args:
            payload: Raw workbook bytes.

        Returns:
            ParsedSourceFile: Records plus row counts.

        Raises:
            StructuralIngestionError: Raised when a required sheet or header row is missing.
        """
