"""Shared workbook parsing flow for all source parsers.

Subclasses declare their header rules, required fields and sheet-selection
policy, and may override derivation hooks. Structural problems raise
`StructuralIngestionError`; row problems are counted and skipped.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import ClassVar, Mapping, Sequence

from pdr1_ledger.domain import SourceType, domain_build_record

from .column_mappings import COLUMN_MAPPINGS
from .header_mapper import (
    DEFAULT_HEADER_SCAN_ROW_LIMIT,
    HeaderRule,
    mapping_find_header_row,
    mapping_map_row,
    mapping_normalize_headers,
    mapping_row_contains_marker,
    mapping_row_is_empty,
)
from .interfaces import (
    ParsedSourceFile,
    RecordMappingError,
    StructuralIngestionError,
    WorkbookParserPort,
    WorkbookSheet,
)
from .workbook import mapping_is_summary_sheet, mapping_read_workbook

_log = logging.getLogger(__name__)

REPORT_END_MARKER = "*** END OF THE REPORT ***"


class SourceWorkbookParser(WorkbookParserPort):
    """Template parser: select sheets, detect headers, map and validate rows."""

    SOURCE_TYPE: ClassVar[SourceType]
    HEADER_RULES: ClassVar[tuple[HeaderRule, ...]]
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]]
    END_MARKER: ClassVar[str | None] = None
    # False: sheets without a header row are skipped instead of failing the workbook.
    HEADER_REQUIRED_PER_SHEET: ClassVar[bool] = True

    def __init__(
        self,
        scan_row_limit: int = DEFAULT_HEADER_SCAN_ROW_LIMIT,
        processing_date: date | None = None,
    ):
        """Initialize parser options.

        Args:
            scan_row_limit: Number of leading rows searched for the header row.
            processing_date: Fallback value date for sources without one; defaults to today in UTC.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when scan_row_limit is not positive.
        """

        if scan_row_limit < 1:
            raise ValueError("scan_row_limit must be >= 1")
        self._scan_row_limit = scan_row_limit
        self._processing_date = processing_date

    def mapping_source_type(self) -> SourceType:
        """Return the source type produced by this parser.

        Returns:
            SourceType: Source type key.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        return self.SOURCE_TYPE

    def mapping_parse_workbook(self, payload: bytes) -> ParsedSourceFile:
        """Parse one workbook payload into canonical records.

        Args:
            payload: Raw workbook bytes.

        Returns:
            ParsedSourceFile: Records plus total and error row counts.

        Raises:
            StructuralIngestionError: Raised when a required sheet or header row is missing.
        """

        sheets = mapping_read_workbook(payload, self.SOURCE_TYPE)
        candidate_sheets = self._mapping_select_sheets(sheets)

        mapped_rows: list[dict[str, object]] = []
        used_sheet_names: list[str] = []
        total_rows = 0
        error_rows = 0

        for sheet in candidate_sheets:
            header_index = mapping_find_header_row(sheet.rows, self.HEADER_RULES, self._scan_row_limit)
            if header_index < 0:
                if self.HEADER_REQUIRED_PER_SHEET:
                    raise StructuralIngestionError(
                        f"Could not find header row in {self.SOURCE_TYPE.value} sheet '{sheet.name}'",
                        source_type=self.SOURCE_TYPE,
                        sheet_name=sheet.name,
                    )
                _log.info("No header row in %s sheet %r; sheet skipped", self.SOURCE_TYPE.value, sheet.name)
                continue

            headers = mapping_normalize_headers(sheet.rows[header_index])
            column_mapping = self._mapping_column_mapping_for_sheet(sheet, headers)
            if column_mapping is None:
                continue
            used_sheet_names.append(sheet.name)

            for row_offset, row in enumerate(sheet.rows[header_index + 1 :]):
                if self.END_MARKER is not None and mapping_row_contains_marker(row, self.END_MARKER):
                    break
                if mapping_row_is_empty(row):
                    continue
                total_rows += 1
                row_number = header_index + row_offset + 2
                try:
                    row_values = self._mapping_derive_fields(mapping_map_row(headers, row, column_mapping))
                    self._mapping_require_fields(row_values)
                except (RecordMappingError, TypeError, ArithmeticError) as error:
                    error_rows += 1
                    _log.warning(
                        "Skipping %s row %d in sheet %r: %s",
                        self.SOURCE_TYPE.value,
                        row_number,
                        sheet.name,
                        error,
                    )
                    continue
                mapped_rows.append(row_values)

        records = tuple(
            domain_build_record(self.SOURCE_TYPE, row_values)
            for row_values in self._mapping_finalize_rows(mapped_rows)
        )
        _log.info(
            "Parsed %s workbook: %d records from %d rows (%d errors)",
            self.SOURCE_TYPE.value,
            len(records),
            total_rows,
            error_rows,
        )
        return ParsedSourceFile(
            source_type=self.SOURCE_TYPE,
            records=records,
            total_rows=total_rows,
            error_rows=error_rows,
            sheet_names=tuple(used_sheet_names),
        )

    def _mapping_select_sheets(self, sheets: tuple[WorkbookSheet, ...]) -> tuple[WorkbookSheet, ...]:
        """Select the sheets to scan; defaults to every non-summary sheet.

        Args:
            sheets: All workbook sheets.

        Returns:
            tuple[WorkbookSheet, ...]: Sheets to scan in order.

        Raises:
            StructuralIngestionError: Raised by subclasses when a required sheet is missing.
        """

        return tuple(sheet for sheet in sheets if not mapping_is_summary_sheet(sheet))

    def _mapping_column_mapping_for_sheet(
        self,
        sheet: WorkbookSheet,
        headers: Sequence[str],
    ) -> Mapping[str, str] | None:
        """Return the header table for one sheet, or None to skip the sheet."""

        _ = (sheet, headers)
        return COLUMN_MAPPINGS[self.SOURCE_TYPE]

    def _mapping_derive_fields(self, row_values: dict[str, object]) -> dict[str, object]:
        """Apply source-specific derived-field rules to one mapped row."""

        return row_values

    def _mapping_require_fields(self, row_values: dict[str, object]) -> None:
        """Reject rows missing any required field.

        Args:
            row_values: Mapped and derived row values.

        Returns:
            None: Validation succeeds silently.

        Raises:
            RecordMappingError: Raised when a required field is missing.
        """

        missing_fields = [name for name in self.REQUIRED_FIELDS if row_values.get(name) in (None, "")]
        if missing_fields:
            raise RecordMappingError(f"missing required fields: {', '.join(missing_fields)}")

    def _mapping_finalize_rows(self, mapped_rows: list[dict[str, object]]) -> list[dict[str, object]]:
        """Apply workbook-level completion rules before records are built."""

        return mapped_rows

    def _mapping_fill_value_date(self, mapped_rows: list[dict[str, object]]) -> list[dict[str, object]]:
        """Fill missing value dates from the first dated row, else the processing date.

        Args:
            mapped_rows: Accepted row values.

        Returns:
            list[dict[str, object]]: Rows with `value_date` populated.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        fallback_date = next(
            (row_values["value_date"] for row_values in mapped_rows if row_values.get("value_date") is not None),
            None,
        )
        if fallback_date is None:
            fallback_date = self._processing_date or datetime.now(timezone.utc).date()
        return [
            row_values if row_values.get("value_date") is not None else {**row_values, "value_date": fallback_date}
            for row_values in mapped_rows
        ]

    def _mapping_require_sheet(self, sheets: tuple[WorkbookSheet, ...], sheet: WorkbookSheet | None, label: str):
        """Return a located required sheet or raise a structural error.

        Args:
            sheets: All workbook sheets, for diagnostics.
            sheet: Located sheet or None.
            label: Expected sheet name.

        Returns:
            WorkbookSheet: The located sheet.

        Raises:
            StructuralIngestionError: Raised when the sheet is missing.
        """

        if sheet is None:
            available_names = ", ".join(candidate.name for candidate in sheets)
            raise StructuralIngestionError(
                f"{label} sheet not found in {self.SOURCE_TYPE.value} workbook (sheets: {available_names})",
                source_type=self.SOURCE_TYPE,
                sheet_name=label,
            )
        return sheet
