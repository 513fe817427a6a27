"""Workbook reading into plain row matrices."""

from __future__ import annotations

import logging
from io import BytesIO
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from pdr1_ledger.domain import SourceType

from .interfaces import StructuralIngestionError, WorkbookSheet

_log = logging.getLogger(__name__)


def mapping_read_workbook(payload: bytes, source_type: SourceType) -> tuple[WorkbookSheet, ...]:
    """Read every worksheet of one `.xlsx` payload as cached cell values.

    Formula cells yield their last computed value; date-formatted cells yield
    `datetime` objects.

    Args:
        payload: Raw workbook bytes.
        source_type: Source type used in error reporting.

    Returns:
        tuple[WorkbookSheet, ...]: Sheets in workbook order.

    Raises:
        StructuralIngestionError: Raised when the payload is empty or not a readable workbook.
    """

    if not payload:
        raise StructuralIngestionError(f"{source_type.value} workbook payload is empty", source_type=source_type)

    try:
        workbook = load_workbook(BytesIO(payload), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError, SyntaxError) as error:
        raise StructuralIngestionError(
            f"{source_type.value} payload is not a readable workbook: {error}",
            source_type=source_type,
        ) from error

    # Sheet XML is parsed lazily; xml.etree and lxml parse errors both subclass SyntaxError.
    try:
        sheets = tuple(
            WorkbookSheet(
                name=worksheet.title,
                rows=tuple(tuple(row) for row in worksheet.iter_rows(values_only=True)),
            )
            for worksheet in workbook.worksheets
        )
    except (BadZipFile, KeyError, OSError, SyntaxError, ValueError) as error:
        raise StructuralIngestionError(
            f"{source_type.value} workbook has an unreadable sheet: {error}",
            source_type=source_type,
        ) from error
    finally:
        workbook.close()

    _log.debug("Read %d sheets from %s workbook", len(sheets), source_type.value)
    return sheets


def mapping_find_sheet(sheets: tuple[WorkbookSheet, ...], *names: str) -> WorkbookSheet | None:
    """Return the first sheet whose trimmed title matches one of `names` case-insensitively.

    Args:
        sheets: Workbook sheets.
        names: Accepted sheet names in priority order.

    Returns:
        WorkbookSheet | None: Matching sheet or None.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    sheets_by_name = {sheet.name.strip().lower(): sheet for sheet in reversed(sheets)}
    for name in names:
        sheet = sheets_by_name.get(name.lower())
        if sheet is not None:
            return sheet
    return None


def mapping_is_summary_sheet(sheet: WorkbookSheet) -> bool:
    """Return whether a sheet is an aggregate summary that carries no deal rows."""

    lowered_name = sheet.name.lower()
    return "summary" in lowered_name or "total" in lowered_name
