"""Parsers for deal blotter and outstanding-position workbooks."""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from pdr1_ledger.domain import SourceType

from .column_mappings import MM_DEAL_COLUMN_MAPPING, MM_DEAL_OUTSTANDING_COLUMN_MAPPING
from .header_mapper import HeaderRule
from .interfaces import WorkbookSheet
from .parser_base import REPORT_END_MARKER, SourceWorkbookParser
from .workbook import mapping_find_sheet

_log = logging.getLogger(__name__)


def _mapping_leg_settlement_amount(face_value: object, leg_price: object) -> float | None:
    """Return `face_value * leg_price / 100` when both inputs are present."""

    if face_value is None or leg_price is None:
        return None
    return float(face_value) * float(leg_price) / 100


class IMDealParser(SourceWorkbookParser):
    """IM-Deal blotter: a sheet literally named `Details` is mandatory."""

    SOURCE_TYPE = SourceType.IM_DEAL
    HEADER_RULES: tuple[HeaderRule, ...] = ((("portfolio",), ("category",), ("value date",)),)
    REQUIRED_FIELDS = ("portfolio", "category", "value_date")

    def _mapping_select_sheets(self, sheets: tuple[WorkbookSheet, ...]) -> tuple[WorkbookSheet, ...]:
        return (self._mapping_require_sheet(sheets, mapping_find_sheet(sheets, "details"), "Details"),)

    def _mapping_derive_fields(self, row_values: dict[str, object]) -> dict[str, object]:
        opn_type = row_values.get("opn_type")
        if isinstance(opn_type, str):
            row_values["opn_type"] = opn_type.upper()
        return row_values


class RepoDealParser(SourceWorkbookParser):
    """Repo blotter with derived leg settlement amounts."""

    SOURCE_TYPE = SourceType.REPO_DEAL
    HEADER_RULES: tuple[HeaderRule, ...] = (
        (("deal ref", "deal reference"), ("instrument",), ("value date",)),
        (("settlement amt leg1",), ("face value",), ("instrument",)),
    )
    REQUIRED_FIELDS = ("instrument", "value_date")
    END_MARKER = REPORT_END_MARKER

    def _mapping_select_sheets(self, sheets: tuple[WorkbookSheet, ...]) -> tuple[WorkbookSheet, ...]:
        detail_sheet = mapping_find_sheet(sheets, "detail", "details")
        if detail_sheet is not None:
            return (detail_sheet,)
        return sheets[:1]

    def _mapping_derive_fields(self, row_values: dict[str, object]) -> dict[str, object]:
        face_value = row_values.get("face_value")
        for leg_number in (1, 2):
            settlement_field = f"settlement_amount_leg{leg_number}"
            if row_values.get(settlement_field) is None:
                row_values[settlement_field] = _mapping_leg_settlement_amount(
                    face_value,
                    row_values.get(f"leg{leg_number}_price"),
                )
        return row_values


class RepoDealOutstandingParser(SourceWorkbookParser):
    """Outstanding repo positions scanned across all non-summary sheets."""

    SOURCE_TYPE = SourceType.REPO_DEAL_OUTSTANDING
    HEADER_RULES: tuple[HeaderRule, ...] = (
        (("instrument",), ("value date",), ("base settlement", "face value")),
    )
    REQUIRED_FIELDS = ("value_date",)
    END_MARKER = REPORT_END_MARKER
    HEADER_REQUIRED_PER_SHEET = False

    def _mapping_derive_fields(self, row_values: dict[str, object]) -> dict[str, object]:
        instrument = row_values.get("instrument")
        if isinstance(instrument, str):
            row_values["instrument"] = instrument.upper()
        if row_values.get("outstanding_amount_leg1") is None:
            row_values["outstanding_amount_leg1"] = row_values.get("settlement_amount_leg1")
        return row_values


class _MoneyMarketParser(SourceWorkbookParser):
    """Common sheet scanning for money-market deal and outstanding workbooks."""

    HEADER_RULES: tuple[HeaderRule, ...] = (
        (("instrument name", "deal ref"), ("value date", "date"), ("base eqvlnt", "principal")),
        (("base eqvlnt(acpt-plc)",),),
        (("instrument name",), ("counterparty",)),
    )
    HEADER_REQUIRED_PER_SHEET = False


def mapping_is_outstanding_sheet(sheet: WorkbookSheet, headers: Sequence[str]) -> bool:
    """Classify one money-market sheet as an outstanding-balance listing.

    Args:
        sheet: Worksheet under inspection.
        headers: Normalized header cells.

    Returns:
        bool: True when the sheet name or a header mentions `outstanding`, or a bare `date` column exists.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return (
        "outstanding" in sheet.name.lower()
        or "date" in headers
        or any("outstanding" in header for header in headers)
    )


class MMDealParser(_MoneyMarketParser):
    """Money-market deal blotter; sheets classified as outstanding listings are skipped."""

    SOURCE_TYPE = SourceType.MM_DEAL
    REQUIRED_FIELDS = ("instrument_name", "value_date")

    def _mapping_column_mapping_for_sheet(
        self,
        sheet: WorkbookSheet,
        headers: Sequence[str],
    ) -> Mapping[str, str] | None:
        if mapping_is_outstanding_sheet(sheet, headers):
            _log.info("MM deal sheet %r looks like an outstanding listing; sheet skipped", sheet.name)
            return None
        return MM_DEAL_COLUMN_MAPPING


class MMDealOutstandingParser(_MoneyMarketParser):
    """Money-market outstanding balances; every scanned sheet is read as outstanding."""

    SOURCE_TYPE = SourceType.MM_DEAL_OUTSTANDING
    REQUIRED_FIELDS = ("instrument_name", "date")

    def _mapping_column_mapping_for_sheet(
        self,
        sheet: WorkbookSheet,
        headers: Sequence[str],
    ) -> Mapping[str, str] | None:
        _ = (sheet, headers)
        return MM_DEAL_OUTSTANDING_COLUMN_MAPPING

    def _mapping_derive_fields(self, row_values: dict[str, object]) -> dict[str, object]:
        if row_values.get("date") is None:
            row_values["date"] = row_values.get("value_date")
        if row_values.get("outstanding_amount") is None:
            row_values["outstanding_amount"] = row_values.get("base_eqvlnt")
        return row_values
