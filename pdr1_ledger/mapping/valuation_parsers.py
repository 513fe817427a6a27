"""Parsers for valuation, pledge-position and reference price-list workbooks."""

from __future__ import annotations

from pdr1_ledger.domain import SLR_PLEDGE_COMPONENT_FIELDS, SourceType

from .header_mapper import HeaderRule
from .interfaces import WorkbookSheet
from .parser_base import SourceWorkbookParser
from .workbook import mapping_find_sheet

_PRICE_LIST_HEADER_RULES: tuple[HeaderRule, ...] = (
    (("isin",), ("price",), ("maturity",), ("ytm",)),
)


class FimmdaValParser(SourceWorkbookParser):
    """FIMMDA valuation workbook; every non-summary sheet is scanned."""

    SOURCE_TYPE = SourceType.FIMMDA_VAL
    HEADER_RULES: tuple[HeaderRule, ...] = (
        (("security", "isin"), ("portfolio",), ("book value", "market value")),
    )
    REQUIRED_FIELDS = ("identification_no", "portfolio")
    HEADER_REQUIRED_PER_SHEET = False

    def _mapping_finalize_rows(self, mapped_rows: list[dict[str, object]]) -> list[dict[str, object]]:
        return self._mapping_fill_value_date(mapped_rows)


class SlrNdsParser(SourceWorkbookParser):
    """SLR/NDS holdings with pledge components in lakhs; only the first sheet is read."""

    SOURCE_TYPE = SourceType.SLR_NDS
    HEADER_RULES: tuple[HeaderRule, ...] = ((("isin",), ("instrument",), ("repo", "own stock")),)
    REQUIRED_FIELDS = ("isin", "instrument_name")

    def _mapping_select_sheets(self, sheets: tuple[WorkbookSheet, ...]) -> tuple[WorkbookSheet, ...]:
        return sheets[:1]

    def _mapping_derive_fields(self, row_values: dict[str, object]) -> dict[str, object]:
        """Derive pledge totals from the eight components.

        Blank own stock counts as zero, so a pledged row without holdings nets negative.

        Args:
            row_values: Mapped row values.

        Returns:
            dict[str, object]: Row values with `total_pledged` and `net_position` populated.

        Raises:
            TypeError: Raised when a component holds a non-numeric value.
        """

        if row_values.get("total_pledged") is None:
            row_values["total_pledged"] = sum(
                float(row_values.get(field_name) or 0.0) for field_name in SLR_PLEDGE_COMPONENT_FIELDS
            )
        if row_values.get("net_position") is None:
            row_values["net_position"] = float(row_values.get("own_stock") or 0.0) - float(row_values["total_pledged"])
        return row_values

    def _mapping_finalize_rows(self, mapped_rows: list[dict[str, object]]) -> list[dict[str, object]]:
        return self._mapping_fill_value_date(mapped_rows)


class GSecParser(SourceWorkbookParser):
    """Central-government security price list; the `G-Sec` sheet is mandatory."""

    SOURCE_TYPE = SourceType.G_SEC
    HEADER_RULES = _PRICE_LIST_HEADER_RULES
    REQUIRED_FIELDS = ("isin", "coupon", "price")

    def _mapping_select_sheets(self, sheets: tuple[WorkbookSheet, ...]) -> tuple[WorkbookSheet, ...]:
        return (self._mapping_require_sheet(sheets, mapping_find_sheet(sheets, "g-sec"), "G-Sec"),)


class SdlParser(SourceWorkbookParser):
    """State-development-loan price list read from the optional `SDL` and `UDAY` sheets."""

    SOURCE_TYPE = SourceType.SDL
    HEADER_RULES = _PRICE_LIST_HEADER_RULES
    REQUIRED_FIELDS = ("isin", "coupon", "price")
    HEADER_REQUIRED_PER_SHEET = False

    def _mapping_select_sheets(self, sheets: tuple[WorkbookSheet, ...]) -> tuple[WorkbookSheet, ...]:
        located_sheets = (mapping_find_sheet(sheets, "sdl"), mapping_find_sheet(sheets, "uday"))
        return tuple(sheet for sheet in located_sheets if sheet is not None)
