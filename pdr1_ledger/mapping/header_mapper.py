"""Header-row detection and row-to-field mapping.

A header rule is a tuple of keyword groups: every group must match, and a
group matches when any of its keywords occurs in the row text (cells joined by
`,` and lower-cased).
"""

from __future__ import annotations

import re
from typing import Mapping, Sequence

from pdr1_ledger.domain import domain_coerce_value, domain_is_blank_sentinel

from .column_mappings import mapping_column_kind

HeaderRule = tuple[tuple[str, ...], ...]

DEFAULT_HEADER_SCAN_ROW_LIMIT = 20

_MAPPING_WHITESPACE_PATTERN = re.compile(r"\s+")


def mapping_row_text(row: Sequence[object]) -> str:
    """Flatten one row to lower-cased comma-joined text.

    Args:
        row: Row cell values.

    Returns:
        str: Joined text with blank cells rendered as empty strings.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return ",".join("" if cell is None else str(cell) for cell in row).lower()


def mapping_find_header_row(
    rows: Sequence[Sequence[object]],
    header_rules: Sequence[HeaderRule],
    scan_row_limit: int = DEFAULT_HEADER_SCAN_ROW_LIMIT,
) -> int:
    """Locate the header row within the leading rows of a sheet.

    Args:
        rows: Sheet row matrix.
        header_rules: Alternative keyword rules; the first row satisfying any rule wins.
        scan_row_limit: Number of leading rows searched.

    Returns:
        int: Zero-based header row index, or -1 when no row qualifies.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    for row_index, row in enumerate(rows[:scan_row_limit]):
        if not row:
            continue
        row_text = mapping_row_text(row)
        for header_rule in header_rules:
            if all(any(keyword in row_text for keyword in keyword_group) for keyword_group in header_rule):
                return row_index
    return -1


def mapping_normalize_header(cell: object) -> str:
    """Normalize one header cell for mapping-table lookup."""

    if cell is None:
        return ""
    return _MAPPING_WHITESPACE_PATTERN.sub(" ", str(cell).strip().lower())


def mapping_normalize_headers(row: Sequence[object]) -> tuple[str, ...]:
    """Normalize every header cell of the detected header row."""

    return tuple(mapping_normalize_header(cell) for cell in row)


def mapping_row_is_empty(row: Sequence[object]) -> bool:
    """Return whether every cell of a row is blank."""

    return all(domain_is_blank_sentinel(cell) for cell in row)


def mapping_row_contains_marker(row: Sequence[object], marker: str) -> bool:
    """Return whether any cell of a row carries the given marker text."""

    return any(isinstance(cell, str) and marker in cell for cell in row)


def mapping_map_row(
    headers: Sequence[str],
    row: Sequence[object],
    column_mapping: Mapping[str, str],
) -> dict[str, object]:
    """Map one data row to coerced canonical field values.

    When two headers map to the same field, a later blank cell never replaces an
    earlier value.

    Args:
        headers: Normalized header cells.
        row: Data row cell values.
        column_mapping: Header-to-field table of the source.

    Returns:
        dict[str, object]: Field values for mapped headers present in the row.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    mapped_values: dict[str, object] = {}
    for column_index, header in enumerate(headers):
        field_name = column_mapping.get(header)
        if field_name is None or column_index >= len(row):
            continue
        coerced_value = domain_coerce_value(mapping_column_kind(field_name), row[column_index])
        if coerced_value is None and mapped_values.get(field_name) is not None:
            continue
        mapped_values[field_name] = coerced_value
    return mapped_values
