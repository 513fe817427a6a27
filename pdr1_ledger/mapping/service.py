"""Parser registry and single-file parsing entry point."""

from __future__ import annotations

from datetime import date
from types import MappingProxyType
from typing import Mapping

from pdr1_ledger.domain import SourceType, domain_parse_source_type

from .deal_parsers import (
    IMDealParser,
    MMDealOutstandingParser,
    MMDealParser,
    RepoDealOutstandingParser,
    RepoDealParser,
)
from .header_mapper import DEFAULT_HEADER_SCAN_ROW_LIMIT
from .interfaces import ParsedSourceFile, UnknownSourceTypeError, WorkbookParserPort
from .parser_base import SourceWorkbookParser
from .valuation_parsers import FimmdaValParser, GSecParser, SdlParser, SlrNdsParser

PARSER_TYPES: Mapping[SourceType, type[SourceWorkbookParser]] = MappingProxyType(
    {
        SourceType.IM_DEAL: IMDealParser,
        SourceType.REPO_DEAL: RepoDealParser,
        SourceType.REPO_DEAL_OUTSTANDING: RepoDealOutstandingParser,
        SourceType.MM_DEAL: MMDealParser,
        SourceType.MM_DEAL_OUTSTANDING: MMDealOutstandingParser,
        SourceType.FIMMDA_VAL: FimmdaValParser,
        SourceType.SLR_NDS: SlrNdsParser,
        SourceType.G_SEC: GSecParser,
        SourceType.SDL: SdlParser,
    }
)


def mapping_resolve_source_type(source_type: SourceType | str) -> SourceType:
    """Resolve a source key submitted by a caller.

    Args:
        source_type: Source type enum member or textual key.

    Returns:
        SourceType: Supported source type.

    Raises:
        UnknownSourceTypeError: Raised when the key names no supported source.
    """

    if isinstance(source_type, SourceType):
        return source_type
    try:
        return domain_parse_source_type(source_type)
    except ValueError as error:
        raise UnknownSourceTypeError(str(error)) from error


def mapping_build_parser(
    source_type: SourceType | str,
    scan_row_limit: int = DEFAULT_HEADER_SCAN_ROW_LIMIT,
    processing_date: date | None = None,
) -> WorkbookParserPort:
    """Build the parser registered for one source type.

    Args:
        source_type: Source type enum member or textual key.
        scan_row_limit: Number of leading rows searched for header rows.
        processing_date: Fallback value date for sources without one.

    Returns:
        WorkbookParserPort: Configured parser.

    Raises:
        UnknownSourceTypeError: Raised when the key names no supported source.
    """

    resolved_source_type = mapping_resolve_source_type(source_type)
    parser_type = PARSER_TYPES.get(resolved_source_type)
    if parser_type is None:
        raise UnknownSourceTypeError(f"no parser registered for source_type={resolved_source_type.value}")
    return parser_type(scan_row_limit=scan_row_limit, processing_date=processing_date)


def mapping_parse_source_file(
    source_type: SourceType | str,
    payload: bytes,
    scan_row_limit: int = DEFAULT_HEADER_SCAN_ROW_LIMIT,
    processing_date: date | None = None,
) -> ParsedSourceFile:
    """Parse one uploaded workbook with the parser registered for its source type."""

    parser = mapping_build_parser(source_type, scan_row_limit=scan_row_limit, processing_date=processing_date)
    return parser.mapping_parse_workbook(payload)
