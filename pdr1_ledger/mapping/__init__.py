"""Mapping layer package for workbook-to-canonical-record transformation."""

from .column_mappings import COLUMN_MAPPINGS, mapping_column_kind
from .header_mapper import mapping_find_header_row, mapping_map_row, mapping_normalize_header
from .interfaces import (
	ParsedSourceFile,
	RecordMappingError,
	StructuralIngestionError,
	UnknownSourceTypeError,
	WorkbookParserPort,
	WorkbookSheet,
)
from .service import mapping_build_parser, mapping_parse_source_file, mapping_resolve_source_type

__all__ = [
	"COLUMN_MAPPINGS",
	"ParsedSourceFile",
	"RecordMappingError",
	"StructuralIngestionError",
	"UnknownSourceTypeError",
	"WorkbookParserPort",
	"WorkbookSheet",
	"mapping_build_parser",
	"mapping_column_kind",
	"mapping_find_header_row",
	"mapping_map_row",
	"mapping_normalize_header",
	"mapping_parse_source_file",
	"mapping_resolve_source_type",
]
