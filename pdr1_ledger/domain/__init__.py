"""Domain models used across application layer boundaries."""

from .coercion import ColumnKind, domain_coerce_value, domain_is_blank_sentinel, domain_parse_date
from .diagnostics import domain_build_failure_payload, domain_build_stage_event
from .models import (
	BATCH_STATUS_COMPLETED,
	BATCH_STATUS_FAILED,
	BATCH_STATUS_PROCESSING,
	BATCH_STATUS_UPLOADING,
	BATCH_STATUSES,
	REFERENCE_SOURCE_TYPES,
	SOURCE_PROCESSING_ORDER,
	HealthStatus,
	SourceType,
	domain_parse_source_type,
)
from .records import (
	RECORD_TYPES,
	SLR_PLEDGE_COMPONENT_FIELDS,
	CanonicalRecord,
	domain_build_record,
	domain_record_field_names,
)
from .reporting import (
	domain_format_report_date,
	domain_lakhs_to_crores,
	domain_parse_report_date,
	domain_round_amount,
	domain_rupees_to_crores,
)

__all__ = [
	"BATCH_STATUS_COMPLETED",
	"BATCH_STATUS_FAILED",
	"BATCH_STATUS_PROCESSING",
	"BATCH_STATUS_UPLOADING",
	"BATCH_STATUSES",
	"REFERENCE_SOURCE_TYPES",
	"SOURCE_PROCESSING_ORDER",
	"CanonicalRecord",
	"ColumnKind",
	"HealthStatus",
	"RECORD_TYPES",
	"SLR_PLEDGE_COMPONENT_FIELDS",
	"SourceType",
	"domain_build_failure_payload",
	"domain_build_record",
	"domain_build_stage_event",
	"domain_coerce_value",
	"domain_format_report_date",
	"domain_is_blank_sentinel",
	"domain_lakhs_to_crores",
	"domain_parse_date",
	"domain_parse_report_date",
	"domain_parse_source_type",
	"domain_record_field_names",
	"domain_round_amount",
	"domain_rupees_to_crores",
]
