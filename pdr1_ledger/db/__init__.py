"""Database layer package for persistence and aggregate query services."""

from .calculated_result import SQLAlchemyCalculatedResultService
from .canonical_store import SQLAlchemyCanonicalStoreService
from .health import SQLAlchemyDatabaseHealthService
from .interfaces import (
	BatchNotFoundError,
	CalculatedResultRecord,
	CalculatedResultRepositoryPort,
	CanonicalStorePort,
	DatabaseHealthPort,
	SectionQueryPort,
	UploadBatchCounts,
	UploadBatchRecord,
	UploadBatchRepositoryPort,
)
from .schema import SOURCE_TABLES, db_metadata
from .section_query import SQLAlchemySectionQueryService
from .session import db_create_engine, db_create_schema
from .upload_batch import SQLAlchemyUploadBatchService

__all__ = [
	"BatchNotFoundError",
	"CalculatedResultRecord",
	"CalculatedResultRepositoryPort",
	"CanonicalStorePort",
	"DatabaseHealthPort",
	"SOURCE_TABLES",
	"SQLAlchemyCalculatedResultService",
	"SQLAlchemyCanonicalStoreService",
	"SQLAlchemyDatabaseHealthService",
	"SQLAlchemySectionQueryService",
	"SQLAlchemyUploadBatchService",
	"SectionQueryPort",
	"UploadBatchCounts",
	"UploadBatchRecord",
	"UploadBatchRepositoryPort",
	"db_create_engine",
	"db_create_schema",
	"db_metadata",
]
