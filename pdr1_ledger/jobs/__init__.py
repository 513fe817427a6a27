"""Job layer package for batch workflow orchestration boundaries."""

from .batch_orchestrator import BatchOrchestratorConfig, Pdr1BatchOrchestrator
from .interfaces import BatchOrchestratorPort, BatchProcessingResult, SourceIngestionCounts
from .source_ingestion import job_ingest_source_file

__all__ = [
	"BatchOrchestratorConfig",
	"BatchOrchestratorPort",
	"BatchProcessingResult",
	"Pdr1BatchOrchestrator",
	"SourceIngestionCounts",
	"job_ingest_source_file",
]
