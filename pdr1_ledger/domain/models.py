"""Typed domain models shared across runtime layers.

This module provides simple data contracts for cross-layer communication:
health payloads, source-type keys and batch lifecycle states.
"""

from dataclasses import dataclass
from enum import Enum


class SourceType(str, Enum):
    """Upload source keys, one per spreadsheet export family."""

    IM_DEAL = "IM_DEAL"
    REPO_DEAL = "REPO_DEAL"
    MM_DEAL = "MM_DEAL"
    MM_DEAL_OUTSTANDING = "MM_DEAL_OUTSTANDING"
    REPO_DEAL_OUTSTANDING = "REPO_DEAL_OUTSTANDING"
    FIMMDA_VAL = "FIMMDA_VAL"
    SLR_NDS = "SLR_NDS"
    G_SEC = "G_SEC"
    SDL = "SDL"


# Ingestion order used by the batch orchestrator.
SOURCE_PROCESSING_ORDER: tuple[SourceType, ...] = (
    SourceType.IM_DEAL,
    SourceType.REPO_DEAL,
    SourceType.MM_DEAL,
    SourceType.MM_DEAL_OUTSTANDING,
    SourceType.REPO_DEAL_OUTSTANDING,
    SourceType.FIMMDA_VAL,
    SourceType.SLR_NDS,
    SourceType.G_SEC,
    SourceType.SDL,
)

# First-write-wins reference data keyed by ISIN across batches.
REFERENCE_SOURCE_TYPES = frozenset({SourceType.G_SEC, SourceType.SDL})

BATCH_STATUS_UPLOADING = "uploading"
BATCH_STATUS_PROCESSING = "processing"
BATCH_STATUS_COMPLETED = "completed"
BATCH_STATUS_FAILED = "failed"
BATCH_STATUSES = (
    BATCH_STATUS_UPLOADING,
    BATCH_STATUS_PROCESSING,
    BATCH_STATUS_COMPLETED,
    BATCH_STATUS_FAILED,
)


@dataclass(frozen=True)
class HealthStatus:
    """Health response contract used by health-check surfaces.

    Attributes:
        status: Overall status text for service health.
        detail: Additional message suitable for operational diagnostics.
    """

    status: str
    detail: str


def domain_parse_source_type(value: str) -> SourceType:
    """Resolve one source key, accepting case and separator variations.

    Args:
        value: Candidate source key such as `IM_DEAL` or `im-deal`.

    Returns:
        SourceType: Matching source type.

    Raises:
        ValueError: Raised when the key does not name a supported source.
    """

    normalized_value = value.strip().upper().replace("-", "_")
    try:
        return SourceType(normalized_value)
    except ValueError as error:
        raise ValueError(f"unsupported source_type={value}") from error
