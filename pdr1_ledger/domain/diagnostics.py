"""Structured batch diagnostics helpers.

Stage events form the batch timeline persisted on the upload batch row; the
failure payload is the durable error report of a failed batch.
"""

from __future__ import annotations

import traceback
from datetime import datetime, timezone
from typing import Any


def domain_build_stage_event(
    stage: str,
    status: str,
    details: dict[str, Any] | None = None,
) -> dict[str, object]:
    """Build one structured timeline event payload.

    Args:
        stage: Stage name such as `ingest:IM_DEAL` or `calculate`.
        status: Stage status marker (`started`, `completed`, `failed`).
        details: Optional structured details object.

    Returns:
        dict[str, object]: Structured timeline event.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    event_payload: dict[str, object] = {
        "stage": stage,
        "status": status,
        "at_utc": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        event_payload["details"] = details
    return event_payload


def domain_build_failure_payload(error: BaseException, error_code: str) -> dict[str, str]:
    """Capture message, stack and classification of one batch failure.

    Must be called while the exception is being handled so the stack is current.

    Args:
        error: Exception that aborted processing.
        error_code: Deterministic failure classification code.

    Returns:
        dict[str, str]: JSON-compatible failure payload.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return {
        "error_code": error_code,
        "error_type": type(error).__name__,
        "message": str(error),
        "stack": traceback.format_exc(),
    }
