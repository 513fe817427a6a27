"""Typed interfaces for section calculator responsibilities."""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

# Line-item code -> report date (`DD-Mon-YYYY`) -> value.
SectionValues = dict[str, dict[str, float]]


class SectionCalculatorPort(Protocol):
    """Port definition for one regulatory section calculator."""

    def calculation_section_name(self) -> str:
        """Return the section label used in diagnostics.

        Returns:
            str: Stable section label.

        Raises:
            RuntimeError: Raised when calculator metadata is unavailable.
        """

    def calculation_compute(self, batch_id: UUID) -> SectionValues:
        """Compute every line-item of the section for one batch.

        Args:
            batch_id: Upload batch identifier.

        Returns:
            SectionValues: One date map per line-item code; empty maps when no data qualifies.

        Raises:
            RuntimeError: Raised when a store query fails.
        """
