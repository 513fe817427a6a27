"""Sections 6A/7A: value-at-risk and leverage ratio extension point."""

from __future__ import annotations

from uuid import UUID

from .interfaces import SectionCalculatorPort, SectionValues

VALUE_AT_RISK_LINE_ITEMS = ("6A", "7A")


class ValueAtRiskCalculator(SectionCalculatorPort):
    """Placeholder for the VaR and leverage-ratio line-items.

    No agreed formula exists for these items, so every date map stays empty.
    A concrete calculator replaces this one in the registry once the risk
    model inputs are ingested.
    """

    def calculation_section_name(self) -> str:
        return "value_at_risk"

    def calculation_compute(self, batch_id: UUID) -> SectionValues:
        _ = batch_id
        return {line_item: {} for line_item in VALUE_AT_RISK_LINE_ITEMS}
