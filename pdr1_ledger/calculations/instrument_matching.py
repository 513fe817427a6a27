"""Two-tier instrument-name matching for free-text deal labels.

Tier 1 matches a curated list of exact label variants. Tier 2, a case-insensitive
ordered substring pattern, runs only when tier 1 yields no grouped date.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from pdr1_ledger.db.interfaces import SectionQueryPort
from pdr1_ledger.domain.predicates import AggregateQuery, AnyOf, DatedAggregate, FieldContainsInOrder, FieldIn

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstrumentMatchRule:
    """Label variants for one instrument class.

    Attributes:
        exact_labels: Tier-1 labels compared after trimming and upper-casing.
        pattern_groups: Tier-2 alternatives; each group's fragments must occur in order.
    """

    exact_labels: tuple[str, ...]
    pattern_groups: tuple[tuple[str, ...], ...]


def calculation_sum_by_instrument(
    query_service: SectionQueryPort,
    query: AggregateQuery,
    instrument_field: str,
    rule: InstrumentMatchRule,
) -> list[DatedAggregate]:
    """Run a grouped sum restricted to one instrument class with tiered fallback.

    Args:
        query_service: Aggregate query service.
        query: Base query; the instrument filter is appended to its predicates.
        instrument_field: Free-text instrument name field.
        rule: Tiered label rule.

    Returns:
        list[DatedAggregate]: Tier-1 rows, or tier-2 rows when tier 1 found none.

    Raises:
        RuntimeError: Raised when a store query fails.
    """

    exact_rows = query_service.db_section_sum_by_date(
        replace(query, predicates=(*query.predicates, FieldIn(instrument_field, rule.exact_labels)))
    )
    if exact_rows:
        return exact_rows

    pattern_predicate = AnyOf(
        tuple(FieldContainsInOrder(instrument_field, fragments) for fragments in rule.pattern_groups)
    )
    pattern_rows = query_service.db_section_sum_by_date(
        replace(query, predicates=(*query.predicates, pattern_predicate))
    )
    if pattern_rows:
        _log.debug(
            "Instrument patterns %s matched %d dates after exact labels matched none",
            rule.pattern_groups,
            len(pattern_rows),
        )
    return pattern_rows
