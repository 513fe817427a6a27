"""Typed filter and measure contracts for section aggregation queries.

Calculators describe what to aggregate with these immutable values; the db
layer compiles them into SQL expressions against whitelisted columns. Text
comparisons are case-insensitive and ignore surrounding whitespace.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Union
from uuid import UUID

from .models import SourceType

COMPARISON_OPERATORS = frozenset({"<", "<=", ">", ">=", "=", "!="})


@dataclass(frozen=True)
class FieldEquals:
    """Match rows whose field equals one value."""

    field: str
    value: object


@dataclass(frozen=True)
class FieldIn:
    """Match rows whose text field equals any listed label."""

    field: str
    values: tuple[str, ...]


@dataclass(frozen=True)
class FieldStartsWith:
    """Match rows whose text field starts with a prefix."""

    field: str
    prefix: str


@dataclass(frozen=True)
class FieldContains:
    """Match rows whose text field contains a fragment."""

    field: str
    fragment: str


@dataclass(frozen=True)
class FieldContainsInOrder:
    """Match rows whose text field contains every fragment in the given order.

    `FieldContainsInOrder("instrument_name", ("CALL", "BORROW"))` matches
    `CALL BORROWING (NDS)` but not `BORROWING ON CALL`.
    """

    field: str
    fragments: tuple[str, ...]


@dataclass(frozen=True)
class FieldIsNotNull:
    """Match rows where the field carries a value."""

    field: str


@dataclass(frozen=True)
class FieldCompare:
    """Match rows whose numeric field compares to a constant."""

    field: str
    operator: str
    value: float

    def __post_init__(self) -> None:
        if self.operator not in COMPARISON_OPERATORS:
            raise ValueError(f"unsupported comparison operator={self.operator}")


@dataclass(frozen=True)
class AnyOf:
    """Match rows satisfying at least one nested predicate."""

    predicates: tuple["Predicate", ...]


@dataclass(frozen=True)
class AllOf:
    """Match rows satisfying every nested predicate."""

    predicates: tuple["Predicate", ...]


@dataclass(frozen=True)
class Not:
    """Match rows that do not satisfy the nested predicate."""

    predicate: "Predicate"


Predicate = Union[
    FieldEquals,
    FieldIn,
    FieldStartsWith,
    FieldContains,
    FieldContainsInOrder,
    FieldIsNotNull,
    FieldCompare,
    AnyOf,
    AllOf,
    Not,
]


@dataclass(frozen=True)
class FieldMeasure:
    """Sum one numeric field."""

    field: str


@dataclass(frozen=True)
class ProductMeasure:
    """Sum `left * right / divisor` per row."""

    left: str
    right: str
    divisor: float = 1.0


@dataclass(frozen=True)
class CoalescedSumMeasure:
    """Sum the per-row total of several fields, treating nulls as zero."""

    fields: tuple[str, ...]


Measure = Union[FieldMeasure, ProductMeasure, CoalescedSumMeasure]


@dataclass(frozen=True)
class AggregateQuery:
    """Grouped sum over one canonical table within one batch.

    Rows with a null group date are always excluded.

    Attributes:
        source_type: Canonical table to read.
        batch_id: Upload batch scope.
        measures: Sums to compute per group, in result order.
        predicates: Filters combined with AND.
        group_field: Date field used as the grouping key.
    """

    source_type: SourceType
    batch_id: UUID
    measures: tuple[Measure, ...]
    predicates: tuple[Predicate, ...] = ()
    group_field: str = "value_date"


@dataclass(frozen=True)
class PledgeJoinQuery:
    """Pledge valuation over SLR holdings joined to FIMMDA prices.

    Computes `SUM((slr.f1 + ... + slr.fn) * fimmda.wap)` per SLR value date
    where the component total is positive and WAP is present. The join keys are
    ISIN, value date and batch.

    Attributes:
        batch_id: Upload batch scope.
        slr_fields: SLR pledge component fields summed per row.
        slr_predicates: Filters applied to SLR rows.
    """

    batch_id: UUID
    slr_fields: tuple[str, ...]
    slr_predicates: tuple[Predicate, ...] = ()


@dataclass(frozen=True)
class DatedAggregate:
    """One grouped aggregation result row.

    Attributes:
        group_date: Grouping date.
        totals: One sum per requested measure; None when every input was null.
    """

    group_date: date
    totals: tuple[float | None, ...]
