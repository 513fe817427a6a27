"""Database service compiling typed section predicates into grouped SQL aggregates."""

from __future__ import annotations

import operator
from datetime import date
from typing import Callable, Sequence
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from pdr1_ledger.domain import SourceType
from pdr1_ledger.domain.predicates import (
    AggregateQuery,
    AllOf,
    AnyOf,
    CoalescedSumMeasure,
    DatedAggregate,
    FieldCompare,
    FieldContains,
    FieldContainsInOrder,
    FieldEquals,
    FieldIn,
    FieldIsNotNull,
    FieldMeasure,
    FieldStartsWith,
    Measure,
    Not,
    PledgeJoinQuery,
    Predicate,
    ProductMeasure,
)

from .interfaces import SectionQueryPort
from .schema import SOURCE_TABLES, fimmda_val_table, slr_nds_table

_LIKE_ESCAPE_CHARACTER = "/"

_COMPARISON_FUNCTIONS: dict[str, Callable[[object, object], object]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "=": operator.eq,
    "!=": operator.ne,
}


def db_section_column(table: sa.Table, field_name: str) -> sa.Column:
    """Resolve one whitelisted column of a canonical table.

    Args:
        table: Canonical table.
        field_name: Canonical field name.

    Returns:
        sa.Column: Table column.

    Raises:
        ValueError: Raised when the field is not a column of the table.
    """

    if field_name in {"record_id", "upload_batch_id"} or field_name not in table.c:
        raise ValueError(f"unknown field={field_name} for table={table.name}")
    return table.c[field_name]


def _db_normalized_text(column: sa.Column):
    return sa.func.upper(sa.func.trim(column))


def _db_escape_like(fragment: str) -> str:
    escaped_fragment = fragment.replace(_LIKE_ESCAPE_CHARACTER, _LIKE_ESCAPE_CHARACTER * 2)
    for wildcard in ("%", "_"):
        escaped_fragment = escaped_fragment.replace(wildcard, _LIKE_ESCAPE_CHARACTER + wildcard)
    return escaped_fragment


def db_section_compile_predicate(table: sa.Table, predicate: Predicate):
    """Compile one typed predicate into a SQLAlchemy boolean expression.

    Text comparisons apply `upper(trim(column))` against upper-cased, trimmed
    literals; every literal travels as a bound parameter.

    Args:
        table: Canonical table the predicate targets.
        predicate: Typed predicate.

    Returns:
        ColumnElement[bool]: Compiled filter expression.

    Raises:
        ValueError: Raised when the predicate names an unknown column.
        TypeError: Raised when the predicate type is unsupported.
    """

    if isinstance(predicate, FieldEquals):
        column = db_section_column(table, predicate.field)
        if isinstance(predicate.value, str):
            return _db_normalized_text(column) == predicate.value.strip().upper()
        return column == predicate.value
    if isinstance(predicate, FieldIn):
        column = db_section_column(table, predicate.field)
        return _db_normalized_text(column).in_([value.strip().upper() for value in predicate.values])
    if isinstance(predicate, FieldStartsWith):
        column = db_section_column(table, predicate.field)
        return _db_normalized_text(column).like(
            f"{_db_escape_like(predicate.prefix.strip().upper())}%",
            escape=_LIKE_ESCAPE_CHARACTER,
        )
    if isinstance(predicate, FieldContains):
        column = db_section_column(table, predicate.field)
        return _db_normalized_text(column).like(
            f"%{_db_escape_like(predicate.fragment.upper())}%",
            escape=_LIKE_ESCAPE_CHARACTER,
        )
    if isinstance(predicate, FieldContainsInOrder):
        column = db_section_column(table, predicate.field)
        pattern = "%".join(_db_escape_like(fragment.upper()) for fragment in predicate.fragments)
        return _db_normalized_text(column).like(f"%{pattern}%", escape=_LIKE_ESCAPE_CHARACTER)
    if isinstance(predicate, FieldIsNotNull):
        return db_section_column(table, predicate.field).is_not(None)
    if isinstance(predicate, FieldCompare):
        column = db_section_column(table, predicate.field)
        return _COMPARISON_FUNCTIONS[predicate.operator](column, predicate.value)
    if isinstance(predicate, AnyOf):
        return sa.or_(*(db_section_compile_predicate(table, nested) for nested in predicate.predicates))
    if isinstance(predicate, AllOf):
        return sa.and_(*(db_section_compile_predicate(table, nested) for nested in predicate.predicates))
    if isinstance(predicate, Not):
        return sa.not_(db_section_compile_predicate(table, predicate.predicate))
    raise TypeError(f"unsupported predicate type={type(predicate).__name__}")


def _db_coalesced_total(table: sa.Table, field_names: Sequence[str]):
    """Build the null-as-zero per-row sum of several columns."""

    coalesced_columns = [sa.func.coalesce(db_section_column(table, name), 0) for name in field_names]
    total = coalesced_columns[0]
    for coalesced_column in coalesced_columns[1:]:
        total = total + coalesced_column
    return total


def db_section_compile_measure(table: sa.Table, measure: Measure):
    """Compile one typed measure into a SQL `SUM` expression.

    Args:
        table: Canonical table the measure targets.
        measure: Typed measure.

    Returns:
        ColumnElement: Aggregate expression.

    Raises:
        ValueError: Raised when the measure names an unknown column or no columns.
        TypeError: Raised when the measure type is unsupported.
    """

    if isinstance(measure, FieldMeasure):
        return sa.func.sum(db_section_column(table, measure.field))
    if isinstance(measure, ProductMeasure):
        product = db_section_column(table, measure.left) * db_section_column(table, measure.right)
        if measure.divisor != 1.0:
            product = product / measure.divisor
        return sa.func.sum(product)
    if isinstance(measure, CoalescedSumMeasure):
        if not measure.fields:
            raise ValueError("CoalescedSumMeasure requires at least one field")
        return sa.func.sum(_db_coalesced_total(table, measure.fields))
    raise TypeError(f"unsupported measure type={type(measure).__name__}")


def _db_optional_float(value: object) -> float | None:
    if value is None:
        return None
    return float(value)


class SQLAlchemySectionQueryService(SectionQueryPort):
    """SQLAlchemy-backed aggregate query service used by section calculators."""

    def __init__(self, engine: Engine):
        """Initialize section query service.

        Args:
            engine: SQLAlchemy engine used for all reads.

        Returns:
            None: This initializer does not return a value.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_section_sum_by_date(self, query: AggregateQuery) -> list[DatedAggregate]:
        """Sum measures grouped by one date column within one batch.

        Args:
            query: Aggregate query contract.

        Returns:
            list[DatedAggregate]: Per-date totals ordered by date.

        Raises:
            ValueError: Raised when the query names an unknown column or no measures.
            RuntimeError: Raised when database read fails.
        """

        if not query.measures:
            raise ValueError("AggregateQuery requires at least one measure")

        table = SOURCE_TABLES[query.source_type]
        group_column = db_section_column(table, query.group_field)
        statement = (
            sa.select(group_column, *(db_section_compile_measure(table, measure) for measure in query.measures))
            .where(
                table.c.upload_batch_id == query.batch_id,
                group_column.is_not(None),
                *(db_section_compile_predicate(table, predicate) for predicate in query.predicates),
            )
            .group_by(group_column)
            .order_by(group_column)
        )

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(statement).all()
        except SQLAlchemyError as error:
            raise RuntimeError(f"failed to aggregate {query.source_type.value} by {query.group_field}") from error

        return [
            DatedAggregate(group_date=row[0], totals=tuple(_db_optional_float(value) for value in row[1:]))
            for row in rows
        ]

    def db_section_pledge_join(self, query: PledgeJoinQuery) -> list[DatedAggregate]:
        """Value SLR pledge components at FIMMDA weighted-average prices per SLR value date.

        Args:
            query: Pledge join contract.

        Returns:
            list[DatedAggregate]: Per-date single-total aggregates ordered by date.

        Raises:
            ValueError: Raised when the query names an unknown column or no fields.
            RuntimeError: Raised when database read fails.
        """

        if not query.slr_fields:
            raise ValueError("PledgeJoinQuery requires at least one SLR field")

        component_total = _db_coalesced_total(slr_nds_table, query.slr_fields)
        join_condition = sa.and_(
            slr_nds_table.c.isin == fimmda_val_table.c.identification_no,
            slr_nds_table.c.value_date == fimmda_val_table.c.value_date,
            slr_nds_table.c.upload_batch_id == fimmda_val_table.c.upload_batch_id,
        )
        statement = (
            sa.select(slr_nds_table.c.value_date, sa.func.sum(component_total * fimmda_val_table.c.wap))
            .select_from(slr_nds_table.join(fimmda_val_table, join_condition))
            .where(
                slr_nds_table.c.upload_batch_id == query.batch_id,
                component_total > 0,
                fimmda_val_table.c.wap.is_not(None),
                *(db_section_compile_predicate(slr_nds_table, predicate) for predicate in query.slr_predicates),
            )
            .group_by(slr_nds_table.c.value_date)
            .order_by(slr_nds_table.c.value_date)
        )

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(statement).all()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to aggregate SLR pledge valuation") from error

        return [DatedAggregate(group_date=row[0], totals=(_db_optional_float(row[1]),)) for row in rows]

    def db_section_distinct_dates(
        self,
        source_type: SourceType,
        batch_id: UUID,
        date_field: str = "value_date",
        predicates: Sequence[Predicate] = (),
    ) -> list[date]:
        """Return distinct non-null dates of one source for one batch.

        Args:
            source_type: Source type key.
            batch_id: Batch identifier.
            date_field: Date column to read.
            predicates: Optional row filters.

        Returns:
            list[date]: Ascending distinct dates.

        Raises:
            ValueError: Raised when a column is unknown.
            RuntimeError: Raised when database read fails.
        """

        table = SOURCE_TABLES[source_type]
        date_column = db_section_column(table, date_field)
        statement = (
            sa.select(date_column)
            .distinct()
            .where(
                table.c.upload_batch_id == batch_id,
                date_column.is_not(None),
                *(db_section_compile_predicate(table, predicate) for predicate in predicates),
            )
            .order_by(date_column)
        )

        try:
            with self._engine.connect() as connection:
                return [row[0] for row in connection.execute(statement).all()]
        except SQLAlchemyError as error:
            raise RuntimeError(f"failed to read distinct {source_type.value} dates") from error
