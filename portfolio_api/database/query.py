"""
Shared helpers for building filtered, searchable, paginated list queries.
"""

import json
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

from .converters import to_iso, utcnow

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of a list query plus the total match count."""
    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit


@dataclass
class ListParams:
    """Pagination, sort and free-text search parameters for a list query."""
    page: int = 1
    limit: int = 10
    sort: str | None = None
    search: str | None = None

    @property
    def offset(self) -> int:
        return (max(self.page, 1) - 1) * self.limit


@dataclass
class WhereClause:
    """Accumulates AND-ed SQL conditions and their parameters."""
    conditions: list[str] = field(default_factory=list)
    params: list[Any] = field(default_factory=list)

    def add(self, condition: str, *params: Any) -> "WhereClause":
        self.conditions.append(condition)
        self.params.extend(params)
        return self

    def add_search(
        self,
        search: str | None,
        text_columns: list[str],
        list_columns: list[str] | None = None,
    ) -> "WhereClause":
        """Match a case-insensitive regex against any of the given columns."""
        if not search:
            return self
        ors = [f"{col} REGEXP ?" for col in text_columns]
        params: list[Any] = [search] * len(text_columns)
        for col in list_columns or []:
            ors.append(f"EXISTS (SELECT 1 FROM json_each({col}) WHERE json_each.value REGEXP ?)")
            params.append(search)
        return self.add(f"({' OR '.join(ors)})", *params)

    def add_any_of(self, list_column: str, values: list[str] | None) -> "WhereClause":
        """Require a JSON array column to contain at least one of values."""
        if not values:
            return self
        placeholders = ",".join("?" * len(values))
        return self.add(
            f"EXISTS (SELECT 1 FROM json_each({list_column}) WHERE json_each.value IN ({placeholders}))",
            *values,
        )

    @property
    def sql(self) -> str:
        if not self.conditions:
            return ""
        return " WHERE " + " AND ".join(self.conditions)


def order_by(sort: str | None, allowed: dict[str, str], default: str) -> str:
    """
    Translate a sort expression like "-published_at" into an ORDER BY clause.

    Args:
        sort: Field name, optionally prefixed with "-" for descending order
        allowed: Map of public field names to column names
        default: Sort expression used when sort is missing or unknown

    Returns:
        SQL ORDER BY clause (with a leading space)
    """
    for candidate in (sort, default):
        if not candidate:
            continue
        descending = candidate.startswith("-")
        name = candidate.lstrip("-+")
        column = allowed.get(name)
        if column:
            direction = "DESC" if descending else "ASC"
            return f" ORDER BY {column} {direction}, id {direction}"
    return " ORDER BY id DESC"


def fetch_page(
    conn: sqlite3.Connection,
    table: str,
    where: WhereClause,
    params: ListParams,
    order: str,
    converter: Callable[[sqlite3.Row], T],
    columns: str = "*",
) -> Page[T]:
    """Run the count and page queries for a list endpoint."""
    total = conn.execute(
        f"SELECT COUNT(*) FROM {table}{where.sql}", where.params
    ).fetchone()[0]
    rows = conn.execute(
        f"SELECT {columns} FROM {table}{where.sql}{order} LIMIT ? OFFSET ?",
        [*where.params, params.limit, params.offset],
    ).fetchall()
    return Page(
        items=[converter(row) for row in rows],
        total=total,
        page=max(params.page, 1),
        limit=params.limit,
    )


def encode_value(value: Any) -> Any:
    """Encode a Python value for storage in a SQLite column."""
    if isinstance(value, (list, tuple)):
        return json.dumps(list(value))
    if hasattr(value, "isoformat"):
        return to_iso(value)
    return value


def update_row(
    conn: sqlite3.Connection,
    table: str,
    row_id: int,
    fields: dict[str, Any],
    columns: dict[str, str] | None = None,
) -> bool:
    """
    Update the given fields of a row and stamp updated_at.

    Args:
        conn: Open connection
        table: Table name
        row_id: Primary key
        fields: Field name to new value
        columns: Optional field name to column name overrides

    Returns:
        True if a row was updated
    """
    columns = columns or {}
    assignments = []
    values: list[Any] = []
    for name, value in fields.items():
        assignments.append(f"{columns.get(name, name)} = ?")
        values.append(encode_value(value))
    assignments.append("updated_at = ?")
    values.append(to_iso(utcnow()))
    values.append(row_id)
    cursor = conn.execute(
        f"UPDATE {table} SET {', '.join(assignments)} WHERE id = ?", values
    )
    return cursor.rowcount > 0
