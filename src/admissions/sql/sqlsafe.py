"""
Composable SQL for the ``applicants`` table, built with psycopg's ``sql`` module.

Expose:
- TABLE / COLUMNS: allow-listed names, the only identifiers ever interpolated
- col_list(cols): comma-separated identifiers
- placeholders(n): "(%s, %s, ...)"
- insert_applicant(): INSERT ... RETURNING every column
- select_applicants(order_by, direction): SELECT with a validated ORDER BY
- update_status(): UPDATE status by id, RETURNING every column
"""
from __future__ import annotations
from typing import Iterable, Optional

from psycopg import sql


TABLE = "applicants"
COLUMNS = (
    "id", "application_id", "name", "email", "marks",
    "stream", "course", "status", "created_at",
)

SORTABLE = {"marks", "created_at", "name", "stream", "status"}


def col_list(columns: Iterable[str]) -> sql.Composable:
    "Return a comma-separated identifier list of allow-listed columns."
    cols = list(columns)
    unknown = [c for c in cols if c not in COLUMNS]
    if unknown:
        raise ValueError(f"unknown column(s): {unknown}")
    return sql.SQL(", ").join(sql.Identifier(c) for c in cols)


def placeholders(n: int) -> sql.Composable:
    "Return a parenthesized placeholders string: (%s, %s, ...)."
    if n <= 0:
        return sql.SQL("()")
    return sql.SQL("(") + sql.SQL(", ").join([sql.Placeholder()] * n) + sql.SQL(")")


def insert_applicant() -> sql.Composed:
    """INSERT one applicant; params follow :data:`COLUMNS` order."""
    return sql.SQL("INSERT INTO {} ({}) VALUES {} RETURNING {}").format(
        sql.Identifier(TABLE),
        col_list(COLUMNS),
        placeholders(len(COLUMNS)),
        col_list(COLUMNS),
    )


def select_applicants(
    order_by: Optional[str] = None,
    direction: Optional[str] = None,
    *,
    where_email: bool = False,
    where_id: bool = False,
) -> sql.Composed:
    """
    SELECT every column, optionally filtered by lower(email) or id.
    ORDER BY is dropped unless ``order_by`` is in :data:`SORTABLE`;
    direction in {'ASC', 'DESC'}, defaults to ASC; ``created_at`` ascending
    breaks ties.
    """
    query = sql.SQL("SELECT {} FROM {}").format(col_list(COLUMNS), sql.Identifier(TABLE))
    if where_email:
        query += sql.SQL(" WHERE lower({}) = lower(%s)").format(sql.Identifier("email"))
    elif where_id:
        query += sql.SQL(" WHERE {} = %s").format(sql.Identifier("id"))
    if order_by in SORTABLE:
        dir_norm = (direction or "ASC").upper()
        if dir_norm not in {"ASC", "DESC"}:
            dir_norm = "ASC"
        query += sql.SQL(" ORDER BY {} {}").format(sql.Identifier(order_by), sql.SQL(dir_norm))
        if order_by != "created_at":
            query += sql.SQL(", {} ASC").format(sql.Identifier("created_at"))
    return query


def update_status() -> sql.Composed:
    """UPDATE status for one id; params are ``(status, id)``."""
    return sql.SQL("UPDATE {} SET {} = %s WHERE {} = %s RETURNING {}").format(
        sql.Identifier(TABLE),
        sql.Identifier("status"),
        sql.Identifier("id"),
        col_list(COLUMNS),
    )
