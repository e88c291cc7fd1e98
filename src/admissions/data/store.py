"""Applicant stores: an in-process store and a PostgreSQL-backed store.

Both implement the same small interface (``insert``, ``find_by_email``,
``find_all``, ``get``, ``update_status``). The email uniqueness check is
atomic with the insert in both: the memory store holds a lock across
check-then-append, PostgreSQL relies on the unique index on ``lower(email)``.
"""

from __future__ import annotations

import logging
import secrets
import threading
import time
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Protocol

import psycopg
from psycopg import errors
from psycopg.rows import dict_row

from ..application.intake import DuplicateEmailError, normalize_email
from ..sql import sqlsafe
from . import psych_connect
from .models import Applicant, NewApplicant

log = logging.getLogger(__name__)


class StoreUnavailableError(RuntimeError):
    """The backing store could not be reached; callers report "data unavailable"."""


class ApplicantNotFoundError(LookupError):
    """No applicant with the requested id."""


class ApplicantStore(Protocol):
    """Provider of applicant records."""

    def insert(self, new: NewApplicant) -> Applicant: ...

    def find_by_email(self, email: str) -> Optional[Applicant]: ...

    def find_all(self) -> List[Applicant]: ...

    def get(self, applicant_id: str) -> Applicant: ...

    def update_status(self, applicant_id: str, status: str) -> Applicant: ...


def new_application_id() -> str:
    """Human-facing reference, e.g. ``APP1718000000123042``."""
    return f"APP{int(time.time() * 1000)}{secrets.randbelow(1000):03d}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- in-process store ----------

class MemoryApplicantStore:
    """List-backed store guarded by a lock; data lives as long as the process."""

    def __init__(self, records: Iterable[Applicant] = ()) -> None:
        self._lock = threading.Lock()
        self._records: List[Applicant] = list(records)
        self._last_created: Optional[datetime] = max(
            (r.created_at for r in self._records if r.created_at), default=None
        )

    def _clock(self) -> datetime:
        # created_at must not go backwards in insertion order (caller holds the lock)
        now = _utcnow()
        if self._last_created and now < self._last_created:
            now = self._last_created
        self._last_created = now
        return now

    def insert(self, new: NewApplicant) -> Applicant:
        email = normalize_email(new.email)
        with self._lock:
            if any(normalize_email(r.email) == email for r in self._records):
                raise DuplicateEmailError(email)
            record = Applicant(
                id=uuid.uuid4().hex,
                application_id=new_application_id(),
                name=new.name,
                email=email,
                marks=new.marks,
                stream=new.stream,
                course=new.course,
                created_at=self._clock(),
                status="pending",
            )
            self._records.append(record)
        return record

    def find_by_email(self, email: str) -> Optional[Applicant]:
        target = normalize_email(email)
        with self._lock:
            return next((r for r in self._records if normalize_email(r.email) == target), None)

    def find_all(self) -> List[Applicant]:
        with self._lock:
            return list(self._records)

    def get(self, applicant_id: str) -> Applicant:
        with self._lock:
            for r in self._records:
                if r.id == applicant_id:
                    return r
        raise ApplicantNotFoundError(applicant_id)

    def update_status(self, applicant_id: str, status: str) -> Applicant:
        with self._lock:
            for i, r in enumerate(self._records):
                if r.id == applicant_id:
                    updated = replace(r, status=status)
                    self._records[i] = updated
                    return updated
        raise ApplicantNotFoundError(applicant_id)

    def __len__(self) -> int:
        return len(self._records)


# ---------- PostgreSQL store ----------

def _row_to_applicant(row: Mapping[str, Any]) -> Applicant:
    """Map a dict_row to an Applicant; NUMERIC marks come back as Decimal."""
    data = dict(row)
    marks = data.get("marks")
    if isinstance(marks, Decimal):
        data["marks"] = int(marks) if marks == marks.to_integral_value() else float(marks)
    return Applicant.from_row(data)


class PostgresApplicantStore:
    """Store backed by the ``applicants`` table; one connection per call."""

    def __init__(self, connect=None) -> None:
        # resolved lazily so tests can monkeypatch psych_connect.get_conn
        self._connect = connect

    def _conn(self):
        connect = self._connect or psych_connect.get_conn
        try:
            return connect()
        except psycopg.OperationalError as exc:
            log.error("database unreachable: %s", exc)
            raise StoreUnavailableError("data unavailable") from exc
        except RuntimeError as exc:
            # missing DATABASE_URL
            raise StoreUnavailableError(str(exc)) from exc

    def _fetch(self, query, params=()) -> List[Applicant]:
        try:
            with self._conn() as conn, conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                return [_row_to_applicant(r) for r in cur.fetchall()]
        except psycopg.OperationalError as exc:
            raise StoreUnavailableError("data unavailable") from exc

    def insert(self, new: NewApplicant) -> Applicant:
        email = normalize_email(new.email)
        params = (
            uuid.uuid4().hex,
            new_application_id(),
            new.name,
            email,
            new.marks,
            new.stream,
            new.course,
            "pending",
            _utcnow(),
        )
        try:
            with self._conn() as conn, conn.cursor(row_factory=dict_row) as cur:
                cur.execute(sqlsafe.insert_applicant(), params)
                row = cur.fetchone()
                conn.commit()
        except errors.UniqueViolation as exc:
            raise DuplicateEmailError(email) from exc
        except psycopg.OperationalError as exc:
            raise StoreUnavailableError("data unavailable") from exc
        return _row_to_applicant(row)

    def find_by_email(self, email: str) -> Optional[Applicant]:
        rows = self._fetch(sqlsafe.select_applicants(where_email=True), (normalize_email(email),))
        return rows[0] if rows else None

    def find_all(self) -> List[Applicant]:
        return self._fetch(sqlsafe.select_applicants("created_at", "ASC"))

    def get(self, applicant_id: str) -> Applicant:
        rows = self._fetch(sqlsafe.select_applicants(where_id=True), (applicant_id,))
        if not rows:
            raise ApplicantNotFoundError(applicant_id)
        return rows[0]

    def update_status(self, applicant_id: str, status: str) -> Applicant:
        try:
            with self._conn() as conn, conn.cursor(row_factory=dict_row) as cur:
                cur.execute(sqlsafe.update_status(), (status, applicant_id))
                row = cur.fetchone()
                conn.commit()
        except psycopg.OperationalError as exc:
            raise StoreUnavailableError("data unavailable") from exc
        if row is None:
            raise ApplicantNotFoundError(applicant_id)
        return _row_to_applicant(row)
