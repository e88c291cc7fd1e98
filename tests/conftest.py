"""Shared test helpers: PATH setup, lightweight fakes, and common fixtures."""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Ensure the package is importable without installing (prepend src/)
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from admissions.app import create_app  # noqa: E402  pylint: disable=wrong-import-position
from admissions.data.models import Applicant  # noqa: E402  pylint: disable=wrong-import-position
from admissions.data.store import MemoryApplicantStore, StoreUnavailableError  # noqa: E402  pylint: disable=wrong-import-position

T0 = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)
ADMIN_PASSWORD = "s3cret-admin"


# ---------- Simple headers ----------
@pytest.fixture(scope="session")
def json_headers():
    """HTTP headers requesting JSON responses."""
    return {"Accept": "application/json"}


# ---------- Lightweight fakes ----------
class CallCounter:  # pylint: disable=too-few-public-methods
    """Callable stub that counts calls; returns value or raises."""

    def __init__(self, result=None, exc: Exception | None = None) -> None:
        self.calls = 0
        self.args: list[tuple] = []
        self.result = result
        self.exc = exc

    def __call__(self, *args, **kwargs):  # pylint: disable=unused-argument
        self.calls += 1
        self.args.append(args)
        if self.exc:
            raise self.exc
        return self.result


class FailingStore:
    """Store whose every operation raises ``exc`` (e.g. StoreUnavailableError)."""

    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    def _raise(self, *_args, **_kwargs):
        raise self.exc

    insert = find_by_email = find_all = get = update_status = _raise


@pytest.fixture()
def unavailable_store():
    """Store that fails every call as if the database were down."""
    return FailingStore(StoreUnavailableError("data unavailable"))


@pytest.fixture()
def call_counter():
    """Factory for CallCounter stubs."""
    return CallCounter


# ---------- DB fake infrastructure ----------
class FakeCursor:
    """Cursor stub: logs (query, params), returns queued rows, optionally raises on execute."""

    def __init__(self, rows=None, one=None, error: Exception | None = None) -> None:
        self.executed: list[tuple[object, object]] = []
        self._rows = list(rows or [])
        self._one = one
        self._error = error
        self.row_factory = None

    def execute(self, query, params=None) -> None:
        """Record the query; raise the configured error if any."""
        self.executed.append((query, params))
        if self._error:
            raise self._error

    def fetchall(self):
        """Return all preset rows (copy)."""
        return list(self._rows)

    def fetchone(self):
        """Return the preset single row."""
        return self._one

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:  # pylint: disable=unused-argument
        return False


class FakeConn:
    """Connection stub returning a shared FakeCursor and counting commits."""

    def __init__(self, cursor: FakeCursor | None = None) -> None:
        self.cur = cursor or FakeCursor()
        self.commits = 0
        self.closed = False

    def cursor(self, row_factory=None) -> FakeCursor:
        """Return the cursor context manager; remembers the row factory."""
        self.cur.row_factory = row_factory
        return self.cur

    def commit(self) -> None:
        """Count commits."""
        self.commits += 1

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:  # pylint: disable=unused-argument
        self.closed = True
        return False


@pytest.fixture()
def fake_conn_factory():
    """Factory for FakeConn with preset rows / single row / execute error."""

    def make(rows=None, one=None, error=None) -> FakeConn:
        return FakeConn(FakeCursor(rows=rows, one=one, error=error))

    return make


# ---------- Data factories ----------
@pytest.fixture()
def applicant_factory():
    """Build Applicant records; ``minutes`` offsets created_at from a fixed T0."""
    counter = {"n": 0}

    def make(name: str = "Student", marks=80, stream="Science", minutes: float | None = None, **kw) -> Applicant:
        counter["n"] += 1
        n = counter["n"]
        created = kw.pop("created_at", T0 + timedelta(minutes=n if minutes is None else minutes))
        return Applicant(
            id=kw.pop("id", f"id-{n}"),
            name=name,
            email=kw.pop("email", f"{name.lower().replace(' ', '.')}.{n}@example.com"),
            marks=marks,
            stream=stream,
            course=kw.pop("course", "BSc"),
            created_at=created,
            status=kw.pop("status", "pending"),
            application_id=kw.pop("application_id", f"APP{n:03d}"),
        )

    return make


@pytest.fixture()
def submission():
    """A valid raw submission payload."""
    return {
        "name": "Asha Rao",
        "email": "Asha.Rao@Example.com",
        "marks": 91.5,
        "stream": "Commerce",
        "course": "BCom",
    }


# ---------- App/client fixtures ----------
@pytest.fixture()
def store():
    """Fresh in-memory applicant store."""
    return MemoryApplicantStore()


@pytest.fixture()
def app(monkeypatch: pytest.MonkeyPatch, store):  # pylint: disable=redefined-outer-name
    """Create Flask app with a test SECRET_KEY, admin password and an isolated memory store."""
    monkeypatch.setenv("SECRET_KEY", "x" * 64)
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.delenv("MERIT_STATUS_FILTER", raising=False)
    monkeypatch.delenv("ADMIN_USERNAME", raising=False)
    flask_app = create_app(store=store)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture()
def client(app):  # pylint: disable=redefined-outer-name
    """Return Flask test client from app fixture."""
    return app.test_client()


@pytest.fixture()
def admin_headers(client):  # pylint: disable=redefined-outer-name
    """Log in as admin and return headers carrying the token."""
    resp = client.post("/admin/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return {"X-Admin-Token": resp.get_json()["token"], "Accept": "application/json"}
