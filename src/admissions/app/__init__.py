"""Flask application factory and environment configuration."""

from __future__ import annotations

# stdlib
import json
import logging
import os
from pathlib import Path

# third-party
from dotenv import load_dotenv
from flask import Flask

from ..application.services import resolve_status_filter
from ..data import psych_connect
from ..data.models import Applicant
from ..data.store import MemoryApplicantStore, PostgresApplicantStore

# Paths
APP_DIR = Path(__file__).resolve().parent          # .../src/admissions/app
PACKAGE_DIR = APP_DIR.parent                       # .../src/admissions
PROJECT_ROOT = PACKAGE_DIR.parent.parent           # repo root
SAMPLE_DATA = PACKAGE_DIR / "data" / "sample_applicants.json"

# Load .env once at import time
load_dotenv(PROJECT_ROOT / ".env")

MIN_KEY_LEN = 32  # 32+ chars gets 64 hex chars
STORE_KINDS = ("memory", "postgres")
STORE_EXTENSION = "applicant_store"


def _get_secret_key_from_env() -> str:
    """Return ``SECRET_KEY`` from environment.

    :returns: Secret key string.
    :raises RuntimeError: If key is missing or shorter than ``MIN_KEY_LEN``.
    """
    key = os.environ.get("SECRET_KEY", "")
    if len(key) < MIN_KEY_LEN:
        raise RuntimeError(
            "SECRET_KEY is missing or too short. "
            'Generate one with: python -c "import secrets; print(secrets.token_hex(32))" '
            "and place it in .env"
        )
    return key


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    logging.getLogger("admissions").setLevel(level)
    app.logger.setLevel(level)


def load_sample_applicants(path: Path = SAMPLE_DATA) -> list[Applicant]:
    """Read the bundled sample applicants (JSON array of rows)."""
    rows = json.loads(path.read_text(encoding="utf-8"))
    return [Applicant.from_row(r) for r in rows if isinstance(r, dict)]


def build_store(kind: str | None = None, *, seed: bool = False):
    """Create the applicant store named by ``kind`` / ``APPLICANT_STORE``.

    Defaults to PostgreSQL when a database URL is configured, otherwise the
    in-process store.

    :raises RuntimeError: On an unknown store kind.
    """
    kind = (kind or os.environ.get("APPLICANT_STORE", "")).strip().lower()
    if not kind:
        kind = "postgres" if psych_connect.database_url() else "memory"
    if kind not in STORE_KINDS:
        raise RuntimeError(f"APPLICANT_STORE must be one of {STORE_KINDS}, got {kind!r}")
    if kind == "postgres":
        return PostgresApplicantStore()
    return MemoryApplicantStore(load_sample_applicants() if seed else ())


def create_app(store=None) -> Flask:
    """Create and configure the Flask application.

    :param store: Optional applicant store to use instead of the configured one.
    :returns: Configured Flask application.
    :rtype: Flask
    """
    app = Flask(__name__, template_folder="templates", static_folder="static")

    # DO NOT load_dotenv() here; tests need to control the env per-case
    app.config["SECRET_KEY"] = _get_secret_key_from_env()
    app.config["ADMIN_USERNAME"] = os.environ.get("ADMIN_USERNAME", "admin")
    app.config["ADMIN_PASSWORD"] = os.environ.get("ADMIN_PASSWORD", "")
    app.config["ADMIN_TOKEN_MAX_AGE"] = int(os.environ.get("ADMIN_TOKEN_MAX_AGE", "86400"))
    app.config["MERIT_STATUS_FILTER"] = resolve_status_filter(
        os.environ.get("MERIT_STATUS_FILTER", "pending")
    )

    _configure_logging(app)

    if store is None:
        seed = os.environ.get("SEED_SAMPLE_DATA", "").lower() in {"1", "true", "yes"}
        store = build_store(seed=seed)
    app.extensions[STORE_EXTENSION] = store
    app.logger.info("applicant store: %s", type(store).__name__)

    from .routes import bp as main_bp  # local import after app created
    from .admin import bp as admin_bp
    app.register_blueprint(main_bp)
    app.register_blueprint(admin_bp)
    return app
