"""Admin routes: login, applicant review, status changes, and exports."""

from __future__ import annotations

import hmac
from functools import wraps
from io import BytesIO

from flask import Blueprint, current_app, jsonify, render_template, request, send_file
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..application.export import applicants_to_csv, applicants_to_xlsx
from ..application.intake import IntakeError
from ..application.services import change_status, list_applicants
from ..data.store import ApplicantNotFoundError, StoreUnavailableError
from .routes import DATA_UNAVAILABLE, get_store

bp = Blueprint("admin", __name__, url_prefix="/admin")

TOKEN_HEADER = "X-Admin-Token"
TOKEN_SALT = "admissions-admin-token"
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def issue_token(username: str) -> str:
    """Return a signed, timestamped admin token."""
    return _serializer().dumps({"user": username})


def verify_token(token: str | None) -> bool:
    """True when ``token`` is a valid, unexpired admin token."""
    if not token:
        return False
    try:
        _serializer().loads(token, max_age=current_app.config["ADMIN_TOKEN_MAX_AGE"])
    except SignatureExpired:
        current_app.logger.info("expired admin token rejected")
        return False
    except BadSignature:
        return False
    return True


def admin_required(view):
    """Reject requests without a valid ``X-Admin-Token`` header (401)."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if not verify_token(request.headers.get(TOKEN_HEADER)):
            return jsonify({"ok": False, "error": "Unauthorized"}), 401
        return view(*args, **kwargs)

    return wrapper


@bp.get("")
def admin_page():
    """Render the admin dashboard shell; data is loaded with the token client-side."""
    return render_template("admin.html")


@bp.post("/login")
def login():
    """Exchange ``{username, password}`` for an admin token.

    :returns: ``{ok, token}``; 401 on bad credentials; 503 if no admin password is configured.
    """
    expected_user = current_app.config["ADMIN_USERNAME"]
    expected_pw = current_app.config["ADMIN_PASSWORD"]
    if not expected_pw:
        return jsonify({"ok": False, "error": "Admin login is not configured"}), 503

    body = request.get_json(silent=True) or request.form
    username = str(body.get("username") or "")
    password = str(body.get("password") or "")

    user_ok = hmac.compare_digest(username.encode(), expected_user.encode())
    pw_ok = hmac.compare_digest(password.encode(), expected_pw.encode())
    if not (user_ok and pw_ok):
        current_app.logger.warning("failed admin login for %r", username)
        return jsonify({"ok": False, "error": "Invalid credentials"}), 401

    current_app.logger.info("admin %s logged in", username)
    return jsonify({"ok": True, "token": issue_token(username), "message": "Login successful"})


@bp.get("/applicants")
@admin_required
def applicants():
    """All applicants, marks high to low."""
    try:
        rows = list_applicants(get_store())
    except StoreUnavailableError:
        current_app.logger.exception("store unavailable on /admin/applicants")
        return jsonify({"ok": False, "error": DATA_UNAVAILABLE}), 503
    return jsonify([a.to_public_json() for a in rows])


@bp.route("/applicants/<applicant_id>/status", methods=["PATCH", "POST"])
@admin_required
def update_status(applicant_id: str):
    """Set an applicant's status from ``{"status": ...}``.

    :returns: Updated record; 400 bad status, 404 unknown id, 503 store unavailable.
    """
    body = request.get_json(silent=True) or request.form
    try:
        updated = change_status(get_store(), applicant_id, body.get("status"))
    except IntakeError as e:
        return jsonify({"ok": False, "field": e.field, "error": e.message}), 400
    except ApplicantNotFoundError:
        return jsonify({"ok": False, "error": "Applicant not found"}), 404
    except StoreUnavailableError:
        current_app.logger.exception("store unavailable on status update")
        return jsonify({"ok": False, "error": DATA_UNAVAILABLE}), 503
    return jsonify({"ok": True, "student": updated.to_public_json()})


@bp.get("/download/csv")
@admin_required
def download_csv():
    """Download every applicant as ``applicants.csv``."""
    try:
        text = applicants_to_csv(get_store().find_all())
    except StoreUnavailableError:
        current_app.logger.exception("store unavailable on CSV export")
        return jsonify({"ok": False, "error": DATA_UNAVAILABLE}), 503
    return send_file(
        BytesIO(text.encode("utf-8")),
        mimetype="text/csv",
        as_attachment=True,
        download_name="applicants.csv",
    )


@bp.get("/download/excel")
@admin_required
def download_excel():
    """Download every applicant as ``applicants.xlsx`` (overall + per-stream sheets)."""
    try:
        data = applicants_to_xlsx(get_store().find_all())
    except StoreUnavailableError:
        current_app.logger.exception("store unavailable on Excel export")
        return jsonify({"ok": False, "error": DATA_UNAVAILABLE}), 503
    return send_file(
        BytesIO(data),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name="applicants.xlsx",
    )
