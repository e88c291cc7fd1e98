"""HTTP routes: application form, submission, and the public merit list."""

from __future__ import annotations

from flask import (
    Blueprint, current_app, flash, jsonify, redirect, render_template, request, url_for,
)

from ..application.intake import DuplicateEmailError, IntakeError
from ..application.services import merit_list, resolve_status_filter, submit_application
from ..data.models import STREAMS
from ..data.store import StoreUnavailableError

bp = Blueprint("main", __name__)

DATA_UNAVAILABLE = "Applicant data is temporarily unavailable. Please try again."


def get_store():
    """Return the applicant store attached by :func:`create_app`."""
    return current_app.extensions["applicant_store"]


def _wants_json() -> bool:
    return request.is_json or "application/json" in (request.headers.get("Accept") or "")


def _status_filter():
    """Status filter from ``?status=`` or the configured default."""
    return resolve_status_filter(
        request.args.get("status"), current_app.config["MERIT_STATUS_FILTER"]
    )


@bp.get("/")
def index():
    """Render the application form.

    :returns: Rendered HTML page.
    """
    return render_template("apply.html", streams=STREAMS)


@bp.get("/api")
def api_root():
    """Plain-text liveness check."""
    return "Admissions API running", 200, {"Content-Type": "text/plain; charset=utf-8"}


@bp.post("/apply")
def apply():
    """Validate and store one application.

    Accepts JSON or form posts. JSON callers get 201 with the stored record,
    400 with the failing field, or 503 when the store is unavailable. Form
    posts flash a message and redirect.

    :returns: Flask response.
    """
    wants_json = _wants_json()
    raw = request.get_json(silent=True) if request.is_json else request.form
    raw = raw or {}

    try:
        saved = submit_application(get_store(), raw)
    except IntakeError as e:
        if isinstance(e, DuplicateEmailError):
            current_app.logger.info("duplicate application rejected")
        if wants_json:
            return jsonify({"ok": False, "field": e.field, "error": e.message}), 400
        flash(e.message, "error")
        return redirect(url_for("main.index"), code=303)
    except StoreUnavailableError:
        current_app.logger.exception("store unavailable on /apply")
        if wants_json:
            return jsonify({"ok": False, "error": DATA_UNAVAILABLE}), 503
        flash(DATA_UNAVAILABLE, "error")
        return redirect(url_for("main.index"), code=303)

    message = "Application submitted successfully! Check the merit list to see your ranking."
    if wants_json:
        return jsonify({
            "ok": True,
            "id": saved.id,
            "applicationId": saved.application_id,
            "message": message,
            "student": saved.to_public_json(),
        }), 201
    flash(f"{message} Your application ID is {saved.application_id}.", "success")
    return redirect(url_for("main.merit_page"), code=303)


@bp.get("/students")
def students():
    """Return every stored applicant as JSON."""
    try:
        rows = get_store().find_all()
    except StoreUnavailableError:
        current_app.logger.exception("store unavailable on /students")
        return jsonify({"ok": False, "error": DATA_UNAVAILABLE}), 503
    return jsonify([a.to_public_json() for a in rows])


@bp.get("/merit")
def merit():
    """Return the merit list JSON grouped by stream, with ``overall`` and ``stats``.

    ``?status=all`` (or a comma-separated status list) overrides the
    configured filter.

    :returns: JSON response; 400 on a bad filter, 503 when the store is unavailable.
    """
    try:
        result = merit_list(get_store(), _status_filter())
    except IntakeError as e:
        return jsonify({"ok": False, "field": e.field, "error": e.message}), 400
    except StoreUnavailableError:
        current_app.logger.exception("store unavailable on /merit")
        return jsonify({"ok": False, "error": DATA_UNAVAILABLE}), 503
    return jsonify({"ok": True, **result.to_json()})


@bp.get("/merit-list")
def merit_page():
    """Render the merit list page.

    :returns: Rendered HTML page (503 page when the store is unavailable).
    """
    try:
        result = merit_list(get_store(), _status_filter())
    except IntakeError as e:
        flash(e.message, "error")
        return redirect(url_for("main.merit_page"))
    except StoreUnavailableError:
        current_app.logger.exception("store unavailable on /merit-list")
        return render_template("merit.html", result=None, streams=STREAMS, error=DATA_UNAVAILABLE), 503
    return render_template("merit.html", result=result, streams=STREAMS, error=None)
