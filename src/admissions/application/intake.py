"""Validation and normalization of raw application submissions."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from ..data.models import DEFAULT_STREAM, STREAMS, STATUSES, NewApplicant

NAME_MAX_LEN = 100
MARKS_MIN = 0.0
MARKS_MAX = 100.0
EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")


class IntakeError(ValueError):
    """Submission rejected; ``field`` names the offending input."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class DuplicateEmailError(IntakeError):
    """An applicant with the same (case-insensitive) email already exists."""

    def __init__(self, email: str) -> None:
        super().__init__("email", "A student with this email already exists.")
        self.email = email


def normalize_email(value: Any) -> str:
    """Trim and lower-case an email for storage and uniqueness checks."""
    return str(value or "").strip().lower()


def _parse_marks(value: Any) -> float:
    if value is None or isinstance(value, bool):
        raise IntakeError("marks", "Marks are required.")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise IntakeError("marks", "Marks are required.")
    try:
        marks = float(value)
    except (TypeError, ValueError):
        raise IntakeError("marks", "Marks must be a number.") from None
    if not math.isfinite(marks):
        raise IntakeError("marks", "Marks must be a number.")
    if not MARKS_MIN <= marks <= MARKS_MAX:
        raise IntakeError("marks", "Marks must be between 0 and 100.")
    # keep whole numbers integral for display ("90", not "90.0")
    return int(marks) if marks.is_integer() else marks


def validate_submission(raw: Mapping[str, Any]) -> NewApplicant:
    """Validate a raw form/JSON submission.

    Rules run in order and stop at the first failure: name, email, marks,
    stream. Email uniqueness is left to the store, which checks it atomically
    with the insert.

    :param raw: Submitted fields (``name``, ``email``, ``marks``, ``stream``, ``course``).
    :returns: Normalized :class:`NewApplicant`.
    :raises IntakeError: On the first invalid field.
    """
    if not isinstance(raw, Mapping):
        raise IntakeError("body", "Submission must be an object of form fields.")
    name = str(raw.get("name") or "").strip()
    if not name:
        raise IntakeError("name", "Name is required.")
    if len(name) > NAME_MAX_LEN:
        raise IntakeError("name", f"Name cannot exceed {NAME_MAX_LEN} characters.")

    email = normalize_email(raw.get("email"))
    if not email:
        raise IntakeError("email", "Email is required.")
    if not EMAIL_RE.match(email):
        raise IntakeError("email", "Please enter a valid email.")

    marks = _parse_marks(raw.get("marks"))

    stream = str(raw.get("stream") or "").strip() or DEFAULT_STREAM
    if stream not in STREAMS:
        raise IntakeError("stream", "Invalid stream. Must be Science, Arts, or Commerce.")

    course = str(raw.get("course") or "").strip()

    return NewApplicant(name=name, email=email, marks=marks, stream=stream, course=course)


def validate_status(value: Any) -> str:
    """Return a recognized status value or raise :class:`IntakeError`."""
    status = str(value or "").strip().lower()
    if status not in STATUSES:
        raise IntakeError("status", "Status must be one of: " + ", ".join(STATUSES) + ".")
    return status
