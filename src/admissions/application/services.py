"""Application orchestration services."""

from __future__ import annotations

import logging
from typing import Any, FrozenSet, List, Mapping, Optional

from ..data.models import STATUSES, Applicant
from .intake import IntakeError, validate_status, validate_submission
from .merit import MeritResult, compute_merit_list

log = logging.getLogger(__name__)

ALL_STATUSES = "all"


def resolve_status_filter(value: Optional[str], default: Optional[FrozenSet[str]] = None) -> Optional[FrozenSet[str]]:
    """Parse a status filter such as ``"pending"``, ``"approved,rejected"`` or ``"all"``.

    :param value: Raw filter text; blank falls back to ``default``.
    :param default: Filter used when ``value`` is blank.
    :returns: Set of statuses to keep, or None for no filtering.
    :raises IntakeError: On an unknown status name.
    """
    text = (value or "").strip().lower()
    if not text:
        return default
    if text == ALL_STATUSES:
        return None
    wanted = {part.strip() for part in text.split(",") if part.strip()}
    unknown = wanted - set(STATUSES)
    if unknown:
        raise IntakeError(
            "status", f"Unknown status filter: {', '.join(sorted(unknown))}. Use 'all' or one of: {', '.join(STATUSES)}."
        )
    return frozenset(wanted)


def filter_by_status(applicants: List[Applicant], statuses: Optional[FrozenSet[str]]) -> List[Applicant]:
    """Keep applicants whose status is in ``statuses``; a missing status counts as pending."""
    if statuses is None:
        return list(applicants)
    return [a for a in applicants if (a.status or "pending") in statuses]


def submit_application(store, raw: Mapping[str, Any]) -> Applicant:
    """Validate a submission and persist it.

    :raises IntakeError: Invalid field, or :class:`DuplicateEmailError` for a taken email.
    :raises StoreUnavailableError: If the store cannot be reached.
    """
    new = validate_submission(raw)
    saved = store.insert(new)
    log.info("application %s stored (stream=%s marks=%s)", saved.id, saved.stream, saved.marks)
    return saved


def merit_list(store, statuses: Optional[FrozenSet[str]] = frozenset({"pending"})) -> MeritResult:
    """Fetch the current records, apply the status filter, and rank them."""
    applicants = filter_by_status(store.find_all(), statuses)
    result = compute_merit_list(applicants)
    log.debug(
        "merit list: %d ranked (%s)",
        result.stats.total_count,
        ", ".join(f"{k}={v}" for k, v in result.stats.stream_counts.items()),
    )
    return result


def list_applicants(store) -> List[Applicant]:
    """All applicants for the admin view: marks high to low, earliest first on ties."""
    applicants = store.find_all()
    return [applicants[e.position] for e in compute_merit_list(applicants).overall]


def change_status(store, applicant_id: str, status: Any) -> Applicant:
    """Move an applicant to ``status`` (pending / approved / rejected)."""
    new_status = validate_status(status)
    updated = store.update_status(applicant_id, new_status)
    log.info("application %s status -> %s", applicant_id, new_status)
    return updated


__all__ = [
    "resolve_status_filter",
    "filter_by_status",
    "submit_application",
    "merit_list",
    "list_applicants",
    "change_status",
]
