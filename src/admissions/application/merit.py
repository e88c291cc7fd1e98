"""Merit ranking: per-stream and overall ranks plus summary statistics.

The engine is a pure function of the applicant sequence it is given. It does
no I/O, keeps no state and never mutates its input, so it is safe to call from
concurrent requests. Filtering (e.g. by status) is the caller's job.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..data.models import DEFAULT_STREAM, STREAMS, Applicant

# Mark bands reported in ``MeritStats.mark_distribution`` (lower bounds, inclusive)
DISTRIBUTION_BANDS: Tuple[Tuple[str, float], ...] = (
    ("excellent", 90.0),
    ("good", 75.0),
    ("average", 60.0),
    ("below", -math.inf),
)


@dataclass(frozen=True)
class MeritEntry:
    """One applicant's position in the merit list."""

    id: str
    application_id: Optional[str]
    name: str
    marks: Any
    course: str
    stream: str
    stream_rank: int
    overall_rank: int
    created_at: Optional[datetime]
    # index into the sequence passed to compute_merit_list; ids may repeat
    position: int = -1

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "applicationId": self.application_id,
            "name": self.name,
            "marks": self.marks,
            "course": self.course,
            "stream": self.stream,
            "streamRank": self.stream_rank,
            "overallRank": self.overall_rank,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class MeritStats:
    """Aggregates over the full ranked set."""

    total_count: int
    stream_counts: Dict[str, int]
    average_marks: float
    max_marks: float
    min_marks: float
    mark_distribution: Dict[str, int]

    def to_json(self) -> Dict[str, Any]:
        return {
            "totalCount": self.total_count,
            "streamCounts": dict(self.stream_counts),
            "averageMarks": self.average_marks,
            "maxMarks": self.max_marks,
            "minMarks": self.min_marks,
            "markDistribution": dict(self.mark_distribution),
        }


@dataclass(frozen=True)
class MeritResult:
    """Ranked lists keyed by stream, the overall ranking and stats."""

    streams: Dict[str, Tuple[MeritEntry, ...]]
    overall: Tuple[MeritEntry, ...]
    stats: MeritStats

    def __getitem__(self, stream: str) -> Tuple[MeritEntry, ...]:
        return self.streams[stream]

    def to_json(self) -> Dict[str, Any]:
        """Serialize as ``{Science: [...], Arts: [...], Commerce: [...], overall, stats}``."""
        out: Dict[str, Any] = {
            s: [e.to_json() for e in self.streams[s]] for s in STREAMS
        }
        out["overall"] = [e.to_json() for e in self.overall]
        out["stats"] = self.stats.to_json()
        return out


# ---------- helpers ----------

def bucket_for(stream: Any) -> str:
    """Return the stream bucket; anything unrecognized falls back to Science."""
    return stream if stream in STREAMS else DEFAULT_STREAM


def numeric_marks(marks: Any) -> Optional[float]:
    """Return marks as a float, or None when not a usable number."""
    if isinstance(marks, bool) or not isinstance(marks, (int, float)):
        return None
    value = float(marks)
    if math.isnan(value):
        return None
    return value


def _sort_key(indexed: Tuple[int, Applicant]) -> tuple:
    # marks desc (malformed last), created_at asc (missing last), input position asc
    pos, app = indexed
    m = numeric_marks(app.marks)
    marks_key = (0, -m) if m is not None else (1, 0.0)
    ts = app.created_at
    if isinstance(ts, datetime):
        # naive values are taken as UTC so they compare with aware ones
        created_key = (0, ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc))
    else:
        created_key = (1,)
    return (marks_key, created_key, pos)


def _stats(ranked: Sequence[Tuple[int, Applicant]], counts: Dict[str, int]) -> MeritStats:
    values = [m for m in (numeric_marks(a.marks) for _, a in ranked) if m is not None]
    distribution = {name: 0 for name, _ in DISTRIBUTION_BANDS}
    for v in values:
        for name, floor in DISTRIBUTION_BANDS:
            if v >= floor:
                distribution[name] += 1
                break
    return MeritStats(
        total_count=len(ranked),
        stream_counts=counts,
        average_marks=round(sum(values) / len(values), 2) if values else 0,
        max_marks=max(values) if values else 0,
        min_marks=min(values) if values else 0,
        mark_distribution=distribution,
    )


# ---------- public API ----------

def compute_merit_list(applicants: Sequence[Applicant]) -> MeritResult:
    """Rank ``applicants`` per stream and overall.

    Ordering is marks descending, then ``created_at`` ascending (earlier
    submission wins a tie), then position in ``applicants``. Ranks are dense
    and 1-based, so tied marks still get distinct consecutive ranks.

    :param applicants: Records to rank, in any order. May be empty.
    :returns: :class:`MeritResult` with one entry per input record in its
        stream bucket and in ``overall``.
    """
    ranked = sorted(enumerate(applicants), key=_sort_key)

    overall_rank: Dict[int, int] = {pos: i for i, (pos, _) in enumerate(ranked, start=1)}

    buckets: Dict[str, List[Tuple[int, Applicant]]] = {s: [] for s in STREAMS}
    for pos, app in ranked:  # already in final order; buckets inherit it
        buckets[bucket_for(app.stream)].append((pos, app))

    entries: Dict[int, MeritEntry] = {}
    streams: Dict[str, Tuple[MeritEntry, ...]] = {}
    for stream, members in buckets.items():
        ranked_members = []
        for stream_rank, (pos, app) in enumerate(members, start=1):
            entry = MeritEntry(
                id=app.id,
                application_id=app.application_id,
                name=app.name,
                marks=app.marks,
                course=app.course,
                stream=stream,
                stream_rank=stream_rank,
                overall_rank=overall_rank[pos],
                created_at=app.created_at,
                position=pos,
            )
            entries[pos] = entry
            ranked_members.append(entry)
        streams[stream] = tuple(ranked_members)

    overall = tuple(entries[pos] for pos, _ in ranked)
    counts = {s: len(buckets[s]) for s in STREAMS}
    return MeritResult(streams=streams, overall=overall, stats=_stats(ranked, counts))
