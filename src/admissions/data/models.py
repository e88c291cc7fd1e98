# models.py

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional, Literal, Dict, Any, Mapping

# ---- Literals  ----
Stream = Literal["Science", "Arts", "Commerce"]
Status = Literal["pending", "approved", "rejected"]

STREAMS = ("Science", "Arts", "Commerce")
STATUSES = ("pending", "approved", "rejected")
DEFAULT_STREAM: Stream = "Science"


@dataclass(frozen=True)
class NewApplicant:
    """
    Validated submission, not yet persisted (no id / created_at yet).
    """
    name: str
    email: str          # trimmed + lower-cased
    marks: float
    stream: Stream
    course: str = ""


@dataclass(frozen=True)
class Applicant:
    """
    Stored applicant record as returned by an ApplicantStore.
    """
    # REQUIRED
    id: str
    name: str
    email: str
    marks: Any          # float for validated rows; left as-is for malformed data
    stream: Optional[str]

    # Optional
    course: str = ""
    created_at: Optional[datetime] = None
    status: Optional[Status] = "pending"
    application_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Applicant":
        """Build from a DB/JSON row; accepts ``_id``/``createdAt`` spellings too."""
        created = row.get("created_at", row.get("createdAt"))
        if isinstance(created, str):
            created = datetime.fromisoformat(created)
        return cls(
            id=str(row.get("id", row.get("_id", ""))),
            name=row.get("name") or "",
            email=row.get("email") or "",
            marks=row.get("marks"),
            stream=row.get("stream"),
            course=row.get("course") or row.get("preferredCourse") or "",
            created_at=created,
            status=row.get("status"),
            application_id=row.get("application_id", row.get("applicationId")),
        )

    def to_json(self) -> Dict[str, Any]:
        out = asdict(self)
        out["created_at"] = self.created_at.isoformat() if self.created_at else None
        return out

    def to_public_json(self) -> Dict[str, Any]:
        """Camel-cased payload used by the HTTP API (mirrors the merit entries)."""
        return {
            "id": self.id,
            "applicationId": self.application_id,
            "name": self.name,
            "email": self.email,
            "marks": self.marks,
            "stream": self.stream,
            "course": self.course,
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
