"""Pure session domain types - content, session state and API payloads."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from .reference import format_reference


class SessionStatus(Enum):
    """Lifecycle of today's session."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    PLAYING = "playing"
    AWAITING_COMPLETION = "awaiting_completion"
    COMPLETED = "completed"
    ERROR = "error"


class ErrorKind(Enum):
    """Why a session landed in ERROR."""

    NETWORK = "network"  # No connectivity or timeout
    AUTH_EXPIRED = "auth_expired"  # 401, needs re-authentication
    NOT_AVAILABLE = "not_available"  # 404, no content for this day
    SERVER = "server"  # Unexpected API response

    @property
    def retryable(self) -> bool:
        return self in (ErrorKind.NETWORK, ErrorKind.SERVER)


@dataclass
class Reading:
    """A scripture reading."""

    reference: str
    text: str

    @property
    def display_reference(self) -> str:
        return format_reference(self.reference)

    @classmethod
    def from_api(cls, data: dict | None) -> "Reading":
        data = data or {}
        return cls(reference=data.get("reference", ""), text=data.get("text", ""))


@dataclass
class ContentBundle:
    """Content for one day: readings, commentary and optional audio."""

    day: date
    first_reading: Reading
    gospel: Reading
    commentary: str = ""
    audio_url: str | None = None

    @property
    def content_id(self) -> str:
        """Identifier journal entries use to link back to this content."""
        return self.day.isoformat()

    @classmethod
    def from_api(cls, data: dict) -> "ContentBundle":
        """Create from a readings API response."""
        return cls(
            day=date.fromisoformat(data["date"].split("T")[0]),
            first_reading=Reading.from_api(data.get("first_reading")),
            gospel=Reading.from_api(data.get("gospel")),
            commentary=data.get("commentary") or "",
            audio_url=data.get("audio_url") or data.get("audioUrl") or None,
        )


@dataclass
class SessionStart:
    """Result of asking the server to start today's session."""

    session_id: str | None
    already_completed: bool = False


@dataclass
class StreakSummary:
    """Server-side streak counters returned on completion."""

    current_streak: int = 0
    longest_streak: int = 0
    total_sessions: int = 0

    @classmethod
    def from_api(cls, data: dict | None) -> "StreakSummary":
        data = data or {}
        return cls(
            current_streak=int(data.get("current_streak", 0)),
            longest_streak=int(data.get("longest_streak", 0)),
            total_sessions=int(data.get("total_sessions", 0)),
        )


@dataclass
class HistoryItem:
    """A completed session from the history endpoint."""

    session_id: str
    day: date
    first_reading_reference: str
    gospel_reference: str
    completed_at: datetime | None

    @classmethod
    def from_api(cls, data: dict) -> "HistoryItem":
        completed = data.get("completed_at")
        return cls(
            session_id=data["session_id"],
            day=date.fromisoformat(data["date"].split("T")[0]),
            first_reading_reference=data.get("first_reading_reference", ""),
            gospel_reference=data.get("gospel_reference", ""),
            completed_at=datetime.fromisoformat(completed.replace("Z", "+00:00")) if completed else None,
        )


@dataclass
class SessionState:
    """Observable state of the daily session."""

    day: date | None = None
    content: ContentBundle | None = None
    session_id: str | None = None
    status: SessionStatus = SessionStatus.IDLE
    error: ErrorKind | None = None
    error_detail: str | None = None
    streak: StreakSummary | None = None
    # Completed locally but the server has not confirmed it yet
    unconfirmed: bool = False


@dataclass
class SessionRecord:
    """The slice of session state that survives a restart."""

    day: date | None = None
    completed: bool = False
    # Completed locally, complete-session still to be confirmed; oldest first
    pending_session_ids: list[str] = field(default_factory=list)

    def is_completed(self, day: date) -> bool:
        return self.completed and self.day == day

    def to_dict(self) -> dict:
        return {
            "day": self.day.isoformat() if self.day else None,
            "completed": self.completed,
            "pending_session_ids": list(self.pending_session_ids),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SessionRecord":
        day = data.get("day")
        pending = data.get("pending_session_ids") or []
        if not isinstance(pending, list):
            raise TypeError(f"pending_session_ids must be a list, got {type(pending).__name__}")
        return cls(
            day=date.fromisoformat(day) if day else None,
            completed=bool(data.get("completed", False)),
            pending_session_ids=[str(p) for p in pending if p],
        )


@dataclass
class UserProfile:
    """The signed-in account, as returned by the user endpoint."""

    id: str
    email: str
    created_at: datetime | None = None
    streak: StreakSummary | None = None

    @classmethod
    def from_api(cls, data: dict) -> "UserProfile":
        created = data.get("created_at")
        return cls(
            id=str(data["id"]),
            email=data.get("email") or "",
            created_at=datetime.fromisoformat(created.replace("Z", "+00:00")) if created else None,
            streak=StreakSummary.from_api(data.get("streak")),
        )
