"""Pure journal domain logic - entries, state and milestone predicates."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from .clock import days_between


@dataclass
class JournalEntry:
    """A single journal (prayer) entry."""

    id: str
    text: str
    created_at: datetime
    linked_content_id: str | None = None
    answered_at: datetime | None = None

    @property
    def is_answered(self) -> bool:
        return self.answered_at is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "linked_content_id": self.linked_content_id,
            "text": self.text,
            "created_at": self.created_at.isoformat(),
            "answered_at": self.answered_at.isoformat() if self.answered_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "JournalEntry":
        answered = data.get("answered_at")
        return cls(
            id=str(data["id"]),
            text=data["text"],
            created_at=datetime.fromisoformat(data["created_at"]),
            linked_content_id=data.get("linked_content_id"),
            answered_at=datetime.fromisoformat(answered) if answered else None,
        )


class MilestoneKind(Enum):
    """One-time achievements, in the order they are surfaced."""

    FIRST_ENTRY = "1_day"
    SECOND_DISTINCT_DAY = "2_days"
    ONE_WEEK = "1_week"
    TWO_WEEKS = "2_weeks"
    ONE_MONTH = "1_month"
    SIX_MONTHS = "6_months"
    ONE_YEAR = "1_year"


@dataclass(frozen=True)
class Milestone:
    """A milestone and the thresholds that unlock it."""

    kind: MilestoneKind
    label: str
    days_required: int = 0
    unique_days_required: int | None = None


# Month and year are plain day counts, not calendar arithmetic.
MILESTONES: tuple[Milestone, ...] = (
    Milestone(MilestoneKind.FIRST_ENTRY, "First prayer"),
    Milestone(MilestoneKind.SECOND_DISTINCT_DAY, "2 days", unique_days_required=2),
    Milestone(MilestoneKind.ONE_WEEK, "1 week", days_required=7),
    Milestone(MilestoneKind.TWO_WEEKS, "2 weeks", days_required=14),
    Milestone(MilestoneKind.ONE_MONTH, "1 month", days_required=30),
    Milestone(MilestoneKind.SIX_MONTHS, "6 months", days_required=180),
    Milestone(MilestoneKind.ONE_YEAR, "1 year", days_required=365),
)


@dataclass
class JournalState:
    """Everything the journal persists."""

    entries: list[JournalEntry] = field(default_factory=list)
    first_entry_day: date | None = None
    days_with_entries: set[date] = field(default_factory=set)
    seen_milestones: set[MilestoneKind] = field(default_factory=set)

    def copy(self) -> "JournalState":
        return JournalState(
            entries=list(self.entries),
            first_entry_day=self.first_entry_day,
            days_with_entries=set(self.days_with_entries),
            seen_milestones=set(self.seen_milestones),
        )

    def to_dict(self) -> dict:
        return {
            "entries": [e.to_dict() for e in self.entries],
            "first_entry_day": self.first_entry_day.isoformat() if self.first_entry_day else None,
            "days_with_entries": sorted(d.isoformat() for d in self.days_with_entries),
            "seen_milestones": [m.value for m in MilestoneKind if m in self.seen_milestones],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "JournalState":
        """Decode persisted state. Raises KeyError/TypeError/ValueError on bad data."""
        first = data.get("first_entry_day")
        state = cls(
            entries=[JournalEntry.from_dict(e) for e in data.get("entries", [])],
            first_entry_day=date.fromisoformat(first) if first else None,
            days_with_entries={date.fromisoformat(d) for d in data.get("days_with_entries", [])},
            seen_milestones={MilestoneKind(m) for m in data.get("seen_milestones", [])},
        )
        if state.entries and state.first_entry_day is None:
            raise ValueError("entries present without first_entry_day")
        return state


def is_achieved(milestone: Milestone, state: JournalState, as_of: date) -> bool:
    """Whether a milestone's predicate holds for the given state."""
    if state.first_entry_day is None:
        return False
    if milestone.kind is MilestoneKind.FIRST_ENTRY:
        return True
    if milestone.unique_days_required is not None:
        return len(state.days_with_entries) >= milestone.unique_days_required
    return days_between(state.first_entry_day, as_of) >= milestone.days_required


def next_unseen_milestone(state: JournalState, as_of: date) -> Milestone | None:
    """
    First achieved milestone not yet seen, in fixed order.

    Returns at most one, so a long absence surfaces celebrations one at a time.
    """
    for milestone in MILESTONES:
        if milestone.kind in state.seen_milestones:
            continue
        if is_achieved(milestone, state, as_of):
            return milestone
    return None
