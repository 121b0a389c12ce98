"""Functional core - pure business logic with no I/O."""

from .clock import Clock, today, day_of, days_between
from .journal import (
    JournalEntry,
    JournalState,
    Milestone,
    MilestoneKind,
    MILESTONES,
    next_unseen_milestone,
)
from .session import (
    ContentBundle,
    ErrorKind,
    HistoryItem,
    Reading,
    SessionRecord,
    SessionStart,
    SessionState,
    SessionStatus,
    StreakSummary,
    UserProfile,
)
from .playback import PlaybackState, TransportStatus, format_time
from .reference import format_reference, split_reference

__all__ = [
    # Clock
    "Clock",
    "today",
    "day_of",
    "days_between",
    # Journal
    "JournalEntry",
    "JournalState",
    "Milestone",
    "MilestoneKind",
    "MILESTONES",
    "next_unseen_milestone",
    # Session
    "ContentBundle",
    "ErrorKind",
    "HistoryItem",
    "Reading",
    "SessionRecord",
    "SessionStart",
    "SessionState",
    "SessionStatus",
    "StreakSummary",
    "UserProfile",
    # Playback
    "PlaybackState",
    "TransportStatus",
    "format_time",
    # References
    "format_reference",
    "split_reference",
]
