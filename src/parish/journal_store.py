"""Journal store - persisted prayer list with day tracking and milestones."""

import logging
import uuid
from dataclasses import replace
from datetime import date
from typing import Callable

from .core.clock import Clock
from .core.journal import (
    JournalEntry,
    JournalState,
    Milestone,
    MilestoneKind,
    next_unseen_milestone,
)
from .errors import StorageError
from .events import Listeners
from .persistence import DebouncedWriter
from .ports.state_storage import StateStorage

logger = logging.getLogger(__name__)

NAMESPACE = "journal"


def generate_id() -> str:
    return uuid.uuid4().hex


class JournalStore:
    """
    The user's private journal.

    Every public operation runs to completion against the in-memory state,
    notifies listeners, then schedules a save. Day tracking is append-only:
    deleting entries never moves ``first_entry_day`` nor forgets a day.
    """

    def __init__(self, storage: StateStorage, clock: Clock | None = None, save_delay: float = 0.5):
        self.clock = clock or Clock()
        self._state = JournalState()
        self._listeners: Listeners[JournalState] = Listeners()
        self._writer = DebouncedWriter(storage, NAMESPACE, self._serialize, delay=save_delay)
        self._load(storage)

    def _load(self, storage: StateStorage) -> None:
        try:
            data = storage.load(NAMESPACE)
        except StorageError as e:
            logger.warning(f"Journal state unreadable, starting empty: {e}")
            return
        if data is None:
            return
        try:
            self._state = JournalState.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Journal state corrupt, starting empty: {e}")
            self._state = JournalState()

    def _serialize(self) -> dict:
        return self._state.to_dict()

    def _changed(self) -> None:
        self._listeners.notify(self.snapshot())
        self._writer.schedule()

    def snapshot(self) -> JournalState:
        """Copy of the current state."""
        return self._state.copy()

    def subscribe(self, listener: Callable[[JournalState], None]) -> Callable[[], None]:
        """Call ``listener`` with a snapshot after every mutation."""
        return self._listeners.add(listener)

    def flush(self) -> bool:
        """Write pending changes now."""
        return self._writer.flush()

    # ============== Mutations ==============

    def add_entry(self, text: str, linked_content_id: str | None = None) -> JournalEntry:
        """Prepend a new entry and record today as a practice day.

        Blank text is the caller's to reject; the store does not validate it.
        """
        now = self.clock.now()
        today = self.clock.day_of(now)
        entry = JournalEntry(
            id=generate_id(),
            text=text.strip(),
            created_at=now,
            linked_content_id=linked_content_id,
        )

        self._state.entries.insert(0, entry)
        if self._state.first_entry_day is None:
            self._state.first_entry_day = today
        self._state.days_with_entries.add(today)

        logger.debug(f"Added journal entry {entry.id}")
        self._changed()
        return entry

    def delete_entry(self, entry_id: str) -> None:
        """Remove an entry. No-op if it does not exist."""
        remaining = [e for e in self._state.entries if e.id != entry_id]
        if len(remaining) == len(self._state.entries):
            return
        self._state.entries = remaining
        self._changed()

    def set_answered(self, entry_id: str, value: bool) -> None:
        """Mark an entry answered (now) or unanswered."""
        entry = self.get_entry(entry_id)
        if entry is None or entry.is_answered == value:
            return
        updated = replace(entry, answered_at=self.clock.now() if value else None)
        self._state.entries = [updated if e.id == entry_id else e for e in self._state.entries]
        self._changed()

    def mark_milestone_seen(self, kind: MilestoneKind) -> None:
        """Record a milestone as shown. There is no way to unsee one."""
        if kind in self._state.seen_milestones:
            return
        self._state.seen_milestones.add(kind)
        logger.info(f"Milestone seen: {kind.value}")
        self._changed()

    # ============== Queries ==============

    @property
    def entries(self) -> list[JournalEntry]:
        return list(self._state.entries)

    @property
    def first_entry_day(self) -> date | None:
        return self._state.first_entry_day

    def get_entry(self, entry_id: str) -> JournalEntry | None:
        return next((e for e in self._state.entries if e.id == entry_id), None)

    def entries_for_day(self, day: date) -> list[JournalEntry]:
        return [e for e in self._state.entries if self.clock.day_of(e.created_at) == day]

    def entries_for_today(self) -> list[JournalEntry]:
        return self.entries_for_day(self.clock.today())

    def active_entries(self) -> list[JournalEntry]:
        return [e for e in self._state.entries if e.answered_at is None]

    def answered_entries(self) -> list[JournalEntry]:
        return [e for e in self._state.entries if e.answered_at is not None]

    def days_since_first_entry(self) -> int:
        if self._state.first_entry_day is None:
            return 0
        return self.clock.days_between(self._state.first_entry_day, self.clock.today())

    def unique_days_count(self) -> int:
        return len(self._state.days_with_entries)

    def unseen_milestone(self) -> Milestone | None:
        """Next milestone to celebrate, one at a time. Pure read."""
        return next_unseen_milestone(self._state, self.clock.today())
