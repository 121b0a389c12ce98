"""Tests for the journal store and milestone logic."""

import asyncio
from datetime import date, timedelta

import pytest

from parish.core.journal import MILESTONES, JournalState, MilestoneKind, next_unseen_milestone
from parish.journal_store import JournalStore


@pytest.fixture
def journal(storage, clock):
    return JournalStore(storage, clock, save_delay=0.01)


def drain_milestones(journal: JournalStore) -> list[MilestoneKind]:
    seen = []
    while (milestone := journal.unseen_milestone()) is not None:
        seen.append(milestone.kind)
        journal.mark_milestone_seen(milestone.kind)
        assert len(seen) <= len(MILESTONES)
    return seen


class TestAddEntry:
    def test_first_entry_sets_first_day_and_milestone(self, journal, today):
        entry = journal.add_entry("Help my neighbor")

        state = journal.snapshot()
        assert state.first_entry_day == today
        assert state.days_with_entries == {today}
        assert state.entries == [entry]
        assert journal.unseen_milestone().kind is MilestoneKind.FIRST_ENTRY

    def test_trims_text(self, journal):
        entry = journal.add_entry("  Peace for my family \n")
        assert entry.text == "Peace for my family"

    def test_prepends_newest_first(self, journal):
        first = journal.add_entry("first")
        second = journal.add_entry("second")
        assert [e.id for e in journal.entries] == [second.id, first.id]

    def test_ids_are_unique(self, journal):
        ids = {journal.add_entry(f"entry {i}").id for i in range(50)}
        assert len(ids) == 50

    def test_keeps_linked_content(self, journal):
        entry = journal.add_entry("For the readings", linked_content_id="2025-01-15")
        assert journal.get_entry(entry.id).linked_content_id == "2025-01-15"

    def test_same_day_counted_once(self, journal, today):
        journal.add_entry("one")
        journal.add_entry("two")
        assert journal.unique_days_count() == 1


class TestDeleteEntry:
    def test_missing_id_is_noop(self, journal, storage):
        journal.add_entry("keep me")
        saves = storage.saves
        journal.delete_entry("does-not-exist")
        assert len(journal.entries) == 1
        assert storage.saves == saves

    def test_first_day_survives_deletion(self, journal, now, today):
        first = journal.add_entry("day one")
        now.advance(days=3)
        journal.add_entry("day four")

        journal.delete_entry(first.id)

        state = journal.snapshot()
        assert state.first_entry_day == today
        assert state.days_with_entries == {today, today + timedelta(days=3)}

    def test_first_day_never_moves(self, journal, now, today):
        """Any add/delete sequence leaves first_entry_day where it was first set."""
        created = []
        for i in range(6):
            created.append(journal.add_entry(f"entry {i}"))
            if i % 2:
                journal.delete_entry(created[i - 1].id)
            now.advance(days=1)
            assert journal.first_entry_day == today
        for entry in created:
            journal.delete_entry(entry.id)
        assert journal.entries == []
        assert journal.first_entry_day == today


class TestSetAnswered:
    def test_marks_and_unmarks(self, journal, now):
        entry = journal.add_entry("healing")
        journal.set_answered(entry.id, True)
        assert journal.get_entry(entry.id).answered_at == now.current
        assert journal.answered_entries()[0].id == entry.id
        assert journal.active_entries() == []

        journal.set_answered(entry.id, False)
        assert journal.get_entry(entry.id).answered_at is None
        assert journal.active_entries()[0].id == entry.id

    def test_idempotent(self, journal, now):
        entry = journal.add_entry("healing")
        journal.set_answered(entry.id, True)
        answered_at = journal.get_entry(entry.id).answered_at
        now.advance(hours=2)
        journal.set_answered(entry.id, True)
        assert journal.get_entry(entry.id).answered_at == answered_at

    def test_unknown_id_ignored(self, journal):
        journal.set_answered("nope", True)
        assert journal.answered_entries() == []


class TestQueries:
    def test_entries_for_day(self, journal, now, today):
        journal.add_entry("yesterday's")
        now.advance(days=1)
        todays = journal.add_entry("today's")

        assert [e.text for e in journal.entries_for_day(today)] == ["yesterday's"]
        assert journal.entries_for_today() == [todays]

    def test_days_since_first_entry(self, journal, now):
        assert journal.days_since_first_entry() == 0
        journal.add_entry("start")
        now.advance(days=10)
        assert journal.days_since_first_entry() == 10


class TestMilestones:
    def test_none_for_empty_journal(self, journal):
        assert journal.unseen_milestone() is None

    def test_second_distinct_day_then_nothing_before_a_week(self, journal, now):
        journal.add_entry("day one")
        now.advance(days=1)
        journal.add_entry("day two")

        journal.mark_milestone_seen(MilestoneKind.FIRST_ENTRY)
        assert journal.unseen_milestone().kind is MilestoneKind.SECOND_DISTINCT_DAY

        journal.mark_milestone_seen(MilestoneKind.SECOND_DISTINCT_DAY)
        assert journal.unseen_milestone() is None

    def test_full_sequence_after_long_absence(self, journal, now):
        journal.add_entry("long ago")
        now.advance(days=1)
        journal.add_entry("the next day")
        now.advance(days=399)

        assert drain_milestones(journal) == [
            MilestoneKind.FIRST_ENTRY,
            MilestoneKind.SECOND_DISTINCT_DAY,
            MilestoneKind.ONE_WEEK,
            MilestoneKind.TWO_WEEKS,
            MilestoneKind.ONE_MONTH,
            MilestoneKind.SIX_MONTHS,
            MilestoneKind.ONE_YEAR,
        ]
        assert journal.unseen_milestone() is None
        now.advance(days=365)
        assert journal.unseen_milestone() is None

    def test_unseen_milestone_is_pure(self, journal, storage):
        journal.add_entry("hello")
        saves = storage.saves
        for _ in range(3):
            assert journal.unseen_milestone().kind is MilestoneKind.FIRST_ENTRY
        assert storage.saves == saves

    def test_duration_milestone_without_second_day(self, journal, now):
        journal.add_entry("only day")
        now.advance(days=7)
        journal.mark_milestone_seen(MilestoneKind.FIRST_ENTRY)
        # Lowest-order achieved one wins even when an earlier one is still locked
        assert journal.unseen_milestone().kind is MilestoneKind.ONE_WEEK

    def test_month_is_thirty_days(self, today):
        state = JournalState(
            first_entry_day=today,
            days_with_entries={today},
            seen_milestones={
                MilestoneKind.FIRST_ENTRY,
                MilestoneKind.ONE_WEEK,
                MilestoneKind.TWO_WEEKS,
            },
        )
        assert next_unseen_milestone(state, today + timedelta(days=29)) is None
        assert next_unseen_milestone(state, today + timedelta(days=30)).kind is MilestoneKind.ONE_MONTH

    def test_mark_seen_is_permanent(self, journal):
        journal.add_entry("hello")
        journal.mark_milestone_seen(MilestoneKind.FIRST_ENTRY)
        journal.mark_milestone_seen(MilestoneKind.FIRST_ENTRY)
        assert journal.snapshot().seen_milestones == {MilestoneKind.FIRST_ENTRY}


class TestPersistence:
    def test_round_trip(self, storage, clock, now, today):
        journal = JournalStore(storage, clock)
        entry = journal.add_entry("persist me", linked_content_id="2025-01-15")
        journal.set_answered(entry.id, True)
        journal.mark_milestone_seen(MilestoneKind.FIRST_ENTRY)

        reloaded = JournalStore(storage, clock)
        state = reloaded.snapshot()
        assert [e.text for e in state.entries] == ["persist me"]
        assert state.entries[0].answered_at == now.current
        assert state.first_entry_day == today
        assert state.seen_milestones == {MilestoneKind.FIRST_ENTRY}

    def test_corrupt_json_resets_to_empty(self, storage, clock):
        storage.records["journal"] = "{not json"
        journal = JournalStore(storage, clock)
        assert journal.entries == []
        assert journal.first_entry_day is None

    def test_invalid_shape_resets_to_empty(self, storage, clock):
        storage.records["journal"] = '{"entries": [{"id": "1"}], "first_entry_day": "2025-01-01"}'
        journal = JournalStore(storage, clock)
        assert journal.entries == []

    def test_failed_write_keeps_memory(self, storage, clock):
        storage.fail_saves = True
        journal = JournalStore(storage, clock)
        entry = journal.add_entry("still here")
        assert journal.get_entry(entry.id) is not None
        assert journal.flush() is False

        storage.fail_saves = False
        assert journal.flush() is True
        assert JournalStore(storage, clock).get_entry(entry.id) is not None

    def test_saves_are_debounced_inside_event_loop(self, journal, storage):
        async def scenario():
            journal.add_entry("one")
            journal.add_entry("two")
            journal.add_entry("three")
            assert storage.saves == 0
            await asyncio.sleep(0.05)

        asyncio.run(scenario())
        assert storage.saves == 1

    def test_subscribers_get_snapshots(self, journal):
        snapshots = []
        unsubscribe = journal.subscribe(snapshots.append)
        journal.add_entry("one")
        unsubscribe()
        journal.add_entry("two")
        assert len(snapshots) == 1
        assert snapshots[0].entries[0].text == "one"
