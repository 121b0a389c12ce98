"""Shared test doubles: a settable clock, in-memory storage and a fake API."""

import json
from datetime import date, datetime, timedelta, timezone

import pytest

from parish.core.clock import Clock
from parish.core.playback import TransportStatus
from parish.core.session import ContentBundle, HistoryItem, Reading, SessionStart, StreakSummary, UserProfile
from parish.errors import CorruptStateError, StorageError


class MutableNow:
    """A now() source tests can move forward."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)

    def set_day(self, day: date, hour: int = 9) -> None:
        self.current = datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc)


class MemoryStorage:
    """StateStorage kept in a dict, JSON-encoded like the file adapter."""

    def __init__(self):
        self.records: dict[str, str] = {}
        self.saves = 0
        self.fail_saves = False

    def load(self, namespace: str) -> dict | None:
        raw = self.records.get(namespace)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptStateError(str(e)) from e

    def save(self, namespace: str, data: dict) -> None:
        if self.fail_saves:
            raise StorageError("disk full")
        self.records[namespace] = json.dumps(data)
        self.saves += 1


def make_bundle(day: date) -> ContentBundle:
    return ContentBundle(
        day=day,
        first_reading=Reading(reference="Malachi 3:1-4|Hebrews 2:14-18", text="Lo, I am sending my messenger."),
        gospel=Reading(reference="Luke 2:22-40", text="When the days were completed..."),
        commentary="A reflection.",
        audio_url=f"https://audio.example/{day.isoformat()}.mp3",
    )


class FakeAPI:
    """ContentAPI double that behaves like the server for the clock's current day."""

    def __init__(self, clock: Clock):
        self.clock = clock
        self.completed_days: set[date] = set()
        self.start_calls = 0
        self.complete_calls: list[str] = []
        self.viewed: list[date] = []
        self.session_days: dict[str, date] = {}
        self.content_error: Exception | None = None
        self.start_error: Exception | None = None
        self.complete_error: Exception | None = None
        self.user_error: Exception | None = None
        self.deleted = False

    def today_content(self) -> ContentBundle:
        if self.content_error:
            raise self.content_error
        return make_bundle(self.clock.today())

    def content_for_day(self, target_date: date) -> ContentBundle:
        self.viewed.append(target_date)
        return make_bundle(target_date)

    def start_session(self) -> SessionStart:
        self.start_calls += 1
        if self.start_error:
            raise self.start_error
        if self.clock.today() in self.completed_days:
            return SessionStart(session_id=None, already_completed=True)
        session_id = f"session-{self.start_calls}"
        self.session_days[session_id] = self.clock.today()
        return SessionStart(session_id=session_id)

    def complete_session(self, session_id: str) -> StreakSummary:
        self.complete_calls.append(session_id)
        if self.complete_error:
            raise self.complete_error
        self.completed_days.add(self.session_days.get(session_id, self.clock.today()))
        return StreakSummary(current_streak=3, longest_streak=5, total_sessions=12)

    def history(self) -> list[HistoryItem]:
        return [
            HistoryItem(
                session_id="session-0",
                day=date(2025, 1, 14),
                first_reading_reference="Malachi 3:1-4",
                gospel_reference="Luke 2:22-40",
                completed_at=datetime(2025, 1, 14, 8, 0, tzinfo=timezone.utc),
            )
        ]

    def user(self) -> UserProfile:
        if self.user_error:
            raise self.user_error
        return UserProfile(
            id="user-1",
            email="anna@example.com",
            streak=StreakSummary(current_streak=3, longest_streak=5, total_sessions=12),
        )

    def delete_user(self) -> bool:
        if self.user_error:
            raise self.user_error
        self.deleted = True
        return True


DURATION = 180_000


class FakeTransport:
    """AudioTransport double: records commands, tests push status via emit()."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.on_status = None

    def load(self, source_ref, on_status):
        self.calls.append(("load", source_ref))
        self.on_status = on_status

    def play(self):
        self.calls.append(("play",))

    def pause(self):
        self.calls.append(("pause",))

    def set_position(self, position_ms):
        self.calls.append(("set_position", position_ms))

    def unload(self):
        self.calls.append(("unload",))

    def emit(self, **kwargs):
        kwargs.setdefault("is_loaded", True)
        kwargs.setdefault("duration_ms", DURATION)
        self.on_status(TransportStatus(**kwargs))

    def finish(self, **kwargs):
        self.emit(position_ms=DURATION, did_just_finish=True, **kwargs)


async def run_inline(fn, *args):
    """run_blocking replacement that calls straight through on the loop."""
    return fn(*args)


@pytest.fixture
def today():
    return date(2025, 1, 15)


@pytest.fixture
def now(today):
    source = MutableNow(datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc))
    return source


@pytest.fixture
def clock(now):
    return Clock(tz=timezone.utc, now_fn=now)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def api(clock):
    return FakeAPI(clock)
