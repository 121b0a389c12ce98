"""Daily session state machine.

IDLE -> LOADING -> READY -> PLAYING -> AWAITING_COMPLETION -> COMPLETED,
with LOADING -> COMPLETED when the server (or the local record) says today is
already done, and ERROR reachable from any network call. Completion is
optimistic: a failed complete-session still lands in COMPLETED and is
confirmed later, on the next foreground.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import date
from typing import Awaitable, Callable

from .core.clock import Clock
from .core.session import (
    ContentBundle,
    ErrorKind,
    HistoryItem,
    SessionRecord,
    SessionState,
    SessionStatus,
)
from .errors import (
    ApiError,
    AuthenticationError,
    ContentUnavailableError,
    InvalidTransition,
    NetworkError,
    StorageError,
)
from .events import Listeners
from .persistence import DebouncedWriter
from .ports.content_api import ContentAPI
from .ports.state_storage import StateStorage
from .settings import SettingsStore

logger = logging.getLogger(__name__)

NAMESPACE = "session"

BlockingRunner = Callable[..., Awaitable]


def error_kind(error: ApiError) -> ErrorKind:
    """Classify an API failure."""
    if isinstance(error, AuthenticationError):
        return ErrorKind.AUTH_EXPIRED
    if isinstance(error, ContentUnavailableError):
        return ErrorKind.NOT_AVAILABLE
    if isinstance(error, NetworkError):
        return ErrorKind.NETWORK
    return ErrorKind.SERVER


class DailySession:
    """
    Today's session against the remote API.

    Blocking API calls run through ``run_blocking`` (``asyncio.to_thread`` by
    default) so the event loop stays responsive. Each load() carries a
    generation number; a response that arrives after a newer load() started
    is dropped.
    """

    def __init__(
        self,
        api: ContentAPI,
        storage: StateStorage,
        clock: Clock | None = None,
        settings: SettingsStore | None = None,
        save_delay: float = 0.5,
        run_blocking: BlockingRunner | None = None,
    ):
        self.api = api
        self.clock = clock or Clock()
        self.settings = settings
        self._run = run_blocking or asyncio.to_thread
        self._listeners: Listeners[SessionState] = Listeners()
        self._generation = 0
        self._record = SessionRecord()
        self._writer = DebouncedWriter(storage, NAMESPACE, lambda: self._record.to_dict(), delay=save_delay)
        self._load_record(storage)

        today = self.clock.today()
        if self._record.is_completed(today):
            self._state = SessionState(
                day=today,
                status=SessionStatus.COMPLETED,
                unconfirmed=bool(self._record.pending_session_ids),
            )
        else:
            self._state = SessionState()

    def _load_record(self, storage: StateStorage) -> None:
        try:
            data = storage.load(NAMESPACE)
            if data is not None:
                self._record = SessionRecord.from_dict(data)
        except (StorageError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Session record corrupt, starting fresh: {e}")
            self._record = SessionRecord()

    # ============== State ==============

    @property
    def state(self) -> SessionState:
        """Copy of the current state."""
        return replace(self._state)

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def record(self) -> SessionRecord:
        return replace(self._record, pending_session_ids=list(self._record.pending_session_ids))

    @property
    def completed_today(self) -> bool:
        return self._record.is_completed(self.clock.today())

    def subscribe(self, listener: Callable[[SessionState], None]) -> Callable[[], None]:
        """Call ``listener`` with a snapshot after every state change."""
        return self._listeners.add(listener)

    def flush(self) -> bool:
        return self._writer.flush()

    def _replace_state(self, state: SessionState) -> None:
        previous = self._state.status
        self._state = state
        if state.status != previous:
            logger.info(f"Session {previous.value} -> {state.status.value} ({state.day})")
        self._listeners.notify(self.state)

    def _set(self, **changes) -> None:
        self._replace_state(replace(self._state, **changes))

    def _save_record(self, **changes) -> None:
        self._record = replace(self._record, **changes)
        self._writer.schedule()

    def _is_current(self, generation: int, day: date | None) -> bool:
        return generation == self._generation and self._state.day == day

    def _fail(self, error: ApiError) -> None:
        kind = error_kind(error)
        logger.warning(f"Session error ({kind.value}): {error}")
        self._set(status=SessionStatus.ERROR, error=kind, error_detail=str(error))

    # ============== Transitions ==============

    async def load(self) -> SessionState:
        """Fetch today's content and start (or recognise) today's session."""
        self._generation += 1
        generation = self._generation
        requested = self.clock.today()
        self._replace_state(SessionState(day=requested, status=SessionStatus.LOADING))

        # An unconfirmed completion goes first, before any new session starts.
        await self.confirm_pending()
        if not self._is_current(generation, requested):
            return self.state

        try:
            content = await self._run(self.api.today_content)
            if not self._is_current(generation, requested):
                logger.debug(f"Discarding stale content response for {requested}")
                return self.state

            if self._record.is_completed(requested):
                self._set(
                    content=content,
                    status=SessionStatus.COMPLETED,
                    unconfirmed=bool(self._record.pending_session_ids),
                )
                return self.state

            start = await self._run(self.api.start_session)
        except ApiError as e:
            if self._is_current(generation, requested):
                self._fail(e)
            return self.state

        if not self._is_current(generation, requested):
            logger.debug(f"Discarding stale session start for {requested}")
            return self.state

        if self._record.is_completed(requested):
            # A completion for this day landed while start-session was in flight
            self._set(
                content=content,
                status=SessionStatus.COMPLETED,
                unconfirmed=bool(self._record.pending_session_ids),
            )
            return self.state

        if start.already_completed:
            self._save_record(day=requested, completed=True)
            self._set(content=content, session_id=None, status=SessionStatus.COMPLETED)
            self._note_first_completion()
        elif not start.session_id:
            self._fail(ApiError("start-session returned no session id"))
        else:
            self._save_record(day=requested, completed=False)
            self._set(content=content, session_id=start.session_id, status=SessionStatus.READY)
        return self.state

    async def retry(self) -> SessionState:
        """ERROR -> LOADING."""
        if self._state.status is not SessionStatus.ERROR:
            raise InvalidTransition(f"Cannot retry from {self._state.status.value}")
        return await self.load()

    def begin_playback(self) -> None:
        """READY -> PLAYING. Replays after completion are ignored."""
        status = self._state.status
        if status in (SessionStatus.PLAYING, SessionStatus.COMPLETED):
            return
        if status is not SessionStatus.READY:
            raise InvalidTransition(f"Cannot start playback from {status.value}")
        self._set(status=SessionStatus.PLAYING)

    async def complete(self) -> SessionState:
        """
        Finish today's session (natural playback end or "mark read").

        Lands in COMPLETED whether or not the server confirms; an unconfirmed
        completion is remembered and retried by confirm_pending().
        """
        status = self._state.status
        if status in (SessionStatus.COMPLETED, SessionStatus.AWAITING_COMPLETION):
            return self.state
        if status not in (SessionStatus.READY, SessionStatus.PLAYING):
            raise InvalidTransition(f"Cannot complete from {status.value}")

        if status is SessionStatus.READY:
            self._set(status=SessionStatus.PLAYING)
        self._set(status=SessionStatus.AWAITING_COMPLETION)

        day = self._state.day
        session_id = self._state.session_id

        try:
            streak = await self._run(self.api.complete_session, session_id)
        except ApiError as e:
            logger.warning(f"Completion of session {session_id} not confirmed, will retry: {e}")
            streak = None
            self._add_pending(session_id)

        # Keyed on the day, not the load generation, so a same-day reload
        # racing this call still sees the completion.
        if self._record.day == day:
            self._save_record(completed=True)
        if self._state.day == day:
            if streak is None:
                self._set(status=SessionStatus.COMPLETED, unconfirmed=True)
            else:
                self._set(status=SessionStatus.COMPLETED, streak=streak, unconfirmed=False)

        self._note_first_completion()
        return self.state

    def _add_pending(self, session_id: str) -> None:
        pending = self._record.pending_session_ids
        if session_id not in pending:
            self._save_record(pending_session_ids=[*pending, session_id])

    async def confirm_pending(self) -> bool:
        """
        Retry every unconfirmed completion, oldest first.

        Returns True when nothing is left pending.
        """
        streak = None
        for session_id in list(self._record.pending_session_ids):
            try:
                streak = await self._run(self.api.complete_session, session_id)
            except ApiError as e:
                logger.info(f"Session {session_id} still unconfirmed: {e}")
                continue
            logger.info(f"Confirmed completion of session {session_id}")
            remaining = [p for p in self._record.pending_session_ids if p != session_id]
            self._save_record(pending_session_ids=remaining)

        if self._record.pending_session_ids:
            return False
        if self._state.unconfirmed:
            self._set(unconfirmed=False, streak=streak or self._state.streak)
        return True

    async def on_foreground(self) -> SessionState:
        """
        App returned to the foreground.

        A changed calendar day drops everything from the old day and reloads;
        otherwise only pending confirmations (if any) are retried.
        """
        today = self.clock.today()
        if self._state.day is not None and self._state.day != today:
            logger.info(f"Day rolled over {self._state.day} -> {today}")
            return await self.load()
        await self.confirm_pending()
        return self.state

    def _note_first_completion(self) -> None:
        if self.settings is not None:
            self.settings.set_has_completed_first_session(True)

    # ============== Read-only views ==============

    async def view_day(self, day: date) -> ContentBundle:
        """Content for any day. Never starts or completes a session."""
        return await self._run(self.api.content_for_day, day)

    async def history(self) -> list[HistoryItem]:
        return await self._run(self.api.history)


def completed_on(storage: StateStorage, day: date) -> bool:
    """Read the persisted record fresh and report whether ``day`` was completed."""
    try:
        data = storage.load(NAMESPACE)
        return data is not None and SessionRecord.from_dict(data).is_completed(day)
    except (StorageError, TypeError, ValueError, AttributeError):
        return False
