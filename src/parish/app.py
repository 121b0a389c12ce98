"""Application root - builds each store once and wires them together."""

import asyncio
import logging
from dataclasses import dataclass, field

from .account import AccountStore
from .adapters.file_storage import FileStateStorage
from .adapters.parish_api import ParishAPI
from .adapters.reminder_scheduler import ReminderScheduler
from .candles import CandleStore
from .config import Config, load_config
from .core.clock import Clock
from .core.session import SessionStatus
from .journal_store import JournalStore
from .playback import PlaybackCoordinator
from .ports.audio_transport import AudioTransport
from .ports.content_api import ContentAPI
from .ports.notifier import NotificationScheduler
from .ports.state_storage import StateStorage
from .session import DailySession, completed_on
from .settings import NotificationBridge, SettingsStore

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """The single instance of every store, passed to whoever needs them."""

    config: Config
    clock: Clock
    storage: StateStorage
    journal: JournalStore
    settings: SettingsStore
    session: DailySession
    notifications: NotificationBridge
    candles: CandleStore
    account: AccountStore
    playback: PlaybackCoordinator | None = None
    _loop: asyncio.AbstractEventLoop | None = field(default=None, repr=False)
    _tasks: set = field(default_factory=set, repr=False)

    def attach_player(
        self, transport: AudioTransport, loop: asyncio.AbstractEventLoop | None = None
    ) -> PlaybackCoordinator:
        """
        Connect an audio transport so playback drives the session.

        Completions are run on ``loop``, by default the loop running when the
        player is attached. Transports may report status from their own thread.
        """
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
        self._loop = loop
        self.playback = PlaybackCoordinator(transport)
        self.playback.on_play_started(self._on_play_started)
        self.playback.on_natural_completion(self._on_natural_completion)
        return self.playback

    def load_audio(self) -> bool:
        """Load today's audio into the player. Returns False if there is none."""
        content = self.session.state.content
        if self.playback is None or content is None or not content.audio_url:
            return False
        self.playback.load(content.audio_url)
        return True

    def _on_play_started(self, source_ref: str) -> None:
        if self.session.status is SessionStatus.READY:
            self.session.begin_playback()

    def _on_natural_completion(self, source_ref: str) -> None:
        if self.session.status not in (SessionStatus.READY, SessionStatus.PLAYING):
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        loop = self._loop if self._loop is not None and not self._loop.is_closed() else running

        if loop is None:
            logger.debug(f"No event loop for {source_ref}, completing synchronously")
            asyncio.run(self.session.complete())
            self.session.flush()
        elif loop is running:
            self._spawn_completion()
        else:
            loop.call_soon_threadsafe(self._spawn_completion)

    def _spawn_completion(self) -> None:
        task = asyncio.get_running_loop().create_task(self.session.complete())
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Session completion failed: {exc}", exc_info=exc)

    def flush(self) -> bool:
        """Write every store's pending changes. Returns False if any write failed."""
        results = [
            self.journal.flush(),
            self.settings.flush(),
            self.session.flush(),
            self.candles.flush(),
            self.account.flush(),
        ]
        return all(results)


def create_app(
    config: Config | None = None,
    api: ContentAPI | None = None,
    storage: StateStorage | None = None,
    clock: Clock | None = None,
    scheduler: NotificationScheduler | None = None,
) -> AppContext:
    """Build the application context from config, with optional overrides."""
    if config is None:
        config = load_config()

    clock = clock or Clock.from_name(config.timezone)
    storage = storage or FileStateStorage(config.resolve_data_dir())
    api = api or ParishAPI(config)
    delay = config.save_debounce

    journal = JournalStore(storage, clock, save_delay=delay)
    settings = SettingsStore(storage, save_delay=delay)
    session = DailySession(api, storage, clock, settings=settings, save_delay=delay)
    if scheduler is None:
        scheduler = ReminderScheduler(config, should_remind=lambda: not completed_on(storage, clock.today()))
    notifications = NotificationBridge(settings, scheduler)
    candles = CandleStore(storage, clock, save_delay=delay)
    account = AccountStore(storage, api, settings=settings, save_delay=delay)

    logger.debug(f"Parish context ready (data in {config.resolve_data_dir()})")
    return AppContext(
        config=config,
        clock=clock,
        storage=storage,
        journal=journal,
        settings=settings,
        session=session,
        notifications=notifications,
        candles=candles,
        account=account,
    )
