"""User settings and the bridge to the notification scheduler."""

import logging
from dataclasses import asdict, dataclass, fields, replace
from typing import Callable

from .errors import StorageError
from .events import Listeners
from .persistence import DebouncedWriter
from .ports.notifier import NotificationScheduler
from .ports.state_storage import StateStorage

logger = logging.getLogger(__name__)

NAMESPACE = "settings"


@dataclass
class Settings:
    """Reminder preferences and one-time prompt flags."""

    daily_reminder_enabled: bool = False
    reminder_hour: int = 7
    reminder_minute: int = 0
    notification_permission_granted: bool = False
    has_completed_first_session: bool = False
    has_seen_welcome: bool = False
    has_seen_reminder_prompt: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        known = {f.name for f in fields(cls)}
        settings = cls(**{k: v for k, v in data.items() if k in known})
        validate_time(settings.reminder_hour, settings.reminder_minute)
        return settings


def validate_time(hour: int, minute: int) -> None:
    """Raise ValueError unless hour is 0-23 and minute 0-59."""
    if not isinstance(hour, int) or not 0 <= hour <= 23:
        raise ValueError(f"Hour must be 0-23, got {hour!r}")
    if not isinstance(minute, int) or not 0 <= minute <= 59:
        raise ValueError(f"Minute must be 0-59, got {minute!r}")


class SettingsStore:
    """Persisted settings; each setter saves after mutating."""

    def __init__(self, storage: StateStorage, save_delay: float = 0.5):
        self._settings = Settings()
        self._listeners: Listeners[Settings] = Listeners()
        self._writer = DebouncedWriter(storage, NAMESPACE, lambda: asdict(self._settings), delay=save_delay)
        try:
            data = storage.load(NAMESPACE)
            if data is not None:
                self._settings = Settings.from_dict(data)
        except (StorageError, TypeError, ValueError) as e:
            logger.warning(f"Settings unreadable, using defaults: {e}")

    @property
    def settings(self) -> Settings:
        return replace(self._settings)

    def subscribe(self, listener: Callable[[Settings], None]) -> Callable[[], None]:
        return self._listeners.add(listener)

    def flush(self) -> bool:
        return self._writer.flush()

    def _update(self, **changes) -> None:
        updated = replace(self._settings, **changes)
        if updated == self._settings:
            return
        self._settings = updated
        self._listeners.notify(self.settings)
        self._writer.schedule()

    def set_daily_reminder_enabled(self, enabled: bool) -> None:
        self._update(daily_reminder_enabled=enabled)

    def set_reminder_time(self, hour: int, minute: int) -> None:
        validate_time(hour, minute)
        self._update(reminder_hour=hour, reminder_minute=minute)

    def set_notification_permission_granted(self, granted: bool) -> None:
        self._update(notification_permission_granted=granted)

    def set_has_completed_first_session(self, value: bool) -> None:
        self._update(has_completed_first_session=value)

    def set_has_seen_welcome(self, value: bool) -> None:
        self._update(has_seen_welcome=value)

    def set_has_seen_reminder_prompt(self, value: bool) -> None:
        self._update(has_seen_reminder_prompt=value)


class NotificationBridge:
    """
    Translates reminder settings into scheduler calls.

    Also answers the one-time prompt questions that depend on those flags.
    """

    def __init__(self, settings: SettingsStore, scheduler: NotificationScheduler):
        self.settings = settings
        self.scheduler = scheduler

    def enable_reminders(self) -> bool:
        """Ask for permission, then schedule at the configured time. Returns success."""
        granted = self.scheduler.request_permission()
        self.settings.set_notification_permission_granted(granted)
        if not granted:
            logger.info("Reminder permission not granted")
            return False

        current = self.settings.settings
        handle = self.scheduler.schedule_daily(current.reminder_hour, current.reminder_minute)
        if handle is None:
            return False
        self.settings.set_daily_reminder_enabled(True)
        return True

    def disable_reminders(self) -> None:
        self.scheduler.cancel_all()
        self.settings.set_daily_reminder_enabled(False)

    def update_reminder_time(self, hour: int, minute: int) -> None:
        """Change the reminder time, rescheduling if reminders are on."""
        self.settings.set_reminder_time(hour, minute)
        if self.settings.settings.daily_reminder_enabled:
            self.scheduler.schedule_daily(hour, minute)

    def sync(self) -> str | None:
        """Re-apply stored settings to the scheduler, e.g. at process start."""
        current = self.settings.settings
        if not current.daily_reminder_enabled:
            self.scheduler.cancel_all()
            return None
        return self.scheduler.schedule_daily(current.reminder_hour, current.reminder_minute)

    def should_show_orientation(self) -> bool:
        """First-session orientation card."""
        return not self.settings.settings.has_completed_first_session

    def should_show_reminder_prompt(self) -> bool:
        """Offer reminders once, after the first completed session."""
        current = self.settings.settings
        return (
            current.has_completed_first_session
            and not current.daily_reminder_enabled
            and not current.has_seen_reminder_prompt
        )

    def dismiss_reminder_prompt(self) -> None:
        self.settings.set_has_seen_reminder_prompt(True)
