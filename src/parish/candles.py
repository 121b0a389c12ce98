"""Candle store - persisted count of candles lit today."""

import logging
from typing import Callable

from .core.candles import CandleState, count_on, light
from .core.clock import Clock
from .errors import StorageError
from .events import Listeners
from .persistence import DebouncedWriter
from .ports.state_storage import StateStorage

logger = logging.getLogger(__name__)

NAMESPACE = "candles"


class CandleStore:
    """
    Counts candles lit on the current day.

    The stored count belongs to ``last_lit_day``; once the day rolls over it
    reads as zero and the next candle starts again at one.
    """

    def __init__(self, storage: StateStorage, clock: Clock | None = None, save_delay: float = 0.5):
        self.clock = clock or Clock()
        self._state = CandleState()
        self._listeners: Listeners[int] = Listeners()
        self._writer = DebouncedWriter(storage, NAMESPACE, lambda: self._state.to_dict(), delay=save_delay)
        try:
            data = storage.load(NAMESPACE)
            if data is not None:
                self._state = CandleState.from_dict(data)
        except (StorageError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Candle count unreadable, starting at zero: {e}")

    def subscribe(self, listener: Callable[[int], None]) -> Callable[[], None]:
        """Call ``listener`` with today's count after each candle."""
        return self._listeners.add(listener)

    def flush(self) -> bool:
        return self._writer.flush()

    def light(self) -> int:
        """Light a candle; returns today's count including it."""
        self._state = light(self._state, self.clock.today())
        logger.debug(f"Candle lit ({self._state.today_count} today)")
        self._listeners.notify(self._state.today_count)
        self._writer.schedule()
        return self._state.today_count

    def count(self) -> int:
        return count_on(self._state, self.clock.today())

    def has_lit_today(self) -> bool:
        return self.count() > 0
