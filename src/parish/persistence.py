"""Debounced saves of in-memory state to a StateStorage."""

import asyncio
import logging
from typing import Callable

from .errors import StorageError
from .ports.state_storage import StateStorage

logger = logging.getLogger(__name__)


class DebouncedWriter:
    """
    Writes one namespace after mutations, coalescing bursts.

    Inside a running event loop the write is deferred by ``delay`` seconds
    and restarted by each new mutation; without a loop it happens at once.
    Failures are logged and never raised - memory stays authoritative.
    """

    def __init__(
        self,
        storage: StateStorage,
        namespace: str,
        serialize: Callable[[], dict],
        delay: float = 0.5,
    ):
        self.storage = storage
        self.namespace = namespace
        self.serialize = serialize
        self.delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._dirty = False

    @property
    def pending(self) -> bool:
        return self._dirty

    def schedule(self) -> None:
        """Mark state dirty and schedule a save."""
        self._dirty = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.flush()
            return
        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self.delay, self.flush)

    def flush(self) -> bool:
        """Write now if dirty. Returns True when nothing is left unsaved."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if not self._dirty:
            return True
        try:
            self.storage.save(self.namespace, self.serialize())
        except StorageError as e:
            logger.warning(f"Failed to save {self.namespace} state: {e}")
            return False
        self._dirty = False
        logger.debug(f"Saved {self.namespace} state")
        return True
