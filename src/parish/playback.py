"""Playback-completion coordinator.

Mirrors the audio transport's status into PlaybackState and turns the first
natural end of playback into a single completion event.
"""

import logging
from dataclasses import replace
from typing import Callable

from .core.playback import PlaybackState, TransportStatus
from .events import Listeners
from .ports.audio_transport import AudioTransport

logger = logging.getLogger(__name__)


class PlaybackCoordinator:
    """
    Bridges an AudioTransport to the session.

    Completion fires once per latch. The latch resets on replay_from_start()
    or when a new source is loaded; loops and finishes caused by seeking or
    scrubbing to the end never fire it.
    """

    def __init__(self, transport: AudioTransport):
        self.transport = transport
        self._state = PlaybackState()
        self._source: str | None = None
        self._completed = False
        self._seeked_to_end = False
        self._scrubbing = False
        self._resume_after_scrub = False
        self._state_listeners: Listeners[PlaybackState] = Listeners()
        self._completion_listeners: Listeners[str] = Listeners()
        self._play_listeners: Listeners[str] = Listeners()

    @property
    def state(self) -> PlaybackState:
        return replace(self._state)

    @property
    def source(self) -> str | None:
        return self._source

    @property
    def scrubbing(self) -> bool:
        return self._scrubbing

    def subscribe(self, listener: Callable[[PlaybackState], None]) -> Callable[[], None]:
        return self._state_listeners.add(listener)

    def on_natural_completion(self, listener: Callable[[str], None]) -> Callable[[], None]:
        """Called with the source ref when playback ends naturally."""
        return self._completion_listeners.add(listener)

    def on_play_started(self, listener: Callable[[str], None]) -> Callable[[], None]:
        return self._play_listeners.add(listener)

    def _publish(self, state: PlaybackState) -> None:
        self._state = state
        self._state_listeners.notify(self.state)

    def _clamp(self, position_ms: int) -> int:
        position_ms = max(int(position_ms), 0)
        if self._state.duration_ms > 0:
            position_ms = min(position_ms, self._state.duration_ms)
        return position_ms

    # ============== Transport control ==============

    def load(self, source_ref: str) -> None:
        """Load a new source; resets the completion latch."""
        self._source = source_ref
        self._completed = False
        self._seeked_to_end = False
        self._scrubbing = False
        self._publish(PlaybackState())
        self.transport.load(source_ref, self.handle_status)

    def play(self) -> None:
        if self._source is None:
            logger.debug("play() ignored, nothing loaded")
            return
        self.transport.play()
        self._play_listeners.notify(self._source)

    def pause(self) -> None:
        if self._source is None:
            return
        self.transport.pause()

    def toggle(self) -> None:
        if self._state.is_playing:
            self.pause()
        else:
            self.play()

    def seek(self, position_ms: int) -> None:
        """Move the transport's position. Landing on the end is not a natural finish."""
        if self._source is None:
            return
        position_ms = self._clamp(position_ms)
        self._seeked_to_end = self._state.duration_ms > 0 and position_ms >= self._state.duration_ms
        self.transport.set_position(position_ms)

    def replay_from_start(self) -> None:
        """Rewind and play; the next natural end fires completion again."""
        if self._source is None:
            return
        self._completed = False
        self._seeked_to_end = False
        self.transport.set_position(0)
        self.play()

    # ============== Scrubbing ==============

    def begin_scrub(self) -> None:
        """Drag gesture started: pause, remembering whether to resume."""
        if self._source is None or self._scrubbing:
            return
        self._scrubbing = True
        self._resume_after_scrub = self._state.is_playing
        if self._state.is_playing:
            self.transport.pause()

    def scrub_to(self, position_ms: int) -> None:
        """Drag in progress: move the displayed position only."""
        if not self._scrubbing:
            return
        self._publish(replace(self._state, position_ms=self._clamp(position_ms)))

    def end_scrub(self, position_ms: int) -> None:
        """Drag released: seek there, resuming only if it was playing and not at the end."""
        if not self._scrubbing:
            return
        self._scrubbing = False
        self.seek(position_ms)
        if self._resume_after_scrub and not self._seeked_to_end:
            self.play()
        self._resume_after_scrub = False

    # ============== Transport callbacks ==============

    def handle_status(self, status: TransportStatus) -> None:
        """Mirror a transport status report."""
        if not status.is_loaded:
            self._publish(PlaybackState(error=status.error))
            return

        position = self._state.position_ms if self._scrubbing else status.position_ms
        self._publish(
            PlaybackState(
                is_loaded=True,
                is_playing=status.is_playing,
                is_buffering=status.is_buffering,
                position_ms=position,
                duration_ms=status.duration_ms or 0,
            )
        )

        if not status.did_just_finish or status.is_looping:
            return
        if self._scrubbing or self._seeked_to_end:
            logger.debug("Finish after seek/scrub, not a natural completion")
            self._seeked_to_end = False
            return
        if self._completed:
            return
        self._completed = True
        logger.info(f"Playback completed naturally: {self._source}")
        self._completion_listeners.notify(self._source)
