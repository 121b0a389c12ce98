"""Pure playback types - no transport dependencies."""

from dataclasses import dataclass


def format_time(millis: int) -> str:
    """Format milliseconds as m:ss."""
    total_seconds = max(int(millis), 0) // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"


@dataclass
class TransportStatus:
    """A status report pushed by the audio transport."""

    is_loaded: bool
    is_playing: bool = False
    is_buffering: bool = False
    position_ms: int = 0
    duration_ms: int | None = None
    did_just_finish: bool = False
    is_looping: bool = False
    error: str | None = None


@dataclass
class PlaybackState:
    """Mirror of the transport's status, as the UI sees it."""

    is_loaded: bool = False
    is_playing: bool = False
    is_buffering: bool = False
    position_ms: int = 0
    duration_ms: int = 0
    error: str | None = None

    @property
    def progress_fraction(self) -> float:
        if self.duration_ms <= 0:
            return 0.0
        return min(self.position_ms / self.duration_ms, 1.0)

    @property
    def formatted_position(self) -> str:
        return format_time(self.position_ms)

    @property
    def formatted_duration(self) -> str:
        return format_time(self.duration_ms)
