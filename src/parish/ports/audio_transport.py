"""Audio transport interface."""

from typing import Callable, Protocol

from parish.core.playback import TransportStatus


class AudioTransport(Protocol):
    """Interface for the external audio player.

    The transport pushes TransportStatus reports to the registered callback.
    """

    def load(self, source_ref: str, on_status: Callable[[TransportStatus], None]) -> None:
        """Load a source, replacing any loaded one."""
        ...

    def play(self) -> None:
        ...

    def pause(self) -> None:
        ...

    def set_position(self, position_ms: int) -> None:
        ...

    def unload(self) -> None:
        ...
