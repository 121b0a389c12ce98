"""Ports - interfaces/protocols for external dependencies."""

from .content_api import ContentAPI
from .state_storage import StateStorage
from .notifier import NotificationScheduler
from .audio_transport import AudioTransport

__all__ = [
    "ContentAPI",
    "StateStorage",
    "NotificationScheduler",
    "AudioTransport",
]
