"""Adapters - I/O implementations of ports."""

from .parish_api import ParishAPI
from .file_storage import FileStateStorage
from .reminder_scheduler import ReminderScheduler

__all__ = [
    "ParishAPI",
    "FileStateStorage",
    "ReminderScheduler",
]
