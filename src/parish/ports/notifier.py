"""Notification scheduler interface."""

from typing import Protocol


class NotificationScheduler(Protocol):
    """Interface for scheduling the daily reminder."""

    def request_permission(self) -> bool:
        """Ask for permission to deliver reminders. Returns True if granted."""
        ...

    def schedule_daily(self, hour: int, minute: int) -> str | None:
        """Schedule a daily reminder. Returns a handle, or None on failure."""
        ...

    def cancel_all(self) -> None:
        """Cancel every scheduled reminder."""
        ...
