"""Remote content/session API interface."""

from datetime import date
from typing import Protocol

from parish.core.session import ContentBundle, HistoryItem, SessionStart, StreakSummary, UserProfile


class ContentAPI(Protocol):
    """Interface for the daily content and session server.

    Implementations raise the exceptions in parish.errors, never transport errors.
    """

    def today_content(self) -> ContentBundle:
        """Fetch today's content."""
        ...

    def content_for_day(self, target_date: date) -> ContentBundle:
        """Fetch content for a specific (usually past) day."""
        ...

    def start_session(self) -> SessionStart:
        """Start today's session. Already-completed is a result, not an error."""
        ...

    def complete_session(self, session_id: str) -> StreakSummary:
        """Mark a session complete. Safe to call twice for the same session."""
        ...

    def history(self) -> list[HistoryItem]:
        """List completed sessions."""
        ...

    def user(self) -> UserProfile:
        """Fetch the signed-in account."""
        ...

    def delete_user(self) -> bool:
        """Delete the account server-side. Returns whether the server confirmed it."""
        ...
