"""Signed-in account - cached profile, sign-out and account deletion."""

import asyncio
import logging
from dataclasses import asdict, dataclass, replace
from typing import Awaitable, Callable

from .core.session import UserProfile
from .errors import StorageError
from .events import Listeners
from .persistence import DebouncedWriter
from .ports.content_api import ContentAPI
from .ports.state_storage import StateStorage
from .settings import SettingsStore

logger = logging.getLogger(__name__)

NAMESPACE = "account"


@dataclass
class Account:
    """Who is signed in on this device."""

    user_id: str | None = None
    email: str | None = None

    @property
    def signed_in(self) -> bool:
        return self.user_id is not None


class AccountStore:
    """
    Local copy of the signed-in user.

    Clearing the user also forgets the first-session flag; the welcome flag
    belongs to the device and survives sign-out.
    """

    def __init__(
        self,
        storage: StateStorage,
        api: ContentAPI,
        settings: SettingsStore | None = None,
        save_delay: float = 0.5,
        run_blocking: Callable[..., Awaitable] | None = None,
    ):
        self.api = api
        self.settings = settings
        self._run = run_blocking or asyncio.to_thread
        self._account = Account()
        self._listeners: Listeners[Account] = Listeners()
        self._writer = DebouncedWriter(storage, NAMESPACE, lambda: asdict(self._account), delay=save_delay)
        try:
            data = storage.load(NAMESPACE)
            if data is not None:
                self._account = Account(user_id=data.get("user_id"), email=data.get("email"))
        except (StorageError, AttributeError) as e:
            logger.warning(f"Account record unreadable, signed out: {e}")

    @property
    def account(self) -> Account:
        return replace(self._account)

    def subscribe(self, listener: Callable[[Account], None]) -> Callable[[], None]:
        return self._listeners.add(listener)

    def flush(self) -> bool:
        return self._writer.flush()

    def _update(self, account: Account) -> None:
        if account == self._account:
            return
        self._account = account
        self._listeners.notify(self.account)
        self._writer.schedule()

    def set_user(self, profile: UserProfile) -> None:
        self._update(Account(user_id=profile.id, email=profile.email))

    def clear_user(self) -> None:
        """Forget the signed-in user."""
        self._update(Account())
        if self.settings is not None:
            self.settings.set_has_completed_first_session(False)
        logger.info("Signed out")

    async def refresh(self) -> UserProfile:
        """Fetch the profile from the server and cache who is signed in."""
        profile = await self._run(self.api.user)
        self.set_user(profile)
        return profile

    async def delete_account(self) -> bool:
        """Delete the account server-side, then sign out locally."""
        deleted = await self._run(self.api.delete_user)
        if not deleted:
            logger.warning("Server did not confirm account deletion")
            return False
        self.clear_user()
        return True
