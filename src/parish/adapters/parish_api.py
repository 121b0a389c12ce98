"""Parish API adapter - HTTP client for content and sessions."""

import logging
from datetime import date

import requests

from parish.config import Config, Tokens, load_config
from parish.core.session import ContentBundle, HistoryItem, SessionStart, StreakSummary, UserProfile
from parish.errors import ApiError, AuthenticationError, ContentUnavailableError, NetworkError

logger = logging.getLogger(__name__)


class ParishAPI:
    """
    Parish API adapter.

    Implements ContentAPI protocol. Handles the bearer token and translates
    HTTP failures into parish.errors. No business logic - just I/O.
    """

    def __init__(
        self,
        config: Config | None = None,
        tokens: Tokens | None = None,
        session: requests.Session | None = None,
    ):
        self.config = config or load_config()
        self.tokens = tokens or Tokens.load()
        self._session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        if not self.tokens.access_token:
            raise AuthenticationError("No access token. Run 'parish auth' first.")
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.tokens.access_token}",
        }

    def _request(self, method: str, endpoint: str, body: dict | None = None) -> requests.Response:
        """Make an authenticated request. Returns the response for any status."""
        headers = self._headers()
        try:
            return self._session.request(
                method,
                f"{self.config.api_base_url}{endpoint}",
                headers=headers,
                json=body,
                timeout=self.config.request_timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise NetworkError(f"{method} {endpoint} failed: {e}") from e
        except requests.RequestException as e:
            raise ApiError(f"{method} {endpoint} failed: {e}") from e

    def _check(self, resp: requests.Response, endpoint: str) -> None:
        """Raise the matching error for a non-success response."""
        if resp.ok:
            return
        detail = resp.text or resp.reason or ""
        if resp.status_code == 401:
            raise AuthenticationError(f"Authentication expired: {detail}", resp.status_code)
        if resp.status_code == 404:
            raise ContentUnavailableError(f"Not available: {endpoint}", resp.status_code)
        raise ApiError(f"API error {resp.status_code} on {endpoint}: {detail}", resp.status_code)

    def _json(self, resp: requests.Response, endpoint: str) -> dict:
        try:
            data = resp.json()
        except ValueError as e:
            raise ApiError(f"Invalid JSON from {endpoint}", resp.status_code) from e
        if not isinstance(data, dict):
            raise ApiError(f"Expected a JSON object from {endpoint}, got {type(data).__name__}", resp.status_code)
        return data

    def _get(self, endpoint: str) -> dict:
        resp = self._request("GET", endpoint)
        self._check(resp, endpoint)
        return self._json(resp, endpoint)

    def _bundle(self, data: dict, endpoint: str) -> ContentBundle:
        try:
            return ContentBundle.from_api(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ApiError(f"Malformed content from {endpoint}: {e}") from e

    def today_content(self) -> ContentBundle:
        """Fetch today's readings."""
        return self._bundle(self._get("/readings/today"), "/readings/today")

    def content_for_day(self, target_date: date) -> ContentBundle:
        """Fetch readings for a specific day."""
        endpoint = f"/readings/{target_date.isoformat()}"
        return self._bundle(self._get(endpoint), endpoint)

    def start_session(self) -> SessionStart:
        """Start today's session. 409 means it was already completed."""
        endpoint = "/session/start"
        resp = self._request("POST", endpoint)
        if resp.status_code == 409:
            logger.info("Session already completed for today (409)")
            return SessionStart(session_id=None, already_completed=True)
        self._check(resp, endpoint)
        data = self._json(resp, endpoint)
        return SessionStart(
            session_id=data.get("session_id"),
            already_completed=bool(data.get("already_completed", False)),
        )

    def complete_session(self, session_id: str) -> StreakSummary:
        """Mark a session complete and return the updated streak."""
        endpoint = "/session/complete"
        resp = self._request("POST", endpoint, body={"session_id": session_id})
        self._check(resp, endpoint)
        data = self._json(resp, endpoint)
        try:
            return StreakSummary.from_api(data.get("streak"))
        except (TypeError, ValueError, AttributeError) as e:
            raise ApiError(f"Malformed streak from {endpoint}: {e}") from e

    def history(self) -> list[HistoryItem]:
        """Fetch completed session history."""
        data = self._get("/history")
        try:
            return [HistoryItem.from_api(item) for item in data.get("sessions", [])]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ApiError(f"Malformed history: {e}") from e

    def user(self) -> UserProfile:
        """Fetch the signed-in user's profile and streak."""
        data = self._get("/user")
        try:
            return UserProfile.from_api(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ApiError(f"Malformed user profile: {e}") from e

    def delete_user(self) -> bool:
        """Delete the account and all server-side data."""
        endpoint = "/user"
        resp = self._request("DELETE", endpoint)
        self._check(resp, endpoint)
        data = self._json(resp, endpoint)
        return bool(data.get("success", False))
