# auth_client/session.py
"""
Client-side session state for the auth API.

Mirrors what the browser app keeps: a token and email in persistent storage,
a ``current_user`` flag the UI renders from, and a ``loading`` flag raised
while a network call is in flight.

Restore is naive by default: a stored token is trusted without asking the
server, so an expired or tampered token still looks signed-in until the first
API call fails. Pass ``verify_on_restore=True`` to check it against
``/api/user`` before adopting it.
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional
from urllib.parse import parse_qs, urlparse

import httpx

from auth_client.storage import EMAIL_KEY, TOKEN_KEY, MemoryStorage

logger = logging.getLogger("auth_client.session")

DEFAULT_API_URL = "http://localhost:5000"

# shown when the server could not be reached at all
REGISTRATION_FAILED = "Registration failed"
LOGIN_FAILED = "Login failed"
PROFILE_FAILED = "Failed to load user"


@dataclass(frozen=True)
class CurrentUser:
    email: str


Listener = Callable[[Optional[CurrentUser]], None]


class SessionClient:
    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        storage=None,
        http_client: Optional[httpx.AsyncClient] = None,
        verify_on_restore: bool = False,
    ):
        self.storage = storage if storage is not None else MemoryStorage()
        self.http = http_client or httpx.AsyncClient(base_url=base_url)
        self.verify_on_restore = verify_on_restore
        self.loading = True
        self._current_user: Optional[CurrentUser] = None
        self._listeners: List[Listener] = []

    # ---------------- reactive state ----------------

    @property
    def current_user(self) -> Optional[CurrentUser]:
        return self._current_user

    def _set_user(self, user: Optional[CurrentUser]) -> None:
        if user == self._current_user:
            return
        self._current_user = user
        for listener in list(self._listeners):
            listener(user)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback for current_user changes. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def current_view(self) -> str:
        if self.loading:
            return "loading"
        return "dashboard" if self._current_user else "landing"

    @property
    def token(self) -> Optional[str]:
        return self.storage.get_item(TOKEN_KEY)

    def _persist(self, token: str, email: str) -> None:
        self.storage.set_item(TOKEN_KEY, token)
        self.storage.set_item(EMAIL_KEY, email)
        self._set_user(CurrentUser(email=email))

    def _clear(self) -> None:
        self.storage.remove_item(TOKEN_KEY)
        self.storage.remove_item(EMAIL_KEY)

    # ---------------- operations ----------------

    async def restore(self) -> Optional[CurrentUser]:
        token = self.storage.get_item(TOKEN_KEY)
        email = self.storage.get_item(EMAIL_KEY)
        try:
            if not (token and email):
                self._set_user(None)
            elif self.verify_on_restore and not await self._token_accepted(token):
                self._clear()
                self._set_user(None)
            else:
                self._set_user(CurrentUser(email=email))
        finally:
            self.loading = False
        return self._current_user

    async def _token_accepted(self, token: str) -> bool:
        try:
            res = await self.http.get("/api/user", headers={"Authorization": f"Bearer {token}"})
        except httpx.HTTPError as e:
            # server unreachable: keep the stored session
            logger.warning(f"Could not verify stored session: {e}")
            return True
        return res.status_code not in (401, 404)

    async def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> dict:
        self.loading = True
        try:
            res = await self.http.post(
                "/api/register",
                json={"email": email, "password": password, "full_name": full_name},
            )
            return res.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Registration request failed: {e}")
            return {"error": REGISTRATION_FAILED}
        finally:
            self.loading = False

    async def sign_in(self, email: str, password: str) -> dict:
        self.loading = True
        try:
            res = await self.http.post("/api/login", json={"email": email, "password": password})
            data = res.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Login request failed: {e}")
            return {"error": LOGIN_FAILED}
        finally:
            self.loading = False
        if isinstance(data, dict) and data.get("token"):
            self._persist(data["token"], email)
        return data

    def login_with_token(self, token: str, email: str) -> None:
        self._persist(token, email)

    def login_from_redirect(self, url: str) -> bool:
        """Adopt the token and email carried by a /google-success redirect URL."""
        params = parse_qs(urlparse(url).query)
        token = params.get("token", [None])[0]
        email = params.get("email", [None])[0]
        if not token or not email:
            return False
        self.login_with_token(token, email)
        return True

    async def get_profile(self) -> dict:
        token = self.token
        if not token:
            return {"error": "No token provided"}
        try:
            res = await self.http.get("/api/user", headers={"Authorization": f"Bearer {token}"})
            return res.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Profile request failed: {e}")
            return {"error": PROFILE_FAILED}

    async def sign_out(self) -> None:
        self.loading = True
        self._clear()
        try:
            await self.http.post("/api/logout")
        except httpx.HTTPError as e:
            logger.info(f"Logout notification failed, ignoring: {e}")
        finally:
            self._set_user(None)
            self.loading = False

    async def aclose(self) -> None:
        await self.http.aclose()
