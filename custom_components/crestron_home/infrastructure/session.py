"""Session handling for the Crestron Home REST API.

The hub hands out a short-lived session key in exchange for the long-lived
API token configured by the user. The key expires after 10 minutes without
traffic, so it is trusted for 9 minutes and renewed before the hub cuts it
off. Every other request carries the key in the auth-key header; a 401
answer invalidates it, triggers one fresh login and one retry.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import aiohttp

from ..constants import API_DEFAULTS, API_PATH, ENDPOINT_LOGIN, HEADER_AUTH_TOKEN
from ..models import LoginResponse
from .errors import (
    CrestronHomeAuthError,
    CrestronHomeConnectionError,
    CrestronHomeTimeoutError,
)

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")

HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403


class SessionManager:
    """Owns the HTTP transport and the hub session key.

    Attributes:
        base_url: Root of the REST API, e.g. ``https://10.0.0.5/cws/api``
        session_ttl: Seconds a session key is trusted after login
        request_timeout: Total timeout in seconds for every request
        auth_retries: Number of re-login attempts after a 401
    """

    def __init__(
        self,
        host: str,
        api_token: str,
        *,
        verify_ssl: bool = API_DEFAULTS.VERIFY_SSL,
        session: aiohttp.ClientSession | None = None,
        session_ttl: float = API_DEFAULTS.SESSION_TTL,
        request_timeout: int = API_DEFAULTS.REQUEST_TIMEOUT,
        auth_retries: int = API_DEFAULTS.AUTH_RETRIES,
    ) -> None:
        self.host = host
        self.base_url = f"https://{host}{API_PATH}"
        self.session_ttl = session_ttl
        self.request_timeout = request_timeout
        self.auth_retries = auth_retries
        self._api_token = api_token
        self._verify_ssl = verify_ssl
        self._session = session
        self._owns_session = session is None

        self._auth_key: str | None = None
        self._issued_at: float | None = None
        self._version: str | None = None
        self._login_lock = asyncio.Lock()

        if not verify_ssl:
            _LOGGER.warning(
                "TLS certificate validation is disabled for Crestron hub %s", host
            )

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _get_current_time(self) -> float:
        """Get current monotonic time for session expiry."""
        return asyncio.get_event_loop().time()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    @property
    def ssl(self) -> bool:
        """Value for aiohttp's per-request ``ssl`` argument."""
        return self._verify_ssl

    @property
    def timeout(self) -> aiohttp.ClientTimeout:
        """Per-request timeout."""
        return aiohttp.ClientTimeout(total=self.request_timeout)

    async def async_close(self) -> None:
        """Close the aiohttp session if this manager created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    # -------------------------------------------------------------------------
    # Session state
    # -------------------------------------------------------------------------

    @property
    def server_version(self) -> str | None:
        """Version string reported by the hub at the last login."""
        return self._version

    def _is_session_valid(self) -> bool:
        if self._auth_key is None or self._issued_at is None:
            return False
        return (self._get_current_time() - self._issued_at) < self.session_ttl

    def invalidate(self, auth_key: str | None = None) -> None:
        """Forget the session key.

        Args:
            auth_key: Only invalidate if this is still the current key. A
                caller that saw a 401 for an old key must not throw away a key
                another task has just renewed.
        """
        if auth_key is not None and auth_key != self._auth_key:
            return
        _LOGGER.debug("Invalidating Crestron session key")
        self._auth_key = None
        self._issued_at = None

    async def async_ensure_session(self) -> str:
        """Return a valid session key, logging in when needed.

        Concurrent callers share a single login.

        Raises:
            CrestronHomeAuthError: The hub rejected the token or issued no key.
            CrestronHomeConnectionError: The hub could not be reached.
        """
        if self._is_session_valid():
            return self._auth_key

        async with self._login_lock:
            # Another task may have logged in while we waited for the lock
            if self._is_session_valid():
                return self._auth_key
            return await self._async_login()

    async def _async_login(self) -> str:
        url = f"{self.base_url}{ENDPOINT_LOGIN}"
        headers = {"Accept": "application/json", HEADER_AUTH_TOKEN: self._api_token}
        _LOGGER.debug("Logging in to Crestron hub at %s", self.host)

        session = await self._get_session()
        try:
            async with session.get(
                url, headers=headers, ssl=self.ssl, timeout=self.timeout
            ) as response:
                if response.status in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN):
                    raise CrestronHomeAuthError(
                        f"Crestron hub rejected the API token (HTTP {response.status})"
                    )
                response.raise_for_status()
                data = await response.json(content_type=None)
        except TimeoutError as err:
            raise CrestronHomeTimeoutError(f"Timeout logging in to {self.host}") from err
        except aiohttp.ClientError as err:
            raise CrestronHomeConnectionError(
                f"Failed to log in to {self.host}: {err}"
            ) from err
        except ValueError as err:
            raise CrestronHomeAuthError("Login response is not valid JSON") from err

        login = LoginResponse.from_api(data)
        if login is None:
            raise CrestronHomeAuthError("Login response did not contain a session key")

        self._auth_key = login.authkey
        self._version = None if login.version is None else str(login.version)
        self._issued_at = self._get_current_time()
        _LOGGER.info(
            "Successfully authenticated with Crestron hub %s, version %s",
            self.host,
            self._version,
        )
        return self._auth_key

    # -------------------------------------------------------------------------
    # Retry policy
    # -------------------------------------------------------------------------

    async def async_with_session(
        self, operation: Callable[[str], Awaitable[_T]]
    ) -> _T:
        """Run ``operation(auth_key)`` with a valid session.

        A 401 from the operation invalidates the key, forces one new login
        and retries. A further 401 is raised as CrestronHomeAuthError.

        Args:
            operation: Coroutine factory receiving the session key. It should
                let ``aiohttp.ClientResponseError`` propagate.

        Returns:
            Whatever the operation returns.
        """
        attempt = 0
        while True:
            auth_key = await self.async_ensure_session()
            try:
                return await operation(auth_key)
            except aiohttp.ClientResponseError as err:
                if err.status != HTTP_UNAUTHORIZED:
                    raise
                if attempt >= self.auth_retries:
                    raise CrestronHomeAuthError(
                        f"Crestron hub kept answering 401 after {attempt + 1} attempts"
                    ) from err
                attempt += 1
                _LOGGER.info(
                    "Crestron session key rejected, logging in again (attempt %d/%d)",
                    attempt,
                    self.auth_retries,
                )
                self.invalidate(auth_key)
