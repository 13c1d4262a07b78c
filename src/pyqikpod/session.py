"""Session state shared by the client, the flows and the CLI.

:class:`PortalContext` is the single owner of everything the portal keeps
between runs: the signed-in user, the bearer token with its issue time,
the chosen location, the pod name from the entry URL and the API base URL.
Call :meth:`PortalContext.init` on start-up and :meth:`PortalContext.clear`
on logout.
"""

from __future__ import annotations

import json
import logging
import time
from urllib.parse import parse_qs, urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pyqikpod import _constants as c
from pyqikpod.config import QikpodConfig, base_url_from_domain
from pyqikpod.exceptions import QikpodConfigError
from pyqikpod.models.user import User
from pyqikpod.storage import Storage

_logger = logging.getLogger(__name__)


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


class AuthToken(BaseModel):
    """Bearer token returned by OTP validation.

    Parameters
    ----------
    token : str
        The raw bearer string (without the ``Bearer`` prefix).
    issued_at_ms : int
        Wall-clock epoch milliseconds when the token was stored.
    ttl : float
        Seconds the token stays valid after ``issued_at_ms``.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    token: str = Field(min_length=1)
    issued_at_ms: int = Field(default_factory=_now_ms)
    ttl: float = c.TOKEN_TTL_SECONDS

    def age(self, now_ms: int | None = None) -> float:
        """Seconds since the token was issued."""
        now = _now_ms() if now_ms is None else now_ms
        return (now - self.issued_at_ms) / 1000.0

    def is_expired(self, now_ms: int | None = None) -> bool:
        return self.age(now_ms) > self.ttl

    def remaining(self, now_ms: int | None = None) -> float:
        """Seconds left before expiry, ``0`` once expired."""
        return max(0.0, self.ttl - self.age(now_ms))


def extract_pod_name(entry_url: str) -> str | None:
    """Return the pod name encoded as ``?id=POD-<name>`` in *entry_url*."""
    query = parse_qs(urlsplit(entry_url).query)
    values = query.get("id")
    if not values:
        return None
    value = values[0]
    if not value.startswith(c.POD_ID_PREFIX):
        return None
    name = value[len(c.POD_ID_PREFIX) :]
    return name or None


class PortalContext:
    """Typed view over persisted portal state."""

    def __init__(self, config: QikpodConfig, storage: Storage) -> None:
        self._config = config
        self._storage = storage
        self._user: User | None = None
        self._token: AuthToken | None = None
        self._location_id: int | None = None
        self._location_name: str | None = None
        self._pod_name: str | None = None
        self._stored_base_url: str | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self) -> PortalContext:
        """Load persisted values. Unreadable entries are dropped."""
        get = self._storage.get
        self._stored_base_url = get(c.KEY_API_BASE_URL) or None
        self._pod_name = get(c.KEY_POD_NAME) or None
        self._location_name = get(c.KEY_LOCATION_NAME) or None

        raw_location = get(c.KEY_LOCATION_ID)
        self._location_id = None
        if raw_location:
            try:
                self._location_id = int(raw_location)
            except ValueError:
                _logger.warning("Discarding invalid cached location id %r", raw_location)
                self._storage.remove(c.KEY_LOCATION_ID)

        self._user = None
        raw_user = get(c.KEY_USER)
        if raw_user:
            try:
                self._user = User.model_validate(json.loads(raw_user))
            except (json.JSONDecodeError, ValidationError):
                _logger.warning("Discarding unreadable cached user snapshot")
                self._storage.remove(c.KEY_USER)

        self._token = None
        raw_token = get(c.KEY_AUTH_TOKEN)
        raw_ts = get(c.KEY_AUTH_TOKEN_TIMESTAMP)
        if raw_token and raw_ts:
            try:
                self._token = AuthToken(token=raw_token, issued_at_ms=int(raw_ts), ttl=self._config.token_ttl)
            except (ValueError, ValidationError):
                _logger.warning("Discarding unreadable cached auth token")
                self.clear_auth()
        return self

    def clear(self) -> None:
        """Forget the signed-in session. The API base URL is kept."""
        for key in c.SESSION_KEYS:
            self._storage.remove(key)
        self._user = None
        self._token = None
        self._location_id = None
        self._location_name = None
        self._pod_name = None
        _logger.debug("Session cleared")

    def clear_auth(self) -> None:
        """Drop the token, its timestamp and the user snapshot."""
        for key in (c.KEY_AUTH_TOKEN, c.KEY_AUTH_TOKEN_TIMESTAMP, c.KEY_USER):
            self._storage.remove(key)
        self._token = None
        self._user = None

    # ------------------------------------------------------------------
    # API base URL
    # ------------------------------------------------------------------

    @property
    def api_base_url(self) -> str | None:
        if self._config.allow_base_url_override and self._stored_base_url:
            return self._stored_base_url
        return self._config.base_url

    @property
    def has_api_base_url(self) -> bool:
        return self.api_base_url is not None

    def require_api_base_url(self) -> str:
        base_url = self.api_base_url
        if not base_url:
            raise QikpodConfigError("API Base URL is not configured. Please configure it first.")
        return base_url.rstrip("/")

    def configure_domain(self, domain: str) -> str:
        """Persist the base URL for *domain* and return it."""
        if not self._config.allow_base_url_override:
            raise QikpodConfigError("The API domain cannot be changed in production builds")
        url = base_url_from_domain(domain)
        self._storage.set(c.KEY_API_BASE_URL, url)
        self._stored_base_url = url
        return url

    def clear_api_base_url(self) -> None:
        self._storage.remove(c.KEY_API_BASE_URL)
        self._stored_base_url = None

    # ------------------------------------------------------------------
    # User and token
    # ------------------------------------------------------------------

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def is_logged_in(self) -> bool:
        return self._user is not None

    def set_user(self, user: User) -> User:
        """Persist *user*; QPStaff is stored as SiteAdmin."""
        normalized = user.with_normalized_role()
        payload = normalized.model_dump(mode="json", exclude={"raw"})
        self._storage.set(c.KEY_USER, json.dumps(payload, separators=(",", ":")))
        self._user = normalized
        return normalized

    @property
    def token(self) -> AuthToken | None:
        return self._token

    def store_token(self, access_token: str, *, now_ms: int | None = None) -> AuthToken:
        token = AuthToken(
            token=access_token,
            issued_at_ms=_now_ms() if now_ms is None else now_ms,
            ttl=self._config.token_ttl,
        )
        self._storage.set(c.KEY_AUTH_TOKEN, token.token)
        self._storage.set(c.KEY_AUTH_TOKEN_TIMESTAMP, str(token.issued_at_ms))
        self._token = token
        return token

    def is_token_valid(self, *, now_ms: int | None = None) -> bool:
        """Whether a token is stored and younger than the token TTL.

        An expired token clears the cached session as a side effect.
        """
        token = self._token
        if token is None:
            return False
        if token.is_expired(now_ms):
            _logger.info("Auth token expired after %.0f s; clearing session", token.age(now_ms))
            self.clear_auth()
            return False
        return True

    def remaining_token_time(self, *, now_ms: int | None = None) -> float:
        if self._token is None:
            return 0.0
        return self._token.remaining(now_ms)

    @property
    def bearer_token(self) -> str:
        """Token for authenticated calls, falling back to the public one."""
        if self._token is not None:
            return self._token.token
        return self._config.public_token

    @property
    def public_token(self) -> str:
        return self._config.public_token

    # ------------------------------------------------------------------
    # Location and pod
    # ------------------------------------------------------------------

    @property
    def location_id(self) -> int | None:
        return self._location_id

    @property
    def location_name(self) -> str | None:
        return self._location_name

    def set_location(self, location_id: int, location_name: str | None = None) -> None:
        """Make *location_id* current.

        Without *location_name* the cached name is kept only while the id
        stays the same; moving to another location drops it.
        """
        changed = location_id != self._location_id
        self._storage.set(c.KEY_LOCATION_ID, str(location_id))
        self._location_id = location_id
        if location_name:
            self.set_location_name(location_name)
        elif changed:
            self._storage.remove(c.KEY_LOCATION_NAME)
            self._location_name = None

    def set_location_name(self, location_name: str) -> None:
        self._storage.set(c.KEY_LOCATION_NAME, location_name)
        self._location_name = location_name

    @property
    def pod_name(self) -> str | None:
        return self._pod_name

    def set_pod_name(self, pod_name: str) -> None:
        self._storage.set(c.KEY_POD_NAME, pod_name)
        self._pod_name = pod_name

    def remember_entry_url(self, entry_url: str) -> str | None:
        """Persist the pod name found in *entry_url*, if any."""
        pod_name = extract_pod_name(entry_url)
        if pod_name:
            self.set_pod_name(pod_name)
        return pod_name
