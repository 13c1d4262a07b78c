"""Client configuration for pyqikpod."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from pyqikpod import _constants
from pyqikpod.exceptions import QikpodConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _default_state_path() -> str:
    return str(Path.home() / ".config" / "qikpod" / "state.json")


def base_url_from_domain(domain: str) -> str:
    """Turn the domain typed into the configuration prompt into a base URL.

    ``"abc"`` becomes ``"https://abc.com/podcore"``.

    Raises
    ------
    QikpodConfigError
        If *domain* is blank.
    """
    if not domain or not domain.strip():
        raise QikpodConfigError("API domain must be non-empty")
    return _constants.base_url_from_domain(domain)


@dataclasses.dataclass(frozen=True)
class QikpodConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str or None
        API base URL baked into the deployment. A persisted domain
        chosen at runtime takes precedence unless
        ``allow_base_url_override`` is off.
    allow_base_url_override : bool
        Whether a persisted API domain may replace ``base_url``.
        Production deployments disable this.
    public_token : str
        Bearer token sent before login and to public endpoints.
    token_ttl : float
        Seconds a login token stays valid after it was issued.
    otp_resend_cooldown : int
        Seconds the user has to wait before requesting another OTP.
    page_size : int
        Default number of rows per page in list views.
    request_timeout : float
        Total HTTP timeout in seconds.
    state_path : str
        JSON file that holds the persisted session.
    """

    base_url: str | None = None
    allow_base_url_override: bool = True
    public_token: str = _constants.PUBLIC_TOKEN
    token_ttl: float = _constants.TOKEN_TTL_SECONDS
    otp_resend_cooldown: int = _constants.OTP_RESEND_COOLDOWN_SECONDS
    page_size: int = _constants.DEFAULT_PAGE_SIZE
    request_timeout: float = 30.0
    state_path: str = dataclasses.field(default_factory=_default_state_path)

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise QikpodConfigError(f"page_size must be positive, got {self.page_size}")
        if self.token_ttl <= 0:
            raise QikpodConfigError(f"token_ttl must be positive, got {self.token_ttl}")
        if not self.allow_base_url_override and not self.base_url:
            raise QikpodConfigError("Production builds require QIKPOD_API_BASE_URL")

    @classmethod
    def from_env(cls, **overrides: Any) -> QikpodConfig:
        """Create configuration from ``QIKPOD_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "QIKPOD_API_BASE_URL": "base_url",
            "QIKPOD_PUBLIC_TOKEN": "public_token",
            "QIKPOD_STATE_PATH": "state_path",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        ttl_env = env.get("QIKPOD_TOKEN_TTL")
        if ttl_env is not None and "token_ttl" not in overrides:
            config_kwargs["token_ttl"] = float(ttl_env)

        page_env = env.get("QIKPOD_PAGE_SIZE")
        if page_env is not None and "page_size" not in overrides:
            config_kwargs["page_size"] = int(page_env)

        timeout_env = env.get("QIKPOD_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = float(timeout_env)

        if "allow_base_url_override" not in overrides:
            production = _env_bool(env.get("QIKPOD_PRODUCTION"), False)
            config_kwargs["allow_base_url_override"] = not production

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
