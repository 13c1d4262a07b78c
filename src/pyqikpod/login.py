"""Phone + OTP login flow.

The flow has two steps. On the ``phone`` step the user enters a 10-digit
number; unknown numbers are sent to registration, known ones get a code
and move to the ``otp`` step. A new code can be requested once the 30 s
cooldown has run out. A valid code signs the user in and runs the
post-login location checks.
"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from pyqikpod._constants import OTP_DIGITS
from pyqikpod.client import QikpodClient
from pyqikpod.exceptions import QikpodAuthenticationError, QikpodError, QikpodValidationError
from pyqikpod.location_selection import LocationSelector
from pyqikpod.models.requests import OtpCodeRequest, PhoneRequest, is_valid_phone, validate_form
from pyqikpod.models.user import User
from pyqikpod.navigation import Route, route_for

_logger = logging.getLogger(__name__)


class LoginStep(enum.StrEnum):
    PHONE = "phone"
    OTP = "otp"


class LoginOutcome(enum.StrEnum):
    OTP_SENT = "otp_sent"
    REGISTER = "register"
    DASHBOARD = "dashboard"
    SELECT_LOCATION = "select_location"
    DETECT_LOCATION = "detect_location"
    LOGIN = "login"


@dataclass(frozen=True, slots=True)
class LoginResult:
    """What the screen should do next.

    ``route`` is set for ``REGISTER``, ``DASHBOARD`` and ``LOGIN``.
    ``location_id`` is the detected location for ``DETECT_LOCATION``.
    """

    outcome: LoginOutcome
    route: Route | None = None
    user: User | None = None
    phone: str | None = None
    location_id: int | None = None


class OtpLogin:
    """State of one login attempt."""

    def __init__(
        self,
        client: QikpodClient,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._clock = clock
        self._cooldown = client.config.otp_resend_cooldown
        self._selector = LocationSelector(client)
        self.step = LoginStep.PHONE
        self.phone: str | None = None
        self._sent_at: float | None = None

    @staticmethod
    def can_send_otp(phone: str) -> bool:
        """The send button is enabled only for a complete phone number."""
        return is_valid_phone(phone)

    @staticmethod
    def can_verify(code: str) -> bool:
        return len(code) == OTP_DIGITS and code.isdigit()

    @property
    def resend_in(self) -> int:
        """Whole seconds left before another code may be requested."""
        if self._sent_at is None:
            return 0
        elapsed = int(self._clock() - self._sent_at)
        return max(0, self._cooldown - elapsed)

    @property
    def can_resend(self) -> bool:
        return self.step is LoginStep.OTP and self.resend_in == 0

    def back_to_phone(self) -> None:
        self.step = LoginStep.PHONE
        self._sent_at = None

    async def send_otp(self, phone: str) -> LoginResult:
        """Check the account exists, then text it a code."""
        form = validate_form(PhoneRequest, user_phone=phone)
        user = await self._client.get_user_by_phone(form.user_phone)
        if user is None:
            _logger.info("No account for %s; sending to registration", form.user_phone[-4:])
            return LoginResult(LoginOutcome.REGISTER, route=Route.REGISTRATION, phone=form.user_phone)

        await self._client.generate_otp(form.user_phone)
        self.phone = form.user_phone
        self.step = LoginStep.OTP
        self._sent_at = self._clock()
        return LoginResult(LoginOutcome.OTP_SENT, phone=form.user_phone)

    async def resend_otp(self) -> LoginResult:
        if self.phone is None or self.step is not LoginStep.OTP:
            raise QikpodValidationError({"user_phone": "Request a code first"})
        wait = self.resend_in
        if wait > 0:
            raise QikpodValidationError({"otp_text": f"Resend in {wait}s"})
        return await self.send_otp(self.phone)

    async def verify_otp(self, code: str) -> LoginResult:
        if self.phone is None or self.step is not LoginStep.OTP:
            raise QikpodValidationError({"user_phone": "Request a code first"})
        form = validate_form(OtpCodeRequest, user_phone=self.phone, otp_text=code)
        user = await self._client.validate_otp(form.user_phone, form.otp_text)
        return await self.post_login(user)

    async def post_login(self, user: User) -> LoginResult:
        """Make sure the new session has a current location.

        With an entry pod cached, the pod's location becomes current and a
        user not yet attached to it is offered to add it. Otherwise the
        user's oldest location is picked; without one the user must choose.
        """
        try:
            if self._client.context.pod_name:
                detected = await self._selector.detected_location(user.id)
                if detected is not None:
                    return LoginResult(LoginOutcome.DETECT_LOCATION, user=user, location_id=detected)
                return self._dashboard(user)

            try:
                assigned = await self._selector.auto_assign(user.id)
            except QikpodAuthenticationError:
                raise
            except QikpodError as exc:
                _logger.warning("Error fetching locations for user %s: %s", user.id, exc)
                assigned = None
            if assigned is None:
                return LoginResult(LoginOutcome.SELECT_LOCATION, user=user)
            return self._dashboard(user)
        except QikpodAuthenticationError:
            return LoginResult(LoginOutcome.LOGIN, route=Route.LOGIN)
        except QikpodError as exc:
            _logger.warning("Post-login flow error: %s", exc)
            return self._dashboard(user)

    @staticmethod
    def _dashboard(user: User) -> LoginResult:
        return LoginResult(LoginOutcome.DASHBOARD, route=route_for(user), user=user)
