"""Profile view/edit and self-service registration."""

from __future__ import annotations

import logging
import math

from pyqikpod.client import QikpodClient
from pyqikpod.exceptions import QikpodNotFoundError, QikpodPermissionError, QikpodValidationError
from pyqikpod.models.requests import ProfileUpdate, RegistrationRequest, validate_form
from pyqikpod.models.user import User, UserRole
from pyqikpod.navigation import Route

_logger = logging.getLogger(__name__)


def available_credit(user: User) -> int:
    """Unused credit, floored at zero; unparseable amounts count as 0."""
    try:
        diff = float(user.user_credit_limit or 0) - float(user.user_credit_used or 0)
    except ValueError:
        return 0
    if not math.isfinite(diff):
        return 0
    return max(0, math.floor(diff))


class ProfileEditor:
    """Own profile, or another user's when opened from an admin dashboard."""

    def __init__(self, client: QikpodClient, user: User, *, admin_view: bool = False) -> None:
        self._client = client
        self.user = user
        self.admin_view = admin_view

    @classmethod
    def own(cls, client: QikpodClient) -> ProfileEditor:
        user = client.context.user
        if user is None:
            raise QikpodPermissionError("Not signed in")
        return cls(client, user)

    @classmethod
    async def for_user(cls, client: QikpodClient, user_id: int) -> ProfileEditor:
        """Open another user's profile (admin view)."""
        if client.context.user is None:
            raise QikpodPermissionError("Not signed in")
        user = await client.get_user(user_id)
        if user is None:
            raise QikpodNotFoundError("User not found", status_code=404, endpoint="/users/")
        return cls(client, user, admin_view=True)

    @property
    def is_own(self) -> bool:
        current = self._client.context.user
        return current is not None and current.id == self.user.id

    @property
    def can_remove_from_location(self) -> bool:
        current = self._client.context.user
        return self.admin_view and current is not None and current.role is UserRole.SITE_ADMIN

    async def save(
        self,
        *,
        user_name: str,
        user_email: str = "",
        user_flatno: str = "",
        user_address: str = "",
    ) -> dict[str, str]:
        """Validate and send the changed fields; returns what was sent.

        Nothing is sent when no field changed. Saving one's own profile
        also refreshes the cached session user.
        """
        form = validate_form(
            ProfileUpdate,
            user_name=user_name,
            user_email=user_email,
            user_flatno=user_flatno,
            user_address=user_address,
        )
        changes = form.changes_from(self.user)
        if not changes:
            _logger.info("No changes to save for user %s", self.user.id)
            return {}
        await self._client.update_user(self.user.id, changes)
        updated = self.user.model_copy(update=changes)
        if self.is_own:
            updated = self._client.context.set_user(updated)
        self.user = updated
        return changes

    async def remove_from_location(self) -> None:
        """Detach this user from the current location."""
        if not self.can_remove_from_location:
            raise QikpodPermissionError("Only site admins can remove users from a location")
        location_id = self._client.context.location_id
        if location_id is None:
            raise QikpodValidationError({"location_id": "Location information not found"})
        mapping = await self._client.get_user_location_mapping(self.user.id, location_id)
        if mapping is None:
            raise QikpodNotFoundError(
                "User-location mapping not found", status_code=404, endpoint="/users/locations/"
            )
        await self._client.remove_user_location(mapping.id)
        _logger.info("Removed user %s from location %s", self.user.id, location_id)


async def register(
    client: QikpodClient,
    *,
    user_phone: str,
    user_name: str,
    user_email: str,
    user_flatno: str,
    user_address: str,
) -> Route:
    """Create a customer account; the new user then signs in with an OTP."""
    form = validate_form(
        RegistrationRequest,
        user_phone=user_phone,
        user_name=user_name,
        user_email=user_email,
        user_flatno=user_flatno,
        user_address=user_address,
    )
    user_id = await client.register_user(form)
    _logger.info("Registered user %s", user_id)
    return Route.LOGIN
