from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from pyqikpod._constants import RECORDS_NOT_FOUND
from pyqikpod._transport import ApiResponse
from pyqikpod.config import QikpodConfig
from pyqikpod.models.user import User
from pyqikpod.session import PortalContext
from pyqikpod.storage import MemoryStorage

BASE_URL = "https://test.com/podcore"


def _not_found() -> ApiResponse:
    return ApiResponse(404, {"status": "failure", "status_code": 404, "message": RECORDS_NOT_FOUND, "records": []})


def _ok(records: list[dict[str, Any]], **extra: Any) -> ApiResponse:
    return ApiResponse(200, {"status": "success", "status_code": 200, "count": len(records), "records": records, **extra})


@dataclass
class FakeQikpodBackend:
    """In-memory stand-in for the QikPod REST service."""

    users: list[dict[str, Any]] = field(default_factory=list)
    locations: list[dict[str, Any]] = field(default_factory=list)
    user_locations: list[dict[str, Any]] = field(default_factory=list)
    pods: list[dict[str, Any]] = field(default_factory=list)
    reservations: list[dict[str, Any]] = field(default_factory=list)
    free_doors: list[dict[str, Any]] = field(default_factory=list)
    valid_otp: str = "123456"
    access_token: str = "user-token-1"
    fail: dict[str, int] = field(default_factory=dict)
    calls: list[tuple[str, str, dict[str, Any], str]] = field(default_factory=list)
    bodies: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    next_id: int = 500

    def count(self, method: str, endpoint: str) -> int:
        return sum(1 for m, e, _p, _t in self.calls if m == method and e == endpoint)

    def tokens_for(self, endpoint: str) -> list[str]:
        return [t for _m, e, _p, t in self.calls if e == endpoint]

    def _filter(self, rows: list[dict[str, Any]], params: Mapping[str, Any], keys: Mapping[str, str]) -> list[dict[str, Any]]:
        selected = rows
        for param, column in keys.items():
            if param in params:
                wanted = str(params[param])
                selected = [r for r in selected if str(r.get(column)) == wanted]
        return selected

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        token: str,
        params: Mapping[str, Any] | None = None,
        json_body: Mapping[str, Any] | None = None,
    ) -> ApiResponse:
        query = {k: v for k, v in (params or {}).items() if v is not None}
        self.calls.append((method, endpoint, query, token))
        if json_body is not None:
            self.bodies.append((endpoint, dict(json_body)))

        status = self.fail.get(endpoint)
        if status is not None:
            return ApiResponse(status, {"detail": f"forced {status}"})

        if endpoint == "/otp/generate_otp/":
            return ApiResponse(200, {"status": "success", "message": "OTP sent"})

        if endpoint == "/otp/validate_otp/":
            user = self._filter(self.users, query, {"user_phone": "user_phone"})
            if query.get("otp_text") != self.valid_otp or not user:
                return ApiResponse(400, {"status": "failure", "message": "Invalid OTP"})
            return _ok(user, access_token=self.access_token, user_phone=query["user_phone"])

        if endpoint == "/users/" and method == "GET":
            rows = self._filter(self.users, query, {"user_phone": "user_phone", "record_id": "id"})
            return _ok(rows) if rows else _not_found()

        if endpoint == "/users/" and method == "POST":
            assert json_body is not None
            self.next_id += 1
            self.users.append({"id": self.next_id, **json_body})
            return ApiResponse(200, {"status": "success", "id": self.next_id})

        if endpoint.startswith("/users/locations/") and method == "DELETE":
            mapping_id = int(endpoint.rsplit("/", 1)[-1])
            self.user_locations = [m for m in self.user_locations if m["id"] != mapping_id]
            return ApiResponse(200, {"status": "success"})

        if endpoint == "/users/locations/":
            rows = self._filter(self.user_locations, query, {"user_id": "user_id", "location_id": "location_id"})
            return _ok(rows) if rows else _not_found()

        if endpoint.startswith("/users/") and method == "PATCH":
            user_id = int(endpoint.rsplit("/", 1)[-1])
            for row in self.users:
                if row["id"] == user_id:
                    row.update(json_body or {})
            return ApiResponse(200, {"status": "success"})

        if endpoint.startswith("/users/") and method == "DELETE":
            user_id = int(endpoint.rsplit("/", 1)[-1])
            self.users = [u for u in self.users if u["id"] != user_id]
            return ApiResponse(200, {"status": "success"})

        if endpoint == "/podcore/users/locations/":
            assert json_body is not None
            self.next_id += 1
            location = next((loc for loc in self.locations if loc["id"] == json_body["location_id"]), {})
            self.user_locations.append(
                {
                    "id": self.next_id,
                    "user_id": json_body["user_id"],
                    "location_id": json_body["location_id"],
                    "location_name": location.get("location_name", ""),
                    "status": "active",
                }
            )
            return ApiResponse(200, {"status": "success", "id": self.next_id})

        if endpoint == "/locations/":
            rows = self._filter(self.locations, query, {"record_id": "id"})
            return _ok(rows) if rows else _not_found()

        if endpoint == "/pods/":
            rows = self._filter(self.pods, query, {"pod_name": "pod_name"})
            return _ok(rows) if rows else _not_found()

        if endpoint == "/doors/free_door/":
            if not self.free_doors:
                return ApiResponse(200, {"statusbool": False, "records": [], "Free": 0})
            return ApiResponse(
                200,
                {"statusbool": True, "records": self.free_doors, "Free": len(self.free_doors), "Jammed": 0},
            )

        if endpoint == "/reservations/":
            rows = self._filter(
                self.reservations,
                query,
                {
                    "record_id": "id",
                    "reservation_status": "reservation_status",
                    "createdby_phone": "created_by_phone",
                    "location_id": "location_id",
                },
            )
            # the service answers an empty search with 200 + failure envelope
            if not rows:
                return ApiResponse(
                    200, {"status": "failure", "status_code": 404, "message": RECORDS_NOT_FOUND, "records": []}
                )
            return _ok(rows)

        if endpoint == "/reservations/create":
            assert json_body is not None
            self.next_id += 1
            self.reservations.append({"id": self.next_id, "reservation_status": "DropPending", **json_body})
            return ApiResponse(200, {"status": "success", "reservation_id": self.next_id})

        if endpoint.startswith("/reservations/cancel/"):
            reservation_id = endpoint.rsplit("/", 1)[-1]
            for row in self.reservations:
                if str(row["id"]) == reservation_id:
                    row["reservation_status"] = "DropCancelled"
            return ApiResponse(200, {"status": "success"})

        if endpoint == "/reservations/resend_otp/":
            return ApiResponse(200, {"status": "success", "message": "OTP resent"})

        raise AssertionError(f"Unexpected endpoint in fake backend: {method} {endpoint}")


CUSTOMER = {
    "id": 7,
    "user_name": "Asha Rao",
    "user_phone": "9876543210",
    "user_email": "asha@example.com",
    "user_flatno": "B-204",
    "user_address": "12 Lake Road",
    "user_type": "Customer",
    "user_credit_limit": "500",
    "user_credit_used": "120.5",
}

ADMIN = {
    "id": 2,
    "user_name": "Site Admin",
    "user_phone": "9000000002",
    "user_email": "admin@example.com",
    "user_type": "SiteAdmin",
}

SECURITY = {
    "id": 3,
    "user_name": "Gate Security",
    "user_phone": "9000000003",
    "user_type": "SiteSecurity",
}

STAFF = {
    "id": 4,
    "user_name": "QP Staff",
    "user_phone": "9000000004",
    "user_type": "QPStaff",
}


@pytest.fixture
def config(tmp_path: Path) -> QikpodConfig:
    return QikpodConfig(base_url=BASE_URL, state_path=str(tmp_path / "state.json"))


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def context(config: QikpodConfig, storage: MemoryStorage) -> PortalContext:
    return PortalContext(config, storage).init()


@pytest.fixture
def backend(monkeypatch: pytest.MonkeyPatch) -> FakeQikpodBackend:
    fake_backend = FakeQikpodBackend(
        users=[dict(CUSTOMER), dict(ADMIN), dict(SECURITY), dict(STAFF)],
        locations=[
            {"id": 11, "location_name": "Lake View", "location_address": "1 Lake Rd", "city": "Pune"},
            {"id": 12, "location_name": "Hill Top", "location_address": "9 Hill St", "city": "Pune"},
        ],
        pods=[{"id": 31, "pod_name": "LV01", "location_id": 11, "status": "available"}],
    )

    async def fake_request(_self: Any, method: str, endpoint: str, **kwargs: Any) -> ApiResponse:
        return await fake_backend.request(method, endpoint, **kwargs)

    monkeypatch.setattr("pyqikpod._transport.HttpTransport.request", fake_request)
    return fake_backend


def sign_in(context: PortalContext, user: dict[str, Any], *, location_id: int | None = 11) -> User:
    """Put *user* into the session as if OTP login had succeeded."""
    context.store_token("user-token-1")
    signed_in = context.set_user(User.model_validate(user))
    if location_id is not None:
        context.set_location(location_id, "Lake View")
    return signed_in
