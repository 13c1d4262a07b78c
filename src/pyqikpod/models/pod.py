"""Pod (locker kiosk) model."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pyqikpod.models._base import QikpodBaseModel, safe_int


class Pod(QikpodBaseModel):
    """A physical locker unit, looked up by the name in the entry URL."""

    id: int
    pod_name: str
    location_id: int
    status: str = "available"
    raw: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", "location_id", mode="before")
    @classmethod
    def _coerce_ints(cls, value: Any) -> Any:
        parsed = safe_int(value)
        return parsed if parsed is not None else value
