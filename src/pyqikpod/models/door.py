"""Free door lookup model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from pyqikpod.models._base import QikpodBaseModel


class FreeDoor(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    pod_id: int
    door_number: int


class FreeDoorResult(QikpodBaseModel):
    """Answer of ``/doors/free_door/`` for a location."""

    records: list[FreeDoor] = Field(default_factory=list)
    free: int = Field(default=0, validation_alias=AliasChoices("Free", "free"))
    jammed: int = Field(default=0, validation_alias=AliasChoices("Jammed", "jammed"))
    reserved: int = Field(default=0, validation_alias=AliasChoices("Reserved", "reserved"))
    in_use: int = Field(default=0, validation_alias=AliasChoices("Inuse", "in_use"))
    statusbool: bool = False
    raw: dict[str, Any] = Field(default_factory=dict)

    @property
    def first_pod_id(self) -> int | None:
        """Pod id of the first free door, or ``None`` if there is none."""
        if not self.records:
            return None
        return self.records[0].pod_id
