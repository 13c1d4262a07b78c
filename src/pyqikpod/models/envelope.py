"""Common response envelope."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pyqikpod._constants import RECORDS_NOT_FOUND


class ApiEnvelope(BaseModel):
    """Wrapper most QikPod endpoints put around their ``records``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    status: str = ""
    status_code: int | None = None
    message: str = ""
    count: int | None = None
    records: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def is_records_not_found(self) -> bool:
        return self.status == "failure" and self.message == RECORDS_NOT_FOUND
