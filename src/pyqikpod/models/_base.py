"""Base model and enum for QikPod API records.

Every record model inherits from :class:`QikpodBaseModel` which provides:

* ``extra="ignore"`` so fields this library does not use are tolerated.
* A ``model_validator(mode="before")`` that drops ``None`` and blank
  strings so the field default is used.
* A ``raw`` dict that captures the original record.

Status enums inherit from :class:`QikpodEnum` which resolves unmapped
values to ``UNKNOWN`` instead of raising.
"""

from __future__ import annotations

import enum
import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

#: Placeholder shown in place of a missing field.
PLACEHOLDER = "N/A"


def safe_int(value: Any) -> int | None:
    """Convert *value* to ``int``, returning ``None`` on failure."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return int(value)
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return int(result)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def display(value: Any, placeholder: str = PLACEHOLDER) -> str:
    """Render a possibly-missing field for display."""
    text = safe_str(value)
    return text if text is not None else placeholder


class QikpodEnum(enum.StrEnum):
    """Base for QikPod tag enums.

    Every subclass **must** define ``UNKNOWN``.
    """

    @classmethod
    def _missing_(cls, value: object) -> QikpodEnum:
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        unknown: QikpodEnum = cls.UNKNOWN  # type: ignore[attr-defined]
        return unknown


class QikpodBaseModel(BaseModel):
    """Base for QikPod API records."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original API record."""

    @model_validator(mode="before")
    @classmethod
    def _clean_values(cls, values: Any) -> Any:
        """Drop empty values and stash the raw record."""
        if not isinstance(values, dict):
            return values
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            cleaned[key] = value
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
