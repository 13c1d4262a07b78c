"""Client-side search and page slicing for list views.

List endpoints return the full result set; views filter it with a search
query and show one page at a time.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from pyqikpod.models.location import UserLocation
from pyqikpod.models.reservation import Reservation
from pyqikpod.models.user import UserRole

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    """One page of a list.

    ``start_item`` and ``end_item`` are 1-based positions for a
    "Showing X to Y of Z items" line and are ``0`` for an empty list.
    """

    items: list[T]
    page: int
    page_size: int
    total_items: int
    total_pages: int

    @property
    def start_item(self) -> int:
        if self.total_items == 0:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def end_item(self) -> int:
        return min(self.page * self.page_size, self.total_items)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def paginate(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    """Slice *items* to 1-based *page*, clamping out-of-range pages."""
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    total = len(items)
    total_pages = math.ceil(total / page_size)
    current = min(max(page, 1), max(total_pages, 1))
    start = (current - 1) * page_size
    return Page(
        items=list(items[start : start + page_size]),
        page=current,
        page_size=page_size,
        total_items=total,
        total_pages=total_pages,
    )


def _matches(query: str, *fields: str) -> bool:
    return any(query in (value or "").lower() for value in fields)


def search_users(users: Iterable[UserLocation], query: str, *, customers_only: bool = True) -> list[UserLocation]:
    """Filter location users by name, phone, email or flat number."""
    needle = query.strip().lower()
    result: list[UserLocation] = []
    for user in users:
        if customers_only and UserRole(user.user_type) is not UserRole.CUSTOMER:
            continue
        if not needle or _matches(needle, user.user_name, user.user_phone, user.user_email, user.user_flatno):
            result.append(user)
    return result


def search_reservations(reservations: Iterable[Reservation], query: str) -> list[Reservation]:
    """Filter reservations by recipient name, phone or AWB number."""
    needle = query.strip().lower()
    if not needle:
        return list(reservations)
    return [
        r
        for r in reservations
        if _matches(needle, r.user_name, r.user_phone, r.reservation_awbno, r.pod_name, r.created_by_name)
    ]
