"""Cursor-following page sequences for Spotify's paging objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional


@dataclass(frozen=True)
class Page:
    items: List[Any] = field(default_factory=list)
    next: Optional[str] = None

    @classmethod
    def from_api(cls, payload: Optional[Dict[str, Any]]) -> "Page":
        payload = payload or {}
        return cls(items=list(payload.get("items") or []), next=payload.get("next") or None)


class PageStream:
    """Lazy, restartable sequence of pages.

    ``first`` fetches the opening page and ``follow`` fetches the page a cursor
    points at. Each iteration starts over from ``first`` and stops as soon as a
    page arrives without a cursor; there is no page-count cap. Errors raised by
    the fetchers propagate to the consumer after the pages already yielded.
    """

    def __init__(self, first: Callable[[], Page], follow: Callable[[Page], Page]):
        self._first = first
        self._follow = follow

    def __iter__(self) -> Iterator[Page]:
        page = self._first()
        while True:
            yield page
            if not page.next:
                return
            page = self._follow(page)

    def items(self) -> Iterator[Any]:
        for page in self:
            yield from page.items


__all__ = ["Page", "PageStream"]
