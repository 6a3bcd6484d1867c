"""Page bookkeeping and single-flight guarding for catalog fetches."""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

ITEMS_PER_PAGE = 20
INITIAL_PAGE = 1


@dataclass(frozen=True)
class PageRequest:
    page: int
    allowed: bool


class PageCursor:
    """
    Derives the next page from the number of loaded rows.

    ``current_page`` is ``item_count // items_per_page + 1``. A page may be
    requested only when it is neither the last committed page nor the page
    already pending, so a short final page never gets fetched twice.
    """

    def __init__(self, items_per_page: int = ITEMS_PER_PAGE) -> None:
        if items_per_page < 1:
            raise ValueError("items_per_page must be positive")
        self.items_per_page = items_per_page
        self.item_count = 0
        self.last_requested_page = 0
        self._pending_page: int | None = None

    @property
    def current_page(self) -> int:
        return self.item_count // self.items_per_page + INITIAL_PAGE

    @property
    def pending_page(self) -> int | None:
        return self._pending_page

    def is_request_available(self) -> bool:
        return self.last_requested_page != self.current_page

    def begin_request(self, *, fresh: bool) -> PageRequest:
        """
        Reserve the next page.

        A fresh request always targets page 1 and is always allowed. The last
        requested page only changes on ``commit``, so a failed fresh load
        leaves the pagination of the rows on screen untouched.
        """
        if fresh:
            self._pending_page = INITIAL_PAGE
            return PageRequest(page=INITIAL_PAGE, allowed=True)

        page = self.current_page
        if page == self.last_requested_page or page == self._pending_page:
            return PageRequest(page=page, allowed=False)

        self._pending_page = page
        return PageRequest(page=page, allowed=True)

    def commit(self, page: int) -> None:
        self.last_requested_page = page
        if self._pending_page == page:
            self._pending_page = None

    def release(self, page: int) -> None:
        """Forget a failed request so the same page can be retried."""
        if self._pending_page == page:
            self._pending_page = None

    def advance(self, count: int) -> None:
        self.item_count += count

    def reset_items(self, count: int = 0) -> None:
        self.item_count = count


@dataclass(frozen=True)
class RequestTicket:
    page: int
    generation: int
    fresh: bool


class RequestGate:
    """Allows one catalog fetch at a time and tags each with a generation."""

    def __init__(self, cursor: PageCursor) -> None:
        self._cursor = cursor
        self._in_flight = False
        self._generation = 0

    @property
    def cursor(self) -> PageCursor:
        return self._cursor

    @property
    def is_loading(self) -> bool:
        return self._in_flight

    @property
    def generation(self) -> int:
        return self._generation

    def mark_in_flight(self) -> None:
        self._in_flight = True

    def mark_idle(self) -> None:
        self._in_flight = False

    def open(self, *, fresh: bool) -> RequestTicket | None:
        """Reserve the next page, or return ``None`` when it must be skipped."""
        self.mark_in_flight()
        request = self._cursor.begin_request(fresh=fresh)
        if not request.allowed:
            self.mark_idle()
            logger.debug(f"[GATE] Skipping duplicate request for page {request.page}")
            return None

        if fresh:
            self._generation += 1
        return RequestTicket(page=request.page, generation=self._generation, fresh=fresh)

    def is_current(self, ticket: RequestTicket) -> bool:
        return ticket.generation == self._generation

    def complete(self, ticket: RequestTicket, *, success: bool) -> bool:
        """Settle ``ticket``; returns ``False`` when a newer fresh load superseded it."""
        if not self.is_current(ticket):
            logger.debug(
                f"[GATE] Discarding stale page {ticket.page} "
                f"(generation {ticket.generation} < {self._generation})"
            )
            return False

        self.mark_idle()
        if success:
            self._cursor.commit(ticket.page)
        else:
            self._cursor.release(ticket.page)
        return True

    def invalidate(self) -> None:
        """Supersede whatever is in flight without issuing a new request."""
        self._generation += 1
        self.mark_idle()


__all__ = ["INITIAL_PAGE", "ITEMS_PER_PAGE", "PageCursor", "PageRequest", "RequestGate", "RequestTicket"]
