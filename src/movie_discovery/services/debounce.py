"""Settle-period debouncing for search-as-you-type."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

logger = logging.getLogger(__name__)

SEARCH_SETTLE_SECONDS = 0.5


class SearchState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"


class SearchAction(str, Enum):
    """What the caller should do after a query change."""

    IGNORED = "ignored"
    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    CLEARED = "cleared"


class SearchDebouncer:
    """
    Collapses bursts of query changes into one committed search.

    Every change cancels the armed timer. A non-empty query different from the
    committed one arms a new timer; when it fires the query becomes committed
    and ``on_commit`` is awaited. Clearing a committed query returns
    ``SearchAction.CLEARED`` so the caller can go back to browsing.

    Timers are tasks on the running event loop, so ``on_commit`` executes on
    the same loop as every other pipeline trigger.
    """

    def __init__(
        self,
        on_commit: Callable[[str], Awaitable[None]],
        *,
        delay: float = SEARCH_SETTLE_SECONDS,
    ) -> None:
        self._on_commit = on_commit
        self._delay = delay
        self._task: asyncio.Task[None] | None = None
        self._running: asyncio.Task[None] | None = None
        self._pending_query: str | None = None
        self._committed_query: str | None = None

    @property
    def state(self) -> SearchState:
        if self._pending_query is not None:
            return SearchState.PENDING
        if self._committed_query is not None:
            return SearchState.COMMITTED
        return SearchState.IDLE

    @property
    def pending_query(self) -> str | None:
        return self._pending_query

    @property
    def committed_query(self) -> str | None:
        return self._committed_query

    def on_query_changed(self, query: str | None) -> SearchAction:
        had_pending = self._pending_query is not None
        self.cancel()

        if not query:
            if self._committed_query is not None:
                self._committed_query = None
                return SearchAction.CLEARED
            return SearchAction.CANCELLED if had_pending else SearchAction.IGNORED

        if query == self._committed_query:
            return SearchAction.IGNORED

        self._pending_query = query
        self._task = asyncio.get_running_loop().create_task(self._fire_after_delay(query))
        return SearchAction.SCHEDULED

    def cancel(self) -> None:
        """Drop the armed timer, if any. A search that already fired keeps running."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._pending_query = None

    def mark_committed(self, query: str | None) -> None:
        """Record ``query`` as committed without a timer (offline filtering)."""
        self.cancel()
        self._committed_query = query or None

    def reset(self) -> None:
        self.cancel()
        self._committed_query = None

    def clear_commit(self) -> None:
        """Forget the committed query without touching an armed timer."""
        self._committed_query = None

    def rollback(self, query: str, previous: str | None) -> None:
        """Undo the commit of a search that failed, leaving any armed timer alone."""
        if self._committed_query == query:
            self._committed_query = previous

    async def wait(self) -> None:
        """Wait until the armed timer and any search it fired have finished."""
        while True:
            task = self._task or self._running
            if task is None or task.done():
                return
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise

    async def _fire_after_delay(self, query: str) -> None:
        await asyncio.sleep(self._delay)
        if self._pending_query != query:
            return

        # Once fired the search is no longer cancellable by later keystrokes.
        current = asyncio.current_task()
        self._running = current
        if self._task is current:
            self._task = None
        self._pending_query = None
        self._committed_query = query
        logger.debug(f"[SEARCH] Committing query {query!r}")
        try:
            await self._on_commit(query)
        finally:
            if self._running is current:
                self._running = None


__all__ = ["SEARCH_SETTLE_SECONDS", "SearchAction", "SearchDebouncer", "SearchState"]
