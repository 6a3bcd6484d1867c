"""Discovery pipeline: bootstrap, browse, sort, search and pagination flows."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Awaitable, Callable, Iterator, Sequence
from contextlib import contextmanager

from movie_discovery.models import (
    DiscoveryViewState,
    GenreCatalog,
    MovieRow,
    MovieSummary,
    PipelinePhase,
    SortMode,
)
from movie_discovery.providers.base import (
    NO_CONNECTION_MESSAGE,
    CacheError,
    ConnectivityError,
    ConnectivityOracle,
    LocalCache,
    Navigator,
    PreferenceStore,
    PresentationSink,
    Transport,
    TransportError,
)
from movie_discovery.services.debounce import (
    SEARCH_SETTLE_SECONDS,
    SearchAction,
    SearchDebouncer,
    SearchState,
)
from movie_discovery.services.offline import OfflineCacheGate
from movie_discovery.services.paging import ITEMS_PER_PAGE, PageCursor, RequestGate, RequestTicket
from movie_discovery.services.view_state import ViewStateBuilder

logger = logging.getLogger(__name__)


class DiscoveryPipeline:
    """
    State machine behind the movie catalog screen.

    The presentation layer calls the public coroutines from a single event
    loop. Fetch completions are applied on that same loop, and completions
    belonging to a superseded fresh load are dropped by generation tag.

    Flow:
        initial_load  -> genres + page 1 in parallel (or cache) -> join -> render
        sort_movies   -> fresh page 1 under the new sort mode
        perform_search-> debounced fresh search page 1 (offline: local filter)
        load_more     -> next page of whichever result set is active
    """

    def __init__(
        self,
        *,
        transport: Transport,
        connectivity: ConnectivityOracle,
        cache: LocalCache,
        preferences: PreferenceStore,
        navigator: Navigator,
        sink: PresentationSink,
        builder: ViewStateBuilder | None = None,
        items_per_page: int = ITEMS_PER_PAGE,
        search_delay: float = SEARCH_SETTLE_SECONDS,
        search_pagination_threshold: int | None = None,
    ) -> None:
        self._transport = transport
        self._preferences = preferences
        self._navigator = navigator
        self._sink = sink
        self._builder = builder or ViewStateBuilder()
        self._offline = OfflineCacheGate(connectivity, cache)
        self._cursor = PageCursor(items_per_page)
        self._gate = RequestGate(self._cursor)
        self._debouncer = SearchDebouncer(self._commit_search, delay=search_delay)
        self._search_threshold = (
            items_per_page if search_pagination_threshold is None else search_pagination_threshold
        )

        self._state = DiscoveryViewState()
        self._catalog = GenreCatalog()
        # Raw browse records backing the rows; offline search filters these.
        self._retained: list[MovieSummary] = []
        # Rows restored from the cache are replaced, not extended, once back online.
        self._rows_from_cache = False

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> DiscoveryViewState:
        return self._snapshot()

    @property
    def phase(self) -> PipelinePhase:
        return self._state.phase

    @property
    def sort_mode(self) -> SortMode:
        return self._state.sort_mode

    @property
    def search_query(self) -> str | None:
        return self._state.search_query

    @property
    def catalog(self) -> GenreCatalog:
        return self._catalog

    @property
    def cursor(self) -> PageCursor:
        return self._cursor

    @property
    def debouncer(self) -> SearchDebouncer:
        return self._debouncer

    @property
    def is_request_loading(self) -> bool:
        return self._gate.is_loading

    @property
    def movie_count(self) -> int:
        return len(self._state.movies)

    def movie_at(self, index: int) -> MovieRow | None:
        if 0 <= index < len(self._state.movies):
            return self._state.movies[index]
        return None

    def is_online(self) -> bool:
        return self._offline.is_online()

    def is_request_available(self) -> bool:
        return self._cursor.is_request_available()

    def validate_connection(self) -> bool:
        """Return ``True`` when online, otherwise surface the offline message."""
        if not self._offline.is_online():
            self._show_error(NO_CONNECTION_MESSAGE)
            return False
        return True

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    async def initial_load(self) -> None:
        self._restore_sort_mode()
        self._state.phase = PipelinePhase.BOOTSTRAPPING
        self._state.is_loading = True
        self._sink.render(self._snapshot())

        online = self._offline.is_online()
        if online:
            genres_ok, first_page = await asyncio.gather(
                self._load_genres(),
                self._request_browse(fresh=True),
            )
            if first_page is not None and genres_ok:
                self._store_snapshot(first_page)
        else:
            self._load_from_cache()

        self._state.movies = self._builder.build(self._retained, self._catalog)
        self._cursor.reset_items(len(self._state.movies))
        self._state.is_loading = False
        self._state.phase = PipelinePhase.READY
        self._sink.render(self._snapshot())

        if not online:
            self._report(ConnectivityError())
            self._offline.suppress_connectivity_errors()

    async def refresh(self) -> None:
        """Start over from page 1 of the browse listing (pull-to-reset)."""
        if not self._offline.is_online():
            self._debouncer.reset()
            self._state.search_query = None
            self._load_from_cache()
            self._replace_rows(self._retained)
            return
        with self._phase(PipelinePhase.SORTING):
            await self._fresh_browse()

    async def sort_movies(self, mode: SortMode) -> bool:
        if not self.validate_connection():
            return False

        with self._phase(PipelinePhase.SORTING):
            if not await self._fresh_browse(mode):
                return False
        self._persist_sort_mode(mode)
        return True

    async def perform_search(self, query: str | None) -> None:
        query = (query or "").strip()
        if self._offline.is_online():
            await self._search_remote(query)
        else:
            self._search_locally(query)

    async def load_more(self) -> None:
        if self._gate.is_loading:
            return
        if not self._offline.is_online():
            logger.debug("[PIPELINE] Offline, nothing more to load")
            return

        query = self._state.search_query
        with self._phase(PipelinePhase.PAGINATING):
            if self._rows_from_cache:
                await self._fresh_browse()
                return
            if query is not None:
                if self.movie_count >= self._search_threshold:
                    await self._paginate_search(query)
                return
            movies = await self._request_browse(fresh=False)
            if movies:
                self._append_rows(movies)

    def did_select_movie(self, index: int) -> None:
        if not self.validate_connection():
            return
        movie = self.movie_at(index)
        if movie is None:
            return
        self._navigator.open_details(movie.id, movie.title)

    async def wait_for_search(self) -> None:
        await self._debouncer.wait()

    async def aclose(self) -> None:
        self._debouncer.cancel()

    # ------------------------------------------------------------------
    # Browse
    # ------------------------------------------------------------------

    async def _fresh_browse(self, sort: SortMode | None = None) -> bool:
        """Replace the rows with page 1 of ``sort``; the mode is adopted only on success."""
        sort = sort or self._state.sort_mode
        movies = await self._request_browse(fresh=True, sort=sort)
        if movies is None:
            self._drop_superseded_search()
            return False
        self._debouncer.clear_commit()
        self._state.sort_mode = sort
        self._state.search_query = None
        if self._debouncer.state is not SearchState.PENDING:
            self._state.show_search_indicator = False
        self._store_snapshot(movies)
        self._replace_rows(movies)
        return True

    def _drop_superseded_search(self) -> None:
        # A fresh load invalidates any fired search still in flight.
        committed = self._debouncer.committed_query
        if committed is not None and committed != self._state.search_query:
            self._debouncer.rollback(committed, self._state.search_query)
        if self._debouncer.state is not SearchState.PENDING:
            self._set_search_indicator(False)

    async def _request_browse(
        self, *, fresh: bool, sort: SortMode | None = None
    ) -> list[MovieSummary] | None:
        ticket = self._gate.open(fresh=fresh)
        if ticket is None:
            return None
        sort = sort or self._state.sort_mode
        movies = await self._fetch(ticket, lambda: self._transport.fetch_page(sort, ticket.page))
        if movies is None:
            return None
        if fresh:
            self._retained = []
            self._rows_from_cache = False
        self._retained.extend(movies)
        return movies

    async def _load_genres(self) -> bool:
        try:
            genres = await self._transport.fetch_genres()
        except TransportError as exc:
            self._report(exc)
            return False
        self._catalog = GenreCatalog.from_genres(genres)
        return True

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def _search_remote(self, query: str) -> None:
        action = self._debouncer.on_query_changed(query)

        if action is SearchAction.SCHEDULED:
            self._set_search_indicator(True)
            return

        self._set_search_indicator(False)
        if query:
            return

        if action is SearchAction.CLEARED and self._state.search_query is None:
            # The first search fired but has not landed yet; drop its result.
            self._gate.invalidate()
        if self._state.search_query is not None:
            with self._phase(PipelinePhase.SEARCHING):
                await self._fresh_browse()

    async def _commit_search(self, query: str) -> None:
        previous = self._state.search_query
        with self._phase(PipelinePhase.SEARCHING):
            ticket = self._gate.open(fresh=True)
            if ticket is None:  # pragma: no cover - fresh requests are always allowed
                return
            movies = await self._fetch(ticket, lambda: self._transport.fetch_search(query, ticket.page))
            if not self._gate.is_current(ticket):
                return
            self._set_search_indicator(False)
            if movies is None:
                self._debouncer.rollback(query, previous)
                return
            self._state.search_query = query
            self._rows_from_cache = False
            self._replace_rows(movies)

    async def _paginate_search(self, query: str) -> None:
        ticket = self._gate.open(fresh=False)
        if ticket is None:
            return
        movies = await self._fetch(ticket, lambda: self._transport.fetch_search(query, ticket.page))
        if movies:
            self._append_rows(movies)

    def _search_locally(self, query: str) -> None:
        if not query:
            self._debouncer.reset()
            self._set_search_indicator(False)
            if self._state.search_query is not None:
                self._state.search_query = None
                self._replace_rows(self._retained)
            return

        self._debouncer.mark_committed(query)
        self._state.search_query = query
        self._state.show_search_indicator = False
        needle = query.casefold()
        self._replace_rows([movie for movie in self._retained if needle in movie.title.casefold()])

    # ------------------------------------------------------------------
    # Fetch plumbing
    # ------------------------------------------------------------------

    async def _fetch(
        self,
        ticket: RequestTicket,
        request: Callable[[], Awaitable[list[MovieSummary]]],
    ) -> list[MovieSummary] | None:
        try:
            movies = await request()
        except TransportError as exc:
            if self._gate.complete(ticket, success=False):
                self._report(exc)
            return None

        if not self._gate.complete(ticket, success=True):
            return None
        self._offline.record_success()
        return movies

    def _report(self, error: TransportError) -> None:
        if self._offline.should_report(error):
            self._show_error(error.user_message)

    def _show_error(self, message: str) -> None:
        logger.warning(f"[PIPELINE] {message}")
        self._state.last_error = message
        self._sink.show_error(message)

    # ------------------------------------------------------------------
    # Cache and preferences
    # ------------------------------------------------------------------

    def _load_from_cache(self) -> None:
        try:
            snapshot = self._offline.load_snapshot()
        except CacheError as exc:
            self._show_error(str(exc))
            return
        self._catalog = snapshot.catalog
        self._retained = list(snapshot.movies)
        self._rows_from_cache = True

    def _store_snapshot(self, movies: Sequence[MovieSummary]) -> None:
        try:
            self._offline.store_snapshot(self._catalog, movies)
        except CacheError as exc:
            self._show_error(str(exc))

    def _restore_sort_mode(self) -> None:
        try:
            stored = self._preferences.read_sort_mode()
        except OSError as exc:
            logger.warning(f"[PIPELINE] Could not read stored sort mode: {exc}")
            stored = None
        self._state.sort_mode = stored or SortMode.default()

    def _persist_sort_mode(self, mode: SortMode) -> None:
        try:
            self._preferences.write_sort_mode(mode)
        except OSError as exc:
            logger.warning(f"[PIPELINE] Could not persist sort mode {mode.value}: {exc}")

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    def _replace_rows(self, movies: Sequence[MovieSummary]) -> None:
        self._state.movies = self._builder.build(movies, self._catalog)
        self._cursor.reset_items(len(self._state.movies))
        self._sink.render(self._snapshot())

    def _append_rows(self, movies: Sequence[MovieSummary]) -> None:
        if not self._state.movies:
            self._replace_rows(movies)
            return
        rows = self._builder.build(movies, self._catalog)
        self._state.movies.extend(rows)
        self._cursor.advance(len(rows))
        self._sink.append(len(rows), self._snapshot())

    def _set_search_indicator(self, visible: bool) -> None:
        if self._state.show_search_indicator == visible:
            return
        self._state.show_search_indicator = visible
        self._sink.render(self._snapshot())

    def _snapshot(self) -> DiscoveryViewState:
        return dataclasses.replace(self._state, movies=list(self._state.movies))

    @contextmanager
    def _phase(self, phase: PipelinePhase) -> Iterator[None]:
        self._state.phase = phase
        try:
            yield
        finally:
            self._state.phase = PipelinePhase.READY


__all__ = ["DiscoveryPipeline"]
