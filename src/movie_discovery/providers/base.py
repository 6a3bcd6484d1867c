"""Collaborator contracts consumed by the discovery pipeline."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Protocol

from movie_discovery.models import DiscoveryViewState, Genre, MovieSummary, SortMode

if TYPE_CHECKING:
    from collections.abc import Sequence

NO_CONNECTION_MESSAGE = "You are offline. Please, enable your WiFi or connect using cellular data."
DEFAULT_ERROR_MESSAGE = "Something went wrong. Please try again later."


class ErrorKind(str, Enum):
    CONNECTIVITY = "connectivity"
    DECODE = "decode"
    OTHER = "other"


class TransportError(RuntimeError):
    """Raised when a catalog request cannot produce records."""

    kind: ErrorKind = ErrorKind.OTHER

    @property
    def user_message(self) -> str:
        detail = str(self)
        return f"{DEFAULT_ERROR_MESSAGE} ({detail})" if detail else DEFAULT_ERROR_MESSAGE


class ConnectivityError(TransportError):
    """The device is offline or the API host is unreachable."""

    kind = ErrorKind.CONNECTIVITY

    @property
    def user_message(self) -> str:
        return NO_CONNECTION_MESSAGE


class DecodeError(TransportError):
    """The response body could not be decoded into catalog records."""

    kind = ErrorKind.DECODE


class RequestFailedError(TransportError):
    """The API answered with an error status."""


class CacheError(RuntimeError):
    """Raised when the local cache cannot be read or written."""


class Transport(Protocol):
    """Remote paginated catalog."""

    async def fetch_page(self, sort: SortMode, page: int) -> list[MovieSummary]:
        """Return one page of the browse listing."""

    async def fetch_search(self, query: str, page: int) -> list[MovieSummary]:
        """Return one page of title search results."""

    async def fetch_genres(self) -> list[Genre]:
        """Return the full genre taxonomy."""


class ConnectivityOracle(Protocol):
    def is_online(self) -> bool:
        """Report current reachability without blocking for long."""


class LocalCache(Protocol):
    """Snapshot of the most recent online session."""

    def read_genres(self) -> list[Genre]: ...

    def read_movies(self) -> list[MovieSummary]: ...

    def replace_all(self, genres: Sequence[Genre], movies: Sequence[MovieSummary]) -> None: ...

    def clear(self) -> None: ...


class PreferenceStore(Protocol):
    def read_sort_mode(self) -> SortMode | None: ...

    def write_sort_mode(self, mode: SortMode) -> None: ...


class Navigator(Protocol):
    def open_details(self, movie_id: int, title: str) -> None:
        """Fire-and-forget request to show a movie's details."""


class PresentationSink(Protocol):
    """Receives view state updates emitted by the pipeline."""

    def render(self, state: DiscoveryViewState) -> None:
        """Replace everything on screen with ``state``."""

    def append(self, count: int, state: DiscoveryViewState) -> None:
        """``count`` rows were appended to the end of ``state.movies``."""

    def show_error(self, message: str) -> None: ...


__all__ = [
    "CacheError",
    "ConnectivityError",
    "ConnectivityOracle",
    "DEFAULT_ERROR_MESSAGE",
    "DecodeError",
    "ErrorKind",
    "LocalCache",
    "NO_CONNECTION_MESSAGE",
    "Navigator",
    "PreferenceStore",
    "PresentationSink",
    "RequestFailedError",
    "Transport",
    "TransportError",
]
