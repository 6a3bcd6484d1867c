from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from movie_discovery.models import GenreCatalog, MovieSummary
from movie_discovery.providers.base import (
    ConnectivityOracle,
    ErrorKind,
    LocalCache,
    TransportError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheSnapshot:
    catalog: GenreCatalog = field(default_factory=GenreCatalog)
    movies: list[MovieSummary] = field(default_factory=list)


class OfflineCacheGate:
    """Chooses between network and cache, and rate-limits connectivity errors."""

    def __init__(self, oracle: ConnectivityOracle, cache: LocalCache) -> None:
        self._oracle = oracle
        self._cache = cache
        self._connectivity_error_available = True

    def is_online(self) -> bool:
        return self._oracle.is_online()

    def load_snapshot(self) -> CacheSnapshot:
        """Read the cached genres and movies, most popular first."""
        catalog = GenreCatalog.from_genres(self._cache.read_genres())
        movies = sorted(self._cache.read_movies(), key=lambda movie: movie.popularity, reverse=True)
        logger.debug(f"[OFFLINE] Loaded {len(movies)} cached movies, {len(catalog)} genres")
        return CacheSnapshot(catalog=catalog, movies=movies)

    def store_snapshot(self, catalog: GenreCatalog, movies: Sequence[MovieSummary]) -> None:
        """Replace the cached snapshot with the first page of a fresh online load."""
        self._cache.clear()
        self._cache.replace_all(catalog.genres(), list(movies))

    def should_report(self, error: TransportError) -> bool:
        if error.kind is not ErrorKind.CONNECTIVITY:
            return True
        if not self._connectivity_error_available:
            logger.debug("[OFFLINE] Suppressing repeated connectivity error")
            return False
        self._connectivity_error_available = False
        return True

    def suppress_connectivity_errors(self) -> None:
        """Treat the current outage as already reported."""
        self._connectivity_error_available = False

    def record_success(self) -> None:
        self._connectivity_error_available = True

    @property
    def connectivity_error_available(self) -> bool:
        return self._connectivity_error_available


__all__ = ["CacheSnapshot", "OfflineCacheGate"]
