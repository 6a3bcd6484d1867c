"""Local snapshot of the last online session, used when the API is unreachable."""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from movie_discovery.models import Genre, MovieSummary
from movie_discovery.providers.base import CacheError

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS genres (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS movies (
        position INTEGER PRIMARY KEY,
        movie_id INTEGER NOT NULL,
        title TEXT NOT NULL,
        backdrop_path TEXT,
        genre_ids TEXT NOT NULL,
        release_date TEXT,
        vote_average REAL NOT NULL DEFAULT 0,
        popularity REAL NOT NULL DEFAULT 0
    )
    """,
)


class SQLiteMovieCache:
    """Stores one genre catalog and one page of movies in a SQLite file."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = db_path
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_tables()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            raise CacheError(f"Unable to open cache at {self._db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise CacheError(f"Cache operation failed: {exc}") from exc
        finally:
            conn.close()

    def _init_tables(self) -> None:
        with self._connection() as conn:
            for statement in _SCHEMA:
                conn.execute(statement)

    def read_genres(self) -> list[Genre]:
        with self._connection() as conn:
            rows = conn.execute("SELECT id, name FROM genres ORDER BY id").fetchall()
        return [Genre(id=row["id"], name=row["name"]) for row in rows]

    def read_movies(self) -> list[MovieSummary]:
        with self._connection() as conn:
            rows = conn.execute("SELECT * FROM movies ORDER BY position").fetchall()
        return [self._map_row_to_movie(row) for row in rows]

    def replace_all(self, genres: Sequence[Genre], movies: Sequence[MovieSummary]) -> None:
        with self._connection() as conn:
            conn.execute("DELETE FROM genres")
            conn.execute("DELETE FROM movies")
            conn.executemany(
                "INSERT OR REPLACE INTO genres (id, name) VALUES (?, ?)",
                [(genre.id, genre.name) for genre in genres],
            )
            conn.executemany(
                """
                INSERT INTO movies
                (position, movie_id, title, backdrop_path, genre_ids,
                 release_date, vote_average, popularity)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        position,
                        movie.id,
                        movie.title,
                        movie.backdrop_path,
                        json.dumps(movie.genre_ids),
                        movie.release_date,
                        movie.vote_average,
                        movie.popularity,
                    )
                    for position, movie in enumerate(movies)
                ],
            )
        logger.debug(f"[CACHE] Stored {len(genres)} genres and {len(movies)} movies")

    def clear(self) -> None:
        with self._connection() as conn:
            conn.execute("DELETE FROM genres")
            conn.execute("DELETE FROM movies")

    def _map_row_to_movie(self, row: sqlite3.Row) -> MovieSummary:
        try:
            genre_ids = json.loads(row["genre_ids"])
        except (TypeError, ValueError):
            genre_ids = []
        return MovieSummary(
            id=row["movie_id"],
            title=row["title"],
            backdrop_path=row["backdrop_path"],
            genre_ids=genre_ids,
            release_date=row["release_date"],
            vote_average=row["vote_average"],
            popularity=row["popularity"],
        )


class MemoryMovieCache:
    """In-process cache with the same contract, for tests and ephemeral sessions."""

    def __init__(
        self,
        genres: Sequence[Genre] | None = None,
        movies: Sequence[MovieSummary] | None = None,
    ) -> None:
        self._genres = list(genres or [])
        self._movies = list(movies or [])

    def read_genres(self) -> list[Genre]:
        return list(self._genres)

    def read_movies(self) -> list[MovieSummary]:
        return list(self._movies)

    def replace_all(self, genres: Sequence[Genre], movies: Sequence[MovieSummary]) -> None:
        self._genres = list(genres)
        self._movies = list(movies)

    def clear(self) -> None:
        self._genres = []
        self._movies = []


__all__ = ["MemoryMovieCache", "SQLiteMovieCache"]
