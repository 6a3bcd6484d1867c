from __future__ import annotations

from movie_discovery.models import Genre, MovieSummary, SortMode

STATIC_GENRES = [
    Genre(id=28, name="Action"),
    Genre(id=12, name="Adventure"),
    Genre(id=16, name="Animation"),
    Genre(id=35, name="Comedy"),
    Genre(id=18, name="Drama"),
    Genre(id=878, name="Science Fiction"),
    Genre(id=53, name="Thriller"),
]

STATIC_MOVIES = [
    MovieSummary(
        id=693134,
        title="Dune: Part Two",
        backdrop_path="/xOMo8BRK7PfcJv9JCnx7s5hj0PX.jpg",
        genre_ids=[878, 12],
        release_date="2024-02-27",
        vote_average=8.2,
        popularity=412.5,
    ),
    MovieSummary(
        id=268,
        title="Batman",
        backdrop_path="/frDS8A5vIP927KYAxTVVKRIbqZw.jpg",
        genre_ids=[14, 28],
        release_date="1989-06-21",
        vote_average=7.2,
        popularity=60.3,
    ),
    MovieSummary(
        id=155,
        title="The Dark Knight",
        backdrop_path="/nMKdUUepR0i5zn0y1T4CsSB5chy.jpg",
        genre_ids=[18, 28, 80, 53],
        release_date="2008-07-16",
        vote_average=8.5,
        popularity=120.8,
    ),
    MovieSummary(
        id=1022789,
        title="Inside Out 2",
        backdrop_path=None,
        genre_ids=[16, 35, 12],
        release_date="2024-06-11",
        vote_average=7.6,
        popularity=301.2,
    ),
    MovieSummary(
        id=550,
        title="Fight Club",
        backdrop_path="/hZkgoQYus5vegHoetLkCJzb17zJ.jpg",
        genre_ids=[18],
        release_date=None,
        vote_average=8.4,
        popularity=73.9,
    ),
]

_SORT_KEYS = {
    "popularity": lambda movie: movie.popularity,
    "vote_average": lambda movie: movie.vote_average,
    "primary_release_date": lambda movie: movie.release_date or "",
}


class StaticCatalogTransport:
    """Serves a fixed in-memory catalog for local testing and offline demos."""

    name = "static"

    def __init__(
        self,
        movies: list[MovieSummary] | None = None,
        genres: list[Genre] | None = None,
        *,
        items_per_page: int = 20,
    ) -> None:
        self._movies = list(STATIC_MOVIES if movies is None else movies)
        self._genres = list(STATIC_GENRES if genres is None else genres)
        self._items_per_page = items_per_page

    async def fetch_page(self, sort: SortMode, page: int) -> list[MovieSummary]:
        field, _, direction = sort.value.rpartition(".")
        ordered = sorted(self._movies, key=_SORT_KEYS[field], reverse=direction == "desc")
        return self._slice(ordered, page)

    async def fetch_search(self, query: str, page: int) -> list[MovieSummary]:
        needle = query.casefold()
        matches = [movie for movie in self._movies if needle in movie.title.casefold()]
        return self._slice(matches, page)

    async def fetch_genres(self) -> list[Genre]:
        return list(self._genres)

    def _slice(self, movies: list[MovieSummary], page: int) -> list[MovieSummary]:
        start = (page - 1) * self._items_per_page
        return movies[start : start + self._items_per_page]


__all__ = ["STATIC_GENRES", "STATIC_MOVIES", "StaticCatalogTransport"]
