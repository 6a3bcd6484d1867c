"""Pure transformation of catalog records into render-ready rows."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime

from movie_discovery.models import MovieRow, MovieSummary

DEFAULT_POSTER_BASE_URL = "https://image.tmdb.org/t/p/w500"
MAX_GENRES = 3
GENRE_SEPARATOR = ", "
UNKNOWN_RELEASE = "TBA"

_API_DATE_FORMAT = "%Y-%m-%d"
# Fixed English names; strftime("%B") follows the process locale.
_MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


class ViewStateBuilder:
    """Builds ``MovieRow`` values; holds configuration only, never results."""

    def __init__(self, poster_base_url: str = DEFAULT_POSTER_BASE_URL) -> None:
        self._poster_base_url = poster_base_url

    def build(
        self,
        movies: Iterable[MovieSummary],
        genres: Mapping[int, str],
    ) -> list[MovieRow]:
        return [self.build_row(movie, genres) for movie in movies]

    def build_row(self, movie: MovieSummary, genres: Mapping[int, str]) -> MovieRow:
        release = parse_release_date(movie.release_date)
        return MovieRow(
            id=movie.id,
            title=movie.title,
            genres=format_genres(movie.genre_ids, genres),
            release_year=str(release.year) if release else UNKNOWN_RELEASE,
            release_date=format_release_date(release) if release else UNKNOWN_RELEASE,
            rating=format_rating(movie.vote_average),
            poster_url=self._poster_base_url + (movie.backdrop_path or ""),
        )


def format_genres(genre_ids: Iterable[int], genres: Mapping[int, str]) -> str:
    names = [genres[genre_id] for genre_id in genre_ids if genre_id in genres]
    return GENRE_SEPARATOR.join(names[:MAX_GENRES])


def format_release_date(release: date) -> str:
    return f"{release.day:02d} {_MONTH_NAMES[release.month - 1]} {release.year}"


def format_rating(vote_average: float | None) -> str:
    return f"{vote_average or 0.0:.1f}"


def parse_release_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), _API_DATE_FORMAT)
    except ValueError:
        return None


__all__ = [
    "UNKNOWN_RELEASE",
    "ViewStateBuilder",
    "format_genres",
    "format_rating",
    "format_release_date",
    "parse_release_date",
]
