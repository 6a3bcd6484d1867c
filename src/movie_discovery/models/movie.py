from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class SortMode(str, Enum):
    """Sort orders accepted by the catalog's ``sort_by`` parameter."""

    POPULARITY_DESC = "popularity.desc"
    POPULARITY_ASC = "popularity.asc"
    RATING_DESC = "vote_average.desc"
    RATING_ASC = "vote_average.asc"
    RELEASE_DATE_DESC = "primary_release_date.desc"
    RELEASE_DATE_ASC = "primary_release_date.asc"

    @property
    def label(self) -> str:
        return _SORT_LABELS[self]

    @classmethod
    def default(cls) -> SortMode:
        return cls.POPULARITY_DESC

    @classmethod
    def parse(cls, raw: str | None) -> SortMode | None:
        """Return the matching mode, or ``None`` for missing or unknown values."""
        if not raw:
            return None
        try:
            return cls(raw.strip())
        except ValueError:
            return None


_SORT_LABELS = {
    SortMode.POPULARITY_DESC: "Popularity descending",
    SortMode.POPULARITY_ASC: "Popularity ascending",
    SortMode.RATING_DESC: "Vote descending",
    SortMode.RATING_ASC: "Vote ascending",
    SortMode.RELEASE_DATE_DESC: "Release date descending",
    SortMode.RELEASE_DATE_ASC: "Release date ascending",
}


class MovieSummary(BaseModel):
    """Raw catalog record as returned by the discover and search endpoints."""

    id: int
    title: str
    backdrop_path: str | None = None
    genre_ids: list[int] = Field(default_factory=list)
    release_date: str | None = None
    vote_average: float = 0.0
    popularity: float = 0.0

    model_config = {
        "frozen": True,
        "extra": "ignore",
    }

    @field_validator("vote_average", "popularity", mode="before")
    @classmethod
    def _default_missing_metric(cls, value: object) -> object:
        return 0.0 if value is None else value

    @field_validator("genre_ids", mode="before")
    @classmethod
    def _default_missing_genres(cls, value: object) -> object:
        return [] if value is None else value


class Genre(BaseModel):
    id: int
    name: str

    model_config = {
        "frozen": True,
        "extra": "ignore",
    }


class GenreCatalog(Mapping[int, str]):
    """Immutable genre id to name lookup, replaced wholesale on every fetch."""

    def __init__(self, names: Mapping[int, str] | None = None) -> None:
        self._names: dict[int, str] = dict(names or {})

    @classmethod
    def from_genres(cls, genres: Iterable[Genre]) -> GenreCatalog:
        return cls({genre.id: genre.name for genre in genres})

    def genres(self) -> list[Genre]:
        return [Genre(id=genre_id, name=name) for genre_id, name in self._names.items()]

    def __getitem__(self, genre_id: int) -> str:
        return self._names[genre_id]

    def __iter__(self) -> Iterator[int]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"GenreCatalog({self._names!r})"


@dataclass(frozen=True)
class MovieRow:
    """Render-ready movie entry."""

    id: int
    title: str
    genres: str
    release_year: str
    release_date: str
    rating: str
    poster_url: str


class PipelinePhase(str, Enum):
    UNINITIALIZED = "uninitialized"
    BOOTSTRAPPING = "bootstrapping"
    READY = "ready"
    SORTING = "sorting"
    SEARCHING = "searching"
    PAGINATING = "paginating"


@dataclass
class DiscoveryViewState:
    """Everything the presentation layer needs to draw the catalog screen."""

    movies: list[MovieRow] = field(default_factory=list)
    sort_mode: SortMode = SortMode.POPULARITY_DESC
    search_query: str | None = None
    is_loading: bool = False
    show_search_indicator: bool = False
    last_error: str | None = None
    phase: PipelinePhase = PipelinePhase.UNINITIALIZED

    @property
    def is_empty(self) -> bool:
        return not self.movies


__all__ = [
    "DiscoveryViewState",
    "Genre",
    "GenreCatalog",
    "MovieRow",
    "MovieSummary",
    "PipelinePhase",
    "SortMode",
]
