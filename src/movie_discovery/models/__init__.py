from .movie import (
    DiscoveryViewState,
    Genre,
    GenreCatalog,
    MovieRow,
    MovieSummary,
    PipelinePhase,
    SortMode,
)

__all__ = [
    "DiscoveryViewState",
    "Genre",
    "GenreCatalog",
    "MovieRow",
    "MovieSummary",
    "PipelinePhase",
    "SortMode",
]
