from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import typer

from movie_discovery import __version__
from movie_discovery.config import (
    CONFIG_PATH_ENV,
    Settings,
    SettingsError,
    SettingsLoadResult,
    load_settings,
)
from movie_discovery.models import DiscoveryViewState, MovieRow, SortMode
from movie_discovery.providers.base import Transport
from movie_discovery.providers.factory import build_connectivity, build_transport
from movie_discovery.services.pipeline import DiscoveryPipeline
from movie_discovery.services.view_state import ViewStateBuilder
from movie_discovery.storage import JsonPreferenceStore, SQLiteMovieCache

app = typer.Typer(
    add_completion=False,
    help="Browse, sort and search a paginated movie catalog, with an offline cache.",
)


class ConsoleSink:
    """Prints rows as the pipeline emits them."""

    def __init__(self, *, verbose: bool = False) -> None:
        self._verbose = verbose

    def render(self, state: DiscoveryViewState) -> None:
        if state.is_loading:
            typer.secho("Loading catalog...", fg=typer.colors.CYAN)
            return
        if state.show_search_indicator:
            return
        header = f"Sort: {state.sort_mode.label}"
        if state.search_query:
            header += f" • search: {state.search_query!r}"
        typer.secho(header, fg=typer.colors.CYAN)
        if state.is_empty:
            typer.secho("No movies to show.", fg=typer.colors.YELLOW)
            return
        for idx, movie in enumerate(state.movies, start=1):
            self._echo_row(idx, movie)

    def append(self, count: int, state: DiscoveryViewState) -> None:
        start = len(state.movies) - count
        for idx, movie in enumerate(state.movies[start:], start=start + 1):
            self._echo_row(idx, movie)

    def show_error(self, message: str) -> None:
        typer.secho(message, fg=typer.colors.RED, err=True)

    def _echo_row(self, idx: int, movie: MovieRow) -> None:
        typer.echo(f"{idx}. {movie.title} ({movie.release_year}) • rating={movie.rating}")
        if movie.genres:
            typer.echo(f"   genres: {movie.genres}")
        if self._verbose:
            typer.echo(f"   released: {movie.release_date}")
            typer.echo(f"   poster: {movie.poster_url}")


class EchoNavigator:
    def open_details(self, movie_id: int, title: str) -> None:
        typer.secho(f"Opening details for {title} (tmdb:{movie_id})", fg=typer.colors.GREEN)


@app.callback()
def _cli_entry(ctx: typer.Context) -> None:
    """Entrypoint for the movie-discovery CLI."""
    ctx.obj = {} if ctx.obj is None else ctx.obj


@app.command()
def version() -> None:
    """Print the package version."""
    typer.echo(__version__)


@app.command()
def sorts() -> None:
    """List the available sort modes."""
    for mode in SortMode:
        marker = " (default)" if mode is SortMode.default() else ""
        typer.echo(f"{mode.value}: {mode.label}{marker}")


@app.command()
def browse(
    sort: SortMode | None = typer.Option(None, help="Sort mode; persisted for later sessions."),
    pages: int = typer.Option(1, min=1, help="Number of pages to load."),
    transport: str | None = typer.Option(None, help="Catalog transport: tmdb or static."),
    offline: bool = typer.Option(False, help="Ignore the network and read the local cache."),
    verbose: bool = typer.Option(False, help="Show release dates and poster URLs."),
    debug: bool = typer.Option(False, help="Enable debug logging."),
) -> None:
    """Browse the catalog page by page."""
    if debug:
        _setup_logging(logging.DEBUG)

    async def scenario(pipeline: DiscoveryPipeline) -> None:
        await pipeline.initial_load()
        if sort is not None and sort is not pipeline.sort_mode:
            await pipeline.sort_movies(sort)
        for _ in range(pages - 1):
            await pipeline.load_more()

    _run(scenario, transport=transport, offline=offline, verbose=verbose)


@app.command()
def search(
    query: str = typer.Argument(..., help="Title text to search for."),
    pages: int = typer.Option(1, min=1, help="Number of result pages to load."),
    transport: str | None = typer.Option(None, help="Catalog transport: tmdb or static."),
    offline: bool = typer.Option(False, help="Filter the cached catalog instead of searching."),
    verbose: bool = typer.Option(False, help="Show release dates and poster URLs."),
    debug: bool = typer.Option(False, help="Enable debug logging."),
) -> None:
    """Search movie titles."""
    if debug:
        _setup_logging(logging.DEBUG)

    async def scenario(pipeline: DiscoveryPipeline) -> None:
        await pipeline.initial_load()
        await pipeline.perform_search(query)
        await pipeline.wait_for_search()
        for _ in range(pages - 1):
            await pipeline.load_more()

    _run(scenario, transport=transport, offline=offline, verbose=verbose)


@app.command(name="open")
def open_movie(
    index: int = typer.Argument(..., min=1, help="1-based position in the first page."),
    sort: SortMode | None = typer.Option(None, help="Sort mode to apply before selecting."),
    transport: str | None = typer.Option(None, help="Catalog transport: tmdb or static."),
    offline: bool = typer.Option(False, help="Ignore the network and read the local cache."),
    debug: bool = typer.Option(False, help="Enable debug logging."),
) -> None:
    """Open the details of a movie from the first page."""
    if debug:
        _setup_logging(logging.DEBUG)

    async def scenario(pipeline: DiscoveryPipeline) -> None:
        await pipeline.initial_load()
        if sort is not None and sort is not pipeline.sort_mode:
            await pipeline.sort_movies(sort)
        pipeline.did_select_movie(index - 1)

    _run(scenario, transport=transport, offline=offline, verbose=False)


@app.command()
def config(show_sources: bool = typer.Option(False, help="Display where settings came from.")) -> None:
    """Show the resolved configuration."""
    load_result = _safe_load_settings(load_even_if_missing=True)
    if load_result is None:
        raise typer.Exit(code=1)

    settings = load_result.settings
    values: dict[str, Any] = {
        "tmdb_api_key": "<set>" if settings.tmdb_api_key else "<unset>",
        "tmdb_base_url": settings.tmdb_base_url,
        "poster_base_url": settings.poster_base_url,
        "request_timeout": settings.request_timeout,
        "request_attempts": settings.request_attempts,
        "items_per_page": settings.items_per_page,
        "search_debounce_seconds": settings.search_debounce_seconds,
        "search_pagination_threshold": settings.search_pagination_threshold,
        "cache_path": settings.cache_path,
        "preferences_path": settings.preferences_path,
        "connectivity_host": settings.connectivity_host,
    }

    for key, value in values.items():
        typer.echo(f"{key}: {value}")

    if show_sources:
        source_hint = load_result.source_path or "<env/.env>"
        typer.echo(f"resolved_from: {source_hint}")
        typer.echo(
            "API key: TMDB_API_KEY."
            f" Point {CONFIG_PATH_ENV} at a TOML file or use"
            " ~/.config/movie-discovery/config.toml for persistent settings.",
        )


def main() -> None:
    """Console script entrypoint."""
    app()


def _run(
    scenario: Callable[[DiscoveryPipeline], Awaitable[None]],
    *,
    transport: str | None,
    offline: bool,
    verbose: bool,
) -> None:
    load_result = _safe_load_settings()
    if load_result is None:
        raise typer.Exit(code=1)
    settings = load_result.settings

    try:
        transport_instance = build_transport(settings, transport)
    except (SettingsError, RuntimeError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    asyncio.run(
        _run_pipeline(
            scenario,
            settings=settings,
            transport=transport_instance,
            connectivity_override=transport,
            offline=offline,
            verbose=verbose,
        )
    )


async def _run_pipeline(
    scenario: Callable[[DiscoveryPipeline], Awaitable[None]],
    *,
    settings: Settings,
    transport: Transport,
    connectivity_override: str | None,
    offline: bool,
    verbose: bool,
) -> None:
    pipeline = DiscoveryPipeline(
        transport=transport,
        connectivity=build_connectivity(settings, connectivity_override, offline=offline),
        cache=SQLiteMovieCache(settings.cache_path),
        preferences=JsonPreferenceStore(settings.preferences_path),
        navigator=EchoNavigator(),
        sink=ConsoleSink(verbose=verbose),
        builder=ViewStateBuilder(settings.poster_base_url),
        items_per_page=settings.items_per_page,
        search_delay=settings.search_debounce_seconds,
        search_pagination_threshold=settings.search_pagination_threshold,
    )
    try:
        await scenario(pipeline)
    finally:
        await pipeline.aclose()
        close = getattr(transport, "close", None)
        if close is not None:
            await close()


def _safe_load_settings(load_even_if_missing: bool = False) -> SettingsLoadResult | None:
    try:
        return load_settings()
    except SettingsError as exc:
        if load_even_if_missing:
            typer.secho(
                f"Warning: configuration incomplete – {exc}",
                fg=typer.colors.YELLOW,
            )
            return SettingsLoadResult(settings=Settings(), source_path=None)
        typer.secho(str(exc), fg=typer.colors.RED)
        return None


def _setup_logging(level: int = logging.INFO) -> None:
    """Send pipeline logs to stderr."""
    logging.basicConfig(
        format="%(message)s",
        level=level,
        force=True,
    )


if __name__ == "__main__":  # pragma: no cover
    main()
