from typer.testing import CliRunner

from movie_discovery import __version__
from movie_discovery.cli.__main__ import app


runner = CliRunner()


def _isolated_env(tmp_path) -> dict[str, str]:
    return {
        "MOVIE_DISCOVERY_CONFIG": str(tmp_path / "missing.toml"),
        "MOVIE_DISCOVERY_CACHE_PATH": str(tmp_path / "catalog.sqlite3"),
        "MOVIE_DISCOVERY_PREFERENCES_PATH": str(tmp_path / "prefs.json"),
        "MOVIE_DISCOVERY_SEARCH_DEBOUNCE": "0",
    }


def test_version_command_outputs_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_sorts_lists_every_mode() -> None:
    result = runner.invoke(app, ["sorts"])
    assert result.exit_code == 0
    assert "popularity.desc: Popularity descending (default)" in result.stdout
    assert "primary_release_date.asc" in result.stdout


def test_browse_static_catalog(tmp_path) -> None:
    result = runner.invoke(app, ["browse", "--transport", "static"], env=_isolated_env(tmp_path))
    assert result.exit_code == 0
    assert "1. Dune: Part Two (2024)" in result.stdout


def test_browse_sort_is_persisted(tmp_path) -> None:
    env = _isolated_env(tmp_path)
    result = runner.invoke(
        app,
        ["browse", "--transport", "static", "--sort", "vote_average.desc"],
        env=env,
    )
    assert result.exit_code == 0
    assert "1. The Dark Knight (2008)" in result.stdout
    assert "vote_average.desc" in (tmp_path / "prefs.json").read_text()


def test_search_static_catalog(tmp_path) -> None:
    result = runner.invoke(
        app, ["search", "knight", "--transport", "static"], env=_isolated_env(tmp_path)
    )
    assert result.exit_code == 0
    assert "search: 'knight'" in result.stdout
    assert "The Dark Knight" in result.stdout


def test_browse_offline_reads_cache(tmp_path) -> None:
    env = _isolated_env(tmp_path)
    runner.invoke(app, ["browse", "--transport", "static"], env=env)

    result = runner.invoke(app, ["browse", "--transport", "static", "--offline"], env=env)

    assert result.exit_code == 0
    assert "Dune: Part Two" in result.stdout


def test_open_static_movie(tmp_path) -> None:
    result = runner.invoke(app, ["open", "1", "--transport", "static"], env=_isolated_env(tmp_path))
    assert result.exit_code == 0
    assert "Opening details for Dune: Part Two (tmdb:693134)" in result.stdout


def test_tmdb_transport_requires_api_key(tmp_path) -> None:
    env = {**_isolated_env(tmp_path), "TMDB_API_KEY": ""}
    result = runner.invoke(app, ["browse"], env=env)
    assert result.exit_code == 1
    assert "Missing TMDB_API_KEY" in result.stdout
