from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

CONFIG_PATH_ENV = "MOVIE_DISCOVERY_CONFIG"

DEFAULT_BASE_URL = "https://api.themoviedb.org/3"
DEFAULT_POSTER_BASE_URL = "https://image.tmdb.org/t/p/w500"


class Settings(BaseModel):
    """Catalog API, pipeline tuning and local storage locations."""

    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_base_url: str = Field(default=DEFAULT_BASE_URL, alias="TMDB_BASE_URL")
    poster_base_url: str = Field(default=DEFAULT_POSTER_BASE_URL, alias="TMDB_POSTER_BASE_URL")
    request_timeout: float = Field(default=20.0, gt=0, alias="TMDB_REQUEST_TIMEOUT")
    request_attempts: int = Field(default=1, ge=1, alias="TMDB_REQUEST_ATTEMPTS")

    items_per_page: int = Field(default=20, ge=1, alias="MOVIE_DISCOVERY_ITEMS_PER_PAGE")
    search_debounce_seconds: float = Field(
        default=0.5, ge=0, alias="MOVIE_DISCOVERY_SEARCH_DEBOUNCE"
    )
    search_pagination_threshold: int = Field(
        default=20, ge=0, alias="MOVIE_DISCOVERY_SEARCH_THRESHOLD"
    )

    cache_path: Path = Field(
        default_factory=lambda: Path.home() / ".cache" / "movie-discovery" / "catalog.sqlite3",
        alias="MOVIE_DISCOVERY_CACHE_PATH",
    )
    preferences_path: Path = Field(
        default_factory=lambda: Path.home()
        / ".config"
        / "movie-discovery"
        / "preferences.json",
        alias="MOVIE_DISCOVERY_PREFERENCES_PATH",
    )
    connectivity_host: str = Field(
        default="api.themoviedb.org", alias="MOVIE_DISCOVERY_CONNECTIVITY_HOST"
    )

    model_config = {
        "populate_by_name": True,
        "str_strip_whitespace": True,
        "extra": "ignore",
    }

    def require_tmdb(self) -> None:
        """Ensure the catalog API credentials are available."""
        if not self.tmdb_api_key:
            raise SettingsError(
                "Missing TMDB_API_KEY. Configure environment or TOML file.",
            )


class SettingsError(RuntimeError):
    """Configuration is missing or malformed."""


@dataclass(frozen=True)
class SettingsLoadResult:
    settings: Settings
    source_path: Path | None


def load_settings(config_path: Path | None = None, *, load_env: bool = True) -> SettingsLoadResult:
    """Merge the optional TOML file with environment overrides; the environment wins."""

    if load_env:
        load_dotenv()

    resolved_path = _determine_config_path(config_path)
    config_data: dict[str, Any] = {}

    if resolved_path and resolved_path.exists():
        try:
            with resolved_path.open("rb") as handle:
                toml_payload = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise SettingsError(f"Invalid TOML in {resolved_path}: {exc}") from exc
        config_data = _flatten_toml(toml_payload)

    try:
        env_data = _collect_env_overrides()
    except ValueError as exc:
        raise SettingsError(f"Invalid environment override: {exc}") from exc
    merged = {**config_data, **env_data}

    try:
        settings = Settings.model_validate(merged)
    except ValidationError as exc:  # pragma: no cover - surfaced via CLI messaging
        raise SettingsError(str(exc)) from exc

    return SettingsLoadResult(settings=settings, source_path=resolved_path)


def _determine_config_path(config_path: Path | None) -> Path | None:
    if config_path:
        return config_path

    env_override = os.getenv(CONFIG_PATH_ENV)
    if env_override:
        return Path(env_override).expanduser().resolve()

    default_path = Path.home() / ".config" / "movie-discovery" / "config.toml"
    return default_path if default_path.exists() else None


_TOML_SECTIONS: dict[str, dict[str, str]] = {
    "tmdb": {
        "api_key": "tmdb_api_key",
        "base_url": "tmdb_base_url",
        "poster_base_url": "poster_base_url",
        "request_timeout": "request_timeout",
        "request_attempts": "request_attempts",
    },
    "pipeline": {
        "items_per_page": "items_per_page",
        "search_debounce_seconds": "search_debounce_seconds",
        "search_pagination_threshold": "search_pagination_threshold",
        "connectivity_host": "connectivity_host",
    },
    "storage": {
        "cache_path": "cache_path",
        "preferences_path": "preferences_path",
    },
}


def _flatten_toml(payload: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}

    for section, keys in _TOML_SECTIONS.items():
        section_cfg = payload.get(section, {})
        if not isinstance(section_cfg, dict):
            continue
        for key, field in keys.items():
            if key in section_cfg:
                result[field] = section_cfg[key]

    for field in ("cache_path", "preferences_path"):
        if field in result:
            result[field] = Path(str(result[field])).expanduser()

    return result


def _collect_env_overrides() -> dict[str, Any]:
    mapping: dict[str, str] = {
        "TMDB_API_KEY": "tmdb_api_key",
        "TMDB_BASE_URL": "tmdb_base_url",
        "TMDB_POSTER_BASE_URL": "poster_base_url",
        "TMDB_REQUEST_TIMEOUT": "request_timeout",
        "TMDB_REQUEST_ATTEMPTS": "request_attempts",
        "MOVIE_DISCOVERY_ITEMS_PER_PAGE": "items_per_page",
        "MOVIE_DISCOVERY_SEARCH_DEBOUNCE": "search_debounce_seconds",
        "MOVIE_DISCOVERY_SEARCH_THRESHOLD": "search_pagination_threshold",
        "MOVIE_DISCOVERY_CACHE_PATH": "cache_path",
        "MOVIE_DISCOVERY_PREFERENCES_PATH": "preferences_path",
        "MOVIE_DISCOVERY_CONNECTIVITY_HOST": "connectivity_host",
    }

    result: dict[str, Any] = {}
    for env_name, field in mapping.items():
        if env_name not in os.environ:
            continue
        value = os.environ[env_name]
        if field in {"request_attempts", "items_per_page", "search_pagination_threshold"}:
            result[field] = int(value)
        elif field in {"request_timeout", "search_debounce_seconds"}:
            result[field] = float(value)
        elif field in {"cache_path", "preferences_path"}:
            result[field] = Path(value).expanduser()
        else:
            result[field] = value
    return result


__all__ = ["CONFIG_PATH_ENV", "Settings", "SettingsError", "SettingsLoadResult", "load_settings"]
