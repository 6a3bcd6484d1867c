from __future__ import annotations

from movie_discovery.clients.tmdb import TMDBClient
from movie_discovery.config import Settings
from movie_discovery.providers.base import ConnectivityOracle, Transport, TransportError
from movie_discovery.providers.connectivity import SocketConnectivityOracle, StaticConnectivity
from movie_discovery.providers.static import StaticCatalogTransport


def build_transport(settings: Settings, override: str | None = None) -> Transport:
    """Construct the catalog transport based on configuration or CLI overrides."""

    mode = (override or "tmdb").lower()

    if mode == "static":
        return StaticCatalogTransport(items_per_page=settings.items_per_page)

    if mode == "tmdb":
        settings.require_tmdb()
        return TMDBClient(
            settings.tmdb_api_key or "",
            base_url=settings.tmdb_base_url,
            timeout=settings.request_timeout,
            attempts=settings.request_attempts,
        )

    raise TransportError(f"Transport '{mode}' is not implemented. Valid transports: tmdb, static")


def build_connectivity(
    settings: Settings,
    override: str | None = None,
    *,
    offline: bool = False,
) -> ConnectivityOracle:
    """Forced offline and the static catalog need no network probe."""
    if offline or (override or "").lower() == "static":
        return StaticConnectivity(online=not offline)
    return SocketConnectivityOracle(settings.connectivity_host)


__all__ = ["build_connectivity", "build_transport"]
