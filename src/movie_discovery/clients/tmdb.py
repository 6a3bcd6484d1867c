from __future__ import annotations

import logging
from collections.abc import Mapping
from contextlib import asynccontextmanager
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from movie_discovery.models import Genre, MovieSummary, SortMode
from movie_discovery.providers.base import (
    ConnectivityError,
    DecodeError,
    RequestFailedError,
    TransportError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.themoviedb.org/3"
DEFAULT_TIMEOUT = 20.0
USER_AGENT = "movie-discovery/0.1.0"

DISCOVER_PATH = "/discover/movie"
SEARCH_PATH = "/search/movie"
GENRES_PATH = "/genre/movie/list"


class _MovieListPayload(BaseModel):
    page: int | None = None
    results: list[MovieSummary] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


class _GenreListPayload(BaseModel):
    genres: list[Genre] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


class TMDBClient:
    """Thin asynchronous wrapper around the TMDB v3 movie listing endpoints."""

    name = "tmdb"

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        attempts: int = 1,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        }
        self._api_key = api_key
        self._attempts = max(1, attempts)
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_page(self, sort: SortMode, page: int) -> list[MovieSummary]:
        params = {"sort_by": sort.value, "page": page}
        payload = await self._get_json(DISCOVER_PATH, params)
        return self._decode(_MovieListPayload, payload).results

    async def fetch_search(self, query: str, page: int) -> list[MovieSummary]:
        params = {"query": query, "page": page}
        payload = await self._get_json(SEARCH_PATH, params)
        return self._decode(_MovieListPayload, payload).results

    async def fetch_genres(self) -> list[Genre]:
        payload = await self._get_json(GENRES_PATH, {})
        return self._decode(_GenreListPayload, payload).genres

    async def _get_json(self, path: str, params: Mapping[str, Any]) -> Any:
        query = {"api_key": self._api_key, **params}
        async for attempt in _retry_policy(self._attempts):
            with attempt:
                return await self._request(path, query)
        raise TransportError(f"Unable to fetch {path}")  # pragma: no cover

    async def _request(self, path: str, params: Mapping[str, Any]) -> Any:
        logger.debug(f"[TMDB] GET {path} page={params.get('page')}")
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
        except (httpx.ConnectError, httpx.ConnectTimeout, httpx.NetworkError) as exc:
            raise ConnectivityError(str(exc)) from exc
        except httpx.HTTPStatusError as exc:
            raise RequestFailedError(
                f"{exc.response.status_code} {_status_detail(exc.response)}".strip()
            ) from exc
        except httpx.HTTPError as exc:
            raise RequestFailedError(str(exc)) from exc

        try:
            return response.json()
        except ValueError as exc:  # response was not JSON
            raise DecodeError(f"Invalid JSON from {path}") from exc

    @staticmethod
    def _decode(model: type[BaseModel], payload: Any) -> Any:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise DecodeError(f"Unexpected payload: {exc.error_count()} validation error(s)") from exc

    async def __aenter__(self) -> TMDBClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        await self.close()


@asynccontextmanager
async def tmdb_client(
    api_key: str,
    *,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT,
    attempts: int = 1,
):
    client = TMDBClient(api_key, base_url=base_url, timeout=timeout, attempts=attempts)
    try:
        yield client
    finally:
        await client.close()


def _status_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, Mapping):
        return str(body.get("status_message") or "")
    return ""


def _retry_policy(attempts: int) -> AsyncRetrying:
    return AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.5, max=6),
        retry=retry_if_exception_type((ConnectivityError, RequestFailedError)),
        reraise=True,
    )


__all__ = ["TMDBClient", "tmdb_client"]
