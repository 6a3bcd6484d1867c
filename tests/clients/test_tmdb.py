"""Tests for TMDB client functionality."""

import httpx
import pytest
import respx

from movie_discovery.clients.tmdb import TMDBClient, tmdb_client
from movie_discovery.models import SortMode
from movie_discovery.providers.base import (
    NO_CONNECTION_MESSAGE,
    ConnectivityError,
    DecodeError,
    RequestFailedError,
)
from tests.fixtures.tmdb_responses import (
    DISCOVER_PAGE_RESPONSE,
    EMPTY_RESULTS_RESPONSE,
    GENRE_LIST_RESPONSE,
    INVALID_API_KEY_RESPONSE,
    MALFORMED_RESULTS_RESPONSE,
    MISSING_FIELDS_RESPONSE,
    SEARCH_RESPONSE,
)

BASE_URL = "https://api.themoviedb.org/3"


@pytest.fixture
def client():
    """Create a TMDBClient instance for testing."""
    return TMDBClient("test-api-key", base_url=BASE_URL, timeout=10.0)


class TestTMDBClient:
    """Test cases for TMDBClient."""

    @pytest.mark.asyncio
    async def test_client_initialization(self):
        """Test client is properly initialized with headers."""
        client = TMDBClient("test-key", base_url=BASE_URL + "/", timeout=15.0)

        assert str(client._client.base_url) == BASE_URL + "/"
        assert client._client.headers["User-Agent"] == "movie-discovery/0.1.0"
        assert client._client.headers["Accept"] == "application/json"
        assert client._client.timeout.read == 15.0

        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_page_sends_sort_and_page(self, client):
        """Test discover request carries api key, sort and page."""
        route = respx.get(f"{BASE_URL}/discover/movie").mock(
            return_value=httpx.Response(200, json=DISCOVER_PAGE_RESPONSE)
        )

        movies = await client.fetch_page(SortMode.RATING_ASC, 3)

        assert [movie.title for movie in movies] == ["Dune: Part Two", "The Dark Knight"]
        params = route.calls.last.request.url.params
        assert params["api_key"] == "test-api-key"
        assert params["sort_by"] == "vote_average.asc"
        assert params["page"] == "3"

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_search_sends_query(self, client):
        """Test search request carries the query text."""
        route = respx.get(f"{BASE_URL}/search/movie").mock(
            return_value=httpx.Response(200, json=SEARCH_RESPONSE)
        )

        movies = await client.fetch_search("bat man", 1)

        assert len(movies) == 1
        assert movies[0].id == 268
        assert route.calls.last.request.url.params["query"] == "bat man"

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_genres(self, client):
        """Test genre list decoding."""
        respx.get(f"{BASE_URL}/genre/movie/list").mock(
            return_value=httpx.Response(200, json=GENRE_LIST_RESPONSE)
        )

        genres = await client.fetch_genres()

        assert {genre.id: genre.name for genre in genres}[878] == "Science Fiction"
        assert len(genres) == 5

    @pytest.mark.asyncio
    @respx.mock
    async def test_null_fields_decode_to_defaults(self, client):
        """Test nulls in optional fields fall back to defaults."""
        respx.get(f"{BASE_URL}/discover/movie").mock(
            return_value=httpx.Response(200, json=MISSING_FIELDS_RESPONSE)
        )

        movie = (await client.fetch_page(SortMode.POPULARITY_DESC, 1))[0]

        assert movie.genre_ids == []
        assert movie.vote_average == 0.0
        assert movie.popularity == 0.0
        assert movie.backdrop_path is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_empty_results(self, client):
        """Test an empty page decodes to an empty list."""
        respx.get(f"{BASE_URL}/search/movie").mock(
            return_value=httpx.Response(200, json=EMPTY_RESULTS_RESPONSE)
        )

        assert await client.fetch_search("zzzz", 1) == []

    @pytest.mark.asyncio
    @respx.mock
    async def test_malformed_payload_raises_decode_error(self, client):
        """Test records missing required fields raise DecodeError."""
        respx.get(f"{BASE_URL}/discover/movie").mock(
            return_value=httpx.Response(200, json=MALFORMED_RESULTS_RESPONSE)
        )

        with pytest.raises(DecodeError):
            await client.fetch_page(SortMode.POPULARITY_DESC, 1)

    @pytest.mark.asyncio
    @respx.mock
    async def test_invalid_json_raises_decode_error(self, client):
        """Test a non-JSON body raises DecodeError."""
        respx.get(f"{BASE_URL}/genre/movie/list").mock(
            return_value=httpx.Response(200, text="<html>maintenance</html>")
        )

        with pytest.raises(DecodeError):
            await client.fetch_genres()

    @pytest.mark.asyncio
    @respx.mock
    async def test_http_error_status_raises_request_failed(self, client):
        """Test error statuses surface the API status message."""
        respx.get(f"{BASE_URL}/discover/movie").mock(
            return_value=httpx.Response(401, json=INVALID_API_KEY_RESPONSE)
        )

        with pytest.raises(RequestFailedError) as exc_info:
            await client.fetch_page(SortMode.POPULARITY_DESC, 1)

        assert "401" in str(exc_info.value)
        assert "Invalid API key" in str(exc_info.value)

    @pytest.mark.asyncio
    @respx.mock
    async def test_connect_error_raises_connectivity_error(self, client):
        """Test network failures map to ConnectivityError."""
        respx.get(f"{BASE_URL}/discover/movie").mock(side_effect=httpx.ConnectError("offline"))

        with pytest.raises(ConnectivityError) as exc_info:
            await client.fetch_page(SortMode.POPULARITY_DESC, 1)

        assert exc_info.value.user_message == NO_CONNECTION_MESSAGE

    @pytest.mark.asyncio
    @respx.mock
    async def test_retries_when_attempts_configured(self):
        """Test transient failures are retried up to the configured attempts."""
        route = respx.get(f"{BASE_URL}/genre/movie/list").mock(
            side_effect=[
                httpx.Response(503, json={"status_message": "busy"}),
                httpx.Response(200, json=GENRE_LIST_RESPONSE),
            ]
        )
        client = TMDBClient("key", base_url=BASE_URL, attempts=2)

        genres = await client.fetch_genres()
        await client.close()

        assert route.call_count == 2
        assert len(genres) == 5

    @pytest.mark.asyncio
    @respx.mock
    async def test_single_attempt_by_default(self, client):
        """Test the default client does not retry."""
        route = respx.get(f"{BASE_URL}/search/movie").mock(
            return_value=httpx.Response(500, json={"status_message": "boom"})
        )

        with pytest.raises(RequestFailedError):
            await client.fetch_search("dune", 1)

        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_tmdb_client_context_manager(self):
        """Test the context manager yields a working client."""
        respx.get(f"{BASE_URL}/genre/movie/list").mock(
            return_value=httpx.Response(200, json=GENRE_LIST_RESPONSE)
        )

        async with tmdb_client("key", base_url=BASE_URL) as client:
            genres = await client.fetch_genres()

        assert len(genres) == 5
