"""Tests for the static catalog transport and connectivity oracles."""

import socket
from unittest.mock import patch

import pytest

from movie_discovery.models import MovieSummary, SortMode
from movie_discovery.providers import SocketConnectivityOracle, StaticCatalogTransport


class TestStaticCatalogTransport:
    """Test the in-memory catalog."""

    @pytest.mark.asyncio
    async def test_fetch_page_sorts_by_mode(self):
        """Test each sort mode orders the fixed catalog."""
        transport = StaticCatalogTransport()

        by_popularity = await transport.fetch_page(SortMode.POPULARITY_DESC, 1)
        by_rating = await transport.fetch_page(SortMode.RATING_ASC, 1)

        assert by_popularity[0].title == "Dune: Part Two"
        assert by_rating[0].title == "Batman"

    @pytest.mark.asyncio
    async def test_fetch_page_slices_pages(self):
        """Test pages are slices of items_per_page records."""
        movies = [MovieSummary(id=i, title=f"M{i}", popularity=float(i)) for i in range(5)]
        transport = StaticCatalogTransport(movies, items_per_page=2)

        assert [m.id for m in await transport.fetch_page(SortMode.POPULARITY_ASC, 2)] == [2, 3]
        assert [m.id for m in await transport.fetch_page(SortMode.POPULARITY_ASC, 3)] == [4]
        assert await transport.fetch_page(SortMode.POPULARITY_ASC, 4) == []

    @pytest.mark.asyncio
    async def test_fetch_search_matches_case_insensitively(self):
        """Test search matches title substrings regardless of case."""
        transport = StaticCatalogTransport()

        results = await transport.fetch_search("BAT", 1)

        assert [movie.title for movie in results] == ["Batman"]

    @pytest.mark.asyncio
    async def test_fetch_genres(self):
        """Test the static genre list is returned."""
        genres = await StaticCatalogTransport().fetch_genres()
        assert any(genre.name == "Science Fiction" for genre in genres)


class TestSocketConnectivityOracle:
    """Test the TCP reachability probe."""

    def test_reachable_host(self):
        """Test a successful connection reports online."""
        with patch("movie_discovery.providers.connectivity.socket.create_connection") as connect:
            assert SocketConnectivityOracle("api.example").is_online() is True
            connect.assert_called_once_with(("api.example", 443), timeout=1.5)

    def test_unreachable_host(self):
        """Test a socket error reports offline."""
        with patch(
            "movie_discovery.providers.connectivity.socket.create_connection",
            side_effect=socket.timeout("timed out"),
        ):
            assert SocketConnectivityOracle("api.example").is_online() is False

    def test_answer_reused_within_ttl(self):
        """Test repeated checks inside the ttl open a single connection."""
        oracle = SocketConnectivityOracle("api.example", ttl=60.0)
        with patch("movie_discovery.providers.connectivity.socket.create_connection") as connect:
            assert oracle.is_online() is True
            assert oracle.is_online() is True
        assert connect.call_count == 1

    def test_zero_ttl_connects_every_time(self):
        """Test a zero ttl disables reuse."""
        oracle = SocketConnectivityOracle("api.example", ttl=0.0)
        with patch("movie_discovery.providers.connectivity.socket.create_connection") as connect:
            oracle.is_online()
            oracle.is_online()
        assert connect.call_count == 2
