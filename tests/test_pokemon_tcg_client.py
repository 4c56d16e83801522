"""Tests for the Pokémon TCG API client and its retry policy."""

import httpx
import pytest
import respx

from pokestore.clients.pokemon_tcg import PokemonTcgClient, TransportError, with_retry
from pokestore.config import CARD_SELECT_FIELDS, ApiConfig, Settings
from pokestore.models.failure import (
    HttpStatusError,
    MissingCredentialError,
    ParseFailure,
    RateLimitedError,
)

CARDS_URL = "https://api.pokemontcg.io/v2/cards"
SETS_URL = "https://api.pokemontcg.io/v2/sets"


@pytest.fixture
def config() -> ApiConfig:
    """Client config with no backoff delay."""
    return ApiConfig(api_key="test-key", base_delay=0.0, max_retries=3)


def _page(data: list[dict], total: int | None = None) -> dict:
    return {"data": data, "page": 1, "pageSize": 250, "count": len(data), "totalCount": total}


class TestWithRetry:
    """Tests for the backoff loop."""

    async def test_returns_first_success(self) -> None:
        """No retry when the first call succeeds."""
        calls = []

        async def fn() -> str:
            calls.append(1)
            return "ok"

        assert await with_retry(fn) == "ok"
        assert len(calls) == 1

    async def test_retries_then_succeeds(self) -> None:
        """Transient errors are retried with growing delays."""
        delays: list[float] = []
        attempts = iter([RateLimitedError("u"), RateLimitedError("u"), "done"])

        async def fn() -> str:
            result = next(attempts)
            if isinstance(result, Exception):
                raise result
            return result

        async def sleep(delay: float) -> None:
            delays.append(delay)

        result = await with_retry(fn, base_delay=1.0, multiplier=1.5, sleep=sleep)

        assert result == "done"
        assert len(delays) == 2
        # base * multiplier**attempt plus up to one base delay of jitter
        assert 1.5 <= delays[0] <= 2.5
        assert 2.25 <= delays[1] <= 3.25

    async def test_exhaustion_reraises_last_error(self) -> None:
        """After max_retries the last error propagates."""
        calls = []

        async def fn() -> None:
            calls.append(1)
            raise HttpStatusError("u", 503, "Service Unavailable")

        async def sleep(delay: float) -> None:
            pass

        with pytest.raises(HttpStatusError) as exc_info:
            await with_retry(fn, max_retries=2, sleep=sleep)

        assert exc_info.value.status_code == 503
        assert len(calls) == 3

    async def test_non_retryable_is_not_retried(self) -> None:
        """Errors marked not retryable fail on the first attempt."""
        calls = []

        async def fn() -> None:
            calls.append(1)
            raise ParseFailure("u", "broken")

        with pytest.raises(ParseFailure):
            await with_retry(fn, max_retries=5)

        assert len(calls) == 1


class TestApiConfig:
    def test_request_key_overrides_environment(self) -> None:
        app_settings = Settings(pokemon_tcg_api_key="env-key")

        assert ApiConfig.from_settings(app_settings).api_key == "env-key"
        assert ApiConfig.from_settings(app_settings, api_key="header-key").api_key == "header-key"


class TestFetchCardsPage:
    """Tests for fetching card pages."""

    @respx.mock
    async def test_fetches_page(self, config: ApiConfig) -> None:
        """Page data, total count and request parameters."""
        route = respx.get(CARDS_URL).mock(
            return_value=httpx.Response(200, json=_page([{"name": "Pikachu"}], total=18000))
        )

        async with PokemonTcgClient(config) as client:
            page = await client.fetch_cards_page(3)

        assert page.data == [{"name": "Pikachu"}]
        assert page.total_count == 18000
        request = route.calls.last.request
        assert request.headers["X-Api-Key"] == "test-key"
        assert request.url.params["page"] == "3"
        assert request.url.params["pageSize"] == "250"
        assert request.url.params["select"] == CARD_SELECT_FIELDS
        assert "q" not in request.url.params

    @respx.mock
    async def test_retries_rate_limit(self, config: ApiConfig) -> None:
        """A 429 is retried and the later success is returned."""
        route = respx.get(CARDS_URL).mock(
            side_effect=[
                httpx.Response(429),
                httpx.Response(429),
                httpx.Response(200, json=_page([{"name": "Mew"}])),
            ]
        )

        async with PokemonTcgClient(config) as client:
            page = await client.fetch_cards_page(1)

        assert page.data == [{"name": "Mew"}]
        assert route.call_count == 3

    @respx.mock
    async def test_rate_limit_exhaustion(self, config: ApiConfig) -> None:
        """Persistent 429s surface as RateLimitedError after the budget."""
        route = respx.get(CARDS_URL).mock(return_value=httpx.Response(429))

        async with PokemonTcgClient(config) as client:
            with pytest.raises(RateLimitedError):
                await client.fetch_cards_page(1)

        assert route.call_count == config.max_retries + 1

    @respx.mock
    async def test_server_error(self, config: ApiConfig) -> None:
        respx.get(CARDS_URL).mock(return_value=httpx.Response(500))

        async with PokemonTcgClient(config) as client:
            with pytest.raises(HttpStatusError, match="status 500"):
                await client.fetch_cards_page(1)

    @respx.mock
    async def test_network_error(self, config: ApiConfig) -> None:
        respx.get(CARDS_URL).mock(side_effect=httpx.ConnectError("Connection refused"))

        async with PokemonTcgClient(config) as client:
            with pytest.raises(TransportError):
                await client.fetch_cards_page(1)

    @respx.mock
    async def test_missing_key_never_reaches_network(self) -> None:
        """Without a key no request is made and nothing is retried."""
        route = respx.get(CARDS_URL).mock(return_value=httpx.Response(200, json=_page([])))

        async with PokemonTcgClient(ApiConfig(api_key="", base_delay=0.0)) as client:
            with pytest.raises(MissingCredentialError):
                await client.fetch_cards_page(1)

        assert route.call_count == 0

    @respx.mock
    async def test_query(self, config: ApiConfig) -> None:
        route = respx.get(CARDS_URL).mock(return_value=httpx.Response(200, json=_page([])))

        async with PokemonTcgClient(config) as client:
            await client.fetch_cards_page(1, "supertype:Energy")

        assert route.calls.last.request.url.params["q"] == "supertype:Energy"


class TestFetchSets:
    @respx.mock
    async def test_parses_sets(self, config: ApiConfig) -> None:
        respx.get(SETS_URL).mock(
            return_value=httpx.Response(
                200,
                json=_page(
                    [
                        {
                            "name": "Hidden Fates",
                            "images": {"logo": "https://images.pokemontcg.io/sm115/logo.png"},
                            "printedTotal": 68,
                            "ptcgoCode": "HIF",
                        }
                    ]
                ),
            )
        )

        async with PokemonTcgClient(config) as client:
            sets = await client.fetch_sets()

        assert len(sets) == 1
        assert sets[0].name == "Hidden Fates"
        assert sets[0].printed_total == 68
        assert sets[0].images.logo.endswith("/sm115/logo.png")
