"""
Pokémon TCG API client.

Every request funnels through with_retry: exponential backoff from a base
delay, multiplied per attempt, plus up to one base delay of jitter. Once
the retry budget is spent the last error propagates to the caller.

The API key travels in an explicit ApiConfig, so CLI jobs (environment)
and HTTP handlers (request header) can each supply their own without
touching process-wide state.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx

from pokestore.config import (
    CARD_SELECT_FIELDS,
    MAX_RETRIES,
    RETRY_BASE_DELAY,
    RETRY_MULTIPLIER,
    SET_SELECT_FIELDS,
    ApiConfig,
)
from pokestore.models.failure import (
    FailureKind,
    HttpStatusError,
    MissingCredentialError,
    PipelineError,
    RateLimitedError,
)
from pokestore.models.raw import ApiPage, RawApiSet

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TransportError(PipelineError):
    """The request never produced a response (DNS, connect, timeout)."""

    kind = FailureKind.HTTP_ERROR

    def __init__(self, url: str, cause: Exception) -> None:
        self.url = url
        super().__init__(f"Request to {url} failed: {cause}")


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    *,
    max_retries: int = MAX_RETRIES,
    base_delay: float = RETRY_BASE_DELAY,
    multiplier: float = RETRY_MULTIPLIER,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Call fn until it succeeds or the retry budget is spent.

    Args:
        fn: Zero-argument coroutine factory
        max_retries: Retries after the first attempt
        base_delay: Base delay in seconds
        multiplier: Backoff growth per attempt
        sleep: Awaitable sleep, injectable for tests

    Returns:
        Whatever fn returns

    Raises:
        The last error raised by fn once retries are exhausted, or
        immediately for errors marked as not retryable.
    """
    attempt = 0
    while True:
        try:
            return await fn()
        except PipelineError as e:
            if not e.retryable or attempt >= max_retries:
                raise
            attempt += 1
            delay = base_delay * multiplier**attempt + random.uniform(0, base_delay)
            logger.warning(
                "Retry attempt %d/%d after %.0fms: %s", attempt, max_retries, delay * 1000, e
            )
            await sleep(delay)


class PokemonTcgClient:
    """
    Async client for api.pokemontcg.io.

    Usage:
        async with PokemonTcgClient(ApiConfig.from_settings(settings)) as api:
            page = await api.fetch_cards_page(1)
    """

    def __init__(self, config: ApiConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "PokemonTcgClient":
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout)
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("PokemonTcgClient used outside its async context")
        return self._client

    async def _get(self, endpoint: str, params: dict[str, Any]) -> ApiPage:
        """Single attempt at one listing page."""
        if not self.config.api_key:
            raise MissingCredentialError()

        url = f"{self.config.base_url}/{endpoint}"
        try:
            response = await self.client.get(
                url, params=params, headers={"X-Api-Key": self.config.api_key}
            )
        except httpx.RequestError as e:
            raise TransportError(url, e) from e

        if response.status_code == 429:
            raise RateLimitedError(url)
        if not response.is_success:
            raise HttpStatusError(url, response.status_code, response.reason_phrase)

        return ApiPage.model_validate(response.json())

    async def fetch_page(self, endpoint: str, params: dict[str, Any] | None = None) -> ApiPage:
        """
        Fetch one page of a listing endpoint, retrying transient failures.

        Args:
            endpoint: Path under the API base, e.g. "cards"
            params: Query parameters

        Returns:
            Parsed page with raw data items and totalCount

        Raises:
            MissingCredentialError: If no API key is configured
            RateLimitedError: If 429 persists past the retry budget
            HttpStatusError: If another non-2xx persists past the retry budget
        """
        return await with_retry(
            lambda: self._get(endpoint, params or {}),
            max_retries=self.config.max_retries,
            base_delay=self.config.base_delay,
            multiplier=self.config.multiplier,
        )

    async def fetch_cards_page(self, page: int, query: str | None = None) -> ApiPage:
        """Fetch one page of cards with the canonical field selection."""
        params: dict[str, Any] = {
            "page": page,
            "pageSize": self.config.page_size,
            "select": CARD_SELECT_FIELDS,
        }
        if query:
            params["q"] = query
        return await self.fetch_page("cards", params)

    async def fetch_sets(self) -> list[RawApiSet]:
        """Fetch every set; the API returns them all on one page."""
        page = await self.fetch_page("sets", {"select": SET_SELECT_FIELDS})
        return [RawApiSet.model_validate(item) for item in page.data]
