"""Species reference download from PokéAPI."""

import logging

import httpx

from pokestore.clients.pokemon_tcg import TransportError, with_retry
from pokestore.config import POKEMONS_COUNT, RETRY_BASE_DELAY
from pokestore.models.failure import HttpStatusError, RateLimitedError
from pokestore.models.species import Species

logger = logging.getLogger(__name__)

DEFAULT_POKEAPI_URL = "https://pokeapi.co/api/v2"


def species_id_from_url(url: str) -> int | None:
    """Extract the numeric id from ".../pokemon-species/25/"."""
    tail = url.rstrip("/").rsplit("/", 1)[-1]
    return int(tail) if tail.isdigit() else None


async def fetch_species(
    client: httpx.AsyncClient,
    count: int = POKEMONS_COUNT,
    base_url: str = DEFAULT_POKEAPI_URL,
    base_delay: float = RETRY_BASE_DELAY,
) -> list[Species]:
    """
    Fetch the first `count` species in national Pokédex order.

    Args:
        client: HTTP client
        count: Number of species to list
        base_url: PokéAPI root
        base_delay: Retry backoff base delay in seconds

    Returns:
        Species sorted by id

    Raises:
        RateLimitedError, HttpStatusError or TransportError once retries
        are exhausted
    """
    url = f"{base_url}/pokemon-species"

    async def attempt() -> dict:
        try:
            response = await client.get(url, params={"limit": count, "offset": 0})
        except httpx.RequestError as e:
            raise TransportError(url, e) from e
        if response.status_code == 429:
            raise RateLimitedError(url)
        if not response.is_success:
            raise HttpStatusError(url, response.status_code, response.reason_phrase)
        return response.json()

    payload = await with_retry(attempt, base_delay=base_delay)

    species = []
    for item in payload.get("results", []):
        species_id = species_id_from_url(item.get("url", ""))
        if species_id is None or not item.get("name"):
            logger.warning("Skipping species entry without id: %r", item)
            continue
        species.append(Species(id=species_id, name=item["name"]))

    species.sort(key=lambda s: s.id)
    logger.info("Fetched %d species from PokéAPI", len(species))
    return species
