"""
Snapshot regeneration endpoint.

POST /regenerate-assets?file=cards|prices|jp-cards re-runs the matching
pipelines and publishes the resulting snapshots. Without `file`, all three
are regenerated. The caller authenticates with the X-Regenerate-Token
header; a Pokémon TCG API key may be supplied per request with X-Api-Key.
"""

import logging
import secrets
from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from pydantic import BaseModel, Field

from pokestore.clients.pokemon_tcg import PokemonTcgClient
from pokestore.config import ApiConfig, settings
from pokestore.models.failure import PipelineError
from pokestore.pipeline.cards import fetch_all_cards, fetch_set_mapping
from pokestore.pipeline.japanese import scrape_japanese_cards
from pokestore.pipeline.storage import (
    CARDS_FILE,
    JP_CARDS_FILE,
    JP_PRICES_FILE,
    POKEMONS_FILE,
    PRICES_FILE,
    LocalStore,
    ObjectStore,
    remote_store,
)
from pokestore.scrapers.tcgcollector import HEADERS, TcgCollectorScraper
from pokestore.services.name_resolver import PokemonNameResolver, load_resolver

logger = logging.getLogger(__name__)

router = APIRouter(tags=["assets"])

ASSET_FILES: tuple[str, ...] = ("cards", "prices", "jp-cards")


class RegenerateResponse(BaseModel):
    """Outcome of a regeneration request."""

    success: bool
    message: str
    files: list[str] = Field(default_factory=list)


def get_store() -> ObjectStore:
    """Remote object store when configured, else the local data directory."""
    return remote_store(settings) or LocalStore(settings.data_dir)


def get_resolver() -> PokemonNameResolver:
    return load_resolver(settings.data_dir / POKEMONS_FILE)


def get_api_config(
    x_api_key: Annotated[str | None, Header()] = None,
) -> ApiConfig:
    """API client settings; a request-supplied key overrides the environment."""
    return ApiConfig.from_settings(settings, api_key=x_api_key)


def verify_token(
    x_regenerate_token: Annotated[str | None, Header()] = None,
) -> None:
    """
    Check the caller's token against the server token.

    Raises:
        HTTPException: 500 if the server token is not configured,
            401 if the provided token is missing or wrong
    """
    expected = settings.regenerate_token
    if not expected:
        logger.error("REGENERATE_TOKEN is not set in the server environment")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server security configuration error.",
        )
    if not x_regenerate_token or not secrets.compare_digest(x_regenerate_token, expected):
        logger.warning("Unauthorized attempt to regenerate assets")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized. Invalid or missing X-Regenerate-Token.",
        )


async def regenerate_english(
    config: ApiConfig,
    store: ObjectStore,
    resolver: PokemonNameResolver,
    *,
    cards: bool,
    prices: bool,
) -> list[str]:
    """Fetch English cards and publish the requested snapshots."""
    async with PokemonTcgClient(config) as client:
        mapping = await fetch_set_mapping(client)
        run = await fetch_all_cards(client, mapping, resolver)

    written = []
    if cards:
        await store.put(CARDS_FILE, [card.to_dict() for card in run.cards])
        written.append(CARDS_FILE)
    if prices:
        await store.put(PRICES_FILE, run.prices_payload())
        written.append(PRICES_FILE)
    return written


async def regenerate_japanese(store: ObjectStore, resolver: PokemonNameResolver) -> list[str]:
    """Scrape Japanese cards and prices, flushing each page to the store."""
    async with httpx.AsyncClient(headers=HEADERS, timeout=30.0, follow_redirects=True) as client:
        scraper = TcgCollectorScraper(base_url=settings.tcgcollector_url, client=client)
        await scrape_japanese_cards(scraper, resolver, store)
    return [JP_CARDS_FILE, JP_PRICES_FILE]


@router.post(
    "/regenerate-assets",
    response_model=RegenerateResponse,
    dependencies=[Depends(verify_token)],
)
async def regenerate_assets(
    config: Annotated[ApiConfig, Depends(get_api_config)],
    store: Annotated[ObjectStore, Depends(get_store)],
    resolver: Annotated[PokemonNameResolver, Depends(get_resolver)],
    file: Annotated[str | None, Query()] = None,
) -> RegenerateResponse:
    """
    Regenerate and publish card snapshots.

    Raises:
        HTTPException: 400 for an unknown `file`, 500 when a pipeline fails
    """
    if file is not None and file not in ASSET_FILES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid 'file' query parameter. Allowed values are "
            "'cards', 'prices', 'jp-cards', or empty.",
        )

    update_cards = file in (None, "cards")
    update_prices = file in (None, "prices")
    update_japanese = file in (None, "jp-cards")

    written: list[str] = []
    try:
        if update_cards or update_prices:
            logger.info("Fetching English cards and prices...")
            written += await regenerate_english(
                config, store, resolver, cards=update_cards, prices=update_prices
            )
        if update_japanese:
            logger.info("Fetching Japanese cards...")
            written += await regenerate_japanese(store, resolver)
    except (PipelineError, OSError) as e:
        logger.error("Failed to regenerate assets: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to regenerate assets: {e}",
        ) from e

    logger.info("Regenerated %s", ", ".join(written))
    return RegenerateResponse(
        success=True,
        message="Selected card assets regenerated and uploaded.",
        files=written,
    )
