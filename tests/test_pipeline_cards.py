"""Tests for the batched card pipeline."""

import json
from pathlib import Path

import httpx
import pytest
import respx

from pokestore.clients.pokemon_tcg import PokemonTcgClient
from pokestore.config import ApiConfig
from pokestore.models.failure import HttpStatusError, MissingCredentialError
from pokestore.pipeline.cards import fetch_all_cards, fetch_set_mapping, run_card_pipeline
from pokestore.pipeline.progress import ProgressTracker
from pokestore.pipeline.storage import CARDS_FILE, PRICES_FILE, LocalStore
from pokestore.services.name_resolver import PokemonNameResolver

CARDS_URL = "https://api.pokemontcg.io/v2/cards"
SETS_URL = "https://api.pokemontcg.io/v2/sets"


@pytest.fixture
def config() -> ApiConfig:
    """Two cards per page, no retries."""
    return ApiConfig(api_key="test-key", page_size=2, max_retries=0, base_delay=0.0)


def _card(number: int, **overrides) -> dict:
    card = {
        "name": "Pikachu",
        "supertype": "Pokémon",
        "set": {"name": "Base"},
        "images": {"large": f"https://images.pokemontcg.io/base1/{number}_hires.png"},
        "number": str(number),
        "nationalPokedexNumbers": [25],
    }
    card.update(overrides)
    return card


def _serve(
    pages: dict[int, list[dict]], failing: tuple[int, ...] = (), total: int | None = None
):
    """Answer card page requests by page number; unknown pages are empty."""

    def respond(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        if page in failing:
            return httpx.Response(500)
        return httpx.Response(200, json={"data": pages.get(page, []), "totalCount": total})

    return respond


def _pages(sizes: dict[int, int], failing: tuple[int, ...] = (), total: int = 5):
    """Numbered cards, `sizes[page]` of them per page."""
    pages = {page: [_card(page * 10 + i) for i in range(size)] for page, size in sizes.items()}
    return _serve(pages, failing, total)


class TestFetchAllCards:
    @respx.mock
    async def test_stops_after_short_page(self, config: ApiConfig) -> None:
        """The batch holding a short page is the last one."""
        route = respx.get(CARDS_URL).mock(side_effect=_pages({1: 2, 2: 2, 3: 1}))

        async with PokemonTcgClient(config) as client:
            run = await fetch_all_cards(client, {}, batch_size=2, batch_delay=0)

        assert route.call_count == 4
        assert len(run.cards) == 5
        assert run.total_available == 5
        assert run.failed_pages == []

    @respx.mock
    async def test_failed_page_does_not_cancel_siblings(self, config: ApiConfig) -> None:
        """A failing page is recorded; the rest of the run continues."""
        respx.get(CARDS_URL).mock(side_effect=_pages({1: 2, 2: 2, 3: 1}, failing=(2,)))

        async with PokemonTcgClient(config) as client:
            run = await fetch_all_cards(client, {}, batch_size=2, batch_delay=0)

        assert run.failed_pages == [2]
        assert len(run.cards) == 3

    @respx.mock
    async def test_nothing_retrieved_raises(self, config: ApiConfig) -> None:
        """A run where every page fails surfaces the error."""
        respx.get(CARDS_URL).mock(return_value=httpx.Response(500))

        async with PokemonTcgClient(config) as client:
            with pytest.raises(HttpStatusError):
                await fetch_all_cards(client, {}, batch_size=2, batch_delay=0)

    @respx.mock
    async def test_missing_credential_is_fatal(self) -> None:
        route = respx.get(CARDS_URL).mock(side_effect=_pages({1: 2}))

        async with PokemonTcgClient(ApiConfig(api_key="")) as client:
            with pytest.raises(MissingCredentialError):
                await fetch_all_cards(client, {}, batch_size=2, batch_delay=0)

        assert route.call_count == 0

    @respx.mock
    async def test_duplicate_codes_keep_first(self, config: ApiConfig) -> None:
        """Card codes stay unique across the run."""
        first = _card(58, rarity="Common")
        second = _card(58, rarity="Rare")
        respx.get(CARDS_URL).mock(side_effect=_serve({1: [first, second]}))

        async with PokemonTcgClient(config) as client:
            run = await fetch_all_cards(client, {}, batch_size=2, batch_delay=0)

        assert [card.rarity for card in run.cards] == ["Common"]
        assert run.duplicates == ["pokemon_25_base1_58"]

    @respx.mock
    async def test_prices_and_skipped_records(
        self, config: ApiConfig, resolver: PokemonNameResolver
    ) -> None:
        """Only cards with known figures get a price record."""
        priced = _card(1, cardmarket={"prices": {"trendPrice": 1.5}})
        invalid = _card(2, images={})
        respx.get(CARDS_URL).mock(side_effect=_serve({1: [priced, invalid]}))
        tracker = ProgressTracker(page_size=2)

        async with PokemonTcgClient(config) as client:
            run = await fetch_all_cards(
                client, {}, resolver, batch_size=2, batch_delay=0, tracker=tracker
            )

        assert run.skipped == 1
        assert run.prices_payload() == {"pokemon_25_base1_1": {"trend": 1.5}}
        assert tracker.retrieved == 1


class TestFetchSetMapping:
    @respx.mock
    async def test_live_mapping(self, config: ApiConfig) -> None:
        respx.get(SETS_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": [
                        {
                            "name": "Hidden Fates",
                            "images": {"logo": "https://images.pokemontcg.io/sm115/logo.png"},
                            "printedTotal": 68,
                            "ptcgoCode": "HIF",
                        },
                        {
                            "name": "Hidden Fates Shiny Vault",
                            "images": {"logo": "https://images.pokemontcg.io/sma/logo.png"},
                            "printedTotal": 94,
                            "ptcgoCode": "HIF",
                        },
                    ]
                },
            )
        )

        async with PokemonTcgClient(config) as client:
            mapping = await fetch_set_mapping(client)

        assert mapping["Hidden Fates Shiny Vault"].primary_set_name == "Hidden Fates"
        assert mapping["Hidden Fates Shiny Vault"].primary_set_code == "sm115"


class TestRunCardPipeline:
    @respx.mock
    async def test_writes_cards_and_prices(self, config: ApiConfig, tmp_path: Path) -> None:
        """Both snapshots are written once the run completes."""
        respx.get(CARDS_URL).mock(side_effect=_pages({1: 2, 2: 1}, total=3))
        store = LocalStore(tmp_path)

        async with PokemonTcgClient(config) as client:
            run = await run_card_pipeline(client, store, set_mapping={})

        cards = json.loads((tmp_path / CARDS_FILE).read_text(encoding="utf-8"))
        prices = json.loads((tmp_path / PRICES_FILE).read_text(encoding="utf-8"))
        assert len(cards) == len(run.cards) == 3
        assert cards[0]["cardCode"] == "pokemon_25_base1_10"
        assert prices == {}
