"""Tests for the Japanese scrape pipeline."""

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from pokestore.clients.pokemon_tcg import TransportError
from pokestore.models.card import PriceRecord
from pokestore.models.raw import RawHtmlCard
from pokestore.pipeline.japanese import run_japanese_sets, scrape_japanese_cards
from pokestore.pipeline.storage import JP_CARDS_FILE, JP_PRICES_FILE, JP_SETS_FILE, LocalStore
from pokestore.scrapers.tcgcollector import ScrapeBatch, TcgCollectorScraper
from pokestore.services.name_resolver import PokemonNameResolver

BASE_URL = "https://www.tcgcollector.com/cards"


class RecordingStore:
    """Object store that keeps every put in order."""

    def __init__(self) -> None:
        self.puts: list[tuple[str, Any]] = []

    async def put(self, name: str, data: Any) -> str:
        self.puts.append((name, data))
        return name


def _raw(
    slug: str, name: str = "Pikachu", number: str = "001/190", price: str = ""
) -> RawHtmlCard:
    return RawHtmlCard(
        url=f"{BASE_URL}/1/{slug}",
        name=name,
        card_type="Pokémon",
        set_name="Shiny Treasure ex",
        set_code="SV4a",
        card_number=number,
        rarity="Common",
        price=price,
    )


@pytest.fixture
def scraper() -> MagicMock:
    scraper = MagicMock(spec=TcgCollectorScraper)
    scraper.list_pages = AsyncMock(return_value=2)
    scraper.list_card_urls = AsyncMock(side_effect=[["u1", "u2"], ["u3"]])
    scraper.scrape_urls = AsyncMock(
        side_effect=[
            ScrapeBatch(cards=[_raw("pikachu-sv4a-001-190", price="$0.42")], failed=["u2"]),
            ScrapeBatch(cards=[_raw("mew-sv4a-002-190", "Mew", "002/190")]),
        ]
    )
    return scraper


class TestScrapeJapaneseCards:
    async def test_flushes_after_every_page(
        self, scraper: MagicMock, resolver: PokemonNameResolver
    ) -> None:
        """Each page writes the cards accumulated so far."""
        store = RecordingStore()

        run = await scrape_japanese_cards(scraper, resolver, store, updated_at="2024/05/01")

        assert [name for name, _ in store.puts] == [
            JP_CARDS_FILE,
            JP_PRICES_FILE,
            JP_CARDS_FILE,
            JP_PRICES_FILE,
        ]
        assert len(store.puts[0][1]) == 1
        assert len(store.puts[2][1]) == 2
        assert [card.pokemon_number for card in run.cards] == [25, 151]
        assert run.cards[0].card_market_updated_at == "2024/05/01"
        assert run.failed == ["u2"]

    async def test_prices_keyed_by_card_code(
        self, scraper: MagicMock, resolver: PokemonNameResolver
    ) -> None:
        """Listed prices land in their own snapshot; unpriced cards are absent."""
        store = RecordingStore()

        run = await scrape_japanese_cards(scraper, resolver, store)

        assert run.prices == {"pokemon_25_sv4a_001": PriceRecord(simple=0.42)}
        assert store.puts[-1] == (JP_PRICES_FILE, {"pokemon_25_sv4a_001": {"simple": 0.42}})

    async def test_listing_failure_skips_page(
        self, scraper: MagicMock, resolver: PokemonNameResolver
    ) -> None:
        """A listing page that cannot be fetched is recorded and skipped."""
        scraper.list_card_urls = AsyncMock(
            side_effect=[TransportError("u", httpx.ConnectError("Connection refused")), ["u3"]]
        )
        scraper.scrape_urls = AsyncMock(
            return_value=ScrapeBatch(cards=[_raw("mew-sv4a-002-190", "Mew")])
        )
        store = RecordingStore()

        run = await scrape_japanese_cards(scraper, resolver, store)

        assert run.failed_pages == [1]
        assert len(run.cards) == 1
        assert [name for name, _ in store.puts] == [JP_CARDS_FILE, JP_PRICES_FILE]

    async def test_max_pages(self, scraper: MagicMock, resolver: PokemonNameResolver) -> None:
        store = RecordingStore()

        run = await scrape_japanese_cards(scraper, resolver, store, max_pages=1)

        assert run.pages == 1
        assert scraper.list_card_urls.await_count == 1

    async def test_unnormalizable_card_is_failed(
        self, scraper: MagicMock, resolver: PokemonNameResolver
    ) -> None:
        """A scraped record without a name counts as a failure."""
        scraper.list_pages = AsyncMock(return_value=1)
        scraper.scrape_urls = AsyncMock(return_value=ScrapeBatch(cards=[_raw("blank", name="")]))

        run = await scrape_japanese_cards(scraper, resolver, RecordingStore())

        assert run.cards == []
        assert run.failed == [f"{BASE_URL}/1/blank"]


class TestRunJapaneseSets:
    async def test_builds_sets_from_cards(
        self, tmp_path: Path, resolver: PokemonNameResolver, scraper: MagicMock
    ) -> None:
        local = LocalStore(tmp_path)
        await scrape_japanese_cards(scraper, resolver, local)
        upload = RecordingStore()

        sets = await run_japanese_sets(local, upload=upload)

        assert [record.name for record in sets] == ["Shiny Treasure ex"]
        assert sets[0].printed_total == 2
        assert sets[0].official_total == 190
        assert (tmp_path / JP_SETS_FILE).exists()
        assert upload.puts[0][0] == JP_SETS_FILE

    async def test_no_cards(self, tmp_path: Path) -> None:
        assert await run_japanese_sets(LocalStore(tmp_path)) == []
