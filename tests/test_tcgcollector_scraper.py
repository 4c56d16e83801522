from pathlib import Path
from unittest.mock import patch

import httpx
import pytest
import respx

from pokestore.models.failure import ParseFailure, RateLimitedError
from pokestore.scrapers.tcgcollector import (
    DEFAULT_QUERY,
    TcgCollectorScraper,
    parse_card_page,
    parse_card_urls,
    parse_page_count,
)

BASE_URL = "https://www.tcgcollector.com"
LISTING_URL = f"{BASE_URL}/cards/jp"
CARD_URL = f"{BASE_URL}/cards/48301/pikachu-shiny-treasure-ex-001-190"


@pytest.fixture
def listing_html() -> str:
    fixture_path = Path(__file__).parent / "fixtures" / "tcgcollector_listing.html"
    return fixture_path.read_text(encoding="utf-8")


@pytest.fixture
def card_html() -> str:
    fixture_path = Path(__file__).parent / "fixtures" / "tcgcollector_card.html"
    return fixture_path.read_text(encoding="utf-8")


@pytest.fixture
async def scraper():
    async with httpx.AsyncClient() as client:
        yield TcgCollectorScraper(
            base_url=BASE_URL,
            chunk_delay=0,
            workers=2,
            client=client,
            max_retries=2,
            base_delay=0,
        )


class TestParsePageCount:
    def test_last_page_link(self, listing_html: str) -> None:
        """The "last" pagination link wins."""
        assert parse_page_count(listing_html) == 4

    def test_highest_pagination_item(self) -> None:
        html = """
        <ul id="card-search-result-pagination">
          <li class="pagination-item">1</li>
          <li class="pagination-item">2</li>
          <li class="pagination-item">7</li>
        </ul>
        """

        assert parse_page_count(html) == 7

    def test_results_counter(self) -> None:
        """Without pagination the item counter is divided by the page size."""
        html = '<div class="results-count">Showing 1 to 120 of 361 items</div>'

        assert parse_page_count(html, cards_per_page=120) == 4

    def test_defaults_to_one(self) -> None:
        assert parse_page_count("<html><body>No cards</body></html>") == 1


class TestParseCardUrls:
    def test_absolute_urls(self, listing_html: str) -> None:
        urls = parse_card_urls(listing_html, BASE_URL)

        assert len(urls) == 3
        assert urls[0] == CARD_URL
        assert all(url.startswith(f"{BASE_URL}/cards/") for url in urls)


class TestParseCardPage:
    def test_extracts_fields(self, card_html: str) -> None:
        card = parse_card_page(card_html, CARD_URL)

        assert card.url == CARD_URL
        assert card.name == "Pikachu"
        assert card.image_url.endswith("pikachu-sv4a-001.jpg")
        assert card.card_type.startswith("Pokémon")
        assert card.pokemon_type == "Lightning"
        assert card.set_name == "Shiny Treasure ex"
        assert card.set_code == "SV4a"
        assert card.card_number == "001/190"
        assert card.rarity == "Common"
        assert card.illustrator == "Mitsuhiro Arita"
        assert card.price == "$0.42"

    def test_missing_title_raises(self) -> None:
        """A page without a card title is a parse failure."""
        with pytest.raises(ParseFailure, match="no card title"):
            parse_card_page("<html><body><h1>Not found</h1></body></html>", CARD_URL)

    def test_rarity_from_text(self) -> None:
        html = """
        <h1 id="card-info-title"><a href="/x">Bill</a></h1>
        <span class="card-info-footer-item-text-part">Rarity: Uncommon</span>
        <span class="card-info-footer-item-text-part">Illus. <a href="/y">Ken Sugimori</a></span>
        """

        card = parse_card_page(html, CARD_URL)

        assert card.rarity == "Uncommon"
        assert card.illustrator == "Ken Sugimori"
        assert card.price == ""


class TestTcgCollectorScraper:
    @respx.mock
    async def test_list_pages(self, scraper: TcgCollectorScraper, listing_html: str) -> None:
        route = respx.get(LISTING_URL).mock(return_value=httpx.Response(200, text=listing_html))

        assert await scraper.list_pages() == 4
        params = route.calls.last.request.url.params
        assert params["cardsPerPage"] == str(DEFAULT_QUERY["cardsPerPage"])

    @respx.mock
    async def test_first_page_has_no_page_param(
        self, scraper: TcgCollectorScraper, listing_html: str
    ) -> None:
        route = respx.get(LISTING_URL).mock(return_value=httpx.Response(200, text=listing_html))

        await scraper.list_card_urls(page=1)
        assert "page" not in route.calls.last.request.url.params

        urls = await scraper.list_card_urls(page=3)
        assert route.calls.last.request.url.params["page"] == "3"
        assert len(urls) == 3

    @respx.mock
    async def test_failures_are_collected(
        self, scraper: TcgCollectorScraper, card_html: str
    ) -> None:
        """A timeout or unparseable page lands in failed, never in cards."""
        timeout_url = f"{BASE_URL}/cards/2/timeout"
        broken_url = f"{BASE_URL}/cards/3/broken"
        respx.get(CARD_URL).mock(return_value=httpx.Response(200, text=card_html))
        respx.get(timeout_url).mock(side_effect=httpx.ReadTimeout("timed out"))
        respx.get(broken_url).mock(return_value=httpx.Response(200, text="<html></html>"))

        batch = await scraper.scrape_urls([CARD_URL, timeout_url, broken_url])

        assert [card.url for card in batch.cards] == [CARD_URL]
        assert batch.failed == [timeout_url, broken_url]

    @respx.mock
    async def test_http_error_returns_none(self, scraper: TcgCollectorScraper) -> None:
        respx.get(CARD_URL).mock(return_value=httpx.Response(404))

        assert await scraper.scrape_card(CARD_URL) is None

    @respx.mock
    async def test_listing_retries_rate_limit(
        self, scraper: TcgCollectorScraper, listing_html: str
    ) -> None:
        """A 429 on the listing is retried instead of ending the run."""
        route = respx.get(LISTING_URL).mock(
            side_effect=[httpx.Response(429), httpx.Response(200, text=listing_html)]
        )

        assert await scraper.list_pages() == 4
        assert route.call_count == 2

    @respx.mock
    async def test_listing_rate_limit_exhaustion(self, scraper: TcgCollectorScraper) -> None:
        route = respx.get(LISTING_URL).mock(return_value=httpx.Response(429))

        with pytest.raises(RateLimitedError):
            await scraper.list_pages()
        assert route.call_count == 3

    @respx.mock
    async def test_detail_page_retries_server_error(
        self, scraper: TcgCollectorScraper, card_html: str
    ) -> None:
        respx.get(CARD_URL).mock(
            side_effect=[httpx.Response(503), httpx.Response(200, text=card_html)]
        )

        card = await scraper.scrape_card(CARD_URL)

        assert card is not None
        assert card.name == "Pikachu"

    @respx.mock
    async def test_unexpected_error_is_a_failed_url(
        self, scraper: TcgCollectorScraper, card_html: str
    ) -> None:
        """Any error on one URL is recorded; the rest of the chunk still lands."""
        other_url = f"{BASE_URL}/cards/4/mew"
        respx.get(CARD_URL).mock(return_value=httpx.Response(200, text=card_html))
        respx.get(other_url).mock(return_value=httpx.Response(200, text=card_html))

        def parse(html: str, url: str):
            if url == other_url:
                raise RuntimeError("unexpected markup")
            return parse_card_page(html, url)

        with patch("pokestore.scrapers.tcgcollector.parse_card_page", side_effect=parse):
            batch = await scraper.scrape_urls([CARD_URL, other_url])

        assert [card.url for card in batch.cards] == [CARD_URL]
        assert batch.failed == [other_url]
