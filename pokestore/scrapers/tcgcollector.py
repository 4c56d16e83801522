"""
tcgcollector.com scraper for Japanese cards.

Listing pages give card detail URLs; detail pages are parsed into
RawHtmlCard records. Detail pages are fetched in chunks of `workers`
concurrent requests with a pause between chunks. A page that cannot be
fetched or parsed is recorded as failed and never aborts the run.
"""

import asyncio
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any

import httpx
from bs4 import BeautifulSoup

from pokestore.clients.pokemon_tcg import TransportError, with_retry
from pokestore.config import (
    MAX_RETRIES,
    RETRY_BASE_DELAY,
    SCRAPER_CARDS_PER_PAGE,
    SCRAPER_CHUNK_DELAY,
    SCRAPER_WORKERS,
)
from pokestore.models.failure import (
    HttpStatusError,
    ParseFailure,
    PipelineError,
    RateLimitedError,
)
from pokestore.models.raw import RawHtmlCard

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.tcgcollector.com"

HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    )
}

DEFAULT_QUERY: dict[str, Any] = {
    "releaseDateOrder": "newToOld",
    "displayAs": "images",
    "cardsPerPage": SCRAPER_CARDS_PER_PAGE,
}

_RESULTS_COUNT = re.compile(r"of\s+(\d+)\s+items?", re.IGNORECASE)
_CARD_NUMBER = re.compile(r"\d+/\d+")
_PRICE = re.compile(r"(\$\d[\d,]*(?:\.\d+)?)")


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def parse_page_count(html: str, cards_per_page: int = SCRAPER_CARDS_PER_PAGE) -> int:
    """
    Number of listing pages.

    Prefers the "last page" pagination link, then the highest numbered
    pagination item, then the "of N items" counter. Defaults to 1.
    """
    soup = _soup(html)

    pagination = soup.select_one("ul#card-search-result-pagination")
    if pagination is not None:
        last = pagination.select_one("li.pagination-item-last a")
        if last is not None and last.get_text(strip=True).isdigit():
            return int(last.get_text(strip=True))

        numbers = [
            int(item.get_text(strip=True))
            for item in pagination.select("li.pagination-item")
            if item.get_text(strip=True).isdigit()
        ]
        if numbers and max(numbers) > 1:
            return max(numbers)

    counter = soup.select_one("div.results-count")
    if counter is not None:
        match = _RESULTS_COUNT.search(counter.get_text(" ", strip=True))
        if match:
            return math.ceil(int(match.group(1)) / (cards_per_page or 60))

    return 1


def parse_card_urls(html: str, base_url: str = DEFAULT_BASE_URL) -> list[str]:
    """Absolute detail-page URLs from one listing page."""
    soup = _soup(html)
    return [
        f"{base_url}{link.get('href', '')}"
        for link in soup.select("a.card-image-grid-item-link")
    ]


def _illustrator(soup: BeautifulSoup, footer_items: list) -> str:
    for title in soup.select("div.card-info-footer-item-title"):
        if "Illustrators" in title.get_text() and title.parent is not None:
            links = title.parent.select("a[href*='illustrator=']")
            if links:
                return " ".join(link.get_text(strip=True) for link in links)

    found = ""
    for item in footer_items:
        link = item.find("a")
        if "Illus" in item.get_text() and link is not None:
            found = link.get_text(strip=True)
    return found


def parse_card_page(html: str, url: str) -> RawHtmlCard:
    """
    Parse one card detail page.

    Args:
        html: Page body
        url: Page URL, kept on the record

    Returns:
        RawHtmlCard with every field found on the page

    Raises:
        ParseFailure: If the page has no card title
    """
    soup = _soup(html)
    card = RawHtmlCard(url=url)

    title = soup.select_one("#card-info-title a")
    if title is None or not title.get_text(strip=True):
        raise ParseFailure(url, "no card title")
    card.name = title.get_text(strip=True)

    image = soup.select_one("#card-image-container img")
    if image is not None:
        card.image_url = image.get("src", "")

    card_type = soup.select_one(".card-type-container")
    if card_type is not None:
        card.card_type = card_type.get_text(" ", strip=True)

    energy = soup.select_one(".energy-type-symbol[title]")
    if energy is not None:
        card.pokemon_type = energy["title"]

    set_name = soup.select_one("#card-info-footer-item-text-part-expansion-name")
    if set_name is not None:
        card.set_name = set_name.get_text(strip=True)

    set_code = soup.select_one("#card-info-footer-item-text-part-expansion-code")
    if set_code is not None:
        card.set_code = set_code.get_text(strip=True)

    footer_items = soup.select(".card-info-footer-item-text-part")
    for item in footer_items:
        text = item.get_text(strip=True)
        if _CARD_NUMBER.search(text):
            card.card_number = text

    rarity = soup.select_one("a.card-info-footer-item-text-part[href*='rarities=']")
    if rarity is not None:
        card.rarity = rarity.get_text(strip=True)
    else:
        for item in footer_items:
            text = item.get_text()
            if "Rarity:" in text:
                card.rarity = text.replace("Rarity:", "").strip()

    card.illustrator = _illustrator(soup, footer_items)

    price = soup.select_one("button.card-price-details-modal-show-button")
    if price is not None:
        text = price.get_text(strip=True)
        match = _PRICE.search(text)
        card.price = match.group(1) if match else text

    return card


@dataclass
class ScrapeBatch:
    """Outcome of scraping a list of detail pages."""

    cards: list[RawHtmlCard] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class TcgCollectorScraper:
    """
    Fetches and parses tcgcollector.com listing and detail pages.

    Every GET goes through with_retry, so 429s, 5xx responses and
    connection errors are retried with backoff before they surface.

    Usage:
        async with httpx.AsyncClient(headers=HEADERS) as client:
            scraper = TcgCollectorScraper(client=client)
            pages = await scraper.list_pages()
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = DEFAULT_BASE_URL,
        workers: int = SCRAPER_WORKERS,
        chunk_delay: float = SCRAPER_CHUNK_DELAY,
        max_retries: int = MAX_RETRIES,
        base_delay: float = RETRY_BASE_DELAY,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.listing_url = f"{self.base_url}/cards/jp"
        self.workers = workers
        self.chunk_delay = chunk_delay
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.client = client

    async def _get_once(self, url: str, params: dict[str, Any] | None) -> str:
        try:
            response = await self.client.get(url, params=params, headers=HEADERS)
        except httpx.RequestError as e:
            raise TransportError(url, e) from e

        if response.status_code == 429:
            raise RateLimitedError(url)
        if not response.is_success:
            raise HttpStatusError(url, response.status_code, response.reason_phrase)
        return response.text

    async def _get_text(self, url: str, params: dict[str, Any] | None = None) -> str:
        return await with_retry(
            lambda: self._get_once(url, params),
            max_retries=self.max_retries,
            base_delay=self.base_delay,
        )

    async def list_pages(self, query: dict[str, Any] | None = None) -> int:
        """Number of listing pages for the query."""
        query = query or DEFAULT_QUERY
        html = await self._get_text(self.listing_url, query)
        pages = parse_page_count(html, int(query.get("cardsPerPage", SCRAPER_CARDS_PER_PAGE)))
        logger.info("Found %d listing pages", pages)
        return pages

    async def list_card_urls(self, query: dict[str, Any] | None = None, page: int = 1) -> list[str]:
        """Detail URLs on one listing page; page 1 carries no page parameter."""
        params = dict(query or DEFAULT_QUERY)
        if page > 1:
            params["page"] = page
        html = await self._get_text(self.listing_url, params)
        return parse_card_urls(html, self.base_url)

    async def scrape_card(self, url: str) -> RawHtmlCard | None:
        """Fetch and parse one detail page; None when either step fails."""
        try:
            html = await self._get_text(url)
            return parse_card_page(html, url)
        except ParseFailure as e:
            logger.warning("%s", e)
        except PipelineError as e:
            logger.warning("Failed to fetch %s: %s", url, e)
        except Exception:
            logger.exception("Unexpected error scraping %s", url)
        return None

    async def scrape_urls(self, urls: list[str]) -> ScrapeBatch:
        """
        Scrape detail pages in chunks of `workers` concurrent requests.

        Failed URLs are collected on the batch rather than raised.
        """
        batch = ScrapeBatch()
        for start in range(0, len(urls), self.workers):
            chunk = urls[start : start + self.workers]
            results = await asyncio.gather(*(self.scrape_card(url) for url in chunk))
            for url, card in zip(chunk, results):
                if card is None:
                    batch.failed.append(url)
                    logger.info("[FAIL] %s", url)
                else:
                    batch.cards.append(card)
                    logger.debug("[OK] %s", card.name or url)
            if self.chunk_delay:
                await asyncio.sleep(self.chunk_delay)
        return batch
