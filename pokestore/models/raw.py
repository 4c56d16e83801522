"""
Upstream record shapes.

RawApiCard and RawApiSet validate Pokémon TCG API payloads (camelCase on
the wire). RawHtmlCard is the flat record scraped from a tcgcollector.com
card page. All of these are ephemeral: they are consumed once by the
normalizer and never persisted.
"""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ApiImages(_ApiModel):
    small: str | None = None
    large: str | None = None


class ApiSetRef(_ApiModel):
    name: str


class CardmarketPrices(_ApiModel):
    average_sell_price: float | None = Field(default=None, alias="averageSellPrice")
    low_price: float | None = Field(default=None, alias="lowPrice")
    trend_price: float | None = Field(default=None, alias="trendPrice")
    suggested_price: float | None = Field(default=None, alias="suggestedPrice")
    reverse_holo_sell: float | None = Field(default=None, alias="reverseHoloSell")
    reverse_holo_low: float | None = Field(default=None, alias="reverseHoloLow")
    reverse_holo_trend: float | None = Field(default=None, alias="reverseHoloTrend")
    avg1: float | None = None
    avg7: float | None = None
    avg30: float | None = None
    reverse_holo_avg1: float | None = Field(default=None, alias="reverseHoloAvg1")
    reverse_holo_avg7: float | None = Field(default=None, alias="reverseHoloAvg7")
    reverse_holo_avg30: float | None = Field(default=None, alias="reverseHoloAvg30")


class CardmarketBlock(_ApiModel):
    url: str | None = None
    updated_at: str | None = Field(default=None, alias="updatedAt")
    prices: CardmarketPrices | None = None


class TcgplayerVariant(_ApiModel):
    low: float | None = None
    mid: float | None = None
    high: float | None = None
    market: float | None = None
    direct_low: float | None = Field(default=None, alias="directLow")


class TcgplayerPrices(_ApiModel):
    normal: TcgplayerVariant | None = None
    holofoil: TcgplayerVariant | None = None
    reverse_holofoil: TcgplayerVariant | None = Field(default=None, alias="reverseHolofoil")
    first_edition_holofoil: TcgplayerVariant | None = Field(
        default=None, alias="1stEditionHolofoil"
    )
    first_edition_normal: TcgplayerVariant | None = Field(default=None, alias="1stEditionNormal")


class TcgplayerBlock(_ApiModel):
    url: str | None = None
    updated_at: str | None = Field(default=None, alias="updatedAt")
    prices: TcgplayerPrices | None = None


class RawApiCard(_ApiModel):
    """A card as returned by GET /cards."""

    name: str
    supertype: str
    set: ApiSetRef
    images: ApiImages
    number: str | None = None
    rarity: str | None = None
    artist: str | None = None
    types: list[str] | None = None
    national_pokedex_numbers: list[int] | None = Field(
        default=None, alias="nationalPokedexNumbers"
    )
    cardmarket: CardmarketBlock | None = None
    tcgplayer: TcgplayerBlock | None = None


class ApiSetImages(_ApiModel):
    logo: str | None = None
    symbol: str | None = None


class RawApiSet(_ApiModel):
    """A set as returned by GET /sets."""

    name: str
    images: ApiSetImages = Field(default_factory=ApiSetImages)
    printed_total: int = Field(default=0, alias="printedTotal")
    ptcgo_code: str | None = Field(default=None, alias="ptcgoCode")
    release_date: str | None = Field(default=None, alias="releaseDate")
    series: str | None = None


class ApiPage(BaseModel):
    """One page of an API listing; data items are validated lazily."""

    data: list[dict] = Field(default_factory=list)
    page: int | None = None
    page_size: int | None = Field(default=None, alias="pageSize")
    count: int | None = None
    total_count: int | None = Field(default=None, alias="totalCount")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


@dataclass
class RawHtmlCard:
    """A card scraped from a tcgcollector.com detail page."""

    url: str
    image_url: str = ""
    name: str = ""
    card_type: str = ""
    pokemon_type: str = ""
    set_name: str = ""
    set_code: str = ""
    card_number: str = ""
    rarity: str = ""
    illustrator: str = ""
    price: str = ""
