from dataclasses import dataclass
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "PokeStore Ingest"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/pokestore"

    pokemon_tcg_api_key: str = ""
    pokemon_tcg_api_url: str = "https://api.pokemontcg.io/v2"
    pokeapi_url: str = "https://pokeapi.co/api/v2"
    tcgcollector_url: str = "https://www.tcgcollector.com"

    # Where JSON snapshots are read from and written to
    data_dir: Path = Path("data")

    # Object storage base URL; empty keeps snapshots on local disk only
    storage_url: str = ""
    storage_token: str = ""

    # Shared secret for POST /regenerate-assets
    regenerate_token: str = ""


settings = Settings()


# =============================================================================
# POKEMON TCG API
# =============================================================================

API_PAGE_SIZE = 250

# Pages fetched concurrently per batch by the card pipeline
PAGES_BATCH_SIZE = 10

MAX_RETRIES = 5
RETRY_BASE_DELAY = 1.0
RETRY_MULTIPLIER = 1.5

CARD_SELECT_FIELDS = (
    "name,rarity,images,number,set,types,nationalPokedexNumbers,"
    "supertype,artist,cardmarket,tcgplayer"
)
SET_SELECT_FIELDS = "name,images,printedTotal,ptcgoCode,releaseDate,series"

# =============================================================================
# TCGCOLLECTOR SCRAPER
# =============================================================================

SCRAPER_WORKERS = 12
SCRAPER_CHUNK_DELAY = 0.5
SCRAPER_CARDS_PER_PAGE = 120

# =============================================================================
# SPECIES
# =============================================================================

POKEMONS_COUNT = 1025

# Card code species id for cards that are not Pokemon
UNKNOWN_SPECIES_ID = 0

# Species id for Pokemon cards whose species could not be resolved
SENTINEL_SPECIES_ID = 99999


@dataclass(frozen=True)
class ApiConfig:
    """
    Connection settings for one Pokemon TCG API client.

    Built per run (CLI) or per request (HTTP surface) so the API key
    never lives in module state.
    """

    api_key: str
    base_url: str = "https://api.pokemontcg.io/v2"
    max_retries: int = MAX_RETRIES
    base_delay: float = RETRY_BASE_DELAY
    multiplier: float = RETRY_MULTIPLIER
    page_size: int = API_PAGE_SIZE
    timeout: float = 30.0

    @classmethod
    def from_settings(cls, app_settings: Settings, api_key: str | None = None) -> "ApiConfig":
        """Build a config, letting an explicit key override the environment."""
        return cls(
            api_key=api_key or app_settings.pokemon_tcg_api_key,
            base_url=app_settings.pokemon_tcg_api_url,
        )
