import pytest

from pokestore.models.set import SetAlias, SetRecord
from pokestore.models.species import Species
from pokestore.services.name_resolver import PokemonNameResolver


@pytest.fixture
def species() -> list[Species]:
    """A slice of the national Pokédex with the awkward names in it."""
    return [
        Species(id=1, name="bulbasaur"),
        Species(id=4, name="charmander"),
        Species(id=6, name="charizard"),
        Species(id=25, name="pikachu"),
        Species(id=122, name="mr-mime"),
        Species(id=137, name="porygon"),
        Species(id=145, name="zapdos"),
        Species(id=150, name="mewtwo"),
        Species(id=151, name="mew"),
        Species(id=250, name="ho-oh"),
        Species(id=474, name="porygon-z"),
    ]


@pytest.fixture
def resolver(species: list[Species]) -> PokemonNameResolver:
    return PokemonNameResolver(species)


@pytest.fixture
def hidden_fates_aliases() -> list[SetAlias]:
    return [SetAlias(primary="Hidden Fates", aliases=("Hidden Fates Shiny Vault",))]


@pytest.fixture
def hidden_fates_sets() -> list[SetRecord]:
    """The two upstream records for Hidden Fates, as the API lists them."""
    return [
        SetRecord(
            name="Hidden Fates",
            logo="https://images.pokemontcg.io/sm115/logo.png",
            printed_total=68,
            ptcgo_code="HIF",
        ),
        SetRecord(
            name="Hidden Fates Shiny Vault",
            logo="https://images.pokemontcg.io/sma/logo.png",
            printed_total=94,
            ptcgo_code="HIF",
        ),
    ]


def _api_card(**overrides) -> dict:
    card = {
        "name": "Pikachu",
        "supertype": "Pokémon",
        "set": {"name": "Base"},
        "images": {
            "small": "https://images.pokemontcg.io/base1/58.png",
            "large": "https://images.pokemontcg.io/base1/58_hires.png",
        },
        "number": "58",
        "rarity": "Common",
        "artist": "Mitsuhiro Arita",
        "types": ["Lightning"],
        "nationalPokedexNumbers": [25],
    }
    card.update(overrides)
    return card


@pytest.fixture
def make_api_card():
    """Factory for raw Pokémon TCG API cards with sane defaults."""
    return _api_card


@pytest.fixture
def api_card() -> dict:
    return _api_card()
