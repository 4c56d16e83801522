from pokestore.clients.pokeapi import fetch_species
from pokestore.clients.pokemon_tcg import PokemonTcgClient, TransportError, with_retry

__all__ = [
    "PokemonTcgClient",
    "TransportError",
    "fetch_species",
    "with_retry",
]
