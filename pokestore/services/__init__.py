"""
PokeStore services.

Pure transformations shared by the pipelines: card codes, species name
resolution, set reconciliation and record normalization.
"""

from pokestore.services.card_code import (
    CardCodeParts,
    generate_card_code,
    parse_card_code,
    replace_set_code,
)
from pokestore.services.name_resolver import PokemonNameResolver, load_resolver, load_species
from pokestore.services.normalizer import (
    NormalizedCard,
    extract_prices,
    fix_encoding,
    normalize_api_card,
    normalize_html_card,
    parse_html_price,
)
from pokestore.services.set_reconciler import (
    ReconciliationResult,
    SetMergeResult,
    load_set_aliases,
    map_obsolete_sets,
    merge_fetched_sets,
    reconcile_cards,
    summarize_japanese_sets,
)

__all__ = [
    "CardCodeParts",
    "NormalizedCard",
    "PokemonNameResolver",
    "ReconciliationResult",
    "SetMergeResult",
    "extract_prices",
    "fix_encoding",
    "generate_card_code",
    "load_resolver",
    "load_set_aliases",
    "load_species",
    "map_obsolete_sets",
    "merge_fetched_sets",
    "normalize_api_card",
    "normalize_html_card",
    "parse_html_price",
    "parse_card_code",
    "reconcile_cards",
    "replace_set_code",
    "summarize_japanese_sets",
]
