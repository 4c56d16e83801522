from pokestore.db.database import get_session, init_db
from pokestore.db.operations import (
    collect_types,
    count_cards,
    delete_absent,
    get_sets,
    replace_sets,
    replace_types,
    upsert_cards,
    upsert_prices,
    upsert_species,
)

__all__ = [
    "collect_types",
    "count_cards",
    "delete_absent",
    "get_session",
    "get_sets",
    "init_db",
    "replace_sets",
    "replace_types",
    "upsert_cards",
    "upsert_prices",
    "upsert_species",
]
