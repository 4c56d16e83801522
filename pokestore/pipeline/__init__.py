"""Ingestion runs: API card fetch, set refresh and merge, Japanese scrape."""

from pokestore.pipeline.cards import CardRun, fetch_all_cards, run_card_pipeline
from pokestore.pipeline.japanese import ScrapeRun, run_japanese_sets, scrape_japanese_cards
from pokestore.pipeline.progress import ProgressTracker, format_duration
from pokestore.pipeline.sets import fetch_and_merge_sets, run_merge_pipeline, run_set_pipeline
from pokestore.pipeline.storage import (
    SNAPSHOT_FILES,
    HttpObjectStore,
    LocalStore,
    ObjectStore,
    read_json,
    write_json,
)

__all__ = [
    "CardRun",
    "HttpObjectStore",
    "LocalStore",
    "ObjectStore",
    "ProgressTracker",
    "SNAPSHOT_FILES",
    "ScrapeRun",
    "fetch_all_cards",
    "fetch_and_merge_sets",
    "format_duration",
    "read_json",
    "run_card_pipeline",
    "run_japanese_sets",
    "run_merge_pipeline",
    "run_set_pipeline",
    "scrape_japanese_cards",
    "write_json",
]
