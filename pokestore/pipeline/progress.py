"""Run progress, ETA and final summary logging."""

import logging
import math
import time
from collections import Counter
from collections.abc import Callable, Iterable

from pokestore.config import API_PAGE_SIZE
from pokestore.models.card import SUPERTYPES, CanonicalCard

logger = logging.getLogger(__name__)


def format_duration(seconds: float) -> str:
    """Human readable duration: 12.5s, 3.2min, 1.1h."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    if seconds < 3600:
        return f"{seconds / 60:.1f}min"
    return f"{seconds / 3600:.1f}h"


class ProgressTracker:
    """
    Accumulates per-page timings and reports a rolling ETA.

    Args:
        page_size: Records per full page, used to turn remaining records
            into remaining pages
        clock: Monotonic clock, injectable for tests
    """

    def __init__(
        self, page_size: int = API_PAGE_SIZE, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.page_size = page_size
        self.clock = clock
        self.started_at = clock()
        self.page_times: list[float] = []
        self.retrieved = 0
        self.total_available = 0

    def record_page(self, count: int, seconds: float, total_count: int | None = None) -> None:
        """Register one completed page."""
        self.retrieved += count
        self.page_times.append(seconds)
        if not self.total_available and total_count:
            self.total_available = total_count
            logger.info("Total records available upstream: %d", total_count)

    @property
    def elapsed(self) -> float:
        return self.clock() - self.started_at

    @property
    def average_page_time(self) -> float:
        if not self.page_times:
            return 0.0
        return sum(self.page_times) / len(self.page_times)

    def estimated_remaining(self) -> float | None:
        """Seconds left at the average page time; None before the total is known."""
        if not self.total_available or not self.page_times:
            return None
        remaining = max(0, self.total_available - self.retrieved)
        return math.ceil(remaining / self.page_size) * self.average_page_time

    def log_progress(self) -> None:
        eta = self.estimated_remaining()
        if eta is None:
            return
        logger.info(
            "Progress: %d/%d (%.2f%%), elapsed %s, avg page %.2fs, est. remaining %s",
            self.retrieved,
            self.total_available,
            self.retrieved / self.total_available * 100,
            format_duration(self.elapsed),
            self.average_page_time,
            format_duration(eta),
        )

    def log_summary(self, cards: Iterable[CanonicalCard]) -> Counter:
        """Log counts by supertype and the share of the upstream total retrieved."""
        counts = Counter(card.supertype for card in cards)
        total = sum(counts.values())

        logger.info("Card retrieval summary:")
        for supertype in SUPERTYPES:
            logger.info("- %s: %d cards", supertype, counts.get(supertype, 0))
        if self.total_available:
            logger.info(
                "- Total: %d/%d cards (%.2f%%)",
                total,
                self.total_available,
                total / self.total_available * 100,
            )
        else:
            logger.info("- Total: %d cards", total)
        logger.info("Total execution time: %s", format_duration(self.elapsed))
        return counts
