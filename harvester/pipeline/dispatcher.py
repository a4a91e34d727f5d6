"""Bounded search dispatch.

Terms are partitioned round-robin over a fixed number of worker slots.  Each
slot runs on its own thread and walks its partition strictly in order, so at
most *width* search requests are in flight at any time.  A failing term is
logged and skipped; it never affects the rest of its partition or any other
slot.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Sequence

from harvester.errors import ConfigurationError, HarvestError
from harvester.pipeline.models import SearchOutcome, WorkerReport
from harvester.search.models import SearchResult

logger = logging.getLogger(__name__)

SearchFn = Callable[[str], SearchResult]
ResultHandler = Callable[[SearchResult], None]


def partition_terms(terms: Sequence[str], width: int) -> List[List[str]]:
    """Assign term *i* to slot ``i % width``; always returns *width* lists.

    Raises:
        ConfigurationError: If *width* is not positive.
    """
    if width < 1:
        raise ConfigurationError(f"pool width must be positive, got {width}")
    return [list(terms[slot::width]) for slot in range(width)]


class Dispatcher:
    """Run *search* for every term on a pool of *width* sequential workers.

    Each successful :class:`SearchResult` is handed to *on_result*, which is
    expected to return quickly (the enricher only schedules work).
    """

    def __init__(self, search: SearchFn, on_result: ResultHandler, width: int) -> None:
        if width < 1:
            raise ConfigurationError(f"pool width must be positive, got {width}")
        self._search = search
        self._on_result = on_result
        self._width = width

    @property
    def width(self) -> int:
        return self._width

    def run(self, terms: Sequence[str]) -> List[WorkerReport]:
        """Process every term and return one report per slot, in slot order.

        Blocks until all workers have finished their partitions.
        """
        partitions = partition_terms(terms, self._width)
        with ThreadPoolExecutor(max_workers=self._width, thread_name_prefix="search") as pool:
            futures = [
                pool.submit(self._run_worker, slot, partition)
                for slot, partition in enumerate(partitions)
            ]
            return [future.result() for future in futures]

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _run_worker(self, slot: int, terms: List[str]) -> WorkerReport:
        report = WorkerReport(slot=slot, terms=list(terms))
        for term in terms:
            outcome = self._search_one(term)
            if outcome.result is None:
                report.failed += 1
                continue
            report.succeeded += 1
            report.hits += len(outcome.result.hits)
            self._hand_off(outcome.result)
        logger.debug(
            "worker %d done: %d ok, %d failed", slot, report.succeeded, report.failed
        )
        return report

    def _search_one(self, term: str) -> SearchOutcome:
        try:
            return SearchOutcome(term=term, result=self._search(term))
        except HarvestError as exc:
            logger.warning("search for %r failed: %s", term, exc)
            return SearchOutcome(term=term, error=exc)
        except Exception as exc:
            logger.exception("unexpected error while searching for %r", term)
            return SearchOutcome(term=term, error=exc)

    def _hand_off(self, result: SearchResult) -> None:
        try:
            self._on_result(result)
        except Exception:
            logger.exception("could not schedule enrichment for %r", result.term)
