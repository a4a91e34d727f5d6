"""Unbounded per-hit enrichment fan-out.

Every hit of every submitted :class:`SearchResult` gets its own thread: each
result is given a private ``ThreadPoolExecutor`` sized to its hit count, so
fetches never queue behind one another.  Finished records go onto the shared
output queue; failed fetches are logged and dropped.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, List

from harvester.pipeline.models import EnrichedRecord
from harvester.search.models import Hit, SearchResult

logger = logging.getLogger(__name__)

MetaFetchFn = Callable[[str], Dict[str, str]]


class Enricher:
    """Schedule metadata fetches and publish :class:`EnrichedRecord` objects."""

    def __init__(self, fetch_meta: MetaFetchFn, output_queue: "queue.Queue[EnrichedRecord]") -> None:
        self._fetch_meta = fetch_meta
        self._queue = output_queue
        self._lock = threading.Lock()
        self._futures: List[Future] = []
        self.submitted = 0
        self.enriched = 0
        self.failed = 0

    def submit(self, result: SearchResult) -> None:
        """Start one enrichment task per hit of *result* and return immediately."""
        if not result.hits:
            logger.info("%r: nothing to enrich", result.term)
            return

        pool = ThreadPoolExecutor(
            max_workers=len(result.hits),
            thread_name_prefix=f"enrich-{result.term}",
        )
        try:
            for hit in result.hits:
                future = pool.submit(self._enrich, result.term, hit)
                # Tracked as soon as it exists so wait() covers it even if a later submit fails.
                with self._lock:
                    self._futures.append(future)
                    self.submitted += 1
        finally:
            # Already-submitted tasks keep running; the threads exit once they finish.
            pool.shutdown(wait=False)

    def wait(self) -> None:
        """Block until every task submitted so far has finished."""
        with self._lock:
            pending = list(self._futures)
        wait(pending)

    def _enrich(self, term: str, hit: Hit) -> None:
        try:
            meta_tags = self._fetch_meta(hit.url)
        except Exception as exc:
            logger.warning("metadata fetch for %s (%r) failed: %s", hit.url, term, exc)
            with self._lock:
                self.failed += 1
            return

        self._queue.put(
            EnrichedRecord(
                term=term,
                url=hit.url,
                description=hit.description,
                meta_tags=meta_tags,
            )
        )
        with self._lock:
            self.enriched += 1
