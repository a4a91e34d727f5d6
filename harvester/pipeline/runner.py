"""High-level runner for the harvest pipeline.

``run_pipeline`` is the single public function in this module.  It wires the
three stages together around one unbounded queue:

    Dispatcher (W search workers)
        └─▶ Enricher (one thread per hit)
                └─▶ queue.Queue ─▶ Aggregator (single consumer thread)

and defines when a run is finished: every dispatch worker has returned,
every enrichment task has completed, and the aggregator has drained the
queue.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable, Optional

from harvester.pipeline.aggregator import Aggregator
from harvester.pipeline.dispatcher import Dispatcher, SearchFn
from harvester.pipeline.enricher import Enricher, MetaFetchFn
from harvester.pipeline.models import PipelineConfig, RunSummary
from harvester.scraper.fetcher import fetch_meta_tags
from harvester.search.client import SearchClient
from harvester.search.models import SearchResult

logger = logging.getLogger(__name__)


def _default_search(config: PipelineConfig) -> Callable[[str], SearchResult]:
    client = SearchClient()

    def search(term: str) -> SearchResult:
        return client.search_and_parse(term, config.credentials)

    return search


def run_pipeline(
    config: PipelineConfig,
    *,
    search: Optional[SearchFn] = None,
    fetch_meta: Optional[MetaFetchFn] = None,
) -> RunSummary:
    """Search every term in *config*, enrich each hit and persist the records.

    Args:
        config: Validated run configuration.
        search: ``term -> SearchResult``.  Defaults to a :class:`SearchClient`
            bound to ``config.credentials``.
        fetch_meta: ``url -> {name: content}``.  Defaults to
            :func:`~harvester.scraper.fetcher.fetch_meta_tags`.

    Returns:
        A :class:`RunSummary` with the counters of all three stages.
    """
    search = search or _default_search(config)
    fetch_meta = fetch_meta or fetch_meta_tags

    logger.info(
        "running search task: user=%s workers=%d output=%s terms=%s",
        config.credentials.user,
        config.workers,
        config.output_dir,
        list(config.terms),
    )

    output_queue: queue.Queue = queue.Queue()
    aggregator = Aggregator(config.output_dir, output_queue)
    enricher = Enricher(fetch_meta, output_queue)
    dispatcher = Dispatcher(search, enricher.submit, config.workers)

    sink = threading.Thread(target=aggregator.run, name="aggregator")
    sink.start()
    try:
        reports = dispatcher.run(config.terms)
    finally:
        enricher.wait()
        aggregator.stop()
        sink.join()

    summary = RunSummary(
        terms=len(config.terms),
        searches_failed=sum(r.failed for r in reports),
        hits=sum(r.hits for r in reports),
        records_enriched=enricher.enriched,
        enrichments_failed=enricher.failed,
        records_written=aggregator.written,
        writes_failed=aggregator.failed,
        records_per_term=dict(aggregator.per_term),
        workers=reports,
    )
    logger.info(
        "run complete: terms=%d failed_searches=%d hits=%d enriched=%d "
        "failed_enrichments=%d written=%d failed_writes=%d",
        summary.terms,
        summary.searches_failed,
        summary.hits,
        summary.records_enriched,
        summary.enrichments_failed,
        summary.records_written,
        summary.writes_failed,
    )
    return summary
