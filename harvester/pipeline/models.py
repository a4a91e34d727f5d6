"""Data models shared by the dispatch, enrichment and aggregation stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from harvester.search.models import Credentials, SearchResult


@dataclass(frozen=True)
class PipelineConfig:
    """Validated run configuration; see :func:`harvester.config.build_config`."""

    credentials: Credentials
    workers: int
    output_dir: Path
    terms: Tuple[str, ...]


@dataclass(frozen=True)
class EnrichedRecord:
    """One search hit together with the meta tags of the page it points to."""

    term: str
    url: str
    description: str
    meta_tags: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Return the persisted shape; the term is implied by the file name."""
        return {
            "url": self.url,
            "description": self.description,
            "meta_tags": dict(self.meta_tags),
        }


@dataclass(frozen=True)
class SearchOutcome:
    """Result of one worker iteration: exactly one of *result* / *error* is set."""

    term: str
    result: Optional[SearchResult] = None
    error: Optional[BaseException] = None


@dataclass
class WorkerReport:
    """What one dispatcher slot did with the terms assigned to it."""

    slot: int
    terms: List[str] = field(default_factory=list)
    succeeded: int = 0
    failed: int = 0
    hits: int = 0


@dataclass
class RunSummary:
    """Counters reported once the whole pipeline has completed."""

    terms: int = 0
    searches_failed: int = 0
    hits: int = 0
    records_enriched: int = 0
    enrichments_failed: int = 0
    records_written: int = 0
    writes_failed: int = 0
    records_per_term: Dict[str, int] = field(default_factory=dict)
    workers: List[WorkerReport] = field(default_factory=list)

    @property
    def searches_succeeded(self) -> int:
        return self.terms - self.searches_failed
