"""Centralised settings for the meta-harvest pipeline.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

:func:`build_config` turns raw CLI / env values into a validated
:class:`~harvester.pipeline.models.PipelineConfig`; the pipeline itself never
re-validates what it receives.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from dotenv import load_dotenv

from harvester.errors import ConfigurationError

if TYPE_CHECKING:
    from harvester.pipeline.models import PipelineConfig

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

_TERM_SEPARATOR = re.compile(r"\s*,\s*")

DEFAULT_TERMS = ("clojure", "scala")


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Search API account
    # ------------------------------------------------------------------
    yandex_user: str = field(
        default_factory=lambda: os.environ.get("YANDEX_USER", "")
    )
    yandex_api_key: str = field(
        default_factory=lambda: os.environ.get("YANDEX_API_KEY", "")
    )

    # ------------------------------------------------------------------
    # Search request shape
    # ------------------------------------------------------------------
    search_url: str = field(
        default_factory=lambda: os.environ.get(
            "SEARCH_API_URL", "https://yandex.ru/search/xml"
        )
    )
    search_l10n: str = field(
        default_factory=lambda: os.environ.get("SEARCH_L10N", "ru")
    )
    groups_on_page: int = field(
        default_factory=lambda: int(os.environ.get("SEARCH_GROUPS_ON_PAGE", "60"))
    )
    docs_in_group: int = field(
        default_factory=lambda: int(os.environ.get("SEARCH_DOCS_IN_GROUP", "1"))
    )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    search_workers: int = field(
        default_factory=lambda: int(os.environ.get("SEARCH_WORKERS", "4"))
    )
    output_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("OUTPUT_DIR", "./search_results"))
    )

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "HARVEST_USER_AGENT",
            "Mozilla/5.0 (compatible; meta-harvest/1.0)",
        )
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )

    def masked(self) -> dict[str, str]:
        """Return the settings as display strings, with the API key hidden."""
        key = self.yandex_api_key
        return {
            "yandex_user": self.yandex_user or "(unset)",
            "yandex_api_key": f"{key[:4]}…" if key else "(unset)",
            "search_url": self.search_url,
            "search_l10n": self.search_l10n,
            "groups_on_page": str(self.groups_on_page),
            "docs_in_group": str(self.docs_in_group),
            "search_workers": str(self.search_workers),
            "output_dir": str(self.output_dir),
            "request_timeout": str(self.request_timeout),
            "log_level": self.log_level,
        }


def split_terms(text: str) -> list[str]:
    """Split a comma-separated term list, dropping empty items.

    ``"clojure, scala,, go"`` → ``["clojure", "scala", "go"]``.
    """
    return [t for t in _TERM_SEPARATOR.split(text.strip()) if t]


def build_config(
    *,
    user: str | None,
    api_key: str | None,
    workers: int,
    output_dir: Path | str,
    terms: Iterable[str],
) -> PipelineConfig:
    """Validate raw option values and return a :class:`PipelineConfig`.

    Every problem found is reported at once, joined with ``"; "``.

    Raises:
        ConfigurationError: If credentials are missing, the pool width is not
            positive, or no non-empty search term remains.
    """
    # Imported lazily: the pipeline and search packages import ``settings``.
    from harvester.pipeline.models import PipelineConfig  # noqa: PLC0415
    from harvester.search.models import Credentials  # noqa: PLC0415

    problems: list[str] = []
    if not user:
        problems.append("api user name shouldn't be empty")
    if not api_key:
        problems.append("api key shouldn't be empty")
    if workers < 1:
        problems.append("number of requests should be positive")
    cleaned = tuple(t.strip() for t in terms if t and t.strip())
    if not cleaned:
        problems.append("search terms shouldn't be empty")

    if problems:
        raise ConfigurationError("; ".join(problems))

    return PipelineConfig(
        credentials=Credentials(user=user, api_key=api_key),  # type: ignore[arg-type]
        workers=workers,
        output_dir=Path(output_dir),
        terms=cleaned,
    )


# Module-level singleton — import this everywhere:
#   from harvester.config import settings
settings = Settings()
