"""meta-harvest CLI — entry-point for the search/enrich pipeline.

Usage:
    python cli/main.py --help

Commands:
    run     → search every term, enrich each hit, append to <output>/<term>.jsonl
    config  → show the effective settings (API key masked)
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from harvester.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any working directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import logging
from typing import Optional

import typer

from harvester.config import DEFAULT_TERMS, build_config, settings, split_terms
from harvester.errors import ConfigurationError
from harvester.pipeline import run_pipeline
from harvester.pipeline.models import RunSummary

app = typer.Typer(
    name="harvest",
    help="Search terms, enrich every hit with its page meta tags, save per term.",
    no_args_is_help=True,
)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s"


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=_LOG_FORMAT)


def _echo_summary(summary: RunSummary) -> None:
    typer.echo(
        f"\n--- Harvest complete ---\n"
        f"  Terms     : {summary.terms} ({summary.searches_failed} failed)\n"
        f"  Hits      : {summary.hits}\n"
        f"  Enriched  : {summary.records_enriched} ({summary.enrichments_failed} failed)\n"
        f"  Written   : {summary.records_written} ({summary.writes_failed} failed)"
    )
    for term, count in sorted(summary.records_per_term.items()):
        typer.echo(f"    {term}: {count}")


@app.command("run")
def run(
    username: Optional[str] = typer.Option(
        None, "--username", "-u", help="Search API user name [env: YANDEX_USER]."
    ),
    api_key: Optional[str] = typer.Option(
        None, "--api-key", "-k", help="Search API key [env: YANDEX_API_KEY]."
    ),
    requests: Optional[int] = typer.Option(
        None, "--requests", "-r", help="Max simultaneous search requests [env: SEARCH_WORKERS]."
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output folder [env: OUTPUT_DIR]."
    ),
    words: str = typer.Option(
        ", ".join(DEFAULT_TERMS), "--words", "-w", help="Search terms, comma separated."
    ),
) -> None:
    """Run the search → enrich → save pipeline once over every term."""
    _configure_logging(settings.log_level)
    try:
        config = build_config(
            user=username or settings.yandex_user,
            api_key=api_key or settings.yandex_api_key,
            workers=requests if requests is not None else settings.search_workers,
            output_dir=output or settings.output_dir,
            terms=split_terms(words),
        )
    except ConfigurationError as exc:
        typer.echo(f"[harvest] invalid configuration: {exc}", err=True)
        raise typer.Exit(code=2)

    summary = run_pipeline(config)
    _echo_summary(summary)


@app.command("config")
def show_config() -> None:
    """Print the effective settings."""
    for key, value in settings.masked().items():
        typer.echo(f"{key:<16} {value}")


if __name__ == "__main__":
    app()
