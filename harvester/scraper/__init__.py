"""Scraper package — page fetch & meta-tag extraction."""

from harvester.scraper.extractor import extract_meta_tags
from harvester.scraper.fetcher import fetch_meta_tags, fetch_url
from harvester.scraper.models import RawPage

__all__ = ["fetch_url", "fetch_meta_tags", "extract_meta_tags", "RawPage"]
