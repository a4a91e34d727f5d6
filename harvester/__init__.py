"""meta-harvest — search, enrich with page metadata, persist per term."""

__version__ = "0.1.0"
