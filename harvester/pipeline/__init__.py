"""Concurrent search → enrich → persist pipeline.

Public API::

    from harvester.pipeline import run_pipeline
    summary = run_pipeline(config)
"""

from harvester.pipeline.runner import run_pipeline

__all__ = ["run_pipeline"]
