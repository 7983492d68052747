# Wiskess - Source Package
"""
Wiskess - forensic artefact processing pipeline.

Resolves artefact categories inside a data source, runs external
"wisker", "enricher" and "reporter" tools against them in concurrent and
sequential tiers, and validates that every wisker produced output.
"""

__version__ = "0.1.0"

from wiskess.config import PipelineConfig
from wiskess.core.orchestrator import WiskessPipeline
from wiskess.models.pipeline import RunContext, RunSummary, Stage, Tier

__all__ = [
    "PipelineConfig",
    "WiskessPipeline",
    "RunContext",
    "RunSummary",
    "Stage",
    "Tier",
]
