"""
Data models for artefacts, pipeline configuration and run results.
"""

from wiskess.models.artefacts import (
    ArtefactCategory,
    ResolutionStatus,
    ResolvedArtefactPath,
)
from wiskess.models.pipeline import (
    PLACEHOLDERS,
    InvocationCommand,
    InvocationResult,
    InvocationTemplate,
    RunContext,
    RunSummary,
    Stage,
    Tier,
    ValidationGap,
)

__all__ = [
    # Artefacts
    "ArtefactCategory",
    "ResolutionStatus",
    "ResolvedArtefactPath",
    # Pipeline
    "PLACEHOLDERS",
    "InvocationCommand",
    "InvocationResult",
    "InvocationTemplate",
    "RunContext",
    "RunSummary",
    "Stage",
    "Tier",
    "ValidationGap",
]
