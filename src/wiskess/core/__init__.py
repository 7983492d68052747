"""
Core modules for artefact resolution, tool scheduling and output validation.
"""

from wiskess.core.orchestrator import WiskessPipeline
from wiskess.core.resolver import ArtefactPathResolver
from wiskess.core.runlog import LogSink, NullLog, RunLog
from wiskess.core.scheduler import TieredExecutionScheduler
from wiskess.core.validator import OutputValidator

__all__ = [
    "WiskessPipeline",
    "ArtefactPathResolver",
    "LogSink",
    "NullLog",
    "RunLog",
    "TieredExecutionScheduler",
    "OutputValidator",
]
