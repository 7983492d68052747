"""
Exception hierarchy for Wiskess.

Fatal errors (configuration problems, a missing evidence root) stop a run
before any external tool is launched. Invocation failures are caught per
tool by the scheduler and recorded in the run summary.
"""

from __future__ import annotations


class WiskessError(Exception):
    """Base class for all Wiskess errors."""


class ConfigurationError(WiskessError):
    """Invalid configuration, template, date or missing required artefact."""


class MissingEvidenceRoot(WiskessError):
    """The data source folder does not exist or is not a directory."""
    
    def __init__(self, evidence_root: object):
        self.evidence_root = evidence_root
        super().__init__(f"Evidence root not found: {evidence_root}")


class InvocationFailure(WiskessError):
    """An external binary could not be launched."""
    
    def __init__(self, binary: str, reason: str):
        self.binary = binary
        self.reason = reason
        super().__init__(f"Failed to launch {binary}: {reason}")
