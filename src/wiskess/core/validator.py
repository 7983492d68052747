"""
Wisker output validation.

After the wisker stage, checks that every tool which had input artefacts
left its expected output behind. Missing outputs are reported as gaps; the
run carries on regardless.
"""

from __future__ import annotations

import logging
from pathlib import Path

from wiskess.core.runlog import LogSink, NullLog
from wiskess.core.templates import expected_output, input_paths
from wiskess.models.artefacts import ResolvedArtefactPath
from wiskess.models.pipeline import InvocationTemplate, RunContext, ValidationGap

logger = logging.getLogger(__name__)


def output_present(path: Path) -> bool:
    """A file, or a directory with at least one entry."""
    if path.is_file():
        return True
    if path.is_dir():
        return any(path.iterdir())
    return False


class OutputValidator:
    """Report wisker inputs that produced no output."""
    
    def validate(
        self,
        wisker_stage: list[InvocationTemplate],
        ctx: RunContext,
        resolved: dict[str, ResolvedArtefactPath],
        log: LogSink | None = None,
    ) -> list[ValidationGap]:
        """
        Compare expected wisker outputs against the output root.
        
        Tools bound to a category with no resolved paths are skipped: there
        was nothing for them to process.
        
        Returns:
            One gap per input path whose tool output is missing
        """
        log = log or NullLog()
        gaps: list[ValidationGap] = []
        
        for template in wisker_stage:
            inputs = input_paths(template, resolved)
            if not inputs:
                continue
            
            expected = expected_output(template, ctx)
            if output_present(expected):
                continue
            
            for input_path in inputs:
                gap = ValidationGap(
                    category=template.input,
                    tool=template.name,
                    input_path=input_path,
                    expected_output=expected,
                )
                gaps.append(gap)
                logger.warning(f"No output from {template.name} for {input_path}")
                log.write(
                    f"VALIDATION {template.name}: input {input_path} has no output at {expected}"
                )
        
        if not gaps:
            log.write("Validation complete: all wisker outputs present")
        
        return gaps
