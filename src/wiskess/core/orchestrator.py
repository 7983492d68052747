"""
Pipeline orchestration.

Sequences one Wiskess run: resolve artefacts, run the wisker, enricher and
reporter stages in that order, then validate wisker output.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from wiskess.config import PipelineConfig
from wiskess.core.resolver import ArtefactPathResolver
from wiskess.core.runlog import LOG_LINE_FORMAT, LogSink, NullLog
from wiskess.core.scheduler import TieredExecutionScheduler
from wiskess.core.validator import OutputValidator
from wiskess.integrations.process import Invoker, SubprocessInvoker
from wiskess.models.pipeline import RunContext, RunSummary, Stage

logger = logging.getLogger(__name__)


class WiskessPipeline:
    """
    Run the full three-stage pipeline for one data source.
    
    Configuration errors and a missing evidence root propagate before any
    tool is launched. Tool failures and validation gaps are collected in the
    returned RunSummary.
    
    Example:
        ```python
        pipeline = WiskessPipeline(PipelineConfig.from_yaml("config.yaml"))
        summary = pipeline.run(ctx)
        for gap in summary.gaps:
            print(gap.input_path)
        ```
    """
    
    def __init__(
        self,
        config: PipelineConfig,
        invoker: Invoker | None = None,
        log: LogSink | None = None,
    ):
        self.config = config
        self.invoker = invoker or SubprocessInvoker()
        self.log = log or NullLog()
        self.resolver = ArtefactPathResolver(self.log)
        self.scheduler = TieredExecutionScheduler(self.invoker)
        self.validator = OutputValidator()
    
    def run(self, ctx: RunContext) -> RunSummary:
        """Execute every stage and validate the wisker output."""
        started_at = datetime.now(timezone.utc)
        self.log.write(f"Starting wiskess at: {started_at.strftime(LOG_LINE_FORMAT)}", started_at)
        self.log.write(
            f"Data source: {ctx.evidence_root}, output: {ctx.output_root}, "
            f"timeframe: {ctx.start_date} to {ctx.end_date}"
        )
        
        resolved = self.resolver.resolve(self.config.artefacts, ctx.evidence_root)
        summary = RunSummary(started_at=started_at, resolved=resolved)
        
        for stage in Stage:
            templates = self.config.templates_for(stage)
            if not templates:
                logger.debug(f"No {stage.value} configured")
                continue
            
            logger.info(f"Stage: {stage.value} ({len(templates)} tool(s))")
            self.log.write(f"Stage {stage.value}: {len(templates)} tool(s)")
            summary.results[stage] = self.scheduler.run(templates, ctx, resolved, self.log)
        
        summary.gaps = self.validator.validate(self.config.wiskers, ctx, resolved, self.log)
        
        summary.finished_at = datetime.now(timezone.utc)
        self.log.write(
            f"Wiskess finished at: {summary.finished_at.strftime(LOG_LINE_FORMAT)}, "
            f"which took: {summary.duration} [H:M:S]",
            summary.finished_at,
        )
        
        return summary
