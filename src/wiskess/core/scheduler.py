"""
Tiered execution of one pipeline stage.

Tier 0 tools run concurrently, one OS process each. Once every tier 0
process has exited, tier 1 tools run one at a time in declaration order.
A failing tool is logged and recorded; it never stops the stage.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone

from wiskess.core.runlog import LogSink, NullLog
from wiskess.core.templates import build_command, input_paths, output_path, resolve_binary
from wiskess.errors import InvocationFailure
from wiskess.integrations.process import Invoker, ProcessOutcome
from wiskess.models.artefacts import ResolvedArtefactPath
from wiskess.models.pipeline import InvocationResult, InvocationTemplate, RunContext, Tier

logger = logging.getLogger(__name__)


def partition_by_tier(
    templates: list[InvocationTemplate],
) -> tuple[list[InvocationTemplate], list[InvocationTemplate]]:
    """Split templates into (concurrent, sequential), keeping declaration order."""
    concurrent = [t for t in templates if t.tier == Tier.CONCURRENT]
    sequential = [t for t in templates if t.tier == Tier.SEQUENTIAL]
    return concurrent, sequential


class TieredExecutionScheduler:
    """
    Run the tools of one stage in two tiers.

    The scheduler blocks twice per stage: once until the whole concurrent
    batch has drained, and once per sequential tool.

    Example:
        ```python
        scheduler = TieredExecutionScheduler(SubprocessInvoker())
        results = scheduler.run(config.wiskers, ctx, resolved, log)
        ```
    """

    def __init__(self, invoker: Invoker):
        self.invoker = invoker

    def run(
        self,
        templates: list[InvocationTemplate],
        ctx: RunContext,
        resolved: dict[str, ResolvedArtefactPath],
        log: LogSink | None = None,
    ) -> list[InvocationResult]:
        """
        Execute a stage.

        Args:
            templates: The stage's tools in declaration order
            ctx: Run-wide parameters
            resolved: Resolved artefact paths by category
            log: Run log sink

        Returns:
            Tier 0 results in completion order, then tier 1 results in
            declaration order
        """
        log = log or NullLog()
        concurrent, sequential = partition_by_tier(templates)
        results: list[InvocationResult] = []

        if concurrent:
            logger.info(f"Running {len(concurrent)} tool(s) concurrently")
            results.extend(self._run_concurrent(concurrent, ctx, resolved, log))

        for template in sequential:
            logger.info(f"Running {template.name}")
            results.append(self._run_one(template, ctx, resolved, log))

        return results

    def _run_concurrent(
        self,
        templates: list[InvocationTemplate],
        ctx: RunContext,
        resolved: dict[str, ResolvedArtefactPath],
        log: LogSink,
    ) -> list[InvocationResult]:
        """Launch every template at once and wait for all of them."""
        results: list[InvocationResult] = []
        pool = ThreadPoolExecutor(max_workers=len(templates), thread_name_prefix="wiskess-tier0")

        # Not a with-block: an interrupt must not wait for running tools.
        try:
            futures = [
                pool.submit(self._run_one, template, ctx, resolved, log)
                for template in templates
            ]
            for future in as_completed(futures):
                results.append(future.result())
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        return results

    def _run_one(
        self,
        template: InvocationTemplate,
        ctx: RunContext,
        resolved: dict[str, ResolvedArtefactPath],
        log: LogSink,
    ) -> InvocationResult:
        """Run a single tool and record what happened."""
        started_at = datetime.now(timezone.utc)
        start = time.perf_counter()
        outcome: ProcessOutcome | None = None
        error: str | None = None

        try:
            command = build_command(template, ctx, resolved)
        except ValueError as e:
            command = None
            error = f"Could not parse arguments: {e}"

        if command is None:
            log.write(f"Running {template.name}: {template.binary} {template.args}", started_at)
        else:
            log.write(f"Running {template.name}: {command.command_line}", started_at)
            try:
                outcome = self.invoker.invoke(command)
            except InvocationFailure as e:
                error = str(e)

        finished_at = datetime.now(timezone.utc)
        elapsed = time.perf_counter() - start

        if outcome is not None:
            self._forward_output(template.name, outcome, log)

        result = InvocationResult(
            name=template.name,
            binary=command.binary if command else resolve_binary(template.binary, ctx.tool_path),
            tier=template.tier,
            argv=command.argv if command else (),
            exit_code=outcome.exit_code if outcome else None,
            started_at=started_at,
            finished_at=finished_at,
            elapsed=elapsed,
            stdout=outcome.stdout if outcome else "",
            stderr=outcome.stderr if outcome else "",
            input_paths=input_paths(template, resolved),
            output_path=output_path(template, ctx),
            error=error,
        )

        if result.error:
            logger.warning(f"{template.name} failed: {result.error}")
            log.write(f"WARNING {template.name} failed after {elapsed:.2f}s: {result.error}", finished_at)
        elif not result.succeeded:
            logger.warning(f"{template.name} exited with status {result.exit_code}")
            log.write(
                f"WARNING {template.name} exited with status {result.exit_code} in {elapsed:.2f}s",
                finished_at,
            )
        else:
            logger.info(f"Finished {template.name} ({elapsed:.2f}s)")
            log.write(f"Finished {template.name} with status 0 in {elapsed:.2f}s", finished_at)

        return result

    @staticmethod
    def _forward_output(name: str, outcome: ProcessOutcome, log: LogSink) -> None:
        for stream in (outcome.stdout, outcome.stderr):
            for line in stream.splitlines():
                if line.strip():
                    log.write(f"[{name}] {line}")
