"""
Placeholder substitution for tool invocations.

Both the scheduler and the output validator compute a tool's output
location here, so the path a tool is told to write to is the path that is
checked afterwards.
"""

from __future__ import annotations

import shlex
import shutil
from pathlib import Path

from wiskess.models.artefacts import ResolvedArtefactPath
from wiskess.models.pipeline import InvocationCommand, InvocationTemplate, RunContext


def quote_path(path: Path | str) -> str:
    """Shell-quote a path so splitting the rendered arguments restores it as one token."""
    return shlex.quote(str(path))


def input_paths(
    template: InvocationTemplate,
    resolved: dict[str, ResolvedArtefactPath],
) -> tuple[Path, ...]:
    """Resolved paths of the template's bound category, or none."""
    if not template.input or template.input not in resolved:
        return ()
    return resolved[template.input].paths


def output_path(template: InvocationTemplate, ctx: RunContext) -> Path:
    """The ``{output}`` value: output root joined with the tool name."""
    return ctx.output_root / template.name


def expected_output(template: InvocationTemplate, ctx: RunContext) -> Path:
    """Where the tool's result should exist after it ran."""
    if template.outfile:
        return output_path(template, ctx) / template.outfile
    return output_path(template, ctx)


def placeholder_values(
    template: InvocationTemplate,
    ctx: RunContext,
    resolved: dict[str, ResolvedArtefactPath],
) -> dict[str, str]:
    """Values for every supported placeholder."""
    return {
        "input": " ".join(quote_path(p) for p in input_paths(template, resolved)),
        "output": quote_path(output_path(template, ctx)),
        "outfile": quote_path(expected_output(template, ctx)),
        "start_date": ctx.start_date,
        "end_date": ctx.end_date,
        "ioc_file": quote_path(ctx.ioc_file) if ctx.ioc_file else "",
        "tool_path": quote_path(ctx.tool_path) if ctx.tool_path else "",
        "evidence_root": quote_path(ctx.evidence_root),
    }


def render_arguments(
    template: InvocationTemplate,
    ctx: RunContext,
    resolved: dict[str, ResolvedArtefactPath],
) -> str:
    """Substitute placeholders into the template's argument string."""
    return template.args.format_map(placeholder_values(template, ctx, resolved))


def resolve_binary(binary: str, tool_path: Path | None = None) -> str:
    """
    Locate a tool executable.

    Absolute paths are kept. Relative names are looked up in ``tool_path``
    first, then on PATH. Unknown names are returned unchanged so the launch
    failure is reported against the configured name.
    """
    if Path(binary).is_absolute():
        return binary

    if tool_path is not None:
        candidate = Path(tool_path) / binary
        if candidate.is_file():
            return str(candidate)

    return shutil.which(binary) or binary


def build_command(
    template: InvocationTemplate,
    ctx: RunContext,
    resolved: dict[str, ResolvedArtefactPath],
) -> InvocationCommand:
    """Render a template into a concrete argument vector."""
    binary = resolve_binary(template.binary, ctx.tool_path)
    arguments = shlex.split(render_arguments(template, ctx, resolved))

    return InvocationCommand(
        name=template.name,
        binary=binary,
        argv=(binary, *arguments),
        input_paths=input_paths(template, resolved),
        output_path=output_path(template, ctx),
    )
