"""
CLI interface for Wiskess.

Provides commands to run the wisker, enricher and reporter pipeline over a
data source, preview artefact resolution, and check that configured tool
binaries are installed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from wiskess import __version__
from wiskess.config import PipelineConfig, check_date_range
from wiskess.core.orchestrator import WiskessPipeline
from wiskess.core.resolver import ArtefactPathResolver
from wiskess.core.runlog import RunLog
from wiskess.core.templates import resolve_binary
from wiskess.errors import ConfigurationError, MissingEvidenceRoot
from wiskess.exit_codes import (
    EXIT_CONFIG_ERROR,
    EXIT_INTERRUPTED,
    EXIT_MISSING_EVIDENCE,
    EXIT_SUCCESS,
    EXIT_VALIDATION_GAPS,
)
from wiskess.integrations.process import SubprocessInvoker
from wiskess.models.pipeline import RunContext, RunSummary, Stage

# Setup console
console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(ctx: click.Context, config_path: str) -> PipelineConfig:
    try:
        return PipelineConfig.from_yaml(config_path)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        ctx.exit(EXIT_CONFIG_ERROR)


@click.group()
@click.version_option(version=__version__, prog_name="wiskess")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option(
    "-t", "--tool-path",
    type=click.Path(file_okay=False),
    envvar="WISKESS_TOOL_PATH",
    help="Folder holding the tool binaries (default: ./tools)",
)
@click.option("-s", "--silent", is_flag=True, help="Silent mode, no user input")
@click.pass_context
def main(ctx: click.Context, verbose: bool, tool_path: str | None, silent: bool) -> None:
    """
    Wiskess - forensic artefact processing pipeline.

    Resolves artefacts in a data source, runs the configured wiskers,
    enrichers and reporters, and validates that every wisker produced
    output.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["tool_path"] = Path(tool_path) if tool_path else Path.cwd() / "tools"
    ctx.obj["silent"] = silent
    setup_logging(verbose)


@main.command()
@click.option(
    "-c", "--config", "config_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Config file of the artefact paths and tools to run",
)
@click.option(
    "-d", "--data-source",
    required=True,
    type=click.Path(),
    help="Data source folder; either mounted or the collection root",
)
@click.option(
    "-o", "--out-path",
    required=True,
    type=click.Path(file_okay=False),
    help="Output folder for the processed results",
)
@click.option("--start-date", required=True, help="Start of the incident timeframe")
@click.option("--end-date", required=True, help="End of the incident timeframe")
@click.option("-i", "--ioc-file", default="", help="IOC list file")
@click.option(
    "--format", "output_format",
    type=click.Choice(["summary", "json"]),
    default="summary",
    help="Output format",
)
@click.pass_context
def run(
    ctx: click.Context,
    config_path: str,
    data_source: str,
    out_path: str,
    start_date: str,
    end_date: str,
    ioc_file: str,
    output_format: str,
) -> None:
    """
    Process a data source with the configured pipeline.

    Exit status is 0 on success, 1 when wisker outputs are missing, 2 on
    configuration errors and 3 when the data source does not exist.
    """
    silent = ctx.obj["silent"]

    try:
        start_date, end_date = check_date_range(start_date, end_date)
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        ctx.exit(EXIT_CONFIG_ERROR)

    config = _load_config(ctx, config_path)

    output_root = Path(out_path).resolve()
    output_root.mkdir(parents=True, exist_ok=True)

    started_at = datetime.now(timezone.utc)
    log_path = RunLog.default_path(output_root, started_at)
    if log_path.exists() and not silent:
        click.confirm(f"Log file {log_path} already exists. Overwrite?", abort=True)
    log = RunLog(log_path, overwrite=True)

    run_context = RunContext(
        evidence_root=Path(data_source),
        output_root=output_root,
        start_date=start_date,
        end_date=end_date,
        ioc_file=ioc_file,
        tool_path=ctx.obj["tool_path"],
        silent=silent,
    )

    console.print(f"\n[bold]Data source:[/bold] {data_source}")
    console.print(f"[bold]Output:[/bold] {output_root}")
    console.print(f"[bold]Log:[/bold] {log_path}\n")

    invoker = SubprocessInvoker()
    pipeline = WiskessPipeline(config, invoker=invoker, log=log)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            disable=output_format == "json",
        ) as progress:
            task = progress.add_task("Running pipeline...", total=None)
            summary = pipeline.run(run_context)
            progress.update(task, description="Pipeline complete!")
    except MissingEvidenceRoot as e:
        console.print(f"[red]Error:[/red] {e}")
        ctx.exit(EXIT_MISSING_EVIDENCE)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        ctx.exit(EXIT_CONFIG_ERROR)
    except KeyboardInterrupt:
        invoker.terminate()
        log.write("Interrupted by user")
        console.print("\n[yellow]Interrupted, stopping all tools[/yellow]")
        ctx.exit(EXIT_INTERRUPTED)

    if output_format == "json":
        console.print_json(data=summary.to_dict())
    else:
        _display_run_summary(summary)

    ctx.exit(EXIT_VALIDATION_GAPS if summary.gaps else EXIT_SUCCESS)


def _display_run_summary(summary: RunSummary) -> None:
    """Display tool results and validation gaps."""
    table = Table(title="Wiskess Run Summary")
    table.add_column("Stage", style="cyan")
    table.add_column("Tool")
    table.add_column("Tier", justify="right")
    table.add_column("Status")
    table.add_column("Elapsed", justify="right")

    for stage in Stage:
        for result in summary.results.get(stage, []):
            if result.error:
                status = "[red]launch failed[/red]"
            elif result.succeeded:
                status = "[green]ok[/green]"
            else:
                status = f"[yellow]exit {result.exit_code}[/yellow]"
            table.add_row(
                stage.value,
                result.name,
                str(int(result.tier)),
                status,
                f"{result.elapsed:.1f}s",
            )

    console.print(table)

    if summary.gaps:
        gap_table = Table(title="Missing Wisker Output")
        gap_table.add_column("Tool", style="cyan")
        gap_table.add_column("Input")
        gap_table.add_column("Expected Output")

        for gap in summary.gaps:
            gap_table.add_row(gap.tool, str(gap.input_path), str(gap.expected_output))

        console.print(gap_table)
        console.print(f"\n[yellow]{len(summary.gaps)} input(s) produced no output[/yellow]")

    if summary.failed:
        console.print(f"[yellow]{len(summary.failed)} tool(s) did not exit cleanly[/yellow]")

    console.print(f"\n[bold]Finished in:[/bold] {summary.duration} [H:M:S]")


@main.command()
@click.option(
    "-c", "--config", "config_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Config file of the artefact paths",
)
@click.option(
    "-d", "--data-source",
    required=True,
    type=click.Path(),
    help="Data source folder",
)
@click.pass_context
def artefacts(ctx: click.Context, config_path: str, data_source: str) -> None:
    """
    Show where each artefact category resolves in a data source.

    No tools are run.
    """
    config = _load_config(ctx, config_path)

    try:
        resolved = ArtefactPathResolver().resolve(config.artefacts, data_source)
    except MissingEvidenceRoot as e:
        console.print(f"[red]Error:[/red] {e}")
        ctx.exit(EXIT_MISSING_EVIDENCE)
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        ctx.exit(EXIT_CONFIG_ERROR)

    table = Table(title="Artefacts")
    table.add_column("Category", style="cyan")
    table.add_column("Status")
    table.add_column("Matches", justify="right", style="green")
    table.add_column("First Match")

    for category in config.artefacts:
        entry = resolved[category.name]
        table.add_row(
            category.name,
            entry.status.value,
            str(len(entry.paths)),
            str(entry.paths[0]) if entry.paths else "-",
        )

    console.print(table)


@main.command()
@click.option(
    "-c", "--config", "config_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Config file of the tools to check",
)
@click.pass_context
def check(ctx: click.Context, config_path: str) -> None:
    """
    Check that every configured tool binary can be found.

    Binaries are looked up in the tool path first, then on PATH.
    """
    config = _load_config(ctx, config_path)
    tool_path = ctx.obj["tool_path"]

    console.print(f"\n[bold]Tool path:[/bold] {tool_path}\n")

    table = Table(title="Tool Check")
    table.add_column("Stage", style="cyan")
    table.add_column("Tool")
    table.add_column("Binary")
    table.add_column("", width=3)

    missing = 0
    for stage in Stage:
        for template in config.templates_for(stage):
            binary = resolve_binary(template.binary, tool_path)
            found = Path(binary).is_file()
            if not found:
                missing += 1
            table.add_row(stage.value, template.name, binary, "✅" if found else "❌")

    console.print(table)

    if missing:
        console.print(f"\n[yellow]{missing} tool binary(ies) not found.[/yellow]")
        ctx.exit(EXIT_CONFIG_ERROR)

    console.print("\n[green]All tools found![/green]")


if __name__ == "__main__":
    main()
