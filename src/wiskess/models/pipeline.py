"""
Data models for pipeline stages, tool invocations and run results.

These models describe the fixed three-stage, two-tier pipeline shape:
templates are declared per stage in configuration, rendered against a
RunContext into commands, and observed as InvocationResults.
"""

from __future__ import annotations

import shlex
from datetime import datetime
from enum import Enum, IntEnum
from pathlib import Path
from string import Formatter
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wiskess.models.artefacts import ResolvedArtefactPath


# Placeholders recognised in argument templates
PLACEHOLDERS = frozenset({
    "input",
    "output",
    "outfile",
    "start_date",
    "end_date",
    "ioc_file",
    "tool_path",
    "evidence_root",
})


class Stage(str, Enum):
    """Pipeline stages, declared in execution order."""
    
    WISKERS = "wiskers"
    ENRICHERS = "enrichers"
    REPORTERS = "reporters"


class Tier(IntEnum):
    """Concurrency class of a tool invocation."""
    
    CONCURRENT = 0
    SEQUENTIAL = 1


class InvocationTemplate(BaseModel):
    """
    A configured external tool for one stage.
    
    ``args`` is a template string; see ``PLACEHOLDERS`` for the fields it
    may reference. Literal braces are written as ``{{`` and ``}}``.
    """
    
    model_config = ConfigDict(frozen=True, extra="forbid")
    
    name: str = Field(min_length=1, description="Tool name, also its output folder name")
    binary: str = Field(min_length=1, description="Executable name or path")
    args: str = Field(default="", description="Argument template")
    tier: Tier = Field(default=Tier.CONCURRENT, description="0 = concurrent, 1 = sequential")
    input: str | None = Field(default=None, description="Bound artefact category")
    outfile: str | None = Field(default=None, description="Expected file inside the output folder")
    
    @field_validator("name")
    @classmethod
    def _plain_name(cls, value: str) -> str:
        if "/" in value or "\\" in value or value in (".", ".."):
            raise ValueError(f"tool name must not contain path separators: {value}")
        return value
    
    @field_validator("args")
    @classmethod
    def _known_placeholders(cls, value: str) -> str:
        try:
            fields = [field for _, field, _, _ in Formatter().parse(value) if field is not None]
        except ValueError as e:
            raise ValueError(f"malformed argument template {value!r}: {e}") from e
        
        unknown = sorted({field for field in fields if field not in PLACEHOLDERS})
        if unknown:
            raise ValueError(
                f"unknown placeholder(s) {', '.join(unknown)} in {value!r}; "
                f"expected one of {', '.join(sorted(PLACEHOLDERS))}"
            )
        
        # Render with plain stand-ins so conversions, format specs and
        # quoting are checked before any tool runs.
        try:
            shlex.split(value.format_map({field: field for field in PLACEHOLDERS}))
        except ValueError as e:
            raise ValueError(f"malformed argument template {value!r}: {e}") from e
        return value


class RunContext(BaseModel):
    """Run-wide parameters shared read-only by every invocation."""
    
    model_config = ConfigDict(frozen=True)
    
    evidence_root: Path
    output_root: Path
    start_date: str
    end_date: str
    ioc_file: str = ""
    tool_path: Path | None = None
    silent: bool = False


class InvocationCommand(BaseModel):
    """A template rendered into a concrete command line."""
    
    model_config = ConfigDict(frozen=True)
    
    name: str
    binary: str
    argv: tuple[str, ...]
    input_paths: tuple[Path, ...] = ()
    output_path: Path
    
    @property
    def command_line(self) -> str:
        """Shell-quoted form for logging."""
        return shlex.join(self.argv)


class InvocationResult(BaseModel):
    """Observed outcome of one tool invocation."""
    
    model_config = ConfigDict(frozen=True)
    
    name: str
    binary: str
    tier: Tier
    argv: tuple[str, ...] = ()
    exit_code: int | None = None
    started_at: datetime
    finished_at: datetime
    elapsed: float = Field(ge=0, description="Wall-clock seconds")
    stdout: str = ""
    stderr: str = ""
    input_paths: tuple[Path, ...] = ()
    output_path: Path | None = None
    error: str | None = Field(default=None, description="Launch failure message")
    
    @property
    def succeeded(self) -> bool:
        """True only when the process ran and exited with status 0."""
        return self.error is None and self.exit_code == 0


class ValidationGap(BaseModel):
    """An input artefact whose expected wisker output is missing."""
    
    model_config = ConfigDict(frozen=True)
    
    category: str
    tool: str
    input_path: Path
    expected_output: Path


class RunSummary(BaseModel):
    """Everything a completed run produced, for reporting and exit status."""
    
    started_at: datetime
    finished_at: datetime | None = None
    resolved: dict[str, ResolvedArtefactPath] = Field(default_factory=dict)
    results: dict[Stage, list[InvocationResult]] = Field(default_factory=dict)
    gaps: list[ValidationGap] = Field(default_factory=list)
    
    @property
    def invocations(self) -> list[InvocationResult]:
        """All results in stage order."""
        return [result for stage in Stage for result in self.results.get(stage, [])]
    
    @property
    def failed(self) -> list[InvocationResult]:
        """Invocations that did not exit cleanly."""
        return [result for result in self.invocations if not result.succeeded]
    
    @property
    def duration(self) -> str:
        """Run duration as HH:MM:SS."""
        if self.finished_at is None:
            return "00:00:00"
        total = int((self.finished_at - self.started_at).total_seconds())
        hours, remainder = divmod(total, 3600)
        minutes, seconds = divmod(remainder, 60)
        return f"{hours:0>2}:{minutes:0>2}:{seconds:0>2}"
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serialisable dictionary."""
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration": self.duration,
            "artefacts": {
                name: {
                    "status": entry.status.value,
                    "paths": [str(path) for path in entry.paths],
                }
                for name, entry in self.resolved.items()
            },
            "stages": {
                stage.value: [
                    {
                        "name": result.name,
                        "tier": int(result.tier),
                        "exit_code": result.exit_code,
                        "elapsed": round(result.elapsed, 3),
                        "error": result.error,
                        "output": str(result.output_path) if result.output_path else None,
                    }
                    for result in self.results.get(stage, [])
                ]
                for stage in Stage
            },
            "gaps": [
                {
                    "category": gap.category,
                    "tool": gap.tool,
                    "input": str(gap.input_path),
                    "expected_output": str(gap.expected_output),
                }
                for gap in self.gaps
            ],
        }
