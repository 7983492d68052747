"""
Data models for artefact categories and their resolved locations.

An artefact category is declared once in the pipeline configuration and
matched against the evidence root by the resolver. The resolved paths are
what every stage substitutes into its tool invocations.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ResolutionStatus(str, Enum):
    """Outcome of matching a category against the evidence root."""
    
    FOUND = "found"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"


class ArtefactCategory(BaseModel):
    """
    A logical category of forensic artefacts.
    
    The path is relative to the evidence root and may be a plain file or
    directory path, or a glob pattern (``*``, ``?``, ``[...]``, ``**``).
    Windows separators are normalised to ``/``.
    """
    
    model_config = ConfigDict(frozen=True, extra="forbid")
    
    name: str = Field(min_length=1, description="Category name referenced by tool inputs")
    path: str = Field(min_length=1, description="Relative path or glob under the evidence root")
    required: bool = Field(default=False, description="Abort the run if nothing matches")
    
    @field_validator("path")
    @classmethod
    def _relative_path(cls, value: str) -> str:
        normalised = value.replace("\\", "/")
        pure = PurePosixPath(normalised)
        if pure.is_absolute() or (len(normalised) > 1 and normalised[1] == ":"):
            raise ValueError(f"artefact path must be relative to the evidence root: {value}")
        if ".." in pure.parts:
            raise ValueError(f"artefact path must not leave the evidence root: {value}")
        return normalised
    
    @property
    def is_pattern(self) -> bool:
        """Whether the path contains glob metacharacters."""
        return any(char in self.path for char in "*?[")


class ResolvedArtefactPath(BaseModel):
    """Concrete paths matched for one artefact category."""
    
    model_config = ConfigDict(frozen=True)
    
    category: str
    paths: tuple[Path, ...] = ()
    status: ResolutionStatus = ResolutionStatus.NOT_FOUND
    
    @property
    def found(self) -> bool:
        """Whether at least one path matched."""
        return bool(self.paths)
    
    @classmethod
    def from_matches(cls, category: str, matches: list[Path]) -> "ResolvedArtefactPath":
        """Build a resolved entry from raw matches, sorted lexically."""
        paths = tuple(sorted(set(matches), key=str))
        
        if not paths:
            status = ResolutionStatus.NOT_FOUND
        elif len(paths) == 1:
            status = ResolutionStatus.FOUND
        else:
            status = ResolutionStatus.AMBIGUOUS
        
        return cls(category=category, paths=paths, status=status)
