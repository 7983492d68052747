"""
Configuration management for Wiskess.

Loads the pipeline configuration (artefact categories plus the wisker,
enricher and reporter tool lists) from YAML and validates run dates.
"""

from __future__ import annotations

import logging
import os
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import yaml
from dateutil import parser as date_parser
from pydantic import ValidationError

from wiskess.errors import ConfigurationError
from wiskess.models.artefacts import ArtefactCategory
from wiskess.models.pipeline import InvocationTemplate, Stage

logger = logging.getLogger(__name__)

# ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


@dataclass
class PipelineConfig:
    """Artefact categories and the tool lists of the three stages."""

    artefacts: list[ArtefactCategory] = field(default_factory=list)
    wiskers: list[InvocationTemplate] = field(default_factory=list)
    enrichers: list[InvocationTemplate] = field(default_factory=list)
    reporters: list[InvocationTemplate] = field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "PipelineConfig":
        """
        Load configuration from a YAML file.

        Args:
            path: Path to the configuration file

        Returns:
            Validated PipelineConfig

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        path = Path(path)
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config file must be a YAML mapping, got {type(data).__name__}"
            )

        logger.debug(f"Loaded pipeline config from {path}")
        return cls.from_dict(expand_env_vars(data))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PipelineConfig":
        """Build and validate configuration from a plain dictionary."""
        unknown = set(data) - {"artefacts", *(stage.value for stage in Stage)}
        if unknown:
            raise ConfigurationError(f"Unknown config section(s): {', '.join(sorted(unknown))}")

        artefacts = [
            _build(ArtefactCategory, entry, f"artefacts[{i}]")
            for i, entry in enumerate(_section(data, "artefacts"))
        ]
        _check_unique([a.name for a in artefacts], "artefact")

        stages: dict[str, list[InvocationTemplate]] = {}
        for stage in Stage:
            templates = [
                _build(InvocationTemplate, entry, f"{stage.value}[{i}]")
                for i, entry in enumerate(_section(data, stage.value))
            ]
            _check_unique([t.name for t in templates], f"{stage.value} tool")
            stages[stage.value] = templates

        config = cls(artefacts=artefacts, **stages)
        config._warn_unbound_inputs()
        return config

    def templates_for(self, stage: Stage) -> list[InvocationTemplate]:
        """Get the tool list of a stage."""
        return getattr(self, stage.value)

    def _warn_unbound_inputs(self) -> None:
        """Log tools whose input category is not declared."""
        declared = {a.name for a in self.artefacts}
        for stage in Stage:
            for template in self.templates_for(stage):
                if template.input and template.input not in declared:
                    logger.warning(
                        f"{stage.value} tool '{template.name}' uses undeclared "
                        f"artefact category '{template.input}'; {{input}} will be empty"
                    )


def _section(data: dict[str, Any], key: str) -> list[Any]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise ConfigurationError(f"Config section '{key}' must be a list")
    return value


def _build(model: type, entry: Any, where: str) -> Any:
    if not isinstance(entry, dict):
        raise ConfigurationError(f"{where}: expected a mapping, got {type(entry).__name__}")
    try:
        return model(**entry)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'entry'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"{where}: {problems}") from e


def _check_unique(names: list[str], kind: str) -> None:
    duplicates = sorted(name for name, count in Counter(names).items() if count > 1)
    if duplicates:
        raise ConfigurationError(f"Duplicate {kind} name(s): {', '.join(duplicates)}")


def expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR} and ${VAR:-default} in string values."""
    if isinstance(data, dict):
        return {k: expand_env_vars(v) for k, v in data.items()}
    if isinstance(data, list):
        return [expand_env_vars(item) for item in data]
    if isinstance(data, str):
        return ENV_VAR_PATTERN.sub(_env_var_replacer, data)
    return data


def _env_var_replacer(match: re.Match[str]) -> str:
    var_name, default_value = match.group(1), match.group(2)

    value = os.environ.get(var_name)
    if value is not None:
        return value
    if default_value is not None:
        return default_value

    logger.warning(f"Environment variable ${var_name} is not set and has no default")
    return ""


def check_date(value: str, label: str = "date") -> str:
    """
    Validate a calendar date and normalise it to ISO-8601 (YYYY-MM-DD).

    Args:
        value: Date as given by the user (any format dateutil understands)
        label: Name used in the error message, e.g. "start date"

    Raises:
        ConfigurationError: If the value is not a parseable date
    """
    if isinstance(value, date):
        return value.isoformat()[:10]
    try:
        return date_parser.parse(str(value)).date().isoformat()
    except (ValueError, OverflowError) as e:
        raise ConfigurationError(f"Invalid {label} '{value}': {e}") from e


def check_date_range(start_date: str, end_date: str) -> tuple[str, str]:
    """Validate both dates and ensure start is not after end."""
    start = check_date(start_date, "start date")
    end = check_date(end_date, "end date")

    if start > end:
        raise ConfigurationError(f"Start date {start} is after end date {end}")

    return start, end
