"""
Artefact path resolution.

Maps the artefact categories declared in configuration onto concrete,
existing paths inside an evidence root (a mounted image or a collection
folder).
"""

from __future__ import annotations

import logging
from pathlib import Path

from wiskess.core.runlog import LogSink, NullLog
from wiskess.errors import ConfigurationError, MissingEvidenceRoot
from wiskess.models.artefacts import ArtefactCategory, ResolutionStatus, ResolvedArtefactPath

logger = logging.getLogger(__name__)


class ArtefactPathResolver:
    """
    Resolve artefact categories against an evidence root.

    Categories with no match are kept as empty entries so that templates
    bound to them render an empty ``{input}`` instead of disappearing.
    Required categories with no match abort the run before any tool is
    launched.

    Example:
        ```python
        resolver = ArtefactPathResolver()
        resolved = resolver.resolve(config.artefacts, Path("/mnt/evidence"))
        resolved["logs"].paths
        ```
    """

    def __init__(self, log: LogSink | None = None):
        self.log = log or NullLog()

    def resolve(
        self,
        categories: list[ArtefactCategory],
        evidence_root: str | Path,
    ) -> dict[str, ResolvedArtefactPath]:
        """
        Resolve every category.

        Args:
            categories: Declared artefact categories
            evidence_root: Folder holding the evidence

        Returns:
            Mapping of category name to resolved paths, in declaration order

        Raises:
            MissingEvidenceRoot: If the evidence root is not a directory
            ConfigurationError: If any required category matched nothing
        """
        root = Path(evidence_root)
        if not root.is_dir():
            raise MissingEvidenceRoot(evidence_root)
        root = root.resolve()

        resolved: dict[str, ResolvedArtefactPath] = {}
        for category in categories:
            entry = ResolvedArtefactPath.from_matches(category.name, self._match(category, root))
            resolved[category.name] = entry
            self._report(category, entry)

        missing = [
            category.name
            for category in categories
            if category.required and not resolved[category.name].found
        ]
        if missing:
            raise ConfigurationError(
                f"Required artefact(s) not found under {root}: {', '.join(missing)}"
            )

        return resolved

    def _match(self, category: ArtefactCategory, root: Path) -> list[Path]:
        """Collect the paths a category's pattern matches under root."""
        if category.is_pattern:
            return list(root.glob(category.path))

        candidate = root / category.path
        return [candidate] if candidate.exists() else []

    def _report(self, category: ArtefactCategory, entry: ResolvedArtefactPath) -> None:
        if entry.status == ResolutionStatus.NOT_FOUND:
            message = f"Artefact '{category.name}' not found: {category.path}"
            logger.warning(message)
            self.log.write(message)
        elif entry.status == ResolutionStatus.AMBIGUOUS:
            logger.info(f"Artefact '{category.name}' matched {len(entry.paths)} paths")
            self.log.write(f"Artefact '{category.name}' matched {len(entry.paths)} paths: {category.path}")
        else:
            logger.debug(f"Artefact '{category.name}' found: {entry.paths[0]}")
            self.log.write(f"Artefact '{category.name}' found: {entry.paths[0]}")
