"""
Tests for artefact path resolution.
"""

import pytest
from pathlib import Path

from wiskess.core.resolver import ArtefactPathResolver
from wiskess.errors import ConfigurationError, MissingEvidenceRoot
from wiskess.models.artefacts import ArtefactCategory, ResolutionStatus


class TestArtefactPathResolver:
    """Tests for ArtefactPathResolver."""
    
    @pytest.fixture
    def resolver(self, recording_log):
        return ArtefactPathResolver(recording_log)
    
    def test_missing_evidence_root(self, resolver, tmp_path):
        """A missing evidence root aborts resolution."""
        with pytest.raises(MissingEvidenceRoot):
            resolver.resolve([ArtefactCategory(name="logs", path="logs")], tmp_path / "nope")
    
    def test_evidence_root_is_a_file(self, resolver, tmp_path):
        """The evidence root must be a directory."""
        image = tmp_path / "disk.E01"
        image.write_bytes(b"EVF")
        
        with pytest.raises(MissingEvidenceRoot):
            resolver.resolve([], image)
    
    def test_single_file(self, resolver, evidence_root):
        """A plain path that exists is found."""
        resolved = resolver.resolve(
            [ArtefactCategory(name="logs", path="logs/app.log")], evidence_root
        )
        
        entry = resolved["logs"]
        assert entry.status == ResolutionStatus.FOUND
        assert entry.paths == (evidence_root.resolve() / "logs" / "app.log",)
    
    def test_directory(self, resolver, evidence_root):
        """Categories may point at a directory."""
        resolved = resolver.resolve(
            [ArtefactCategory(name="registry", path="registry")], evidence_root
        )
        
        assert resolved["registry"].paths == (evidence_root.resolve() / "registry",)
    
    def test_glob_sorted_under_root(self, resolver, evidence_root):
        """Glob matches are absolute, under the root and lexically sorted."""
        for name in ["zeta.log", "alpha.log", "mid.log"]:
            (evidence_root / "logs" / name).write_text("x")
        
        resolved = resolver.resolve(
            [ArtefactCategory(name="logs", path="logs/*.log")], evidence_root
        )
        
        entry = resolved["logs"]
        root = evidence_root.resolve()
        assert entry.status == ResolutionStatus.AMBIGUOUS
        assert [p.name for p in entry.paths] == ["alpha.log", "app.log", "mid.log", "zeta.log"]
        assert [str(p) for p in entry.paths] == sorted(str(p) for p in entry.paths)
        assert all(p.is_absolute() and p.is_relative_to(root) for p in entry.paths)
    
    def test_recursive_glob(self, resolver, evidence_root):
        """Double-star patterns search subfolders."""
        nested = evidence_root / "Users" / "alice" / "AppData"
        nested.mkdir(parents=True)
        (nested / "History").write_text("x")
        
        resolved = resolver.resolve(
            [ArtefactCategory(name="history", path="Users/**/History")], evidence_root
        )
        
        assert resolved["history"].paths == (nested.resolve() / "History",)
    
    def test_not_found_kept_empty(self, resolver, evidence_root, recording_log):
        """Missing categories stay in the map with no paths."""
        resolved = resolver.resolve(
            [
                ArtefactCategory(name="logs", path="logs/app.log"),
                ArtefactCategory(name="prefetch", path="Windows/Prefetch/*.pf"),
            ],
            evidence_root,
        )
        
        assert list(resolved) == ["logs", "prefetch"]
        assert resolved["prefetch"].paths == ()
        assert resolved["prefetch"].status == ResolutionStatus.NOT_FOUND
        assert recording_log.matching("'prefetch' not found")
    
    def test_not_found_logged_as_warning(self, resolver, evidence_root, caplog):
        """Missing categories are logged as warnings."""
        resolver.resolve([ArtefactCategory(name="mft", path="$MFT")], evidence_root)
        
        assert any(r.levelname == "WARNING" and "mft" in r.getMessage() for r in caplog.records)
    
    def test_required_missing(self, resolver, evidence_root):
        """Required categories with no match are configuration errors."""
        categories = [
            ArtefactCategory(name="mft", path="$MFT", required=True),
            ArtefactCategory(name="amcache", path="Amcache.hve", required=True),
            ArtefactCategory(name="logs", path="logs/app.log", required=True),
        ]
        
        with pytest.raises(ConfigurationError, match="mft, amcache"):
            resolver.resolve(categories, evidence_root)
    
    def test_required_found(self, resolver, evidence_root):
        """Required categories that exist resolve normally."""
        resolved = resolver.resolve(
            [ArtefactCategory(name="hive", path="registry/hive.dat", required=True)],
            evidence_root,
        )
        
        assert resolved["hive"].found
    
    def test_no_categories(self, resolver, evidence_root):
        assert resolver.resolve([], evidence_root) == {}
    
    def test_accepts_string_root(self, evidence_root):
        """Evidence roots may be given as strings."""
        resolved = ArtefactPathResolver().resolve(
            [ArtefactCategory(name="logs", path="logs/app.log")], str(evidence_root)
        )
        
        assert resolved["logs"].found
