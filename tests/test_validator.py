"""
Tests for wisker output validation.
"""

import pytest

from wiskess.core.validator import OutputValidator, output_present
from wiskess.models.artefacts import ResolvedArtefactPath
from wiskess.models.pipeline import InvocationTemplate


@pytest.fixture
def resolved(evidence_root):
    root = evidence_root.resolve()
    return {
        "logs": ResolvedArtefactPath.from_matches("logs", [root / "logs" / "app.log"]),
        "registry": ResolvedArtefactPath.from_matches("registry", [root / "registry" / "hive.dat"]),
        "prefetch": ResolvedArtefactPath.from_matches("prefetch", []),
    }


@pytest.fixture
def wiskers():
    return [
        InvocationTemplate(name="tool-a", binary="a", input="logs"),
        InvocationTemplate(name="tool-b", binary="b", input="registry", tier=1),
    ]


class TestOutputPresent:
    """Tests for output existence checks."""
    
    def test_file(self, tmp_path):
        path = tmp_path / "out.csv"
        path.write_text("x")
        
        assert output_present(path)
    
    def test_missing(self, tmp_path):
        assert not output_present(tmp_path / "nothing")
    
    def test_empty_directory(self, tmp_path):
        """An empty folder is not output."""
        (tmp_path / "tool").mkdir()
        
        assert not output_present(tmp_path / "tool")
    
    def test_populated_directory(self, tmp_path):
        (tmp_path / "tool").mkdir()
        (tmp_path / "tool" / "result.json").write_text("{}")
        
        assert output_present(tmp_path / "tool")


class TestOutputValidator:
    """Tests for OutputValidator."""
    
    def test_all_outputs_present(self, run_context, resolved, wiskers):
        """No gaps when every wisker produced its output."""
        for name in ("tool-a", "tool-b"):
            (run_context.output_root / name).write_text("done")
        
        assert OutputValidator().validate(wiskers, run_context, resolved) == []
    
    def test_one_missing_output(self, run_context, resolved, wiskers, recording_log):
        """Deleting one output gives exactly one gap for its input."""
        for name in ("tool-a", "tool-b"):
            (run_context.output_root / name).write_text("done")
        (run_context.output_root / "tool-b").unlink()
        
        gaps = OutputValidator().validate(wiskers, run_context, resolved, recording_log)
        
        assert len(gaps) == 1
        assert gaps[0].tool == "tool-b"
        assert gaps[0].category == "registry"
        assert gaps[0].input_path == resolved["registry"].paths[0]
        assert gaps[0].expected_output == run_context.output_root / "tool-b"
        assert len(recording_log.matching("VALIDATION")) == 1
    
    def test_empty_category_skipped(self, run_context, resolved):
        """No input, nothing to validate."""
        wiskers = [InvocationTemplate(name="pecmd", binary="PECmd", input="prefetch")]
        
        assert OutputValidator().validate(wiskers, run_context, resolved) == []
    
    def test_unbound_and_undeclared_skipped(self, run_context, resolved):
        wiskers = [
            InvocationTemplate(name="no-input", binary="x"),
            InvocationTemplate(name="undeclared", binary="y", input="amcache"),
        ]
        
        assert OutputValidator().validate(wiskers, run_context, resolved) == []
    
    def test_outfile_checked(self, run_context, resolved):
        """With an outfile, the folder alone is not enough."""
        wiskers = [InvocationTemplate(name="hayabusa", binary="h", input="logs", outfile="timeline.csv")]
        folder = run_context.output_root / "hayabusa"
        folder.mkdir()
        (folder / "other.txt").write_text("x")
        
        gaps = OutputValidator().validate(wiskers, run_context, resolved)
        
        assert [g.expected_output for g in gaps] == [folder / "timeline.csv"]
        
        (folder / "timeline.csv").write_text("x")
        assert OutputValidator().validate(wiskers, run_context, resolved) == []
    
    def test_gap_per_input_path(self, run_context, evidence_root):
        """Every input of a silent tool is reported."""
        root = evidence_root.resolve()
        resolved = {
            "evtx": ResolvedArtefactPath.from_matches(
                "evtx", [root / "Security.evtx", root / "System.evtx"]
            )
        }
        wiskers = [InvocationTemplate(name="evtxecmd", binary="e", input="evtx")]
        
        gaps = OutputValidator().validate(wiskers, run_context, resolved)
        
        assert [g.input_path.name for g in gaps] == ["Security.evtx", "System.evtx"]
    
    def test_no_gaps_logged(self, run_context, resolved, recording_log):
        OutputValidator().validate([], run_context, resolved, recording_log)
        
        assert recording_log.matching("all wisker outputs present")
