"""
Pytest configuration and shared fixtures.
"""

import threading
import time

import pytest

from wiskess.config import PipelineConfig
from wiskess.errors import InvocationFailure
from wiskess.integrations.process import ProcessOutcome
from wiskess.models.pipeline import RunContext


class RecordingLog:
    """Log sink that keeps every line in memory."""

    def __init__(self):
        self.lines = []
        self._lock = threading.Lock()

    def write(self, line, timestamp=None):
        with self._lock:
            self.lines.append(line)

    def matching(self, text):
        return [line for line in self.lines if text in line]


class FakeInvoker:
    """
    Invoker that records calls instead of spawning processes.

    By default every command exits 0 and writes a file at its output path,
    like a well-behaved wisker.
    """

    def __init__(
        self,
        exit_codes=None,
        delays=None,
        launch_failures=(),
        silent_tools=(),
        stdout=None,
    ):
        self.exit_codes = exit_codes or {}
        self.delays = delays or {}
        self.launch_failures = set(launch_failures)
        self.silent_tools = set(silent_tools)
        self.stdout = stdout or {}
        self.calls = []
        self.spans = {}
        self._lock = threading.Lock()

    def invoke(self, command):
        start = time.perf_counter()
        with self._lock:
            self.calls.append(command)

        if command.name in self.launch_failures:
            raise InvocationFailure(command.binary, "No such file or directory")

        time.sleep(self.delays.get(command.name, 0))

        if command.name not in self.silent_tools:
            command.output_path.parent.mkdir(parents=True, exist_ok=True)
            command.output_path.write_text("output")

        with self._lock:
            self.spans[command.name] = (start, time.perf_counter())

        return ProcessOutcome(
            exit_code=self.exit_codes.get(command.name, 0),
            stdout=self.stdout.get(command.name, ""),
        )

    @property
    def called_names(self):
        return [command.name for command in self.calls]


@pytest.fixture
def evidence_root(tmp_path):
    """Evidence folder with a log file and a registry hive."""
    root = tmp_path / "evidence"
    (root / "logs").mkdir(parents=True)
    (root / "logs" / "app.log").write_text("2024-01-01 service started\n")
    (root / "registry").mkdir()
    (root / "registry" / "hive.dat").write_bytes(b"regf\x00\x00")
    return root


@pytest.fixture
def output_root(tmp_path):
    """Empty output folder."""
    root = tmp_path / "output"
    root.mkdir()
    return root


@pytest.fixture
def run_context(evidence_root, output_root):
    """Run context over the sample evidence."""
    return RunContext(
        evidence_root=evidence_root,
        output_root=output_root,
        start_date="2024-01-01",
        end_date="2024-01-31",
        ioc_file="/cases/iocs.txt",
    )


@pytest.fixture
def recording_log():
    """In-memory log sink."""
    return RecordingLog()


@pytest.fixture
def fake_invoker():
    """Invoker that succeeds and writes output for every tool."""
    return FakeInvoker()


@pytest.fixture
def sample_config_dict():
    """Two wiskers over two categories, plus an enricher and a reporter."""
    return {
        "artefacts": [
            {"name": "logs", "path": "logs/app.log"},
            {"name": "registry", "path": "registry/hive.dat"},
        ],
        "wiskers": [
            {
                "name": "tool-a",
                "binary": "tool-a",
                "args": "--in {input} --out {output} --from {start_date} --to {end_date}",
                "input": "logs",
                "tier": 0,
            },
            {
                "name": "tool-b",
                "binary": "tool-b",
                "args": "--in {input} --out {output}",
                "input": "registry",
                "tier": 1,
            },
        ],
        "enrichers": [
            {
                "name": "ioc-match",
                "binary": "ioc-match",
                "args": "--iocs {ioc_file} --out {output}",
                "tier": 0,
            },
        ],
        "reporters": [
            {
                "name": "report",
                "binary": "report",
                "args": "--out {output}",
                "tier": 1,
            },
        ],
    }


@pytest.fixture
def sample_config(sample_config_dict):
    """Validated pipeline config."""
    return PipelineConfig.from_dict(sample_config_dict)


@pytest.fixture
def make_invoker():
    """Factory for fake invokers with custom behaviour."""
    return FakeInvoker
