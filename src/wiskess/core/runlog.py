"""
Run log sinks.

Every run writes a timestamped log file into the output folder. The
scheduler, resolver and validator only see the ``LogSink`` protocol, so
tests and dry runs can swap in another sink.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

# Timestamp format of run log lines and file names
LOG_LINE_FORMAT = "%Y-%m-%dT%H:%M:%S"
LOG_NAME_FORMAT = "%Y-%m-%dT%H%M%S"


class LogSink(Protocol):
    """Destination for run log lines."""
    
    def write(self, line: str, timestamp: datetime | None = None) -> None:
        ...


class NullLog:
    """Log sink that discards every line."""
    
    def write(self, line: str, timestamp: datetime | None = None) -> None:
        return None


class RunLog:
    """
    Append-only run log file.
    
    Lines are prefixed with their timestamp (UTC unless the caller supplies
    one). Writes from concurrent tool invocations are serialised.
    """
    
    def __init__(self, path: str | Path, overwrite: bool = False):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        
        if overwrite or not self.path.exists():
            self.path.write_text("", encoding="utf-8")
    
    @staticmethod
    def default_path(output_root: str | Path, started_at: datetime) -> Path:
        """Log file location for a run started at ``started_at``."""
        return Path(output_root) / f"wiskess_{started_at.strftime(LOG_NAME_FORMAT)}.log"
    
    def write(self, line: str, timestamp: datetime | None = None) -> None:
        stamp = (timestamp or datetime.now(timezone.utc)).strftime(LOG_LINE_FORMAT)
        
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(f"{stamp} {line}\n")
        
        logger.debug(line)
