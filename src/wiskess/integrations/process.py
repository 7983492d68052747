"""
External process invocation.

The scheduler never spawns processes itself; it hands each rendered
command to an ``Invoker``. ``SubprocessInvoker`` runs real binaries and
tracks live children so an interrupted run can kill them.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from dataclasses import dataclass
from typing import Protocol

from wiskess.errors import InvocationFailure
from wiskess.models.pipeline import InvocationCommand

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessOutcome:
    """What an invoker observed from one finished process."""
    
    exit_code: int
    stdout: str = ""
    stderr: str = ""


class Invoker(Protocol):
    """Runs one resolved command and waits for it to exit."""
    
    def invoke(self, command: InvocationCommand) -> ProcessOutcome:
        ...


class SubprocessInvoker:
    """
    Invoker backed by ``subprocess.Popen``.
    
    No timeout is applied: a hung tool blocks its invocation until it exits
    or the run is interrupted.
    
    Example:
        ```python
        invoker = SubprocessInvoker()
        outcome = invoker.invoke(command)
        print(outcome.exit_code)
        ```
    """
    
    def __init__(self) -> None:
        self._active: set[subprocess.Popen] = set()
        self._lock = threading.Lock()
        self._closed = False
    
    def invoke(self, command: InvocationCommand) -> ProcessOutcome:
        """
        Launch the command and wait for it.
        
        Raises:
            InvocationFailure: If the binary cannot be started, or the
                invoker was terminated
        """
        if self.closed:
            raise InvocationFailure(command.binary, "run was interrupted")
        
        logger.debug(f"Launching: {command.command_line}")
        
        try:
            process = subprocess.Popen(
                list(command.argv),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                errors="replace",
            )
        except OSError as e:
            raise InvocationFailure(command.binary, str(e)) from e
        
        with self._lock:
            closed = self._closed
            if not closed:
                self._active.add(process)
        if closed:
            # terminate() ran while this process was starting
            _kill(process)
            raise InvocationFailure(command.binary, "run was interrupted")
        
        try:
            stdout, stderr = process.communicate()
        except BaseException:
            # Interrupted while waiting; reap the child before letting go of it
            _kill(process)
            raise
        finally:
            with self._lock:
                self._active.discard(process)
        
        return ProcessOutcome(exit_code=process.returncode, stdout=stdout, stderr=stderr)
    
    @property
    def closed(self) -> bool:
        """Whether terminate() has been called."""
        with self._lock:
            return self._closed
    
    @property
    def active(self) -> int:
        """Number of processes still running."""
        with self._lock:
            return len(self._active)
    
    def terminate(self) -> None:
        """Kill every process still running and refuse further launches."""
        with self._lock:
            self._closed = True
            processes = list(self._active)
        
        for process in processes:
            if process.poll() is None:
                logger.warning(f"Killing {process.args[0]} (pid {process.pid})")
                try:
                    process.kill()
                except OSError as e:
                    logger.debug(f"Kill failed for pid {process.pid}: {e}")


def _kill(process: subprocess.Popen) -> None:
    if process.poll() is None:
        process.kill()
    process.wait()
