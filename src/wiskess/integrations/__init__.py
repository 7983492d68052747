"""
Integrations with external processes.
"""

from wiskess.integrations.process import Invoker, ProcessOutcome, SubprocessInvoker

__all__ = [
    "Invoker",
    "ProcessOutcome",
    "SubprocessInvoker",
]
