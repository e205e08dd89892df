"""Output sinks: where a PTY session delivers its output and exit status.

A sink is registered once, when the session is created. Sinks are called
from the session's I/O thread, never from the event loop, so
implementations must hand events over in a thread-safe way (see
``vessel.backend.websocket.broker``).
"""

from abc import ABC, abstractmethod


class OutputSink(ABC):
    """Consumer of one or more sessions' output"""

    @property
    def closed(self) -> bool:
        """True once the consumer is gone; further events are dropped."""
        return False

    @abstractmethod
    def send_data(self, session_id: str, data: bytes) -> None:
        """Deliver a chunk of output, in the order the process produced it."""

    @abstractmethod
    def send_exit(self, session_id: str, exit_code: int) -> None:
        """Deliver the exit notification (exactly once per session)."""


class NullSink(OutputSink):
    """Sink for sessions nobody is watching yet"""

    def send_data(self, session_id: str, data: bytes) -> None:
        pass

    def send_exit(self, session_id: str, exit_code: int) -> None:
        pass
