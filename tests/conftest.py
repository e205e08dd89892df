"""Shared fixtures for the Vessel test suite."""

import threading
from typing import Dict, List, Optional, Tuple

import pytest

from vessel.backend.config import TerminalConfig
from vessel.backend.exception import SessionConflictError, SpawnError
from vessel.backend.terminal import OutputSink, TerminalManager


# =============================================================================
# FAKE SESSION BACKEND
# =============================================================================

class FakeBackend:
    """Records create/destroy calls instead of spawning shells."""

    def __init__(self):
        self.live: Dict[str, dict] = {}
        self.created: List[str] = []
        self.destroyed: List[str] = []
        self.fail_next = False

    def create(self, session_id, columns, rows, working_directory=None, sink=None):
        if session_id in self.created:
            raise SessionConflictError(f"Terminal id already used: session_id={session_id}")
        if self.fail_next:
            self.fail_next = False
            raise SpawnError("shell not found")
        self.created.append(session_id)
        self.live[session_id] = {
            "columns": columns,
            "rows": rows,
            "working_directory": working_directory,
            "sink": sink,
        }
        return self.live[session_id]

    def destroy(self, session_id):
        if self.live.pop(session_id, None) is not None:
            self.destroyed.append(session_id)


# =============================================================================
# RECORDING SINK
# =============================================================================

class RecordingSink(OutputSink):
    """Collects output per session; lets tests wait for text or exits."""

    def __init__(self):
        self._lock = threading.Condition()
        self.output: Dict[str, bytearray] = {}
        self.exits: List[Tuple[str, int]] = []

    def send_data(self, session_id: str, data: bytes) -> None:
        with self._lock:
            self.output.setdefault(session_id, bytearray()).extend(data)
            self._lock.notify_all()

    def send_exit(self, session_id: str, exit_code: int) -> None:
        with self._lock:
            self.exits.append((session_id, exit_code))
            self._lock.notify_all()

    def text(self, session_id: str) -> str:
        with self._lock:
            return bytes(self.output.get(session_id, b"")).decode("utf-8", errors="replace")

    def wait_for_text(self, session_id: str, needle: str, timeout: float = 10.0) -> bool:
        with self._lock:
            return self._lock.wait_for(
                lambda: needle in bytes(self.output.get(session_id, b"")).decode("utf-8", errors="replace"),
                timeout=timeout,
            )

    def wait_for_exit(self, session_id: str, timeout: float = 10.0) -> Optional[int]:
        with self._lock:
            found = self._lock.wait_for(
                lambda: any(sid == session_id for sid, _ in self.exits),
                timeout=timeout,
            )
            if not found:
                return None
            return next(code for sid, code in self.exits if sid == session_id)

    def exit_count(self, session_id: str) -> int:
        with self._lock:
            return sum(1 for sid, _ in self.exits if sid == session_id)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def terminal_config(tmp_path):
    return TerminalConfig(
        shell="/bin/sh",
        default_working_directory=str(tmp_path),
        kill_grace_seconds=0.5,
    )


@pytest.fixture
def terminal_manager(terminal_config):
    manager = TerminalManager(terminal_config)
    yield manager
    manager.destroy_all()
