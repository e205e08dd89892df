"""Terminal manager for coordinating all terminal sessions.

This module provides centralized management of PTY sessions, handling:
- Session lifecycle (creation, tracking, cleanup)
- Shell and working directory resolution
- Global session registry keyed by session id
"""

import logging
import threading
from typing import Dict, List, Optional, Set, Union

from ..config import TerminalConfig
from ..exception import SessionConflictError, SpawnError
from .pty_session import PTYSession
from .shell import build_environment, resolve_shell, resolve_working_directory
from .sink import NullSink, OutputSink

logger = logging.getLogger(__name__)


class TerminalManager:
    """
    Global manager for all terminal sessions.

    Architecture:
    - One flat registry (session_id → PTYSession) shared by every workspace
    - Control calls arrive on the caller's thread; exits arrive on the
      sessions' I/O threads
    - Every registry mutation happens under ``_lock``; the lock is never
      held across a spawn, a kill or a sink call

    Lifecycle:
    - Created once during application startup
    - Lives for the entire application lifetime
    - destroy_all() during shutdown

    Id discipline:
    - Ids are never reused: an id that was ever registered (live or
      destroyed) is rejected by create() with SessionConflictError
    - The set of used ids only grows; it is kept for the server lifetime

    Attributes:
        config: Terminal settings ([terminal] section of config.toml)
        terminals: Registry of live terminal sessions (session_id → PTYSession)
    """

    def __init__(self, config: Optional[TerminalConfig] = None):
        self.config = config or TerminalConfig()
        self.terminals: Dict[str, PTYSession] = {}
        self._used_ids: Set[str] = set()
        self._lock = threading.Lock()

        logger.info("TerminalManager initialized")

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self.terminals

    def __len__(self) -> int:
        with self._lock:
            return len(self.terminals)

    def get(self, session_id: str) -> Optional[PTYSession]:
        with self._lock:
            return self.terminals.get(session_id)

    def session_ids(self) -> List[str]:
        with self._lock:
            return list(self.terminals)

    def sessions(self) -> List[PTYSession]:
        with self._lock:
            return list(self.terminals.values())

    def create(
        self,
        session_id: str,
        columns: int,
        rows: int,
        working_directory: Optional[str] = None,
        sink: Optional[OutputSink] = None,
    ) -> PTYSession:
        """
        Start a new terminal session.

        Steps:
        1. Reserve session_id (reject duplicates and reuse)
        2. Spawn the shell behind a fresh PTY
        3. Register the session
        4. Start output delivery

        Returns immediately after the spawn; does not wait for output.

        Args:
            session_id: Unique session identifier
            columns: Initial terminal width
            rows: Initial terminal height
            working_directory: Start directory (configured default, then home)
            sink: Receiver of output and exit events

        Returns:
            The registered PTYSession (``pid`` is set)

        Raises:
            SessionConflictError: If session_id is live or was used before
            SpawnError: If the PTY or the shell could not be started
        """
        with self._lock:
            if session_id in self._used_ids:
                raise SessionConflictError(f"Terminal id already used: session_id={session_id}")
            self._used_ids.add(session_id)

        cwd = resolve_working_directory(working_directory, self.config.default_working_directory)
        argv = resolve_shell(self.config.shell)

        logger.info(
            f"[TerminalManager] Starting terminal: session_id={session_id}, "
            f"size={columns}x{rows}, cwd={cwd}"
        )

        pty_session = PTYSession(
            session_id,
            columns,
            rows,
            cwd,
            sink or NullSink(),
            on_exit=self._handle_exit,
            read_chunk_size=self.config.read_chunk_size,
            kill_grace_seconds=self.config.kill_grace_seconds,
        )

        try:
            pty_session.spawn(argv, build_environment(self.config.term))
        except SpawnError as e:
            # Never went live, so the id may be retried
            with self._lock:
                self._used_ids.discard(session_id)
            logger.error(f"[TerminalManager] Spawn failed: session_id={session_id}, error={e.message}")
            raise

        with self._lock:
            self.terminals[session_id] = pty_session

        # Registered first, so an immediate exit finds its entry
        pty_session.start_io()

        logger.info(f"[TerminalManager] Terminal started: session_id={session_id}, pid={pty_session.pid}")
        return pty_session

    def write(self, session_id: str, data: Union[str, bytes]) -> None:
        """
        Send user input to terminal session.

        Fire-and-forget; unknown ids are ignored.
        """
        pty_session = self.get(session_id)
        if pty_session is None:
            logger.debug(f"[TerminalManager] Write to unknown terminal ignored: session_id={session_id}")
            return

        if isinstance(data, str):
            data = data.encode("utf-8")
        pty_session.write(data)

    def resize(self, session_id: str, columns: int, rows: int) -> None:
        """
        Resize terminal window.

        Fire-and-forget; unknown ids and non-positive sizes are ignored.
        """
        pty_session = self.get(session_id)
        if pty_session is None:
            logger.debug(f"[TerminalManager] Resize of unknown terminal ignored: session_id={session_id}")
            return

        if columns < 1 or rows < 1:
            logger.debug(
                f"[TerminalManager] Ignoring resize to {columns}x{rows}: session_id={session_id}"
            )
            return

        logger.debug(
            f"[TerminalManager] Resizing terminal: session_id={session_id}, "
            f"cols={columns}, rows={rows}"
        )
        pty_session.resize(columns, rows)

    def destroy(self, session_id: str) -> None:
        """
        Stop and forget a terminal session.

        Idempotent: unknown or already destroyed ids are a no-op. The exit
        notification still reaches the session's sink once the process is
        gone (exactly once).
        """
        with self._lock:
            pty_session = self.terminals.pop(session_id, None)

        if pty_session is None:
            logger.debug(f"[TerminalManager] Terminal not found: session_id={session_id}")
            return

        logger.info(f"[TerminalManager] Stopping terminal: session_id={session_id}")
        pty_session.terminate()

    def destroy_all(self) -> None:
        """
        Stop all terminal sessions.

        Called during application shutdown. Does not wait for the processes
        to exit; errors are logged but don't stop cleanup.
        """
        with self._lock:
            sessions = list(self.terminals.values())
            self.terminals.clear()

        if not sessions:
            logger.debug("[TerminalManager] No terminals to cleanup")
            return

        logger.info(f"[TerminalManager] Cleaning up {len(sessions)} terminals")

        for pty_session in sessions:
            try:
                pty_session.terminate()
            except Exception as e:
                logger.error(f"Error stopping terminal {pty_session.session_id}: {e}")

    def _handle_exit(self, pty_session: PTYSession) -> None:
        """Drop the registry entry of a session whose process has exited."""
        with self._lock:
            if self.terminals.get(pty_session.session_id) is pty_session:
                del self.terminals[pty_session.session_id]
                removed = True
            else:
                removed = False

        if removed:
            logger.info(
                f"[TerminalManager] Terminal exited on its own: "
                f"session_id={pty_session.session_id}, exit_code={pty_session.exit_code}"
            )
