"""PTY session management for individual terminal instances.

This module manages a single PTY (pseudo-terminal) process, handling:
- Process lifecycle (spawn, hang-up, kill, reap)
- Bidirectional I/O (read output, write input)
- Terminal sizing (TIOCSWINSZ ioctl)
- Delivery of output and the exit status to an OutputSink
"""

import logging
import os
import select
import signal
import struct
import subprocess
import threading
from typing import Callable, List, Optional, Dict

from ..exception import SpawnError
from .sink import OutputSink

logger = logging.getLogger(__name__)

# Upper bound on how long a queued write waits before the I/O thread
# notices it (only matters when the kernel input buffer was full)
POLL_INTERVAL = 0.05

# Reads attempted after the shell is reaped, before the exit is reported
DRAIN_MAX_READS = 64


def _pack_winsize(columns: int, rows: int) -> bytes:
    # struct winsize: rows, cols, xpixel, ypixel
    return struct.pack("HHHH", rows, columns, 0, 0)


def _acquire_controlling_tty() -> None:
    """Make the slave (already dup'ed to fd 0) the child's controlling tty.

    Runs in the child between fork and exec, after setsid().
    """
    import fcntl
    import termios

    fcntl.ioctl(0, termios.TIOCSCTTY, 0)


class PTYSession:
    """
    Manages a single PTY process for one terminal session.

    Architecture:
    - The shell runs in its own session/process group with the PTY slave
      as controlling terminal
    - One daemon I/O thread per session owns the read side of the master
      fd: it delivers output, flushes queued input and, once the shell has
      exited, reports the exit status exactly once
    - Control calls (write, resize, terminate) come from any thread and are
      serialized with the I/O thread by ``_io_lock``

    Lifecycle:
    1. spawn() - open the PTY pair and start the shell
    2. start_io() - start the I/O thread (after the session is registered)
    3. write() / resize() - while running
    4. terminate() - SIGHUP the process group, SIGKILL after a grace period
    5. I/O thread sees the shell reaped (or EOF) → drain → close master →
       on_exit(session) → sink.send_exit()

    Attributes:
        session_id: Unique session identifier
        columns: Current terminal width
        rows: Current terminal height
        working_directory: Start directory of the shell
        sink: OutputSink receiving output and the exit status
        pid: Shell process id (None until spawned)
        exit_code: Exit status once reaped (negative signal number if killed)
    """

    def __init__(
        self,
        session_id: str,
        columns: int,
        rows: int,
        working_directory: str,
        sink: OutputSink,
        on_exit: Optional[Callable[['PTYSession'], None]] = None,
        read_chunk_size: int = 4096,
        kill_grace_seconds: float = 2.0,
    ):
        self.session_id = session_id
        self.columns = columns
        self.rows = rows
        self.working_directory = working_directory
        self.sink = sink
        self.read_chunk_size = read_chunk_size
        self.kill_grace_seconds = kill_grace_seconds
        self._on_exit = on_exit

        # PTY state
        self.master_fd: Optional[int] = None
        self.pid: Optional[int] = None
        self.exit_code: Optional[int] = None
        self._process: Optional[subprocess.Popen] = None

        # Input that did not fit in the kernel buffer, flushed by the I/O thread
        self._pending = bytearray()
        self._io_lock = threading.Lock()
        self._io_thread: Optional[threading.Thread] = None
        self._terminating = False

        logger.debug(
            f"PTYSession initialized: session_id={session_id}, "
            f"size={columns}x{rows}, path={working_directory}"
        )

    @property
    def running(self) -> bool:
        return self._process is not None and self.exit_code is None

    def spawn(self, argv: List[str], env: Dict[str, str]) -> int:
        """
        Open the PTY pair and start the shell.

        Args:
            argv: Shell command line
            env: Process environment

        Returns:
            The shell's pid

        Raises:
            SpawnError: If the PTY cannot be opened or the process cannot be
                started (missing executable, missing working directory, ...)
        """
        if self._process is not None:
            raise RuntimeError(f"PTY already spawned: session_id={self.session_id}")

        if os.name != "posix":
            raise SpawnError(
                f"Pseudo-terminals are not supported on this platform: {os.name}"
            )

        import fcntl
        import pty
        import termios

        try:
            master_fd, slave_fd = pty.openpty()
        except OSError as e:
            raise SpawnError(f"Failed to open pseudo-terminal: {e}")

        try:
            fcntl.ioctl(slave_fd, termios.TIOCSWINSZ, _pack_winsize(self.columns, self.rows))
            self._process = subprocess.Popen(
                argv,
                stdin=slave_fd,
                stdout=slave_fd,
                stderr=slave_fd,
                cwd=self.working_directory,
                env=env,
                start_new_session=True,
                preexec_fn=_acquire_controlling_tty,
            )
        except (OSError, subprocess.SubprocessError) as e:
            os.close(master_fd)
            raise SpawnError(
                f"Failed to start {argv[0]} in {self.working_directory}: {e}"
            )
        finally:
            # The child holds its own copy; ours would keep EOF from arriving
            os.close(slave_fd)

        os.set_blocking(master_fd, False)
        self.master_fd = master_fd
        self.pid = self._process.pid

        logger.info(
            f"[PTYSession] Spawned: session_id={self.session_id}, "
            f"pid={self.pid}, shell={argv[0]}"
        )
        return self.pid

    def start_io(self) -> None:
        """Start the I/O thread. Output delivery begins here."""
        if self._io_thread is not None:
            return

        self._io_thread = threading.Thread(
            target=self._io_loop,
            name=f"pty-{self.session_id[:8]}",
            daemon=True,
        )
        self._io_thread.start()

    # ==================== Control ====================

    def write(self, data: bytes) -> None:
        """
        Write user input to the PTY.

        Never blocks: bytes the kernel does not accept immediately are queued
        and flushed by the I/O thread, preserving order.

        Note:
            Silently ignored once the PTY has been closed.
        """
        with self._io_lock:
            if self.master_fd is None:
                logger.debug(f"[PTYSession] Write after close ignored: session_id={self.session_id}")
                return

            if self._pending:
                self._pending.extend(data)
                return

            try:
                written = os.write(self.master_fd, data)
            except BlockingIOError:
                written = 0
            except OSError as e:
                logger.debug(f"[PTYSession] Write failed: session_id={self.session_id}, error={e}")
                return

            if written < len(data):
                self._pending.extend(data[written:])

    def resize(self, columns: int, rows: int) -> None:
        """
        Resize terminal window.

        The kernel raises SIGWINCH in the foreground process group, so the
        running program can query the new size.
        """
        import fcntl
        import termios

        with self._io_lock:
            if self.master_fd is None:
                return
            try:
                fcntl.ioctl(self.master_fd, termios.TIOCSWINSZ, _pack_winsize(columns, rows))
            except OSError as e:
                logger.debug(f"[PTYSession] Resize failed: session_id={self.session_id}, error={e}")
                return
            self.columns = columns
            self.rows = rows

    def terminate(self) -> None:
        """
        Hang up the shell's process group; SIGKILL it after the grace period.

        Does not wait for the process to exit. Safe to call multiple times.
        The exit notification is still delivered by the I/O thread.
        """
        with self._io_lock:
            if self._terminating or self._process is None:
                return
            self._terminating = True

        logger.info(f"[PTYSession] Terminating: session_id={self.session_id}, pid={self.pid}")

        self._signal_group(signal.SIGHUP)

        if self.kill_grace_seconds > 0:
            timer = threading.Timer(self.kill_grace_seconds, self._signal_group, args=(signal.SIGKILL,))
            timer.daemon = True
            timer.start()
        else:
            self._signal_group(signal.SIGKILL)

    def _signal_group(self, signum: int) -> None:
        # Process group id == pid (start_new_session); never signal after reap
        if self.pid is None or self.exit_code is not None:
            return
        try:
            os.killpg(self.pid, signum)
        except (ProcessLookupError, PermissionError):
            pass

    # ==================== I/O thread ====================

    def _io_loop(self) -> None:
        """
        Pump output to the sink until the shell exits, then report the exit.

        The session ends on whichever comes first: the shell being reaped, or
        EOF (EIO from read()) on the master. A descendant that detached with
        setsid can hold the slave open long after the shell is gone, so EOF
        alone is not enough. Output already buffered when the shell is reaped
        is drained before the exit is reported.
        """
        fd = self.master_fd
        logger.debug(f"[PTYSession] I/O thread started: session_id={self.session_id}")

        poller = select.poll()
        poller.register(fd, select.POLLIN)
        watching_output = False

        try:
            while True:
                if self._process.poll() is not None:
                    self._drain(fd)
                    break

                with self._io_lock:
                    want_write = bool(self._pending)
                if want_write != watching_output:
                    mask = select.POLLIN | (select.POLLOUT if want_write else 0)
                    poller.modify(fd, mask)
                    watching_output = want_write

                events = poller.poll(POLL_INTERVAL * 1000)
                if not events:
                    continue

                _, mask = events[0]
                if mask & select.POLLOUT:
                    self._flush_pending()

                if not mask & (select.POLLIN | select.POLLHUP | select.POLLERR):
                    continue

                try:
                    data = os.read(fd, self.read_chunk_size)
                except BlockingIOError:
                    continue
                except OSError:
                    break

                if not data:
                    break

                self._deliver_data(data)
        finally:
            self._close_master()
            self.exit_code = self._process.wait()
            logger.info(
                f"[PTYSession] Exited: session_id={self.session_id}, "
                f"pid={self.pid}, exit_code={self.exit_code}"
            )
            if self._on_exit is not None:
                self._on_exit(self)
            self._deliver_exit(self.exit_code)

    def _drain(self, fd: int) -> None:
        # Bounded: a detached descendant may keep writing forever
        for _ in range(DRAIN_MAX_READS):
            try:
                data = os.read(fd, self.read_chunk_size)
            except OSError:
                # BlockingIOError included: nothing left to read
                return
            if not data:
                return
            self._deliver_data(data)

    def _flush_pending(self) -> None:
        with self._io_lock:
            if not self._pending or self.master_fd is None:
                return
            try:
                written = os.write(self.master_fd, self._pending)
            except BlockingIOError:
                return
            except OSError as e:
                logger.debug(
                    f"[PTYSession] Dropping {len(self._pending)} queued bytes: "
                    f"session_id={self.session_id}, error={e}"
                )
                self._pending.clear()
                return
            del self._pending[:written]

    def _close_master(self) -> None:
        with self._io_lock:
            if self.master_fd is None:
                return
            try:
                os.close(self.master_fd)
            except OSError:
                pass
            self.master_fd = None
            self._pending.clear()

    def _deliver_data(self, data: bytes) -> None:
        if self.sink.closed:
            return
        try:
            self.sink.send_data(self.session_id, data)
        except Exception as e:
            logger.error(
                f"[PTYSession] Sink failed on output: session_id={self.session_id}, error={e}",
                exc_info=True
            )

    def _deliver_exit(self, exit_code: int) -> None:
        if self.sink.closed:
            return
        try:
            self.sink.send_exit(self.session_id, exit_code)
        except Exception as e:
            logger.error(
                f"[PTYSession] Sink failed on exit: session_id={self.session_id}, error={e}",
                exc_info=True
            )
