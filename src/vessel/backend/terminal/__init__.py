"""Terminal management module (the session manager).

This module provides PTY (pseudo-terminal) support for interactive shell
sessions. It handles terminal lifecycle, I/O operations, and delivery of
output and exit events to sinks.

Components:
- TerminalManager: Global registry of all terminal sessions
- PTYSession: Individual PTY process wrapper
- OutputSink: Receiver of a session's output and exit status
"""

from .manager import TerminalManager
from .pty_session import PTYSession
from .sink import NullSink, OutputSink

__all__ = ['TerminalManager', 'PTYSession', 'OutputSink', 'NullSink']
