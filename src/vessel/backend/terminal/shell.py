"""Shell executable, working directory and environment resolution."""

import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

FALLBACK_SHELL = "/bin/sh"
WINDOWS_SHELL = "powershell.exe"


def resolve_shell(configured: Optional[str] = None) -> List[str]:
    """Return the argv used to start an interactive shell.

    Order: configured shell, then the platform default (PowerShell on
    Windows, ``$SHELL`` elsewhere, ``/bin/sh`` when ``$SHELL`` is unset).
    No arguments are passed; the shell detects the terminal on stdin and
    starts interactively.
    """
    if configured:
        return [os.path.expanduser(configured)]
    if sys.platform == "win32":
        return [WINDOWS_SHELL]
    return [os.environ.get("SHELL") or FALLBACK_SHELL]


def resolve_working_directory(
    requested: Optional[str] = None,
    default: Optional[str] = None
) -> str:
    """Pick the start directory: requested, configured default, home, root.

    The requested path is not checked here; a missing directory makes the
    spawn fail, which is reported to the caller.
    """
    for candidate in (requested, default):
        if candidate:
            return str(Path(candidate).expanduser())

    home = os.environ.get("HOME") or os.environ.get("USERPROFILE")
    if home:
        return home
    return os.path.abspath(os.sep)


def build_environment(term: str) -> Dict[str, str]:
    """Inherit the server environment, advertising the emulator's TERM."""
    env = dict(os.environ)
    env["TERM"] = term
    return env
