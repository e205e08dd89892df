"""Stop command implementation"""

import os
import signal
import time

import click
from rich.console import Console

from ..util import (
    get_instance_path,
    is_initialized,
    is_running,
    get_pid_file,
    read_pid,
)

console = Console()

# Seconds to wait for a graceful shutdown after SIGTERM
STOP_TIMEOUT = 10.0
POLL_INTERVAL = 0.2


def _process_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists, owned by someone else
        return True
    return True


def _wait_for_exit(pid: int, timeout: float) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if not _process_alive(pid):
            return True
        time.sleep(POLL_INTERVAL)
    return not _process_alive(pid)


@click.command(name="stop", help="Stop Vessel backend server")
@click.argument(
    "path",
    type=click.Path(),
    required=False,
)
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Force kill if graceful shutdown fails",
)
def stop(path: str = None, force: bool = False):
    """Stop Vessel backend server

    Steps:
    1. Send SIGTERM for graceful shutdown (terminals are hung up)
    2. Wait up to 10 seconds
    3. If still running and --force, send SIGKILL
    4. Clean up PID file

    Args:
        path: Instance directory path (default: ~/.vessel)
        force: Force kill if graceful shutdown fails
    """
    instance_path = get_instance_path(path)

    if not is_initialized(instance_path):
        console.print(
            f"[red]Error: Not initialized at {instance_path}[/red]"
        )
        raise click.Abort()

    if not is_running(instance_path):
        console.print(f"[yellow]Instance not running at {instance_path}[/yellow]")
        return

    pid_file = get_pid_file(instance_path)
    pid = read_pid(instance_path)

    if pid is None or not _process_alive(pid):
        console.print("[yellow]Stale PID file, server is not running[/yellow]")
        pid_file.unlink(missing_ok=True)
        return

    # 1. Graceful shutdown
    console.print(f"Stopping Vessel (pid {pid})...")
    try:
        os.kill(pid, signal.SIGTERM)
    except ProcessLookupError:
        pid_file.unlink(missing_ok=True)
        console.print("[green]✓ Vessel stopped[/green]")
        return

    # 2. Wait
    if not _wait_for_exit(pid, STOP_TIMEOUT):
        if not force:
            console.print(
                f"[red]Error: Server did not stop within {STOP_TIMEOUT:.0f} seconds[/red]"
            )
            console.print(f"[yellow]Run: vessel stop --force {path if path else ''}[/yellow]")
            raise click.Abort()

        # 3. Force kill
        console.print("[yellow]Graceful shutdown timed out, sending SIGKILL[/yellow]")
        try:
            os.kill(pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        _wait_for_exit(pid, STOP_TIMEOUT)

    # 4. Clean up PID file (the server removes it itself on a clean exit)
    pid_file.unlink(missing_ok=True)
    console.print("[green]✓ Vessel stopped[/green]")
