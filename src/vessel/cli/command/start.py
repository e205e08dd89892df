"""Start command implementation"""

import os

import click
from rich.console import Console
from rich.markup import escape

from ..util import (
    get_instance_path,
    is_initialized,
    is_running,
    get_pid_file,
    load_config,
)

console = Console()


@click.command(name="start", help="Start Vessel backend server")
@click.argument(
    "path",
    type=click.Path(),
    required=False,
)
def start(path: str = None):
    """Start Vessel backend server in the foreground

    Args:
        path: Instance directory path (default: ~/.vessel)
    """
    from vessel.backend.config import load_server_config
    from vessel.backend.exception import ConfigError

    instance_path = get_instance_path(path)

    if not is_initialized(instance_path):
        console.print(
            f"[red]Error: Not initialized at {instance_path}[/red]"
        )
        console.print(
            f"[yellow]Run: vessel init {path if path else ''}[/yellow]"
        )
        raise click.Abort()

    if is_running(instance_path):
        console.print(
            f"[red]Error: Instance already running[/red]"
        )
        console.print(f"[yellow]Location: {instance_path}[/yellow]")
        console.print(f"[yellow]Run: vessel stop {path if path else ''}[/yellow]")
        raise click.Abort()

    # Load and validate configuration
    try:
        config = load_config(instance_path)
        server_config = load_server_config(config)
    except ConfigError as e:
        console.print(f"[red]Error: {escape(e.message)}[/red]")
        raise click.Abort()
    except Exception as e:
        console.print(f"[red]Error loading config: {escape(str(e))}[/red]")
        raise click.Abort()

    host = server_config.host
    port = server_config.port

    console.print(f"[cyan]Starting Vessel from {instance_path}[/cyan]")
    console.print(f"[cyan]Server: http://{host}:{port}[/cyan]")
    console.print(f"[cyan]Terminal bridge: ws://{host}:{port}/ws/terminal[/cyan]")
    console.print(f"[cyan]Docs: http://{host}:{port}/docs[/cyan]")
    console.print("")

    import uvicorn
    from vessel.backend.app import create_app

    try:
        app = create_app(instance_path, config)
    except ConfigError as e:
        console.print(f"[red]Error: {escape(e.message)}[/red]")
        raise click.Abort()

    # Save PID (current process)
    pid_file = get_pid_file(instance_path)
    pid_file.write_text(str(os.getpid()))

    try:
        uvicorn.run(
            app,
            host=host,
            port=port,
        )
    finally:
        # Clean up PID file when server stops
        pid_file.unlink(missing_ok=True)
