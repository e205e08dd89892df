"""Init command implementation"""

import json
from datetime import datetime

import click
from rich.console import Console

from ..util import INSTANCE_FLAG, get_instance_path, is_initialized

console = Console()

DEFAULT_CONFIG = """[server]
host = "127.0.0.1"
port = 18890

[cors]
allow_origins = ["http://localhost:5173", "http://localhost:3000"]
allow_credentials = true
allow_methods = ["*"]
allow_headers = ["*"]

[terminal]
# shell = "/bin/bash"        # default: $SHELL, then /bin/sh
term = "xterm-256color"
default_columns = 80
default_rows = 24
# default_working_directory = "~/projects"   # default: home directory
read_chunk_size = 4096
kill_grace_seconds = 2.0

[logging]
level = "INFO"
"""


@click.command(name="init", help="Initialize a new Vessel instance")
@click.argument(
    "path",
    type=click.Path(),
    required=False,
)
def init(path: str = None):
    """Initialize a new Vessel instance

    Args:
        path: Instance directory path (default: ~/.vessel)
    """
    instance_path = get_instance_path(path)

    if is_initialized(instance_path):
        console.print(
            f"[red]Error: Already initialized at {instance_path}[/red]"
        )
        raise click.Abort()

    if instance_path.exists() and any(instance_path.iterdir()):
        console.print(
            f"[red]Error: Directory is not empty: {instance_path}[/red]"
        )
        raise click.Abort()

    # 1. Create directory structure
    console.print(f"Initializing Vessel instance at {instance_path}")
    console.print("")

    instance_path.mkdir(parents=True, exist_ok=True)
    (instance_path / "logs").mkdir(exist_ok=True)

    # 2. Generate config.toml with default settings
    console.print("Generating configuration...")

    config_file = instance_path / "config.toml"
    config_file.write_text(DEFAULT_CONFIG)

    # 3. Create .vessel_instance flag file
    flag_data = {
        "initialized_at": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "instance_path": str(instance_path),
    }

    with open(instance_path / INSTANCE_FLAG, "w") as f:
        json.dump(flag_data, f, indent=2)

    # 4. Display success message
    console.print("")
    console.print("[green]✓ Vessel instance initialized successfully![/green]")
    console.print("")
    console.print(f"Location: {instance_path}")
    console.print("")
    console.print("Next steps:")
    console.print("  1. (Optional) Edit configuration:")
    console.print(f"     {config_file}")
    console.print("")
    console.print("  2. Start the backend server:")
    if path:
        console.print(f"     vessel start {path}")
    else:
        console.print("     vessel start")
    console.print("")
    console.print("Logs: {}/logs/".format(instance_path))
