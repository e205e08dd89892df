"""CLI utility functions"""

from pathlib import Path
from typing import Optional

INSTANCE_FLAG = ".vessel_instance"
PID_FILE = ".vessel.pid"


def get_instance_path(path: Optional[str] = None) -> Path:
    """Get instance path, default to ~/.vessel

    Args:
        path: Custom path (relative or absolute), None for default

    Returns:
        Resolved absolute path
    """
    if path is None:
        return Path.home() / ".vessel"
    return Path(path).resolve()


def is_initialized(instance_path: Path) -> bool:
    """Check if instance is initialized (.vessel_instance exists)"""
    return (instance_path / INSTANCE_FLAG).exists()


def load_config(instance_path: Path) -> dict:
    """Load config.toml

    Args:
        instance_path: Instance directory path

    Returns:
        Configuration dict
    """
    import tomli

    config_file = instance_path / "config.toml"
    with open(config_file, "rb") as f:
        return tomli.load(f)


def get_pid_file(instance_path: Path) -> Path:
    return instance_path / PID_FILE


def is_running(instance_path: Path) -> bool:
    """Check if instance is running by checking PID file existence"""
    return get_pid_file(instance_path).exists()


def read_pid(instance_path: Path) -> Optional[int]:
    """Read the server PID; None if the file is missing or garbled"""
    try:
        return int(get_pid_file(instance_path).read_text().strip())
    except (FileNotFoundError, ValueError):
        return None
