"""Typed views over the instance config.toml

The CLI loads ``config.toml`` into a plain dict (see ``vessel.cli.util``);
the backend validates the sections it consumes with the models below.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from .exception import ConfigError


class ServerConfig(BaseModel):
    """[server] section"""

    host: str = Field("127.0.0.1", description="Bind address")
    port: int = Field(18890, ge=1, le=65535, description="Bind port")


class TerminalConfig(BaseModel):
    """[terminal] section"""

    shell: Optional[str] = Field(
        None,
        description="Shell executable; platform default when unset",
        examples=["/bin/bash"]
    )
    term: str = Field("xterm-256color", description="Value exported as TERM")
    default_columns: int = Field(80, ge=1, le=1000)
    default_rows: int = Field(24, ge=1, le=1000)
    default_working_directory: Optional[str] = Field(
        None,
        description="Start directory for sessions created without one; home when unset"
    )
    read_chunk_size: int = Field(4096, ge=64, le=1 << 20)
    kill_grace_seconds: float = Field(2.0, ge=0, description="SIGHUP → SIGKILL delay")


class LoggingConfig(BaseModel):
    """[logging] section"""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


def _section(config: dict, name: str, model):
    try:
        return model.model_validate(config.get(name, {}) or {})
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid [{name}] section in config.toml: {e}")


def load_server_config(config: dict) -> ServerConfig:
    return _section(config, "server", ServerConfig)


def load_terminal_config(config: dict) -> TerminalConfig:
    return _section(config, "terminal", TerminalConfig)


def load_logging_config(config: dict) -> LoggingConfig:
    return _section(config, "logging", LoggingConfig)
