"""
Bridge protocol messages exchanged over the terminal WebSocket.

One channel multiplexes every session: each message carries the session
``id``, and consumers route events by it. Field names are camelCase on the
wire (``workingDirectory``, ``exitCode``, ``requestId``).

Client → Server:
    create   {id, columns, rows, workingDirectory?, requestId?}  → created | error
    write    {id, data}                                           (no reply)
    resize   {id, columns, rows}                                  (no reply)
    destroy  {id}                                                 (no reply)

Server → Client:
    created  {id, pid, requestId?}
    data     {id, data}
    exit     {id, exitCode}        exactly once per session
    error    {id?, code, message, requestId?}

For a given id, ``created`` is always sent before any ``data``/``exit``.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class BridgeMessage(BaseModel):
    """Base for all bridge messages (camelCase on the wire)"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ==================== Client → Server ====================

class CreateMessage(BridgeMessage):
    """Spawn a session (request/response)"""

    type: Literal["create"] = "create"
    id: str = Field(..., min_length=1, max_length=128, description="Session id chosen by the caller")
    columns: int = Field(..., ge=1, le=1000, description="Terminal width in cells")
    rows: int = Field(..., ge=1, le=1000, description="Terminal height in cells")
    working_directory: Optional[str] = Field(None, description="Start directory")
    request_id: Optional[str] = Field(None, description="Echoed back in the reply")


class WriteMessage(BridgeMessage):
    """Keystrokes for a session (fire-and-forget)"""

    type: Literal["write"] = "write"
    id: str = Field(..., min_length=1)
    data: str = Field(..., description="Input as produced by the terminal emulator")


class ResizeMessage(BridgeMessage):
    """New terminal size (fire-and-forget)"""

    type: Literal["resize"] = "resize"
    id: str = Field(..., min_length=1)
    columns: int = Field(..., ge=1, le=1000)
    rows: int = Field(..., ge=1, le=1000)


class DestroyMessage(BridgeMessage):
    """Kill a session (fire-and-forget)"""

    type: Literal["destroy"] = "destroy"
    id: str = Field(..., min_length=1)


ClientMessage = Annotated[
    Union[CreateMessage, WriteMessage, ResizeMessage, DestroyMessage],
    Field(discriminator="type"),
]

_client_message_adapter = TypeAdapter(ClientMessage)


def parse_client_message(raw) -> Union[CreateMessage, WriteMessage, ResizeMessage, DestroyMessage]:
    """Validate a decoded JSON object into one of the client messages.

    Raises:
        pydantic.ValidationError: Unknown ``type`` or invalid payload
    """
    return _client_message_adapter.validate_python(raw)


# ==================== Server → Client ====================

class CreatedMessage(BridgeMessage):
    """Acknowledgement of a successful create"""

    type: Literal["created"] = "created"
    id: str
    pid: int
    request_id: Optional[str] = None


class DataMessage(BridgeMessage):
    """Chunk of terminal output (decoded as UTF-8)"""

    type: Literal["data"] = "data"
    id: str
    data: str


class ExitMessage(BridgeMessage):
    """The session's process exited"""

    type: Literal["exit"] = "exit"
    id: str
    exit_code: int


class ErrorMessage(BridgeMessage):
    """A create failed or a message could not be handled"""

    type: Literal["error"] = "error"
    id: Optional[str] = None
    code: str
    message: str
    request_id: Optional[str] = None
