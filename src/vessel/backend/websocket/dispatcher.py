"""Routes bridge messages from one channel to the TerminalManager."""

import logging
from typing import Set

from pydantic import ValidationError as PydanticValidationError

from ..exception import TerminalException
from ..schema.bridge import (
    CreateMessage,
    CreatedMessage,
    DestroyMessage,
    ErrorMessage,
    ResizeMessage,
    WriteMessage,
    parse_client_message,
)
from ..terminal import TerminalManager
from .broker import ChannelBroker

logger = logging.getLogger(__name__)


class BridgeDispatcher:
    """
    Handles the client → server half of the bridge for one channel.

    handle() is synchronous and runs on the event loop thread. A create
    is spawned and acknowledged within the same call, so the ``created``
    reply is queued before any output callback for that id can run.

    Sessions created through this channel are owned by it: they are
    destroyed when the channel closes (their output would have nowhere to
    go). Sessions created by the layout engine are not affected.
    """

    def __init__(self, terminal_manager: TerminalManager, broker: ChannelBroker, channel_id: str):
        self.terminal_manager = terminal_manager
        self.broker = broker
        self.channel_id = channel_id
        self.owned: Set[str] = set()

    def handle(self, raw) -> None:
        try:
            message = parse_client_message(raw)
        except PydanticValidationError as e:
            session_id = raw.get("id") if isinstance(raw, dict) else None
            logger.warning(f"Invalid bridge message on channel {self.channel_id}: {e.error_count()} errors")
            self.broker.send(self.channel_id, ErrorMessage(
                id=session_id if isinstance(session_id, str) else None,
                code="INVALID_MESSAGE",
                message=f"Invalid message: {e.errors(include_url=False)}",
            ))
            return

        if isinstance(message, CreateMessage):
            self._create(message)
        elif isinstance(message, WriteMessage):
            self.terminal_manager.write(message.id, message.data)
        elif isinstance(message, ResizeMessage):
            self.terminal_manager.resize(message.id, message.columns, message.rows)
        elif isinstance(message, DestroyMessage):
            self.owned.discard(message.id)
            self.terminal_manager.destroy(message.id)

    def _create(self, message: CreateMessage) -> None:
        try:
            pty_session = self.terminal_manager.create(
                message.id,
                message.columns,
                message.rows,
                working_directory=message.working_directory,
                sink=self.broker.sink_for(self.channel_id),
            )
        except TerminalException as e:
            self.broker.send(self.channel_id, ErrorMessage(
                id=message.id,
                code=e.code,
                message=e.message,
                request_id=message.request_id,
            ))
            return

        self.owned.add(message.id)
        self.broker.send(self.channel_id, CreatedMessage(
            id=message.id,
            pid=pty_session.pid,
            request_id=message.request_id,
        ))

    def close(self) -> None:
        """Destroy the sessions this channel created."""
        if self.owned:
            logger.info(f"Channel {self.channel_id} closing, destroying {len(self.owned)} sessions")
        for session_id in list(self.owned):
            self.terminal_manager.destroy(session_id)
        self.owned.clear()
