"""Channel-level WebSocket message broker.

This module manages bridge WebSocket connections ("channels"). Every
channel multiplexes all sessions: events carry the session id and the UI
routes them by id.

Key features:
- Thread-safe delivery from PTY I/O threads into the event loop
- One outgoing queue and one forwarding task per channel (the only writer
  on that socket, so acknowledgements and output never interleave out of
  order)
- Incremental UTF-8 decoding per (channel, session)

Architecture:
    PTY I/O thread
        PTYSession._deliver_data()
            ↓ sink.send_data(session_id, bytes)
            ↓ broker.push_from_worker(channel_id, event)
            ↓ call_soon_threadsafe
    Event loop
        ChannelBroker._push_internal()     decode → queue.put_nowait()
        ChannelBroker._forward_messages()  queue.get() → websocket.send_json()
            ↓
        Terminal emulator (UI)
"""

import asyncio
import codecs
import logging
import uuid
from typing import Dict, Optional, Tuple

from fastapi import WebSocket

from ..schema.bridge import BridgeMessage, DataMessage, ExitMessage
from ..terminal.sink import OutputSink

logger = logging.getLogger(__name__)

# (kind, session_id, payload): ("data", id, bytes) or ("exit", id, exit_code)
Event = Tuple[str, str, object]

_utf8_decoder = codecs.getincrementaldecoder("utf-8")


class ChannelSink(OutputSink):
    """Sink bound to one channel; closed once the channel disconnects."""

    def __init__(self, broker: 'ChannelBroker', channel_id: str):
        self.broker = broker
        self.channel_id = channel_id
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def send_data(self, session_id: str, data: bytes) -> None:
        self.broker.push_from_worker(self.channel_id, ("data", session_id, data))

    def send_exit(self, session_id: str, exit_code: int) -> None:
        self.broker.push_from_worker(self.channel_id, ("exit", session_id, exit_code))


class BroadcastSink(OutputSink):
    """Sink fanning out to every connected channel (layout-created sessions)."""

    def __init__(self, broker: 'ChannelBroker'):
        self.broker = broker
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def send_data(self, session_id: str, data: bytes) -> None:
        self.broker.push_from_worker(None, ("data", session_id, data))

    def send_exit(self, session_id: str, exit_code: int) -> None:
        self.broker.push_from_worker(None, ("exit", session_id, exit_code))


class ChannelBroker:
    """
    Message broker for bridge WebSocket channels.

    Stored in app.state.channel_broker; created during application startup.

    Responsibilities:
    - Register/unregister channels (one per WebSocket connection)
    - Provide each channel's OutputSink, plus a broadcast sink
    - Route events from PTY I/O threads to channel queues
    - Forward queued messages to the WebSockets

    All dictionaries are touched only on the event loop thread.
    """

    def __init__(self):
        # Channel WebSockets: {channel_id → WebSocket}
        self._channels: Dict[str, WebSocket] = {}

        # Outgoing message queues: {channel_id → asyncio.Queue}
        self._queues: Dict[str, asyncio.Queue] = {}

        # Forwarding tasks: {channel_id → asyncio.Task}
        self._tasks: Dict[str, asyncio.Task] = {}

        # Channel sinks: {channel_id → ChannelSink}
        self._sinks: Dict[str, ChannelSink] = {}

        # Output decoders: {channel_id → {session_id → IncrementalDecoder}}
        self._decoders: Dict[str, Dict[str, codecs.IncrementalDecoder]] = {}

        self.broadcast_sink = BroadcastSink(self)

        # Main event loop reference (set on startup)
        self._main_loop: Optional[asyncio.AbstractEventLoop] = None

    def set_main_loop(self, loop: asyncio.AbstractEventLoop):
        """
        Set main event loop reference.

        Must be called during application startup, before any session can
        produce output.
        """
        self._main_loop = loop
        logger.info("ChannelBroker: Main event loop set")

    # ==================== Channel lifecycle ====================

    async def connect(self, websocket: WebSocket) -> str:
        """
        Register an accepted WebSocket as a new channel.

        Returns:
            The channel id
        """
        channel_id = str(uuid.uuid4())

        self._channels[channel_id] = websocket
        self._queues[channel_id] = asyncio.Queue()
        self._sinks[channel_id] = ChannelSink(self, channel_id)
        self._decoders[channel_id] = {}

        task = asyncio.create_task(self._forward_messages(channel_id))
        self._tasks[channel_id] = task

        def task_done_callback(t: asyncio.Task):
            if not t.cancelled() and t.exception() is not None:
                exc = t.exception()
                logger.error(
                    f"Forwarding task failed for channel {channel_id}: {exc}",
                    exc_info=(type(exc), exc, exc.__traceback__)
                )

        task.add_done_callback(task_done_callback)

        logger.info(f"Channel {channel_id} connected")
        return channel_id

    async def disconnect(self, channel_id: str):
        """
        Unregister a channel; its sink is closed so further output is dropped.
        """
        if channel_id not in self._channels:
            return

        self._sinks.pop(channel_id).close()

        task = self._tasks.pop(channel_id, None)
        if task is not None and not task.done():
            task.cancel()
            try:
                await asyncio.wait_for(task, timeout=1.0)
            except asyncio.CancelledError:
                logger.debug(f"Forwarding task cancelled for channel {channel_id}")
            except asyncio.TimeoutError:
                logger.warning(f"Task cancellation timed out for channel {channel_id}")

        websocket = self._channels.pop(channel_id)
        try:
            await websocket.close()
        except Exception as e:
            logger.debug(f"Error closing WebSocket for channel {channel_id}: {e}")

        del self._queues[channel_id]
        del self._decoders[channel_id]

        logger.info(f"Channel {channel_id} disconnected")

    async def disconnect_all(self):
        """Close the broadcast sink and every channel (application shutdown)."""
        self.broadcast_sink.close()

        channel_ids = list(self._channels)
        for channel_id in channel_ids:
            await self.disconnect(channel_id)

        logger.info(f"Disconnected all channels ({len(channel_ids)} connections)")

    def is_connected(self, channel_id: str) -> bool:
        return channel_id in self._channels

    def sink_for(self, channel_id: str) -> ChannelSink:
        return self._sinks[channel_id]

    @property
    def channel_count(self) -> int:
        return len(self._channels)

    # ==================== Sending ====================

    def send(self, channel_id: str, message: BridgeMessage) -> None:
        """
        Queue a message for one channel. Event loop thread only.

        Messages queued here and output events queued by push_from_worker
        reach the socket in the order they were queued.
        """
        queue = self._queues.get(channel_id)
        if queue is None:
            logger.debug(f"No channel {channel_id}, message dropped: type={message.type}")
            return
        queue.put_nowait(message.to_wire())

    def push_from_worker(self, channel_id: Optional[str], event: Event) -> None:
        """
        Push an output event from a PTY I/O thread.

        Args:
            channel_id: Target channel, or None for every channel
            event: ("data", session_id, bytes) or ("exit", session_id, exit_code)

        Note:
            No dictionary access happens here; everything is scheduled on
            the main loop.
        """
        if self._main_loop is None:
            return
        try:
            self._main_loop.call_soon_threadsafe(self._push_internal, channel_id, event)
        except RuntimeError:
            # Loop already closed during shutdown
            logger.debug(f"Event loop closed, event dropped: session={event[1]}")

    def _push_internal(self, channel_id: Optional[str], event: Event):
        """Decode and queue an event (runs in main loop)."""
        if channel_id is None:
            targets = list(self._queues)
        elif channel_id in self._queues:
            targets = [channel_id]
        else:
            logger.debug(f"No channel {channel_id}, event dropped: session={event[1]}")
            return

        for target in targets:
            for message in self._render(target, event):
                self._queues[target].put_nowait(message.to_wire())

    def _render(self, channel_id: str, event: Event):
        """Turn a raw event into bridge messages for one channel."""
        kind, session_id, payload = event
        decoders = self._decoders[channel_id]

        if kind == "data":
            decoder = decoders.get(session_id)
            if decoder is None:
                decoder = decoders[session_id] = _utf8_decoder(errors="replace")
            text = decoder.decode(payload)
            # Empty when the chunk ended inside a multi-byte sequence
            if text:
                yield DataMessage(id=session_id, data=text)

        elif kind == "exit":
            decoder = decoders.pop(session_id, None)
            if decoder is not None:
                tail = decoder.decode(b"", final=True)
                if tail:
                    yield DataMessage(id=session_id, data=tail)
            yield ExitMessage(id=session_id, exit_code=payload)

        else:
            logger.error(f"Unknown event kind {kind!r} for session {session_id}")

    async def _forward_messages(self, channel_id: str):
        """
        Forward messages from the channel queue to its WebSocket.

        Runs in main event loop until cancelled by disconnect().
        """
        logger.info(f"Message forwarding task started for channel {channel_id}")

        queue = self._queues[channel_id]

        try:
            while channel_id in self._channels:
                message = await queue.get()

                ws = self._channels.get(channel_id)
                if ws is None:
                    break

                try:
                    await ws.send_json(message)
                except Exception as e:
                    logger.warning(f"Error forwarding message to channel {channel_id}: {e}")
                    break

                logger.debug(
                    f"Sent to channel {channel_id}: "
                    f"type={message.get('type')}, session={message.get('id')}"
                )
        except asyncio.CancelledError:
            logger.debug(f"Message forwarding task cancelled for channel {channel_id}")
            raise
        finally:
            logger.info(f"Message forwarding task ended for channel {channel_id}")
