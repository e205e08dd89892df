"""Bridge transport: WebSocket channels between the UI and the TerminalManager."""

from .broker import BroadcastSink, ChannelBroker, ChannelSink
from .dispatcher import BridgeDispatcher

__all__ = ['BroadcastSink', 'ChannelBroker', 'ChannelSink', 'BridgeDispatcher']
