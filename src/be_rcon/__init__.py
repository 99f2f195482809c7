"""Async client for the BE remote-console protocol over UDP."""

from __future__ import annotations

__version__ = "0.1.0"

from be_rcon.events import CallbackEventSink, EventSink, LoggingEventSink
from be_rcon.protocol.exceptions import AuthenticationRejected, PacketDecodeError, RconError
from be_rcon.protocol.rcon_protocol import RconProtocol
from be_rcon.transport.connection_manager import ConnectionManager
from be_rcon.transport.exceptions import RconConnectionError, TransportFailure
from be_rcon.transport.timeout_config import TimeoutConfig
from be_rcon.transport.types import ConnectionPhase, ConnectionState

__all__ = [
    "AuthenticationRejected",
    "CallbackEventSink",
    "ConnectionManager",
    "ConnectionPhase",
    "ConnectionState",
    "EventSink",
    "LoggingEventSink",
    "PacketDecodeError",
    "RconConnectionError",
    "RconError",
    "RconProtocol",
    "TimeoutConfig",
    "TransportFailure",
    "__version__",
]
