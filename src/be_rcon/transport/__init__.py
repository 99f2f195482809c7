"""Session layer: UDP endpoint, state machine, keep-alive and liveness."""

from be_rcon.transport.connection_manager import ConnectionManager
from be_rcon.transport.exceptions import RconConnectionError, TransportFailure
from be_rcon.transport.keepalive import KeepAliveScheduler
from be_rcon.transport.socket_abstraction import UDPConnection
from be_rcon.transport.timeout_config import TimeoutConfig
from be_rcon.transport.types import ConnectionPhase, ConnectionState

__all__ = [
    "ConnectionManager",
    "ConnectionPhase",
    "ConnectionState",
    "KeepAliveScheduler",
    "RconConnectionError",
    "TimeoutConfig",
    "TransportFailure",
    "UDPConnection",
]
