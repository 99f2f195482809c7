"""Connection management with state machine, login, acknowledgments and liveness.

This module implements the ConnectionManager class which drives one RCon
session: it opens the UDP endpoint, performs the login handshake, sends
commands and keep-alives, acknowledges server messages, reassembles
fragmented responses and closes the session when the server goes silent.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from types import TracebackType

from be_rcon.correlation import correlation_context, generate_correlation_id
from be_rcon.events import EventSink, LoggingEventSink
from be_rcon.metrics import registry
from be_rcon.protocol.exceptions import AuthenticationRejected, PacketDecodeError
from be_rcon.protocol.packet_types import (
    LOGIN_STATUS_REJECTED,
    CommandAckPacket,
    CommandResponsePacket,
    FragmentPacket,
    LoginResponsePacket,
    RconPacket,
    ServerMessagePacket,
)
from be_rcon.protocol.rcon_protocol import RconProtocol
from be_rcon.transport.exceptions import RconConnectionError, TransportFailure
from be_rcon.transport.keepalive import KeepAliveScheduler
from be_rcon.transport.socket_abstraction import UDPConnection
from be_rcon.transport.timeout_config import TimeoutConfig
from be_rcon.transport.types import ConnectionPhase, ConnectionState

logger = logging.getLogger(__name__)

# Close reasons
CLOSE_REQUESTED = "requested"
CLOSE_LIVENESS_TIMEOUT = "liveness_timeout"
CLOSE_AUTHENTICATION_FAILED = "authentication_failed"
CLOSE_PROTOCOL_ERROR = "protocol_error"
CLOSE_TRANSPORT_OPEN_FAILED = "transport_open_failed"

REASON_AUTH_REJECTED = "authentication rejected"
REASON_UNRECOGNIZED_RESPONSE = "unrecognized response"


class ConnectionManager:
    """Drives one RCon session from login to close.

    **Execution model**: every entry point (datagram callback, keep-alive tick,
    liveness check, application sends) runs on the same asyncio event loop,
    so the session state is only ever mutated from one logical timeline and
    needs no lock.

    **Sends** are fire-and-forget. Commands are transmitted only while the
    session is authenticated and not in a terminal error state; otherwise
    they are dropped silently. Nothing is retried: lost datagrams are caught
    by the liveness watchdog instead.

    **Liveness**: every login, command and keep-alive arms a one-shot check
    that closes the session when no datagram has arrived within
    ``liveness_timeout_seconds``. The close event fires exactly once no
    matter how many checks are armed.
    """

    def __init__(
        self,
        host: str,
        port: int,
        password: str,
        sink: EventSink | None = None,
        timeout_config: TimeoutConfig | None = None,
        connection: UDPConnection | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize an inert session.

        Args:
            host: Server host
            port: Server RCon port
            password: Shared RCon password
            sink: Receiver of ready/message/error/close events
                (defaults to LoggingEventSink)
            timeout_config: Keep-alive and liveness timing (defaults to TimeoutConfig())
            connection: UDP endpoint (defaults to UDPConnection(host, port))
            clock: Monotonic clock used for liveness bookkeeping

        """
        self.host: str = host
        self.port: int = port
        self._password: str = password
        self.sink: EventSink = sink or LoggingEventSink()
        self.timeout_config: TimeoutConfig = timeout_config or TimeoutConfig()
        self.conn: UDPConnection = connection or UDPConnection(host, port)
        self.clock: Callable[[], float] = clock
        self.protocol = RconProtocol
        self.state: ConnectionState = ConnectionState()
        self.scheduler: KeepAliveScheduler = KeepAliveScheduler(
            self.timeout_config.keepalive_interval_seconds,
            self._keepalive_tick,
        )
        self.correlation_id: str = generate_correlation_id()
        self.close_reason: str | None = None
        self._closed_event: asyncio.Event = asyncio.Event()

    @property
    def server(self) -> str:
        """``host:port`` label used in logs and metrics."""
        return f"{self.host}:{self.port}"

    @property
    def authenticated(self) -> bool:
        return self.state.authenticated

    @property
    def sequence_number(self) -> int:
        return self.state.sequence_number

    @property
    def is_closed(self) -> bool:
        return self.state.is_closed

    async def connect(self) -> None:
        """Open the UDP endpoint, send the login packet and start the timers.

        Raises:
            RconConnectionError: If the session was already connected or closed
            TransportFailure: If the UDP endpoint cannot be opened

        """
        if self.state.phase is not ConnectionPhase.IDLE:
            error_reason = "connect() may only be called once per session"
            raise RconConnectionError(error_reason, state=self.state.phase.value)

        with correlation_context(self.correlation_id):
            self._set_phase(ConnectionPhase.CONNECTING)
            try:
                await self.conn.open(self.handle_datagram, self._handle_transport_error)
            except (OSError, TimeoutError) as e:
                logger.exception(
                    "Failed to open UDP endpoint to %s",
                    self.server,
                    extra={"server": self.server},
                )
                self.state.terminal_error = True
                self.close(CLOSE_TRANSPORT_OPEN_FAILED)
                error_reason = "open_failed"
                raise TransportFailure(error_reason, e) from e

            self.scheduler.start()
            logger.info("Logging in to %s", self.server, extra={"server": self.server})
            self._send(self.protocol.encode_login(self._password), "login")
            self._arm_liveness_check()

    def send_command(self, command: str) -> bool:
        """Send a command, best effort.

        Dropped silently unless the session is authenticated and has not hit
        a terminal error.

        Returns:
            True if the datagram was handed to the transport

        """
        if not self.state.authenticated or self.state.terminal_error or self.state.is_closed:
            logger.debug(
                "Dropping command: session not ready",
                extra={"server": self.server, "phase": self.state.phase.value},
            )
            return False

        with correlation_context(self.correlation_id):
            sent = self._send(self.protocol.encode_command(command), "command")
            self._arm_liveness_check()
        return sent

    def close(self, reason: str = CLOSE_REQUESTED) -> None:
        """Tear the session down and emit the close event once.

        Stops every timer, releases the transport and clears authentication.
        Further calls are no-ops.
        """
        if self.state.is_closed:
            return

        with correlation_context(self.correlation_id):
            self.scheduler.stop()
            self.state.reassembler.reset()
            self.conn.close()
            self.state.authenticated = False
            self.close_reason = reason
            self._set_phase(ConnectionPhase.CLOSED)
            registry.record_close(self.server, reason)
            logger.info(
                "Session to %s closed (%s)",
                self.server,
                reason,
                extra={"server": self.server, "reason": reason},
            )
            self._closed_event.set()
            self._emit("on_close")

    async def wait_closed(self) -> None:
        """Wait until the session has closed."""
        await self._closed_event.wait()

    async def __aenter__(self) -> ConnectionManager:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def handle_datagram(self, data: bytes) -> None:
        """Process one inbound datagram.

        Every datagram refreshes liveness, even one that fails to decode.
        Decode errors are reported to the sink and never raised.
        """
        if self.state.is_closed:
            logger.debug("Ignoring datagram on closed session", extra={"bytes": len(data)})
            return

        self.state.last_inbound_at = self.clock()

        with correlation_context(self.correlation_id):
            try:
                packet = self.protocol.decode_packet(data)
            except PacketDecodeError as e:
                self._handle_decode_error(e)
                return

            registry.record_packet_recv(self.server, type(packet).__name__)
            self._dispatch(packet)

    def _dispatch(self, packet: RconPacket) -> None:
        if isinstance(packet, LoginResponsePacket):
            self._handle_login_response(packet)
        elif isinstance(packet, CommandAckPacket):
            logger.debug(
                "Command acknowledged",
                extra={"server": self.server, "sequence_number": packet.sequence_number},
            )
        elif not self._accepts_messages(packet):
            return
        elif isinstance(packet, ServerMessagePacket | CommandResponsePacket):
            self._handle_sequenced_message(packet.sequence_number, packet.text)
        elif isinstance(packet, FragmentPacket):
            self._handle_fragment(packet)

    def _accepts_messages(self, packet: RconPacket) -> bool:
        if self.state.authenticated:
            return True
        logger.warning(
            "Discarding packet type 0x%02x received before login",
            packet.packet_type,
            extra={"server": self.server, "phase": self.state.phase.value},
        )
        return False

    def _handle_login_response(self, packet: LoginResponsePacket) -> None:
        if self.state.phase not in (ConnectionPhase.IDLE, ConnectionPhase.CONNECTING):
            logger.debug(
                "Ignoring login response in phase %s",
                self.state.phase.value,
                extra={"server": self.server},
            )
            return

        if packet.success:
            self.state.authenticated = True
            self._set_phase(ConnectionPhase.AUTHENTICATED)
            registry.record_login(self.server, "success")
            logger.info("Logged in to %s", self.server, extra={"server": self.server})
            self._emit("on_ready")
            return

        if packet.status == LOGIN_STATUS_REJECTED:
            reason = REASON_AUTH_REJECTED
            registry.record_login(self.server, "rejected")
        else:
            reason = REASON_UNRECOGNIZED_RESPONSE
            registry.record_login(self.server, "unrecognized")
        logger.error(
            "Login to %s failed: %s",
            self.server,
            reason,
            extra={"server": self.server, "reason": reason},
        )
        self._enter_errored_state()
        self._emit("on_error", AuthenticationRejected(reason, packet.status))
        self.close(CLOSE_AUTHENTICATION_FAILED)

    def _handle_sequenced_message(self, sequence_number: int, text: str) -> None:
        """Store the sequence number, acknowledge it, then deliver the text."""
        self.state.sequence_number = sequence_number
        self._send(self.protocol.encode_acknowledgment(sequence_number), "ack")
        self._emit("on_message", text)

    def _handle_fragment(self, packet: FragmentPacket) -> None:
        registry.record_fragment(self.server)
        message = self.state.reassembler.accept(packet)
        if message is None:
            return
        registry.record_message_reassembled(self.server)
        self._emit("on_message", message)

    def _handle_decode_error(self, error: PacketDecodeError) -> None:
        registry.record_decode_error(self.server, error.reason)
        logger.warning(
            "Discarding malformed packet: %s",
            error.reason,
            extra={"server": self.server, "reason": error.reason},
        )
        self._emit("on_error", error)
        if self.state.phase is ConnectionPhase.CONNECTING:
            self._enter_errored_state()
            self.close(CLOSE_PROTOCOL_ERROR)

    def _handle_transport_error(self, exc: Exception) -> None:
        """Socket errors are reported but left to the watchdog to act on."""
        if self.state.is_closed:
            return
        with correlation_context(self.correlation_id):
            logger.warning(
                "Socket error: %s",
                exc,
                extra={"server": self.server},
            )
            error_reason = "socket_error"
            self._emit("on_error", TransportFailure(error_reason, exc))

    def _keepalive_tick(self) -> None:
        with correlation_context(self.correlation_id):
            if not self.state.authenticated or self.state.terminal_error:
                return
            sent = self._send(self.protocol.encode_keepalive(), "keepalive")
            registry.record_keepalive(self.server, "sent" if sent else "failed")
            self._arm_liveness_check()

    def _arm_liveness_check(self) -> None:
        self.scheduler.arm_check(self.timeout_config.timeout_check_delay_seconds, self._check_liveness)

    def _check_liveness(self) -> None:
        if self.state.is_closed:
            return
        last_inbound = self.state.last_inbound_at
        silence = None if last_inbound is None else self.clock() - last_inbound
        if silence is not None and silence < self.timeout_config.liveness_timeout_seconds:
            return
        with correlation_context(self.correlation_id):
            logger.warning(
                "No datagram from %s for %s, closing session",
                self.server,
                "ever" if silence is None else f"{silence:.1f}s",
                extra={"server": self.server, "reason": CLOSE_LIVENESS_TIMEOUT},
            )
        self.close(CLOSE_LIVENESS_TIMEOUT)

    def _send(self, packet: bytes, packet_type: str) -> bool:
        if self.state.terminal_error:
            registry.record_packet_sent(self.server, packet_type, "suppressed")
            return False

        self.state.last_outbound_at = self.clock()
        sent = self.conn.send(packet)
        registry.record_packet_sent(self.server, packet_type, "sent" if sent else "failed")
        if not sent and self.conn.is_open:
            error_reason = "send_failed"
            self._emit("on_error", TransportFailure(error_reason))
        return sent

    def _enter_errored_state(self) -> None:
        self.state.terminal_error = True
        self._set_phase(ConnectionPhase.ERRORED)

    def _set_phase(self, phase: ConnectionPhase) -> None:
        self.state.phase = phase
        registry.record_session_phase(self.server, phase.value)

    def _emit(self, event: str, *args: object) -> None:
        """Call the sink; an exception raised by application code is logged, not propagated."""
        try:
            getattr(self.sink, event)(*args)
        except Exception as e:
            logger.exception(
                "Unexpected event sink error in %s",
                event,
                extra={"server": self.server, "reason": type(e).__name__},
            )

    def __repr__(self) -> str:
        return f"ConnectionManager({self.server}, {self.state.phase.value})"
