"""Prometheus metrics registry for RCon sessions."""

import threading
from typing import Final

from prometheus_client import (  # type: ignore[import-untyped]
    Counter,
    Gauge,
    start_http_server,
)

SESSION_PHASES: Final = ("idle", "connecting", "authenticated", "errored", "closed")

# Metric definitions
rcon_packet_sent_total: Final = Counter(  # type: ignore[assignment]
    "rcon_packet_sent_total",
    "Total packets sent",
    ["server", "packet_type", "outcome"],
)

rcon_packet_recv_total: Final = Counter(  # type: ignore[assignment]
    "rcon_packet_recv_total",
    "Total packets received",
    ["server", "packet_type"],
)

rcon_decode_errors_total: Final = Counter(  # type: ignore[assignment]
    "rcon_decode_errors_total",
    "Total inbound packets that failed to decode",
    ["server", "reason"],
)

rcon_login_total: Final = Counter(  # type: ignore[assignment]
    "rcon_login_total",
    "Total login responses by outcome",
    ["server", "outcome"],
)

rcon_keepalive_total: Final = Counter(  # type: ignore[assignment]
    "rcon_keepalive_total",
    "Total keep-alive ticks by outcome",
    ["server", "outcome"],
)

rcon_fragments_total: Final = Counter(  # type: ignore[assignment]
    "rcon_fragments_total",
    "Total message fragments received",
    ["server"],
)

rcon_messages_reassembled_total: Final = Counter(  # type: ignore[assignment]
    "rcon_messages_reassembled_total",
    "Total multi-fragment messages reassembled",
    ["server"],
)

rcon_session_closed_total: Final = Counter(  # type: ignore[assignment]
    "rcon_session_closed_total",
    "Total sessions closed by reason",
    ["server", "reason"],
)

rcon_session_phase: Final = Gauge(  # type: ignore[assignment]
    "rcon_session_phase",
    "Current session phase",
    ["server", "phase"],
)

_server_state = {"started": False}
_server_lock = threading.Lock()


def start_metrics_server(port: int = 9400) -> None:
    """Start Prometheus HTTP metrics server (idempotent)."""
    with _server_lock:
        if not _server_state["started"]:
            start_http_server(port)  # type: ignore[no-untyped-call]
            _server_state["started"] = True


def record_packet_sent(server: str, packet_type: str, outcome: str) -> None:
    """Record a sent packet."""
    rcon_packet_sent_total.labels(server=server, packet_type=packet_type, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_packet_recv(server: str, packet_type: str) -> None:
    """Record a received packet."""
    rcon_packet_recv_total.labels(server=server, packet_type=packet_type).inc()  # type: ignore[no-untyped-call]


def record_decode_error(server: str, reason: str) -> None:
    """Record a decode error."""
    rcon_decode_errors_total.labels(server=server, reason=reason).inc()  # type: ignore[no-untyped-call]


def record_login(server: str, outcome: str) -> None:
    """Record a login response."""
    rcon_login_total.labels(server=server, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_keepalive(server: str, outcome: str) -> None:
    """Record a keep-alive tick."""
    rcon_keepalive_total.labels(server=server, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_fragment(server: str) -> None:
    """Record a received fragment."""
    rcon_fragments_total.labels(server=server).inc()  # type: ignore[no-untyped-call]


def record_message_reassembled(server: str) -> None:
    """Record a completed multi-fragment message."""
    rcon_messages_reassembled_total.labels(server=server).inc()  # type: ignore[no-untyped-call]


def record_close(server: str, reason: str) -> None:
    """Record a session close."""
    rcon_session_closed_total.labels(server=server, reason=reason).inc()  # type: ignore[no-untyped-call]


def record_session_phase(server: str, phase: str) -> None:
    """Record session phase change."""
    # Set gauge to 1 for current phase, 0 for all others
    for p in SESSION_PHASES:
        value = 1 if p == phase else 0
        rcon_session_phase.labels(server=server, phase=p).set(value)  # type: ignore[no-untyped-call]
