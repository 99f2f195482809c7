"""Shared fixtures for unit tests.

Sessions are wired to a mock UDP endpoint so packets can be fed straight into
``handle_datagram`` and outbound datagrams inspected on ``conn.send``.
"""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from be_rcon.transport.connection_manager import ConnectionManager
from be_rcon.transport.socket_abstraction import UDPConnection
from be_rcon.transport.timeout_config import TimeoutConfig
from tests.fixtures.packets import login_response
from tests.helpers.session import FakeClock, RecordingSink


@pytest.fixture
def mock_udp_connection() -> MagicMock:
    """Mock UDPConnection that accepts every send."""
    conn: MagicMock = MagicMock(spec=UDPConnection)
    conn.host = "127.0.0.1"
    conn.port = 2306
    conn.open = AsyncMock()
    conn.send = MagicMock(return_value=True)
    conn.close = MagicMock()
    conn.is_open = True
    return conn


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fast_timeouts() -> TimeoutConfig:
    """Long keep-alive period, near-immediate liveness checks."""
    return TimeoutConfig(
        keepalive_interval_seconds=60.0,
        timeout_check_delay_seconds=0.01,
        liveness_timeout_seconds=0.02,
    )


@pytest.fixture
def make_manager(
    mock_udp_connection: MagicMock,
    sink: RecordingSink,
    clock: FakeClock,
    fast_timeouts: TimeoutConfig,
) -> Callable[..., ConnectionManager]:
    """Build a ConnectionManager on the mock endpoint; keyword overrides allowed."""

    def _make(**overrides: object) -> ConnectionManager:
        kwargs: dict[str, object] = {
            "host": "127.0.0.1",
            "port": 2306,
            "password": "pw",
            "sink": sink,
            "timeout_config": fast_timeouts,
            "connection": mock_udp_connection,
            "clock": clock,
        }
        kwargs.update(overrides)
        return ConnectionManager(**kwargs)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def manager(make_manager: Callable[..., ConnectionManager]) -> ConnectionManager:
    return make_manager()


@pytest.fixture
def authenticated_manager(manager: ConnectionManager, mock_udp_connection: MagicMock) -> ConnectionManager:
    """Session that has already received a login success."""
    manager.handle_datagram(login_response(0x01))
    mock_udp_connection.send.reset_mock()
    return manager
