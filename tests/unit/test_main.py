"""Unit tests for the command line client.

The session tests run against a small in-process UDP server speaking the
server side of the protocol on the loopback interface.
"""

from __future__ import annotations

import asyncio
import io
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio

from be_rcon.main import (
    EXIT_FAILURE,
    EXIT_OK,
    ClientSettings,
    CommandSession,
    ConfigError,
    load_config_file,
    main,
    parse_cli,
    resolve_settings,
)
from be_rcon.protocol.rcon_protocol import RconProtocol
from tests.fixtures.packets import command_ack, command_response, login_response
from tests.helpers.expectations import expect_exception

ENV_KEYS = (
    "BE_RCON_HOST",
    "BE_RCON_PORT",
    "BE_RCON_PASSWORD",
    "BE_RCON_KEEPALIVE_INTERVAL",
    "BE_RCON_TIMEOUT_CHECK_DELAY",
    "BE_RCON_LIVENESS_TIMEOUT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class FakeRconServer(asyncio.DatagramProtocol):
    """Answers logins for one password and replies to every command."""

    def __init__(self, password: str = "pw", silent: bool = False) -> None:
        self.password = password
        self.silent = silent
        self.commands: list[str] = []
        self.acks: list[int] = []
        self.sequence = 0
        self.transport: asyncio.DatagramTransport | None = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = transport  # type: ignore[assignment]

    def datagram_received(self, data: bytes, addr: tuple[str | bytes, int]) -> None:
        assert self.transport is not None
        if self.silent:
            return
        packet_type = data[7]
        if packet_type == 0x00:
            status = 0x01 if data[8:].decode() == self.password else 0x00
            self.transport.sendto(login_response(status), addr)
        elif packet_type == 0x01:
            command = data[9:].decode()
            if not command or command == "\x00":
                self.transport.sendto(command_ack(0), addr)
                return
            self.commands.append(command)
            self.transport.sendto(command_response(self.sequence, f"reply to {command}"), addr)
            self.sequence = (self.sequence + 1) % 256
        elif packet_type == 0x02:
            self.acks.append(data[8])


@pytest_asyncio.fixture
async def fake_server() -> AsyncGenerator[tuple[FakeRconServer, int]]:
    loop = asyncio.get_running_loop()
    server = FakeRconServer()
    transport, _ = await loop.create_datagram_endpoint(lambda: server, local_addr=("127.0.0.1", 0))
    try:
        yield server, transport.get_extra_info("sockname")[1]
    finally:
        transport.close()


def _settings(port: int, password: str = "pw") -> ClientSettings:
    return ClientSettings(
        host="127.0.0.1",
        port=port,
        password=password,
        keepalive_interval=60.0,
        timeout_check_delay=0.2,
        liveness_timeout=0.5,
    )


class TestParseCli:
    def test_defaults(self):
        args = parse_cli([])

        assert args.host is None
        assert args.port is None
        assert args.password is None
        assert args.commands == []
        assert args.debug is False

    def test_repeated_commands(self):
        args = parse_cli(["--host", "10.0.0.5", "--port", "2310", "-c", "players", "-c", "bans", "-D"])

        assert args.host == "10.0.0.5"
        assert args.port == 2310
        assert args.commands == ["players", "bans"]
        assert args.debug is True


class TestConfigFile:
    def test_known_keys_kept(self, tmp_path: Path):
        config_file = tmp_path / "rcon.yaml"
        config_file.write_text("host: 10.0.0.9\nport: 2400\npassword: secret\nliveness_timeout: 8\nextra: 1\n")

        assert load_config_file(config_file) == {
            "host": "10.0.0.9",
            "port": 2400,
            "password": "secret",
            "liveness_timeout": 8,
        }

    def test_empty_file(self, tmp_path: Path):
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        assert load_config_file(config_file) == {}

    def test_non_mapping_root(self, tmp_path: Path):
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n")

        err = expect_exception(load_config_file, ConfigError, config_file)
        assert err.reason == "expected mapping at root"

    def test_invalid_yaml(self, tmp_path: Path):
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("host: [unclosed\n")

        err = expect_exception(load_config_file, ConfigError, config_file)
        assert err.reason == "invalid YAML"

    def test_missing_file(self, tmp_path: Path):
        err = expect_exception(load_config_file, ConfigError, tmp_path / "missing.yaml")
        assert err.path == tmp_path / "missing.yaml"


class TestResolveSettings:
    def test_defaults(self):
        settings = resolve_settings(parse_cli([]))

        assert settings.host == "127.0.0.1"
        assert settings.port == 2306
        assert settings.password is None
        assert settings.keepalive_interval == 25.0
        assert settings.timeout_check_delay == 3.0
        assert settings.liveness_timeout == 5.0

    def test_precedence_cli_over_file_over_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("BE_RCON_HOST", "env-host")
        monkeypatch.setenv("BE_RCON_PORT", "1111")
        monkeypatch.setenv("BE_RCON_PASSWORD", "env-pw")
        monkeypatch.setenv("BE_RCON_LIVENESS_TIMEOUT", "9")

        settings = resolve_settings(
            parse_cli(["--port", "3333"]),
            {"port": 2222, "password": "file-pw"},
        )

        assert settings.host == "env-host"
        assert settings.port == 3333
        assert settings.password == "file-pw"
        assert settings.liveness_timeout == 9.0

    def test_invalid_file_value(self):
        err = expect_exception(resolve_settings, ConfigError, parse_cli([]), {"port": "not-a-port"})
        assert "port" in err.reason

    def test_timeout_config(self):
        config = _settings(2306).timeout_config()

        assert config.timeout_check_delay_seconds == 0.2
        assert config.liveness_timeout_seconds == 0.5


class TestMain:
    def test_missing_password_exits_with_failure(self):
        assert main(["--host", "127.0.0.1"]) == EXIT_FAILURE

    def test_bad_config_exits_with_failure(self, tmp_path: Path):
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("- not a mapping\n")

        assert main(["--config", str(config_file), "--password", "pw"]) == EXIT_FAILURE

    def test_invalid_timeouts_exit_with_failure(self, tmp_path: Path):
        config_file = tmp_path / "timeouts.yaml"
        config_file.write_text("timeout_check_delay: 5\nliveness_timeout: 1\n")

        assert main(["--config", str(config_file), "--password", "pw"]) == EXIT_FAILURE


class TestCommandSession:
    @pytest.mark.asyncio
    async def test_runs_commands_and_prints_replies(self, fake_server: tuple[FakeRconServer, int]):
        server, port = fake_server
        output = io.StringIO()
        session = CommandSession(_settings(port), ["players", "bans"], output=output)

        exit_code = await asyncio.wait_for(session.run(), timeout=5.0)
        await asyncio.sleep(0.05)

        assert exit_code == EXIT_OK
        assert server.commands == ["players", "bans"]
        assert output.getvalue().splitlines() == ["reply to players", "reply to bans"]
        assert server.acks == [0, 1]

    @pytest.mark.asyncio
    async def test_wrong_password_exits_with_failure(self, fake_server: tuple[FakeRconServer, int]):
        server, port = fake_server
        session = CommandSession(_settings(port, password="wrong"), ["players"], output=io.StringIO())

        exit_code = await asyncio.wait_for(session.run(), timeout=5.0)

        assert exit_code == EXIT_FAILURE
        assert session.auth_failed is True
        assert server.commands == []

    @pytest.mark.asyncio
    async def test_silent_server_times_out(self, fake_server: tuple[FakeRconServer, int]):
        server, port = fake_server
        server.silent = True
        session = CommandSession(_settings(port), ["players"], output=io.StringIO())

        exit_code = await asyncio.wait_for(session.run(), timeout=5.0)

        assert exit_code == EXIT_FAILURE
        assert session.manager.close_reason == "liveness_timeout"


def test_login_packet_matches_codec():
    assert RconProtocol.encode_login("pw")[7:] == b"\x00pw"
