"""Command line client: connect, print server messages, run commands."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO, cast

import dotenv
import uvloop
import yaml

from be_rcon.const import (
    BE_RCON_VERSION,
    DEFAULT_KEEPALIVE_INTERVAL,
    DEFAULT_LIVENESS_TIMEOUT,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT_CHECK_DELAY,
    YES_ANSWER,
    env_float,
    env_int,
)
from be_rcon.correlation import correlation_context
from be_rcon.events import CallbackEventSink
from be_rcon.logging_abstraction import get_logger
from be_rcon.metrics import start_metrics_server
from be_rcon.protocol.exceptions import AuthenticationRejected, RconError
from be_rcon.transport.connection_manager import CLOSE_REQUESTED, ConnectionManager
from be_rcon.transport.exceptions import TransportFailure
from be_rcon.transport.timeout_config import TimeoutConfig

logger = get_logger("be_rcon")

EXIT_OK = 0
EXIT_FAILURE = 1

CONFIG_KEYS = (
    "host",
    "port",
    "password",
    "keepalive_interval",
    "timeout_check_delay",
    "liveness_timeout",
)


class ConfigError(RconError):
    """Invalid or unreadable client configuration."""

    def __init__(self, reason: str, path: Path | None = None):
        self.path: Path | None = path
        message = f"Configuration error: {reason}"
        if path is not None:
            message = f"{message} ({path})"
        super().__init__(reason, message)


@dataclass
class ClientSettings:
    """Resolved connection settings for one CLI run."""

    host: str
    port: int
    password: str | None
    keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL
    timeout_check_delay: float = DEFAULT_TIMEOUT_CHECK_DELAY
    liveness_timeout: float = DEFAULT_LIVENESS_TIMEOUT

    def timeout_config(self) -> TimeoutConfig:
        return TimeoutConfig(
            keepalive_interval_seconds=self.keepalive_interval,
            timeout_check_delay_seconds=self.timeout_check_delay,
            liveness_timeout_seconds=self.liveness_timeout,
        )


def load_config_file(config_file: Path) -> dict[str, object]:
    """Read a YAML configuration file.

    Only the keys in CONFIG_KEYS are kept; unknown keys are logged and ignored.

    Raises:
        ConfigError: If the file cannot be read or its root is not a mapping

    """
    logger.debug("Parsing config file: %s", config_file)
    try:
        with config_file.open() as f:
            raw_config = cast("object", yaml.safe_load(f))
    except OSError as e:
        error_reason = "unreadable config file"
        raise ConfigError(error_reason, config_file) from e
    except yaml.YAMLError as e:
        error_reason = "invalid YAML"
        raise ConfigError(error_reason, config_file) from e

    if raw_config is None:
        return {}
    if not isinstance(raw_config, Mapping):
        error_reason = "expected mapping at root"
        raise ConfigError(error_reason, config_file)

    config: dict[str, object] = {}
    for key, value in cast("Mapping[object, object]", raw_config).items():
        if key in CONFIG_KEYS:
            config[str(key)] = value
        else:
            logger.warning("Ignoring unknown config key: %s", key)
    return config


def _as_int(key: str, value: object) -> int:
    try:
        return int(cast("str | int", value))
    except (TypeError, ValueError) as e:
        error_reason = f"{key} must be an integer, got {value!r}"
        raise ConfigError(error_reason) from e


def _as_float(key: str, value: object) -> float:
    try:
        return float(cast("str | float", value))
    except (TypeError, ValueError) as e:
        error_reason = f"{key} must be a number, got {value!r}"
        raise ConfigError(error_reason) from e


def resolve_settings(args: argparse.Namespace, file_config: Mapping[str, object] | None = None) -> ClientSettings:
    """Merge settings with precedence CLI > config file > environment > defaults.

    The environment is read at call time so values loaded by ``--env`` apply.
    """
    file_config = file_config or {}

    def pick(key: str) -> object | None:
        cli_value = cast("object | None", getattr(args, key, None))
        if cli_value is not None:
            return cli_value
        return file_config.get(key)

    host = pick("host")
    port = pick("port")
    password = pick("password")
    keepalive_interval = file_config.get("keepalive_interval")
    timeout_check_delay = file_config.get("timeout_check_delay")
    liveness_timeout = file_config.get("liveness_timeout")

    return ClientSettings(
        host=str(host) if host is not None else os.environ.get("BE_RCON_HOST", "127.0.0.1"),
        port=_as_int("port", port) if port is not None else env_int("BE_RCON_PORT", DEFAULT_PORT),
        password=str(password) if password is not None else (os.environ.get("BE_RCON_PASSWORD") or None),
        keepalive_interval=(
            _as_float("keepalive_interval", keepalive_interval)
            if keepalive_interval is not None
            else env_float("BE_RCON_KEEPALIVE_INTERVAL", DEFAULT_KEEPALIVE_INTERVAL)
        ),
        timeout_check_delay=(
            _as_float("timeout_check_delay", timeout_check_delay)
            if timeout_check_delay is not None
            else env_float("BE_RCON_TIMEOUT_CHECK_DELAY", DEFAULT_TIMEOUT_CHECK_DELAY)
        ),
        liveness_timeout=(
            _as_float("liveness_timeout", liveness_timeout)
            if liveness_timeout is not None
            else env_float("BE_RCON_LIVENESS_TIMEOUT", DEFAULT_LIVENESS_TIMEOUT)
        ),
    )


class CommandSession:
    """Glue between a ConnectionManager and the terminal.

    Prints every server message, then either runs the given commands in order
    (waiting up to the liveness timeout for a reply to each) and closes, or
    forwards stdin lines as commands until end of input.
    """

    def __init__(self, settings: ClientSettings, commands: Sequence[str], output: TextIO | None = None):
        self.settings = settings
        self.commands = list(commands)
        self.output = output if output is not None else sys.stdout
        self.auth_failed = False
        self._ready = asyncio.Event()
        self._messages: asyncio.Queue[str] = asyncio.Queue()
        self.manager = ConnectionManager(
            settings.host,
            settings.port,
            settings.password or "",
            sink=CallbackEventSink(
                ready=self._ready.set,
                message=self._on_message,
                error=self._on_error,
            ),
            timeout_config=settings.timeout_config(),
        )

    def _on_message(self, text: str) -> None:
        print(text, file=self.output, flush=True)
        self._messages.put_nowait(text)

    def _on_error(self, error: RconError) -> None:
        if isinstance(error, AuthenticationRejected):
            self.auth_failed = True
        logger.error("%s", error, extra={"reason": error.reason})

    async def run(self) -> int:
        try:
            await self.manager.connect()
        except TransportFailure as e:
            logger.error("Could not open connection to %s: %s", self.manager.server, e)
            return EXIT_FAILURE

        ready = asyncio.ensure_future(self._ready.wait())
        closed = asyncio.ensure_future(self.manager.wait_closed())
        try:
            await asyncio.wait({ready, closed}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            ready.cancel()

        if not self.manager.is_closed:
            driver = self._run_commands() if self.commands else self._forward_stdin()
            driver_task = asyncio.ensure_future(driver)
            await asyncio.wait({driver_task, closed}, return_when=asyncio.FIRST_COMPLETED)
            if not driver_task.done():
                driver_task.cancel()
            elif driver_task.exception() is not None:
                logger.error("Command input failed: %s", driver_task.exception())
            self.manager.close()

        await closed
        return self.exit_code()

    def exit_code(self) -> int:
        if self.auth_failed:
            return EXIT_FAILURE
        return EXIT_OK if self.manager.close_reason == CLOSE_REQUESTED else EXIT_FAILURE

    async def _run_commands(self) -> None:
        for command in self.commands:
            while not self._messages.empty():
                self._messages.get_nowait()
            logger.debug("Sending command: %s", command)
            if not self.manager.send_command(command):
                logger.warning("Command not sent: %s", command)
                continue
            try:
                await asyncio.wait_for(self._messages.get(), timeout=self.settings.liveness_timeout)
            except TimeoutError:
                logger.warning("No reply to command: %s", command)

    async def _forward_stdin(self) -> None:
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
        while True:
            line = await reader.readline()
            if not line:
                logger.debug("End of input")
                return
            command = line.decode(errors="replace").strip()
            if command:
                self.manager.send_command(command)


async def run_client(settings: ClientSettings, commands: Sequence[str]) -> int:
    session = CommandSession(settings, commands)
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, session.manager.close)
    try:
        return await session.run()
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)


def parse_cli(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the client process."""
    parser = argparse.ArgumentParser(prog="be-rcon", description="BE RCon command line client")
    _ = parser.add_argument("--host", default=None, help="Server host (env: BE_RCON_HOST)")
    _ = parser.add_argument("--port", default=None, type=int, help="Server RCon port (env: BE_RCON_PORT)")
    _ = parser.add_argument("--password", default=None, help="RCon password (env: BE_RCON_PASSWORD)")
    _ = parser.add_argument("--config", default=None, type=Path, help="Path to a YAML configuration file")
    _ = parser.add_argument("--env", default=None, type=Path, help="Path to the environment file")
    _ = parser.add_argument("-D", "--debug", action="store_true", help="Enable debug mode")
    _ = parser.add_argument(
        "-c",
        "--command",
        action="append",
        default=[],
        dest="commands",
        metavar="COMMAND",
        help="Command to run after login (repeatable); reads stdin when omitted",
    )
    _ = parser.add_argument("--version", action="version", version=f"%(prog)s {BE_RCON_VERSION}")
    return parser.parse_args(argv)


def load_env_file(env_file: Path) -> None:
    env_path = env_file.expanduser().resolve()
    if not env_path.exists():
        logger.error("Environment file not found", extra={"path": str(env_path)})
        return
    if dotenv.load_dotenv(env_path, override=True):
        logger.info("Environment variables loaded", extra={"path": str(env_path)})
    else:
        logger.warning("No environment variables loaded from file", extra={"path": str(env_path)})


def main(argv: Sequence[str] | None = None) -> int:
    """Run the be-rcon entry point."""
    with correlation_context():
        args = parse_cli(argv)

        if args.env:
            load_env_file(cast("Path", args.env))

        if args.debug or os.environ.get("BE_RCON_DEBUG", "0").casefold() in YES_ANSWER:
            logger.set_level(logging.DEBUG)
            logger.debug("Debug mode enabled")

        try:
            file_config = load_config_file(args.config.expanduser()) if args.config else {}
            settings = resolve_settings(args, file_config)
            if not settings.password:
                error_reason = "no password given (--password, config file or BE_RCON_PASSWORD)"
                raise ConfigError(error_reason)
            _ = settings.timeout_config()
        except (ConfigError, ValueError) as e:
            logger.error("%s", e)
            return EXIT_FAILURE

        if os.environ.get("BE_RCON_ENABLE_METRICS", "0").casefold() in YES_ANSWER:
            start_metrics_server(env_int("BE_RCON_METRICS_PORT", 9400))

        logger.info("Connecting to %s:%d", settings.host, settings.port, extra={"version": BE_RCON_VERSION})
        try:
            return uvloop.run(run_client(settings, cast("list[str]", args.commands)))
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received, shutting down...")
            return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
