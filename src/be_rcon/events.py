"""Event sinks receiving decoded session events.

A session holds exactly one sink and calls it directly: ``on_ready`` after a
successful login, ``on_message`` for every server message, ``on_error`` for
protocol and transport errors, ``on_close`` once when the session ends.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from be_rcon.logging_abstraction import RconLogger, get_logger
from be_rcon.protocol.exceptions import RconError

__all__ = [
    "CallbackEventSink",
    "EventSink",
    "LoggingEventSink",
]


@runtime_checkable
class EventSink(Protocol):
    """Receiver of session events."""

    def on_ready(self) -> None: ...

    def on_message(self, text: str) -> None: ...

    def on_error(self, error: RconError) -> None: ...

    def on_close(self) -> None: ...


@dataclass
class CallbackEventSink:
    """Sink dispatching each event to an optional plain callable."""

    ready: Callable[[], None] | None = None
    message: Callable[[str], None] | None = None
    error: Callable[[RconError], None] | None = None
    close: Callable[[], None] | None = None

    def on_ready(self) -> None:
        if self.ready is not None:
            self.ready()

    def on_message(self, text: str) -> None:
        if self.message is not None:
            self.message(text)

    def on_error(self, error: RconError) -> None:
        if self.error is not None:
            self.error(error)

    def on_close(self) -> None:
        if self.close is not None:
            self.close()


class LoggingEventSink:
    """Sink that only logs; used when the caller does not supply one."""

    def __init__(self, logger: RconLogger | None = None) -> None:
        self.logger = logger or get_logger("be_rcon.events")

    def on_ready(self) -> None:
        self.logger.info("RCon session ready")

    def on_message(self, text: str) -> None:
        self.logger.info("RCon message: %s", text)

    def on_error(self, error: RconError) -> None:
        self.logger.warning("RCon error: %s", error, extra={"reason": error.reason})

    def on_close(self) -> None:
        self.logger.info("RCon session closed")
