"""Exception types for the UDP transport and session lifecycle."""

from __future__ import annotations

from be_rcon.protocol.exceptions import RconError


class RconConnectionError(RconError):
    """Session used in an invalid state (e.g. connect() called twice).

    Attributes:
        reason: Specific failure reason
        state: Session phase when the error occurred

    """

    def __init__(self, reason: str, state: str = "unknown") -> None:
        """Initialize connection error with reason and state."""
        self.state: str = state
        super().__init__(reason, f"Connection error: {reason} (state: {state})")


class TransportFailure(RconError):
    """The datagram socket reported an error.

    Transient on a connectionless socket: reported to the event sink but never
    closes the session by itself. Only the liveness watchdog does that.

    Attributes:
        reason: Specific failure reason
        error: Underlying OS error, if any

    """

    def __init__(self, reason: str, error: BaseException | None = None) -> None:
        """Initialize transport failure with reason and the original error."""
        self.error: BaseException | None = error
        detail = f": {error}" if error is not None else ""
        super().__init__(reason, f"Transport failure: {reason}{detail}")
