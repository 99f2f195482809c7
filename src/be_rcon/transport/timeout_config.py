"""Keep-alive and liveness timing configuration."""

from __future__ import annotations

from be_rcon.const import (
    BE_RCON_KEEPALIVE_INTERVAL,
    BE_RCON_LIVENESS_TIMEOUT,
    BE_RCON_TIMEOUT_CHECK_DELAY,
)


class TimeoutConfig:
    """Timer settings for one session.

    The liveness timeout must not be shorter than the check delay, otherwise
    the first check after login could close a session whose reply is simply
    still in flight.
    """

    def __init__(
        self,
        keepalive_interval_seconds: float = BE_RCON_KEEPALIVE_INTERVAL,
        timeout_check_delay_seconds: float = BE_RCON_TIMEOUT_CHECK_DELAY,
        liveness_timeout_seconds: float = BE_RCON_LIVENESS_TIMEOUT,
    ):
        """Initialize timeout configuration.

        Args:
            keepalive_interval_seconds: Period between keep-alive packets
            timeout_check_delay_seconds: Delay between a send and its liveness check
            liveness_timeout_seconds: Inbound silence that closes the session

        Raises:
            ValueError: If a value is not positive or the liveness timeout is
                shorter than the check delay

        """
        for name, value in (
            ("keepalive_interval_seconds", keepalive_interval_seconds),
            ("timeout_check_delay_seconds", timeout_check_delay_seconds),
            ("liveness_timeout_seconds", liveness_timeout_seconds),
        ):
            if value <= 0:
                error_msg = f"{name} must be positive, got {value}"
                raise ValueError(error_msg)
        if liveness_timeout_seconds < timeout_check_delay_seconds:
            error_msg = (
                f"liveness_timeout_seconds ({liveness_timeout_seconds}) must be >= "
                f"timeout_check_delay_seconds ({timeout_check_delay_seconds})"
            )
            raise ValueError(error_msg)

        self.keepalive_interval_seconds = float(keepalive_interval_seconds)
        self.timeout_check_delay_seconds = float(timeout_check_delay_seconds)
        self.liveness_timeout_seconds = float(liveness_timeout_seconds)

    def __repr__(self) -> str:
        return (
            f"TimeoutConfig(keepalive={self.keepalive_interval_seconds:.1f}s, "
            f"check_delay={self.timeout_check_delay_seconds:.1f}s, "
            f"liveness={self.liveness_timeout_seconds:.1f}s)"
        )
