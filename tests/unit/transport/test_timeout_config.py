"""Unit tests for TimeoutConfig."""

from __future__ import annotations

import pytest

from be_rcon.const import DEFAULT_KEEPALIVE_INTERVAL, DEFAULT_LIVENESS_TIMEOUT, DEFAULT_TIMEOUT_CHECK_DELAY
from be_rcon.transport.timeout_config import TimeoutConfig


def test_defaults():
    config = TimeoutConfig(
        DEFAULT_KEEPALIVE_INTERVAL,
        DEFAULT_TIMEOUT_CHECK_DELAY,
        DEFAULT_LIVENESS_TIMEOUT,
    )

    assert config.keepalive_interval_seconds == 25.0
    assert config.timeout_check_delay_seconds == 3.0
    assert config.liveness_timeout_seconds == 5.0


def test_values_are_floats():
    config = TimeoutConfig(10, 1, 2)

    assert isinstance(config.keepalive_interval_seconds, float)
    assert config.liveness_timeout_seconds == 2.0


@pytest.mark.parametrize(
    ("keepalive", "check_delay", "liveness"),
    [(0, 3, 5), (25, -1, 5), (25, 3, 0)],
)
def test_non_positive_values_rejected(keepalive: float, check_delay: float, liveness: float):
    with pytest.raises(ValueError, match="must be positive"):
        _ = TimeoutConfig(keepalive, check_delay, liveness)


def test_liveness_shorter_than_check_delay_rejected():
    with pytest.raises(ValueError, match="must be >="):
        _ = TimeoutConfig(25, 5, 3)


def test_equal_liveness_and_check_delay_allowed():
    config = TimeoutConfig(25, 3, 3)
    assert config.liveness_timeout_seconds == config.timeout_check_delay_seconds


def test_repr():
    assert repr(TimeoutConfig(25, 3, 5)) == "TimeoutConfig(keepalive=25.0s, check_delay=3.0s, liveness=5.0s)"
