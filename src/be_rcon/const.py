import os

from be_rcon import __version__

__all__ = [
    "BE_RCON_DEBUG",
    "BE_RCON_ENABLE_METRICS",
    "BE_RCON_HOST",
    "BE_RCON_KEEPALIVE_INTERVAL",
    "BE_RCON_LIVENESS_TIMEOUT",
    "BE_RCON_LOG_FORMAT",
    "BE_RCON_LOG_HUMAN_OUTPUT",
    "BE_RCON_LOG_JSON_FILE",
    "BE_RCON_LOG_NAME",
    "BE_RCON_METRICS_PORT",
    "BE_RCON_PASSWORD",
    "BE_RCON_PORT",
    "BE_RCON_TIMEOUT_CHECK_DELAY",
    "BE_RCON_VERSION",
    "DEFAULT_KEEPALIVE_INTERVAL",
    "DEFAULT_LIVENESS_TIMEOUT",
    "DEFAULT_PORT",
    "DEFAULT_TIMEOUT_CHECK_DELAY",
    "YES_ANSWER",
    "env_float",
    "env_int",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")
BE_RCON_LOG_NAME: str = "be_rcon"
BE_RCON_VERSION: str = __version__

DEFAULT_PORT = 2306
DEFAULT_KEEPALIVE_INTERVAL = 25.0
DEFAULT_TIMEOUT_CHECK_DELAY = 3.0
DEFAULT_LIVENESS_TIMEOUT = 5.0


def env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except (ValueError, TypeError):
        return default
    return value if value > 0 else default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


BE_RCON_HOST: str = os.environ.get("BE_RCON_HOST", "127.0.0.1")
BE_RCON_PORT: int = env_int("BE_RCON_PORT", DEFAULT_PORT)
_password = os.environ.get("BE_RCON_PASSWORD")
BE_RCON_PASSWORD: str | None = _password if _password else None

BE_RCON_KEEPALIVE_INTERVAL: float = env_float("BE_RCON_KEEPALIVE_INTERVAL", DEFAULT_KEEPALIVE_INTERVAL)
BE_RCON_TIMEOUT_CHECK_DELAY: float = env_float("BE_RCON_TIMEOUT_CHECK_DELAY", DEFAULT_TIMEOUT_CHECK_DELAY)
BE_RCON_LIVENESS_TIMEOUT: float = env_float("BE_RCON_LIVENESS_TIMEOUT", DEFAULT_LIVENESS_TIMEOUT)

BE_RCON_DEBUG = os.environ.get("BE_RCON_DEBUG", "0").casefold() in YES_ANSWER

# Logging Configuration
BE_RCON_LOG_FORMAT: str = os.environ.get("BE_RCON_LOG_FORMAT", "human")  # "json", "human", or "both"
_json_file = os.environ.get("BE_RCON_LOG_JSON_FILE")
BE_RCON_LOG_JSON_FILE: str | None = _json_file if _json_file else None
BE_RCON_LOG_HUMAN_OUTPUT: str = os.environ.get("BE_RCON_LOG_HUMAN_OUTPUT", "stdout")  # "stdout", "stderr", or file path

# Metrics
BE_RCON_ENABLE_METRICS: bool = os.environ.get("BE_RCON_ENABLE_METRICS", "0").casefold() in YES_ANSWER
BE_RCON_METRICS_PORT: int = env_int("BE_RCON_METRICS_PORT", 9400)
