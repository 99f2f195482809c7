"""Metrics module."""

from .registry import (
    record_close,
    record_decode_error,
    record_fragment,
    record_keepalive,
    record_login,
    record_message_reassembled,
    record_packet_recv,
    record_packet_sent,
    record_session_phase,
    start_metrics_server,
)

__all__ = [
    "record_close",
    "record_decode_error",
    "record_fragment",
    "record_keepalive",
    "record_login",
    "record_message_reassembled",
    "record_packet_recv",
    "record_packet_sent",
    "record_session_phase",
    "start_metrics_server",
]
