from .base import MessageCallback, Transport
from .registry import SessionRegistry
from .sink import NoOpSink, TransportSink

__all__ = ["MessageCallback", "NoOpSink", "SessionRegistry", "Transport", "TransportSink"]
