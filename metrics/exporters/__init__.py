"""SignalFx transport and batch exporter"""
from .signalfx import (
    SignalFxTransport,
    TransportError,
    EncodeError,
    NetworkError,
    RemoteRejectedError
)
from .batch_exporter import BatchExporter

__all__ = [
    'BatchExporter',
    'SignalFxTransport',
    'TransportError',
    'EncodeError',
    'NetworkError',
    'RemoteRejectedError'
]
