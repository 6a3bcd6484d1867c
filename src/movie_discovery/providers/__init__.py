from .base import (
    CacheError,
    ConnectivityError,
    ConnectivityOracle,
    DecodeError,
    ErrorKind,
    LocalCache,
    Navigator,
    PreferenceStore,
    PresentationSink,
    RequestFailedError,
    Transport,
    TransportError,
)
from .connectivity import SocketConnectivityOracle, StaticConnectivity
from .static import StaticCatalogTransport

__all__ = [
    "CacheError",
    "ConnectivityError",
    "ConnectivityOracle",
    "DecodeError",
    "ErrorKind",
    "LocalCache",
    "Navigator",
    "PreferenceStore",
    "PresentationSink",
    "RequestFailedError",
    "SocketConnectivityOracle",
    "StaticCatalogTransport",
    "StaticConnectivity",
    "Transport",
    "TransportError",
]
