"""Network layer: endpoints, transport, interceptors, connectivity and the request pipeline."""

from .connectivity import ConnectivityMonitor, NetworkStatus
from .endpoint import DEFAULT_HEADERS, EndpointDescriptor, HTTPMethod, PreparedRequest, build_request
from .interceptors import AuthenticationInterceptor, Interceptor, LoggingInterceptor
from .network_manager import NetworkManager
from .transport import AiohttpTransport, Transport, TransportResponse

__all__ = [
    "AiohttpTransport",
    "AuthenticationInterceptor",
    "ConnectivityMonitor",
    "DEFAULT_HEADERS",
    "EndpointDescriptor",
    "HTTPMethod",
    "Interceptor",
    "LoggingInterceptor",
    "NetworkManager",
    "NetworkStatus",
    "PreparedRequest",
    "Transport",
    "TransportResponse",
    "build_request",
]
