"""Request/response interceptors.

Interceptors run in registration order around the transport call. Each may
mutate the outgoing request headers or reject the exchange by raising.
"""

from typing import Awaitable, Callable, Optional

from ..exceptions import AuthError
from ..logging_config import LogCategory, LogSink
from .endpoint import PreparedRequest
from .transport import TransportResponse

SENSITIVE_HEADERS = {"authorization", "cookie", "x-api-key", "apikey"}


class Interceptor:
    """Base interceptor; both hooks are no-ops."""

    async def intercept_request(self, request: PreparedRequest) -> None:
        pass

    async def intercept_response(self, request: PreparedRequest, response: TransportResponse) -> None:
        pass


class LoggingInterceptor(Interceptor):
    """Logs request/response metadata at debug level. Bodies and credentials are never logged."""

    def __init__(self, log_sink: Optional[LogSink] = None):
        self.log = log_sink or LogSink()

    async def intercept_request(self, request: PreparedRequest) -> None:
        self.log.debug("HTTP request started", LogCategory.NETWORK,
                       url=request.url,
                       method=request.method,
                       headers=redact_headers(request.headers),
                       body_size=len(request.body) if request.body else 0)

    async def intercept_response(self, request: PreparedRequest, response: TransportResponse) -> None:
        self.log.debug("HTTP response received", LogCategory.NETWORK,
                       url=response.url or request.url,
                       method=request.method,
                       status_code=response.status,
                       response_size=len(response.body))


class AuthenticationInterceptor(Interceptor):
    """Injects a bearer token and maps 401 responses to an expired session."""

    def __init__(self, get_token: Callable[[], Awaitable[Optional[str]]]):
        self.get_token = get_token

    async def intercept_request(self, request: PreparedRequest) -> None:
        token = await self.get_token()
        if not token:
            raise AuthError.session_expired()
        request.headers["Authorization"] = f"Bearer {token}"

    async def intercept_response(self, request: PreparedRequest, response: TransportResponse) -> None:
        if response.status == 401:
            raise AuthError.session_expired()


def redact_headers(headers) -> dict:
    return {
        name: ("<redacted>" if name.lower() in SENSITIVE_HEADERS else value)
        for name, value in headers.items()
    }
