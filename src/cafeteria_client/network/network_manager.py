"""
Request pipeline

``NetworkManager`` executes one logical API call: cache short-circuit,
connectivity gate, request construction, interceptors, transport, status
validation, decoding and cache write-back. Every failure is raised as an
``AppError``.
"""

from typing import Any, List, Optional

from ..cache_manager import CacheManager, CachePolicy, endpoint_key
from ..error_classifier import ErrorClassifier
from ..exceptions import AppError, DataError, NetworkError
from ..logging_config import LogCategory, LogSink
from ..serialization import load_json
from .connectivity import ConnectivityMonitor, NetworkStatus
from .endpoint import EndpointDescriptor, HTTPMethod, PreparedRequest, build_request
from .interceptors import Interceptor
from .transport import Transport, TransportResponse

_MISSING = object()


class NetworkManager:
    """Cache-aware HTTP request pipeline."""

    def __init__(
        self,
        cache: CacheManager,
        transport: Transport,
        connectivity: ConnectivityMonitor,
        interceptors: Optional[List[Interceptor]] = None,
        classifier: Optional[ErrorClassifier] = None,
        log_sink: Optional[LogSink] = None
    ):
        self.cache = cache
        self.transport = transport
        self.connectivity = connectivity
        self.interceptors: List[Interceptor] = list(interceptors or [])
        self.classifier = classifier or ErrorClassifier()
        self.log = log_sink or LogSink()

    def add_interceptor(self, interceptor: Interceptor) -> None:
        self.interceptors.append(interceptor)

    def remove_interceptor(self, interceptor: Interceptor) -> None:
        if interceptor in self.interceptors:
            self.interceptors.remove(interceptor)

    async def request(self, endpoint: EndpointDescriptor, response_type: Any = Any, use_cache: bool = True) -> Any:
        """Perform a request and decode the JSON response as ``response_type``.

        Args:
            endpoint: the call to perform
            response_type: any type pydantic can validate into
            use_cache: for GET, serve from and write back to the cache

        Raises:
            AppError: on connectivity, interceptor, HTTP status, transport
                or decoding failure
        """
        cacheable = use_cache and endpoint.method is HTTPMethod.GET

        if cacheable:
            cached = await self.cache.get_cached_response(endpoint, response_type, default=_MISSING)
            if cached is not _MISSING:
                self.log.debug("Serving response from cache", LogCategory.NETWORK,
                               url=endpoint.url, method=endpoint.method.value)
                return cached

        if self.connectivity.status is NetworkStatus.DISCONNECTED:
            if use_cache:
                cached = await self.cache.get_cached_response(endpoint, response_type, default=_MISSING)
                if cached is not _MISSING:
                    self.log.info("Offline, serving cached response", LogCategory.NETWORK,
                                  url=endpoint.url)
                    return cached
            raise NetworkError.no_connection()

        body = await self._execute(endpoint)

        try:
            result = load_json(body, response_type)
        except ValueError as e:
            self.log.warning("Response decoding failed", LogCategory.DATA,
                             url=endpoint.url, response_size=len(body), error=str(e))
            raise DataError.parsing_failed() from e

        if cacheable:
            await self.cache.cache_response(result, endpoint)

        return result

    async def request_data(self, endpoint: EndpointDescriptor) -> bytes:
        """Perform a request and return the raw response body, bypassing the cache."""
        if self.connectivity.status is NetworkStatus.DISCONNECTED:
            raise NetworkError.no_connection()
        return await self._execute(endpoint)

    async def _execute(self, endpoint: EndpointDescriptor) -> bytes:
        request = build_request(endpoint)

        try:
            for interceptor in self.interceptors:
                await interceptor.intercept_request(request)

            self.log.debug("Sending request", LogCategory.NETWORK,
                           url=request.url, method=request.method,
                           body_size=len(request.body) if request.body else 0)
            response = await self.transport.send(request)

            for interceptor in self.interceptors:
                await interceptor.intercept_response(request, response)
        except AppError:
            raise
        except Exception as e:
            error = self.classifier.classify(e)
            self.log.warning("Request failed", LogCategory.NETWORK,
                             url=request.url, method=request.method,
                             error_type=type(e).__name__, classified=repr(error))
            raise error from e

        self.log.debug("Response received", LogCategory.NETWORK,
                       url=request.url, method=request.method,
                       status_code=response.status, response_size=len(response.body))

        self._validate_status(request, response)
        return response.body

    def _validate_status(self, request: PreparedRequest, response: TransportResponse) -> None:
        status = response.status
        if 200 <= status <= 299:
            return
        self.log.warning("Unexpected HTTP status", LogCategory.NETWORK,
                         url=request.url, method=request.method, status_code=status)
        if status == 429:
            raise NetworkError.rate_limit_exceeded()
        raise NetworkError.server_error(status)

    # Invalidation

    async def invalidate(self, key: str) -> None:
        await self.cache.remove(key)

    async def invalidate_endpoint(self, endpoint: EndpointDescriptor) -> None:
        await self.cache.remove(endpoint_key(endpoint))

    async def clear_all(self) -> None:
        await self.cache.clear()
        self.log.info("All cached responses cleared", LogCategory.CACHE)
