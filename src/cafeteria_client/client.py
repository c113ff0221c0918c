"""
Composition root

``create_client`` is the single place where configuration is read and the
cache, connectivity monitor, transport, request pipeline and error handler are
wired together.
"""

from functools import partial
from typing import Any, Awaitable, Callable, Optional

from .cache_manager import CacheManager
from .config import Config
from .error_classifier import ErrorClassifier
from .error_handler import ErrorHandler
from .exceptions import ErrorCategory
from .logging_config import LogCategory, LogSink, setup_logging
from .network import (
    AiohttpTransport,
    AuthenticationInterceptor,
    ConnectivityMonitor,
    EndpointDescriptor,
    LoggingInterceptor,
    NetworkManager,
    Transport,
)
from .recovery_strategies import (
    AIErrorRecoveryStrategy,
    AuthErrorRecoveryStrategy,
    DataErrorRecoveryStrategy,
    NetworkErrorRecoveryStrategy,
)

AsyncHook = Callable[[], Awaitable[Any]]


class CafeteriaClient:
    """Bundle of the wired components with a shared lifecycle."""

    def __init__(
        self,
        config: Config,
        log_sink: LogSink,
        cache: CacheManager,
        connectivity: ConnectivityMonitor,
        transport: Transport,
        network: NetworkManager,
        error_handler: ErrorHandler
    ):
        self.config = config
        self.log = log_sink
        self.cache = cache
        self.connectivity = connectivity
        self.transport = transport
        self.network = network
        self.error_handler = error_handler
        self._started = False

    def endpoint(self, base_url: str, path: str, **kwargs) -> EndpointDescriptor:
        """Build an endpoint using the configured default timeout."""
        kwargs.setdefault("timeout", self.config.network.default_timeout)
        return EndpointDescriptor(base_url, path, **kwargs)

    async def request(self, endpoint: EndpointDescriptor, response_type: Any = Any,
                      use_cache: bool = True, max_attempts: Optional[int] = None) -> Any:
        """``NetworkManager.request`` driven by the error handler's recovery loop."""
        return await self.error_handler.run_with_recovery(
            partial(self.network.request, endpoint, response_type, use_cache),
            max_attempts=max_attempts
        )

    async def start(self):
        if self._started:
            return
        await self.cache.start()
        if self.config.network.monitor_interval > 0:
            await self.connectivity.start()
        self._started = True
        self.log.info("Cafeteria client started", LogCategory.GENERAL)

    async def close(self):
        await self.connectivity.stop()
        await self.cache.stop()
        await self.transport.close()
        self._started = False
        self.log.info("Cafeteria client closed", LogCategory.GENERAL)

    async def __aenter__(self) -> "CafeteriaClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def create_client(
    config: Optional[Config] = None,
    transport: Optional[Transport] = None,
    get_token: Optional[Callable[[], Awaitable[Optional[str]]]] = None,
    refresh_session: Optional[AsyncHook] = None,
    ai_probe: Optional[AsyncHook] = None,
    resync: Optional[AsyncHook] = None,
    configure_logging: bool = True
) -> CafeteriaClient:
    """Build a fully wired client.

    Args:
        config: configuration, read from ``CAFETERIA_*`` variables when omitted
        transport: HTTP transport, an ``AiohttpTransport`` by default
        get_token: bearer token source; enables the authentication interceptor
        refresh_session: session refresh hook for auth recovery
        ai_probe: AI service health check for AI recovery
        resync: data re-sync hook for data recovery
        configure_logging: install handlers on the package logger
    """
    config = config or Config.load_from_env()
    if configure_logging:
        setup_logging(config.logging)

    log_sink = LogSink()
    classifier = ErrorClassifier()

    cache = CacheManager(
        directory=config.cache.directory,
        memory_max_entries=config.cache.memory_max_entries,
        memory_max_bytes=config.cache.memory_max_bytes,
        cleanup_interval=config.cache.cleanup_interval,
        disk_max_bytes=config.cache.disk_max_bytes,
        log_sink=log_sink
    )

    connectivity = ConnectivityMonitor(
        probe_host=config.network.probe_host,
        probe_port=config.network.probe_port,
        probe_timeout=config.network.probe_timeout,
        interval=config.network.monitor_interval,
        log_sink=log_sink
    )

    transport = transport or AiohttpTransport(user_agent=config.network.user_agent)

    interceptors = [LoggingInterceptor(log_sink)]
    if get_token is not None:
        interceptors.append(AuthenticationInterceptor(get_token))

    network = NetworkManager(
        cache=cache,
        transport=transport,
        connectivity=connectivity,
        interceptors=interceptors,
        classifier=classifier,
        log_sink=log_sink
    )

    recovery = config.recovery
    error_handler = ErrorHandler(log_sink=log_sink, classifier=classifier, strategy_factories={
        ErrorCategory.NETWORK: partial(NetworkErrorRecoveryStrategy, connectivity,
                                       recovery.network_base_delay, recovery.probe_timeout),
        ErrorCategory.AI: partial(AIErrorRecoveryStrategy, ai_probe,
                                  recovery.ai_base_delay, recovery.probe_timeout),
        ErrorCategory.AUTHENTICATION: partial(AuthErrorRecoveryStrategy, refresh_session),
        ErrorCategory.DATA: partial(DataErrorRecoveryStrategy, resync, recovery.data_delay),
    })

    return CafeteriaClient(
        config=config,
        log_sink=log_sink,
        cache=cache,
        connectivity=connectivity,
        transport=transport,
        network=network,
        error_handler=error_handler
    )
