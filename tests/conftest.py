import logging
from typing import List, Optional, Union

import pytest

from cafeteria_client.cache_manager import CacheManager
from cafeteria_client.logging_config import LOGGER_ROOT, LogSink
from cafeteria_client.network import (
    ConnectivityMonitor,
    NetworkManager,
    NetworkStatus,
    PreparedRequest,
    Transport,
    TransportResponse,
)


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeTransport(Transport):
    """Transport returning queued responses (or raising queued exceptions)."""

    def __init__(self, responses: Optional[List[Union[TransportResponse, BaseException]]] = None):
        self.responses = list(responses or [])
        self.requests: List[PreparedRequest] = []
        self.closed = False

    def queue(self, status: int = 200, body: bytes = b"{}"):
        self.responses.append(TransportResponse(status=status, body=body))

    def queue_error(self, error: BaseException):
        self.responses.append(error)

    async def send(self, request: PreparedRequest) -> TransportResponse:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"unexpected request to {request.url}")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        response.url = response.url or request.url
        return response

    async def close(self):
        self.closed = True


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float):
        self.delays.append(delay)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def log_sink():
    return LogSink()


@pytest.fixture
def cache(tmp_path, clock, log_sink):
    return CacheManager(tmp_path / "cache", cleanup_interval=0, log_sink=log_sink, clock=clock)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def connectivity(log_sink):
    return ConnectivityMonitor(
        probe=_always_reachable,
        log_sink=log_sink,
        initial_status=NetworkStatus.CONNECTED
    )


@pytest.fixture
def network(cache, transport, connectivity, log_sink):
    return NetworkManager(cache, transport, connectivity, log_sink=log_sink)


@pytest.fixture
def sleep():
    return RecordingSleep()


async def _always_reachable() -> bool:
    return True


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging() so caplog keeps seeing package records."""
    yield
    logger = logging.getLogger(LOGGER_ROOT)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
