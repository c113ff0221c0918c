"""Connectivity monitoring.

``ConnectivityMonitor`` keeps the last known network status. The status is
refreshed by ``check()`` (a short TCP reachability probe), by the optional
background loop started with ``start()``, or pushed by the host application
through ``set_status()``.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional

from ..logging_config import LogCategory, LogSink


class NetworkStatus(Enum):
    """Network status"""
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    UNKNOWN = "unknown"


class ConnectivityMonitor:
    """Tracks whether the network is reachable."""

    def __init__(
        self,
        probe_host: str = "1.1.1.1",
        probe_port: int = 443,
        probe_timeout: float = 3.0,
        interval: float = 10.0,
        probe: Optional[Callable[[], Awaitable[bool]]] = None,
        log_sink: Optional[LogSink] = None,
        initial_status: NetworkStatus = NetworkStatus.UNKNOWN
    ):
        self.probe_host = probe_host
        self.probe_port = probe_port
        self.probe_timeout = probe_timeout
        self.interval = interval
        self._probe = probe or self._tcp_probe
        self.log = log_sink or LogSink()
        self._status = initial_status
        self._monitor_task: Optional[asyncio.Task] = None

    @property
    def status(self) -> NetworkStatus:
        return self._status

    @property
    def is_connected(self) -> bool:
        """True unless the network is known to be down."""
        return self._status is not NetworkStatus.DISCONNECTED

    def set_status(self, status: NetworkStatus) -> None:
        if status is not self._status:
            self.log.info("Network status changed", LogCategory.NETWORK,
                          previous=self._status.value, current=status.value)
        self._status = status

    async def check(self) -> NetworkStatus:
        """Probe reachability now and update the status."""
        try:
            reachable = await asyncio.wait_for(self._probe(), timeout=self.probe_timeout)
        except (asyncio.TimeoutError, OSError) as e:
            self.log.debug("Connectivity probe failed", LogCategory.NETWORK, error=str(e))
            reachable = False
        except Exception as e:
            self.log.warning("Connectivity probe raised unexpectedly", LogCategory.NETWORK,
                             exc_info=e, error=str(e))
            reachable = False
        self.set_status(NetworkStatus.CONNECTED if reachable else NetworkStatus.DISCONNECTED)
        return self._status

    async def _tcp_probe(self) -> bool:
        reader, writer = await asyncio.open_connection(self.probe_host, self.probe_port)
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        return True

    async def start(self):
        """Start periodic probing."""
        if self._monitor_task is None:
            self._monitor_task = asyncio.create_task(self._monitor_loop())
            self.log.info("Connectivity monitor started", LogCategory.NETWORK,
                          probe=f"{self.probe_host}:{self.probe_port}", interval=self.interval)

    async def stop(self):
        """Stop periodic probing."""
        if self._monitor_task:
            self._monitor_task.cancel()
            try:
                await self._monitor_task
            except asyncio.CancelledError:
                pass
            self._monitor_task = None
            self.log.info("Connectivity monitor stopped", LogCategory.NETWORK)

    async def _monitor_loop(self):
        while True:
            await self.check()
            await asyncio.sleep(self.interval)
