"""
Recovery strategies

One strategy per error category. A strategy counts its own attempts and
refuses further recovery once ``max_retry_attempts`` is reached; only
``reset()`` clears the counter. Delays go through an injectable ``sleep`` so
they stay cancellable and testable.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from .exceptions import AIError, AppError, AuthError, DataError, ErrorCategory, NetworkError
from .network.connectivity import ConnectivityMonitor, NetworkStatus

SleepFunc = Callable[[float], Awaitable[None]]


class RecoveryStrategy:
    """Base recovery strategy: bounded attempts with a delay after each action."""

    category: ErrorCategory = ErrorCategory.GENERAL
    max_retry_attempts: int = 0

    def __init__(self, retry_delay: float = 1.0, sleep: Optional[SleepFunc] = None):
        self.retry_delay = retry_delay
        self.attempts_made = 0
        self._sleep = sleep or asyncio.sleep

    def can_recover(self, error: AppError) -> bool:
        return (
            error.category is self.category
            and error.is_recoverable
            and self.attempts_made < self.max_retry_attempts
        )

    async def attempt_recovery(self) -> None:
        """Run the recovery action, then wait before the caller retries.

        Raises:
            AppError: when the recovery action itself fails
        """
        self.attempts_made += 1
        await self._recover()
        delay = self.delay_for_attempt(self.attempts_made)
        if delay > 0:
            await self._sleep(delay)

    def delay_for_attempt(self, attempt: int) -> float:
        return self.retry_delay

    async def _recover(self) -> None:
        pass

    def reset(self) -> None:
        self.attempts_made = 0

    def __repr__(self):
        return f"{type(self).__name__}(attempts={self.attempts_made}/{self.max_retry_attempts})"


class NetworkErrorRecoveryStrategy(RecoveryStrategy):
    """Re-checks connectivity; linear backoff of ``base_delay * attempt``."""

    category = ErrorCategory.NETWORK
    max_retry_attempts = 3

    def __init__(
        self,
        connectivity: Optional[ConnectivityMonitor] = None,
        base_delay: float = 2.0,
        probe_timeout: float = 3.0,
        sleep: Optional[SleepFunc] = None
    ):
        super().__init__(base_delay, sleep)
        self.connectivity = connectivity
        self.probe_timeout = probe_timeout

    def delay_for_attempt(self, attempt: int) -> float:
        return self.retry_delay * attempt

    async def _recover(self) -> None:
        if self.connectivity is None:
            return
        try:
            status = await asyncio.wait_for(self.connectivity.check(), timeout=self.probe_timeout)
        except asyncio.TimeoutError:
            status = NetworkStatus.DISCONNECTED
        if status is NetworkStatus.DISCONNECTED:
            raise NetworkError.no_connection()


class AIErrorRecoveryStrategy(RecoveryStrategy):
    """Checks the AI service health; linear backoff of ``base_delay * attempt``."""

    category = ErrorCategory.AI
    max_retry_attempts = 2

    def __init__(
        self,
        probe: Optional[Callable[[], Awaitable[bool]]] = None,
        base_delay: float = 5.0,
        probe_timeout: float = 3.0,
        sleep: Optional[SleepFunc] = None
    ):
        super().__init__(base_delay, sleep)
        self.probe = probe
        self.probe_timeout = probe_timeout

    def delay_for_attempt(self, attempt: int) -> float:
        return self.retry_delay * attempt

    async def _recover(self) -> None:
        if self.probe is None:
            return
        try:
            healthy = await asyncio.wait_for(self.probe(), timeout=self.probe_timeout)
        except asyncio.TimeoutError:
            healthy = False
        if not healthy:
            raise AIError.model_unavailable()


class AuthErrorRecoveryStrategy(RecoveryStrategy):
    """Refreshes the session once. No delay is applied."""

    category = ErrorCategory.AUTHENTICATION
    max_retry_attempts = 1

    def __init__(
        self,
        refresh_session: Optional[Callable[[], Awaitable[bool]]] = None,
        sleep: Optional[SleepFunc] = None
    ):
        super().__init__(1.0, sleep)
        self.refresh_session = refresh_session

    def delay_for_attempt(self, attempt: int) -> float:
        return 0.0

    async def _recover(self) -> None:
        if self.refresh_session is None:
            return
        if not await self.refresh_session():
            raise AuthError.session_expired()


class DataErrorRecoveryStrategy(RecoveryStrategy):
    """Triggers a re-sync; fixed delay."""

    category = ErrorCategory.DATA
    max_retry_attempts = 2

    def __init__(
        self,
        resync: Optional[Callable[[], Awaitable[bool]]] = None,
        delay: float = 1.0,
        sleep: Optional[SleepFunc] = None
    ):
        super().__init__(delay, sleep)
        self.resync = resync

    async def _recover(self) -> None:
        if self.resync is None:
            return
        if not await self.resync():
            raise DataError.sync_failed()
