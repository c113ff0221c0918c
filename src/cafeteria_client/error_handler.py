"""
Error handling and recovery

``ErrorHandler`` turns any failure into an ``ErrorHandlingResult`` carrying a
user-facing message and a retry decision. Recovery strategies are kept in a
``RecoveryScope`` owned by the caller for one logical retry loop, so attempt
ceilings hold across successive ``handle`` calls of that loop.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from .error_classifier import ErrorClassifier
from .exceptions import AppError, ErrorCategory, ErrorSeverity
from .logging_config import LogCategory, LogSink
from .recovery_strategies import (
    AIErrorRecoveryStrategy,
    AuthErrorRecoveryStrategy,
    DataErrorRecoveryStrategy,
    NetworkErrorRecoveryStrategy,
    RecoveryStrategy,
)

StrategyFactory = Callable[[], RecoveryStrategy]

_SEVERITY_LEVELS = {
    ErrorSeverity.LOW: logging.INFO,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}

_LOG_CATEGORIES = {
    ErrorCategory.NETWORK: LogCategory.NETWORK,
    ErrorCategory.AUTHENTICATION: LogCategory.AUTH,
    ErrorCategory.DATA: LogCategory.DATA,
    ErrorCategory.AI: LogCategory.AI,
    ErrorCategory.GENERAL: LogCategory.GENERAL,
}


@dataclass
class ErrorHandlingResult:
    """Outcome of handling one error."""
    should_retry: bool
    user_message: str
    technical_message: str
    severity: ErrorSeverity
    recovery_attempted: bool
    error: AppError


def default_strategy_factories() -> Dict[ErrorCategory, StrategyFactory]:
    """Strategies with no external hooks; general errors have none."""
    return {
        ErrorCategory.NETWORK: NetworkErrorRecoveryStrategy,
        ErrorCategory.AI: AIErrorRecoveryStrategy,
        ErrorCategory.AUTHENTICATION: AuthErrorRecoveryStrategy,
        ErrorCategory.DATA: DataErrorRecoveryStrategy,
    }


class RecoveryScope:
    """Per-retry-loop strategy instances, created lazily per category."""

    def __init__(self, factories: Dict[ErrorCategory, StrategyFactory]):
        self._factories = factories
        self._strategies: Dict[ErrorCategory, RecoveryStrategy] = {}

    def strategy_for(self, category: ErrorCategory) -> Optional[RecoveryStrategy]:
        strategy = self._strategies.get(category)
        if strategy is None:
            factory = self._factories.get(category)
            if factory is None:
                return None
            strategy = factory()
            self._strategies[category] = strategy
        return strategy

    def reset(self) -> None:
        for strategy in self._strategies.values():
            strategy.reset()


class ErrorHandler:
    """Error handler"""

    def __init__(
        self,
        log_sink: Optional[LogSink] = None,
        classifier: Optional[ErrorClassifier] = None,
        strategy_factories: Optional[Dict[ErrorCategory, StrategyFactory]] = None
    ):
        self.log = log_sink or LogSink()
        self.classifier = classifier or ErrorClassifier()
        self.strategy_factories = dict(
            default_strategy_factories() if strategy_factories is None else strategy_factories
        )

    def register_strategy(self, category: ErrorCategory, factory: StrategyFactory) -> None:
        """Replace the strategy factory for a category (affects new scopes only)."""
        self.strategy_factories[category] = factory

    def new_scope(self) -> RecoveryScope:
        return RecoveryScope(dict(self.strategy_factories))

    async def handle(self, error: BaseException, scope: Optional[RecoveryScope] = None) -> ErrorHandlingResult:
        """Classify, log and possibly recover from ``error``.

        Without ``scope`` a throwaway scope is used, so attempt ceilings only
        apply within this single call.
        """
        app_error = self.classifier.classify(error)
        scope = scope or self.new_scope()
        log_category = _LOG_CATEGORIES[app_error.category]

        self.log.log(
            _SEVERITY_LEVELS[app_error.severity],
            app_error.technical_message,
            log_category,
            error_category=app_error.category.value,
            error_kind=app_error.kind.value,
            severity=app_error.severity.display_name,
            recoverable=app_error.is_recoverable,
            original_type=type(error).__name__
        )

        recovery_attempted = False
        if app_error.is_recoverable:
            strategy = scope.strategy_for(app_error.category)
            if strategy is not None and strategy.can_recover(app_error):
                try:
                    await strategy.attempt_recovery()
                    recovery_attempted = True
                    self.log.info("Recovery attempt completed", log_category,
                                  strategy=type(strategy).__name__,
                                  attempt=strategy.attempts_made,
                                  max_attempts=strategy.max_retry_attempts)
                except Exception as e:
                    self.log.warning("Recovery attempt failed", log_category,
                                     strategy=type(strategy).__name__,
                                     attempt=strategy.attempts_made,
                                     error=repr(self.classifier.classify(e)))
            else:
                self.log.debug("No recovery available", log_category,
                               error_kind=app_error.kind.value,
                               strategy=repr(strategy) if strategy else None)

        return ErrorHandlingResult(
            should_retry=app_error.is_recoverable and recovery_attempted,
            user_message=app_error.user_message,
            technical_message=app_error.technical_message,
            severity=app_error.severity,
            recovery_attempted=recovery_attempted,
            error=app_error
        )

    async def run_with_recovery(
        self,
        operation: Callable[[], Awaitable[Any]],
        max_attempts: Optional[int] = None
    ) -> Any:
        """Run ``operation`` until it succeeds or recovery gives up.

        Args:
            operation: zero-argument coroutine function, re-invoked on retry
            max_attempts: optional overall cap on invocations

        Raises:
            AppError: the last classified failure
        """
        scope = self.new_scope()
        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation()
            except Exception as e:
                result = await self.handle(e, scope)
                exhausted = max_attempts is not None and attempt >= max_attempts
                if not result.should_retry or exhausted:
                    if result.error is e:
                        raise
                    raise result.error from e
