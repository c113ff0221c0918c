"""
cafeteria-client

Caching and resilient network core for the campus cafeteria menu app: a
two-tier response cache, a cache-aware request pipeline and categorized error
recovery.
"""

from .cache_manager import CacheManager, CachePolicy, CacheStats
from .client import CafeteriaClient, create_client
from .config import Config
from .error_classifier import ErrorClassifier
from .error_handler import ErrorHandler, ErrorHandlingResult, RecoveryScope
from .exceptions import (
    AIError,
    AppError,
    AuthError,
    DataError,
    ErrorCategory,
    ErrorSeverity,
    GeneralError,
    NetworkError,
)
from .logging_config import LogCategory, LogSink, setup_logging
from .models import Campus, MealMenu
from .network import ConnectivityMonitor, EndpointDescriptor, HTTPMethod, NetworkManager, NetworkStatus

__version__ = "1.0.0"

__all__ = [
    "AIError",
    "AppError",
    "AuthError",
    "CacheManager",
    "CachePolicy",
    "CacheStats",
    "CafeteriaClient",
    "Campus",
    "Config",
    "ConnectivityMonitor",
    "DataError",
    "EndpointDescriptor",
    "ErrorCategory",
    "ErrorClassifier",
    "ErrorHandler",
    "ErrorHandlingResult",
    "ErrorSeverity",
    "GeneralError",
    "HTTPMethod",
    "LogCategory",
    "LogSink",
    "MealMenu",
    "NetworkError",
    "NetworkManager",
    "NetworkStatus",
    "RecoveryScope",
    "create_client",
    "setup_logging",
]
