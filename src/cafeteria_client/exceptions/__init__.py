"""Categorized application errors."""

from .app_errors import (
    AIError,
    AIErrorKind,
    AppError,
    AuthError,
    AuthErrorKind,
    DataError,
    DataErrorKind,
    ErrorCategory,
    ErrorSeverity,
    GeneralError,
    GeneralErrorKind,
    NetworkError,
    NetworkErrorKind,
)

__all__ = [
    "AIError",
    "AIErrorKind",
    "AppError",
    "AuthError",
    "AuthErrorKind",
    "DataError",
    "DataErrorKind",
    "ErrorCategory",
    "ErrorSeverity",
    "GeneralError",
    "GeneralErrorKind",
    "NetworkError",
    "NetworkErrorKind",
]
