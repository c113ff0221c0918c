"""
Application error taxonomy

A closed set of five categories (network, authentication, data, AI, general),
each with enumerated kinds. Every kind carries fixed, derivable properties:
a user-facing message, a technical message, recoverability and severity.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union


class ErrorSeverity(Enum):
    """Error severity"""
    LOW = 1        # informational
    MEDIUM = 2     # warning
    HIGH = 3       # error
    CRITICAL = 4   # fatal

    @property
    def display_name(self) -> str:
        return self.name.capitalize()


class ErrorCategory(Enum):
    """Top-level error categories"""
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    DATA = "data"
    AI = "ai"
    GENERAL = "general"


@dataclass(frozen=True)
class _KindInfo:
    user_message: Union[str, Callable[[Any], str]]
    technical_message: Union[str, Callable[[Any], str]]
    recoverable: Union[bool, Callable[[Any], bool]]
    severity: Union[ErrorSeverity, Callable[[Any], ErrorSeverity]]


def _resolve(value, detail):
    return value(detail) if callable(value) else value


class AppError(Exception):
    """Base class for all categorized errors.

    Instances compare equal when category, kind and detail match, so they can
    be used as dictionary keys and in assertions.
    """

    category: ErrorCategory = ErrorCategory.GENERAL
    Kind: type = Enum
    _KINDS: Dict[Any, _KindInfo] = {}

    def __init__(self, kind, detail: Any = None):
        if kind not in self._KINDS:
            raise ValueError(f"{type(self).__name__} has no kind {kind!r}")
        self.kind = kind
        self.detail = detail
        super().__init__(self.technical_message)

    @property
    def _info(self) -> _KindInfo:
        return self._KINDS[self.kind]

    @property
    def user_message(self) -> str:
        return _resolve(self._info.user_message, self.detail)

    @property
    def technical_message(self) -> str:
        return _resolve(self._info.technical_message, self.detail)

    @property
    def is_recoverable(self) -> bool:
        return _resolve(self._info.recoverable, self.detail)

    @property
    def severity(self) -> ErrorSeverity:
        return _resolve(self._info.severity, self.detail)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "kind": self.kind.value,
            "detail": self.detail,
            "user_message": self.user_message,
            "technical_message": self.technical_message,
            "recoverable": self.is_recoverable,
            "severity": self.severity.name.lower(),
        }

    def __eq__(self, other):
        if not isinstance(other, AppError):
            return NotImplemented
        return (self.category, self.kind, self.detail) == (other.category, other.kind, other.detail)

    def __hash__(self):
        return hash((self.category, self.kind, self.detail))

    def __repr__(self):
        if self.detail is None:
            return f"{type(self).__name__}.{self.kind.value}"
        return f"{type(self).__name__}.{self.kind.value}({self.detail!r})"


# --------------------------------------------------------------------------
# Network
# --------------------------------------------------------------------------

class NetworkErrorKind(Enum):
    NO_CONNECTION = "no_connection"
    TIMEOUT = "timeout"
    SERVER_ERROR = "server_error"
    INVALID_RESPONSE = "invalid_response"
    REQUEST_FAILED = "request_failed"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    SERVICE_UNAVAILABLE = "service_unavailable"


def _server_error_message(code: int) -> str:
    if 500 <= code <= 599:
        return "The server is having a temporary problem. Please try again shortly."
    if 400 <= code <= 499:
        return "The request could not be processed. Please restart the app."
    return f"A server error occurred. (code: {code})"


class NetworkError(AppError):
    """Network errors"""

    category = ErrorCategory.NETWORK
    Kind = NetworkErrorKind
    _KINDS = {
        NetworkErrorKind.NO_CONNECTION: _KindInfo(
            "Please check your internet connection.",
            "Network connection unavailable",
            True, ErrorSeverity.MEDIUM),
        NetworkErrorKind.TIMEOUT: _KindInfo(
            "The request timed out. Please try again.",
            "Request timeout",
            True, ErrorSeverity.MEDIUM),
        NetworkErrorKind.SERVER_ERROR: _KindInfo(
            _server_error_message,
            lambda code: f"Server error with status code: {code}",
            lambda code: code >= 500,
            lambda code: ErrorSeverity.HIGH if code >= 500 else ErrorSeverity.MEDIUM),
        NetworkErrorKind.INVALID_RESPONSE: _KindInfo(
            "The server response could not be processed.",
            "Invalid server response format",
            False, ErrorSeverity.HIGH),
        NetworkErrorKind.REQUEST_FAILED: _KindInfo(
            lambda reason: f"The request failed: {reason}",
            lambda reason: f"Request failed: {reason}",
            False, ErrorSeverity.HIGH),
        NetworkErrorKind.RATE_LIMIT_EXCEEDED: _KindInfo(
            "Too many requests. Please try again shortly.",
            "API rate limit exceeded",
            True, ErrorSeverity.MEDIUM),
        NetworkErrorKind.SERVICE_UNAVAILABLE: _KindInfo(
            "The service is temporarily unavailable.",
            "Service temporarily unavailable",
            True, ErrorSeverity.HIGH),
    }

    @classmethod
    def no_connection(cls) -> "NetworkError":
        return cls(NetworkErrorKind.NO_CONNECTION)

    @classmethod
    def timeout(cls) -> "NetworkError":
        return cls(NetworkErrorKind.TIMEOUT)

    @classmethod
    def server_error(cls, code: int) -> "NetworkError":
        return cls(NetworkErrorKind.SERVER_ERROR, code)

    @classmethod
    def invalid_response(cls) -> "NetworkError":
        return cls(NetworkErrorKind.INVALID_RESPONSE)

    @classmethod
    def request_failed(cls, reason: str) -> "NetworkError":
        return cls(NetworkErrorKind.REQUEST_FAILED, reason)

    @classmethod
    def rate_limit_exceeded(cls) -> "NetworkError":
        return cls(NetworkErrorKind.RATE_LIMIT_EXCEEDED)

    @classmethod
    def service_unavailable(cls) -> "NetworkError":
        return cls(NetworkErrorKind.SERVICE_UNAVAILABLE)

    @property
    def status_code(self) -> Optional[int]:
        return self.detail if self.kind is NetworkErrorKind.SERVER_ERROR else None


# --------------------------------------------------------------------------
# Authentication
# --------------------------------------------------------------------------

class AuthErrorKind(Enum):
    USER_NOT_FOUND = "user_not_found"
    INVALID_CREDENTIALS = "invalid_credentials"
    SESSION_EXPIRED = "session_expired"
    ACCOUNT_LOCKED = "account_locked"
    PERMISSION_DENIED = "permission_denied"
    SIGN_IN_FAILED = "sign_in_failed"
    GUEST_MODE_NOT_AVAILABLE = "guest_mode_not_available"


class AuthError(AppError):
    """Authentication errors"""

    category = ErrorCategory.AUTHENTICATION
    Kind = AuthErrorKind
    _KINDS = {
        AuthErrorKind.USER_NOT_FOUND: _KindInfo(
            "User information could not be found.",
            "User not found in database",
            False, ErrorSeverity.HIGH),
        AuthErrorKind.INVALID_CREDENTIALS: _KindInfo(
            "The sign-in information is incorrect.",
            "Invalid authentication credentials",
            False, ErrorSeverity.HIGH),
        AuthErrorKind.SESSION_EXPIRED: _KindInfo(
            "Your session has expired. Please sign in again.",
            "User session has expired",
            True, ErrorSeverity.MEDIUM),
        AuthErrorKind.ACCOUNT_LOCKED: _KindInfo(
            "Your account is locked. Please contact an administrator.",
            "User account is locked",
            False, ErrorSeverity.HIGH),
        AuthErrorKind.PERMISSION_DENIED: _KindInfo(
            "You do not have permission to do this.",
            "Insufficient permissions",
            False, ErrorSeverity.HIGH),
        AuthErrorKind.SIGN_IN_FAILED: _KindInfo(
            lambda reason: f"Sign-in failed: {reason}",
            lambda reason: f"Sign-in failed: {reason}",
            True, ErrorSeverity.MEDIUM),
        AuthErrorKind.GUEST_MODE_NOT_AVAILABLE: _KindInfo(
            "Guest mode is not available.",
            "Guest mode is not available",
            False, ErrorSeverity.HIGH),
    }

    @classmethod
    def user_not_found(cls) -> "AuthError":
        return cls(AuthErrorKind.USER_NOT_FOUND)

    @classmethod
    def invalid_credentials(cls) -> "AuthError":
        return cls(AuthErrorKind.INVALID_CREDENTIALS)

    @classmethod
    def session_expired(cls) -> "AuthError":
        return cls(AuthErrorKind.SESSION_EXPIRED)

    @classmethod
    def account_locked(cls) -> "AuthError":
        return cls(AuthErrorKind.ACCOUNT_LOCKED)

    @classmethod
    def permission_denied(cls) -> "AuthError":
        return cls(AuthErrorKind.PERMISSION_DENIED)

    @classmethod
    def sign_in_failed(cls, reason: str) -> "AuthError":
        return cls(AuthErrorKind.SIGN_IN_FAILED, reason)

    @classmethod
    def guest_mode_not_available(cls) -> "AuthError":
        return cls(AuthErrorKind.GUEST_MODE_NOT_AVAILABLE)


# --------------------------------------------------------------------------
# Data
# --------------------------------------------------------------------------

class DataErrorKind(Enum):
    PARSING_FAILED = "parsing_failed"
    DATA_CORRUPTED = "data_corrupted"
    DATA_NOT_FOUND = "data_not_found"
    INVALID_DATA_FORMAT = "invalid_data_format"
    DATABASE_ERROR = "database_error"
    SYNC_FAILED = "sync_failed"
    VALIDATION_FAILED = "validation_failed"


class DataError(AppError):
    """Data errors"""

    category = ErrorCategory.DATA
    Kind = DataErrorKind
    _KINDS = {
        DataErrorKind.PARSING_FAILED: _KindInfo(
            "The data could not be processed.",
            "Failed to parse data",
            True, ErrorSeverity.MEDIUM),
        DataErrorKind.DATA_CORRUPTED: _KindInfo(
            "The data is corrupted. Please restart the app.",
            "Data corruption detected",
            False, ErrorSeverity.HIGH),
        DataErrorKind.DATA_NOT_FOUND: _KindInfo(
            "The requested data could not be found.",
            "Requested data not found",
            False, ErrorSeverity.MEDIUM),
        DataErrorKind.INVALID_DATA_FORMAT: _KindInfo(
            "The data format is not valid.",
            "Invalid data format",
            False, ErrorSeverity.MEDIUM),
        DataErrorKind.DATABASE_ERROR: _KindInfo(
            lambda reason: f"A database error occurred: {reason}",
            lambda reason: f"Database error: {reason}",
            False, ErrorSeverity.HIGH),
        DataErrorKind.SYNC_FAILED: _KindInfo(
            "Data synchronization failed.",
            "Data synchronization failed",
            True, ErrorSeverity.MEDIUM),
        DataErrorKind.VALIDATION_FAILED: _KindInfo(
            lambda reason: f"Data validation failed: {reason}",
            lambda reason: f"Data validation failed: {reason}",
            False, ErrorSeverity.MEDIUM),
    }

    @classmethod
    def parsing_failed(cls) -> "DataError":
        return cls(DataErrorKind.PARSING_FAILED)

    @classmethod
    def data_corrupted(cls) -> "DataError":
        return cls(DataErrorKind.DATA_CORRUPTED)

    @classmethod
    def data_not_found(cls) -> "DataError":
        return cls(DataErrorKind.DATA_NOT_FOUND)

    @classmethod
    def invalid_data_format(cls) -> "DataError":
        return cls(DataErrorKind.INVALID_DATA_FORMAT)

    @classmethod
    def database_error(cls, reason: str) -> "DataError":
        return cls(DataErrorKind.DATABASE_ERROR, reason)

    @classmethod
    def sync_failed(cls) -> "DataError":
        return cls(DataErrorKind.SYNC_FAILED)

    @classmethod
    def validation_failed(cls, reason: str) -> "DataError":
        return cls(DataErrorKind.VALIDATION_FAILED, reason)


# --------------------------------------------------------------------------
# AI service
# --------------------------------------------------------------------------

class AIErrorKind(Enum):
    IMAGE_CONVERSION_FAILED = "image_conversion_failed"
    API_REQUEST_FAILED = "api_request_failed"
    NO_CONTENT_RECEIVED = "no_content_received"
    PARSING_FAILED = "parsing_failed"
    QUOTA_EXCEEDED = "quota_exceeded"
    MODEL_UNAVAILABLE = "model_unavailable"
    INVALID_IMAGE_FORMAT = "invalid_image_format"


class AIError(AppError):
    """AI service errors"""

    category = ErrorCategory.AI
    Kind = AIErrorKind
    _KINDS = {
        AIErrorKind.IMAGE_CONVERSION_FAILED: _KindInfo(
            "The image could not be processed. Please try another image.",
            "Failed to convert image to required format",
            False, ErrorSeverity.MEDIUM),
        AIErrorKind.API_REQUEST_FAILED: _KindInfo(
            "The AI service request failed. Please try again.",
            "AI API request failed",
            True, ErrorSeverity.HIGH),
        AIErrorKind.NO_CONTENT_RECEIVED: _KindInfo(
            "No response was received from the AI service.",
            "No content received from AI service",
            False, ErrorSeverity.HIGH),
        AIErrorKind.PARSING_FAILED: _KindInfo(
            "The AI response could not be processed.",
            "Failed to parse AI response",
            False, ErrorSeverity.HIGH),
        AIErrorKind.QUOTA_EXCEEDED: _KindInfo(
            "The AI service quota has been exceeded. Please try again later.",
            "AI service quota exceeded",
            True, ErrorSeverity.MEDIUM),
        AIErrorKind.MODEL_UNAVAILABLE: _KindInfo(
            "The AI service is temporarily unavailable.",
            "AI model temporarily unavailable",
            True, ErrorSeverity.MEDIUM),
        AIErrorKind.INVALID_IMAGE_FORMAT: _KindInfo(
            "This image format is not supported.",
            "Unsupported image format",
            False, ErrorSeverity.MEDIUM),
    }

    @classmethod
    def image_conversion_failed(cls) -> "AIError":
        return cls(AIErrorKind.IMAGE_CONVERSION_FAILED)

    @classmethod
    def api_request_failed(cls) -> "AIError":
        return cls(AIErrorKind.API_REQUEST_FAILED)

    @classmethod
    def no_content_received(cls) -> "AIError":
        return cls(AIErrorKind.NO_CONTENT_RECEIVED)

    @classmethod
    def parsing_failed(cls) -> "AIError":
        return cls(AIErrorKind.PARSING_FAILED)

    @classmethod
    def quota_exceeded(cls) -> "AIError":
        return cls(AIErrorKind.QUOTA_EXCEEDED)

    @classmethod
    def model_unavailable(cls) -> "AIError":
        return cls(AIErrorKind.MODEL_UNAVAILABLE)

    @classmethod
    def invalid_image_format(cls) -> "AIError":
        return cls(AIErrorKind.INVALID_IMAGE_FORMAT)


# --------------------------------------------------------------------------
# General
# --------------------------------------------------------------------------

class GeneralErrorKind(Enum):
    UNKNOWN = "unknown"
    NOT_IMPLEMENTED = "not_implemented"
    INVALID_OPERATION = "invalid_operation"
    RESOURCE_UNAVAILABLE = "resource_unavailable"
    CONFIGURATION_ERROR = "configuration_error"


class GeneralError(AppError):
    """General errors"""

    category = ErrorCategory.GENERAL
    Kind = GeneralErrorKind
    _KINDS = {
        GeneralErrorKind.UNKNOWN: _KindInfo(
            "An unknown error occurred.",
            "Unknown error occurred",
            False, ErrorSeverity.HIGH),
        GeneralErrorKind.NOT_IMPLEMENTED: _KindInfo(
            "This feature is not available yet.",
            "Feature not implemented",
            False, ErrorSeverity.MEDIUM),
        GeneralErrorKind.INVALID_OPERATION: _KindInfo(
            "This operation is not allowed.",
            "Invalid operation attempted",
            False, ErrorSeverity.MEDIUM),
        GeneralErrorKind.RESOURCE_UNAVAILABLE: _KindInfo(
            "A required resource is unavailable.",
            "Required resource unavailable",
            True, ErrorSeverity.MEDIUM),
        GeneralErrorKind.CONFIGURATION_ERROR: _KindInfo(
            lambda reason: f"A configuration error occurred: {reason}",
            lambda reason: f"Configuration error: {reason}",
            False, ErrorSeverity.HIGH),
    }

    @classmethod
    def unknown(cls) -> "GeneralError":
        return cls(GeneralErrorKind.UNKNOWN)

    @classmethod
    def not_implemented(cls) -> "GeneralError":
        return cls(GeneralErrorKind.NOT_IMPLEMENTED)

    @classmethod
    def invalid_operation(cls) -> "GeneralError":
        return cls(GeneralErrorKind.INVALID_OPERATION)

    @classmethod
    def resource_unavailable(cls) -> "GeneralError":
        return cls(GeneralErrorKind.RESOURCE_UNAVAILABLE)

    @classmethod
    def configuration_error(cls, reason: str) -> "GeneralError":
        return cls(GeneralErrorKind.CONFIGURATION_ERROR, reason)
