"""
Error classification

Maps arbitrary exceptions raised by the transport, the decoder or callers
onto the closed ``AppError`` taxonomy.
"""

import asyncio
import json

import aiohttp
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from .exceptions import AppError, DataError, GeneralError, NetworkError


class ErrorClassifier:
    """Error classifier"""

    @staticmethod
    def classify(error: BaseException) -> AppError:
        """Classify an exception into an ``AppError``."""
        if isinstance(error, AppError):
            return error

        # Timeouts first; ServerTimeoutError is also a ClientError
        if isinstance(error, (aiohttp.ServerTimeoutError, asyncio.TimeoutError, TimeoutError)):
            return NetworkError.timeout()

        # Cannot reach the host (DNS failure, refused connection)
        if isinstance(error, aiohttp.ClientConnectorError):
            return NetworkError.service_unavailable()

        if isinstance(error, (aiohttp.ServerDisconnectedError, ConnectionError)):
            return NetworkError.no_connection()

        if isinstance(error, (aiohttp.ClientPayloadError, aiohttp.ContentTypeError)):
            return NetworkError.invalid_response()

        if isinstance(error, aiohttp.ClientError):
            return NetworkError.request_failed(str(error) or type(error).__name__)

        # Named explicitly: a bare ValueError or TypeError is a bug, not bad data
        if isinstance(error, (json.JSONDecodeError, UnicodeError, ValidationError, PydanticSerializationError)):
            return DataError.parsing_failed()

        return GeneralError.unknown()
