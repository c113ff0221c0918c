import asyncio
import json
from unittest.mock import MagicMock

import aiohttp
import pytest
from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from cafeteria_client.error_classifier import ErrorClassifier
from cafeteria_client.exceptions import AuthError, DataError, GeneralError, NetworkError


def _json_error():
    try:
        json.loads("{not json")
    except json.JSONDecodeError as e:
        return e


def _validation_error():
    try:
        TypeAdapter(int).validate_python("abc")
    except ValidationError as e:
        return e


@pytest.mark.parametrize("error, expected", [
    (asyncio.TimeoutError(), NetworkError.timeout()),
    (aiohttp.ServerTimeoutError("read timeout"), NetworkError.timeout()),
    (aiohttp.ClientConnectorError(MagicMock(), OSError(111, "Connection refused")),
     NetworkError.service_unavailable()),
    (aiohttp.ServerDisconnectedError(), NetworkError.no_connection()),
    (ConnectionResetError(), NetworkError.no_connection()),
    (aiohttp.ClientPayloadError("truncated"), NetworkError.invalid_response()),
    (aiohttp.ContentTypeError(MagicMock(), ()), NetworkError.invalid_response()),
    (aiohttp.ClientError("boom"), NetworkError.request_failed("boom")),
    (_json_error(), DataError.parsing_failed()),
    (_validation_error(), DataError.parsing_failed()),
    (UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"), DataError.parsing_failed()),
    (RuntimeError("unexpected"), GeneralError.unknown()),
])
def test_classify(error, expected):
    assert ErrorClassifier.classify(error) == expected


def test_app_errors_pass_through():
    error = AuthError.session_expired()
    assert ErrorClassifier().classify(error) is error


def test_programming_errors_are_not_data_errors():
    """测试普通TypeError不会被当作可恢复的数据错误"""
    error = ErrorClassifier.classify(TypeError("unsupported operand type(s) for +: 'int' and 'str'"))
    assert error == GeneralError.unknown()
    assert not error.is_recoverable
    assert ErrorClassifier.classify(ValueError("bad argument")) == GeneralError.unknown()


def test_serialization_failure_is_a_data_error():
    with pytest.raises(PydanticSerializationError) as exc_info:
        TypeAdapter(dict).dump_json({"when": object()})
    assert ErrorClassifier.classify(exc_info.value) == DataError.parsing_failed()
