import json
from urllib.parse import parse_qs, urlsplit

import pytest

from cafeteria_client.exceptions import NetworkError
from cafeteria_client.network import DEFAULT_HEADERS, EndpointDescriptor, HTTPMethod, build_request

BASE_URL = "https://api.example.com"


def test_get_parameters_go_into_query():
    endpoint = EndpointDescriptor(BASE_URL, "/menus", parameters={
        "campus": "seoul", "days": [1, 2], "draft": False
    })
    request = build_request(endpoint)

    parts = urlsplit(request.url)
    assert parts.path == "/menus"
    assert parse_qs(parts.query) == {"campus": ["seoul"], "days": ["1", "2"], "draft": ["false"]}
    assert request.body is None
    assert request.method == "GET"


def test_get_parameters_extend_existing_query():
    request = build_request(EndpointDescriptor(BASE_URL, "/menus?lang=en", parameters={"page": 2}))
    assert request.url == f"{BASE_URL}/menus?lang=en&page=2"


def test_post_parameters_become_json_body():
    endpoint = EndpointDescriptor(BASE_URL, "/menus", HTTPMethod.POST, parameters={"campus": "gumi", "n": 3})
    request = build_request(endpoint)

    assert request.url == f"{BASE_URL}/menus"
    assert json.loads(request.body) == {"campus": "gumi", "n": 3}


def test_explicit_body_wins():
    endpoint = EndpointDescriptor(BASE_URL, "/upload", HTTPMethod.PUT, parameters={"a": 1}, body=b"raw")
    assert build_request(endpoint).body == b"raw"


def test_default_headers_override_caller_headers():
    endpoint = EndpointDescriptor(BASE_URL, "/menus", headers={"Accept": "text/plain", "X-Trace": "abc"})
    request = build_request(endpoint)

    assert request.headers["Accept"] == DEFAULT_HEADERS["Accept"]
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["X-Trace"] == "abc"


def test_timeout_is_carried():
    assert build_request(EndpointDescriptor(BASE_URL, "/menus", timeout=5.0)).timeout == 5.0


@pytest.mark.parametrize("base_url", ["", "api.example.com", "ftp://api.example.com", "https://"])
def test_invalid_url(base_url):
    with pytest.raises(NetworkError) as exc_info:
        build_request(EndpointDescriptor(base_url, "/menus"))
    assert exc_info.value == NetworkError.request_failed("Invalid URL")


def test_endpoint_is_immutable():
    endpoint = EndpointDescriptor(BASE_URL, "/menus")
    with pytest.raises(AttributeError):
        endpoint.path = "/other"
    assert endpoint.url == f"{BASE_URL}/menus"
