"""Endpoint descriptors and concrete request construction."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode, urlsplit

from ..exceptions import NetworkError

DEFAULT_TIMEOUT = 30.0

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class HTTPMethod(str, Enum):
    """HTTP methods"""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


@dataclass(frozen=True)
class EndpointDescriptor:
    """Immutable template for one logical API call."""
    base_url: str
    path: str
    method: HTTPMethod = HTTPMethod.GET
    headers: Optional[Mapping[str, str]] = None
    parameters: Optional[Mapping[str, Any]] = None
    body: Optional[bytes] = None
    timeout: float = DEFAULT_TIMEOUT

    @property
    def url(self) -> str:
        return self.base_url + self.path


@dataclass
class PreparedRequest:
    """Concrete outbound request; interceptors may mutate ``headers``."""
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    timeout: float = DEFAULT_TIMEOUT


def build_request(endpoint: EndpointDescriptor) -> PreparedRequest:
    """Build a request from an endpoint.

    Caller headers are applied first and the JSON defaults on top. GET
    parameters go into the query string; for other methods they are sent as a
    JSON body unless an explicit ``body`` is set.
    """
    url = endpoint.url
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise NetworkError.request_failed("Invalid URL")

    headers = dict(endpoint.headers or {})
    headers.update(DEFAULT_HEADERS)

    body = None
    if endpoint.parameters:
        if endpoint.method is HTTPMethod.GET:
            query = urlencode({k: _query_value(v) for k, v in endpoint.parameters.items()}, doseq=True)
            url = f"{url}&{query}" if parts.query else f"{url}?{query}"
        else:
            try:
                body = json.dumps(endpoint.parameters).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise NetworkError.request_failed(f"Unserializable parameters: {e}") from e

    if endpoint.body is not None:
        body = endpoint.body

    return PreparedRequest(
        method=endpoint.method.value,
        url=url,
        headers=headers,
        body=body,
        timeout=endpoint.timeout
    )


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return [_query_value(v) for v in value]
    return value
