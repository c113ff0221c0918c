"""Cache key derivation.

Both schemes are deterministic so identical logical requests map to the same
entry. Endpoint keys are also used verbatim as disk file names.
"""

import base64
import hashlib
import json
from datetime import date as date_type
from enum import Enum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from ..network.endpoint import EndpointDescriptor

KEY_SEPARATOR = "|"


def _parameters_description(parameters) -> str:
    if not parameters:
        return ""
    return json.dumps(parameters, sort_keys=True, separators=(",", ":"), default=str)


def endpoint_key(endpoint: "EndpointDescriptor") -> str:
    """Hash base URL, path, method, parameters and body into a 32-char key."""
    components = [
        endpoint.base_url,
        endpoint.path,
        endpoint.method.value,
        _parameters_description(endpoint.parameters),
        base64.b64encode(endpoint.body).decode("ascii") if endpoint.body else ""
    ]
    key_str = KEY_SEPARATOR.join(components)
    return hashlib.md5(key_str.encode("utf-8")).hexdigest()


def menu_key(user_id: str, campus: Union[str, Enum], day: date_type) -> str:
    """Build ``menu_<user>_<campus>_<yyyy-MM-dd>``."""
    campus_id = campus.value if isinstance(campus, Enum) else str(campus)
    return f"menu_{user_id}_{campus_id}_{day.strftime('%Y-%m-%d')}"
