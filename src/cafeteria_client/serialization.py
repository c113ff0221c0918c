"""JSON (de)serialization helpers shared by the cache and the request pipeline."""

from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter


@lru_cache(maxsize=256)
def get_type_adapter(tp: Any) -> TypeAdapter:
    return TypeAdapter(tp)


def dump_json(value: Any) -> str:
    """Serialize any pydantic-compatible value to JSON text."""
    return get_type_adapter(type(value)).dump_json(value).decode("utf-8")


def load_json(data, tp: Any = Any) -> Any:
    """Parse JSON text or bytes and validate it as ``tp``."""
    return get_type_adapter(tp).validate_json(data)
