"""Cafeteria client - data models.

Pydantic models for the documents the application fetches and caches.
Response models accept both snake_case and camelCase keys.
"""

import datetime as dt
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base class for API response models."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Campus(str, Enum):
    """Campus identifiers."""
    DAEJEON = "daejeon"
    GWANGJU = "gwangju"
    GUMI = "gumi"
    SEOUL = "seoul"
    BUSAN = "busan"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class MealMenu(ApiModel):
    """One day's menu for a campus cafeteria."""

    id: str
    date: dt.date
    campus: Campus
    items_a: List[str] = Field(default_factory=list, description="Course A items")
    items_b: List[str] = Field(default_factory=list, description="Course B items")
    created_at: dt.datetime
    updated_at: dt.datetime
