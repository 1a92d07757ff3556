from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

CAMEL_CONFIG: dict[str, Any] = {
    "alias_generator": to_camel,
    "populate_by_name": True,
    "extra": "ignore",
}


class ApiEnvelope(BaseModel):
    """``{success, data, message}`` wrapper used by the message REST endpoints."""

    success: bool = True
    data: Any = None
    message: str | None = None
