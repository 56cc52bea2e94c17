"""Shared base for wire models (camelCase on the wire, snake_case in Python)."""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model accepting camelCase or snake_case input and dumping camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        use_enum_values=False,
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize for a request body."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


def coerce_token_usage(value: Any) -> int:
    """Normalize a token usage field.

    The backend reports usage either as a number or as a JSON document carrying
    ``totalTokens``; anything unreadable counts as zero.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, dict):
        total = value.get("totalTokens", value.get("total_tokens"))
        return coerce_token_usage(total) if isinstance(total, int | float) else 0
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        if text.lstrip("-").isdigit():
            return int(text)
        try:
            return coerce_token_usage(json.loads(text))
        except json.JSONDecodeError:
            return 0
    return 0
