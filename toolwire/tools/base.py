"""
Tool Result Envelope.

Every tools/call response is a ToolResult: a list of content blocks and
an is_error flag. Handler return values are normalized here:

    ToolResult.from_value("done")          # text passes through verbatim
    ToolResult.from_value({"sum": 5})      # serialized to JSON text
    ToolResult.error("Tool add not found") # isError: true

Wire shape:
    {"content": [{"type": "text", "text": "..."}]}
    {"content": [{"type": "text", "text": "Error: ..."}], "isError": true}
"""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel


class ContentType(Enum):
    """Type of content in a tool result."""

    TEXT = "text"


@dataclass(frozen=True, slots=True)
class ContentBlock:
    """Content block in a tool result."""

    type: ContentType
    text: str = ""

    @classmethod
    def from_text(cls, content: str) -> ContentBlock:
        return cls(type=ContentType.TEXT, text=content)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "text": self.text}


@dataclass(frozen=True, slots=True)
class ToolResult:
    """
    Result of a tool invocation.

    Attributes:
        content: Content blocks, normally a single text block
        is_error: Whether the invocation failed
    """

    content: tuple[ContentBlock, ...]
    is_error: bool = False

    @classmethod
    def success(cls, text: str) -> ToolResult:
        return cls(content=(ContentBlock.from_text(text),))

    @classmethod
    def from_value(cls, value: Any) -> ToolResult:
        """
        Wrap a handler return value.

        Strings are used verbatim; everything else is serialized to JSON.
        """
        if isinstance(value, str):
            return cls.success(value)
        return cls.success(serialize_value(value))

    @classmethod
    def error(cls, message: str) -> ToolResult:
        return cls(
            content=(ContentBlock.from_text(f"Error: {message}"),),
            is_error=True,
        )

    @property
    def text(self) -> str:
        """Text of the first content block."""
        for block in self.content:
            if block.type == ContentType.TEXT:
                return block.text
        return ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "content": [block.to_dict() for block in self.content],
        }
        if self.is_error:
            result["isError"] = True
        return result


def serialize_value(value: Any) -> str:
    """Serialize a handler return value to JSON text."""
    return json.dumps(value, default=_json_default, ensure_ascii=False)


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    if isinstance(value, Enum):
        return value.value
    return str(value)
