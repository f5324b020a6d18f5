"""Data models for tool descriptors, invocation requests, and results."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

JSON_SCHEMA_DRAFT = "http://json-schema.org/draft-07/schema#"


class TextContent(BaseModel):
    """A text content block of a tool result."""

    type: Literal["text"] = "text"
    text: str


class ToolDescriptor(BaseModel):
    """The externally visible shape of a tool. Built once, never mutated."""

    model_config = ConfigDict(frozen=True)

    name: str  # e.g. "Get_Weather" for Get-Weather.py
    description: str
    input_schema: Dict[str, Any] = Field(default_factory=dict)

    @property
    def parameter_names(self) -> List[str]:
        return list(self.input_schema.get("properties", {}))

    @property
    def required(self) -> List[str]:
        return list(self.input_schema.get("required", []))

    def to_protocol(self) -> Dict[str, Any]:
        """Shape used on the wire by ``tools/list``."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class InvocationRequest(BaseModel):
    """Record of a single tool invocation."""

    call_id: str = ""
    tool_name: str
    arguments: Optional[Dict[str, Any]] = None
    timestamp: str = ""

    def model_post_init(self, __context: Any) -> None:
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()
        if not self.call_id:
            raw = f"{self.tool_name}:{self.arguments}:{self.timestamp}"
            self.call_id = hashlib.sha256(raw.encode()).hexdigest()[:12]


class InvocationResult(BaseModel):
    """Either a success payload or a single error block, never both."""

    content: List[TextContent] = Field(default_factory=list)
    is_error: bool = False

    @classmethod
    def success(cls, content: List[TextContent]) -> "InvocationResult":
        return cls(content=content)

    @classmethod
    def failure(cls, message: str) -> "InvocationResult":
        return cls(content=[TextContent(text=message)], is_error=True)

    @property
    def text(self) -> str:
        return "\n".join(block.text for block in self.content)
