"""
toolrelay - Core Data Models

Provider-agnostic records for MCP tools, servers, invocations and results.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Union


# ============================================================
# Enums
# ============================================================

class ProviderFamily(str, Enum):
    """Provider wire dialects a tool catalog can be rendered into."""
    OPENAI_CHAT = "openai_chat"
    OPENAI_RESPONSES = "openai_responses"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"


class ToolUseMode(str, Enum):
    """How tools are offered to the model."""
    FUNCTION = "function"   # Native function calling
    PROMPT = "prompt"       # Tagged <tool_use> blocks in text


class InvocationStatus(str, Enum):
    """Lifecycle of a single tool invocation."""
    PENDING = "pending"       # Waiting for approval
    INVOKING = "invoking"     # Tool call in flight
    CANCELLED = "cancelled"   # Rejected or confirmation failed
    DONE = "done"             # Finished, successfully or not

    @property
    def is_terminal(self) -> bool:
        return self in (InvocationStatus.DONE, InvocationStatus.CANCELLED)

    def can_transition_to(self, target: "InvocationStatus") -> bool:
        """Check whether moving from this status to ``target`` is legal."""
        if self.is_terminal:
            return False
        if target == self:
            return True
        return target in _TRANSITIONS[self]


_TRANSITIONS: Dict[InvocationStatus, Set[InvocationStatus]] = {
    InvocationStatus.PENDING: {InvocationStatus.INVOKING, InvocationStatus.CANCELLED},
    InvocationStatus.INVOKING: {InvocationStatus.DONE},
    InvocationStatus.CANCELLED: set(),
    InvocationStatus.DONE: set(),
}


class ContentType(str, Enum):
    """MCP result content item types."""
    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"


# ============================================================
# Tools and Servers
# ============================================================

@dataclass
class ToolDescriptor:
    """
    A tool exposed by an MCP server.

    ``id`` is the catalog-unique name offered to models; ``name`` is the
    tool's own name on its server.
    """
    id: str
    name: str
    description: str = ""
    server_id: str = ""
    server_name: str = ""
    input_schema: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "serverId": self.server_id,
            "serverName": self.server_name,
            "inputSchema": self.input_schema,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolDescriptor":
        """Create from a camelCase or snake_case mapping."""
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            description=data.get("description", "") or "",
            server_id=data.get("serverId", data.get("server_id", "")),
            server_name=data.get("serverName", data.get("server_name", "")),
            input_schema=data.get("inputSchema", data.get("input_schema", {})) or {},
        )


@dataclass
class ServerDescriptor:
    """An MCP server and its auto-approval policy."""
    id: str
    name: str
    disabled_auto_approve_tools: Set[str] = field(default_factory=set)
    description: str = ""
    base_url: str = ""
    command: str = ""
    args: List[str] = field(default_factory=list)
    env: Dict[str, str] = field(default_factory=dict)
    registry_url: str = ""
    is_active: bool = True
    provider: str = ""


# ============================================================
# Results
# ============================================================

@dataclass
class ContentItem:
    """One entry of an MCP tool result."""
    type: Union[ContentType, str]
    text: Optional[str] = None
    data: Optional[str] = None  # base64 payload for image/audio
    mime_type: Optional[str] = None

    @property
    def type_name(self) -> str:
        return self.type.value if isinstance(self.type, ContentType) else str(self.type)

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the MCP wire shape."""
        result: Dict[str, Any] = {"type": self.type_name}

        if self.text is not None:
            result["text"] = self.text
        if self.data is not None:
            result["data"] = self.data
        if self.mime_type is not None:
            result["mimeType"] = self.mime_type

        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentItem":
        raw_type = data.get("type", "text")
        try:
            item_type: Union[ContentType, str] = ContentType(raw_type)
        except ValueError:
            item_type = raw_type

        return cls(
            type=item_type,
            text=data.get("text"),
            data=data.get("data"),
            mime_type=data.get("mimeType", data.get("mime_type")),
        )


@dataclass
class CallResult:
    """Result of an MCP tool call."""
    is_error: bool = False
    content: List[ContentItem] = field(default_factory=list)
    data: Optional[Dict[str, Any]] = None  # Server-specific payload

    @classmethod
    def text(cls, message: str, is_error: bool = False) -> "CallResult":
        """Create a result holding a single text item."""
        return cls(
            is_error=is_error,
            content=[ContentItem(type=ContentType.TEXT, text=message)],
        )

    def images(self) -> List[str]:
        """Data URIs of every image item carrying data."""
        return [
            item.data_uri for item in self.content
            if item.type_name == ContentType.IMAGE.value and item.data
        ]

    def content_json(self) -> str:
        """Serialize the content array the way JSON.stringify would."""
        return json.dumps(
            [item.to_dict() for item in self.content],
            separators=(",", ":"),
            ensure_ascii=False,
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "isError": self.is_error,
            "content": [item.to_dict() for item in self.content],
        }
        if self.data is not None:
            result["data"] = self.data
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CallResult":
        return cls(
            is_error=bool(data.get("isError", data.get("is_error", False))),
            content=[ContentItem.from_dict(c) for c in data.get("content", [])],
            data=data.get("data"),
        )


# ============================================================
# Invocations
# ============================================================

@dataclass
class ToolInvocation:
    """
    State record for one tool invocation.

    Records are replaced rather than mutated as the invocation moves
    through its lifecycle, so a record handed to a chunk consumer keeps
    describing the moment it was emitted.
    """
    id: str
    tool: ToolDescriptor
    arguments: Any = None
    status: InvocationStatus = InvocationStatus.PENDING
    response: Optional[CallResult] = None
    tool_use_id: str = ""

    def with_status(
        self,
        status: InvocationStatus,
        response: Optional[CallResult] = None
    ) -> "ToolInvocation":
        """Return a copy in ``status``, carrying ``response`` if given."""
        return replace(
            self,
            status=status,
            response=response if response is not None else self.response,
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "toolUseId": self.tool_use_id,
            "tool": self.tool.to_dict(),
            "arguments": self.arguments,
            "status": self.status.value,
        }
        if self.response is not None:
            result["response"] = self.response.to_dict()
        return result


# ============================================================
# Models
# ============================================================

@dataclass
class ModelInfo:
    """The model a tool run is serving."""
    id: str
    name: str = ""
    provider: str = ""
    supports_vision: bool = False
    supports_function_calling: bool = False
