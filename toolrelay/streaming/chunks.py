"""
toolrelay - Invocation Chunks

Incremental status updates pushed to the caller while tools run.

Consumers key updates by invocation id: chunks for one invocation arrive
in lifecycle order, chunks for different invocations interleave freely.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..core.models import InvocationStatus, ToolInvocation


class ChunkType(str, Enum):
    """Kinds of chunks emitted during a tool run."""
    MCP_TOOL_PENDING = "mcp_tool_pending"
    MCP_TOOL_IN_PROGRESS = "mcp_tool_in_progress"
    MCP_TOOL_COMPLETE = "mcp_tool_complete"
    IMAGE_CREATED = "image_created"
    IMAGE_COMPLETE = "image_complete"


@dataclass
class ImagePayload:
    """Images produced by a tool, as data URIs."""
    images: List[str] = field(default_factory=list)
    type: str = "base64"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "images": list(self.images)}


@dataclass
class Chunk:
    """One unit of the status stream."""
    type: ChunkType
    responses: List[ToolInvocation] = field(default_factory=list)
    image: Optional[ImagePayload] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": self.type.value}

        if self.responses:
            result["responses"] = [r.to_dict() for r in self.responses]
        if self.image is not None:
            result["image"] = self.image.to_dict()

        return result


ChunkSink = Callable[[Chunk], None]


_STATUS_CHUNKS: Dict[InvocationStatus, ChunkType] = {
    InvocationStatus.PENDING: ChunkType.MCP_TOOL_PENDING,
    InvocationStatus.INVOKING: ChunkType.MCP_TOOL_IN_PROGRESS,
    InvocationStatus.CANCELLED: ChunkType.MCP_TOOL_COMPLETE,
    InvocationStatus.DONE: ChunkType.MCP_TOOL_COMPLETE,
}


def chunk_type_for_status(status: InvocationStatus) -> ChunkType:
    """Chunk type announcing an invocation entering ``status``."""
    return _STATUS_CHUNKS[status]


def status_chunk(invocation: ToolInvocation) -> Chunk:
    """Chunk carrying a single invocation record."""
    return Chunk(type=chunk_type_for_status(invocation.status), responses=[invocation])


def image_chunks(images: List[str]) -> List[Chunk]:
    """The created/complete pair announcing tool-produced images."""
    return [
        Chunk(type=ChunkType.IMAGE_CREATED),
        Chunk(type=ChunkType.IMAGE_COMPLETE, image=ImagePayload(images=list(images))),
    ]
