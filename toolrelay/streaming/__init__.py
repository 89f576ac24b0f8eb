"""
toolrelay - Streaming Module

Chunk types for the incremental tool status stream.
"""

from .chunks import (
    ChunkType,
    Chunk,
    ChunkSink,
    ImagePayload,
    chunk_type_for_status,
    status_chunk,
    image_chunks,
)

__all__ = [
    "ChunkType",
    "Chunk",
    "ChunkSink",
    "ImagePayload",
    "chunk_type_for_status",
    "status_chunk",
    "image_chunks",
]
