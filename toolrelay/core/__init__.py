"""
toolrelay Core Module

Data models and the error taxonomy shared by every component.
"""

from .models import (
    # Enums
    ProviderFamily,
    ToolUseMode,
    InvocationStatus,
    ContentType,

    # Catalog
    ToolDescriptor,
    ServerDescriptor,

    # Results
    ContentItem,
    CallResult,

    # Invocations
    ToolInvocation,
    ModelInfo,
)
from .errors import (
    ErrorType,
    ErrorDetails,
    ToolRelayException,
    ToolNotFoundError,
    ServerNotFoundError,
    ToolExecutionError,
    ConfirmationCancelledError,
    ChunkSinkMissingError,
    UnsupportedProviderError,
    describe_exception,
    error_call_result,
)

__all__ = [
    # Enums
    "ProviderFamily",
    "ToolUseMode",
    "InvocationStatus",
    "ContentType",
    # Models
    "ToolDescriptor",
    "ServerDescriptor",
    "ContentItem",
    "CallResult",
    "ToolInvocation",
    "ModelInfo",
    # Errors
    "ErrorType",
    "ErrorDetails",
    "ToolRelayException",
    "ToolNotFoundError",
    "ServerNotFoundError",
    "ToolExecutionError",
    "ConfirmationCancelledError",
    "ChunkSinkMissingError",
    "UnsupportedProviderError",
    "describe_exception",
    "error_call_result",
]
