"""
toolrelay - Error Definitions

Error taxonomy for tool orchestration.

Not-found, malformed-argument, execution and confirmation failures are
recoverable: they are logged and recorded on the invocation, never raised
out of a run. Contract errors are programming mistakes and do propagate.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .models import CallResult


class ErrorType(str, Enum):
    """Error classification."""
    NOT_FOUND = "not_found"
    MALFORMED_ARGUMENTS = "malformed_arguments"
    EXECUTION = "execution_error"
    CONFIRMATION = "confirmation_error"
    CONTRACT = "contract_error"


@dataclass
class ErrorDetails:
    """Full error information."""
    code: str
    message: str
    type: ErrorType

    # Context fields
    tool_name: Optional[str] = None
    server_name: Optional[str] = None
    invocation_id: Optional[str] = None

    recoverable: bool = True
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "type": self.type.value,
            "recoverable": self.recoverable,
        }

        if self.tool_name:
            result["tool_name"] = self.tool_name
        if self.server_name:
            result["server_name"] = self.server_name
        if self.invocation_id:
            result["invocation_id"] = self.invocation_id
        if self.details:
            result["details"] = self.details

        return {"error": result}


class ToolRelayException(Exception):
    """Base exception for all toolrelay errors."""

    def __init__(self, error: ErrorDetails):
        self.error = error
        super().__init__(error.message)


# ============================================================
# Recoverable Errors
# ============================================================

class ToolNotFoundError(ToolRelayException):
    """A model referenced a tool that is not in the catalog."""

    def __init__(self, tool_name: str, source: str = "parser"):
        super().__init__(
            ErrorDetails(
                code="tool_not_found",
                message=f'Tool "{tool_name}" not found',
                type=ErrorType.NOT_FOUND,
                tool_name=tool_name,
                details={"source": source},
            )
        )


class ServerNotFoundError(ToolRelayException):
    """The server owning a tool is not configured."""

    def __init__(self, server_id: str, server_name: str = ""):
        super().__init__(
            ErrorDetails(
                code="server_not_found",
                message=f"Server not found: {server_name or server_id}",
                type=ErrorType.NOT_FOUND,
                server_name=server_name or None,
                details={"server_id": server_id},
            )
        )


class ToolExecutionError(ToolRelayException):
    """The tool call itself failed."""

    def __init__(self, tool_name: str, message: str, invocation_id: str = ""):
        super().__init__(
            ErrorDetails(
                code="tool_execution_failed",
                message=f"Error calling tool {tool_name}: {message}",
                type=ErrorType.EXECUTION,
                tool_name=tool_name,
                invocation_id=invocation_id or None,
            )
        )


class ConfirmationCancelledError(ToolRelayException):
    """The confirmation wait was aborted by the cancel signal."""

    def __init__(self, invocation_id: str):
        super().__init__(
            ErrorDetails(
                code="confirmation_cancelled",
                message="Confirmation aborted",
                type=ErrorType.CONFIRMATION,
                invocation_id=invocation_id,
            )
        )


# ============================================================
# Contract Errors (propagate)
# ============================================================

class ChunkSinkMissingError(ToolRelayException):
    """A run was started without a chunk consumer."""

    def __init__(self):
        super().__init__(
            ErrorDetails(
                code="chunk_sink_missing",
                message="on_chunk is required to run tool invocations",
                type=ErrorType.CONTRACT,
                recoverable=False,
            )
        )


class UnsupportedProviderError(ToolRelayException):
    """No adapter is registered for a provider family."""

    def __init__(self, family: Any):
        super().__init__(
            ErrorDetails(
                code="unsupported_provider",
                message=f"Unsupported provider family: {family}",
                type=ErrorType.CONTRACT,
                recoverable=False,
                details={"family": str(family)},
            )
        )


# ============================================================
# Helpers
# ============================================================

def describe_exception(exc: BaseException) -> str:
    """Human-readable message for an exception, never empty."""
    message = str(exc)
    return message or type(exc).__name__


def error_call_result(prefix: str, exc: BaseException) -> CallResult:
    """
    Build an error result from an exception.

    Args:
        prefix: Leading text, e.g. "Error executing tool"
        exc: The exception to describe
    """
    return CallResult.text(f"{prefix}: {describe_exception(exc)}", is_error=True)
