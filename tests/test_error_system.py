"""
toolrelay - Error System Tests

Tests for the error taxonomy and data model helpers.
Verifies:
- Recoverable vs contract error classification
- Error messages shown to users and models
- ErrorDetails serialization
- Invocation status transitions
"""

import pytest

from toolrelay.core import (
    CallResult,
    ChunkSinkMissingError,
    ConfirmationCancelledError,
    ContentItem,
    ContentType,
    ErrorDetails,
    ErrorType,
    InvocationStatus,
    ServerNotFoundError,
    ToolDescriptor,
    ToolExecutionError,
    ToolNotFoundError,
    ToolRelayException,
    UnsupportedProviderError,
    describe_exception,
    error_call_result,
)


# ============================================================
# Error Classification Tests
# ============================================================

class TestErrorClassification:
    """Recoverable errors vs contract violations."""

    def test_tool_not_found_is_recoverable(self):
        """ToolNotFoundError names the tool and where it was detected."""
        error = ToolNotFoundError("weather", source="resolver")
        assert isinstance(error, ToolRelayException)
        assert error.error.type == ErrorType.NOT_FOUND
        assert error.error.recoverable is True
        assert error.error.details == {"source": "resolver"}
        assert str(error) == 'Tool "weather" not found'

    def test_execution_error_message(self):
        """ToolExecutionError prefixes the tool name."""
        error = ToolExecutionError("search", "timeout", "search-0")
        assert error.error.type == ErrorType.EXECUTION
        assert error.error.message == "Error calling tool search: timeout"
        assert error.error.invocation_id == "search-0"

    def test_server_not_found_prefers_name(self):
        """ServerNotFoundError shows the server name when known."""
        assert str(ServerNotFoundError("srv-1", "web")) == "Server not found: web"
        assert str(ServerNotFoundError("srv-1")) == "Server not found: srv-1"

    def test_confirmation_cancelled(self):
        """ConfirmationCancelledError is a confirmation failure."""
        error = ConfirmationCancelledError("search-0")
        assert error.error.type == ErrorType.CONFIRMATION
        assert str(error) == "Confirmation aborted"

    def test_contract_errors_not_recoverable(self):
        """Contract errors are programming mistakes."""
        for error in (ChunkSinkMissingError(), UnsupportedProviderError("cohere")):
            assert error.error.type == ErrorType.CONTRACT
            assert error.error.recoverable is False


# ============================================================
# Error Details Tests
# ============================================================

class TestErrorDetails:
    """Test ErrorDetails serialization."""

    def test_minimal(self):
        details = ErrorDetails(code="x", message="failed", type=ErrorType.EXECUTION)

        assert details.to_dict() == {
            "error": {
                "code": "x",
                "message": "failed",
                "type": "execution_error",
                "recoverable": True,
            }
        }

    def test_context_fields(self):
        error = ToolExecutionError("search", "boom", "search-3")

        body = error.error.to_dict()["error"]

        assert body["tool_name"] == "search"
        assert body["invocation_id"] == "search-3"
        assert "server_name" not in body


# ============================================================
# Helper Tests
# ============================================================

class TestErrorHelpers:
    """Tests for exception description helpers."""

    def test_describe_exception(self):
        assert describe_exception(ValueError("bad input")) == "bad input"
        assert describe_exception(TimeoutError()) == "TimeoutError"

    def test_error_call_result(self):
        result = error_call_result("Error executing tool", RuntimeError("disk full"))

        assert result.is_error is True
        assert result.content[0].text == "Error executing tool: disk full"


# ============================================================
# Model Tests
# ============================================================

class TestInvocationStatus:
    """Tests for the invocation state machine."""

    @pytest.mark.parametrize("source,target,legal", [
        (InvocationStatus.PENDING, InvocationStatus.INVOKING, True),
        (InvocationStatus.PENDING, InvocationStatus.CANCELLED, True),
        (InvocationStatus.PENDING, InvocationStatus.PENDING, True),
        (InvocationStatus.INVOKING, InvocationStatus.DONE, True),
        (InvocationStatus.PENDING, InvocationStatus.DONE, False),
        (InvocationStatus.INVOKING, InvocationStatus.CANCELLED, False),
        (InvocationStatus.INVOKING, InvocationStatus.PENDING, False),
        (InvocationStatus.DONE, InvocationStatus.DONE, False),
        (InvocationStatus.CANCELLED, InvocationStatus.INVOKING, False),
    ])
    def test_transitions(self, source, target, legal):
        assert source.can_transition_to(target) is legal

    def test_terminal(self):
        assert InvocationStatus.DONE.is_terminal
        assert InvocationStatus.CANCELLED.is_terminal
        assert not InvocationStatus.INVOKING.is_terminal


class TestCallResult:
    """Tests for CallResult helpers."""

    def test_content_json_is_compact(self):
        result = CallResult.text("héllo")

        assert result.content_json() == '[{"type":"text","text":"héllo"}]'

    def test_images(self, image_result):
        assert image_result.images() == ["data:image/png;base64,iVBORw0KGgo="]

    def test_images_skip_empty_data(self):
        result = CallResult(content=[ContentItem(type=ContentType.IMAGE, mime_type="image/png")])

        assert result.images() == []

    def test_from_dict(self):
        result = CallResult.from_dict({
            "isError": True,
            "content": [
                {"type": "text", "text": "nope"},
                {"type": "resource", "text": "file:///a"},
            ],
        })

        assert result.is_error is True
        assert result.content[0].type == ContentType.TEXT
        assert result.content[1].type_name == "resource"
        assert result.to_dict()["content"][1] == {"type": "resource", "text": "file:///a"}


class TestToolDescriptor:
    """Tests for ToolDescriptor parsing."""

    def test_from_camel_case(self):
        tool = ToolDescriptor.from_dict({
            "id": "abc-search",
            "name": "search",
            "serverId": "srv",
            "serverName": "web",
            "inputSchema": {"type": "object"},
        })

        assert tool.server_id == "srv"
        assert tool.server_name == "web"
        assert tool.input_schema == {"type": "object"}
        assert ToolDescriptor.from_dict(tool.to_dict()) == tool

    def test_from_snake_case(self):
        tool = ToolDescriptor.from_dict({"id": "a", "name": "a", "server_id": "s"})

        assert tool.server_id == "s"
        assert tool.input_schema == {}
