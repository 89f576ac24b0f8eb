"""
toolrelay - Tool Call Executor

Runs one invocation against its MCP server through an opaque transport.

Failures never raise: a missing server or a transport error comes back as
an error result so the model can see what went wrong. Calls to the
auto-install helper server may return a server manifest, which is turned
into a new (inactive) server registration.
"""

import uuid
from typing import Any, Awaitable, Callable, Dict, Optional

from ..config import Settings, get_settings
from ..core.errors import ServerNotFoundError, ToolExecutionError, describe_exception
from ..core.models import CallResult, ServerDescriptor, ToolInvocation
from ..observability.logging import get_logger

logger = get_logger(__name__)

# (server, tool name, arguments, call id) -> result
ToolTransport = Callable[[ServerDescriptor, str, Any, str], Awaitable[CallResult]]
ServerLookup = Callable[[str], Optional[ServerDescriptor]]
ServerRegistrar = Callable[[ServerDescriptor], None]


def server_from_manifest(manifest: Dict[str, Any], provider: str) -> ServerDescriptor:
    """Build an inactive server registration from an auto-install manifest."""
    return ServerDescriptor(
        id=f"f{uuid.uuid4().hex[:21]}",
        name=manifest.get("name", ""),
        description=manifest.get("description", "") or "",
        base_url=manifest.get("baseUrl", "") or "",
        command=manifest.get("command", "") or "",
        args=list(manifest.get("args") or []),
        env=dict(manifest.get("env") or {}),
        registry_url="",
        is_active=False,
        provider=provider,
    )


class ToolCallExecutor:
    """
    Executes invocations; usable directly as the orchestrator's ``execute``.

    Args:
        transport: Performs the call against a server
        server_lookup: Finds a server by id
        register_server: Receives servers discovered through auto-install
        settings: Runtime settings (defaults to the environment)
    """

    def __init__(
        self,
        transport: ToolTransport,
        server_lookup: ServerLookup,
        register_server: Optional[ServerRegistrar] = None,
        settings: Optional[Settings] = None,
    ):
        self.transport = transport
        self.server_lookup = server_lookup
        self.register_server = register_server
        self.settings = settings or get_settings()

    async def __call__(self, invocation: ToolInvocation) -> CallResult:
        return await self.execute(invocation)

    async def execute(self, invocation: ToolInvocation) -> CallResult:
        """Call the tool, returning an error result instead of raising."""
        tool = invocation.tool
        logger.info(
            f"Calling tool {tool.server_name} {tool.name}",
            invocation_id=invocation.id,
            server_name=tool.server_name,
            tool_name=tool.name,
        )

        try:
            server = self.server_lookup(tool.server_id)
            if server is None:
                raise ServerNotFoundError(tool.server_id, tool.server_name)

            result = await self.transport(server, tool.name, invocation.arguments, invocation.id)

            logger.info(
                f"Tool called: {tool.server_name} {tool.name}",
                invocation_id=invocation.id,
                is_error=result.is_error,
            )

        except Exception as e:
            error = ToolExecutionError(tool.name, describe_exception(e), invocation.id)
            logger.exception(
                f"Error calling tool {tool.server_name} {tool.name}",
                invocation_id=invocation.id,
                error_code=error.error.code,
            )
            return CallResult.text(error.error.message, is_error=True)

        if tool.server_name == self.settings.auto_install_server_name and result.data:
            self._register_discovered_server(result.data)

        return result

    def _register_discovered_server(self, manifest: Dict[str, Any]) -> None:
        server = server_from_manifest(manifest, self.settings.auto_install_provider)
        logger.info("Registering auto-installed server", server_name=server.name)
        if self.register_server is None:
            return
        try:
            self.register_server(server)
        except Exception:
            logger.exception("Failed to register auto-installed server", server_name=server.name)
