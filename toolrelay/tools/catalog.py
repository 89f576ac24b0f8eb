"""
toolrelay - Tool Catalog Adapter

Renders MCP tool descriptors into each provider's tool registration shape,
and maps provider tool calls back to descriptors.

Supported Providers:
- OpenAI Chat Completions: {"type": "function", "function": {...}}
- OpenAI Responses: flat function tools, strict schemas
- Anthropic: input_schema instead of parameters
- Google Gemini: wrapped in a single functionDeclarations group

Tools are always offered under their catalog ``id``; a tool call is matched
back by ``id`` or by the tool's own ``name``.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..config import get_tool_use_mode
from ..core.errors import ToolNotFoundError, UnsupportedProviderError
from ..core.models import ModelInfo, ProviderFamily, ServerDescriptor, ToolDescriptor, ToolUseMode
from ..observability.logging import get_logger
from ..observability.metrics import active_metrics
from .schema_filter import (
    GEMINI_SCHEMA_KEYS,
    OPENAI_RESPONSES_SCHEMA_KEYS,
    filter_properties,
    required_property_names,
)

logger = get_logger(__name__)


def _field(obj: Any, key: str) -> Any:
    """Read ``key`` from a dict or an SDK object."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


# ============================================================
# Tool Definitions (Catalog → Provider)
# ============================================================

def tools_to_openai_responses(tools: Sequence[ToolDescriptor]) -> List[Dict[str, Any]]:
    """
    Convert tools to OpenAI Responses API function tools.

    Strict mode needs closed objects with every property required, so the
    schema goes through the filter.
    """
    result = []

    for tool in tools:
        properties = tool.input_schema.get("properties", {})
        filtered = filter_properties(tool.input_schema, OPENAI_RESPONSES_SCHEMA_KEYS)

        result.append({
            "type": "function",
            "name": tool.id,
            "description": tool.description,
            "parameters": {
                "type": "object",
                "properties": filtered.get("properties", {}),
                "required": required_property_names(properties),
                "additionalProperties": False,
            },
            "strict": True,
        })

    return result


def tools_to_openai_chat(tools: Sequence[ToolDescriptor]) -> List[Dict[str, Any]]:
    """Convert tools to Chat Completions tools (schema passed through)."""
    result = []

    for tool in tools:
        parameters: Dict[str, Any] = {
            "type": "object",
            "properties": tool.input_schema.get("properties", {}),
        }
        if "required" in tool.input_schema:
            parameters["required"] = tool.input_schema["required"]

        result.append({
            "type": "function",
            "function": {
                "name": tool.id,
                "description": tool.description,
                "parameters": parameters,
            },
        })

    return result


def tools_to_anthropic(tools: Sequence[ToolDescriptor]) -> List[Dict[str, Any]]:
    """Convert tools to Anthropic format (input_schema, no wrapper)."""
    return [
        {
            "name": tool.id,
            "description": tool.description,
            "input_schema": tool.input_schema,
        }
        for tool in tools
    ]


def tools_to_gemini(tools: Sequence[ToolDescriptor]) -> List[Dict[str, Any]]:
    """
    Convert tools to Google Gemini format.

    Gemini wraps function declarations in a tools array:
    [{"functionDeclarations": [...]}]
    """
    declarations = []

    for tool in tools:
        filtered = filter_properties(tool.input_schema, GEMINI_SCHEMA_KEYS)
        parameters: Dict[str, Any] = {
            "type": "OBJECT",
            "properties": filtered.get("properties", {}),
        }
        if "required" in tool.input_schema:
            parameters["required"] = tool.input_schema["required"]

        declarations.append({
            "name": tool.id,
            "description": tool.description,
            "parameters": parameters,
        })

    return [{"functionDeclarations": declarations}]


# ============================================================
# Tool Calls (Provider → Catalog)
# ============================================================

def _openai_call_name(reference: Any) -> Optional[str]:
    # Responses function calls carry ``name``; chat tool calls nest it in ``function``
    name = _field(reference, "name")
    if name:
        return name
    return _field(_field(reference, "function"), "name")


def _plain_call_name(reference: Any) -> Optional[str]:
    return _field(reference, "name")


@dataclass(frozen=True)
class ProviderCatalog:
    """Conversion pair for one provider family."""
    to_wire: Callable[[Sequence[ToolDescriptor]], List[Dict[str, Any]]]
    call_name: Callable[[Any], Optional[str]]


class CatalogAdapter:
    """
    Dispatches catalog conversions by provider family.

    The table is closed over ``ProviderFamily``; asking for anything else
    is a programming error.
    """

    def __init__(self):
        self._table: Dict[ProviderFamily, ProviderCatalog] = {
            ProviderFamily.OPENAI_CHAT: ProviderCatalog(tools_to_openai_chat, _openai_call_name),
            ProviderFamily.OPENAI_RESPONSES: ProviderCatalog(tools_to_openai_responses, _openai_call_name),
            ProviderFamily.ANTHROPIC: ProviderCatalog(tools_to_anthropic, _plain_call_name),
            ProviderFamily.GEMINI: ProviderCatalog(tools_to_gemini, _plain_call_name),
        }

    def _entry(self, family: ProviderFamily) -> ProviderCatalog:
        try:
            return self._table[ProviderFamily(family)]
        except (KeyError, ValueError):
            raise UnsupportedProviderError(family) from None

    def tools_to_provider(
        self,
        family: ProviderFamily,
        tools: Sequence[ToolDescriptor]
    ) -> List[Dict[str, Any]]:
        """Render ``tools`` in ``family``'s registration shape."""
        return self._entry(family).to_wire(tools)

    def call_name(self, family: ProviderFamily, reference: Any) -> Optional[str]:
        """Extract the tool name a provider tool call refers to."""
        return self._entry(family).call_name(reference)

    def resolve_tool(
        self,
        family: ProviderFamily,
        tools: Optional[Sequence[ToolDescriptor]],
        reference: Any
    ) -> Optional[ToolDescriptor]:
        """
        Map a provider tool call back to its descriptor.

        Returns None, after logging, when nothing matches.
        """
        entry = self._entry(family)
        if reference is None or not tools:
            return None

        name = entry.call_name(reference)
        if name:
            for tool in tools:
                if tool.id == name or tool.name == name:
                    return tool

        error = ToolNotFoundError(name or "", source="resolver")
        logger.warning(
            str(error),
            provider=ProviderFamily(family).value,
            tool_name=name,
            error_code=error.error.code,
        )
        metrics = active_metrics()
        if metrics:
            metrics.record_tool_not_found("resolver")
        return None


# ============================================================
# Catalog Selection
# ============================================================

def filter_tools_by_servers(
    tools: Optional[List[ToolDescriptor]],
    enabled_servers: Optional[Sequence[ServerDescriptor]]
) -> Optional[List[ToolDescriptor]]:
    """
    Keep only tools hosted by an enabled server.

    No tools stays None; no server list means no tools.
    """
    if tools is None:
        return None
    if enabled_servers is None:
        return []

    names = {server.name for server in enabled_servers}
    return [tool for tool in tools if tool.server_name in names]


def is_enabled_tool_use(
    model: Optional[ModelInfo], tool_use_mode: Optional[ToolUseMode] = None
) -> bool:
    """
    Native function calling is used only for capable models in function mode.

    Without an explicit mode, TOOLRELAY_TOOL_USE_MODE decides.
    """
    if model is None or not model.supports_function_calling:
        return False
    if tool_use_mode is None:
        tool_use_mode = get_tool_use_mode()
    return ToolUseMode(tool_use_mode) == ToolUseMode.FUNCTION


# Global instance for convenience
_adapter = CatalogAdapter()


def tools_to_provider(family: ProviderFamily, tools: Sequence[ToolDescriptor]) -> List[Dict[str, Any]]:
    """
    Render tools for a provider family.

    Args:
        family: Target provider family
        tools: Catalog descriptors

    Returns:
        Provider-specific tool registration list
    """
    return _adapter.tools_to_provider(family, tools)


def resolve_tool(
    family: ProviderFamily,
    tools: Optional[Sequence[ToolDescriptor]],
    reference: Any
) -> Optional[ToolDescriptor]:
    """Resolve a provider tool call to a descriptor, or None."""
    return _adapter.resolve_tool(family, tools, reference)
