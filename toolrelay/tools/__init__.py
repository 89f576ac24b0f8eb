"""
toolrelay - Tool Calling Module

MCP tool calling across model providers:
- Schema filtering for providers with restricted JSON Schema support
- Catalog conversion to each provider's tool format and name resolution
- Parsing of tool calls embedded in model text
- Confirmation and concurrent execution of invocations
- Conversion of tool results into provider follow-up messages

Key Components:
- Catalog: Cross-provider tool definitions
- Parser: Tagged tool-use extraction
- Orchestrator: Invocation state machine
- Results: Provider result messages
"""

from .schema_filter import (
    EXTRA_SCHEMA_KEYS,
    OPENAI_RESPONSES_SCHEMA_KEYS,
    GEMINI_SCHEMA_KEYS,
    filter_properties,
    required_property_names,
)
from .catalog import (
    CatalogAdapter,
    ProviderCatalog,
    # Convenience functions
    tools_to_provider,
    tools_to_openai_chat,
    tools_to_openai_responses,
    tools_to_anthropic,
    tools_to_gemini,
    resolve_tool,
    filter_tools_by_servers,
    is_enabled_tool_use,
)
from .parser import (
    TOOL_USE_PATTERN,
    parse_arguments,
    parse_tool_use,
)
from .ledger import ConfirmationLedger
from .executor import (
    ToolCallExecutor,
    server_from_manifest,
)
from .orchestrator import (
    InvocationOrchestrator,
    ToolRunOutcome,
    is_tool_auto_approved,
    upsert_invocation,
)
from .results import (
    make_result_converter,
    result_message_builder,
    to_openai_chat_message,
    to_openai_compatible_text_message,
    to_openai_responses_message,
    to_anthropic_message,
    to_gemini_message,
)

__all__ = [
    # Schema filter
    "EXTRA_SCHEMA_KEYS",
    "OPENAI_RESPONSES_SCHEMA_KEYS",
    "GEMINI_SCHEMA_KEYS",
    "filter_properties",
    "required_property_names",
    # Catalog
    "CatalogAdapter",
    "ProviderCatalog",
    "tools_to_provider",
    "tools_to_openai_chat",
    "tools_to_openai_responses",
    "tools_to_anthropic",
    "tools_to_gemini",
    "resolve_tool",
    "filter_tools_by_servers",
    "is_enabled_tool_use",
    # Parser
    "TOOL_USE_PATTERN",
    "parse_arguments",
    "parse_tool_use",
    # Execution
    "ConfirmationLedger",
    "ToolCallExecutor",
    "server_from_manifest",
    "InvocationOrchestrator",
    "ToolRunOutcome",
    "is_tool_auto_approved",
    "upsert_invocation",
    # Results
    "make_result_converter",
    "result_message_builder",
    "to_openai_chat_message",
    "to_openai_compatible_text_message",
    "to_openai_responses_message",
    "to_anthropic_message",
    "to_gemini_message",
]
