"""
toolrelay - Pytest Configuration

Configures:
- Integration test markers (skip by default)
- Isolated settings and metrics registry per test
- Sample tools, servers and results
"""

import os
from typing import Any, Dict, List, Optional

import pytest
from prometheus_client import CollectorRegistry

from toolrelay.config import reset_settings
from toolrelay.core.models import (
    CallResult,
    ContentItem,
    ContentType,
    ModelInfo,
    ServerDescriptor,
    ToolDescriptor,
    ToolInvocation,
)
from toolrelay.observability.metrics import MetricsCollector, setup_metrics


# ============================================================
# Environment Configuration
# ============================================================

def _is_truthy(value: Optional[str]) -> bool:
    """Check if environment variable is truthy."""
    if value is None:
        return False
    return value.lower() in ("1", "true", "yes", "on")


RUN_INTEGRATION = _is_truthy(os.getenv("RUN_INTEGRATION"))


# ============================================================
# Pytest Markers
# ============================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires RUN_INTEGRATION=1)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless RUN_INTEGRATION=1."""
    skip_integration = pytest.mark.skip(
        reason="Integration test - set RUN_INTEGRATION=1 to run"
    )

    for item in items:
        if "integration" in item.keywords and not RUN_INTEGRATION:
            item.add_marker(skip_integration)


# ============================================================
# Isolation
# ============================================================

@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Each test reads a clean environment."""
    for name in (
        "LOG_LEVEL",
        "LOG_FORMAT",
        "TOOLRELAY_AUTO_INSTALL_SERVER",
        "TOOLRELAY_AUTO_INSTALL_PROVIDER",
        "TOOLRELAY_METRICS_ENABLED",
        "TOOLRELAY_TRACING_ENABLED",
        "TOOLRELAY_TOOL_USE_MODE",
    ):
        monkeypatch.delenv(name, raising=False)

    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fresh_registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture(autouse=True)
def metrics(fresh_registry) -> MetricsCollector:
    """Route every recorded metric into a per-test registry."""
    return setup_metrics(fresh_registry)


# ============================================================
# Sample Data
# ============================================================

@pytest.fixture
def search_schema() -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "Search terms", "minLength": 1},
            "limit": {"type": "integer", "default": 10},
        },
        "required": ["query"],
    }


@pytest.fixture
def search_tool(search_schema) -> ToolDescriptor:
    return ToolDescriptor(
        id="f1a2b3-search",
        name="search",
        description="Search the web",
        server_id="srv-web",
        server_name="web",
        input_schema=search_schema,
    )


@pytest.fixture
def fetch_tool() -> ToolDescriptor:
    return ToolDescriptor(
        id="f1a2b3-fetch",
        name="fetch",
        description="Fetch a URL",
        server_id="srv-web",
        server_name="web",
        input_schema={
            "type": "object",
            "properties": {"url": {"type": "string"}},
            "required": ["url"],
        },
    )


@pytest.fixture
def sample_tools(search_tool, fetch_tool) -> List[ToolDescriptor]:
    return [search_tool, fetch_tool]


@pytest.fixture
def web_server() -> ServerDescriptor:
    """Server whose tools are all auto-approved."""
    return ServerDescriptor(id="srv-web", name="web")


@pytest.fixture
def guarded_server() -> ServerDescriptor:
    """Server requiring confirmation for search and fetch."""
    return ServerDescriptor(
        id="srv-web",
        name="web",
        disabled_auto_approve_tools={"search", "fetch"},
    )


@pytest.fixture
def vision_model() -> ModelInfo:
    return ModelInfo(
        id="gpt-4o",
        name="GPT-4o",
        provider="openai",
        supports_vision=True,
        supports_function_calling=True,
    )


@pytest.fixture
def text_model() -> ModelInfo:
    return ModelInfo(id="gpt-3.5-turbo", provider="openai", supports_function_calling=True)


@pytest.fixture
def text_result() -> CallResult:
    return CallResult.text("3 results found")


@pytest.fixture
def image_result() -> CallResult:
    return CallResult(content=[
        ContentItem(type=ContentType.TEXT, text="rendered"),
        ContentItem(type=ContentType.IMAGE, data="iVBORw0KGgo=", mime_type="image/png"),
    ])


@pytest.fixture
def search_invocation(search_tool) -> ToolInvocation:
    return ToolInvocation(
        id="search-0",
        tool_use_id=search_tool.id,
        tool=search_tool,
        arguments={"query": "cats"},
    )
