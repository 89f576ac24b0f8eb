"""
toolrelay - Embedded Tool-Use Parser

Extracts tool invocations that a model wrote into plain text:

    <tool_use>
      <name>search</name>
      <arguments>{"q": "cats"}</arguments>
    </tool_use>

Text between the segments is ignored. Content that was already pulled out
of its envelope by an upstream tag extractor (no opening ``<tool_use>``)
is wrapped before scanning.
"""

import json
import re
from typing import Any, Callable, List, Optional, Sequence

from ..core.errors import ErrorType, ToolNotFoundError
from ..core.models import InvocationStatus, ToolDescriptor, ToolInvocation
from ..observability.logging import get_logger
from ..observability.metrics import active_metrics

logger = get_logger(__name__)

TOOL_USE_OPEN = "<tool_use>"
TOOL_USE_CLOSE = "</tool_use>"

TOOL_USE_PATTERN = re.compile(
    r"<tool_use>([\s\S]*?)<name>([\s\S]*?)</name>([\s\S]*?)"
    r"<arguments>([\s\S]*?)</arguments>([\s\S]*?)</tool_use>"
)


def parse_arguments(raw: str) -> Any:
    """Decode tool arguments as JSON, keeping the raw text if that fails."""
    try:
        return json.loads(raw)
    except ValueError:
        logger.debug(
            "Tool arguments are not JSON, passing raw text",
            error_type=ErrorType.MALFORMED_ARGUMENTS.value,
        )
        return raw


def parse_tool_use(
    content: str,
    tools: Optional[Sequence[ToolDescriptor]],
    start_index: int = 0,
    warn: Optional[Callable[[str], None]] = None,
) -> List[ToolInvocation]:
    """
    Parse tagged tool-use blocks into pending invocations.

    Args:
        content: Model output, with or without the outer envelope
        tools: Known tools, matched by ``id``
        start_index: First value of the per-call id counter
        warn: Receives a user-facing message for every unknown tool

    Returns:
        Invocations in encounter order, ids ``<name>-<n>`` with ``n``
        counting only blocks whose tool was found
    """
    if not content:
        return []

    if TOOL_USE_OPEN not in content:
        content = f"{TOOL_USE_OPEN}\n{content}\n{TOOL_USE_CLOSE}"

    known = {tool.id: tool for tool in reversed(tools or [])}
    invocations: List[ToolInvocation] = []
    index = start_index

    for match in TOOL_USE_PATTERN.finditer(content):
        tool_name = match.group(2).strip()
        arguments = parse_arguments(match.group(4).strip())

        tool = known.get(tool_name)
        if tool is None:
            error = ToolNotFoundError(tool_name)
            logger.error(str(error), tool_name=tool_name, error_code=error.error.code)
            metrics = active_metrics()
            if metrics:
                metrics.record_tool_not_found("parser")
            if warn is not None:
                warn(str(error))
            continue

        invocations.append(ToolInvocation(
            id=f"{tool_name}-{index}",
            tool_use_id=tool.id,
            tool=tool,
            arguments=arguments,
            status=InvocationStatus.PENDING,
        ))
        index += 1

    return invocations
