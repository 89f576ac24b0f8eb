"""
toolrelay - Invocation Orchestrator

Drives a batch of tool invocations from detection to result messages.

For each invocation, concurrently:
1. pending   - registered in the caller's aggregate and announced
2. approval  - auto-approved by server policy, or confirmed by the user;
               confirming one call confirms every pending call of the
               same tool in the batch
3. invoking  - the tool call runs
4. done      - result attached; images announced; the result converted
               into a provider message
   cancelled - rejected by the user, or the confirmation wait failed

Every status change is pushed to the chunk sink as it happens. Failures in
confirmation or execution are recorded on the invocation, never raised.
"""

import asyncio
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple, Union

from ..config import Settings, get_settings
from ..core.errors import (
    ChunkSinkMissingError,
    ConfirmationCancelledError,
    describe_exception,
    error_call_result,
)
from ..core.models import (
    CallResult,
    InvocationStatus,
    ModelInfo,
    ServerDescriptor,
    ToolDescriptor,
    ToolInvocation,
)
from ..observability.logging import LogContext, TimedOperation, get_logger
from ..observability.metrics import ConfirmationOutcome, MetricsCollector, active_metrics
from ..observability.tracing import mark_span_error, trace_tool_call
from ..streaming.chunks import ChunkSink, image_chunks, status_chunk
from .ledger import ConfirmationLedger
from .parser import parse_tool_use

logger = get_logger(__name__)

CANCELLED_BY_USER_TEXT = "Tool call cancelled by user."

ServerLookup = Callable[[str], Optional[ServerDescriptor]]
ExecuteTool = Callable[[ToolInvocation], Awaitable[CallResult]]
RequestConfirmation = Callable[[str, Optional[asyncio.Event]], Awaitable[bool]]
ResultConverter = Callable[[ToolInvocation, CallResult, ModelInfo], Any]


def upsert_invocation(
    aggregate: List[ToolInvocation],
    invocation: ToolInvocation,
    on_chunk: ChunkSink
) -> ToolInvocation:
    """
    Insert or replace ``invocation`` in ``aggregate`` and announce it.

    An existing record with the same id keeps its tool and takes the new
    status, response and arguments; there is never more than one record
    per id.

    Returns:
        The stored record
    """
    for index, existing in enumerate(aggregate):
        if existing.id != invocation.id:
            continue

        if not existing.status.can_transition_to(invocation.status):
            logger.warning(
                "Illegal invocation status change",
                invocation_id=invocation.id,
                from_status=existing.status.value,
                to_status=invocation.status.value,
            )

        stored = replace(
            existing,
            status=invocation.status,
            response=invocation.response,
            arguments=invocation.arguments,
        )
        aggregate[index] = stored
        break
    else:
        stored = invocation
        aggregate.append(stored)

    on_chunk(status_chunk(stored))
    return stored


def is_tool_auto_approved(tool: ToolDescriptor, server: Optional[ServerDescriptor]) -> bool:
    """Unknown servers are never auto-approved."""
    if server is None:
        return False
    return tool.name not in server.disabled_auto_approve_tools


@dataclass
class ToolRunOutcome:
    """What a run hands back to the caller."""
    results: List[Any] = field(default_factory=list)
    confirmed_invocations: List[ToolInvocation] = field(default_factory=list)


@dataclass
class _RunState:
    aggregate: List[ToolInvocation]
    on_chunk: ChunkSink
    convert: ResultConverter
    model: ModelInfo
    cancel_event: Optional[asyncio.Event]
    ledger: ConfirmationLedger = field(default_factory=ConfirmationLedger)
    outcome: ToolRunOutcome = field(default_factory=ToolRunOutcome)


class InvocationOrchestrator:
    """
    Confirms and executes tool invocations concurrently.

    Args:
        server_lookup: Finds the server owning a tool by server id
        execute: Performs a tool call (see ToolCallExecutor)
        confirm: Asks the user to approve an invocation id; receives the
            run's cancel event
        warn: Reports user-facing warnings such as unknown tools
        metrics: Collector to record into (defaults per settings)
        settings: Runtime settings (defaults to the environment)
    """

    def __init__(
        self,
        server_lookup: ServerLookup,
        execute: ExecuteTool,
        confirm: RequestConfirmation,
        warn: Optional[Callable[[str], None]] = None,
        metrics: Optional[MetricsCollector] = None,
        settings: Optional[Settings] = None,
    ):
        self.server_lookup = server_lookup
        self.execute = execute
        self.confirm = confirm
        self.warn = warn
        self.settings = settings or get_settings()
        self.metrics = metrics if metrics is not None else active_metrics()

    async def run(
        self,
        content: Union[str, Sequence[ToolInvocation]],
        aggregate: List[ToolInvocation],
        on_chunk: ChunkSink,
        convert: ResultConverter,
        model: ModelInfo,
        tools: Optional[Sequence[ToolDescriptor]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ToolRunOutcome:
        """
        Run every invocation in ``content``.

        Args:
            content: Model text with tagged tool-use blocks, or parsed invocations
            aggregate: Caller-owned records of all invocations, updated in place
            on_chunk: Receives every status change
            convert: Turns (invocation, result, model) into a provider message;
                None results are skipped
            model: The model being served
            tools: Known tools, needed when ``content`` is text
            cancel_event: Aborts pending confirmations when set

        Returns:
            Converted messages and the invocations that produced them
        """
        if on_chunk is None:
            raise ChunkSinkMissingError()

        if isinstance(content, str):
            invocations = parse_tool_use(content, tools or [], 0, warn=self.warn)
        else:
            invocations = list(content or [])

        if not invocations:
            return ToolRunOutcome()

        state = _RunState(
            aggregate=aggregate,
            on_chunk=on_chunk,
            convert=convert,
            model=model,
            cancel_event=cancel_event,
        )

        token = LogContext.set_current(LogContext(
            run_id=f"run_{uuid.uuid4().hex[:8]}",
            provider=getattr(model, "provider", "") or "",
            model=getattr(model, "id", "") or "",
        ))
        try:
            logger.debug("Starting tool run", invocation_count=len(invocations))

            for invocation in invocations:
                self._transition(state, invocation, InvocationStatus.PENDING)

            await asyncio.gather(*(self._process(state, inv) for inv in invocations))
        finally:
            LogContext.reset(token)

        return state.outcome

    # ============================================================
    # Per-invocation flow
    # ============================================================

    async def _process(self, state: _RunState, invocation: ToolInvocation) -> None:
        parent = LogContext.get_current() or LogContext()
        LogContext.set_current(replace(
            parent,
            invocation_id=invocation.id,
            tool_name=invocation.tool.name,
            server_name=invocation.tool.server_name,
            extra=dict(parent.extra),
        ))

        try:
            confirmed = await self._confirm(state, invocation)
        except Exception as e:
            logger.exception(f"Error waiting for tool confirmation {invocation.id}")
            self._record_confirmation(invocation, ConfirmationOutcome.ERROR)
            self._transition(
                state,
                invocation,
                InvocationStatus.CANCELLED,
                error_call_result("Error in confirmation process", e),
            )
            return
        finally:
            state.ledger.release(invocation.id)

        if not confirmed:
            self._transition(
                state,
                invocation,
                InvocationStatus.CANCELLED,
                CallResult.text(CANCELLED_BY_USER_TEXT),
            )
            return

        await self._invoke(state, invocation)

    async def _confirm(self, state: _RunState, invocation: ToolInvocation) -> bool:
        tool = invocation.tool
        server = self.server_lookup(tool.server_id)

        if is_tool_auto_approved(tool, server):
            self._record_confirmation(invocation, ConfirmationOutcome.AUTO_APPROVED)
            return True

        decision = state.ledger.register(invocation.id, tool.name)
        confirmed, by_batch = await self._await_decision(state, invocation, decision)

        if by_batch:
            logger.info("Confirmed together with a same-name tool call")
            self._record_confirmation(invocation, ConfirmationOutcome.BATCH_CONFIRMED)
            return True

        if confirmed and server is not None:
            others = state.ledger.confirm_same_name(tool.name, exclude=invocation.id)
            if others:
                logger.info("Auto-confirming same-name tool calls", confirmed_ids=others)

        self._record_confirmation(
            invocation,
            ConfirmationOutcome.CONFIRMED if confirmed else ConfirmationOutcome.REJECTED,
        )
        return confirmed

    async def _await_decision(
        self,
        state: _RunState,
        invocation: ToolInvocation,
        decision: "asyncio.Future[bool]"
    ) -> Tuple[bool, bool]:
        """
        Wait for the user's answer, a same-name confirmation or cancellation.

        Returns:
            (confirmed, confirmed_by_batch)
        """
        request = asyncio.ensure_future(self.confirm(invocation.id, state.cancel_event))
        cancelled = None
        waiters = {request, decision}

        if state.cancel_event is not None:
            cancelled = asyncio.ensure_future(state.cancel_event.wait())
            waiters.add(cancelled)

        try:
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in (request, cancelled):
                if waiter is not None and not waiter.done():
                    waiter.cancel()

        if decision.done() and not decision.cancelled():
            return True, True

        if request.done():
            if request.cancelled():
                raise ConfirmationCancelledError(invocation.id)
            return bool(request.result()), False

        raise ConfirmationCancelledError(invocation.id)

    async def _invoke(self, state: _RunState, invocation: ToolInvocation) -> None:
        tool = invocation.tool
        self._transition(state, invocation, InvocationStatus.INVOKING)

        timer = TimedOperation("tool_call", logger, extra={"tool_id": tool.id})
        try:
            with trace_tool_call(invocation, enabled=self.settings.tracing_enabled) as span:
                if self.metrics:
                    with self.metrics.track_active_invocation():
                        async with timer:
                            result = await self.execute(invocation)
                else:
                    async with timer:
                        result = await self.execute(invocation)

                if result.is_error:
                    mark_span_error(span, "tool returned an error result")
        except Exception as e:
            logger.exception(f"Error executing tool {invocation.id}")
            if self.metrics:
                self.metrics.record_execution(tool.name, timer.duration_seconds, is_error=True)
            self._transition(
                state,
                invocation,
                InvocationStatus.DONE,
                error_call_result("Error executing tool", e),
            )
            return

        if self.metrics:
            self.metrics.record_execution(tool.name, timer.duration_seconds, is_error=result.is_error)

        done = self._transition(state, invocation, InvocationStatus.DONE, result)

        images = result.images()
        if images:
            for chunk in image_chunks(images):
                state.on_chunk(chunk)

        message = self._convert(state, invocation, result)
        if message is not None:
            state.outcome.confirmed_invocations.append(done)
            state.outcome.results.append(message)

    # ============================================================
    # Helpers
    # ============================================================

    def _transition(
        self,
        state: _RunState,
        invocation: ToolInvocation,
        status: InvocationStatus,
        response: Optional[CallResult] = None,
    ) -> ToolInvocation:
        stored = upsert_invocation(
            state.aggregate,
            invocation.with_status(status, response),
            state.on_chunk,
        )
        if self.metrics:
            self.metrics.record_transition(invocation.tool.name, status.value)
        return stored

    def _convert(self, state: _RunState, invocation: ToolInvocation, result: CallResult) -> Any:
        try:
            return state.convert(invocation, result, state.model)
        except Exception as e:
            logger.exception(
                "Failed to convert tool result",
                invocation_id=invocation.id,
                error=describe_exception(e),
            )
            return None

    def _record_confirmation(self, invocation: ToolInvocation, outcome: ConfirmationOutcome) -> None:
        if self.metrics:
            self.metrics.record_confirmation(invocation.tool.name, outcome)
