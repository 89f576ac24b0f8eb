"""
toolrelay - Confirmation Ledger

Tracks which invocations of a run are waiting for user confirmation, keyed
by invocation id, so that approving one call can approve every other
pending call of the same tool.

One ledger belongs to one orchestrator run. Every method is synchronous,
so under asyncio no other task can interleave between a lookup and the
update that follows it.
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass
class _PendingConfirmation:
    tool_name: str
    decision: "asyncio.Future[bool]"


class ConfirmationLedger:
    """Per-run map of invocation id → tool name with pending decisions."""

    def __init__(self):
        self._entries: Dict[str, _PendingConfirmation] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, invocation_id: object) -> bool:
        return invocation_id in self._entries

    def register(self, invocation_id: str, tool_name: str) -> "asyncio.Future[bool]":
        """
        Record that ``invocation_id`` awaits confirmation.

        Returns a future resolved with True when a same-name invocation is
        confirmed. Registering an id twice returns the existing future.
        """
        entry = self._entries.get(invocation_id)
        if entry is None:
            future = asyncio.get_running_loop().create_future()
            entry = _PendingConfirmation(tool_name=tool_name, decision=future)
            self._entries[invocation_id] = entry
        return entry.decision

    def tool_name_for(self, invocation_id: str) -> Optional[str]:
        """Tool name of a pending invocation, or None."""
        entry = self._entries.get(invocation_id)
        return entry.tool_name if entry else None

    def pending_ids(self, tool_name: Optional[str] = None) -> List[str]:
        """Ids still awaiting a decision, optionally for one tool."""
        return [
            invocation_id
            for invocation_id, entry in self._entries.items()
            if not entry.decision.done()
            and (tool_name is None or entry.tool_name == tool_name)
        ]

    def confirm_same_name(self, tool_name: str, exclude: Optional[str] = None) -> List[str]:
        """
        Confirm every pending invocation of ``tool_name`` except ``exclude``.

        Returns:
            The invocation ids that were confirmed
        """
        confirmed = []

        for invocation_id in self.pending_ids(tool_name):
            if invocation_id == exclude:
                continue
            self._entries[invocation_id].decision.set_result(True)
            confirmed.append(invocation_id)

        return confirmed

    def release(self, invocation_id: str) -> None:
        """Forget an invocation once its confirmation is resolved."""
        entry = self._entries.pop(invocation_id, None)
        if entry is not None and not entry.decision.done():
            entry.decision.cancel()
