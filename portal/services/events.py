"""
Filesystem change feed.

Mutating client-dev-interface outcomes become typed DevInterfaceEvents.
Subscribers may follow a subset of operations; the bounded history answers
"what changed recently" and keeps every upload Locations Map for operators
reconciling a partial upload.
"""

from __future__ import annotations

import asyncio
import itertools
import time
from collections import deque
from contextlib import asynccontextmanager
from enum import Enum
from typing import AsyncIterator, Deque, Dict, FrozenSet, Iterable, List, Optional

from pydantic import BaseModel, Field

from devgate.DevInterfaceGate.models import Operation, Outcome
from devgate.shared.gate import GateLogger

_log = GateLogger.get("Events")

MUTATING_OPERATIONS = frozenset({
    Operation.CREATE,
    Operation.DELETE,
    Operation.MOVE,
    Operation.SAVE,
    Operation.UPLOAD,
})


class EventKind(str, Enum):
    SYSTEM = "system"
    DEVINTERFACE = "devinterface"


class DevInterfaceEvent(BaseModel):
    """One entry of the change feed."""
    seq: int = 0
    kind: EventKind
    message: str
    timestamp: float = Field(default_factory=time.time)
    operation: Optional[Operation] = None
    success: Optional[bool] = None
    code: Optional[str] = None
    target: Optional[str] = None
    location: Optional[str] = None
    locations: Optional[Dict[str, str]] = Field(
        default=None,
        description="Upload failures: relative path -> where the file is now"
    )

    @classmethod
    def from_outcome(
        cls,
        operation: Operation,
        outcome: Outcome,
        target: str,
    ) -> Optional["DevInterfaceEvent"]:
        """
        Event for an outcome, or None when nothing on disk changed.

        Successful mutations are reported, as are upload failures carrying a
        Locations Map (some files may already have been committed).
        """
        if operation not in MUTATING_OPERATIONS:
            return None

        if outcome.success:
            return cls(
                kind=EventKind.DEVINTERFACE,
                message=f"{operation.value} succeeded",
                operation=operation,
                success=True,
                target=target,
                location=outcome.headers.get("Location"),
            )

        if outcome.locations is None:
            return None
        return cls(
            kind=EventKind.DEVINTERFACE,
            message=f"{operation.value} stopped part way [{outcome.code.name}]",
            operation=operation,
            success=False,
            code=outcome.code.name,
            target=target,
            locations=outcome.locations,
        )

    @property
    def sse_name(self) -> str:
        if self.operation is None:
            return self.kind.value
        return f"{self.kind.value}.{self.operation.value}"


class EventBus:
    """Fan-out of DevInterfaceEvents to SSE subscribers, with history."""

    def __init__(self, max_history: int = 200, queue_size: int = 256):
        self._subscribers: Dict[asyncio.Queue, Optional[FrozenSet[Operation]]] = {}
        self._history: Deque[DevInterfaceEvent] = deque(maxlen=max_history)
        self._queue_size = queue_size
        self._seq = itertools.count(1)
        self._lock = asyncio.Lock()
        self.dropped = 0

    @asynccontextmanager
    async def subscription(
        self,
        operations: Optional[Iterable[Operation]] = None,
    ) -> AsyncIterator[asyncio.Queue]:
        """
        Receive events while the block runs.

        Args:
            operations: Only deliver events for these operations (system
                events are always delivered); None for everything
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        wanted = frozenset(operations) if operations else None
        async with self._lock:
            self._subscribers[queue] = wanted
        try:
            yield queue
        finally:
            async with self._lock:
                self._subscribers.pop(queue, None)

    async def publish(self, event: DevInterfaceEvent) -> DevInterfaceEvent:
        """Number the event, record it and hand it to matching subscribers."""
        event = event.model_copy(update={"seq": next(self._seq)})
        self._history.append(event)

        async with self._lock:
            for queue, wanted in self._subscribers.items():
                if wanted is not None and event.operation is not None and event.operation not in wanted:
                    continue
                try:
                    queue.put_nowait(event)
                except asyncio.QueueFull:
                    self.dropped += 1
                    _log.warning(f"subscriber queue full, dropped event {event.seq}")
        return event

    async def publish_outcome(
        self,
        operation: Operation,
        outcome: Outcome,
        target: str,
    ) -> Optional[DevInterfaceEvent]:
        """Publish the event for an operation outcome, if it changed anything."""
        event = DevInterfaceEvent.from_outcome(operation, outcome, target)
        if event is None:
            return None
        return await self.publish(event)

    async def emit_system(self, message: str) -> DevInterfaceEvent:
        return await self.publish(DevInterfaceEvent(kind=EventKind.SYSTEM, message=message))

    def get_recent(
        self,
        count: int = 20,
        operation: Optional[Operation] = None,
    ) -> List[DevInterfaceEvent]:
        """Latest events, oldest first, optionally for one operation."""
        events = [
            e for e in self._history
            if operation is None or e.operation == operation
        ]
        return events[-count:] if count > 0 else []

    def get_upload_failures(self, count: int = 20) -> List[DevInterfaceEvent]:
        """Latest upload failures with their Locations Maps."""
        failures = [e for e in self._history if e.locations is not None]
        return failures[-count:] if count > 0 else []


__all__ = ["DevInterfaceEvent", "EventBus", "EventKind", "MUTATING_OPERATIONS"]
