from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query
from sse_starlette.sse import EventSourceResponse

from devgate.DevInterfaceGate.models import Operation

# Seconds between SSE keepalive comments
PING_INTERVAL = 15


def create_router(event_bus) -> APIRouter:
    router = APIRouter()

    @router.get("/api/events")
    async def api_events(operation: Optional[List[Operation]] = Query(default=None)):
        """
        SSE feed of filesystem changes.

        Repeat `operation` to follow only some operations, e.g.
        `?operation=upload&operation=save`. Event names are
        `devinterface.<operation>` or `system`; ids are sequence numbers.
        """

        async def stream():
            async with event_bus.subscription(operation) as queue:
                while True:
                    event = await queue.get()
                    yield {
                        "id": str(event.seq),
                        "event": event.sse_name,
                        "data": event.model_dump_json(exclude_none=True),
                    }

        return EventSourceResponse(stream(), ping=PING_INTERVAL)

    @router.get("/api/events/recent")
    async def api_events_recent(count: int = 20, operation: Optional[Operation] = None):
        """Most recent events, oldest first, for clients that poll."""
        events = event_bus.get_recent(count, operation)
        return {"events": [e.model_dump(mode="json", exclude_none=True) for e in events]}

    @router.get("/api/events/upload-failures")
    async def api_upload_failures(count: int = 20):
        """Recent partial uploads with the Locations Map of each."""
        failures = event_bus.get_upload_failures(count)
        return {
            "failures": [
                {
                    "seq": e.seq,
                    "timestamp": e.timestamp,
                    "code": e.code,
                    "locations": e.locations,
                }
                for e in failures
            ]
        }

    return router


__all__ = ["create_router"]
