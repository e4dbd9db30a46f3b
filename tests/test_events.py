"""
Tests for the filesystem change feed.
"""

import pytest

from devgate.DevInterfaceGate.errors import OperationError, failure
from devgate.DevInterfaceGate.models import ErrorCode, Operation, Success
from portal.services.events import DevInterfaceEvent, EventBus, EventKind


def _created(location="/a.txt"):
    return Success(status_code=201, headers={"Location": location}, operation="create", body="")


def _partial_upload():
    return OperationError.with_locations(
        ErrorCode.EMOVE, {"/a.txt": "/srv/root/a.txt", "/b.txt": "/tmp/upload_b"}
    ).to_failure("upload")


class TestDevInterfaceEvent:
    """Tests for building events from outcomes."""

    def test_success_of_mutation(self):
        """A successful mutation becomes an event with its Location."""
        event = DevInterfaceEvent.from_outcome(Operation.CREATE, _created(), "/x/create")

        assert event.kind == EventKind.DEVINTERFACE
        assert event.operation == Operation.CREATE
        assert event.success is True
        assert event.location == "/a.txt"
        assert event.sse_name == "devinterface.create"

    def test_read_is_not_an_event(self):
        """Reads change nothing."""
        outcome = Success(operation="exists", body="filesystem entry exists")

        assert DevInterfaceEvent.from_outcome(Operation.EXISTS, outcome, "/x/exists") is None

    def test_plain_failure_is_not_an_event(self):
        """Failures without a Locations Map changed nothing."""
        outcome = failure("create", ErrorCode.EENTEX, "file already exists in filesystem")

        assert DevInterfaceEvent.from_outcome(Operation.CREATE, outcome, "/x/create") is None

    def test_partial_upload_carries_locations(self):
        """Upload failures keep the Locations Map and code."""
        event = DevInterfaceEvent.from_outcome(Operation.UPLOAD, _partial_upload(), "/x/upload")

        assert event.success is False
        assert event.code == "EMOVE"
        assert event.locations["/b.txt"] == "/tmp/upload_b"

    def test_system_event_name(self):
        """System events are named by kind only."""
        event = DevInterfaceEvent(kind=EventKind.SYSTEM, message="started")

        assert event.sse_name == "system"


class TestEventBus:
    """Tests for EventBus."""

    @pytest.mark.asyncio
    async def test_publish_numbers_events(self):
        """Events get increasing sequence numbers."""
        bus = EventBus()

        first = await bus.emit_system("one")
        second = await bus.emit_system("two")

        assert second.seq == first.seq + 1
        assert [e.message for e in bus.get_recent()] == ["one", "two"]

    @pytest.mark.asyncio
    async def test_publish_outcome_skips_reads(self):
        """Outcomes that changed nothing are not recorded."""
        bus = EventBus()

        result = await bus.publish_outcome(
            Operation.EDIT, Success(operation="edit", body=b"x"), "/x/edit"
        )

        assert result is None
        assert bus.get_recent() == []

    @pytest.mark.asyncio
    async def test_subscription_filters_operations(self):
        """Filtered subscribers only get their operations and system events."""
        bus = EventBus()

        async with bus.subscription([Operation.UPLOAD]) as queue:
            await bus.publish_outcome(Operation.CREATE, _created(), "/x/create")
            await bus.publish_outcome(Operation.UPLOAD, _partial_upload(), "/x/upload")
            await bus.emit_system("restarting")

            received = [queue.get_nowait() for _ in range(queue.qsize())]

        assert [e.sse_name for e in received] == ["devinterface.upload", "system"]

    @pytest.mark.asyncio
    async def test_unfiltered_subscription_gets_everything(self):
        """Without a filter every event is delivered."""
        bus = EventBus()

        async with bus.subscription() as queue:
            await bus.publish_outcome(Operation.CREATE, _created(), "/x/create")
            await bus.publish_outcome(Operation.UPLOAD, _partial_upload(), "/x/upload")

            assert queue.qsize() == 2

    @pytest.mark.asyncio
    async def test_subscription_ends_with_block(self):
        """Leaving the block unsubscribes."""
        bus = EventBus()

        async with bus.subscription() as queue:
            pass
        await bus.emit_system("after")

        assert queue.empty()

    @pytest.mark.asyncio
    async def test_full_queue_drops_and_counts(self):
        """A slow subscriber loses events instead of blocking publishers."""
        bus = EventBus(queue_size=1)

        async with bus.subscription() as queue:
            await bus.emit_system("one")
            await bus.emit_system("two")

            assert queue.qsize() == 1

        assert bus.dropped == 1
        assert len(bus.get_recent()) == 2

    @pytest.mark.asyncio
    async def test_history_is_bounded(self):
        """Only the newest max_history events are kept."""
        bus = EventBus(max_history=3)

        for i in range(5):
            await bus.emit_system(f"event {i}")

        assert [e.message for e in bus.get_recent(10)] == ["event 2", "event 3", "event 4"]

    @pytest.mark.asyncio
    async def test_get_recent_by_operation(self):
        """get_recent can be narrowed to one operation."""
        bus = EventBus()
        await bus.publish_outcome(Operation.CREATE, _created(), "/x/create")
        await bus.publish_outcome(Operation.UPLOAD, _partial_upload(), "/x/upload")

        events = bus.get_recent(operation=Operation.CREATE)

        assert [e.operation for e in events] == [Operation.CREATE]
        assert bus.get_recent(0) == []

    @pytest.mark.asyncio
    async def test_upload_failures(self):
        """get_upload_failures returns only events with a Locations Map."""
        bus = EventBus()
        await bus.publish_outcome(Operation.CREATE, _created(), "/x/create")
        await bus.publish_outcome(Operation.UPLOAD, _partial_upload(), "/x/upload")

        failures = bus.get_upload_failures()

        assert len(failures) == 1
        assert failures[0].locations["/a.txt"] == "/srv/root/a.txt"
