###########EXTERNAL IMPORTS############

import asyncio
import pytest

#######################################

#############LOCAL IMPORTS#############

from controller.broadcaster import Broadcaster
from controller.exceptions import DeliveryError, SessionAlreadyRegistered
from model.monitoring.message import OutboundMessage
from model.monitoring.session import MonitoringEvent

#######################################


class DummyConnection:
    def __init__(self, fail_first=0):
        self.received = []
        self.fail_first = fail_first
        self.gate = asyncio.Event()
        self.gate.set()

    async def send(self, data):
        await self.gate.wait()
        if self.fail_first > 0:
            self.fail_first -= 1
            raise DeliveryError("socket closed")
        self.received.append(data)


async def flush(times=10):
    for _ in range(times):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_messages_are_routed_to_owner_only():
    broadcaster = Broadcaster()
    a = DummyConnection()
    b = DummyConnection()
    broadcaster.register("a", a.send)
    broadcaster.register("b", b.send)

    broadcaster.publish_error("a", "for a")
    broadcaster.publish_complete("b", 300, 300)
    await flush()

    assert a.received == [{"event": "error", "data": {"message": "for a"}}]
    assert b.received == [{"event": "monitoring-complete", "data": {"elapsed_seconds": 300, "duration_seconds": 300}}]

    await broadcaster.close()


@pytest.mark.asyncio
async def test_publish_to_unknown_client_is_dropped():
    broadcaster = Broadcaster()
    assert broadcaster.publish_error("nobody", "lost") is False


@pytest.mark.asyncio
async def test_full_queue_drops_oldest_message():
    broadcaster = Broadcaster(queue_size=2)
    connection = DummyConnection()
    connection.gate.clear()
    broadcaster.register("a", connection.send)
    await flush()

    # The first message is held by the blocked sender, the queue holds the next two
    assert broadcaster.publish_error("a", "m0") is True
    await flush()
    for i in range(1, 4):
        assert broadcaster.publish_error("a", f"m{i}") is True

    connection.gate.set()
    await flush()

    assert [m["data"]["message"] for m in connection.received] == ["m0", "m2", "m3"]
    await broadcaster.close()


@pytest.mark.asyncio
async def test_failed_delivery_does_not_stop_sender():
    broadcaster = Broadcaster()
    connection = DummyConnection(fail_first=1)
    broadcaster.register("a", connection.send)

    broadcaster.publish_error("a", "lost")
    broadcaster.publish_error("a", "kept")
    await flush()

    assert [m["data"]["message"] for m in connection.received] == ["kept"]
    assert not broadcaster.channels["a"].sender_task.done()
    await broadcaster.close()


@pytest.mark.asyncio
async def test_unregister_cancels_sender_and_discards_pending():
    broadcaster = Broadcaster()
    connection = DummyConnection()
    connection.gate.clear()
    broadcaster.register("a", connection.send)
    broadcaster.publish_error("a", "pending")
    task = broadcaster.channels["a"].sender_task

    await broadcaster.unregister("a")

    assert "a" not in broadcaster
    assert task.cancelled()
    assert connection.received == []
    assert broadcaster.publish_error("a", "late") is False

    # Unregistering twice is harmless
    await broadcaster.unregister("a")


@pytest.mark.asyncio
async def test_duplicate_register_is_rejected():
    broadcaster = Broadcaster()
    connection = DummyConnection()
    broadcaster.register("a", connection.send)
    with pytest.raises(SessionAlreadyRegistered):
        broadcaster.register("a", connection.send)
    await broadcaster.close()


def test_outbound_message_format():
    message = OutboundMessage(MonitoringEvent.SYSTEM_DATA, {"cpu": {}})
    assert message.get_data() == {"event": "system-data", "data": {"cpu": {}}}
