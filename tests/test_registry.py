###########EXTERNAL IMPORTS############

import pytest

#######################################

#############LOCAL IMPORTS#############

from analytics.system import SnapshotProvider
from controller.broadcaster import Broadcaster
from controller.registry import SessionRegistry
from controller.scheduler import ManualScheduler
from controller.exceptions import InvalidTransition, SessionAlreadyRegistered
from model.analytics.system import SystemSnapshot, CpuData, MemoryData, DiskData, NetworkInterfaceData, ProcessData
from model.monitoring.config import MonitorConfig
from model.monitoring.session import SessionState, MonitoringEvent

#######################################


class DummyProvider(SnapshotProvider):
    """Counters grow by 1000 bytes per call, captured 500 ms apart."""

    def __init__(self):
        self.calls = 0

    async def sample(self):
        self.calls += 1
        return SystemSnapshot(
            cpu=CpuData(usage_percent=5.0, per_core_load=(5.0,)),
            memory=MemoryData(total_bytes=100, used_bytes=10, usage_percent=10.0),
            disk=DiskData(filesystems=(), cumulative_read_bytes=self.calls * 1000, cumulative_write_bytes=0),
            network=(NetworkInterfaceData("eth0", "up", self.calls * 1000, 0),),
            gpu=(),
            processes=ProcessData(),
            captured_at_millis=self.calls * 500,
        )


class RecordingBroadcaster(Broadcaster):
    def __init__(self):
        super().__init__()
        self.messages = []

    def enqueue(self, client_id, message):
        self.messages.append((client_id, message))
        return True

    def events(self, client_id, event):
        return [message.data for owner, message in self.messages if owner == client_id and message.event == event]


def create_registry():
    scheduler = ManualScheduler()
    broadcaster = RecordingBroadcaster()
    registry = SessionRegistry(DummyProvider(), broadcaster, MonitorConfig(), scheduler=scheduler)
    return registry, scheduler, broadcaster


async def run_ticks(registry, scheduler, count=1):
    for _ in range(count):
        scheduler.advance(registry.config.sampling_interval_seconds)
        for session in registry.sessions.values():
            if session.tick_task is not None:
                await session.tick_task


def test_connect_creates_idle_session():
    registry, _, _ = create_registry()
    session = registry.on_connect("a")

    assert "a" in registry
    assert len(registry) == 1
    assert session.state == SessionState.IDLE
    assert session.interval_seconds == 0.5
    assert session.max_seconds == 300
    assert registry.get("a") is session


def test_duplicate_connect_is_rejected():
    registry, _, _ = create_registry()
    session = registry.on_connect("a")
    with pytest.raises(SessionAlreadyRegistered):
        registry.on_connect("a")
    assert registry.get("a") is session


def test_unknown_client_lookup():
    registry, _, _ = create_registry()
    with pytest.raises(KeyError):
        registry.get("missing")
    with pytest.raises(KeyError):
        registry.start("missing")


@pytest.mark.asyncio
async def test_disconnect_disposes_running_session():
    registry, scheduler, _ = create_registry()
    session = registry.on_connect("a")
    registry.start("a")
    assert len(scheduler.pending()) == 2

    await registry.on_disconnect("a")

    assert "a" not in registry
    assert session.state == SessionState.STOPPED
    assert scheduler.pending() == []


@pytest.mark.asyncio
async def test_disconnect_unknown_client_is_noop():
    registry, _, _ = create_registry()
    registry.on_connect("a")
    await registry.on_disconnect("ghost")
    assert len(registry) == 1


@pytest.mark.asyncio
async def test_start_while_running_is_rejected():
    registry, scheduler, _ = create_registry()
    registry.on_connect("a")
    registry.start("a")
    with pytest.raises(InvalidTransition):
        registry.start("a")
    assert len(scheduler.pending()) == 2


@pytest.mark.asyncio
async def test_restart_after_stop_uses_fresh_session():
    registry, scheduler, broadcaster = create_registry()
    registry.on_connect("a")
    first = registry.start("a")
    await run_ticks(registry, scheduler, count=3)
    assert first.elapsed_seconds == 1.5

    assert registry.stop("a") is True
    assert registry.stop("a") is False

    second = registry.start("a")
    assert second is not first
    assert second.state == SessionState.RUNNING
    assert second.elapsed_seconds == 0.0
    assert first.state == SessionState.STOPPED

    await run_ticks(registry, scheduler)
    data = broadcaster.events("a", MonitoringEvent.SYSTEM_DATA)
    assert [d["disk"]["read_bytes_per_sec"] for d in data] == [0.0, 2000.0, 2000.0, 0.0]
    assert data[-1]["session"]["elapsed_seconds"] == 0.5


@pytest.mark.asyncio
async def test_sessions_do_not_share_state():
    registry, scheduler, broadcaster = create_registry()
    registry.on_connect("a")
    registry.on_connect("b")
    registry.start("a")
    await run_ticks(registry, scheduler, count=2)
    registry.start("b")
    await run_ticks(registry, scheduler)

    a = registry.get("a")
    b = registry.get("b")
    assert a.rate_deriver is not b.rate_deriver
    assert a.elapsed_seconds == 1.5
    assert b.elapsed_seconds == 0.5
    # The first sample of b seeds its own baselines
    assert broadcaster.events("b", MonitoringEvent.SYSTEM_DATA)[0]["network"][0]["rx_bytes_per_sec"] == 0.0

    registry.stop("a")
    assert b.state == SessionState.RUNNING


@pytest.mark.asyncio
async def test_close_disposes_everything():
    registry, scheduler, _ = create_registry()
    registry.on_connect("a")
    registry.on_connect("b")
    registry.start("a")
    registry.start("b")

    await registry.close()

    assert len(registry) == 0
    assert scheduler.pending() == []


def test_get_sessions_reports_status():
    registry, _, _ = create_registry()
    registry.on_connect("a")
    run_id = registry.get("a").run_id
    assert registry.get_sessions() == [
        {"id": "a", "state": "IDLE", "run_id": run_id, "started_at_millis": None, "elapsed_seconds": 0.0, "progress": 0.0}
    ]
