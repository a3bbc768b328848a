###########EXTERNAL IMPORTS############

import asyncio
import socket
import time
from types import SimpleNamespace
import psutil
import pytest

#######################################

#############LOCAL IMPORTS#############

from analytics.gpu import GpuReader
from analytics.system import PsutilSnapshotProvider
from controller.exceptions import ProviderError
from model.analytics.system import GpuData

#######################################


class DummyGpuReader(GpuReader):
    """GPU reader returning fixed values after an optional delay."""

    def __init__(self, gpus=(), delay=0.0):
        super().__init__(nvidia_smi=None, use_nvml=False)
        self.gpus = gpus
        self.delay = delay
        self.closed = False

    def read(self):
        if self.delay:
            time.sleep(self.delay)
        return self.gpus

    def close(self):
        self.closed = True


def test_collect_reads_local_host():
    provider = PsutilSnapshotProvider(top_processes=3, gpu_reader=DummyGpuReader())

    snapshot = provider.collect()

    assert snapshot.cpu.cores >= 1
    assert len(snapshot.cpu.per_core_load) >= 1
    assert 0.0 <= snapshot.cpu.usage_percent <= 100.0
    assert snapshot.memory.total_bytes > 0
    assert 0.0 <= snapshot.memory.usage_percent <= 100.0
    assert 0 <= snapshot.memory.free_bytes <= snapshot.memory.total_bytes
    assert snapshot.disk.cumulative_read_bytes >= 0
    assert isinstance(snapshot.disk.physical_disks, tuple)
    assert all(iface.state in ("up", "down") for iface in snapshot.network)
    assert snapshot.gpu == ()
    assert len(snapshot.processes.top_by_cpu) <= 3
    assert len(snapshot.processes.top_by_mem) <= 3
    assert snapshot.processes.totals.all >= 1
    assert snapshot.captured_at_millis > 0


def test_collect_uses_gpu_reader():
    gpu = GpuData("Fake GPU", 40.0, 1024, 2048, 61.0, vendor="NVIDIA", memory_utilization_percent=25.0)
    provider = PsutilSnapshotProvider(gpu_reader=DummyGpuReader(gpus=(gpu,)))

    assert provider.collect().gpu == (gpu,)


def test_close_releases_gpu_reader():
    reader = DummyGpuReader()
    provider = PsutilSnapshotProvider(gpu_reader=reader)

    provider.close()
    assert reader.closed


def test_network_data_reports_addresses(monkeypatch):
    monkeypatch.setattr(
        psutil,
        "net_io_counters",
        lambda pernic=False: {
            "eth0": SimpleNamespace(bytes_recv=10, bytes_sent=20, errin=0, errout=1),
            "wlan0": SimpleNamespace(bytes_recv=0, bytes_sent=0, errin=0, errout=0),
        },
    )
    monkeypatch.setattr(psutil, "net_if_stats", lambda: {"eth0": SimpleNamespace(isup=True)})
    monkeypatch.setattr(
        psutil,
        "net_if_addrs",
        lambda: {
            "eth0": [
                SimpleNamespace(family=psutil.AF_LINK, address="aa:bb:cc:dd:ee:ff"),
                SimpleNamespace(family=socket.AF_INET, address="192.168.1.10"),
                SimpleNamespace(family=socket.AF_INET, address="10.0.0.2"),
                SimpleNamespace(family=socket.AF_INET6, address="fe80::1"),
            ]
        },
    )

    eth0, wlan0 = PsutilSnapshotProvider.get_network_data()

    assert (eth0.ip4, eth0.ip6, eth0.mac) == ("192.168.1.10", "fe80::1", "aa:bb:cc:dd:ee:ff")
    assert eth0.state == "up"
    assert (wlan0.ip4, wlan0.ip6, wlan0.mac) == ("", "", "")
    assert wlan0.state == "down"


def test_disk_data_lists_physical_disks(monkeypatch):
    def disk_io_counters(perdisk=False):
        if perdisk:
            return {"sdb": None, "nvme0n1": None, "sda": None}
        return SimpleNamespace(read_bytes=100, write_bytes=200, read_count=3, write_count=4)

    monkeypatch.setattr(psutil, "disk_partitions", lambda all=False: [])
    monkeypatch.setattr(psutil, "disk_io_counters", disk_io_counters)

    disk = PsutilSnapshotProvider.get_disk_data()

    assert disk.physical_disks == ("nvme0n1", "sda", "sdb")
    assert disk.cumulative_read_bytes == 100
    assert disk.cumulative_write_ops == 4


def test_disk_data_without_counters(monkeypatch):
    monkeypatch.setattr(psutil, "disk_partitions", lambda all=False: [])
    monkeypatch.setattr(psutil, "disk_io_counters", lambda perdisk=False: None)

    disk = PsutilSnapshotProvider.get_disk_data()

    assert disk.physical_disks == ()
    assert disk.cumulative_read_bytes == 0


@pytest.mark.asyncio
async def test_sample_runs_collection():
    provider = PsutilSnapshotProvider(gpu_reader=DummyGpuReader())

    first = await provider.sample()
    second = await provider.sample()
    assert second.captured_at_millis >= first.captured_at_millis


@pytest.mark.asyncio
async def test_slow_gpu_read_does_not_serialize_samples():
    provider = PsutilSnapshotProvider(gpu_reader=DummyGpuReader(delay=0.8))

    started = time.monotonic()
    first, second = await asyncio.gather(provider.sample(), provider.sample())
    elapsed = time.monotonic() - started

    assert first.gpu == second.gpu == ()
    # Serialized collections would need at least 1.6 s
    assert elapsed < 1.5


@pytest.mark.asyncio
async def test_sample_wraps_failures(monkeypatch):
    provider = PsutilSnapshotProvider(gpu_reader=DummyGpuReader())

    def broken_collect():
        raise RuntimeError("psutil exploded")

    monkeypatch.setattr(provider, "collect", broken_collect)
    with pytest.raises(ProviderError) as exc_info:
        await provider.sample()
    assert "psutil exploded" in str(exc_info.value)
