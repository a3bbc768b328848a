###########EXTERNAL IMPORTS############

import asyncio
import math
import platform
import shutil
import socket
import threading
from abc import ABC, abstractmethod
from typing import List, Tuple, Optional
import psutil

#######################################

#############LOCAL IMPORTS#############

from model.analytics.system import (
    SystemSnapshot,
    CpuData,
    MemoryData,
    DiskData,
    FilesystemData,
    NetworkInterfaceData,
    ProcessData,
    ProcessEntry,
    ProcessTotals,
)
from analytics.gpu import GpuReader
from controller.exceptions import ProviderError
import util.functions.date as date

#######################################


class SnapshotProvider(ABC):
    """
    Source of system snapshots.

    Implementations produce one fresh SystemSnapshot per call to `sample()`.
    Any failure to collect a snapshot must surface as ProviderError carrying a
    human readable message; callers treat it as non-fatal.
    """

    @abstractmethod
    async def sample(self) -> SystemSnapshot:
        """
        Collects one snapshot.

        Raises:
            ProviderError: If the snapshot could not be collected.
        """

        pass


class PsutilSnapshotProvider(SnapshotProvider):
    """
    Snapshot provider reading the local host counters through psutil.

    Collection is blocking, so `sample()` runs it in a worker thread and never
    blocks the event loop. psutil keeps module level state between calls for
    the CPU percent baseline and the cached process objects, so only those two
    reads are serialized with a lock; the rest of a collection runs
    concurrently across sessions.

    GPU statistics come from a GpuReader, which answers from its cache and
    never waits on a slow GPU query.

    Attributes:
        top_processes: Number of rows kept in each top process table.
        gpu_reader: Source of the GPU statistics.
    """

    TEMPERATURE_SENSORS = ("coretemp", "k10temp", "cpu_thermal", "soc_thermal")

    def __init__(self, top_processes: int = 5, gpu_reader: Optional[GpuReader] = None):
        self.top_processes = top_processes
        self.lock = threading.Lock()
        self.cpu_brand = PsutilSnapshotProvider.get_cpu_brand()
        self.gpu_reader = gpu_reader if gpu_reader is not None else GpuReader(shutil.which("nvidia-smi"))
        self.gpu_reader.start()
        # First call returns a meaningless 0.0, prime the baseline
        psutil.cpu_percent(interval=None, percpu=True)

    def close(self) -> None:
        """
        Releases the GPU reader.
        """

        self.gpu_reader.close()

    async def sample(self) -> SystemSnapshot:
        try:
            return await asyncio.to_thread(self.collect)
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(f"Failed to collect system snapshot: {e}") from e

    def collect(self) -> SystemSnapshot:
        """
        Collects a snapshot synchronously.

        Returns:
            The snapshot of the current host state.
        """

        return SystemSnapshot(
            cpu=self.get_cpu_data(),
            memory=PsutilSnapshotProvider.get_memory_data(),
            disk=PsutilSnapshotProvider.get_disk_data(),
            network=PsutilSnapshotProvider.get_network_data(),
            gpu=self.gpu_reader.read(),
            processes=self.get_process_data(),
            captured_at_millis=date.get_current_timestamp(),
        )

    def get_cpu_data(self) -> CpuData:
        with self.lock:
            per_core = tuple(psutil.cpu_percent(interval=None, percpu=True))
        usage = round(sum(per_core) / len(per_core), 2) if per_core else 0.0
        temperature = PsutilSnapshotProvider.get_cpu_temperature()
        frequency = psutil.cpu_freq()
        return CpuData(
            usage_percent=usage,
            per_core_load=per_core,
            temperature_c=round(temperature, 2) if not math.isnan(temperature) else None,
            brand=self.cpu_brand,
            cores=psutil.cpu_count(logical=True) or len(per_core),
            physical_cores=psutil.cpu_count(logical=False),
            speed_mhz=frequency.current if frequency else None,
        )

    @staticmethod
    def get_cpu_brand() -> str:
        """
        Returns the CPU model name, falling back to the platform processor string.
        """

        try:
            with open("/proc/cpuinfo") as f:
                for line in f:
                    if line.startswith("model name"):
                        return line.split(":", 1)[1].strip()
        except OSError:
            pass
        return platform.processor()

    @staticmethod
    def get_cpu_temperature() -> float:
        """
        Retrieves the current CPU temperature.

        Returns:
            Maximum CPU core temperature in degrees Celsius.
            Returns NaN if the temperature cannot be determined.
        """

        if hasattr(psutil, "sensors_temperatures"):
            temps = psutil.sensors_temperatures()
            if temps:
                for key in PsutilSnapshotProvider.TEMPERATURE_SENSORS:
                    entries = temps.get(key)
                    if entries:
                        values = [t.current for t in entries if t.current is not None]
                        if values:
                            return max(values)

        # Raspberry Pi specific method
        try:
            with open("/sys/class/thermal/thermal_zone0/temp") as f:
                return int(f.read().strip()) / 1000.0
        except (OSError, ValueError):
            return math.nan

    @staticmethod
    def get_memory_data() -> MemoryData:
        virtual_memory = psutil.virtual_memory()
        swap = psutil.swap_memory()
        return MemoryData(
            total_bytes=virtual_memory.total,
            used_bytes=virtual_memory.used,
            usage_percent=round((virtual_memory.used / virtual_memory.total) * 100, 2) if virtual_memory.total else 0.0,
            available_bytes=virtual_memory.available,
            swap_total_bytes=swap.total,
            swap_used_bytes=swap.used,
            free_bytes=virtual_memory.free,
        )

    @staticmethod
    def get_disk_data() -> DiskData:
        filesystems: List[FilesystemData] = []
        for partition in psutil.disk_partitions(all=False):
            try:
                usage = psutil.disk_usage(partition.mountpoint)
            except (PermissionError, OSError):
                # Unmounted or restricted volumes
                continue
            filesystems.append(
                FilesystemData(
                    device=partition.device,
                    mount=partition.mountpoint,
                    fs_type=partition.fstype,
                    size_bytes=usage.total,
                    used_bytes=usage.used,
                    usage_percent=usage.percent,
                )
            )

        physical_disks = tuple(sorted((psutil.disk_io_counters(perdisk=True) or {}).keys()))

        counters = psutil.disk_io_counters()
        if counters is None:
            return DiskData(
                filesystems=tuple(filesystems),
                cumulative_read_bytes=0,
                cumulative_write_bytes=0,
                physical_disks=physical_disks,
            )

        return DiskData(
            filesystems=tuple(filesystems),
            cumulative_read_bytes=counters.read_bytes,
            cumulative_write_bytes=counters.write_bytes,
            cumulative_read_ops=counters.read_count,
            cumulative_write_ops=counters.write_count,
            physical_disks=physical_disks,
        )

    @staticmethod
    def get_network_data() -> Tuple[NetworkInterfaceData, ...]:
        stats = psutil.net_if_stats()
        addresses = psutil.net_if_addrs()
        interfaces: List[NetworkInterfaceData] = []
        for name, counters in psutil.net_io_counters(pernic=True).items():
            iface_stats = stats.get(name)
            iface_addresses = addresses.get(name, [])
            interfaces.append(
                NetworkInterfaceData(
                    name=name,
                    state="up" if iface_stats is not None and iface_stats.isup else "down",
                    cumulative_rx_bytes=counters.bytes_recv,
                    cumulative_tx_bytes=counters.bytes_sent,
                    rx_errors=counters.errin,
                    tx_errors=counters.errout,
                    ip4=PsutilSnapshotProvider.get_first_address(iface_addresses, socket.AF_INET),
                    ip6=PsutilSnapshotProvider.get_first_address(iface_addresses, socket.AF_INET6),
                    mac=PsutilSnapshotProvider.get_first_address(iface_addresses, psutil.AF_LINK),
                )
            )
        return tuple(interfaces)

    @staticmethod
    def get_first_address(addresses, family) -> str:
        for address in addresses:
            if address.family == family and address.address:
                return address.address
        return ""

    def get_process_data(self) -> ProcessData:
        entries: List[ProcessEntry] = []
        running = sleeping = blocked = 0

        with self.lock:
            infos = []
            for proc in psutil.process_iter(attrs=["pid", "name", "cpu_percent", "memory_percent", "memory_info", "status"]):
                try:
                    infos.append(proc.info)
                except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                    # Processes may die or deny access mid-iteration
                    continue

        for info in infos:
            status = info.get("status")
            if status == psutil.STATUS_RUNNING:
                running += 1
            elif status in (psutil.STATUS_SLEEPING, psutil.STATUS_IDLE):
                sleeping += 1
            elif status == psutil.STATUS_DISK_SLEEP:
                blocked += 1

            mem_info = info.get("memory_info")
            entries.append(
                ProcessEntry(
                    pid=info.get("pid", 0),
                    name=info.get("name") or "",
                    cpu_percent=info.get("cpu_percent") or 0.0,
                    mem_percent=round(info.get("memory_percent") or 0.0, 2),
                    mem_rss_bytes=mem_info.rss if mem_info else 0,
                )
            )

        top_by_cpu = sorted(entries, key=lambda entry: entry.cpu_percent, reverse=True)[: self.top_processes]
        top_by_mem = sorted(entries, key=lambda entry: entry.mem_percent, reverse=True)[: self.top_processes]
        return ProcessData(
            top_by_cpu=tuple(top_by_cpu),
            top_by_mem=tuple(top_by_mem),
            totals=ProcessTotals(all=len(entries), running=running, sleeping=sleeping, blocked=blocked),
        )
