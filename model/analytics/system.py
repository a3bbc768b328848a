###########EXTERNAL IMPORTS############

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Tuple

#######################################

#############LOCAL IMPORTS#############

#######################################


@dataclass(frozen=True)
class CpuData:
    """
    CPU load and identification at the sampling instant.

    Attributes:
        usage_percent: Overall CPU usage percentage (0–100).
        per_core_load: Usage percentage of each logical core.
        temperature_c: CPU temperature in degrees Celsius, or None if not available.
        brand: CPU model string as reported by the platform.
        cores: Number of logical cores.
        physical_cores: Number of physical cores, or None if not available.
        speed_mhz: Current CPU frequency in MHz, or None if not available.
    """

    usage_percent: float
    per_core_load: Tuple[float, ...]
    temperature_c: Optional[float] = None
    brand: str = ""
    cores: int = 0
    physical_cores: Optional[int] = None
    speed_mhz: Optional[float] = None

    def get_data(self) -> Dict[str, Any]:
        return {
            "usage_percent": self.usage_percent,
            "per_core_load": list(self.per_core_load),
            "temperature_c": self.temperature_c,
            "brand": self.brand,
            "cores": self.cores,
            "physical_cores": self.physical_cores,
            "speed_mhz": self.speed_mhz,
        }


@dataclass(frozen=True)
class MemoryData:
    """
    Physical memory and swap usage, in bytes.
    """

    total_bytes: int
    used_bytes: int
    usage_percent: float
    available_bytes: int = 0
    swap_total_bytes: int = 0
    swap_used_bytes: int = 0
    free_bytes: int = 0

    def get_data(self) -> Dict[str, Any]:
        return {
            "total_bytes": self.total_bytes,
            "used_bytes": self.used_bytes,
            "available_bytes": self.available_bytes,
            "free_bytes": self.free_bytes,
            "usage_percent": self.usage_percent,
            "swap_total_bytes": self.swap_total_bytes,
            "swap_used_bytes": self.swap_used_bytes,
        }


@dataclass(frozen=True)
class FilesystemData:
    """
    Usage of one mounted filesystem.
    """

    device: str
    mount: str
    fs_type: str
    size_bytes: int
    used_bytes: int
    usage_percent: float

    def get_data(self) -> Dict[str, Any]:
        return {
            "device": self.device,
            "mount": self.mount,
            "fs_type": self.fs_type,
            "size_bytes": self.size_bytes,
            "used_bytes": self.used_bytes,
            "usage_percent": self.usage_percent,
        }


@dataclass(frozen=True)
class DiskData:
    """
    Filesystem usage plus the cumulative disk I/O counters since boot.

    The cumulative counters only ever grow on a running host; a decrease
    between two snapshots means the counters were reset.
    """

    filesystems: Tuple[FilesystemData, ...]
    cumulative_read_bytes: int
    cumulative_write_bytes: int
    cumulative_read_ops: int = 0
    cumulative_write_ops: int = 0
    physical_disks: Tuple[str, ...] = ()

    def get_data(self) -> Dict[str, Any]:
        return {
            "filesystems": [fs.get_data() for fs in self.filesystems],
            "cumulative_read_bytes": self.cumulative_read_bytes,
            "cumulative_write_bytes": self.cumulative_write_bytes,
            "cumulative_read_ops": self.cumulative_read_ops,
            "cumulative_write_ops": self.cumulative_write_ops,
            "physical_disks": list(self.physical_disks),
        }


@dataclass(frozen=True)
class NetworkInterfaceData:
    """
    Cumulative traffic counters of one network interface.

    Attributes:
        name: Interface name (e.g. eth0).
        state: Operational state, "up" or "down".
        cumulative_rx_bytes: Bytes received since the counter was last reset.
        cumulative_tx_bytes: Bytes sent since the counter was last reset.
        ip4, ip6, mac: First address of each family, empty when the interface has none.
    """

    name: str
    state: str
    cumulative_rx_bytes: int
    cumulative_tx_bytes: int
    rx_errors: int = 0
    tx_errors: int = 0
    ip4: str = ""
    ip6: str = ""
    mac: str = ""

    def get_data(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "state": self.state,
            "cumulative_rx_bytes": self.cumulative_rx_bytes,
            "cumulative_tx_bytes": self.cumulative_tx_bytes,
            "rx_errors": self.rx_errors,
            "tx_errors": self.tx_errors,
            "ip4": self.ip4,
            "ip6": self.ip6,
            "mac": self.mac,
        }


@dataclass(frozen=True)
class GpuData:
    """
    Utilization and memory of one GPU controller.
    """

    model: str
    utilization_percent: float = 0.0
    mem_used_bytes: int = 0
    mem_total_bytes: int = 0
    temperature_c: Optional[float] = None
    vendor: str = ""
    memory_utilization_percent: float = 0.0

    def get_data(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "vendor": self.vendor,
            "memory_utilization_percent": self.memory_utilization_percent,
            "utilization_percent": self.utilization_percent,
            "mem_used_bytes": self.mem_used_bytes,
            "mem_total_bytes": self.mem_total_bytes,
            "temperature_c": self.temperature_c,
        }


@dataclass(frozen=True)
class ProcessEntry:
    """
    One row of the top process tables.
    """

    pid: int
    name: str
    cpu_percent: float
    mem_percent: float
    mem_rss_bytes: int = 0

    def get_data(self) -> Dict[str, Any]:
        return {
            "pid": self.pid,
            "name": self.name,
            "cpu_percent": self.cpu_percent,
            "mem_percent": self.mem_percent,
            "mem_rss_bytes": self.mem_rss_bytes,
        }


@dataclass(frozen=True)
class ProcessTotals:
    """
    Process counts by scheduler state.
    """

    all: int = 0
    running: int = 0
    sleeping: int = 0
    blocked: int = 0

    def get_data(self) -> Dict[str, int]:
        return {"all": self.all, "running": self.running, "sleeping": self.sleeping, "blocked": self.blocked}


@dataclass(frozen=True)
class ProcessData:
    """
    Process table summary: the heaviest processes by CPU and by memory plus totals.
    """

    top_by_cpu: Tuple[ProcessEntry, ...] = ()
    top_by_mem: Tuple[ProcessEntry, ...] = ()
    totals: ProcessTotals = field(default_factory=ProcessTotals)

    def get_data(self) -> Dict[str, Any]:
        return {
            "top_by_cpu": [proc.get_data() for proc in self.top_by_cpu],
            "top_by_mem": [proc.get_data() for proc in self.top_by_mem],
            "totals": self.totals.get_data(),
        }


@dataclass(frozen=True)
class SystemSnapshot:
    """
    One complete, consistent reading of all monitored system counters.

    Snapshots are produced fresh by a snapshot provider on every sampling tick
    and are never mutated afterwards; derived rates are attached by wrapping the
    snapshot in an EnrichedSnapshot.

    Attributes:
        cpu: CPU load and identification.
        memory: Memory and swap usage.
        disk: Filesystem usage and cumulative disk I/O counters.
        network: Cumulative counters of every network interface.
        gpu: GPU controllers, empty when none could be queried.
        processes: Process table summary.
        captured_at_millis: Unix timestamp in milliseconds of the reading.
    """

    cpu: CpuData
    memory: MemoryData
    disk: DiskData
    network: Tuple[NetworkInterfaceData, ...]
    gpu: Tuple[GpuData, ...]
    processes: ProcessData
    captured_at_millis: int

    def get_data(self) -> Dict[str, Any]:
        return {
            "cpu": self.cpu.get_data(),
            "memory": self.memory.get_data(),
            "disk": self.disk.get_data(),
            "network": [iface.get_data() for iface in self.network],
            "gpu": [gpu.get_data() for gpu in self.gpu],
            "processes": self.processes.get_data(),
            "captured_at_millis": self.captured_at_millis,
        }


@dataclass(frozen=True)
class NetworkRate:
    """
    Derived transfer rates of one network interface, in bytes per second.
    """

    rx_bytes_per_sec: float = 0.0
    tx_bytes_per_sec: float = 0.0


@dataclass(frozen=True)
class DiskRate:
    """
    Derived disk throughput, in bytes per second.
    """

    read_bytes_per_sec: float = 0.0
    write_bytes_per_sec: float = 0.0


@dataclass(frozen=True)
class EnrichedSnapshot:
    """
    A SystemSnapshot together with the rates derived from its cumulative counters.

    Attributes:
        snapshot: The raw snapshot.
        network_rates: Rates keyed by interface name, one entry per interface of the snapshot.
        disk_rate: Disk read and write throughput.
        elapsed_seconds: Session elapsed time when the snapshot was taken.
        progress: Session progress ratio in [0, 1] when the snapshot was taken.
        run_id: Identity of the session run that produced the snapshot, empty outside a session.
    """

    snapshot: SystemSnapshot
    network_rates: Dict[str, NetworkRate]
    disk_rate: DiskRate
    elapsed_seconds: float = 0.0
    progress: float = 0.0
    run_id: str = ""

    def get_data(self) -> Dict[str, Any]:
        """
        Returns a JSON serializable representation of the snapshot.

        The derived rates are merged into the raw network and disk sections so
        that every interface carries its own rx/tx rates.

        Returns:
            A dictionary suitable for JSON encoding and WebSocket delivery.
        """

        data = self.snapshot.get_data()
        for iface in data["network"]:
            rate = self.network_rates.get(iface["name"], NetworkRate())
            iface["rx_bytes_per_sec"] = rate.rx_bytes_per_sec
            iface["tx_bytes_per_sec"] = rate.tx_bytes_per_sec
        data["disk"]["read_bytes_per_sec"] = self.disk_rate.read_bytes_per_sec
        data["disk"]["write_bytes_per_sec"] = self.disk_rate.write_bytes_per_sec
        data["session"] = {"run_id": self.run_id, "elapsed_seconds": self.elapsed_seconds, "progress": self.progress}
        return data
