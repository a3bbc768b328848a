###########EXTERNAL IMPORTS############

import subprocess
import threading
import time
from enum import Enum
from typing import Any, List, Optional, Tuple
import pynvml

#######################################

#############LOCAL IMPORTS#############

from model.analytics.system import GpuData
from util.debug import LoggerManager

#######################################


class GpuMethod(str, Enum):
    """
    Source the GPU statistics are read from.

    Attributes:
        NVML (str): NVIDIA Management Library, read in-process.
        NVIDIA_SMI (str): nvidia-smi command line, polled by a background thread.
        NONE (str): No GPU statistics available.
    """

    NVML = "nvml"
    NVIDIA_SMI = "nvidia-smi"
    NONE = "none"


class GpuReader:
    """
    Reads NVIDIA GPU statistics without ever blocking a sampling tick for long.

    NVML is tried first. When it is not available but `nvidia-smi` is installed,
    a background thread polls the command at most once per `min_interval_seconds`
    and `read()` only returns the last polled values. NVML reads are cheap but
    still cached for `min_interval_seconds`; a caller arriving while another
    thread refreshes the cache gets the cached values instead of waiting.

    Attributes:
        method (GpuMethod): Source in use.
        min_interval_seconds (float): Minimum age of the cache before it is refreshed.
        cached (Tuple[GpuData, ...]): Last values read.
    """

    SMI_TIMEOUT_SECONDS = 1.5
    SMI_QUERY_FIELDS = "name,utilization.gpu,utilization.memory,memory.used,memory.total,temperature.gpu"
    VENDOR = "NVIDIA"

    def __init__(self, nvidia_smi: Optional[str] = None, use_nvml: bool = True, min_interval_seconds: float = 1.0):
        self.nvidia_smi = nvidia_smi
        self.min_interval_seconds = min_interval_seconds
        self.method = GpuMethod.NONE
        self.handles: List[Any] = []
        self.cached: Tuple[GpuData, ...] = ()
        self.last_refresh: Optional[float] = None
        self.refresh_lock = threading.Lock()
        self.stop_event = threading.Event()
        self.poll_thread: Optional[threading.Thread] = None

        if use_nvml:
            self.init_nvml()
        if self.method == GpuMethod.NONE and self.nvidia_smi is not None:
            self.method = GpuMethod.NVIDIA_SMI

    def init_nvml(self) -> None:
        logger = LoggerManager.get_logger(__name__)

        try:
            pynvml.nvmlInit()
            count = pynvml.nvmlDeviceGetCount()
            handles = [pynvml.nvmlDeviceGetHandleByIndex(index) for index in range(count)]
        except pynvml.NVMLError as e:
            logger.debug(f"NVML is not available: {e}")
            return

        if handles:
            self.handles = handles
            self.method = GpuMethod.NVML
            logger.info(f"Reading {len(handles)} GPU(s) through NVML")

    def start(self) -> None:
        """
        Starts the nvidia-smi polling thread. Does nothing for the other methods.
        """

        if self.method != GpuMethod.NVIDIA_SMI or self.poll_thread is not None:
            return

        self.stop_event.clear()
        self.poll_thread = threading.Thread(target=self.poll_smi, name="gpu-poller", daemon=True)
        self.poll_thread.start()

    def close(self) -> None:
        """
        Stops the polling thread and releases NVML.
        """

        logger = LoggerManager.get_logger(__name__)

        self.stop_event.set()
        if self.poll_thread is not None:
            self.poll_thread.join(timeout=self.SMI_TIMEOUT_SECONDS + self.min_interval_seconds)
            self.poll_thread = None

        if self.method == GpuMethod.NVML:
            try:
                pynvml.nvmlShutdown()
            except pynvml.NVMLError as e:
                logger.debug(f"NVML shutdown failed: {e}")
            self.handles = []
            self.method = GpuMethod.NONE

    def read(self) -> Tuple[GpuData, ...]:
        """
        Returns the current GPU statistics, one GpuData per controller.
        """

        if self.method != GpuMethod.NVML:
            return self.cached

        now = time.monotonic()
        if self.last_refresh is not None and now - self.last_refresh < self.min_interval_seconds:
            return self.cached

        if not self.refresh_lock.acquire(blocking=False):
            return self.cached
        try:
            self.cached = self.read_nvml()
            self.last_refresh = time.monotonic()
        finally:
            self.refresh_lock.release()
        return self.cached

    def read_nvml(self) -> Tuple[GpuData, ...]:
        logger = LoggerManager.get_logger(__name__)

        gpus: List[GpuData] = []
        for handle in self.handles:
            try:
                name = pynvml.nvmlDeviceGetName(handle)
                rates = pynvml.nvmlDeviceGetUtilizationRates(handle)
                memory = pynvml.nvmlDeviceGetMemoryInfo(handle)
            except pynvml.NVMLError as e:
                logger.debug(f"Failed to read GPU through NVML: {e}")
                continue

            try:
                temperature: Optional[float] = float(pynvml.nvmlDeviceGetTemperature(handle, pynvml.NVML_TEMPERATURE_GPU))
            except pynvml.NVMLError:
                temperature = None

            if isinstance(name, bytes):
                name = name.decode("utf-8", errors="ignore")

            gpus.append(
                GpuData(
                    model=str(name),
                    utilization_percent=float(rates.gpu),
                    mem_used_bytes=int(memory.used),
                    mem_total_bytes=int(memory.total),
                    temperature_c=temperature,
                    vendor=GpuReader.VENDOR,
                    memory_utilization_percent=float(rates.memory),
                )
            )
        return tuple(gpus)

    def poll_smi(self) -> None:
        """
        Refreshes the cache from nvidia-smi until `close()` is called.
        """

        while not self.stop_event.is_set():
            self.cached = self.query_smi()
            self.last_refresh = time.monotonic()
            self.stop_event.wait(self.min_interval_seconds)

    def query_smi(self) -> Tuple[GpuData, ...]:
        logger = LoggerManager.get_logger(__name__)

        if self.nvidia_smi is None:
            return ()

        cmd = [self.nvidia_smi, f"--query-gpu={self.SMI_QUERY_FIELDS}", "--format=csv,noheader,nounits"]
        try:
            out = subprocess.run(cmd, capture_output=True, text=True, timeout=self.SMI_TIMEOUT_SECONDS, check=True)
        except (subprocess.SubprocessError, OSError) as e:
            logger.debug(f"GPU query failed: {e}")
            return ()

        gpus: List[GpuData] = []
        for line in out.stdout.strip().splitlines():
            gpu = GpuReader.parse_smi_line(line)
            if gpu is not None:
                gpus.append(gpu)
        return tuple(gpus)

    @staticmethod
    def parse_smi_line(line: str) -> Optional[GpuData]:
        """
        Parses one CSV line of the nvidia-smi query. Memory is reported in MiB.
        Fields reported as "[N/A]" or otherwise unparsable default to zero/None.
        """

        fields = [item.strip() for item in line.split(",")]
        if len(fields) != 6 or not fields[0]:
            return None

        def to_float(value: str) -> Optional[float]:
            try:
                return float(value)
            except ValueError:
                return None

        return GpuData(
            model=fields[0],
            utilization_percent=to_float(fields[1]) or 0.0,
            mem_used_bytes=int((to_float(fields[3]) or 0.0) * 1024 * 1024),
            mem_total_bytes=int((to_float(fields[4]) or 0.0) * 1024 * 1024),
            temperature_c=to_float(fields[5]),
            vendor=GpuReader.VENDOR,
            memory_utilization_percent=to_float(fields[2]) or 0.0,
        )
