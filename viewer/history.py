###########EXTERNAL IMPORTS############

from typing import Dict, Any, List, Optional

#######################################

#############LOCAL IMPORTS#############

from model.struct.sliding_window import SlidingWindow
from model.monitoring.history import HistoryPoint, series_from_points
import util.functions.date as date

#######################################


class RollingHistoryBuffer:
    """
    Bounded history of the samples received during one monitoring session.

    Every sample is stored as a single HistoryPoint in a fixed-capacity
    SlidingWindow, so the timestamp, CPU, memory, network and GPU series are
    evicted together and their indices always line up. Once full, each append
    evicts the oldest point in O(1).

    Attributes:
        max_points (int): Capacity of the buffer.
    """

    BYTES_PER_KB = 1024

    def __init__(self, max_points: int = 600):
        self.max_points = max_points
        self.points: SlidingWindow[HistoryPoint] = SlidingWindow(max_size=max_points)

    def __len__(self) -> int:
        return len(self.points)

    def append(self, point: HistoryPoint) -> Optional[HistoryPoint]:
        """
        Appends a point, evicting the oldest one if the buffer is full.

        Returns:
            The evicted point, or None.
        """

        return self.points.add(point)

    def append_snapshot(self, payload: Dict[str, Any]) -> HistoryPoint:
        """
        Appends the point extracted from a received system-data payload.

        Missing network or GPU data is recorded as 0 so every series keeps the
        same length.

        Args:
            payload: The payload of a system-data event.

        Returns:
            The appended point.
        """

        point = RollingHistoryBuffer.point_from_payload(payload)
        self.append(point)
        return point

    @staticmethod
    def point_from_payload(payload: Dict[str, Any]) -> HistoryPoint:
        """
        Builds a history point from a system-data payload.

        The primary network interface is the first one reported "up", or the
        first interface when none is up. Rates are converted to KB/s.
        """

        rx_kbps = tx_kbps = 0.0
        network = payload.get("network") or []
        if network:
            primary = next((iface for iface in network if iface.get("state") == "up"), network[0])
            rx_kbps = (primary.get("rx_bytes_per_sec") or 0.0) / RollingHistoryBuffer.BYTES_PER_KB
            tx_kbps = (primary.get("tx_bytes_per_sec") or 0.0) / RollingHistoryBuffer.BYTES_PER_KB

        gpus = payload.get("gpu") or []
        gpu_percent = (gpus[0].get("utilization_percent") or 0.0) if gpus else 0.0

        return HistoryPoint(
            timestamp=payload.get("captured_at_millis") or date.get_current_timestamp(),
            cpu_percent=(payload.get("cpu") or {}).get("usage_percent") or 0.0,
            mem_percent=(payload.get("memory") or {}).get("usage_percent") or 0.0,
            rx_kbps=rx_kbps,
            tx_kbps=tx_kbps,
            gpu_percent=gpu_percent,
        )

    def windowed(self, n: int) -> List[HistoryPoint]:
        """
        Returns the most recent `min(n, len)` points in chronological order without mutating the buffer.
        """

        return self.points.last(n)

    def series(self, n: Optional[int] = None) -> Dict[str, Any]:
        """
        Returns the buffer (or its `n` most recent points) as parallel series.
        """

        points = self.points.get_list() if n is None else self.windowed(n)
        return series_from_points(points)

    def labels(self, n: Optional[int] = None) -> List[str]:
        """
        Returns wall clock labels (HH:MM:SS) of the buffer timestamps, for chart axes.
        """

        points = self.points.get_list() if n is None else self.windowed(n)
        return [date.to_clock_label(point.timestamp) for point in points]

    def reset(self) -> None:
        """
        Empties the buffer.
        """

        self.points.clear()
