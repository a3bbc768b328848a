###########EXTERNAL IMPORTS############

from dataclasses import dataclass
from typing import Dict, Any, List

#######################################

#############LOCAL IMPORTS#############

#######################################


@dataclass(frozen=True)
class HistoryPoint:
    """
    One sample of the viewer history.

    Attributes:
        timestamp: Unix timestamp in milliseconds of the snapshot.
        cpu_percent: Overall CPU usage percentage.
        mem_percent: Memory usage percentage.
        rx_kbps: Download rate of the primary interface, in KB/s.
        tx_kbps: Upload rate of the primary interface, in KB/s.
        gpu_percent: Utilization of the first GPU, 0 when there is none.
    """

    timestamp: int
    cpu_percent: float = 0.0
    mem_percent: float = 0.0
    rx_kbps: float = 0.0
    tx_kbps: float = 0.0
    gpu_percent: float = 0.0


@dataclass
class HistoryRecord:
    """
    Persisted result of a monitoring session.

    Attributes:
        series_data: Parallel series of the history buffer.
        captured_at_epoch_millis: Unix timestamp in milliseconds of the save.
        duration_seconds: Elapsed session time when the session ended.
    """

    series_data: Dict[str, Any]
    captured_at_epoch_millis: int
    duration_seconds: float

    def get_data(self) -> Dict[str, Any]:
        return {
            "series_data": self.series_data,
            "captured_at_epoch_millis": self.captured_at_epoch_millis,
            "duration_seconds": self.duration_seconds,
        }

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "HistoryRecord":
        """
        Rebuilds a record from its dictionary form.

        Raises:
            ValueError: If a required field is missing or has the wrong type.
        """

        try:
            series_data = data["series_data"]
            captured_at = int(data["captured_at_epoch_millis"])
            duration = float(data["duration_seconds"])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid history record: {e}")

        if not isinstance(series_data, dict):
            raise ValueError("Invalid history record: series_data must be an object")

        return cls(series_data=series_data, captured_at_epoch_millis=captured_at, duration_seconds=duration)


def series_from_points(points: List[HistoryPoint]) -> Dict[str, Any]:
    """
    Splits history points into parallel series of equal length.
    """

    return {
        "timestamps": [point.timestamp for point in points],
        "cpu": [point.cpu_percent for point in points],
        "memory": [point.mem_percent for point in points],
        "network": {
            "rx": [point.rx_kbps for point in points],
            "tx": [point.tx_kbps for point in points],
        },
        "gpu": [point.gpu_percent for point in points],
    }
