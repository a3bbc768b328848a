###########EXTERNAL IMPORTS############

from typing import Dict

#######################################

#############LOCAL IMPORTS#############

from model.analytics.rate import RateState
from model.analytics.system import SystemSnapshot, EnrichedSnapshot, NetworkRate, DiskRate
from controller.exceptions import InvalidInterval
from util.debug import LoggerManager

#######################################


class RateDeriver:
    """
    Converts cumulative counters into per-second rates.

    Each counter stream (a network interface direction, a disk direction) is
    identified by a string key and keeps its own RateState, so interfaces that
    appear or disappear between samples never disturb unrelated streams.

    Rules applied on every observation:
    - The first observation of a stream only seeds its state and yields 0.
    - A counter that went backwards (reset, wrap, replaced interface) yields 0.
    - An observation that is not strictly newer than the stored one yields 0.
    - The stored state is always overwritten with the latest observation.

    One instance is owned by exactly one sampling session and is never shared.
    """

    DISK_READ_KEY = "disk:read"
    DISK_WRITE_KEY = "disk:write"

    def __init__(self) -> None:
        self.states: Dict[str, RateState] = {}

    @staticmethod
    def network_key(interface: str, direction: str) -> str:
        return f"network:{interface}:{direction}"

    def derive(self, stream_key: str, current_value: int, current_timestamp: float) -> float:
        """
        Registers a new counter observation and returns the rate since the previous one.

        Args:
            stream_key: Identity of the counter stream.
            current_value: Cumulative counter value, must be non-negative.
            current_timestamp: Observation time in seconds.

        Returns:
            The non-negative rate in units per second.

        Raises:
            ValueError: If the counter value is negative.
        """

        if current_value < 0:
            raise ValueError(f"Counter {stream_key} must be non-negative, got {current_value}")

        state = self.states.get(stream_key)
        if state is None:
            self.states[stream_key] = RateState(previous_value=current_value, previous_timestamp=current_timestamp)
            return 0.0

        try:
            rate = RateDeriver.compute_rate(state, current_value, current_timestamp)
        except InvalidInterval as e:
            logger = LoggerManager.get_logger(__name__)
            logger.debug(f"Reseeding {stream_key}: {e}")
            rate = 0.0

        state.update(current_value, current_timestamp)
        return rate

    @staticmethod
    def compute_rate(state: RateState, current_value: int, current_timestamp: float) -> float:
        """
        Computes the rate between the stored state and a new observation.

        Raises:
            InvalidInterval: If the new observation is not strictly newer than the stored one.
        """

        elapsed = current_timestamp - state.previous_timestamp
        if elapsed <= 0:
            raise InvalidInterval(f"Elapsed time must be positive, got {elapsed:.6f}s")

        delta = current_value - state.previous_value
        if delta < 0:
            delta = 0
        return delta / elapsed

    def reset(self) -> None:
        """
        Drops the state of every stream.
        """

        self.states.clear()

    def enrich(
        self, snapshot: SystemSnapshot, elapsed_seconds: float = 0.0, progress: float = 0.0, run_id: str = ""
    ) -> EnrichedSnapshot:
        """
        Derives every rate of a snapshot.

        The snapshot's own capture time is used as the time base, so a delayed
        tick is measured over its real interval.

        Args:
            snapshot: Freshly collected snapshot.
            elapsed_seconds: Session elapsed time to attach to the result.
            progress: Session progress ratio to attach to the result.
            run_id: Session run identity to attach to the result.

        Returns:
            The enriched snapshot.
        """

        timestamp = snapshot.captured_at_millis / 1000
        network_rates: Dict[str, NetworkRate] = {}
        for iface in snapshot.network:
            network_rates[iface.name] = NetworkRate(
                rx_bytes_per_sec=self.derive(RateDeriver.network_key(iface.name, "rx"), iface.cumulative_rx_bytes, timestamp),
                tx_bytes_per_sec=self.derive(RateDeriver.network_key(iface.name, "tx"), iface.cumulative_tx_bytes, timestamp),
            )

        disk_rate = DiskRate(
            read_bytes_per_sec=self.derive(self.DISK_READ_KEY, snapshot.disk.cumulative_read_bytes, timestamp),
            write_bytes_per_sec=self.derive(self.DISK_WRITE_KEY, snapshot.disk.cumulative_write_bytes, timestamp),
        )

        return EnrichedSnapshot(
            snapshot=snapshot,
            network_rates=network_rates,
            disk_rate=disk_rate,
            elapsed_seconds=elapsed_seconds,
            progress=progress,
            run_id=run_id,
        )
