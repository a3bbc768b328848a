###########EXTERNAL IMPORTS############

from dataclasses import dataclass, field, asdict
from typing import Dict, Any, List, Optional
from dotenv import load_dotenv

#######################################

#############LOCAL IMPORTS#############

import util.functions.objects as objects

#######################################


@dataclass
class MonitorConfig:
    """
    Fixed parameters of the monitoring pipeline.

    Attributes:
        sampling_interval_ms: Nominal period between two ticks of a session.
        max_monitoring_seconds: Session duration after which it stops on its own.
        max_data_points: Capacity of the viewer rolling history.
        visualization_window: Number of most recent points handed to charts.
        top_processes: Rows kept in each top process table.
        outbound_queue_size: Capacity of each client's outbound message queue.
        host: HTTP server bind address.
        port: HTTP server port.
        cors_origins: Origins allowed to call the HTTP API.
    """

    sampling_interval_ms: int = 500
    max_monitoring_seconds: int = 300
    max_data_points: int = 600
    visualization_window: int = 60
    top_processes: int = 5
    outbound_queue_size: int = 100
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    def __post_init__(self):
        self.validate()

    @property
    def sampling_interval_seconds(self) -> float:
        return self.sampling_interval_ms / 1000

    def validate(self) -> None:
        """
        Checks the parameters are consistent.

        Raises:
            ValueError: If any parameter is out of range.
        """

        if self.sampling_interval_ms <= 0:
            raise ValueError(f"Sampling interval must be positive, got {self.sampling_interval_ms} ms")
        if self.max_monitoring_seconds * 1000 < self.sampling_interval_ms:
            raise ValueError("Maximum monitoring time must be at least one sampling interval")
        if self.max_data_points <= 0:
            raise ValueError(f"Maximum data points must be positive, got {self.max_data_points}")
        if not 0 < self.visualization_window <= self.max_data_points:
            raise ValueError(f"Visualization window must be in [1, {self.max_data_points}], got {self.visualization_window}")
        if self.top_processes <= 0:
            raise ValueError(f"Top processes must be positive, got {self.top_processes}")
        if self.outbound_queue_size <= 0:
            raise ValueError(f"Outbound queue size must be positive, got {self.outbound_queue_size}")

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "MonitorConfig":
        """
        Builds the configuration from the environment, optionally loading a .env file first.

        Variables already set in the environment take precedence over the file.
        Unset variables fall back to the defaults.

        Args:
            config_file: Path to a .env file.

        Returns:
            MonitorConfig: The validated configuration.
        """

        if config_file is not None:
            load_dotenv(config_file)

        defaults = cls()
        return cls(
            sampling_interval_ms=objects.get_env_int("SAMPLING_INTERVAL_MS", defaults.sampling_interval_ms),
            max_monitoring_seconds=objects.get_env_int("MAX_MONITORING_SECONDS", defaults.max_monitoring_seconds),
            max_data_points=objects.get_env_int("MAX_DATA_POINTS", defaults.max_data_points),
            visualization_window=objects.get_env_int("VISUALIZATION_WINDOW", defaults.visualization_window),
            top_processes=objects.get_env_int("TOP_PROCESSES", defaults.top_processes),
            outbound_queue_size=objects.get_env_int("OUTBOUND_QUEUE_SIZE", defaults.outbound_queue_size),
            host=objects.get_env_str("HOST", defaults.host),
            port=objects.get_env_int("PORT", defaults.port),
            cors_origins=objects.get_env_list("CORS_ORIGINS", defaults.cors_origins),
        )

    def get_data(self) -> Dict[str, Any]:
        return asdict(self)
