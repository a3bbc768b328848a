###########EXTERNAL IMPORTS############

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any

#######################################

#############LOCAL IMPORTS#############

import util.functions.date as date

#######################################


class SessionState(str, Enum):
    """
    Lifecycle states of a sampling session.

    Attributes:
        IDLE (str): Created, not yet started.
        RUNNING (str): Sampling on every tick.
        STOPPED (str): Terminal, timers cancelled.
    """

    IDLE = "IDLE"
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"


class MonitoringEvent(str, Enum):
    """
    Names of the events exchanged over the monitoring connection.

    Attributes:
        START (str): Client command starting a session.
        STOP (str): Client command stopping a session.
        SYSTEM_DATA (str): Server event carrying one enriched snapshot.
        ERROR (str): Server event carrying an error message.
        COMPLETE (str): Server event raised when a session reached its maximum duration.
    """

    START = "start-monitoring"
    STOP = "stop-monitoring"
    SYSTEM_DATA = "system-data"
    ERROR = "error"
    COMPLETE = "monitoring-complete"


@dataclass(frozen=True)
class SessionTimer:
    """
    Display state of a session's elapsed time.

    Always rebuilt from the session's elapsed seconds so the display never
    drifts from the session itself.

    Attributes:
        elapsed_seconds: Time elapsed since the session started.
        max_seconds: Duration after which the session stops on its own.
    """

    elapsed_seconds: float
    max_seconds: float

    @property
    def progress(self) -> float:
        """
        Elapsed ratio clamped to [0, 1].
        """

        if self.max_seconds <= 0:
            return 1.0
        return min(1.0, max(0.0, self.elapsed_seconds / self.max_seconds))

    @property
    def complete(self) -> bool:
        return self.elapsed_seconds >= self.max_seconds

    def format(self) -> str:
        """
        Returns the elapsed and total time as "MM:SS / MM:00".
        """

        total_minutes = int(self.max_seconds // 60)
        return f"{date.format_minutes_seconds(self.elapsed_seconds)} / {total_minutes:02d}:00"

    def get_data(self) -> Dict[str, Any]:
        return {"elapsed_seconds": self.elapsed_seconds, "progress": self.progress}
