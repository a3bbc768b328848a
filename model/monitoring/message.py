###########EXTERNAL IMPORTS############

from dataclasses import dataclass, field
from typing import Dict, Any

#######################################

#############LOCAL IMPORTS#############

from model.monitoring.session import MonitoringEvent

#######################################


@dataclass
class OutboundMessage:
    """
    Simple container for a message sent to a monitoring client.

    Attributes:
        event (MonitoringEvent): Name of the event.
        data (Dict): Event payload.
    """

    event: MonitoringEvent
    data: Dict[str, Any] = field(default_factory=dict)

    def get_data(self) -> Dict[str, Any]:
        return {"event": self.event.value, "data": self.data}
