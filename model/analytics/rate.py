###########EXTERNAL IMPORTS############

from dataclasses import dataclass

#######################################

#############LOCAL IMPORTS#############

#######################################


@dataclass
class RateState:
    """
    Last observation of one cumulative counter stream.

    Attributes:
        previous_value: Counter value at the last observation.
        previous_timestamp: Time of the last observation, in seconds.
    """

    previous_value: int
    previous_timestamp: float

    def update(self, value: int, timestamp: float) -> None:
        """
        Replaces the stored observation.
        """

        self.previous_value = value
        self.previous_timestamp = timestamp
