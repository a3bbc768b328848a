###########EXTERNAL IMPORTS############

import json
import os
from typing import Optional

#######################################

#############LOCAL IMPORTS#############

from model.monitoring.history import HistoryRecord
from util.debug import LoggerManager

#######################################


class HistoryStore:
    """
    Keeps the last monitoring session on disk.

    A single JSON record is stored under a fixed key and overwritten by every
    save; records are neither versioned nor merged.

    Attributes:
        directory (str): Directory holding the record file.
        key (str): Name of the record.
    """

    DEFAULT_KEY = "monitoringData"

    def __init__(self, directory: str, key: str = DEFAULT_KEY):
        self.directory = directory
        self.key = key

    @property
    def path(self) -> str:
        return os.path.join(self.directory, f"{self.key}.json")

    def save(self, record: HistoryRecord) -> None:
        """
        Writes the record, replacing the previous one atomically.
        """

        logger = LoggerManager.get_logger(__name__)

        os.makedirs(self.directory, exist_ok=True)
        temp_path = f"{self.path}.tmp"
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(record.get_data(), f)
        os.replace(temp_path, self.path)
        logger.info(f"Saved monitoring history ({record.duration_seconds:.1f}s) to {self.path}")

    def load(self) -> Optional[HistoryRecord]:
        """
        Reads the stored record.

        Returns:
            The record, or None if nothing was saved yet or the file is unreadable.
        """

        logger = LoggerManager.get_logger(__name__)

        if not os.path.exists(self.path):
            return None

        try:
            with open(self.path, encoding="utf-8") as f:
                return HistoryRecord.from_data(json.load(f))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load monitoring history from {self.path}: {e}")
            return None
