###########EXTERNAL IMPORTS############

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

#######################################

#############LOCAL IMPORTS#############

#######################################


class LoggerManager:
    """
    Centralized logging setup for the application.

    The manager configures a single application logger once (console output plus
    a size-rotated log file) and hands out child loggers by module name. Modules
    fetch their logger through `get_logger(__name__)` at the point of use, so
    importing a module never triggers logging configuration.

    Attributes:
        LOGGER_NAME (str): Name of the application root logger.
        LOG_DIRECTORY (str): Directory where the rotated log files are written.
        LOG_FILE (str): Name of the log file.
        LOG_FORMAT (str): Record format shared by every handler.
    """

    LOGGER_NAME = "sysmonitor"
    LOG_DIRECTORY = "logs"
    LOG_FILE = "sysmonitor.log"
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    MAX_FILE_BYTES = 2 * 1024 * 1024
    BACKUP_COUNT = 3

    _initialized: bool = False

    @classmethod
    def init(cls, level: int = logging.INFO, log_directory: Optional[str] = None, to_file: bool = True) -> None:
        """
        Configures the application logger. Subsequent calls are ignored.

        Args:
            level: Minimum level emitted by the handlers.
            log_directory: Overrides LOG_DIRECTORY when given.
            to_file: Whether to attach the rotating file handler.
        """

        if cls._initialized:
            return

        logger = logging.getLogger(cls.LOGGER_NAME)
        logger.setLevel(level)
        logger.propagate = False
        formatter = logging.Formatter(cls.LOG_FORMAT)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if to_file:
            directory = log_directory or cls.LOG_DIRECTORY
            os.makedirs(directory, exist_ok=True)
            file_handler = RotatingFileHandler(
                os.path.join(directory, cls.LOG_FILE),
                maxBytes=cls.MAX_FILE_BYTES,
                backupCount=cls.BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        cls._initialized = True

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        Returns a child logger of the application logger for the given module name.
        """

        return logging.getLogger(f"{cls.LOGGER_NAME}.{name}")
