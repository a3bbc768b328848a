###########EXTERNAL IMPORTS############

import asyncio
import os

#######################################

#############LOCAL IMPORTS#############

from model.monitoring.config import MonitorConfig
from viewer.client import MonitorViewer
from viewer.storage import HistoryStore
from util.debug import LoggerManager
import util.functions.objects as objects

#######################################

CONFIG_FILE = "config/monitor_options.env"


def log_update(viewer: MonitorViewer) -> None:
    logger = LoggerManager.get_logger(__name__)

    point = viewer.history.windowed(1)[0]
    logger.info(
        f"{viewer.timer.format()} [{viewer.timer.progress * 100:5.1f}%] "
        f"CPU {point.cpu_percent:5.1f}% | MEM {point.mem_percent:5.1f}% | "
        f"RX {point.rx_kbps:8.1f} KB/s | TX {point.tx_kbps:8.1f} KB/s | GPU {point.gpu_percent:5.1f}%"
    )


def log_complete(viewer: MonitorViewer) -> None:
    logger = LoggerManager.get_logger(__name__)
    logger.info(f"Monitoring complete, {len(viewer.history)} samples recorded")


async def async_main():
    """
    Console viewer: monitors the configured server until the session completes or the user interrupts it.
    """

    config = MonitorConfig.from_env(CONFIG_FILE if os.path.exists(CONFIG_FILE) else None)
    LoggerManager.init(to_file=False)

    url = objects.get_env_str("VIEWER_SERVER_URL", f"ws://localhost:{config.port}/monitoring/ws")
    store = HistoryStore(directory=objects.get_env_str("VIEWER_STORAGE_DIR", "data"))
    viewer = MonitorViewer(config=config, store=store, on_update=log_update, on_complete=log_complete)
    await viewer.run(url)


if __name__ == "__main__":
    try:
        asyncio.run(async_main())
    except KeyboardInterrupt:
        pass
