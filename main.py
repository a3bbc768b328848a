###########EXTERNAL IMPORTS############

import asyncio
import os

#######################################

#############LOCAL IMPORTS#############

from analytics.system import PsutilSnapshotProvider
from controller.broadcaster import Broadcaster
from controller.registry import SessionRegistry
from model.monitoring.config import MonitorConfig
from web.server import HTTPServer
from util.debug import LoggerManager
import util.functions.objects as objects

#######################################

CONFIG_FILE = "config/monitor_options.env"


async def async_main():
    """
    Main asynchronous entry point for the application.

    Responsibilities:
        - Loads the monitoring configuration and initializes logging.
        - Creates the snapshot provider, the broadcaster and the session registry.
        - Starts the HTTP server and keeps the event loop alive for the sessions' timers.
    """

    config = MonitorConfig.from_env(CONFIG_FILE if os.path.exists(CONFIG_FILE) else None)

    # Initialize global logger
    LoggerManager.init(to_file=objects.check_bool_str(objects.get_env_str("LOG_TO_FILE", "TRUE")))
    logger = LoggerManager.get_logger(__name__)

    # Create core infrastructure
    provider = PsutilSnapshotProvider(top_processes=config.top_processes)
    broadcaster = Broadcaster(queue_size=config.outbound_queue_size)
    registry = SessionRegistry(provider=provider, broadcaster=broadcaster, config=config)
    http_server = HTTPServer(config=config, provider=provider, registry=registry)

    logger.info(
        f"Sampling every {config.sampling_interval_ms} ms, sessions stop after {config.max_monitoring_seconds} s"
    )
    await http_server.start()

    try:
        # Keep main loop alive to support background tasks
        while True:
            await asyncio.sleep(2)
    finally:
        await http_server.stop()
        provider.close()


if __name__ == "__main__":
    asyncio.run(async_main())
